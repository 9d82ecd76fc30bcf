from __future__ import annotations

import json
from importlib import resources

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

"""Pipeline config schema contract test."""


def _schema() -> dict:
    text = resources.files("sheet_unpivot.config").joinpath("pipeline_schema.json").read_text(encoding="utf-8")
    return json.loads(text)


@pytest.fixture()
def valid_config(cash_flow_yaml: str) -> dict:
    return yaml.safe_load(cash_flow_yaml)


def test_config_schema_is_valid_draft7():
    jsonschema.Draft7Validator.check_schema(_schema())


def test_config_schema_valid_example(valid_config):
    jsonschema.validate(valid_config, _schema())


def test_config_schema_minimal_example():
    config = {"header_groups": {"month": {"select": {"rows": [1]}, "direction": "N"}}}
    jsonschema.validate(config, _schema())


def test_config_schema_rejects_unknown_root_key(valid_config):
    config = valid_config
    config["database"] = {"host": "localhost"}
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_config_schema_requires_header_groups():
    with pytest.raises(ValidationError):
        jsonschema.validate({"output": "concat"}, _schema())


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("origin_row_offset", -1),
        ("origin_col_offset", "2"),
        ("output", "merged"),
        ("always_keep_rows", [0]),
        ("exception_labels", [""]),
    ],
)
def test_config_schema_rejects_bad_root_values(valid_config, key, value):
    config = valid_config
    config[key] = value
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_config_schema_rejects_empty_selector(valid_config):
    config = valid_config
    config["header_groups"]["month"]["select"] = {}
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_config_schema_rejects_group_without_direction(valid_config):
    config = valid_config
    del config["header_groups"]["sub_header"]["direction"]
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_config_schema_rejects_unknown_selector_kind(valid_config):
    config = valid_config
    config["header_groups"]["main_header"]["select"]["kinds"] = ["date"]
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())

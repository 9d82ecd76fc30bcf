from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import OUTPUT_MODES, HeaderGroupRule, PipelineConfig
from .selectors import selector_from_mapping

"""Pipeline config loader.

Responsibilities:
- Load a YAML pipeline description
- Validate it against the bundled JSON schema (pipeline_schema.json)
- Apply defaults (offsets 0, output "concat")
- Turn declarative selectors into callables and build PipelineConfig
"""

SCHEMA_PATH = Path(__file__).with_name("pipeline_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _group_rules(section: Mapping[str, Any]) -> tuple[HeaderGroupRule, ...]:
    rules: list[HeaderGroupRule] = []
    # YAML の記述順 = 出力列順
    for name, spec in section.items():
        try:
            rules.append(
                HeaderGroupRule(
                    name=name,
                    selector=selector_from_mapping(spec["select"]),
                    label_source=spec.get("label_source", "own_value"),
                    direction=spec["direction"],
                    output_field=spec.get("output_field"),
                )
            )
        except ValueError as e:
            raise ConfigError(f"header group '{name}': {e}") from e
    return tuple(rules)


def check_config(config: PipelineConfig) -> None:
    """Value checks shared by file-based and programmatic configs.

    Raises:
        ConfigError: negative offsets, unknown output mode, duplicate group
            names or duplicate output fields within a track
    """
    if config.origin_row_offset < 0 or config.origin_col_offset < 0:
        raise ConfigError(
            f"origin offsets must be >= 0 (row={config.origin_row_offset}, col={config.origin_col_offset})"
        )
    if config.output not in OUTPUT_MODES:
        raise ConfigError(f"unknown output mode {config.output!r} (expected one of {OUTPUT_MODES})")
    if not config.header_groups:
        raise ConfigError("at least one header group is required")
    for track, rules in (("header_groups", config.header_groups),
                         ("exception_header_groups", config.exception_header_groups)):
        names = [r.name for r in rules]
        if len(set(names)) != len(names):
            raise ConfigError(f"{track}: duplicate header group names {sorted(names)}")
        fields = [r.field_name for r in rules]
        if len(set(fields)) != len(fields):
            raise ConfigError(f"{track}: duplicate output fields {sorted(fields)}")
    if config.exception_labels and not config.exception_header_groups:
        raise ConfigError("exception_labels given but no exception_header_groups declared")


def build_config(data: Mapping[str, Any]) -> PipelineConfig:
    """Build a PipelineConfig from an in-memory mapping (same shape as YAML)."""
    _validate_config_schema(data)
    config = PipelineConfig(
        header_groups=_group_rules(data["header_groups"]),
        origin_row_offset=data.get("origin_row_offset", 0),
        origin_col_offset=data.get("origin_col_offset", 0),
        exception_labels=frozenset(data.get("exception_labels", [])),
        always_keep_rows=frozenset(data.get("always_keep_rows", [])),
        exception_header_groups=_group_rules(data.get("exception_header_groups", {})),
        output=data.get("output", "concat"),
    )
    check_config(config)
    return config


def load_config(path: Path) -> PipelineConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return build_config(data)

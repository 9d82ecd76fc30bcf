"""Configuration loading (YAML + JSON schema) and declarative selectors."""

"""Logging setup and error-record buffering."""

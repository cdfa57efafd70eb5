"""Unit tests for validation.py - desired-document validation."""

import logging

from influxdb_provider.validation import (
    validate_document,
    validate_json_schema,
    validate_scheduling,
)


class TestValidateJSONSchema:
    """Tests for validate_json_schema function."""

    def test_valid_simple_schema(self):
        schema = {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "count": {"type": "integer"},
            },
        }
        is_valid, error = validate_json_schema(schema)
        assert is_valid is True
        assert error is None

    def test_invalid_type(self):
        is_valid, error = validate_json_schema({"type": "invalid_type"})
        assert is_valid is False
        assert "Invalid schema" in error

    def test_invalid_required(self):
        is_valid, error = validate_json_schema({"type": "object", "required": "name"})
        assert is_valid is False
        assert error is not None

    def test_invalid_schema_names_offending_value(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="influxdb_provider.validation"):
            is_valid, error = validate_json_schema({"type": "invalid_type"})
        assert is_valid is False
        assert "'invalid_type'" in error
        assert "Rejected schema" in caplog.text


class TestValidateDocument:
    """Tests for validate_document function."""

    schema = {
        "type": "object",
        "required": ["name"],
        "properties": {
            "name": {"type": "string"},
            "retention_seconds": {"type": "integer", "minimum": 0},
        },
        "additionalProperties": False,
    }

    def test_valid_document(self):
        is_valid, error = validate_document({"name": "b1"}, self.schema)
        assert is_valid is True
        assert error is None

    def test_missing_required(self):
        is_valid, error = validate_document({}, self.schema)
        assert is_valid is False
        assert "(root)" in error
        assert "'name' is a required property" in error

    def test_wrong_type_names_path(self):
        is_valid, error = validate_document(
            {"name": "b1", "retention_seconds": "forever"}, self.schema
        )
        assert is_valid is False
        assert error.startswith("retention_seconds:")

    def test_minimum(self):
        is_valid, error = validate_document(
            {"name": "b1", "retention_seconds": -1}, self.schema
        )
        assert is_valid is False
        assert "retention_seconds" in error

    def test_unknown_property(self):
        is_valid, error = validate_document({"name": "b1", "extra": 1}, self.schema)
        assert is_valid is False
        assert "extra" in error

    def test_multiple_errors_joined(self):
        is_valid, error = validate_document(
            {"retention_seconds": -5, "extra": True}, self.schema
        )
        assert is_valid is False
        assert error.count("; ") == 2

    def test_failure_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="influxdb_provider.validation"):
            validate_document({"retention_seconds": -5}, self.schema)
        assert "failed validation with 2 error(s)" in caplog.text


class TestValidateScheduling:
    """Tests for the every/cron mutual exclusion."""

    def test_every_only(self):
        assert validate_scheduling("1h", None) == (True, None)

    def test_cron_only(self):
        assert validate_scheduling(None, "0 * * * *") == (True, None)

    def test_neither(self):
        is_valid, error = validate_scheduling(None, None)
        assert is_valid is False
        assert error == "Either 'every' or 'cron' must be specified for task scheduling"

    def test_both(self):
        is_valid, error = validate_scheduling("1h", "0 * * * *")
        assert is_valid is False
        assert error == "Cannot specify both 'every' and 'cron' scheduling options"

    def test_empty_strings_count_as_unset(self):
        is_valid, _ = validate_scheduling("", "")
        assert is_valid is False
        assert validate_scheduling("", "0 * * * *") == (True, None)

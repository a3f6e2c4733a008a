"""
Tests for utility modules: logging, validation.

Run with: pytest tests/test_utils.py -v
"""

import json
import logging

import pandas as pd
import pytest

from umigen.utils import (
    FileFormatter,
    MixedFrequencyError,
    MixedUnitsError,
    UmigenFormatter,
    ValidationError,
    setup_logging,
    validate_columns,
    validate_single_frequency,
    validate_single_unit,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message: str, **context) -> logging.LogRecord:
    record = logging.LogRecord("umigen.test", logging.WARNING, __file__, 1, message, None, None)
    for key, value in context.items():
        setattr(record, key, value)
    return record


class TestLogging:
    """Tests for logging configuration."""

    def test_setup_logging_level(self, restore_root_logger):
        """Test setup_logging sets the root level and one console handler."""
        setup_logging(level="debug")
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1

    def test_setup_logging_to_file(self, restore_root_logger, temp_dir):
        """Test a file handler is added when requested."""
        setup_logging(level="INFO", log_to_file=True, log_file=str(temp_dir / "umigen.log"))
        assert any(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
        for handler in restore_root_logger.handlers:
            handler.close()

    def test_formatter_appends_context(self):
        """Test archetype and zone type passed through extra are shown."""
        formatter = UmigenFormatter(use_colors=False)
        text = formatter.format(make_record("Aggregating", archetype="A1", zone_type="Core"))
        assert "Aggregating [archetype=A1, zone_type=Core]" in text
        assert "WARNING" in text

    def test_formatter_without_context(self):
        """Test records without context are left alone."""
        text = UmigenFormatter(use_colors=False).format(make_record("Plain message"))
        assert text.endswith("Plain message")

    def test_formatter_leaves_record_message(self):
        """Test the context suffix does not leak into other handlers."""
        record = make_record("Aggregating", archetype="A1")
        UmigenFormatter(use_colors=False).format(record)
        assert record.getMessage() == "Aggregating"

    def test_file_formatter(self):
        """Test the file formatter writes one JSON object with the context keys."""
        entry = json.loads(FileFormatter().format(make_record("Table missing", table="Zone Information")))
        assert entry["message"] == "Table missing"
        assert entry["table"] == "Zone Information"
        assert entry["level"] == "WARNING"
        assert "archetype" not in entry


class TestValidationError:
    """Tests for the error types."""

    def test_is_value_error(self):
        """Test callers can catch ValueError."""
        with pytest.raises(ValueError):
            raise ValidationError("bad", field="Units")

    def test_field_and_suggestions(self):
        """Test error details are kept."""
        error = ValidationError("bad", field="Units", suggestions=["use J"])
        assert error.field == "Units"
        assert error.suggestions == ["use J"]
        assert str(error) == "bad"

    def test_default_suggestions(self):
        """Test suggestions default to an empty list."""
        assert ValidationError("bad").suggestions == []

    def test_mixed_units_message(self):
        """Test the offending units are named in sorted order."""
        error = MixedUnitsError(["kWh", "J"])
        assert error.units == ["J", "kWh"]
        assert "J, kWh" in str(error)
        assert isinstance(error, ValidationError)
        assert error.field == "Units"


class TestValidators:
    """Tests for validate_single_unit, validate_single_frequency and validate_columns."""

    def test_single_unit(self):
        """Test one unit is returned."""
        assert validate_single_unit(pd.Series(["J", "J"])) == "J"

    def test_no_rows(self):
        """Test no rows gives None."""
        assert validate_single_unit(pd.Series([], dtype=object)) is None

    def test_missing_units_are_ignored(self):
        """Test NaN is not counted as a unit."""
        assert validate_single_unit(pd.Series(["J", None])) == "J"

    def test_mixed_units(self):
        """Test two units raise."""
        with pytest.raises(MixedUnitsError):
            validate_single_unit(pd.Series(["J", "kWh"]))

    def test_mixed_frequencies(self):
        """Test two frequencies raise."""
        with pytest.raises(MixedFrequencyError) as exc_info:
            validate_single_frequency(pd.Series(["Hourly", "Daily", "Hourly"]))
        assert exc_info.value.frequencies == ["Daily", "Hourly"]

    def test_known_columns(self):
        """Test known columns pass."""
        validate_columns(["Name", "Units"], ["Name", "Units", "Value"])

    def test_unknown_column(self):
        """Test an unknown column raises with the known names as suggestions."""
        with pytest.raises(ValidationError) as exc_info:
            validate_columns(["Name", "Country"], ["Name", "Units"])
        assert exc_info.value.field == "Country"
        assert exc_info.value.suggestions == ["Name", "Units"]

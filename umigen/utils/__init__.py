"""Utility modules."""

from .logging_config import (
    setup_logging,
    UmigenFormatter,
    FileFormatter,
)
from .validation import (
    validate_single_unit,
    validate_single_frequency,
    validate_columns,
    ValidationError,
    MixedUnitsError,
    MixedFrequencyError,
)

__all__ = [
    # Logging
    "setup_logging",
    "UmigenFormatter",
    "FileFormatter",
    # Validation
    "validate_single_unit",
    "validate_single_frequency",
    "validate_columns",
    "ValidationError",
    "MixedUnitsError",
    "MixedFrequencyError",
]

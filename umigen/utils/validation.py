"""
Input validation utilities for umigen.

Provides the error types raised by the aggregation core and the checks that
guard structural assumptions (single unit, single reporting frequency,
recognized column names).

Usage:
    from umigen.utils.validation import (
        validate_single_unit,
        MixedUnitsError,
    )

    units = validate_single_unit(frame["Units"])
"""

from typing import Iterable, List, Optional
import logging

import pandas as pd

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = "", suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field = field
        self.suggestions = suggestions or []


class MixedUnitsError(ValidationError):
    """Raised when values carrying different units would be combined."""

    def __init__(self, units: Iterable[str], field: str = "Units"):
        self.units = sorted(str(u) for u in units)
        super().__init__(
            f"Cannot combine values with mixed units: {', '.join(self.units)}",
            field=field,
            suggestions=["Filter the report to a single unit before aggregating"],
        )


class MixedFrequencyError(ValidationError):
    """Raised when values reported at different frequencies would be combined."""

    def __init__(self, frequencies: Iterable[str], field: str = "ReportingFrequency"):
        self.frequencies = sorted(str(f) for f in frequencies)
        super().__init__(
            f"Cannot combine values with mixed reporting frequencies: "
            f"{', '.join(self.frequencies)}",
            field=field,
            suggestions=["Request a single reporting frequency for these meters"],
        )


def _distinct(values: pd.Series) -> List[str]:
    return [v for v in pd.unique(values.dropna())]


def validate_single_unit(units: pd.Series) -> Optional[str]:
    """
    Check that a column of unit strings holds at most one distinct unit.

    Args:
        units: The ``Units`` column of the rows about to be combined

    Returns:
        The unit string, or None when there are no rows

    Raises:
        MixedUnitsError: If more than one unit is present
    """
    distinct = _distinct(units)
    if len(distinct) > 1:
        raise MixedUnitsError(distinct)
    return distinct[0] if distinct else None


def validate_single_frequency(frequencies: pd.Series) -> Optional[str]:
    """
    Check that a column of reporting frequencies holds at most one value.

    Raises:
        MixedFrequencyError: If more than one frequency is present
    """
    distinct = _distinct(frequencies)
    if len(distinct) > 1:
        raise MixedFrequencyError(distinct)
    return distinct[0] if distinct else None


def validate_columns(requested: Iterable[str], known: Iterable[str]) -> None:
    """
    Check that every requested column is a recognized column.

    Raises:
        ValidationError: On the first unknown column, with the recognized
            names as suggestions
    """
    known = list(known)
    for column in requested:
        if column not in known:
            raise ValidationError(
                f"Unknown column '{column}'",
                field=str(column),
                suggestions=known,
            )

"""
Report accessors.

Flat access to the time-series ``ReportData`` table and pivot access to the
``TabularDataWithStrings`` summary table.
"""

from .report_data import ReportData, HEATING_METERS, COOLING_METERS
from .tabular import TabularSummary, coerce_numeric, is_identifier

__all__ = [
    "ReportData",
    "HEATING_METERS",
    "COOLING_METERS",
    "TabularSummary",
    "coerce_numeric",
    "is_identifier",
]

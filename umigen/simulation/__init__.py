"""
Simulation Module - Boundary with the simulation engine output.

Features:
- CSV export loading, one directory per archetype
- Concatenation of result tables across archetypes
"""

from .results import (
    ResultsLoader,
    load_results,
    concat_report_data,
    concat_tabular_data,
    REPORT_DATA,
    REPORT_DATA_DICTIONARY,
    TABULAR_DATA,
)

__all__ = [
    'ResultsLoader',
    'load_results',
    'concat_report_data',
    'concat_tabular_data',
    'REPORT_DATA',
    'REPORT_DATA_DICTIONARY',
    'TABULAR_DATA',
]

"""
TabularSummary - Pivot access to the engine's tabular reports.

The ``TabularDataWithStrings`` table is a generic key/value dump: every cell
of every summary report is one row (ReportName, TableName, RowName,
ColumnName, Value). ``TabularSummary.table`` rebuilds one report table as a
wide frame indexed by (Archetype, RowName).
"""

from typing import Optional
import logging

import numpy as np
import pandas as pd

from ..core.config import settings

logger = logging.getLogger(__name__)


IDENTIFIER_PREFIXES = ("End-Use", "Fan Type")


def is_identifier(column_name) -> bool:
    """Names, schedules, categories and fan types are kept as text."""
    name = str(column_name)
    return name.endswith("Name") or name.startswith(IDENTIFIER_PREFIXES)


def coerce_numeric(column: pd.Series) -> pd.Series:
    """
    Convert a column to numbers when every non-missing value parses.

    Columns holding any non-numeric text (names, schedules, yes/no flags)
    are returned unchanged.
    """
    converted = pd.to_numeric(column, errors="coerce")
    if converted.notna().sum() == column.notna().sum():
        return converted
    return column


class TabularSummary:
    """
    Wrapper around the concatenated ``TabularDataWithStrings`` table.

    Usage:
        tabular = TabularSummary(concat_tabular_data(results))
        lights = tabular.table("Initialization Summary", "Lights Internal Gains Nominal")
    """

    ARCHETYPE = "Archetype"
    REPORTNAME = "ReportName"
    TABLENAME = "TableName"
    ROWNAME = "RowName"
    COLUMNNAME = "ColumnName"
    VALUE = "Value"

    COLUMNS = [ARCHETYPE, REPORTNAME, TABLENAME, ROWNAME, COLUMNNAME, VALUE]

    def __init__(self, data: Optional[pd.DataFrame] = None,
                 missing_value_token: Optional[str] = None):
        if data is None:
            data = pd.DataFrame(columns=self.COLUMNS)
        self.data = data
        self.missing_value_token = (
            missing_value_token if missing_value_token is not None else settings.missing_value_token
        )

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"TabularSummary(rows={len(self.data)})"

    def rows(self, report_name: str, table_name: str) -> pd.DataFrame:
        """Raw rows of one report table."""
        data = self.data
        return data.loc[(data[self.REPORTNAME] == report_name) & (data[self.TABLENAME] == table_name)]

    def table(self, report_name: str, table_name: str) -> pd.DataFrame:
        """
        Pivot one report table into a wide frame.

        Cells sharing (Archetype, RowName, ColumnName) are joined with a
        space. The missing-value token becomes NaN and every non-identifier
        column whose values all parse as numbers is converted. Identifier
        columns (see ``is_identifier``) stay text so zone names like "101"
        still match the RowName of other tables.

        Args:
            report_name: e.g. "Initialization Summary"
            table_name: e.g. "Zone Information"

        Returns:
            DataFrame indexed by (Archetype, RowName) with one column per
            ColumnName. Empty when the table is absent.
        """
        rows = self.rows(report_name, table_name)
        if rows.empty:
            logger.warning(f"Table {table_name} does not exist. Returning an empty DataFrame",
                           extra={"table": f"{report_name}/{table_name}"})
            return pd.DataFrame()

        pivoted = rows.pivot_table(
            index=[self.ARCHETYPE, self.ROWNAME],
            columns=self.COLUMNNAME,
            values=self.VALUE,
            aggfunc=lambda x: " ".join(x),
        )
        pivoted.columns.name = None
        pivoted = pivoted.replace({self.missing_value_token: np.nan})
        return pivoted.apply(lambda column: column if is_identifier(column.name) else coerce_numeric(column))

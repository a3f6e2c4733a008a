"""
Results Loader - Bring simulation result tables into the aggregation core.

Handles:
- Reading per-archetype CSV exports of the EnergyPlus SQL tables
- Concatenating ``TabularDataWithStrings`` across archetypes
- Concatenating ``ReportData`` and joining it to ``ReportDataDictionary``

The archetype identifier always becomes the outermost key so every
downstream table can be grouped by it.
"""

from pathlib import Path
from typing import Dict, Mapping, Optional
import logging

import pandas as pd

from ..reports.report_data import ReportData
from ..reports.tabular import TabularSummary

logger = logging.getLogger(__name__)


REPORT_DATA = "ReportData"
REPORT_DATA_DICTIONARY = "ReportDataDictionary"
TABULAR_DATA = "TabularDataWithStrings"

RESULT_TABLES = [REPORT_DATA, REPORT_DATA_DICTIONARY, TABULAR_DATA]

# Archetype -> table name -> frame
Results = Mapping[str, Mapping[str, pd.DataFrame]]


def _with_column(frame: pd.DataFrame, column: str) -> pd.DataFrame:
    """Return ``frame`` with ``column`` as a regular column (promote the index)."""
    if column not in frame.columns and column in (frame.index.names or []):
        return frame.reset_index()
    return frame.reset_index(drop=True)


def _concat(results: Results, table: str, key_column: Optional[str] = None) -> pd.DataFrame:
    frames = {}
    for archetype, tables in results.items():
        if table not in tables or tables[table] is None:
            logger.warning(f"Table {table} missing from results", extra={"archetype": archetype})
            continue
        frame = tables[table]
        frames[archetype] = _with_column(frame, key_column) if key_column else frame.reset_index(drop=True)
    if not frames:
        return pd.DataFrame()
    return (
        pd.concat(frames, names=[ReportData.ARCHETYPE, "Index"])
        .reset_index(level=0)
        .reset_index(drop=True)
    )


def concat_tabular_data(results: Results) -> pd.DataFrame:
    """
    Concatenate the ``TabularDataWithStrings`` table of every archetype.

    Value and RowName strings are stripped of surrounding whitespace.

    Args:
        results: Mapping archetype -> {table name -> DataFrame}

    Returns:
        DataFrame with an ``Archetype`` column followed by the table columns
    """
    tabular = _concat(results, TABULAR_DATA)
    if tabular.empty:
        return pd.DataFrame(columns=TabularSummary.COLUMNS)
    for column in (TabularSummary.VALUE, TabularSummary.ROWNAME):
        tabular[column] = tabular[column].astype(str).str.strip()
    return tabular


def concat_report_data(results: Results) -> pd.DataFrame:
    """
    Concatenate ``ReportData`` of every archetype and join its dictionary.

    Args:
        results: Mapping archetype -> {table name -> DataFrame}

    Returns:
        DataFrame with the 14 report columns (Archetype first)
    """
    report_data = _concat(results, REPORT_DATA, ReportData.REPORTDATAINDEX)
    dictionary = _concat(results, REPORT_DATA_DICTIONARY, ReportData.REPORTDATADICTIONARYINDEX)
    if report_data.empty:
        return pd.DataFrame(columns=ReportData.COLUMNS)

    key = [ReportData.ARCHETYPE, ReportData.REPORTDATADICTIONARYINDEX]
    report_data[ReportData.REPORTDATADICTIONARYINDEX] = pd.to_numeric(
        report_data[ReportData.REPORTDATADICTIONARYINDEX])
    if not dictionary.empty:
        dictionary[ReportData.REPORTDATADICTIONARYINDEX] = pd.to_numeric(
            dictionary[ReportData.REPORTDATADICTIONARYINDEX])
        report_data = report_data.merge(dictionary, on=key, how="left", suffixes=("", "_dictionary"))

    columns = [c for c in ReportData.COLUMNS if c in report_data.columns]
    return report_data.loc[:, columns]


class ResultsLoader:
    """
    Load per-archetype result tables exported as CSV.

    Expected layout::

        results/
            ArchetypeA/
                ReportData.csv
                ReportDataDictionary.csv
                TabularDataWithStrings.csv
            ArchetypeB/
                ...

    Usage:
        loader = ResultsLoader()
        results = loader.load(Path('./results'))
        report = ReportData(concat_report_data(results))
    """

    def load(self, results_dir: Path) -> Dict[str, Dict[str, pd.DataFrame]]:
        """
        Load every archetype sub-directory of ``results_dir``.

        Args:
            results_dir: Directory holding one sub-directory per archetype

        Returns:
            Mapping archetype -> {table name -> DataFrame}. Empty when the
            directory does not exist or holds no result tables.
        """
        results_dir = Path(results_dir)
        if not results_dir.is_dir():
            logger.warning(f"Results directory {results_dir} does not exist")
            return {}

        results = {}
        for archetype_dir in sorted(p for p in results_dir.iterdir() if p.is_dir()):
            tables = self._load_archetype(archetype_dir)
            if tables:
                results[archetype_dir.name] = tables
            else:
                logger.warning(
                    f"No result tables in {archetype_dir}",
                    extra={"archetype": archetype_dir.name},
                )
        logger.info(f"Loaded results for {len(results)} archetypes from {results_dir}")
        return results

    def _load_archetype(self, archetype_dir: Path) -> Dict[str, pd.DataFrame]:
        tables = {}
        for table in RESULT_TABLES:
            path = archetype_dir / f"{table}.csv"
            if not path.exists():
                continue
            if table == TABULAR_DATA:
                # Keep every tabular cell as text; the missing-value token is parsed later
                tables[table] = pd.read_csv(path, dtype=str, keep_default_na=False)
            else:
                tables[table] = pd.read_csv(path)
        return tables


def load_results(results_dir: Path) -> Dict[str, Dict[str, pd.DataFrame]]:
    """
    Convenience function to load CSV result exports.

    Args:
        results_dir: Directory holding one sub-directory per archetype

    Returns:
        Mapping archetype -> {table name -> DataFrame}
    """
    loader = ResultsLoader()
    return loader.load(results_dir)

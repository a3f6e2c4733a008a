"""
ReportData - Flat access to time-series simulation output.

Wraps the ``ReportData`` table joined to its ``ReportDataDictionary`` (one
row per archetype, reported variable and time step) and offers:
- A generic multi-column filter (scalar equality, tuple = logical OR)
- Clean per-signal time series re-indexed by (Archetype, TimeStep)
- Heating and cooling load profiles summed over the energy meters
"""

import time
from typing import Any, Dict, Mapping, Optional
import logging

import pandas as pd

from ..profiles.energy_profile import EnergyProfile
from ..utils.validation import (
    ValidationError,
    validate_columns,
    validate_single_frequency,
    validate_single_unit,
)

logger = logging.getLogger(__name__)


HEATING_METERS = ("Heating:Electricity", "Heating:Gas", "Heating:DistrictHeating")
COOLING_METERS = ("Cooling:Electricity", "Cooling:Gas", "Cooling:DistrictCooling")

MULTIPLE_TYPES = (tuple, list, set, frozenset)


class ReportData:
    """
    Flat report table with the 14 recognized columns.

    Usage:
        report = ReportData(concat_report_data(results))
        meters = report.filter_report_data(name=HEATING_METERS, units="J")
        load = report.heating_load(sort=True)
    """

    ARCHETYPE = "Archetype"
    REPORTDATAINDEX = "ReportDataIndex"
    TIMEINDEX = "TimeIndex"
    REPORTDATADICTIONARYINDEX = "ReportDataDictionaryIndex"
    VALUE = "Value"
    ISMETER = "IsMeter"
    TYPE = "Type"
    INDEXGROUP = "IndexGroup"
    TIMESTEPTYPE = "TimestepType"
    KEYVALUE = "KeyValue"
    NAME = "Name"
    REPORTINGFREQUENCY = "ReportingFrequency"
    SCHEDULENAME = "ScheduleName"
    UNITS = "Units"

    COLUMNS = [
        ARCHETYPE, REPORTDATAINDEX, TIMEINDEX, REPORTDATADICTIONARYINDEX, VALUE,
        ISMETER, TYPE, INDEXGROUP, TIMESTEPTYPE, KEYVALUE, NAME,
        REPORTINGFREQUENCY, SCHEDULENAME, UNITS,
    ]

    # Lower-case keyword aliases accepted by filter_report_data
    ALIASES = {column.lower(): column for column in COLUMNS}

    def __init__(self, data: Optional[pd.DataFrame] = None):
        if data is None:
            data = pd.DataFrame(columns=self.COLUMNS)
        self.data = data

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"ReportData(rows={len(self.data)})"

    @property
    def empty(self) -> bool:
        return self.data.empty

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def _resolve_predicates(self, predicates: Optional[Mapping[str, Any]],
                            kwargs: Dict[str, Any]) -> Dict[str, Any]:
        resolved = {}
        for key, value in {**(predicates or {}), **kwargs}.items():
            if value is None:
                continue
            resolved[self.ALIASES.get(key, key)] = value
        validate_columns(resolved, self.COLUMNS)
        return resolved

    def _condition(self, column: str, value: Any) -> pd.Series:
        if column not in self.data.columns:
            raise ValidationError(f"Column '{column}' is not present in this report", field=column)
        series = self.data[column]
        if isinstance(value, MULTIPLE_TYPES):
            return series.isin(list(value))
        return series == value

    def filter_report_data(self, predicates: Optional[Mapping[str, Any]] = None,
                           inplace: bool = False, **kwargs) -> Optional["ReportData"]:
        """
        Filter rows on any of the recognized columns.

        Each predicate is either a scalar (equality) or a tuple/list/set of
        scalars (logical OR on that column). Predicates on different columns
        are combined with logical AND; a column without predicate (or with
        ``None``) is unconstrained.

        Args:
            predicates: Mapping column -> value or values. Column keys may be
                the canonical names ("KeyValue") or lower-case aliases
                ("keyvalue").
            inplace: Replace this table's rows instead of returning a new one
            **kwargs: Same as ``predicates``, e.g. ``name=("A", "B")``

        Returns:
            A new ReportData, or None when ``inplace``

        Raises:
            ValidationError: If a predicate names an unknown column
        """
        start_time = time.time()
        resolved = self._resolve_predicates(predicates, kwargs)

        mask = pd.Series(True, index=self.data.index)
        for column, value in resolved.items():
            mask &= self._condition(column, value)

        filtered = self.data.loc[mask]
        logger.debug(f"Filtered ReportData in {time.time() - start_time:,.2f} seconds "
                     f"({len(filtered)} of {len(self.data)} rows)")
        if inplace:
            self.data = filtered
            return None
        return ReportData(filtered.copy())

    def sorted_values(self, key_value: Optional[str] = None, name: Optional[str] = None,
                      by: str = TIMEINDEX, ascending: bool = True) -> pd.DataFrame:
        """
        Return one signal as a clean time series.

        Filters on ``name`` and ``key_value``, sorts by ``by`` within each
        archetype and re-indexes the rows by (Archetype, TimeStep), where
        TimeStep counts from 0 within each archetype.

        Args:
            key_value: KeyValue column filter (e.g. a zone or schedule name)
            name: Name column filter (e.g. "Schedule Value")
            by: Column to sort on
            ascending: Sort order

        Returns:
            pandas.DataFrame indexed by (Archetype, TimeStep)
        """
        filtered = self.filter_report_data(name=name, keyvalue=key_value).data
        if by not in filtered.columns:
            raise ValidationError(f"Cannot sort on unknown column '{by}'", field=by,
                                  suggestions=self.COLUMNS)
        filtered = filtered.sort_values(
            by=[self.ARCHETYPE, by],
            ascending=[True, ascending],
            kind="stable",
        ).reset_index(drop=True)
        filtered["TimeStep"] = filtered.groupby(self.ARCHETYPE).cumcount()
        return filtered.set_index([self.ARCHETYPE, "TimeStep"])

    @property
    def schedules(self) -> pd.DataFrame:
        """Values of every reported schedule, indexed by (Archetype, TimeStep)."""
        return self.sorted_values(name="Schedule Value")

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    def _meter_load(self, meters, profile_type: str, normalize: bool, sort: bool,
                    ascending: bool, concurrent_sort: bool) -> EnergyProfile:
        filtered = self.filter_report_data(name=meters).data
        units = validate_single_unit(filtered[self.UNITS])
        frequency = validate_single_frequency(filtered[self.REPORTINGFREQUENCY])
        if filtered.empty:
            logger.warning(f"No {profile_type} meters found in ReportData")

        values = pd.to_numeric(filtered[self.VALUE], errors="coerce")
        load = values.groupby([filtered[self.ARCHETYPE], filtered[self.TIMEINDEX]]).sum()
        load.name = profile_type
        logger.debug(f"Returned {profile_type} in units of {units}")
        return EnergyProfile(
            load,
            frequency=frequency,
            units=units,
            profile_type=profile_type,
            normalize=normalize,
            is_sorted=sort,
            ascending=ascending,
            concurrent_sort=concurrent_sort,
        )

    def heating_load(self, normalize: bool = False, sort: bool = False,
                     ascending: bool = False, concurrent_sort: bool = False) -> EnergyProfile:
        """
        Sum of the 'Heating:Electricity', 'Heating:Gas' and
        'Heating:DistrictHeating' meters of each archetype.

        Args:
            normalize: Min-max scale each archetype's curve
            sort: Sort each archetype's curve (load-duration curve)
            ascending: Sort order; load-duration curves use False
            concurrent_sort: Sort archetypes by their coincident total

        Returns:
            EnergyProfile indexed by (Archetype, TimeIndex)

        Raises:
            MixedUnitsError: If the meters are reported in different units
        """
        return self._meter_load(HEATING_METERS, "heating load", normalize, sort,
                                ascending, concurrent_sort)

    def cooling_load(self, normalize: bool = False, sort: bool = False,
                     ascending: bool = False, concurrent_sort: bool = False) -> EnergyProfile:
        """
        Sum of the 'Cooling:Electricity', 'Cooling:Gas' and
        'Cooling:DistrictCooling' meters of each archetype.

        Same arguments and errors as :meth:`heating_load`.
        """
        return self._meter_load(COOLING_METERS, "cooling load", normalize, sort,
                                ascending, concurrent_sort)

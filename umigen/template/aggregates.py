"""
Template objects from zone aggregation tables.

Each function turns one (Archetype, Zone Type) row of an aggregator output
into the matching zone-setting object. Schedule names found in the rows are
resolved against the ``YearSchedule`` objects supplied by the caller; names
that do not resolve leave the schedule unset.
"""

from typing import Dict, Iterable, Optional
import logging

import numpy as np
import pandas as pd

from .objects import (
    DomesticHotWaterSetting,
    VentilationSetting,
    YearSchedule,
    ZoneConditioning,
    ZoneLoad,
)

logger = logging.getLogger(__name__)

ScheduleIndex = Dict[str, YearSchedule]


def schedule_index(schedules: Optional[Iterable[YearSchedule]]) -> ScheduleIndex:
    """Index schedules by upper-cased name, the way the engine reports them."""
    return {str(s.Name).upper(): s for s in schedules or []}


def _value(row: pd.Series, key) -> float:
    value = pd.to_numeric(row.get(key, np.nan), errors="coerce")
    return float(value)


def _amount(row: pd.Series, key, default: float = 0.0) -> float:
    """Like ``_value`` but a missing statistic becomes ``default``."""
    value = _value(row, key)
    return default if np.isnan(value) else value


def _is_on(value: float) -> bool:
    return bool(not np.isnan(value) and value > 0)


def _schedule(row: pd.Series, key, schedules: ScheduleIndex) -> Optional[YearSchedule]:
    name = row.get(key, np.nan)
    if pd.isna(name):
        return None
    schedule = schedules.get(str(name).upper())
    if schedule is None:
        logger.debug(f"Schedule {name} not supplied; leaving {key} unset")
    return schedule


def zone_load_from_row(row: pd.Series, name: str, schedules: ScheduleIndex) -> ZoneLoad:
    """ZoneLoad from a ``zone_loads`` row."""
    lighting = _amount(row, ("NominalLighting", "weighted mean"))
    people = _amount(row, ("NominalPeople", "weighted mean"))
    equipment = _amount(row, ("NominalEquipment", "weighted mean"))
    return ZoneLoad(
        Name=name,
        LightingPowerDensity=lighting,
        LightsAvailabilitySchedule=_schedule(row, ("NominalLighting", "top"), schedules),
        IsLightingOn=_is_on(lighting),
        PeopleDensity=people,
        OccupancySchedule=_schedule(row, ("NominalPeople", "top"), schedules),
        IsPeopleOn=_is_on(people),
        EquipmentPowerDensity=equipment,
        EquipmentAvailabilitySchedule=_schedule(row, ("NominalEquipment", "top"), schedules),
        IsEquipmentOn=_is_on(equipment),
    )


def ventilation_from_row(row: pd.Series, name: str, schedules: ScheduleIndex) -> VentilationSetting:
    """VentilationSetting from a ``zone_ventilation`` row."""
    infiltration = _amount(row, ("Infiltration", "weighted mean {ACH}"))
    scheduled = _amount(row, ("ScheduledVentilation", "weighted mean {ACH}"))
    natural = _amount(row, ("NatVent", "weighted mean {ACH}"))
    setting = VentilationSetting(
        Name=name,
        Infiltration=infiltration,
        IsInfiltrationOn=_is_on(infiltration),
        ScheduledVentilationAch=scheduled,
        ScheduledVentilationSchedule=_schedule(row, ("ScheduledVentilation", "Top Schedule Name"), schedules),
        IsScheduledVentilationOn=_is_on(scheduled),
        NatVentSchedule=_schedule(row, ("NatVent", "Top Schedule Name"), schedules),
        IsNatVentOn=_is_on(natural),
    )
    # Temperatures reported as schedule names keep the defaults
    for attribute, key in [
        ("ScheduledVentilationSetpoint", ("ScheduledVentilation", "Setpoint")),
        ("NatVentMaxOutdoorAirTemp", ("NatVent", "MaxOutdoorAirTemp")),
        ("NatVentMinOutdoorAirTemp", ("NatVent", "MinOutdoorAirTemp")),
        ("NatVentZoneTempSetpoint", ("NatVent", "ZoneTempSetpoint")),
    ]:
        value = _value(row, key)
        if not np.isnan(value):
            setattr(setting, attribute, value)
    return setting


def conditioning_from_row(row: pd.Series, name: str) -> ZoneConditioning:
    """ZoneConditioning from a ``zone_conditioning`` row."""
    cooling = _value(row, ("ZoneCooling", "designday"))
    heating = _value(row, ("ZoneHeating", "designday"))
    conditioning = ZoneConditioning(
        Name=name,
        CoolingCoeffOfPerf=_amount(row, ("COP Cooling", "weighted mean {}"), default=1.0),
        HeatingCoeffOfPerf=_amount(row, ("COP Heating", "weighted mean {}"), default=1.0),
        MinFreshAirPerArea=_amount(row, ("MinFreshAirPerArea", "weighted average {m3/s-m2}")),
        MinFreshAirPerPerson=_amount(row, ("MinFreshAirPerPerson", "weighted average {m3/s-person}")),
        IsCoolingOn=not np.isnan(cooling),
        IsHeatingOn=not np.isnan(heating),
    )
    if not np.isnan(cooling):
        conditioning.CoolingSetpoint = cooling
    if not np.isnan(heating):
        conditioning.HeatingSetpoint = heating
    return conditioning


def domestic_hot_water_from_row(row: pd.Series, name: str,
                                schedules: ScheduleIndex) -> DomesticHotWaterSetting:
    """DomesticHotWaterSetting from a ``zone_domestic_hot_water_settings`` row."""
    flow = _amount(row, ("FlowRatePerFloorArea", "weighted mean"))
    return DomesticHotWaterSetting(
        Name=name,
        FlowRatePerFloorArea=flow,
        IsOn=_is_on(flow),
        WaterSchedule=_schedule(row, ("FlowRatePerFloorArea", "top"), schedules),
    )


def group_row(table: Optional[pd.DataFrame], key) -> Optional[pd.Series]:
    """Row ``key`` of an aggregator table, or None when absent."""
    if table is None or table.empty or key not in table.index:
        return None
    return table.loc[key]

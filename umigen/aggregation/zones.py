"""
Zone-level aggregators.

Every aggregator follows the same three steps:

1. Join the zone information table with the nominal extractors it needs,
   one column block per source, keyed by (Archetype, Zone Name). Zones
   absent from the zone information table are dropped.
2. Classify each joined row into a zone type with an injectable
   classifier (``iscore`` by default).
3. Group by (Archetype, Zone Type) and reduce each group to one row with
   an aggregation function such as ``zoneloads_aggregation``.

Group statistics are weighted by floor area x zone multiplier. A column a
statistic needs but the joined frame lacks yields NaN and a warning.
"""

from typing import Callable, Dict, Optional
import logging

import numpy as np
import pandas as pd

from ..reports.report_data import ReportData
from ..reports.tabular import TabularSummary
from .classification import ZONE_NAME_COLUMN, ZoneClassifier, classify, iscore
from .nominal import (
    ARCHETYPE,
    nominal_domestic_hot_water,
    nominal_equipment,
    nominal_infiltration,
    nominal_lighting,
    nominal_people,
    split_ventilation,
    zone_cop,
    zone_information,
    zone_setpoint,
)
from .weighting import safe_column, top, weighted_mean

logger = logging.getLogger(__name__)

ZONE_TYPE = "Zone Type"
ZONE_TYPE_COLUMN = ("Zone", ZONE_TYPE)
AREA_M = [("Zone", "Floor Area {m2}"), ("Zone", "Zone Multiplier")]

Aggregation = Callable[[pd.DataFrame], pd.Series]


# ----------------------------------------------------------------------
# Join, classify, group
# ----------------------------------------------------------------------

def join_zone_blocks(blocks: Dict[str, Optional[pd.DataFrame]]) -> pd.DataFrame:
    """
    Outer-join column blocks on (Archetype, Zone Name).

    ``blocks`` must hold a "Zone" block; empty or missing blocks are left
    out, so their columns are simply absent from the result.

    Returns:
        DataFrame with two-level columns (block, column), restricted to the
        rows present in the "Zone" block
    """
    present = {name: block for name, block in blocks.items()
               if block is not None and not block.empty}
    if "Zone" not in present:
        logger.warning("No zone information available. Returning an empty DataFrame")
        return pd.DataFrame()

    joined = pd.concat(present, axis=1, sort=True)
    joined = joined.loc[joined["Zone"].notna().any(axis=1)].copy()
    joined[ZONE_NAME_COLUMN] = joined.index.get_level_values(1)
    return joined


def aggregate_by_zone_type(joined: pd.DataFrame, aggregation: Aggregation,
                           classifier: ZoneClassifier = iscore,
                           name: Optional[str] = None) -> pd.DataFrame:
    """
    Classify the joined zones and reduce each (Archetype, Zone Type) group.

    Args:
        joined: Output of :func:`join_zone_blocks`
        aggregation: Group -> Series of statistics (two-level keys)
        classifier: Row -> zone-type label
        name: Label used in log messages

    Returns:
        DataFrame indexed by (Archetype, Zone Type), one row per group
    """
    if joined.empty:
        return pd.DataFrame()

    joined = joined.copy()
    joined[ZONE_TYPE_COLUMN] = classify(joined, classifier)

    archetypes = joined.index.get_level_values(0)
    keys, rows = [], []
    for key, group in joined.groupby([archetypes, joined[ZONE_TYPE_COLUMN]], sort=True):
        logger.debug(f"Aggregating {name or 'zones'} for archetype {key[0]}, zone type {key[1]}",
                     extra={"archetype": key[0], "zone_type": key[1]})
        keys.append(key)
        rows.append(aggregation(group))

    logger.info(f"{len(keys)} groups in {name or 'zone'} aggregation")
    result = pd.concat(rows, axis=1).T.infer_objects()
    result.index = pd.MultiIndex.from_tuples(keys, names=[ARCHETYPE, ZONE_TYPE])
    result.name = name
    return result


def _numeric(x: pd.DataFrame, key) -> pd.Series:
    return pd.to_numeric(safe_column(x, key), errors="coerce")


def _ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Element-wise ratio where a zero divisor gives NaN."""
    return (numerator / denominator).replace([np.inf, -np.inf], np.nan)


# ----------------------------------------------------------------------
# Zone loads
# ----------------------------------------------------------------------

def zoneloads_aggregation(x: pd.DataFrame) -> pd.Series:
    """
    Area-weighted internal gains of one zone group.

    Power densities are weighted means; schedules are the ones of the
    zone with the largest weight.
    """
    d = {
        ("NominalLighting", "weighted mean"):
            weighted_mean(safe_column(x, ("NominalLighting", "Lights/Floor Area {W/m2}")), x, AREA_M),
        ("NominalLighting", "top"):
            top(safe_column(x, ("NominalLighting", "Schedule Name")), x, AREA_M),
        ("NominalPeople", "weighted mean"):
            weighted_mean(safe_column(x, ("NominalPeople", "People/Floor Area {person/m2}")), x, AREA_M),
        ("NominalPeople", "top"):
            top(safe_column(x, ("NominalPeople", "Schedule Name")), x, AREA_M),
        ("NominalEquipment", "weighted mean"):
            weighted_mean(safe_column(x, ("NominalEquipment", "Equipment/Floor Area {W/m2}")), x, AREA_M),
        ("NominalEquipment", "top"):
            top(safe_column(x, ("NominalEquipment", "Schedule Name")), x, AREA_M),
    }
    return pd.Series(d)


def zone_loads(tabular: TabularSummary, classifier: ZoneClassifier = iscore) -> pd.DataFrame:
    """
    Internal gains (lighting, people, equipment) per (Archetype, Zone Type).

    Args:
        tabular: Tabular summary of all archetypes
        classifier: Row -> zone-type label

    Returns:
        pandas.DataFrame named 'ZoneLoads'
    """
    joined = join_zone_blocks({
        "Zone": zone_information(tabular),
        "NominalLighting": nominal_lighting(tabular),
        "NominalPeople": nominal_people(tabular),
        "NominalInfiltration": nominal_infiltration(tabular),
        "NominalEquipment": nominal_equipment(tabular),
    })
    return aggregate_by_zone_type(joined, zoneloads_aggregation, classifier, name="ZoneLoads")


# ----------------------------------------------------------------------
# Ventilation
# ----------------------------------------------------------------------

ACH = "ACH - Air Changes per Hour"


def zoneventilation_aggregation(x: pd.DataFrame) -> pd.Series:
    """Infiltration, scheduled and natural ventilation of one zone group."""
    natural = "NominalNaturalVentilation"
    scheduled = "NominalScheduledVentilation"
    d = {
        ("Infiltration", "weighted mean {ACH}"):
            weighted_mean(safe_column(x, ("NominalInfiltration", ACH)), x, AREA_M),
        ("Infiltration", "Top Schedule Name"):
            top(safe_column(x, ("NominalInfiltration", "Schedule Name")), x, AREA_M),
        ("ScheduledVentilation", "weighted mean {ACH}"):
            weighted_mean(safe_column(x, (scheduled, ACH)), x, AREA_M),
        ("ScheduledVentilation", "Top Schedule Name"):
            top(safe_column(x, (scheduled, "Schedule Name")), x, AREA_M),
        ("ScheduledVentilation", "Setpoint"):
            top(safe_column(x, (scheduled, "Minimum Indoor Temperature{C}/Schedule")), x, AREA_M),
        ("NatVent", "weighted mean {ACH}"):
            weighted_mean(safe_column(x, (natural, ACH)), x, AREA_M),
        ("NatVent", "Top Schedule Name"):
            top(safe_column(x, (natural, "Schedule Name")), x, AREA_M),
        ("NatVent", "MaxOutdoorAirTemp"):
            top(safe_column(x, (natural, "Maximum Outdoor Temperature{C}/Schedule")), x, AREA_M),
        ("NatVent", "MinOutdoorAirTemp"):
            top(safe_column(x, (natural, "Minimum Outdoor Temperature{C}/Schedule")), x, AREA_M),
        ("NatVent", "ZoneTempSetpoint"):
            top(safe_column(x, (natural, "Minimum Indoor Temperature{C}/Schedule")), x, AREA_M),
    }
    return pd.Series(d)


def zone_ventilation(tabular: TabularSummary, classifier: ZoneClassifier = iscore) -> pd.DataFrame:
    """
    Infiltration and ventilation per (Archetype, Zone Type).

    Scheduled (fan driven) and natural ventilation are joined as separate
    blocks.

    Returns:
        pandas.DataFrame named 'ZoneVentilation'
    """
    blocks = {
        "Zone": zone_information(tabular),
        "NominalInfiltration": nominal_infiltration(tabular),
    }
    blocks.update(split_ventilation(tabular))
    joined = join_zone_blocks(blocks)
    return aggregate_by_zone_type(joined, zoneventilation_aggregation, classifier,
                                  name="ZoneVentilation")


# ----------------------------------------------------------------------
# Conditioning
# ----------------------------------------------------------------------

SETPOINT_AT_PEAK = "Thermostat Setpoint Temperature at Peak Load"
MIN_OUTDOOR_AIR = "Minimum Outdoor Air Flow Rate"


def _design_day_setpoint(x: pd.DataFrame, block: str) -> float:
    setpoints = _numeric(x, (block, SETPOINT_AT_PEAK))
    return setpoints.loc[setpoints > 0].mean()


def zoneconditioning_aggregation(x: pd.DataFrame) -> pd.Series:
    """
    Conditioning parameters of one zone group.

    Minimum fresh air is the larger of the cooling-mode and heating-mode
    weighted means, per floor area and per occupant.
    """
    area = _numeric(x, ("Zone", "Floor Area {m2}"))
    occupants = _numeric(x, ("NominalPeople", "# Zone Occupants"))
    cooling_oa = _numeric(x, ("ZoneCooling", MIN_OUTDOOR_AIR))
    heating_oa = _numeric(x, ("ZoneHeating", MIN_OUTDOOR_AIR))

    d = {
        ("COP Heating", "weighted mean {}"):
            weighted_mean(safe_column(x, ("COP", "COP Heating")), x, AREA_M),
        ("COP Cooling", "weighted mean {}"):
            weighted_mean(safe_column(x, ("COP", "COP Cooling")), x, AREA_M),
        ("ZoneCooling", "designday"): _design_day_setpoint(x, "ZoneCooling"),
        ("ZoneHeating", "designday"): _design_day_setpoint(x, "ZoneHeating"),
        ("MinFreshAirPerArea", "weighted average {m3/s-m2}"): np.fmax(
            weighted_mean(_ratio(cooling_oa, area), x, AREA_M),
            weighted_mean(_ratio(heating_oa, area), x, AREA_M),
        ),
        ("MinFreshAirPerPerson", "weighted average {m3/s-person}"): np.fmax(
            weighted_mean(_ratio(cooling_oa, occupants), x, AREA_M),
            weighted_mean(_ratio(heating_oa, occupants), x, AREA_M),
        ),
    }
    return pd.Series(d)


def zone_conditioning(report: ReportData, tabular: TabularSummary,
                      classifier: ZoneClassifier = iscore) -> pd.DataFrame:
    """
    COPs, design-day setpoints and minimum fresh air per (Archetype, Zone Type).

    Args:
        report: Report data holding the air-system and meter energies
        tabular: Tabular summary of all archetypes
        classifier: Row -> zone-type label

    Returns:
        pandas.DataFrame named 'ZoneConditioning'
    """
    setpoints = zone_setpoint(tabular)
    blocks = {
        "Zone": zone_information(tabular),
        "NominalPeople": nominal_people(tabular),
        "COP": zone_cop(report, tabular),
    }
    for block, key in [("ZoneCooling", "cooling"), ("ZoneHeating", "heating")]:
        if key in setpoints.columns.get_level_values(0):
            blocks[block] = setpoints[key]
    joined = join_zone_blocks(blocks)
    return aggregate_by_zone_type(joined, zoneconditioning_aggregation, classifier,
                                  name="ZoneConditioning")


# ----------------------------------------------------------------------
# Domestic hot water
# ----------------------------------------------------------------------

def domestichotwatersettings_aggregation(x: pd.DataFrame) -> pd.Series:
    """Hot water flow per floor area {m3/h-m2} and the dominant schedule."""
    flow = _numeric(x, ("NominalDhw", "Peak_Flow_Rate")) * 3600
    area = _numeric(x, ("Zone", "Floor Area {m2}"))
    d = {
        ("FlowRatePerFloorArea", "weighted mean"):
            weighted_mean(_ratio(flow, area), x, AREA_M),
        ("FlowRatePerFloorArea", "top"):
            top(safe_column(x, ("NominalDhw", "Flow_Rate_Fraction_Schedule_Name")), x, AREA_M),
    }
    return pd.Series(d)


def zone_domestic_hot_water_settings(tabular: TabularSummary, water_use: pd.DataFrame,
                                     classifier: ZoneClassifier = iscore) -> pd.DataFrame:
    """
    Domestic hot water settings per (Archetype, Zone Type).

    Args:
        tabular: Tabular summary of all archetypes
        water_use: ``WaterUse:Equipment`` records (see
            :func:`~umigen.aggregation.nominal.nominal_domestic_hot_water`)
        classifier: Row -> zone-type label

    Returns:
        pandas.DataFrame named 'DomesticHotWaterSettings'
    """
    joined = join_zone_blocks({
        "Zone": zone_information(tabular),
        "NominalDhw": nominal_domestic_hot_water(water_use),
    })
    return aggregate_by_zone_type(joined, domestichotwatersettings_aggregation, classifier,
                                  name="DomesticHotWaterSettings")

"""
Zone aggregation.

Weighted primitives, nominal-value extractors over the tabular summary and
the zone-level aggregators built on them.
"""

from .weighting import weighted_mean, top, safe_column, combined_weights
from .classification import iscore, classify, ZoneClassifier, CORE, PERIMETER
from .nominal import (
    reduce_by_zone,
    zone_information,
    nominal_lighting,
    nominal_people,
    nominal_equipment,
    nominal_infiltration,
    nominal_ventilation,
    split_ventilation,
    nominal_domestic_hot_water,
    zone_setpoint,
    zone_cop,
)
from .zones import (
    join_zone_blocks,
    aggregate_by_zone_type,
    zone_loads,
    zone_ventilation,
    zone_conditioning,
    zone_domestic_hot_water_settings,
    zoneloads_aggregation,
    zoneventilation_aggregation,
    zoneconditioning_aggregation,
    domestichotwatersettings_aggregation,
)

__all__ = [
    "weighted_mean",
    "top",
    "safe_column",
    "combined_weights",
    "iscore",
    "classify",
    "ZoneClassifier",
    "CORE",
    "PERIMETER",
    "reduce_by_zone",
    "zone_information",
    "nominal_lighting",
    "nominal_people",
    "nominal_equipment",
    "nominal_infiltration",
    "nominal_ventilation",
    "split_ventilation",
    "nominal_domestic_hot_water",
    "zone_setpoint",
    "zone_cop",
    "join_zone_blocks",
    "aggregate_by_zone_type",
    "zone_loads",
    "zone_ventilation",
    "zone_conditioning",
    "zone_domestic_hot_water_settings",
    "zoneloads_aggregation",
    "zoneventilation_aggregation",
    "zoneconditioning_aggregation",
    "domestichotwatersettings_aggregation",
]

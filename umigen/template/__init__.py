"""
UMI template documents.

Template objects, the 17-collection document and the builder that produces
one from simulation results.
"""

from .objects import (
    UmiBase,
    GasMaterial,
    GlazingMaterial,
    OpaqueMaterial,
    MaterialLayer,
    MassRatio,
    OpaqueConstruction,
    WindowConstruction,
    StructureDefinition,
    DaySchedule,
    WeekSchedule,
    YearSchedulePart,
    YearSchedule,
    DomesticHotWaterSetting,
    VentilationSetting,
    ZoneConditioning,
    ZoneConstructionSet,
    ZoneLoad,
    WindowSetting,
    Zone,
    BuildingTemplate,
    COLLECTIONS,
    COLLECTION_TYPES,
)
from .umi_template import UmiTemplate
from .builder import TemplateBuilder, AggregationResult

__all__ = [
    "UmiBase",
    "GasMaterial",
    "GlazingMaterial",
    "OpaqueMaterial",
    "MaterialLayer",
    "MassRatio",
    "OpaqueConstruction",
    "WindowConstruction",
    "StructureDefinition",
    "DaySchedule",
    "WeekSchedule",
    "YearSchedulePart",
    "YearSchedule",
    "DomesticHotWaterSetting",
    "VentilationSetting",
    "ZoneConditioning",
    "ZoneConstructionSet",
    "ZoneLoad",
    "WindowSetting",
    "Zone",
    "BuildingTemplate",
    "COLLECTIONS",
    "COLLECTION_TYPES",
    "UmiTemplate",
    "TemplateBuilder",
    "AggregationResult",
]

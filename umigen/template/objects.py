"""
UMI template objects.

One dataclass per collection of the template document (materials,
constructions, schedules, zone settings, zones and building templates) and
three component records nested inside them (construction layers, structure
mass ratios, year schedule parts).

Fields carry the document key they map to in their metadata, along with
how the value is written:

- ``VALUE``: written as is
- ``REF``: another template object, written as ``{"$ref": id}``
- ``REFS``: a list of template objects, written as a list of refs
- ``RECORDS``: a list of component records, each written as a dict

Usage:
    material = OpaqueMaterial(Name="Concrete", Conductivity=1.4)
    construction = OpaqueConstruction(
        Name="Wall", Layers=[MaterialLayer(Material=material, Thickness=0.2)]
    )
    construction.all_objects  # [construction, material]
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, Mapping, Optional, Type, TypeVar
import logging

from ..utils.validation import ValidationError

logger = logging.getLogger(__name__)

VALUE = "value"
REF = "ref"
REFS = "refs"
RECORDS = "records"

T = TypeVar("T")

# id(object) -> "$id" written in the document
Ids = Dict[int, int]
# "$id" read from the document -> object
Refs = Mapping[int, "UmiBase"]


def prop(default: Any = None, kind: str = VALUE, factory=None, record: Optional[type] = None):
    """Declare a template field."""
    metadata = {"kind": kind, "record": record}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _ref(obj: "UmiBase", ids: Ids) -> Dict[str, int]:
    return {"$ref": ids[id(obj)]}


def _resolve(ref: Any, refs: Refs, key: str) -> Optional["UmiBase"]:
    if ref is None:
        return None
    try:
        return refs[ref["$ref"]]
    except (KeyError, TypeError):
        raise ValidationError(
            f"Unresolved reference {ref!r} in field {key}",
            field=key,
            suggestions=["Referenced objects must appear in an earlier collection"],
        )


def record_to_json(obj: Any, ids: Ids) -> Dict[str, Any]:
    """Serialize the declared fields of a template object or component."""
    data = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        kind = f.metadata.get("kind", VALUE)
        if kind == REF:
            data[f.name] = _ref(value, ids) if value is not None else None
        elif kind == REFS:
            data[f.name] = [_ref(item, ids) for item in value]
        elif kind == RECORDS:
            data[f.name] = [record_to_json(item, ids) for item in value]
        else:
            data[f.name] = list(value) if isinstance(value, (list, tuple)) else value
    return data


def record_from_json(cls: Type[T], record: Mapping[str, Any], refs: Refs) -> T:
    """Build ``cls`` from a document record, resolving refs against ``refs``."""
    kwargs = {}
    for f in fields(cls):
        if f.name not in record:
            continue
        value = record[f.name]
        kind = f.metadata.get("kind", VALUE)
        if kind == REF:
            value = _resolve(value, refs, f.name)
        elif kind == REFS:
            value = [_resolve(item, refs, f.name) for item in value or []]
        elif kind == RECORDS:
            component = f.metadata["record"]
            value = [record_from_json(component, item, refs) for item in value or []]
        kwargs[f.name] = value
    return cls(**kwargs)


def _referenced(obj: Any) -> Iterator["UmiBase"]:
    """Template objects directly referenced by ``obj`` (through components too)."""
    for f in fields(obj):
        value = getattr(obj, f.name)
        kind = f.metadata.get("kind", VALUE)
        if kind == REF and value is not None:
            yield value
        elif kind == REFS:
            yield from (item for item in value if item is not None)
        elif kind == RECORDS:
            for item in value:
                yield from _referenced(item)


@dataclass(eq=True)
class UmiBase:
    """Fields shared by every template object."""

    Name: str = prop("unnamed")
    Category: str = prop("Uncategorized")
    Comments: str = prop("")
    DataSource: str = prop("")

    @classmethod
    def collection(cls) -> str:
        """Name of the document collection holding this type."""
        return f"{cls.__name__}s"

    def to_json(self, ids: Ids) -> Dict[str, Any]:
        """
        Document record of this object.

        Args:
            ids: Mapping id(object) -> "$id" for every object reachable
                from this one

        Returns:
            Dict starting with "$id"
        """
        return {"$id": ids[id(self)], **record_to_json(self, ids)}

    @classmethod
    def from_json(cls, record: Mapping[str, Any], refs: Refs):
        """
        Build an object from its document record.

        Args:
            record: Flat record including "$id"
            refs: Objects already built, by "$id"

        Raises:
            ValidationError: If a "$ref" does not resolve
        """
        return record_from_json(cls, record, refs)

    @property
    def all_objects(self) -> List["UmiBase"]:
        """
        This object and every object reachable from it.

        Each object appears once (by identity), referenced objects after
        the objects referencing them.
        """
        seen = set()
        ordered = []
        stack = [self]
        while stack:
            obj = stack.pop()
            if id(obj) in seen:
                continue
            seen.add(id(obj))
            ordered.append(obj)
            stack.extend(reversed(list(_referenced(obj))))
        return ordered


# ----------------------------------------------------------------------
# Materials
# ----------------------------------------------------------------------

@dataclass(eq=True)
class MaterialBase(UmiBase):
    Conductivity: float = prop(0.0)
    Cost: float = prop(0.0)
    Density: float = prop(0.0)
    EmbodiedCarbon: float = prop(0.0)
    EmbodiedEnergy: float = prop(0.0)
    SubstitutionRatePattern: List[float] = prop(factory=list)
    SubstitutionTimestep: float = prop(0.0)
    TransportCarbon: float = prop(0.0)
    TransportDistance: float = prop(0.0)
    TransportEnergy: float = prop(0.0)


@dataclass(eq=True)
class GasMaterial(MaterialBase):
    Type: str = prop("Air")


@dataclass(eq=True)
class GlazingMaterial(MaterialBase):
    DirtFactor: float = prop(1.0)
    IREmissivityBack: float = prop(0.0)
    IREmissivityFront: float = prop(0.0)
    IRTransmittance: float = prop(0.0)
    SolarReflectanceBack: float = prop(0.0)
    SolarReflectanceFront: float = prop(0.0)
    SolarTransmittance: float = prop(0.0)
    VisibleReflectanceBack: float = prop(0.0)
    VisibleReflectanceFront: float = prop(0.0)
    VisibleTransmittance: float = prop(0.0)
    Type: str = prop("Uncoated")


@dataclass(eq=True)
class OpaqueMaterial(MaterialBase):
    MoistureDiffusionResistance: float = prop(50.0)
    Roughness: str = prop("Rough")
    SolarAbsorptance: float = prop(0.7)
    SpecificHeat: float = prop(0.0)
    ThermalEmittance: float = prop(0.9)
    VisibleAbsorptance: float = prop(0.7)


# ----------------------------------------------------------------------
# Constructions
# ----------------------------------------------------------------------

@dataclass(eq=True)
class MaterialLayer:
    """One layer of a construction."""

    Material: Optional[MaterialBase] = prop(kind=REF)
    Thickness: float = prop(0.0)


@dataclass(eq=True)
class MassRatio:
    """Share of a structural material per floor area."""

    HighLoadRatio: float = prop(0.0)
    Material: Optional[OpaqueMaterial] = prop(kind=REF)
    NormalRatio: float = prop(0.0)


@dataclass(eq=True)
class ConstructionBase(UmiBase):
    AssemblyCarbon: float = prop(0.0)
    AssemblyCost: float = prop(0.0)
    AssemblyEnergy: float = prop(0.0)
    DisassemblyCarbon: float = prop(0.0)
    DisassemblyEnergy: float = prop(0.0)


@dataclass(eq=True)
class OpaqueConstruction(ConstructionBase):
    Layers: List[MaterialLayer] = prop(kind=RECORDS, factory=list, record=MaterialLayer)
    Type: str = prop("Facade")


@dataclass(eq=True)
class WindowConstruction(ConstructionBase):
    Layers: List[MaterialLayer] = prop(kind=RECORDS, factory=list, record=MaterialLayer)
    Type: str = prop("Double")


@dataclass(eq=True)
class StructureDefinition(ConstructionBase):
    MassRatios: List[MassRatio] = prop(kind=RECORDS, factory=list, record=MassRatio)


# ----------------------------------------------------------------------
# Schedules
# ----------------------------------------------------------------------

@dataclass(eq=True)
class DaySchedule(UmiBase):
    Type: str = prop("Fraction")
    Values: List[float] = prop(factory=list)


@dataclass(eq=True)
class WeekSchedule(UmiBase):
    Days: List[DaySchedule] = prop(kind=REFS, factory=list)
    Type: str = prop("Fraction")


@dataclass(eq=True)
class YearSchedulePart:
    """Period of the year following one week schedule."""

    FromDay: int = prop(1)
    FromMonth: int = prop(1)
    ToDay: int = prop(31)
    ToMonth: int = prop(12)
    Schedule: Optional[WeekSchedule] = prop(kind=REF)


@dataclass(eq=True)
class YearSchedule(UmiBase):
    Parts: List[YearSchedulePart] = prop(kind=RECORDS, factory=list, record=YearSchedulePart)
    Type: str = prop("Fraction")


# ----------------------------------------------------------------------
# Zone settings
# ----------------------------------------------------------------------

@dataclass(eq=True)
class DomesticHotWaterSetting(UmiBase):
    FlowRatePerFloorArea: float = prop(0.0)
    IsOn: bool = prop(True)
    WaterSchedule: Optional[YearSchedule] = prop(kind=REF)
    WaterSupplyTemperature: float = prop(65.0)
    WaterTemperatureInlet: float = prop(10.0)


@dataclass(eq=True)
class VentilationSetting(UmiBase):
    Afn: bool = prop(False)
    Infiltration: float = prop(0.0)
    IsBuoyancyOn: bool = prop(True)
    IsInfiltrationOn: bool = prop(True)
    IsNatVentOn: bool = prop(False)
    IsScheduledVentilationOn: bool = prop(False)
    IsWindOn: bool = prop(False)
    NatVentMaxOutdoorAirTemp: float = prop(30.0)
    NatVentMaxRelHumidity: float = prop(90.0)
    NatVentMinOutdoorAirTemp: float = prop(0.0)
    NatVentSchedule: Optional[YearSchedule] = prop(kind=REF)
    NatVentZoneTempSetpoint: float = prop(18.0)
    ScheduledVentilationAch: float = prop(0.0)
    ScheduledVentilationSchedule: Optional[YearSchedule] = prop(kind=REF)
    ScheduledVentilationSetpoint: float = prop(18.0)


@dataclass(eq=True)
class ZoneConditioning(UmiBase):
    CoolingCoeffOfPerf: float = prop(1.0)
    CoolingLimitType: str = prop("NoLimit")
    CoolingSchedule: Optional[YearSchedule] = prop(kind=REF)
    CoolingSetpoint: float = prop(26.0)
    EconomizerType: str = prop("NoEconomizer")
    HeatRecoveryEfficiencyLatent: float = prop(0.65)
    HeatRecoveryEfficiencySensible: float = prop(0.7)
    HeatRecoveryType: str = prop("None")
    HeatingCoeffOfPerf: float = prop(1.0)
    HeatingLimitType: str = prop("NoLimit")
    HeatingSchedule: Optional[YearSchedule] = prop(kind=REF)
    HeatingSetpoint: float = prop(20.0)
    IsCoolingOn: bool = prop(True)
    IsHeatingOn: bool = prop(True)
    IsMechVentOn: bool = prop(True)
    MaxCoolFlow: float = prop(100.0)
    MaxCoolingCapacity: float = prop(100.0)
    MaxHeatFlow: float = prop(100.0)
    MaxHeatingCapacity: float = prop(100.0)
    MechVentSchedule: Optional[YearSchedule] = prop(kind=REF)
    MinFreshAirPerArea: float = prop(0.0)
    MinFreshAirPerPerson: float = prop(0.0)


@dataclass(eq=True)
class ZoneConstructionSet(UmiBase):
    Facade: Optional[OpaqueConstruction] = prop(kind=REF)
    Ground: Optional[OpaqueConstruction] = prop(kind=REF)
    Partition: Optional[OpaqueConstruction] = prop(kind=REF)
    Roof: Optional[OpaqueConstruction] = prop(kind=REF)
    Slab: Optional[OpaqueConstruction] = prop(kind=REF)
    IsFacadeAdiabatic: bool = prop(False)
    IsGroundAdiabatic: bool = prop(False)
    IsPartitionAdiabatic: bool = prop(False)
    IsRoofAdiabatic: bool = prop(False)
    IsSlabAdiabatic: bool = prop(False)


@dataclass(eq=True)
class ZoneLoad(UmiBase):
    DimmingType: str = prop("Continuous")
    EquipmentAvailabilitySchedule: Optional[YearSchedule] = prop(kind=REF)
    EquipmentPowerDensity: float = prop(0.0)
    IlluminanceTarget: float = prop(500.0)
    IsEquipmentOn: bool = prop(True)
    IsLightingOn: bool = prop(True)
    IsPeopleOn: bool = prop(True)
    LightingPowerDensity: float = prop(0.0)
    LightsAvailabilitySchedule: Optional[YearSchedule] = prop(kind=REF)
    OccupancySchedule: Optional[YearSchedule] = prop(kind=REF)
    PeopleDensity: float = prop(0.0)


@dataclass(eq=True)
class WindowSetting(UmiBase):
    AfnDischargeC: float = prop(0.65)
    AfnTempSetpoint: float = prop(20.0)
    AfnWindowAvailability: Optional[YearSchedule] = prop(kind=REF)
    Construction: Optional[WindowConstruction] = prop(kind=REF)
    IsShadingSystemOn: bool = prop(False)
    IsVirtualPartition: bool = prop(False)
    IsZoneMixingOn: bool = prop(False)
    OperableArea: float = prop(0.8)
    ShadingSystemAvailabilitySchedule: Optional[YearSchedule] = prop(kind=REF)
    ShadingSystemSetpoint: float = prop(180.0)
    ShadingSystemTransmittance: float = prop(0.5)
    ShadingSystemType: int = prop(0)
    Type: int = prop(0)
    ZoneMixingAvailabilitySchedule: Optional[YearSchedule] = prop(kind=REF)
    ZoneMixingDeltaTemperature: float = prop(2.0)
    ZoneMixingFlowRate: float = prop(0.001)


# ----------------------------------------------------------------------
# Zones and buildings
# ----------------------------------------------------------------------

@dataclass(eq=True)
class Zone(UmiBase):
    Conditioning: Optional[ZoneConditioning] = prop(kind=REF)
    Constructions: Optional[ZoneConstructionSet] = prop(kind=REF)
    DaylightMeshResolution: float = prop(1.0)
    DaylightWorkplaneHeight: float = prop(0.8)
    DomesticHotWater: Optional[DomesticHotWaterSetting] = prop(kind=REF)
    InternalMassConstruction: Optional[OpaqueConstruction] = prop(kind=REF)
    InternalMassExposedPerFloorArea: float = prop(1.05)
    Loads: Optional[ZoneLoad] = prop(kind=REF)
    Ventilation: Optional[VentilationSetting] = prop(kind=REF)


@dataclass(eq=True)
class BuildingTemplate(UmiBase):
    Core: Optional[Zone] = prop(kind=REF)
    Lifespan: int = prop(60)
    PartitionRatio: float = prop(0.35)
    Perimeter: Optional[Zone] = prop(kind=REF)
    Structure: Optional[StructureDefinition] = prop(kind=REF)
    Windows: Optional[WindowSetting] = prop(kind=REF)


# Document collections, in the order they are written and read. Every
# collection only references collections listed before it.
COLLECTION_TYPES = [
    GasMaterial,
    GlazingMaterial,
    OpaqueMaterial,
    OpaqueConstruction,
    WindowConstruction,
    StructureDefinition,
    DaySchedule,
    WeekSchedule,
    YearSchedule,
    DomesticHotWaterSetting,
    VentilationSetting,
    ZoneConditioning,
    ZoneConstructionSet,
    ZoneLoad,
    Zone,
    WindowSetting,
    BuildingTemplate,
]

COLLECTIONS = [cls.collection() for cls in COLLECTION_TYPES]

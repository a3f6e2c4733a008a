"""
UmiTemplate - The template document.

A document is a name plus 17 collections of template objects. It is
written by walking the object graph of every building template, so an
object is written once however many objects reference it, and read back
collection by collection in dependency order so every "$ref" resolves
against objects already built.
"""

import io
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

import pandas as pd

from ..core.config import settings
from .aggregates import (
    conditioning_from_row,
    domestic_hot_water_from_row,
    group_row,
    schedule_index,
    ventilation_from_row,
    zone_load_from_row,
)
from .objects import (
    COLLECTION_TYPES,
    COLLECTIONS,
    BuildingTemplate,
    OpaqueConstruction,
    StructureDefinition,
    UmiBase,
    WindowSetting,
    YearSchedule,
    Zone,
    ZoneConstructionSet,
)

logger = logging.getLogger(__name__)

PathOrBuffer = Union[str, Path, io.TextIOBase]


class UmiTemplate:
    """
    Container of the 17 template collections.

    Usage:
        template = UmiTemplate.from_json("BostonTemplateLibrary.json")
        template.to_json("copy.json")
    """

    def __init__(self, name: str = "unnamed", **collections: List[UmiBase]):
        unknown = set(collections) - set(COLLECTIONS)
        if unknown:
            raise TypeError(f"Unknown template collections: {', '.join(sorted(unknown))}")
        self.name = name
        for collection in COLLECTIONS:
            setattr(self, collection, list(collections.get(collection) or []))

    def __repr__(self) -> str:
        counts = ", ".join(f"{c}={len(getattr(self, c))}" for c in COLLECTIONS if getattr(self, c))
        return f"UmiTemplate(name={self.name!r}, {counts})"

    def counts(self) -> Dict[str, int]:
        """Number of objects in each collection."""
        return {collection: len(getattr(self, collection)) for collection in COLLECTIONS}

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def all_objects(self) -> List[UmiBase]:
        """Every object reachable from the building templates, each once."""
        seen = set()
        ordered = []
        for building in self.BuildingTemplates:
            for obj in building.all_objects:
                if id(obj) not in seen:
                    seen.add(id(obj))
                    ordered.append(obj)
        return ordered

    def fill(self) -> "UmiTemplate":
        """
        Populate the collections from the building templates' object graphs.

        Objects already held by a collection are not added twice.
        """
        held = {id(obj) for collection in COLLECTIONS for obj in getattr(self, collection)}
        added = 0
        for obj in self.all_objects():
            if id(obj) in held:
                continue
            getattr(self, type(obj).collection()).append(obj)
            held.add(id(obj))
            added += 1
        logger.debug(f"Filled template {self.name} with {added} objects")
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Document dict with the 17 collections in their fixed order.

        Objects get sequential "$id" values in graph-walk order.
        """
        objects = self.all_objects()
        ids = {id(obj): index for index, obj in enumerate(objects, start=1)}
        document = {collection: [] for collection in COLLECTIONS}
        for obj in objects:
            document[type(obj).collection()].append(obj.to_json(ids))
        return document

    def to_json(self, path_or_buf: Optional[PathOrBuffer] = None,
                indent: Optional[int] = None) -> str:
        """
        Write the template document as JSON.

        Args:
            path_or_buf: File path or text buffer. Defaults to
                ``<settings.data_dir>/<name>.json``.
            indent: JSON indentation (default ``settings.json_indent``)

        Returns:
            The JSON text
        """
        indent = settings.json_indent if indent is None else indent
        response = json.dumps(self.to_dict(), indent=indent)

        if path_or_buf is None:
            path_or_buf = Path(settings.data_dir) / f"{self.name}.json"
        if isinstance(path_or_buf, (str, Path)):
            path = Path(path_or_buf)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(response)
            logger.info(f"Template {self.name} written to {path}")
        else:
            path_or_buf.write(response)
        return response

    @classmethod
    def from_dict(cls, document: Dict[str, List[Dict[str, Any]]],
                  name: str = "unnamed") -> "UmiTemplate":
        """
        Build a template from a document dict.

        Collections are built in dependency order; a missing collection is
        read as empty.

        Raises:
            ValidationError: If a "$ref" does not resolve
        """
        refs: Dict[int, UmiBase] = {}
        collections = {}
        for object_type in COLLECTION_TYPES:
            collection = object_type.collection()
            if collection not in document:
                logger.warning(f"Collection {collection} missing from template {name}")
            objects = []
            for record in document.get(collection) or []:
                obj = object_type.from_json(record, refs)
                if "$id" in record:
                    refs[record["$id"]] = obj
                objects.append(obj)
            collections[collection] = objects
        return cls(name, **collections)

    @classmethod
    def from_json(cls, filename: Union[str, Path]) -> "UmiTemplate":
        """
        Read a template document.

        Args:
            filename: JSON file with the 17 collections

        Returns:
            UmiTemplate named after the file
        """
        path = Path(filename)
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
        return cls.from_dict(document, name=path.name)

    # ------------------------------------------------------------------
    # From aggregation
    # ------------------------------------------------------------------

    @classmethod
    def from_aggregates(cls, zone_loads: pd.DataFrame,
                        zone_ventilation: Optional[pd.DataFrame] = None,
                        zone_conditioning: Optional[pd.DataFrame] = None,
                        domestic_hot_water: Optional[pd.DataFrame] = None,
                        schedules: Optional[Iterable[YearSchedule]] = None,
                        constructions: Optional[ZoneConstructionSet] = None,
                        internal_mass: Optional[OpaqueConstruction] = None,
                        structure: Optional[StructureDefinition] = None,
                        windows: Optional[WindowSetting] = None,
                        name: str = "unnamed") -> "UmiTemplate":
        """
        Build one building template per archetype from aggregator tables.

        Every (Archetype, Zone Type) row of ``zone_loads`` becomes a Zone
        holding the loads, ventilation, conditioning and hot water settings
        of the same group. The 'Core' and 'Perimeter' zones become the
        building template's core and perimeter; an archetype with a single
        zone type uses that zone for both.

        Args:
            zone_loads: Output of ``zone_loads``
            zone_ventilation: Output of ``zone_ventilation``
            zone_conditioning: Output of ``zone_conditioning``
            domestic_hot_water: Output of ``zone_domestic_hot_water_settings``
            schedules: Year schedules referenced by name in the tables
            constructions: Construction set shared by every zone
            internal_mass: Internal mass construction shared by every zone
            structure: Structure definition shared by every building
            windows: Window setting shared by every building
            name: Template name

        Returns:
            Filled UmiTemplate
        """
        template = cls(name)
        index = schedule_index(schedules)
        if zone_loads is None or zone_loads.empty:
            logger.warning("No zone loads to build a template from")
            return template

        for archetype in sorted(zone_loads.index.get_level_values(0).unique()):
            zones = {}
            for zone_type in sorted(zone_loads.loc[archetype].index):
                key = (archetype, zone_type)
                zone_name = f"{archetype} {zone_type}"
                zone = Zone(
                    Name=zone_name,
                    Loads=zone_load_from_row(zone_loads.loc[key], zone_name, index),
                    Constructions=constructions,
                    InternalMassConstruction=internal_mass,
                )
                row = group_row(zone_ventilation, key)
                if row is not None:
                    zone.Ventilation = ventilation_from_row(row, zone_name, index)
                row = group_row(zone_conditioning, key)
                if row is not None:
                    zone.Conditioning = conditioning_from_row(row, zone_name)
                row = group_row(domestic_hot_water, key)
                if row is not None:
                    zone.DomesticHotWater = domestic_hot_water_from_row(row, zone_name, index)
                zones[zone_type] = zone

            core = zones.get("Core") or next(iter(zones.values()))
            perimeter = zones.get("Perimeter") or core
            template.BuildingTemplates.append(BuildingTemplate(
                Name=str(archetype),
                Core=core,
                Perimeter=perimeter,
                Structure=structure,
                Windows=windows,
            ))
            logger.info(f"Built template for archetype {archetype} with {len(zones)} zones",
                        extra={"archetype": archetype})

        return template.fill()

"""
TemplateBuilder - From simulation results to a template document.

Runs the whole pipeline: concatenate the archetypes' result tables,
aggregate zones per (Archetype, Zone Type) and assemble the building
templates.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional
import time
import logging

import pandas as pd

from ..aggregation.classification import ZoneClassifier, iscore
from ..aggregation.zones import (
    zone_conditioning,
    zone_domestic_hot_water_settings,
    zone_loads,
    zone_ventilation,
)
from ..reports.report_data import ReportData
from ..reports.tabular import TabularSummary
from ..simulation.results import Results, concat_report_data, concat_tabular_data
from .objects import YearSchedule
from .umi_template import UmiTemplate

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Aggregator tables of one pipeline run."""

    zone_loads: pd.DataFrame
    zone_ventilation: pd.DataFrame
    zone_conditioning: pd.DataFrame
    domestic_hot_water: pd.DataFrame = field(default_factory=pd.DataFrame)

    def tables(self) -> Dict[str, pd.DataFrame]:
        """Non-empty tables by name."""
        tables = {
            "ZoneLoads": self.zone_loads,
            "ZoneVentilation": self.zone_ventilation,
            "ZoneConditioning": self.zone_conditioning,
            "DomesticHotWaterSettings": self.domestic_hot_water,
        }
        return {name: table for name, table in tables.items() if not table.empty}


class TemplateBuilder:
    """
    Build template documents from per-archetype simulation results.

    Usage:
        builder = TemplateBuilder()
        template = builder.build(load_results("./results"), name="Boston")
        template.to_json()
    """

    def __init__(self, classifier: ZoneClassifier = iscore):
        self.classifier = classifier

    def aggregate(self, results: Results, water_use: Optional[pd.DataFrame] = None) -> AggregationResult:
        """
        Run the zone aggregators on a results mapping.

        Args:
            results: Mapping archetype -> {table name -> DataFrame}
            water_use: Optional ``WaterUse:Equipment`` records

        Returns:
            AggregationResult
        """
        start_time = time.time()
        report = ReportData(concat_report_data(results))
        tabular = TabularSummary(concat_tabular_data(results))

        aggregated = AggregationResult(
            zone_loads=zone_loads(tabular, classifier=self.classifier),
            zone_ventilation=zone_ventilation(tabular, classifier=self.classifier),
            zone_conditioning=zone_conditioning(report, tabular, classifier=self.classifier),
        )
        if water_use is not None:
            aggregated.domestic_hot_water = zone_domestic_hot_water_settings(
                tabular, water_use, classifier=self.classifier)

        logger.info(f"Aggregated {len(results)} archetypes in {time.time() - start_time:,.2f} seconds")
        return aggregated

    def build(self, results: Results, water_use: Optional[pd.DataFrame] = None,
              schedules: Optional[Iterable[YearSchedule]] = None,
              name: str = "unnamed", **shared) -> UmiTemplate:
        """
        Aggregate ``results`` and assemble a filled template.

        Args:
            results: Mapping archetype -> {table name -> DataFrame}
            water_use: Optional ``WaterUse:Equipment`` records
            schedules: Year schedules referenced by name in the results
            name: Template name
            **shared: Objects shared by every building, passed on to
                :meth:`UmiTemplate.from_aggregates` (``constructions``,
                ``internal_mass``, ``structure``, ``windows``)

        Returns:
            UmiTemplate
        """
        aggregated = self.aggregate(results, water_use)
        return UmiTemplate.from_aggregates(
            aggregated.zone_loads,
            zone_ventilation=aggregated.zone_ventilation,
            zone_conditioning=aggregated.zone_conditioning,
            domestic_hot_water=aggregated.domestic_hot_water,
            schedules=schedules,
            name=name,
            **shared,
        )

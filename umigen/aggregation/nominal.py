"""
Nominal-value extractors.

Each extractor pivots one table of the engine's tabular output into a wide
frame and reduces it to one row per (Archetype, Zone Name). Zones may hold
several component instances (lights, equipment, people blocks, ventilation
objects); these are reduced with rules that depend on the quantity:

- powers, flows, numbers of people and densities add up -> summed
- fractions (radiant, convected, latent, lost) -> mean weighted by the
  category's own power or count column
- schedules and categories -> ``top`` weighted by that same column
- zone attributes repeated on every instance (floor area, occupant
  count) -> first value
- object names -> joined with ``settings.name_separator``

References:
    * EnergyPlus "Initialization Summary" tables of the SQL output
      (``TabularDataWithStrings``), e.g. Lights Internal Gains Nominal.
"""

from typing import Callable, Dict, Hashable, List, Mapping, Optional
import logging

import numpy as np
import pandas as pd

from ..core.config import settings
from ..reports.report_data import COOLING_METERS, HEATING_METERS, ReportData
from ..reports.tabular import TabularSummary
from ..utils.validation import ValidationError, validate_single_unit
from .weighting import safe_column, top, weighted_mean

logger = logging.getLogger(__name__)


INITIALIZATION_SUMMARY = "Initialization Summary"
HVAC_SIZING_SUMMARY = "HVACSizingSummary"
STANDARD_62_SUMMARY = "Standard62.1Summary"

ZONE_INFORMATION_TABLE = "Zone Information"
LIGHTING_TABLE = "Lights Internal Gains Nominal"
PEOPLE_TABLE = "People Internal Gains Nominal"
EQUIPMENT_TABLE = "ElectricEquipment Internal Gains Nominal"
INFILTRATION_TABLE = "ZoneInfiltration Airflow Stats Nominal"
VENTILATION_TABLE = "ZoneVentilation Airflow Stats Nominal"
ZONE_COOLING_TABLE = "Zone Sensible Cooling"
ZONE_HEATING_TABLE = "Zone Sensible Heating"
ZONE_VENTILATION_PARAMETERS_TABLE = "Zone Ventilation Parameters"

ARCHETYPE = "Archetype"
ZONE_NAME = "Zone Name"
ROW_NAME = "RowName"
ZONE_FLOOR_AREA = "Zone Floor Area {m2}"
ZONE_OCCUPANTS = "# Zone Occupants"
FAN_TYPE = "Fan Type {Exhaust;Intake;Natural}"

ZONE_KEY = [ARCHETYPE, ZONE_NAME]

Reducer = Callable[[pd.DataFrame], Dict[str, object]]


# ----------------------------------------------------------------------
# Reduction helpers
# ----------------------------------------------------------------------

def _numeric(x: pd.DataFrame, column: str) -> pd.Series:
    return pd.to_numeric(safe_column(x, column), errors="coerce")


def _sum(x: pd.DataFrame, column: str) -> float:
    """Sum that stays NaN when every value is missing."""
    return _numeric(x, column).sum(min_count=1)


def _first(x: pd.DataFrame, column: str):
    values = safe_column(x, column).dropna()
    return values.iloc[0] if not values.empty else np.nan


def _join(x: pd.DataFrame, column: str) -> str:
    values = safe_column(x, column).dropna().astype(str)
    return settings.name_separator.join(values)


def _with_zone_name(table: pd.DataFrame) -> pd.DataFrame:
    """Flatten the pivot index and make sure a 'Zone Name' column exists."""
    table = table.reset_index()
    if ZONE_NAME not in table.columns:
        table[ZONE_NAME] = table[ROW_NAME]
    return table


def reduce_by_zone(table: pd.DataFrame, reducer: Reducer,
                   keys: Optional[List[Hashable]] = None) -> pd.DataFrame:
    """
    Reduce every group of rows sharing ``keys`` to one row.

    Groups are visited in sorted key order, so the output does not depend
    on the order in which archetypes were concatenated.

    Args:
        table: Flat table holding the key columns
        reducer: Function from a group to a dict of output columns
        keys: Grouping columns (default: Archetype, Zone Name)

    Returns:
        DataFrame indexed by ``keys``
    """
    keys = keys or ZONE_KEY
    if table.empty:
        return pd.DataFrame()
    rows = {}
    for key, group in table.groupby(keys, sort=True):
        rows[key] = reducer(group.reset_index(drop=True))
    index = pd.MultiIndex.from_tuples(list(rows.keys()), names=keys)
    return pd.DataFrame(list(rows.values()), index=index)


def _nominal(tabular: TabularSummary, table_name: str, reducer: Reducer,
             report_name: str = INITIALIZATION_SUMMARY) -> pd.DataFrame:
    table = tabular.table(report_name, table_name)
    if table.empty:
        return table
    return reduce_by_zone(_with_zone_name(table), reducer)


# ----------------------------------------------------------------------
# Zone information
# ----------------------------------------------------------------------

def zone_information(tabular: TabularSummary) -> pd.DataFrame:
    """
    One row per physical zone counted in the total building area.

    References:
        * Zone Information table of the Initialization Summary (eio
          "Zone Information" section).

    Returns:
        DataFrame indexed by (Archetype, Zone Name), with the original
        RowName kept as a column
    """
    table = tabular.table(INITIALIZATION_SUMMARY, ZONE_INFORMATION_TABLE)
    if table.empty:
        return table
    table = _with_zone_name(table)
    # Ignore zones that are not part of the building area (plenums, attics)
    part_of_area = safe_column(table, "Part of Total Building Area").astype(str).str.strip()
    table = table.loc[part_of_area == "Yes"]
    return table.set_index(ZONE_KEY)


# ----------------------------------------------------------------------
# Internal gains
# ----------------------------------------------------------------------

LIGHTING_LEVEL = "Lighting Level {W}"


def _lighting(x: pd.DataFrame) -> Dict[str, object]:
    return {
        "Name": _join(x, "Name"),
        "Schedule Name": top(safe_column(x, "Schedule Name"), x, LIGHTING_LEVEL),
        ZONE_FLOOR_AREA: _first(x, ZONE_FLOOR_AREA),
        ZONE_OCCUPANTS: _first(x, ZONE_OCCUPANTS),
        LIGHTING_LEVEL: _sum(x, LIGHTING_LEVEL),
        "Lights/Floor Area {W/m2}": _sum(x, "Lights/Floor Area {W/m2}"),
        "Lights per person {W/person}": _sum(x, "Lights per person {W/person}"),
        "Fraction Return Air": weighted_mean(safe_column(x, "Fraction Return Air"), x, LIGHTING_LEVEL),
        "Fraction Radiant": weighted_mean(safe_column(x, "Fraction Radiant"), x, LIGHTING_LEVEL),
        "Fraction Short Wave": weighted_mean(safe_column(x, "Fraction Short Wave"), x, LIGHTING_LEVEL),
        "Fraction Replaceable": weighted_mean(safe_column(x, "Fraction Replaceable"), x, LIGHTING_LEVEL),
        "Fraction Convected": weighted_mean(safe_column(x, "Fraction Convected"), x, LIGHTING_LEVEL),
        "End-Use Category": top(safe_column(x, "End-Use Category"), x, LIGHTING_LEVEL),
        "Nominal Minimum Lighting Level {W}": _sum(x, "Nominal Minimum Lighting Level {W}"),
        "Nominal Maximum Lighting Level {W}": _sum(x, "Nominal Maximum Lighting Level {W}"),
    }


def nominal_lighting(tabular: TabularSummary) -> pd.DataFrame:
    """
    Lighting fixtures reduced to one row per zone.

    References:
        * `NominalLighting Table
          <https://bigladdersoftware.com/epx/docs/8-9/output-details-and-examples/eplusout-sql.html#nominallighting-table>`_
    """
    return _nominal(tabular, LIGHTING_TABLE, _lighting)


NUMBER_OF_PEOPLE = "Number of People {}"


def _people(x: pd.DataFrame) -> Dict[str, object]:
    area = _first(x, ZONE_FLOOR_AREA)
    people = _sum(x, NUMBER_OF_PEOPLE)
    return {
        "Name": _join(x, "Name"),
        "Schedule Name": top(safe_column(x, "Schedule Name"), x, NUMBER_OF_PEOPLE),
        ZONE_FLOOR_AREA: area,
        ZONE_OCCUPANTS: _first(x, ZONE_OCCUPANTS),
        NUMBER_OF_PEOPLE: people,
        "People/Floor Area {person/m2}": _sum(x, "People/Floor Area {person/m2}"),
        "Floor Area per person {m2/person}": area / people if people else np.nan,
        "Fraction Radiant": weighted_mean(safe_column(x, "Fraction Radiant"), x, NUMBER_OF_PEOPLE),
        "Fraction Convected": weighted_mean(safe_column(x, "Fraction Convected"), x, NUMBER_OF_PEOPLE),
        "Activity Schedule Name": top(safe_column(x, "Activity Schedule Name"), x, NUMBER_OF_PEOPLE),
    }


def nominal_people(tabular: TabularSummary) -> pd.DataFrame:
    """
    People blocks reduced to one row per zone.

    References:
        * `NominalPeople Table
          <https://bigladdersoftware.com/epx/docs/8-9/output-details-and-examples/eplusout-sql.html#nominalpeople-table>`_
    """
    return _nominal(tabular, PEOPLE_TABLE, _people)


EQUIPMENT_LEVEL = "Equipment Level {W}"


def _equipment(x: pd.DataFrame) -> Dict[str, object]:
    return {
        "Name": _join(x, "Name"),
        "Schedule Name": top(safe_column(x, "Schedule Name"), x, EQUIPMENT_LEVEL),
        ZONE_FLOOR_AREA: _first(x, ZONE_FLOOR_AREA),
        ZONE_OCCUPANTS: _first(x, ZONE_OCCUPANTS),
        EQUIPMENT_LEVEL: _sum(x, EQUIPMENT_LEVEL),
        "Equipment/Floor Area {W/m2}": _sum(x, "Equipment/Floor Area {W/m2}"),
        "Equipment per person {W/person}": _sum(x, "Equipment per person {W/person}"),
        "Fraction Latent": weighted_mean(safe_column(x, "Fraction Latent"), x, EQUIPMENT_LEVEL),
        "Fraction Radiant": weighted_mean(safe_column(x, "Fraction Radiant"), x, EQUIPMENT_LEVEL),
        "Fraction Lost": weighted_mean(safe_column(x, "Fraction Lost"), x, EQUIPMENT_LEVEL),
        "Fraction Convected": weighted_mean(safe_column(x, "Fraction Convected"), x, EQUIPMENT_LEVEL),
        "End-Use SubCategory": top(safe_column(x, "End-Use SubCategory"), x, EQUIPMENT_LEVEL),
        "Nominal Minimum Equipment Level {W}": _sum(x, "Nominal Minimum Equipment Level {W}"),
        "Nominal Maximum Equipment Level {W}": _sum(x, "Nominal Maximum Equipment Level {W}"),
    }


def nominal_equipment(tabular: TabularSummary) -> pd.DataFrame:
    """
    Electric equipment reduced to one row per zone.

    References:
        * `NominalElectricEquipment Table
          <https://bigladdersoftware.com/epx/docs/8-9/output-details-and-examples/eplusout-sql.html#nominalelectricequipment-table>`_
    """
    return _nominal(tabular, EQUIPMENT_TABLE, _equipment)


# ----------------------------------------------------------------------
# Infiltration and ventilation
# ----------------------------------------------------------------------

DESIGN_FLOW = "Design Volume Flow Rate {m3/s}"
ACH = "ACH - Air Changes per Hour"

EQUATION_COEFFICIENTS = [
    "Equation A - Constant Term Coefficient {}",
    "Equation B - Temperature Term Coefficient {1/C}",
    "Equation C - Velocity Term Coefficient {s/m}",
    "Equation D - Velocity Squared Term Coefficient {s2/m2}",
]


def _infiltration(x: pd.DataFrame) -> Dict[str, object]:
    row = {
        "Name": _join(x, "Name"),
        "Schedule Name": top(safe_column(x, "Schedule Name"), x, DESIGN_FLOW),
        ZONE_FLOOR_AREA: _first(x, ZONE_FLOOR_AREA),
        ZONE_OCCUPANTS: _first(x, ZONE_OCCUPANTS),
        DESIGN_FLOW: _sum(x, DESIGN_FLOW),
        "Volume Flow Rate/Floor Area {m3/s/m2}": _sum(x, "Volume Flow Rate/Floor Area {m3/s/m2}"),
        "Volume Flow Rate/Exterior Surface Area {m3/s/m2}":
            _sum(x, "Volume Flow Rate/Exterior Surface Area {m3/s/m2}"),
        ACH: _sum(x, ACH),
    }
    for coefficient in EQUATION_COEFFICIENTS:
        row[coefficient] = top(safe_column(x, coefficient), x, DESIGN_FLOW)
    return row


def nominal_infiltration(tabular: TabularSummary) -> pd.DataFrame:
    """
    Infiltration objects reduced to one row per zone.

    References:
        * `Nominal Infiltration Table
          <https://bigladdersoftware.com/epx/docs/8-9/output-details-and-examples/eplusout-sql.html#nominalinfiltration-table>`_
    """
    return _nominal(tabular, INFILTRATION_TABLE, _infiltration)


VENTILATION_TEMPERATURES = [
    "Minimum Indoor Temperature{C}/Schedule",
    "Maximum Indoor Temperature{C}/Schedule",
    "Delta Temperature{C}/Schedule",
    "Minimum Outdoor Temperature{C}/Schedule",
    "Maximum Outdoor Temperature{C}/Schedule",
    "Maximum WindSpeed{m/s}",
]


def _ventilation(x: pd.DataFrame) -> Dict[str, object]:
    row = {
        "Name": _join(x, "Name"),
        "Schedule Name": top(safe_column(x, "Schedule Name"), x, DESIGN_FLOW),
        FAN_TYPE: top(safe_column(x, FAN_TYPE), x, DESIGN_FLOW),
        ZONE_FLOOR_AREA: _first(x, ZONE_FLOOR_AREA),
        ZONE_OCCUPANTS: _first(x, ZONE_OCCUPANTS),
        DESIGN_FLOW: _sum(x, DESIGN_FLOW),
        "Volume Flow Rate/Floor Area {m3/s/m2}": _sum(x, "Volume Flow Rate/Floor Area {m3/s/m2}"),
        "Volume Flow Rate/person Area {m3/s/person}":
            _sum(x, "Volume Flow Rate/person Area {m3/s/person}"),
        ACH: _sum(x, ACH),
        "Fan Pressure Rise {Pa}": weighted_mean(safe_column(x, "Fan Pressure Rise {Pa}"), x, DESIGN_FLOW),
        "Fan Efficiency {}": weighted_mean(safe_column(x, "Fan Efficiency {}"), x, DESIGN_FLOW),
    }
    for column in EQUATION_COEFFICIENTS + VENTILATION_TEMPERATURES:
        row[column] = top(safe_column(x, column), x, DESIGN_FLOW)
    return row


def _ventilation_objects(tabular: TabularSummary) -> pd.DataFrame:
    table = tabular.table(INITIALIZATION_SUMMARY, VENTILATION_TABLE)
    if table.empty:
        return table
    table = _with_zone_name(table)
    if FAN_TYPE not in table.columns:
        table[FAN_TYPE] = np.nan
    return table


def is_natural(fan_type: pd.Series) -> pd.Series:
    """True where the fan type denotes natural ventilation."""
    return fan_type.astype("string").str.contains("Natural", regex=False).fillna(False).astype(bool)


def nominal_ventilation(tabular: TabularSummary) -> pd.DataFrame:
    """
    Ventilation objects reduced to one row per (zone, fan type).

    References:
        * `Nominal Ventilation Table
          <https://bigladdersoftware.com/epx/docs/8-9/output-details-and-examples/eplusout-sql.html#nominalventilation-table>`_
    """
    table = _ventilation_objects(tabular)
    if table.empty:
        return table
    table[FAN_TYPE] = table[FAN_TYPE].fillna("")
    return reduce_by_zone(table, _ventilation, keys=ZONE_KEY + [FAN_TYPE])


def split_ventilation(tabular: TabularSummary) -> Dict[str, pd.DataFrame]:
    """
    Separate mechanical (scheduled) from natural ventilation.

    The two follow different airflow equations, so each is reduced to one
    row per zone on its own.

    Returns:
        {"NominalScheduledVentilation": ..., "NominalNaturalVentilation": ...},
        each indexed by (Archetype, Zone Name), possibly empty
    """
    table = _ventilation_objects(tabular)
    if table.empty:
        return {"NominalScheduledVentilation": pd.DataFrame(),
                "NominalNaturalVentilation": pd.DataFrame()}
    natural = is_natural(table[FAN_TYPE])
    return {
        "NominalScheduledVentilation": reduce_by_zone(table.loc[~natural], _ventilation),
        "NominalNaturalVentilation": reduce_by_zone(table.loc[natural], _ventilation),
    }


# ----------------------------------------------------------------------
# Domestic hot water
# ----------------------------------------------------------------------

PEAK_FLOW_RATE = "Peak_Flow_Rate"
WATER_ZONE_NAME = "Zone_Name"


def _domestic_hot_water(x: pd.DataFrame) -> Dict[str, object]:
    return {
        "Name": _join(x, "Name"),
        PEAK_FLOW_RATE: _sum(x, PEAK_FLOW_RATE),
        "Flow_Rate_Fraction_Schedule_Name":
            top(safe_column(x, "Flow_Rate_Fraction_Schedule_Name"), x, PEAK_FLOW_RATE),
        "Target_Temperature_Schedule_Name":
            top(safe_column(x, "Target_Temperature_Schedule_Name"), x, PEAK_FLOW_RATE),
        "Hot_Water_Supply_Temperature_Schedule_Name":
            top(safe_column(x, "Hot_Water_Supply_Temperature_Schedule_Name"), x, PEAK_FLOW_RATE),
    }


def nominal_domestic_hot_water(water_use: pd.DataFrame) -> pd.DataFrame:
    """
    Water-use equipment reduced to one row per zone.

    ``water_use`` holds ``WaterUse:Equipment`` records parsed from the model
    files (one row per object, an ``Archetype`` column and the object's
    fields, e.g. ``Zone_Name``, ``Peak_Flow_Rate``). Peak flows of a zone
    are summed and its schedules are the ones of the largest flow.

    Raises:
        ValidationError: If a record has no zone name
    """
    if water_use is None or water_use.empty:
        logger.warning("No WaterUse:Equipment records. Returning an empty DataFrame")
        return pd.DataFrame()

    zone_names = safe_column(water_use, WATER_ZONE_NAME)
    missing = zone_names.isna() | (zone_names.astype(str).str.strip() == "")
    if missing.any():
        archetypes = sorted(set(safe_column(water_use, ARCHETYPE).loc[missing].astype(str)))
        raise ValidationError(
            f"WaterUse:Equipment Zone Name must not be empty (archetypes: {', '.join(archetypes)})",
            field=WATER_ZONE_NAME,
            suggestions=["Provide a Zone Name for every WaterUse:Equipment object"],
        )

    table = water_use.copy()
    table[ZONE_NAME] = table[WATER_ZONE_NAME].astype(str).str.strip().str.upper()
    return reduce_by_zone(table, _domestic_hot_water)


# ----------------------------------------------------------------------
# Conditioning
# ----------------------------------------------------------------------

def zone_setpoint(tabular: TabularSummary) -> pd.DataFrame:
    """
    Zone sizing results for cooling and heating.

    Setpoint schedules cannot be carried over as such, so the design-day
    'Thermostat Setpoint Temperature at Peak Load' is what downstream
    aggregation uses.

    Returns:
        DataFrame indexed by (Archetype, Zone Name) with two column blocks,
        'cooling' and 'heating'
    """
    blocks = {
        "cooling": tabular.table(HVAC_SIZING_SUMMARY, ZONE_COOLING_TABLE),
        "heating": tabular.table(HVAC_SIZING_SUMMARY, ZONE_HEATING_TABLE),
    }
    blocks = {key: block for key, block in blocks.items() if not block.empty}
    if not blocks:
        return pd.DataFrame()
    setpoints = pd.concat(blocks, axis=1)
    setpoints.index.names = ZONE_KEY
    return setpoints


def _archetype_totals(rows: pd.DataFrame) -> pd.Series:
    values = pd.to_numeric(rows[ReportData.VALUE], errors="coerce")
    return values.groupby(rows[ReportData.ARCHETYPE]).sum()


def zone_cop(report: ReportData, tabular: TabularSummary) -> pd.DataFrame:
    """
    Heating and cooling COP of each zone.

    For every archetype the COP is the energy delivered by the air systems
    ('Air System Total Heating/Cooling Energy') divided by the energy
    metered for heating/cooling. Zones get the COP of their archetype
    through the Standard 62.1 zone-to-air-loop table; zones without an air
    loop are left out.

    Notes:
        Requires annual report data for the air-system variables and the
        Heating:* / Cooling:* meters, all in the same units.

    Returns:
        DataFrame indexed by (Archetype, Zone Name) with 'System Name',
        'COP Heating' and 'COP Cooling'
    """
    cops = {}
    for label, delivered_name, meters in [
        ("COP Heating", "Air System Total Heating Energy", HEATING_METERS),
        ("COP Cooling", "Air System Total Cooling Energy", COOLING_METERS),
    ]:
        delivered = report.filter_report_data(name=delivered_name).data
        metered = report.filter_report_data(name=meters).data
        validate_single_unit(pd.concat([delivered[ReportData.UNITS], metered[ReportData.UNITS]]))
        cop = _archetype_totals(delivered) / _archetype_totals(metered)
        cops[label] = cop.replace([np.inf, -np.inf], np.nan)

    data = tabular.data
    systems = data.loc[
        (data[TabularSummary.REPORTNAME] == STANDARD_62_SUMMARY)
        & (data[TabularSummary.TABLENAME] == ZONE_VENTILATION_PARAMETERS_TABLE)
        & (data[TabularSummary.COLUMNNAME] == "AirLoop Name"),
        [TabularSummary.ARCHETYPE, TabularSummary.ROWNAME, TabularSummary.VALUE],
    ].rename(columns={TabularSummary.ROWNAME: ZONE_NAME, TabularSummary.VALUE: "System Name"})
    if systems.empty:
        logger.warning("No zone to air loop correspondence found. Returning an empty DataFrame")
        return pd.DataFrame()

    for label, cop in cops.items():
        systems[label] = systems[ARCHETYPE].map(cop)

    return systems.groupby(ZONE_KEY, sort=True).agg(
        {"System Name": lambda names: settings.name_separator.join(names),
         "COP Heating": "mean",
         "COP Cooling": "mean"}
    )


NOMINAL_EXTRACTORS: Mapping[str, Callable[[TabularSummary], pd.DataFrame]] = {
    "NominalLighting": nominal_lighting,
    "NominalPeople": nominal_people,
    "NominalEquipment": nominal_equipment,
    "NominalInfiltration": nominal_infiltration,
}

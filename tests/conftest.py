"""
Pytest configuration and fixtures for umigen tests.

Provides reusable test fixtures for:
- Tabular summaries (zone information, nominal tables, sizing)
- Report data (heating/cooling meters, air-system energies)
- Per-archetype result mappings and their CSV exports
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import pandas as pd

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from umigen.reports.report_data import ReportData
from umigen.reports.tabular import TabularSummary


# =============================================================================
# BUILDERS
# =============================================================================

def tabular_rows(report_name, table_name, rows):
    """
    TabularDataWithStrings rows for one table.

    ``rows`` maps RowName -> {ColumnName: value}. Values are written as
    strings, the way the engine stores them.
    """
    records = []
    for row_name, columns in rows.items():
        for column_name, value in columns.items():
            records.append({
                "ReportName": report_name,
                "TableName": table_name,
                "RowName": row_name,
                "ColumnName": column_name,
                "Value": str(value),
            })
    return records


def building_tabular_rows():
    """Tabular rows of one small building: a core zone, two perimeter zones and a plenum."""
    init = "Initialization Summary"
    records = []
    records += tabular_rows(init, "Zone Information", {
        "CORE_ZN": {"Floor Area {m2}": 100, "Zone Multiplier": 1,
                    "Exterior Gross Wall Area {m2}": 0, "Part of Total Building Area": "Yes"},
        "PERIMETER_ZN_1": {"Floor Area {m2}": 10, "Zone Multiplier": 1,
                           "Exterior Gross Wall Area {m2}": 50, "Part of Total Building Area": "Yes"},
        "PERIMETER_ZN_2": {"Floor Area {m2}": 30, "Zone Multiplier": 1,
                           "Exterior Gross Wall Area {m2}": 40, "Part of Total Building Area": "Yes"},
        "PLENUM": {"Floor Area {m2}": 140, "Zone Multiplier": 1,
                   "Exterior Gross Wall Area {m2}": 10, "Part of Total Building Area": "No"},
    })
    records += tabular_rows(init, "Lights Internal Gains Nominal", {
        "1": {"Name": "LIGHTS_A", "Schedule Name": "LIGHTS_SCH_A", "Zone Name": "CORE_ZN",
              "Zone Floor Area {m2}": 100, "Lighting Level {W}": 400,
              "Lights/Floor Area {W/m2}": 4, "Fraction Radiant": 0.2},
        "2": {"Name": "LIGHTS_B", "Schedule Name": "LIGHTS_SCH_B", "Zone Name": "CORE_ZN",
              "Zone Floor Area {m2}": 100, "Lighting Level {W}": 600,
              "Lights/Floor Area {W/m2}": 6, "Fraction Radiant": 0.7},
        "3": {"Name": "LIGHTS_P1", "Schedule Name": "LIGHTS_SCH_A", "Zone Name": "PERIMETER_ZN_1",
              "Zone Floor Area {m2}": 10, "Lighting Level {W}": 50,
              "Lights/Floor Area {W/m2}": 5, "Fraction Radiant": 0.2},
        "4": {"Name": "LIGHTS_P2", "Schedule Name": "LIGHTS_SCH_A", "Zone Name": "PERIMETER_ZN_2",
              "Zone Floor Area {m2}": 30, "Lighting Level {W}": 450,
              "Lights/Floor Area {W/m2}": 15, "Fraction Radiant": 0.2},
    })
    records += tabular_rows(init, "People Internal Gains Nominal", {
        "1": {"Name": "PEOPLE_CORE", "Schedule Name": "OCC_SCH", "Zone Name": "CORE_ZN",
              "Zone Floor Area {m2}": 100, "# Zone Occupants": 10, "Number of People {}": 10,
              "People/Floor Area {person/m2}": 0.1},
        "2": {"Name": "PEOPLE_P1", "Schedule Name": "OCC_SCH", "Zone Name": "PERIMETER_ZN_1",
              "Zone Floor Area {m2}": 10, "# Zone Occupants": 1, "Number of People {}": 1,
              "People/Floor Area {person/m2}": 0.1},
        "3": {"Name": "PEOPLE_P2", "Schedule Name": "OCC_SCH", "Zone Name": "PERIMETER_ZN_2",
              "Zone Floor Area {m2}": 30, "# Zone Occupants": 3, "Number of People {}": 3,
              "People/Floor Area {person/m2}": 0.1},
    })
    records += tabular_rows(init, "ElectricEquipment Internal Gains Nominal", {
        "1": {"Name": "EQUIP_CORE", "Schedule Name": "EQUIP_SCH", "Zone Name": "CORE_ZN",
              "Zone Floor Area {m2}": 100, "Equipment Level {W}": 500,
              "Equipment/Floor Area {W/m2}": 5},
        "2": {"Name": "EQUIP_P2", "Schedule Name": "EQUIP_SCH", "Zone Name": "PERIMETER_ZN_2",
              "Zone Floor Area {m2}": 30, "Equipment Level {W}": 60,
              "Equipment/Floor Area {W/m2}": 2},
    })
    records += tabular_rows(init, "ZoneInfiltration Airflow Stats Nominal", {
        "1": {"Name": "INF_CORE", "Schedule Name": "INF_SCH", "Zone Name": "CORE_ZN",
              "Design Volume Flow Rate {m3/s}": 0.01, "ACH - Air Changes per Hour": 0.5},
        "2": {"Name": "INF_P1", "Schedule Name": "INF_SCH", "Zone Name": "PERIMETER_ZN_1",
              "Design Volume Flow Rate {m3/s}": 0.02, "ACH - Air Changes per Hour": 1.0},
        "3": {"Name": "INF_P2", "Schedule Name": "INF_SCH", "Zone Name": "PERIMETER_ZN_2",
              "Design Volume Flow Rate {m3/s}": 0.03, "ACH - Air Changes per Hour": 2.0},
    })
    records += tabular_rows(init, "ZoneVentilation Airflow Stats Nominal", {
        "1": {"Name": "VENT_CORE", "Schedule Name": "VENT_SCH", "Zone Name": "CORE_ZN",
              "Fan Type {Exhaust;Intake;Natural}": "Intake",
              "Design Volume Flow Rate {m3/s}": 0.05, "ACH - Air Changes per Hour": 1.0,
              "Minimum Indoor Temperature{C}/Schedule": 18},
        "2": {"Name": "NATVENT_P2", "Schedule Name": "NATVENT_SCH", "Zone Name": "PERIMETER_ZN_2",
              "Fan Type {Exhaust;Intake;Natural}": "Natural",
              "Design Volume Flow Rate {m3/s}": 0.1, "ACH - Air Changes per Hour": 3.0,
              "Minimum Indoor Temperature{C}/Schedule": 22,
              "Maximum Outdoor Temperature{C}/Schedule": 28,
              "Minimum Outdoor Temperature{C}/Schedule": 12},
    })
    records += tabular_rows("HVACSizingSummary", "Zone Sensible Cooling", {
        "CORE_ZN": {"Thermostat Setpoint Temperature at Peak Load": 24, "Minimum Outdoor Air Flow Rate": 0.1},
        "PERIMETER_ZN_1": {"Thermostat Setpoint Temperature at Peak Load": 24, "Minimum Outdoor Air Flow Rate": 0.01},
        "PERIMETER_ZN_2": {"Thermostat Setpoint Temperature at Peak Load": 26, "Minimum Outdoor Air Flow Rate": 0.06},
    })
    records += tabular_rows("HVACSizingSummary", "Zone Sensible Heating", {
        "CORE_ZN": {"Thermostat Setpoint Temperature at Peak Load": 21, "Minimum Outdoor Air Flow Rate": 0.2},
        "PERIMETER_ZN_1": {"Thermostat Setpoint Temperature at Peak Load": 20, "Minimum Outdoor Air Flow Rate": 0.02},
        "PERIMETER_ZN_2": {"Thermostat Setpoint Temperature at Peak Load": 20, "Minimum Outdoor Air Flow Rate": 0.03},
    })
    records += tabular_rows("Standard62.1Summary", "Zone Ventilation Parameters", {
        "CORE_ZN": {"AirLoop Name": "AIRLOOP 1"},
        "PERIMETER_ZN_1": {"AirLoop Name": "AIRLOOP 1"},
        "PERIMETER_ZN_2": {"AirLoop Name": "AIRLOOP 1"},
    })
    return pd.DataFrame(records)


def report_tables(variables):
    """
    ReportData and ReportDataDictionary tables for one archetype.

    ``variables`` maps (Name, Units) -> list of values, one per time step.
    """
    dictionary, data = [], []
    for dictionary_index, ((name, units), values) in enumerate(variables.items(), start=1):
        dictionary.append({
            "ReportDataDictionaryIndex": dictionary_index,
            "IsMeter": 1 if ":" in name else 0,
            "Type": "Sum",
            "IndexGroup": "Facility:Electricity",
            "TimestepType": "Zone",
            "KeyValue": "" if ":" in name else "AIRLOOP 1",
            "Name": name,
            "ReportingFrequency": "Hourly",
            "ScheduleName": "",
            "Units": units,
        })
        for time_index, value in enumerate(values, start=1):
            data.append({
                "ReportDataIndex": len(data) + 1,
                "TimeIndex": time_index,
                "ReportDataDictionaryIndex": dictionary_index,
                "Value": value,
            })
    return pd.DataFrame(data), pd.DataFrame(dictionary)


BUILDING_VARIABLES = {
    ("Heating:Electricity", "J"): [100.0, 100.0],
    ("Heating:Gas", "J"): [50.0, 150.0],
    ("Air System Total Heating Energy", "J"): [450.0, 300.0],
    ("Cooling:Electricity", "J"): [80.0, 20.0],
    ("Air System Total Cooling Energy", "J"): [300.0, 100.0],
}


def building_results():
    """Result tables of one archetype, as returned by the results loader."""
    report_data, dictionary = report_tables(BUILDING_VARIABLES)
    return {
        "ReportData": report_data,
        "ReportDataDictionary": dictionary,
        "TabularDataWithStrings": building_tabular_rows(),
    }


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs, cleaned up after test."""
    tmp = tempfile.mkdtemp(prefix="umigen_test_")
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


# =============================================================================
# TABULAR FIXTURES
# =============================================================================

@pytest.fixture
def building_tabular() -> TabularSummary:
    """Tabular summary of a single archetype 'A1'."""
    rows = building_tabular_rows()
    rows.insert(0, "Archetype", "A1")
    return TabularSummary(rows)


@pytest.fixture
def empty_tabular() -> TabularSummary:
    """Tabular summary without any rows."""
    return TabularSummary()


@pytest.fixture
def make_tabular():
    """Factory for a tabular summary of archetype 'A1' from {(report, table): rows}."""
    def _make(tables) -> TabularSummary:
        records = []
        for (report_name, table_name), rows in tables.items():
            records += tabular_rows(report_name, table_name, rows)
        frame = pd.DataFrame(records)
        frame.insert(0, "Archetype", "A1")
        return TabularSummary(frame)
    return _make


# =============================================================================
# REPORT DATA FIXTURES
# =============================================================================

@pytest.fixture
def heating_meter_rows() -> pd.DataFrame:
    """Heating meters of archetype 'A1' over two hourly time steps."""
    return pd.DataFrame({
        "Archetype": ["A1"] * 4,
        "ReportDataIndex": [1, 2, 3, 4],
        "TimeIndex": [1, 2, 1, 2],
        "Name": ["Heating:Electricity", "Heating:Electricity", "Heating:Gas", "Heating:Gas"],
        "KeyValue": [""] * 4,
        "Units": ["J"] * 4,
        "ReportingFrequency": ["Hourly"] * 4,
        "Value": [100.0, 200.0, 50.0, 0.0],
    })


@pytest.fixture
def heating_report(heating_meter_rows) -> ReportData:
    return ReportData(heating_meter_rows)


# =============================================================================
# RESULTS FIXTURES
# =============================================================================

@pytest.fixture
def single_results() -> dict:
    """Results of archetype 'A1' only."""
    return {"A1": building_results()}


@pytest.fixture
def sample_results() -> dict:
    """Results of two identical archetypes 'A1' and 'A2'."""
    return {"A1": building_results(), "A2": building_results()}


@pytest.fixture
def results_dir(temp_dir, sample_results) -> Path:
    """CSV export of ``sample_results`` in the loader's directory layout."""
    root = temp_dir / "results"
    for archetype, tables in sample_results.items():
        archetype_dir = root / archetype
        archetype_dir.mkdir(parents=True)
        for table, frame in tables.items():
            frame.to_csv(archetype_dir / f"{table}.csv", index=False)
    return root


@pytest.fixture
def water_use() -> pd.DataFrame:
    """WaterUse:Equipment records of archetype 'A1'."""
    return pd.DataFrame({
        "Archetype": ["A1", "A1", "A1"],
        "Name": ["DHW_CORE", "DHW_P1", "DHW_P2"],
        "Zone_Name": ["core_zn", "PERIMETER_ZN_1", "PERIMETER_ZN_2"],
        "Peak_Flow_Rate": [1e-4, 2e-5, 6e-5],
        "Flow_Rate_Fraction_Schedule_Name": ["DHW_SCH", "DHW_SCH_P1", "DHW_SCH_P2"],
    })

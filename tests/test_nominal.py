"""
Tests for the nominal-value extractors.

Tests:
- Zone information filtering
- Intra-zone reduction of lighting, people, equipment, infiltration
- Ventilation split by fan type
- Setpoints, COP and domestic hot water
"""

import numpy as np
import pandas as pd
import pytest

from umigen.aggregation import (
    nominal_domestic_hot_water,
    nominal_equipment,
    nominal_infiltration,
    nominal_lighting,
    nominal_people,
    nominal_ventilation,
    split_ventilation,
    zone_cop,
    zone_information,
    zone_setpoint,
)
from umigen.reports import ReportData, TabularSummary
from umigen.simulation.results import concat_report_data, concat_tabular_data
from umigen.utils.validation import ValidationError

CORE = ("A1", "CORE_ZN")
P1 = ("A1", "PERIMETER_ZN_1")
P2 = ("A1", "PERIMETER_ZN_2")


class TestZoneInformation:
    """Tests for zone_information."""

    def test_only_zones_part_of_building_area(self, building_tabular):
        """Test zones outside the building area (plenums) are dropped."""
        zones = zone_information(building_tabular)
        assert list(zones.index) == [CORE, P1, P2]

    def test_index_names(self, building_tabular):
        """Test zones are keyed by (Archetype, Zone Name)."""
        zones = zone_information(building_tabular)
        assert zones.index.names == ["Archetype", "Zone Name"]
        assert zones.loc[P2, "Floor Area {m2}"] == 30

    def test_empty_tabular(self, empty_tabular):
        """Test an absent table gives an empty frame."""
        assert zone_information(empty_tabular).empty


class TestInternalGains:
    """Tests for lighting, people and equipment reduction."""

    def test_lighting_power_is_summed(self, building_tabular):
        """Test two fixtures of one zone add up."""
        lighting = nominal_lighting(building_tabular)
        assert lighting.loc[CORE, "Lights/Floor Area {W/m2}"] == pytest.approx(10.0)
        assert lighting.loc[CORE, "Lighting Level {W}"] == pytest.approx(1000.0)

    def test_lighting_fractions_are_power_weighted(self, building_tabular):
        """Test fractions are weighted by the fixtures' power."""
        lighting = nominal_lighting(building_tabular)
        assert lighting.loc[CORE, "Fraction Radiant"] == pytest.approx((0.2 * 400 + 0.7 * 600) / 1000)

    def test_lighting_schedule_of_largest_fixture(self, building_tabular):
        """Test the schedule of the most powerful fixture is kept."""
        lighting = nominal_lighting(building_tabular)
        assert lighting.loc[CORE, "Schedule Name"] == "LIGHTS_SCH_B"

    def test_lighting_names_are_joined(self, building_tabular):
        """Test fixture names are joined with the separator."""
        lighting = nominal_lighting(building_tabular)
        assert lighting.loc[CORE, "Name"] == "LIGHTS_A+LIGHTS_B"

    def test_zone_area_is_not_summed(self, building_tabular):
        """Test the zone floor area repeated on each fixture stays the zone's."""
        lighting = nominal_lighting(building_tabular)
        assert lighting.loc[CORE, "Zone Floor Area {m2}"] == 100

    def test_one_row_per_zone(self, building_tabular):
        """Test the output is keyed by zone."""
        assert list(nominal_lighting(building_tabular).index) == [CORE, P1, P2]

    def test_people(self, building_tabular):
        """Test occupants and floor area per person."""
        people = nominal_people(building_tabular)
        assert people.loc[CORE, "# Zone Occupants"] == 10
        assert people.loc[CORE, "Floor Area per person {m2/person}"] == pytest.approx(10.0)
        assert people.loc[P2, "Schedule Name"] == "OCC_SCH"

    def test_zone_occupants_not_multiplied_by_people_blocks(self, make_tabular):
        """Test the zone's occupant count, repeated on each People row, is taken once."""
        tabular = make_tabular({("Initialization Summary", "People Internal Gains Nominal"): {
            "1": {"Name": "STAFF", "Schedule Name": "OCC_SCH", "Zone Name": "Z",
                  "Zone Floor Area {m2}": 40, "# Zone Occupants": 10, "Number of People {}": 6},
            "2": {"Name": "VISITORS", "Schedule Name": "VISIT_SCH", "Zone Name": "Z",
                  "Zone Floor Area {m2}": 40, "# Zone Occupants": 10, "Number of People {}": 4},
        }})
        people = nominal_people(tabular)

        assert people.loc[("A1", "Z"), "# Zone Occupants"] == 10
        assert people.loc[("A1", "Z"), "Number of People {}"] == 10
        assert people.loc[("A1", "Z"), "Floor Area per person {m2/person}"] == pytest.approx(4.0)
        assert people.loc[("A1", "Z"), "Schedule Name"] == "OCC_SCH"

    def test_equipment_only_where_present(self, building_tabular):
        """Test zones without equipment are absent from the table."""
        equipment = nominal_equipment(building_tabular)
        assert list(equipment.index) == [CORE, P2]
        assert equipment.loc[P2, "Equipment/Floor Area {W/m2}"] == pytest.approx(2.0)

    def test_missing_column_is_nan(self, building_tabular):
        """Test a column absent from the report gives NaN, not an error."""
        equipment = nominal_equipment(building_tabular)
        assert np.isnan(equipment.loc[CORE, "Fraction Latent"])

    def test_empty_tabular(self, empty_tabular):
        """Test absent tables give empty frames."""
        assert nominal_lighting(empty_tabular).empty
        assert nominal_people(empty_tabular).empty


class TestVentilation:
    """Tests for infiltration and ventilation."""

    def test_infiltration(self, building_tabular):
        """Test infiltration is reduced per zone."""
        infiltration = nominal_infiltration(building_tabular)
        assert infiltration.loc[P2, "ACH - Air Changes per Hour"] == pytest.approx(2.0)
        assert infiltration.loc[P2, "Schedule Name"] == "INF_SCH"

    def test_ventilation_by_fan_type(self, building_tabular):
        """Test ventilation keeps the fan type in its key."""
        ventilation = nominal_ventilation(building_tabular)
        assert list(ventilation.index) == [
            ("A1", "CORE_ZN", "Intake"),
            ("A1", "PERIMETER_ZN_2", "Natural"),
        ]

    def test_split_is_exclusive(self, building_tabular):
        """Test natural ventilation is told apart from fan-driven ventilation."""
        split = split_ventilation(building_tabular)
        scheduled = split["NominalScheduledVentilation"]
        natural = split["NominalNaturalVentilation"]

        assert list(scheduled.index) == [CORE]
        assert list(natural.index) == [P2]
        assert scheduled.loc[CORE, "Schedule Name"] == "VENT_SCH"
        assert natural.loc[P2, "ACH - Air Changes per Hour"] == pytest.approx(3.0)

    def test_split_without_table(self, empty_tabular):
        """Test both parts are empty without a ventilation table."""
        split = split_ventilation(empty_tabular)
        assert split["NominalScheduledVentilation"].empty
        assert split["NominalNaturalVentilation"].empty


class TestConditioning:
    """Tests for setpoints and COP."""

    def test_setpoint_blocks(self, building_tabular):
        """Test cooling and heating sizing results side by side."""
        setpoints = zone_setpoint(building_tabular)
        assert setpoints.index.names == ["Archetype", "Zone Name"]
        assert setpoints.loc[CORE, ("cooling", "Thermostat Setpoint Temperature at Peak Load")] == 24
        assert setpoints.loc[CORE, ("heating", "Thermostat Setpoint Temperature at Peak Load")] == 21

    def test_zone_cop(self, single_results):
        """Test COP is delivered energy over metered energy, per archetype."""
        report = ReportData(concat_report_data(single_results))
        tabular = TabularSummary(concat_tabular_data(single_results))

        cop = zone_cop(report, tabular)

        assert list(cop.index) == [CORE, P1, P2]
        assert cop.loc[CORE, "System Name"] == "AIRLOOP 1"
        assert cop.loc[P1, "COP Heating"] == pytest.approx(750.0 / 400.0)
        assert cop.loc[P1, "COP Cooling"] == pytest.approx(400.0 / 100.0)

    def test_zone_cop_without_air_loops(self, empty_tabular, heating_report):
        """Test an empty frame when no zone belongs to an air loop."""
        assert zone_cop(heating_report, empty_tabular).empty


class TestDomesticHotWater:
    """Tests for nominal_domestic_hot_water."""

    def test_zone_names_upper_cased(self, water_use):
        """Test zone names match the engine's upper-case zone names."""
        dhw = nominal_domestic_hot_water(water_use)
        assert list(dhw.index) == [CORE, P1, P2]

    def test_peak_flows_are_summed(self, water_use):
        """Test flows of one zone add up and the largest flow's schedule wins."""
        extra = pd.DataFrame({
            "Archetype": ["A1"],
            "Name": ["DHW_CORE_2"],
            "Zone_Name": ["CORE_ZN"],
            "Peak_Flow_Rate": [3e-4],
            "Flow_Rate_Fraction_Schedule_Name": ["DHW_SCH_2"],
        })
        dhw = nominal_domestic_hot_water(pd.concat([water_use, extra], ignore_index=True))
        assert dhw.loc[CORE, "Peak_Flow_Rate"] == pytest.approx(4e-4)
        assert dhw.loc[CORE, "Flow_Rate_Fraction_Schedule_Name"] == "DHW_SCH_2"

    def test_empty_zone_name_raises(self, water_use):
        """Test records without a zone are rejected."""
        water_use.loc[1, "Zone_Name"] = ""
        with pytest.raises(ValidationError) as exc_info:
            nominal_domestic_hot_water(water_use)
        assert exc_info.value.field == "Zone_Name"

    def test_no_records(self):
        """Test no records give an empty frame."""
        assert nominal_domestic_hot_water(pd.DataFrame()).empty

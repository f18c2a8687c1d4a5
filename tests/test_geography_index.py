import pytest

from src.zone_matrix.errors import UnknownZoneError
from src.zone_matrix.models.domain import code_to_region, parse_city_key, sort_zone_codes
from src.zone_matrix.services.geography.index import GeographyIndex, normalize_record


def test_index_discards_placeholder_and_bad_pincode_rows(index: GeographyIndex) -> None:
    assert index.record_count == 17
    assert index.discarded_count == 3
    assert index.by_pincode("999999") is None
    assert index.by_pincode("560001").city == "Bengaluru"


def test_cities_are_grouped_by_region_and_state(index: GeographyIndex) -> None:
    assert index.cities_of("North", "Delhi") == frozenset({"New Delhi||Delhi", "Dwarka||Delhi"})
    assert index.cities_of("North", "Kerala") == frozenset()
    assert index.states_of("North") == ("Chandigarh", "Delhi", "Haryana", "Punjab")
    assert index.total_cities("North") == 6


def test_same_city_name_in_two_states_is_two_cities(index: GeographyIndex) -> None:
    assert index.region_of_city("Aurangabad||Maharashtra") == "West"
    assert index.region_of_city("Aurangabad||Bihar") == "East"


def test_blank_zone_tag_falls_back_to_north(index: GeographyIndex) -> None:
    assert index.region_of_city("Chandigarh||Chandigarh") == "North"


def test_state_names_are_scoped_by_region(index: GeographyIndex) -> None:
    assert index.cities_of("North", "Haryana") == frozenset({"Gurgaon||Haryana"})
    assert index.cities_of("Central", "Haryana") == frozenset({"Karnal||Haryana"})


def test_unknown_region_is_rejected(index: GeographyIndex) -> None:
    with pytest.raises(UnknownZoneError):
        index.states_of("Atlantis")


def test_normalize_record_reads_columns_case_insensitively() -> None:
    record = normalize_record({"Pincode": 110001.0, "STATE": " Delhi ", "City": "New Delhi", "Zone": "ne2"})

    assert record is not None
    assert record.pincode == "110001"
    assert record.state == "Delhi"
    assert record.region_code == "Northeast"
    assert record.city_key == "New Delhi||Delhi"


@pytest.mark.parametrize("state", ["", "NAN", "nan", "None", "null"])
def test_normalize_record_rejects_placeholder_states(state: str) -> None:
    assert normalize_record({"pincode": "110001", "state": state, "city": "X", "zone": "N1"}) is None


def test_summary_reports_counts(index: GeographyIndex) -> None:
    summary = index.summary()

    assert summary["records"] == 17
    assert summary["discarded"] == 3
    assert summary["regions"]["South"] == {"states": 2, "cities": 3}


def test_city_key_splits_on_last_separator() -> None:
    assert parse_city_key("Odd||Name||State") == ("Odd||Name", "State")
    with pytest.raises(ValueError):
        parse_city_key("no separator")


def test_zone_code_helpers() -> None:
    assert code_to_region("NE3") == "Northeast"
    assert code_to_region("N3") == "North"
    assert code_to_region("C1") == "Central"
    assert code_to_region("?") == "North"
    assert sort_zone_codes(["NE1", "S1", "C1", "W2", "N2", "E1"]) == ["N2", "W2", "C1", "S1", "E1", "NE1"]

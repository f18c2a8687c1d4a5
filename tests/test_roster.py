import pytest

from src.zone_matrix.errors import UnknownZoneError, ZoneOrderingError
from src.zone_matrix.models.domain import REGIONS
from src.zone_matrix.services.zones.roster import UnorderedSelection, ZoneRoster


def test_zones_must_be_selected_in_catalogue_order() -> None:
    roster = ZoneRoster()

    with pytest.raises(ZoneOrderingError, match="Please select N1 first before selecting N3."):
        roster.select("N3")

    roster = roster.select("N1").select("N2").select("N3")
    assert roster.in_region("North") == ("N1", "N2", "N3")


def test_only_the_last_zone_of_a_region_can_be_removed() -> None:
    roster = ZoneRoster().select("N1").select("N2")

    with pytest.raises(ZoneOrderingError, match="Please remove N2 before removing N1."):
        roster.deselect("N1")

    assert roster.deselect("N2").deselect("N1").selected == ()


def test_reselecting_a_zone_is_a_no_op() -> None:
    roster = ZoneRoster().select("N1")
    assert roster.select("N1") is roster


def test_unknown_codes_are_rejected() -> None:
    with pytest.raises(UnknownZoneError):
        ZoneRoster().select("N9")


def test_selection_is_kept_in_canonical_order() -> None:
    roster = ZoneRoster().select("S1").select("NE1").select("N1").select("W1")
    assert roster.selected == ("N1", "W1", "S1", "NE1")


def test_zone_cap_is_enforced() -> None:
    roster = ZoneRoster(max_zones=2).select("N1").select("S1")

    with pytest.raises(ZoneOrderingError, match="At most 2 zones"):
        roster.select("W1")


def test_select_all_visible_only_walks_visible_slots() -> None:
    roster, added = ZoneRoster().select_all_visible("North")

    assert added == ["N1", "N2", "N3", "N4"]
    assert roster.in_region("North") == ("N1", "N2", "N3", "N4")

    roster, added = roster.reveal_more("North").select_all_visible("North")
    assert added == ["N5"]


def test_select_all_visible_stops_at_first_rejection() -> None:
    roster, added = ZoneRoster(max_zones=3).select_all_visible("North")

    assert added == ["N1", "N2", "N3"]
    assert len(roster) == 3


def test_deselect_all_visible_removes_from_the_tail() -> None:
    roster, _ = ZoneRoster().select_all_visible("South")
    roster, removed = roster.deselect_all_visible("South")

    assert removed == ["S4", "S3", "S2", "S1"]
    assert roster.in_region("South") == ()


def test_deselect_all_visible_stops_when_a_hidden_slot_is_last() -> None:
    roster = ZoneRoster(selected=("N1", "N2", "N3", "N4", "N5"), visible={"North": 4})

    roster, removed = roster.deselect_all_visible("North")

    assert removed == []
    assert roster.in_region("North") == ("N1", "N2", "N3", "N4", "N5")


def test_reveal_more_is_capped_by_catalogue() -> None:
    roster = ZoneRoster()
    assert roster.visible["East"] == 2

    for _ in range(5):
        roster = roster.reveal_more("East")

    assert roster.visible["East"] == 4
    assert roster.visible_codes("East") == ("E1", "E2", "E3", "E4")


def test_drop_tail_requires_codes_at_the_end_of_their_region() -> None:
    roster = ZoneRoster().select("N1").select("N2").select("N3")

    assert roster.drop_tail(["N2", "N3"]).selected == ("N1",)
    with pytest.raises(ZoneOrderingError):
        roster.drop_tail(["N2"])


def test_unordered_policy_relaxes_ordering_only() -> None:
    roster = ZoneRoster(policy=UnorderedSelection()).select("N3").select("N1")

    assert roster.selected == ("N1", "N3")
    assert not roster.is_prefix("North")
    assert roster.deselect("N1").selected == ("N3",)


def test_roster_stays_a_prefix_under_mixed_operations() -> None:
    roster = ZoneRoster()
    operations = [
        ("select", "N2"), ("select", "N1"), ("select", "S1"), ("deselect", "N1"),
        ("select", "N2"), ("select", "S3"), ("deselect", "N1"), ("select", "NE1"),
        ("select", "NE2"), ("deselect", "NE1"), ("select", "N3"), ("deselect", "N3"),
    ]
    for action, code in operations:
        try:
            roster = getattr(roster, action)(code)
        except ZoneOrderingError:
            pass
        assert all(roster.is_prefix(region) for region in REGIONS)

    assert roster.selected == ("S1", "NE1", "NE2")

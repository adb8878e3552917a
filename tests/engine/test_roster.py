import pytest

from unoledger import errors
from unoledger.engine import MAX_PLAYERS, Roster


def test_roster_is_seeded_with_creator():
    roster = Roster.seed("alice")

    assert list(roster) == ["alice"]
    assert roster.size() == 1
    assert not roster.can_start


def test_roster_keeps_join_order():
    roster = Roster.seed("alice")

    roster.join("bob")
    roster.join("carol")

    assert list(roster) == ["alice", "bob", "carol"]
    assert roster.member_at(0) == "alice"
    assert roster.member_at(2) == "carol"
    assert roster.can_start


def test_roster_rejects_player_over_capacity():
    roster = Roster.seed("player_0")

    for i in range(1, MAX_PLAYERS):
        roster.join(f"player_{i}")

    assert roster.is_full

    with pytest.raises(errors.RosterFull):
        roster.join("late")

    assert len(roster) == MAX_PLAYERS
    assert "late" not in roster


def test_roster_allows_duplicate_members():
    roster = Roster.seed("alice")

    roster.join("alice")

    assert list(roster) == ["alice", "alice"]


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_roster_member_at_is_bounds_checked(roster, index):
    with pytest.raises(errors.PlayerNotFound):
        roster.member_at(index)

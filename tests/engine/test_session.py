import dataclasses

import pytest

from unoledger import errors
from unoledger.engine import Session, rebuild, replay
from unoledger.engine.commitment import fold, hash_parts, initial_state_hash, roster_digest

H0 = hash_parts("shuffle")
H1 = hash_parts("red 7")
H2 = hash_parts("red skip")


def snapshot(session: Session) -> Session:
    return dataclasses.replace(
        session,
        roster=dataclasses.replace(session.roster, members=list(session.roster)),
        turns=dataclasses.replace(session.turns),
    )


def test_create_session():
    session = Session.create(1, "alice", timestamp=100)

    assert session.id == 1
    assert list(session.roster) == ["alice"]
    assert session.creator == "alice"
    assert session.is_active
    assert not session.is_started
    assert session.turns.current_player_index == 0
    assert session.turns.turn_count == 0
    assert session.turns.direction_clockwise
    assert session.state_hash == initial_state_hash(1, 100, "alice", ["alice"])


def test_full_game(session):
    session.start(H0, timestamp=102)

    assert session.is_started
    assert session.state_hash == H0

    session.submit("alice", H1, timestamp=103)

    expected = hash_parts(
        fold(H0, H1), 1, roster_digest(["alice", "bob"]), True, 1, 103, 1, True
    )
    assert session.turns.turn_count == 1
    assert session.turns.current_player_index == 1
    assert session.state_hash == expected

    session.submit("bob", H2, timestamp=104)

    assert session.turns.turn_count == 2
    assert session.turns.current_player_index == 0

    session.end("alice", timestamp=105)

    assert not session.is_active
    assert session.last_action_timestamp == 105


def test_submit_returns_action(started_session):
    action = started_session.submit("alice", H1, timestamp=103)

    assert action.player == "alice"
    assert action.commitment == H1
    assert action.timestamp == 103


def test_join_after_start_is_rejected(started_session):
    with pytest.raises(errors.GameAlreadyStarted):
        started_session.join("carol", timestamp=200)

    assert list(started_session.roster) == ["alice", "bob"]


def test_start_with_one_player_is_rejected():
    session = Session.create(1, "alice", timestamp=100)

    with pytest.raises(errors.NotEnoughPlayers) as exc_info:
        session.start(H0, timestamp=101)

    assert isinstance(exc_info.value, errors.InvalidState)
    assert isinstance(exc_info.value, errors.CapacityError)
    assert not session.is_started


def test_start_twice_is_rejected(started_session):
    with pytest.raises(errors.GameAlreadyStarted):
        started_session.start(H1, timestamp=200)

    assert started_session.state_hash == H0


def test_start_rejects_malformed_hash(session):
    with pytest.raises(errors.InvalidDigest):
        session.start(b"short", timestamp=102)

    assert not session.is_started


def test_submit_before_start_is_rejected(session):
    with pytest.raises(errors.GameNotStarted):
        session.submit("alice", H1, timestamp=102)


def test_submit_out_of_turn_leaves_session_unchanged(started_session):
    before = snapshot(started_session)

    with pytest.raises(errors.NotYourTurn):
        started_session.submit("bob", H1, timestamp=103)

    with pytest.raises(errors.NotYourTurn):
        started_session.submit("mallory", H1, timestamp=103)

    assert started_session == before


def test_end_by_other_player_is_rejected(started_session):
    with pytest.raises(errors.NotYourTurn):
        started_session.end("bob", timestamp=103)

    assert started_session.is_active


def test_creator_can_end_session_before_start(session):
    session.end("alice", timestamp=102)

    assert not session.is_active


def test_ended_session_rejects_mutations(started_session):
    started_session.end("alice", timestamp=103)

    with pytest.raises(errors.GameEnded):
        started_session.submit("alice", H1, timestamp=104)

    with pytest.raises(errors.GameEnded):
        started_session.join("carol", timestamp=104)

    with pytest.raises(errors.GameEnded):
        started_session.end("alice", timestamp=104)


def test_replay_reproduces_state_hash(started_session):
    actions = [
        started_session.submit("alice", H1, timestamp=103),
        started_session.submit("bob", H2, timestamp=104),
        started_session.submit("alice", H0, timestamp=110),
    ]

    assert replay(started_session, actions) == started_session.state_hash


def test_replay_after_end(started_session):
    actions = [started_session.submit("alice", H1, timestamp=103)]
    started_session.end("bob", timestamp=104)

    assert replay(started_session, actions) == started_session.state_hash


def test_replay_depends_on_action_order(started_session):
    actions = [
        started_session.submit("alice", H1, timestamp=103),
        started_session.submit("bob", H2, timestamp=104),
    ]
    swapped = [
        dataclasses.replace(actions[0], commitment=H2),
        dataclasses.replace(actions[1], commitment=H1),
    ]

    assert replay(started_session, swapped) != started_session.state_hash


def test_replay_rejects_action_out_of_turn(started_session):
    action = started_session.submit("alice", H1, timestamp=103)
    forged = dataclasses.replace(action, player="bob")

    with pytest.raises(errors.NotYourTurn):
        replay(started_session, [forged])


def test_replay_of_unstarted_session(session):
    assert replay(session, []) == session.state_hash


def test_replay_of_unstarted_session_with_actions(started_session):
    fresh = Session.create(2, "carol", timestamp=100)
    action = started_session.submit("alice", H1, timestamp=103)

    with pytest.raises(errors.GameNotStarted):
        replay(fresh, [action])


def test_rebuild_reproduces_turn_state(started_session):
    actions = [
        started_session.submit("alice", H1, timestamp=103),
        started_session.submit("bob", H2, timestamp=104),
    ]

    replica = rebuild(started_session, actions)

    assert replica.turns == started_session.turns
    assert replica.last_action_timestamp == 104
    assert replica.state_hash == started_session.state_hash

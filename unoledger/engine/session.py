import dataclasses
from typing import Sequence

from unoledger import errors
from unoledger.engine import commitment
from unoledger.engine.commitment import Digest
from unoledger.engine.roster import PlayerId, Roster
from unoledger.engine.turns import TurnManager

SessionId = int


@dataclasses.dataclass(frozen=True)
class Action:
    player: PlayerId
    commitment: Digest
    timestamp: int


@dataclasses.dataclass
class Session:
    id: SessionId
    roster: Roster
    state_hash: Digest
    created_at: int
    last_action_timestamp: int
    is_active: bool = True
    is_started: bool = False
    turns: TurnManager = dataclasses.field(default_factory=TurnManager)
    initial_state_hash: Digest | None = None
    started_at: int | None = None

    def __repr__(self) -> str:
        return f"<Session {self.id}, {len(self.roster)} players, turn {self.turns.turn_count}>"

    @classmethod
    def create(cls, session_id: SessionId, creator: PlayerId, timestamp: int) -> "Session":
        roster = Roster.seed(creator)
        state_hash = commitment.initial_state_hash(session_id, timestamp, creator, roster)
        return cls(
            id=session_id,
            roster=roster,
            state_hash=state_hash,
            created_at=timestamp,
            last_action_timestamp=timestamp,
        )

    @property
    def creator(self) -> PlayerId:
        return self.roster.member_at(0)

    @property
    def current_player(self) -> PlayerId:
        return self.turns.current_player(self.roster)

    def is_player_turn(self, identity: PlayerId) -> bool:
        return self.turns.is_current_player(self.roster, identity)

    def join(self, player: PlayerId, timestamp: int) -> None:
        self._ensure_active()

        if self.is_started:
            raise errors.GameAlreadyStarted(f"Session {self.id} has already started.")

        self.roster.join(player)
        self.last_action_timestamp = timestamp

    def start(self, initial_state_hash: Digest, timestamp: int) -> None:
        self._ensure_active()

        if self.is_started:
            raise errors.GameAlreadyStarted(f"Session {self.id} has already started.")

        if not self.roster.can_start:
            raise errors.NotEnoughPlayers(
                f"Session {self.id} needs at least 2 players, has {len(self.roster)}."
            )

        initial_state_hash = commitment.ensure_digest(initial_state_hash)
        self.is_started = True
        self.state_hash = initial_state_hash
        self.initial_state_hash = initial_state_hash
        self.started_at = timestamp
        self.last_action_timestamp = timestamp

    def submit(self, player: PlayerId, action_commitment: Digest, timestamp: int) -> Action:
        self._ensure_active()

        if not self.is_started:
            raise errors.GameNotStarted(f"Session {self.id} hasn't started yet.")

        if not self.is_player_turn(player):
            raise errors.NotYourTurn(f"It's {self.current_player}'s turn, not {player}'s.")

        action_commitment = commitment.ensure_digest(action_commitment)
        chain_hash = commitment.fold(self.state_hash, action_commitment)
        action = Action(player=player, commitment=action_commitment, timestamp=timestamp)

        self.turns.advance(self.roster)
        self.last_action_timestamp = timestamp
        self.state_hash = commitment.full_state_digest(self, chain_hash)
        return action

    def end(self, player: PlayerId, timestamp: int) -> None:
        self._ensure_active()

        if not self.is_player_turn(player):
            raise errors.NotYourTurn(
                f"Only {self.current_player} can end session {self.id} at this time."
            )

        self.is_active = False
        self.last_action_timestamp = timestamp

    def opening(self) -> "Session":
        """
        A copy of this session as it was right after it started.
        """
        if self.initial_state_hash is None or self.started_at is None:
            raise errors.GameNotStarted(f"Session {self.id} hasn't started yet.")

        return Session(
            id=self.id,
            roster=Roster.from_members(self.roster),
            state_hash=self.initial_state_hash,
            created_at=self.created_at,
            last_action_timestamp=self.started_at,
            is_started=True,
            initial_state_hash=self.initial_state_hash,
            started_at=self.started_at,
        )

    def _ensure_active(self) -> None:
        if not self.is_active:
            raise errors.GameEnded(f"Session {self.id} has ended.")


def rebuild(session: Session, actions: Sequence[Action]) -> Session:
    """
    Re-applies `actions` on top of the opening of a started session
    and returns the resulting replica.
    """
    replica = session.opening()

    for action in actions:
        replica.submit(action.player, action.commitment, action.timestamp)

    return replica


def replay(session: Session, actions: Sequence[Action]) -> Digest:
    """
    Recomputes the state hash `session` should have, given the actions
    recorded for it.

    Raises a LedgerError if the actions could not have been accepted
    in that order, e.g. an action by a player who wasn't the turn-holder.
    """
    if not session.is_started:
        if actions:
            raise errors.GameNotStarted(
                f"Session {session.id} hasn't started but has {len(actions)} actions."
            )

        return commitment.initial_state_hash(
            session.id, session.created_at, session.creator, [session.creator]
        )

    return rebuild(session, actions).state_hash

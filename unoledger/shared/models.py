from typing import Annotated, Any, TypeVar

from pydantic import BaseModel as _BaseModel
from pydantic import Field, StringConstraints

from unoledger.engine import Action, Roster, Session, TurnManager, commitment

T = TypeVar("T", bound="BaseModel")

HexDigest = Annotated[
    str,
    StringConstraints(
        min_length=commitment.DIGEST_SIZE * 2,
        max_length=commitment.DIGEST_SIZE * 2,
        pattern=r"^[0-9a-fA-F]+$",
        to_lower=True,
    ),
]


class BaseModel(_BaseModel):
    def to_json(self) -> str:
        return self.model_dump_json()

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_raw(cls: type[T], data: str | bytes) -> T:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[T], obj: dict[str, Any]) -> T:
        return cls.model_validate(obj)


class SessionRecord(BaseModel):
    id: int = Field(..., gt=0)
    is_active: bool = True
    is_started: bool = False
    current_player_index: int = 0
    state_hash: HexDigest
    turn_count: int = 0
    direction_clockwise: bool = True
    created_at: int
    last_action_timestamp: int
    initial_state_hash: HexDigest | None = None
    started_at: int | None = None

    @classmethod
    def from_domain(cls, session: Session) -> "SessionRecord":
        initial_state_hash = session.initial_state_hash

        return cls(
            id=session.id,
            is_active=session.is_active,
            is_started=session.is_started,
            current_player_index=session.turns.current_player_index,
            state_hash=commitment.to_hex(session.state_hash),
            turn_count=session.turns.turn_count,
            direction_clockwise=session.turns.direction_clockwise,
            created_at=session.created_at,
            last_action_timestamp=session.last_action_timestamp,
            initial_state_hash=initial_state_hash and commitment.to_hex(initial_state_hash),
            started_at=session.started_at,
        )

    def to_domain(self, members: list[str]) -> Session:
        return Session(
            id=self.id,
            roster=Roster.from_members(members),
            state_hash=commitment.from_hex(self.state_hash),
            created_at=self.created_at,
            last_action_timestamp=self.last_action_timestamp,
            is_active=self.is_active,
            is_started=self.is_started,
            turns=TurnManager(
                current_player_index=self.current_player_index,
                turn_count=self.turn_count,
                direction_clockwise=self.direction_clockwise,
            ),
            initial_state_hash=(
                commitment.from_hex(self.initial_state_hash) if self.initial_state_hash else None
            ),
            started_at=self.started_at,
        )


class GameState(SessionRecord):
    roster: list[str]

    @classmethod
    def from_session(cls, session: Session) -> "GameState":
        record = SessionRecord.from_domain(session)
        return cls(roster=list(session.roster), **record.to_dict())

    def to_session(self) -> Session:
        return self.to_domain(self.roster)


class ActionRecord(BaseModel):
    player: str
    action_commitment: HexDigest
    timestamp: int

    @classmethod
    def from_domain(cls, action: Action) -> "ActionRecord":
        return cls(
            player=action.player,
            action_commitment=commitment.to_hex(action.commitment),
            timestamp=action.timestamp,
        )

    def to_domain(self) -> Action:
        return Action(
            player=self.player,
            commitment=commitment.from_hex(self.action_commitment),
            timestamp=self.timestamp,
        )


class SessionExport(BaseModel):
    state: GameState
    actions: list[ActionRecord] = []


class Verification(BaseModel):
    session_id: int
    expected: str | None
    actual: str
    valid: bool
    reason: str = ""


class CreatedSession(BaseModel):
    id: int


class StartGame(BaseModel):
    initial_state_hash: HexDigest


class SubmitAction(BaseModel):
    action_commitment: HexDigest


class PlayerTurn(BaseModel):
    session_id: int
    player: str
    is_turn: bool

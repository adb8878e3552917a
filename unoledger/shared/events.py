from enum import StrEnum, auto, unique
from typing import Any, Generic, Literal, TypeAlias, TypeVar, cast

from unoledger.shared.models import BaseModel


@unique
class LedgerEvent(StrEnum):
    SESSION_CREATED = auto()
    SESSION_STARTED = auto()
    PLAYER_JOINED = auto()
    ACTION_SUBMITTED = auto()
    SESSION_ENDED = auto()


class SessionEvent(BaseModel):
    message_type: Literal["session_event"] = "session_event"
    type: LedgerEvent
    session_id: int
    payload: dict[str, Any] = {}

    @property
    def topic(self) -> str:
        return f"sessions.{self.type}"


AnyEvent: TypeAlias = SessionEvent
T = TypeVar("T", bound=AnyEvent)


class Message(BaseModel, Generic[T]):
    event: AnyEvent

    def unwrap(self) -> T:
        return cast(T, self.event)


AnyMessage: TypeAlias = Message[SessionEvent]

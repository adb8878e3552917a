import pytest

from unoledger.engine import Roster, Session
from unoledger.engine.commitment import hash_parts
from unoledger.server.bus import InMemoryMessageBus
from unoledger.server.registry import SessionRegistry
from unoledger.server.repositories import InMemorySessionStore
from unoledger.shared.events import Message, SessionEvent


class FakeClock:
    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


class EventRecorder:
    def __init__(self):
        self.events: list[SessionEvent] = []

    async def __call__(self, message: Message[SessionEvent]) -> None:
        self.events.append(message.unwrap())

    @property
    def types(self) -> list[str]:
        return [event.type for event in self.events]


def digest_of(label: str) -> bytes:
    return hash_parts(label)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def roster() -> Roster:
    return Roster.from_members(["alice", "bob", "carol"])


@pytest.fixture
def session() -> Session:
    session = Session.create(1, "alice", timestamp=100)
    session.join("bob", timestamp=101)
    return session


@pytest.fixture
def started_session(session) -> Session:
    session.start(digest_of("shuffle"), timestamp=102)
    return session


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def message_bus(recorder) -> InMemoryMessageBus:
    bus = InMemoryMessageBus()
    bus.subscribe("sessions.*", recorder)
    return bus


@pytest.fixture
def registry(store, message_bus, clock) -> SessionRegistry:
    return SessionRegistry(store, message_bus, clock=clock)

import asyncio
import time
from typing import Any, Callable, Sequence

from loguru import logger

from unoledger import errors
from unoledger.engine import Action, Session, SessionId, TurnManager, rebuild, replay
from unoledger.engine.commitment import Digest, to_hex
from unoledger.server.bus import MessageBus
from unoledger.server.repositories import SessionStore, Transaction
from unoledger.shared.events import LedgerEvent, Message, SessionEvent
from unoledger.shared.models import (
    ActionRecord,
    GameState,
    SessionExport,
    SessionRecord,
    Verification,
)

Clock = Callable[[], int]


def unix_time() -> int:
    return int(time.time())


class SessionRegistry:
    """
    Entry point of every ledger operation.

    Operations run one at a time. Each one loads what it needs from the store,
    validates and mutates the session in memory, commits all writes in a single
    transaction and only then notifies the message bus. A failed operation
    commits nothing and notifies nobody.
    """

    def __init__(
        self,
        store: SessionStore,
        message_bus: MessageBus,
        clock: Clock = unix_time,
    ) -> None:
        self._store = store
        self._bus = message_bus
        self._clock = clock
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"<SessionRegistry {self._store.__class__.__name__}>"

    async def create_game(self, caller: str) -> SessionId:
        async with self._lock:
            async with self._store.transaction() as tx:
                session_id = await tx.get_counter() + 1
                session = Session.create(session_id, caller, self._clock())
                tx.set_counter(session_id)
                self._save(tx, session)
                tx.add_active(session_id)

            logger.info("{caller} created session {id}.", caller=caller, id=session_id)
            await self._publish(LedgerEvent.SESSION_CREATED, session_id, creator=caller)

        return session_id

    async def join_game(self, session_id: SessionId, caller: str) -> None:
        async with self._lock:
            async with self._store.transaction() as tx:
                session = await self._load(tx, session_id)
                session.join(caller, self._clock())
                self._save(tx, session)

            logger.debug("{caller} joined {session}.", caller=caller, session=session)
            await self._publish(
                LedgerEvent.PLAYER_JOINED,
                session_id,
                player=caller,
                roster_size=len(session.roster),
            )

    async def start_game(
        self, session_id: SessionId, initial_state_hash: Digest, caller: str
    ) -> None:
        async with self._lock:
            async with self._store.transaction() as tx:
                session = await self._load(tx, session_id)
                session.start(initial_state_hash, self._clock())
                self._save(tx, session)

            logger.info("{caller} started {session}.", caller=caller, session=session)
            await self._publish(
                LedgerEvent.SESSION_STARTED,
                session_id,
                started_by=caller,
                state_hash=to_hex(session.state_hash),
            )

    async def submit_action(
        self, session_id: SessionId, action_commitment: Digest, caller: str
    ) -> None:
        async with self._lock:
            async with self._store.transaction() as tx:
                session = await self._load(tx, session_id)
                action = session.submit(caller, action_commitment, self._clock())
                self._save(tx, session)
                tx.append_action(session_id, ActionRecord.from_domain(action))

            logger.debug(
                "{caller} acted in {session}, next is {next}.",
                caller=caller,
                session=session,
                next=session.current_player,
            )
            await self._publish(
                LedgerEvent.ACTION_SUBMITTED,
                session_id,
                player=caller,
                action_commitment=to_hex(action.commitment),
                turn_count=session.turns.turn_count,
                state_hash=to_hex(session.state_hash),
            )

    async def end_game(self, session_id: SessionId, caller: str) -> None:
        async with self._lock:
            async with self._store.transaction() as tx:
                session = await self._load(tx, session_id)
                session.end(caller, self._clock())
                self._save(tx, session)
                tx.remove_active(session_id)

            logger.info("{caller} ended {session}.", caller=caller, session=session)
            await self._publish(LedgerEvent.SESSION_ENDED, session_id, ended_by=caller)

    async def get_game_state(self, session_id: SessionId) -> GameState:
        async with self._lock:
            async with self._store.transaction() as tx:
                session = await self._load(tx, session_id)

        return GameState.from_session(session)

    async def get_game_actions(self, session_id: SessionId) -> list[ActionRecord]:
        async with self._lock:
            async with self._store.transaction() as tx:
                return await tx.get_actions(session_id)

    async def get_active_games(self) -> list[SessionId]:
        async with self._lock:
            async with self._store.transaction() as tx:
                return await tx.get_active()

    async def is_player_turn(self, session_id: SessionId, identity: str) -> bool:
        state = await self.get_game_state(session_id)
        return state.to_session().is_player_turn(identity)

    async def export_game(self, session_id: SessionId) -> SessionExport:
        async with self._lock:
            async with self._store.transaction() as tx:
                session = await self._load(tx, session_id)
                actions = await tx.get_actions(session_id)

        return SessionExport(state=GameState.from_session(session), actions=actions)

    async def verify_game(self, session_id: SessionId) -> Verification:
        export = await self.export_game(session_id)
        return verify_export(export)

    async def _load(self, tx: Transaction, session_id: SessionId) -> Session:
        record = await tx.get_session(session_id)

        if record is None:
            raise errors.SessionNotFound(f"Session {session_id} not found.")

        members = await tx.get_roster(session_id)
        return record.to_domain(members)

    def _save(self, tx: Transaction, session: Session) -> None:
        tx.put_session(SessionRecord.from_domain(session))
        tx.put_roster(session.id, list(session.roster))

    @logger.catch
    async def _publish(self, type_: LedgerEvent, session_id: SessionId, **payload: Any) -> None:
        event = SessionEvent(type=type_, session_id=session_id, payload=payload)
        await self._bus.emit(event.topic, Message(event=event))


def snapshot_mismatch(session: Session, actions: Sequence[Action]) -> str:
    """
    Compares the turn state of a snapshot with what its history produces.
    The state hash only covers the snapshot as of the last action, so turn
    order and timestamps are checked against a replica as well.
    """
    if session.turns.turn_count != len(actions):
        return (
            f"Turn count {session.turns.turn_count} doesn't match "
            f"{len(actions)} recorded actions."
        )

    if not session.is_started:
        if session.turns != TurnManager():
            return "Turn order of an unstarted session must be untouched."

        return ""

    replica = rebuild(session, actions)

    if session.turns != replica.turns:
        return "Turn order doesn't match the recorded history."

    if session.is_active and session.last_action_timestamp != replica.last_action_timestamp:
        return "Last action timestamp doesn't match the recorded history."

    return ""


def verify_export(export: SessionExport) -> Verification:
    session = export.state.to_session()
    actions = [action.to_domain() for action in export.actions]
    actual = to_hex(session.state_hash)

    try:
        expected = to_hex(replay(session, actions))
    except errors.LedgerError as exc:
        logger.warning("Session {id} history doesn't replay: {exc}", id=session.id, exc=exc)
        return Verification(
            session_id=session.id, expected=None, actual=actual, valid=False, reason=str(exc)
        )

    if expected != actual:
        reason = "State hash doesn't match the recorded history."
    else:
        reason = snapshot_mismatch(session, actions)

    if reason:
        logger.warning("Session {id} failed verification: {reason}", id=session.id, reason=reason)

    return Verification(
        session_id=session.id, expected=expected, actual=actual, valid=not reason, reason=reason
    )

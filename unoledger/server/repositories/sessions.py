import abc
import functools
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import redis.asyncio as redis
from loguru import logger
from redis import RedisError

from unoledger import errors
from unoledger.shared.models import ActionRecord, SessionRecord

P = ParamSpec("P")
R = TypeVar("R")


class Transaction(abc.ABC):
    """
    A unit of work over the session collections.

    Reads observe committed state only. Writes are staged
    and become visible all together on commit, or never.
    """

    @abc.abstractmethod
    async def get_counter(self) -> int:
        pass

    @abc.abstractmethod
    def set_counter(self, value: int) -> None:
        pass

    @abc.abstractmethod
    async def get_session(self, session_id: int) -> SessionRecord | None:
        pass

    @abc.abstractmethod
    def put_session(self, record: SessionRecord) -> None:
        pass

    @abc.abstractmethod
    async def get_roster(self, session_id: int) -> list[str]:
        pass

    @abc.abstractmethod
    def put_roster(self, session_id: int, members: list[str]) -> None:
        pass

    @abc.abstractmethod
    async def get_actions(self, session_id: int) -> list[ActionRecord]:
        pass

    @abc.abstractmethod
    def append_action(self, session_id: int, action: ActionRecord) -> None:
        pass

    @abc.abstractmethod
    async def get_active(self) -> list[int]:
        pass

    @abc.abstractmethod
    def add_active(self, session_id: int) -> None:
        pass

    @abc.abstractmethod
    def remove_active(self, session_id: int) -> None:
        pass

    @abc.abstractmethod
    async def commit(self) -> None:
        pass


class SessionStore(abc.ABC):
    @abc.abstractmethod
    def begin(self) -> Transaction:
        pass

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        tx = self.begin()
        yield tx
        await tx.commit()


class InMemoryTransaction(Transaction):
    def __init__(self, store: "InMemorySessionStore") -> None:
        self._store = store
        self._counter: int | None = None
        self._sessions: dict[int, SessionRecord] = {}
        self._rosters: dict[int, list[str]] = {}
        self._actions: list[tuple[int, ActionRecord]] = []
        self._active_ops: list[tuple[bool, int]] = []

    async def get_counter(self) -> int:
        return self._store.counter

    def set_counter(self, value: int) -> None:
        self._counter = value

    async def get_session(self, session_id: int) -> SessionRecord | None:
        record = self._store.sessions.get(session_id)
        return record and record.model_copy(deep=True)

    def put_session(self, record: SessionRecord) -> None:
        self._sessions[record.id] = record.model_copy(deep=True)

    async def get_roster(self, session_id: int) -> list[str]:
        return list(self._store.rosters.get(session_id, []))

    def put_roster(self, session_id: int, members: list[str]) -> None:
        self._rosters[session_id] = list(members)

    async def get_actions(self, session_id: int) -> list[ActionRecord]:
        return list(self._store.actions.get(session_id, []))

    def append_action(self, session_id: int, action: ActionRecord) -> None:
        self._actions.append((session_id, action))

    async def get_active(self) -> list[int]:
        return list(self._store.active)

    def add_active(self, session_id: int) -> None:
        self._active_ops.append((True, session_id))

    def remove_active(self, session_id: int) -> None:
        self._active_ops.append((False, session_id))

    async def commit(self) -> None:
        store = self._store
        active = list(store.active)

        # Build the new index first, a missing id must leave the store untouched.
        for add, session_id in self._active_ops:
            if add:
                active.append(session_id)
            elif session_id in active:
                # Drops the first occurrence only.
                active.remove(session_id)
            else:
                raise errors.GameEnded(f"Session {session_id} is not active.")

        if self._counter is not None:
            store.counter = self._counter

        store.sessions.update(self._sessions)
        store.rosters.update(self._rosters)

        for session_id, action in self._actions:
            store.actions.setdefault(session_id, []).append(action)

        store.active = active


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self.counter = 0
        self.sessions: dict[int, SessionRecord] = {}
        self.rosters: dict[int, list[str]] = {}
        self.actions: dict[int, list[ActionRecord]] = {}
        self.active: list[int] = []

    def begin(self) -> InMemoryTransaction:
        return InMemoryTransaction(self)


def unavailable_on_error(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except RedisError as exc:
            logger.exception("Redis call {name} failed.", name=func.__name__)
            raise errors.StoreUnavailable(f"Session store is unavailable: {exc}") from exc

    return wrapper


class RedisTransaction(Transaction):
    def __init__(self, store: "RedisSessionStore") -> None:
        self._store = store
        self._client = store.client
        self._ops: list[Callable[[Any], Any]] = []

    @unavailable_on_error
    async def get_counter(self) -> int:
        value = await self._client.get(self._store.counter_key)
        return int(value) if value is not None else 0

    def set_counter(self, value: int) -> None:
        self._ops.append(lambda pipe: pipe.set(self._store.counter_key, value))

    @unavailable_on_error
    async def get_session(self, session_id: int) -> SessionRecord | None:
        data = await self._client.get(self._store.session_key(session_id))

        if data is None:
            return None

        return SessionRecord.from_raw(data)

    def put_session(self, record: SessionRecord) -> None:
        key, data = self._store.session_key(record.id), record.to_json()
        self._ops.append(lambda pipe: pipe.set(key, data))

    @unavailable_on_error
    async def get_roster(self, session_id: int) -> list[str]:
        key = self._store.roster_key(session_id)
        members = await self._client.lrange(key, 0, -1)  # type: ignore[misc]
        return [member.decode() for member in members]

    def put_roster(self, session_id: int, members: list[str]) -> None:
        key, members = self._store.roster_key(session_id), list(members)
        self._ops.append(lambda pipe: pipe.delete(key))
        self._ops.append(lambda pipe: pipe.rpush(key, *members))

    @unavailable_on_error
    async def get_actions(self, session_id: int) -> list[ActionRecord]:
        key = self._store.actions_key(session_id)
        actions = await self._client.lrange(key, 0, -1)  # type: ignore[misc]
        return [ActionRecord.from_raw(action) for action in actions]

    def append_action(self, session_id: int, action: ActionRecord) -> None:
        key, data = self._store.actions_key(session_id), action.to_json()
        self._ops.append(lambda pipe: pipe.rpush(key, data))

    @unavailable_on_error
    async def get_active(self) -> list[int]:
        ids = await self._client.lrange(self._store.active_key, 0, -1)  # type: ignore[misc]
        return [int(id_) for id_ in ids]

    def add_active(self, session_id: int) -> None:
        self._ops.append(lambda pipe: pipe.rpush(self._store.active_key, session_id))

    def remove_active(self, session_id: int) -> None:
        # LREM with a positive count removes from the head: the first occurrence.
        self._ops.append(lambda pipe: pipe.lrem(self._store.active_key, 1, session_id))

    @unavailable_on_error
    async def commit(self) -> None:
        if not self._ops:
            return

        async with self._client.pipeline(transaction=True) as pipe:
            for op in self._ops:
                op(pipe)

            await pipe.execute()


class RedisSessionStore(SessionStore):
    key = "ledger"
    namespace = key + ":"

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @property
    def counter_key(self) -> str:
        return f"{self.namespace}counter"

    @property
    def active_key(self) -> str:
        return f"{self.namespace}active"

    def session_key(self, session_id: int) -> str:
        return f"{self.namespace}sessions:{session_id}"

    def roster_key(self, session_id: int) -> str:
        return f"{self.namespace}rosters:{session_id}"

    def actions_key(self, session_id: int) -> str:
        return f"{self.namespace}actions:{session_id}"

    def begin(self) -> RedisTransaction:
        return RedisTransaction(self)

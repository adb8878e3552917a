import abc
from collections.abc import Awaitable, Callable

import redis.asyncio as redis
from loguru import logger
from pymitter import EventEmitter  # type: ignore[import-untyped]

from unoledger.shared.events import AnyMessage


class MessageBus(abc.ABC):
    @abc.abstractmethod
    async def emit(self, event: str, message: AnyMessage) -> None:
        pass

    @abc.abstractmethod
    def subscribe(self, event: str, func: Callable[..., Awaitable[None]]) -> None:
        pass

    @abc.abstractmethod
    def unsubscribe(self, event: str, func: Callable[..., Awaitable[None]]) -> None:
        pass


class InMemoryMessageBus(MessageBus):
    def __init__(self, emitter: EventEmitter | None = None):
        self._ee = emitter or EventEmitter(wildcard=True)

    async def emit(self, event: str, message: AnyMessage) -> None:
        await self._ee.emit_async(event, message)

    def subscribe(self, event: str, func: Callable[..., Awaitable[None]]) -> None:
        self._ee.on(event, func)

    def unsubscribe(self, event: str, func: Callable[..., Awaitable[None]]) -> None:
        self._ee.off(event, func)


class RedisMessageBus(InMemoryMessageBus):
    """
    Delivers messages to local subscribers and publishes them
    to a Redis channel of the same name for external observers.
    """

    def __init__(self, client: redis.Redis, emitter: EventEmitter | None = None):
        super().__init__(emitter)
        self._client = client

    async def emit(self, event: str, message: AnyMessage) -> None:
        await super().emit(event, message)
        receivers = await self._client.publish(event, message.to_json())
        logger.trace("{event} published to {count} receivers.", event=event, count=receivers)

from redis.asyncio import Redis
from rodi import Container

from unoledger.server.bus import InMemoryMessageBus, MessageBus, RedisMessageBus
from unoledger.server.config import Config, get_config
from unoledger.server.handlers import AuditLogHandler, MetricsHandler
from unoledger.server.registry import SessionRegistry
from unoledger.server.repositories import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)


def connect_event_handlers(services: Container) -> None:
    message_bus = services.resolve(MessageBus)
    message_bus.subscribe("sessions.*", services.resolve(MetricsHandler))
    message_bus.subscribe("sessions.*", services.resolve(AuditLogHandler))


def build_container(config: Config | None = None) -> Container:
    container = Container()
    config = config or get_config()
    container.add_instance(config, Config)

    store: SessionStore
    message_bus: MessageBus

    if config.STORE == "redis":
        redis = Redis.from_url(str(config.REDIS_URL))
        container.add_instance(redis, Redis)
        store = RedisSessionStore(redis)
        message_bus = RedisMessageBus(redis)
    else:
        store = InMemorySessionStore()
        message_bus = InMemoryMessageBus()

    container.add_instance(store, SessionStore)
    container.add_instance(message_bus, MessageBus)
    container.add_instance(SessionRegistry(store, message_bus), SessionRegistry)
    container.add_singleton(MetricsHandler)
    container.add_singleton(AuditLogHandler)
    return container

from .sessions import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
    Transaction,
)

__all__ = [
    "InMemorySessionStore",
    "RedisSessionStore",
    "SessionStore",
    "Transaction",
]

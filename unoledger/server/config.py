from functools import cache
from typing import Literal

from pydantic import RedisDsn
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    TRACE: bool = False
    STORE: Literal["memory", "redis"] = "memory"
    REDIS_URL: RedisDsn = RedisDsn("redis://localhost:6379/0")
    JWKS_URL: str = ""
    JWT_AUDIENCE: str = ""
    JWT_ISSUER: str = ""
    SERVER_VERSION: str = "0.0.0"
    SENTRY_DSN: str = ""
    METRICS_SCRAPER_SECRET: str = ""

    @property
    def jwt_enabled(self) -> bool:
        return bool(self.JWKS_URL)


@cache
def get_config() -> Config:
    return Config()

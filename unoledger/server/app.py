import sys
from typing import Any

import sentry_sdk
from blacksheep import Application
from blacksheep.server.authentication.jwt import JWTBearerAuthentication
from blacksheep.server.authorization import Policy
from guardpost.common import AuthenticatedRequirement
from loguru import logger
from redis.asyncio import Redis, RedisError
from rodi import Container
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from unoledger import PACKAGE_NAME
from unoledger.server.auth import PlayerHeaderAuthentication
from unoledger.server.config import Config
from unoledger.server.di import build_container, connect_event_handlers
from unoledger.server.metrics import MetricsScraperAuthenticationHandler
from unoledger.server.routes import build_router, ledger_errors_middleware


async def teardown_redis(app: Application) -> None:
    config = app.services.resolve(Config)

    if config.STORE != "redis":
        return

    client = app.services.resolve(Redis)

    try:
        await client.aclose()
    except RedisError:
        logger.exception("Cannot close Redis connection.")
        raise


def configure_sentry(app: Application, dsn: str, release: str) -> SentryAsgiMiddleware:
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.1,
        release=release,
    )

    return SentryAsgiMiddleware(app)


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.enable(PACKAGE_NAME)


def create_app(container: Container | None = None) -> Any:
    services = container or build_container()
    connect_event_handlers(services)
    config = services.resolve(Config)
    configure_logging("TRACE" if config.TRACE else "DEBUG")

    app = Application(router=build_router(), services=services)
    authentication = app.use_authentication()
    authentication.add(PlayerHeaderAuthentication())

    if config.jwt_enabled:
        authentication.add(
            JWTBearerAuthentication(
                keys_url=config.JWKS_URL,
                valid_audiences=[config.JWT_AUDIENCE],
                valid_issuers=[config.JWT_ISSUER],
            )
        )

    if config.METRICS_SCRAPER_SECRET:
        authentication.add(
            MetricsScraperAuthenticationHandler(scraper_secret=config.METRICS_SCRAPER_SECRET)
        )

    app.use_authorization().with_default_policy(
        Policy("authenticated", AuthenticatedRequirement()),
    )

    app.on_stop += teardown_redis
    app.middlewares.append(ledger_errors_middleware)

    if config.SENTRY_DSN:
        app = configure_sentry(
            app,
            config.SENTRY_DSN,
            config.SERVER_VERSION,
        )  # type: ignore[assignment]

    return app

from aioprometheus.collectors import REGISTRY, Counter, Gauge
from aioprometheus.renderer import render
from blacksheep import Request
from guardpost import AuthenticationHandler, Identity

sessions_created_total = Counter(
    "sessions_created_total",
    doc="Created sessions amount",
)
sessions_started_total = Counter(
    "sessions_started_total",
    doc="Started sessions amount",
)
sessions_ended_total = Counter(
    "sessions_ended_total",
    doc="Ended sessions amount",
)
players_joined_total = Counter(
    "players_joined_total",
    doc="Accepted roster joins amount",
)
actions_submitted_total = Counter(
    "actions_submitted_total",
    doc="Accepted actions amount",
)
sessions_active = Gauge(
    "sessions_active",
    doc="Sessions in the active index",
)


class MetricsScraperAuthenticationHandler(AuthenticationHandler):
    def __init__(self, scraper_secret: str):
        self._secret = scraper_secret.encode()

    def authenticate(self, context: Request) -> Identity | None:
        header_value = context.get_first_header(b"Authorization")

        try:
            type_, secret = header_value.split()  # type: ignore[union-attr]
        except (AttributeError, ValueError):
            return context.identity

        if type_ == b"Bearer" and secret == self._secret:
            context.identity = Identity({"sub": "scraper"}, authentication_mode="Bearer")

        return context.identity


def render_metrics(accept_headers: list[bytes]) -> tuple[str, dict[bytes, bytes]]:
    accept_headers_decoded = [value.decode() for value in accept_headers]
    content, headers = render(REGISTRY, accept_headers_decoded)
    headers = {k.encode(): v.encode() for k, v in headers.items()}
    return content.decode(), headers

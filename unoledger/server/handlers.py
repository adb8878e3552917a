from loguru import logger

from unoledger.server import metrics
from unoledger.shared.events import LedgerEvent, Message, SessionEvent


class MetricsHandler:
    async def __call__(self, message: Message[SessionEvent]) -> None:
        event = message.unwrap()

        match event.type:
            case LedgerEvent.SESSION_CREATED:
                metrics.sessions_created_total.inc({})
                metrics.sessions_active.inc({})
            case LedgerEvent.PLAYER_JOINED:
                metrics.players_joined_total.inc({})
            case LedgerEvent.SESSION_STARTED:
                metrics.sessions_started_total.inc({})
            case LedgerEvent.ACTION_SUBMITTED:
                metrics.actions_submitted_total.inc({})
            case LedgerEvent.SESSION_ENDED:
                metrics.sessions_ended_total.inc({})
                metrics.sessions_active.dec({})


class AuditLogHandler:
    """
    Writes every accepted transition to the log, one line per event,
    so the log alone is enough to follow a session.
    """

    async def __call__(self, message: Message[SessionEvent]) -> None:
        event = message.unwrap()
        logger.info(
            "Session {session_id}: {type} {payload}",
            session_id=event.session_id,
            type=event.type,
            payload=event.payload,
        )

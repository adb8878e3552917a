from typing import Awaitable, Callable

from blacksheep import (
    FromJSON,
    Request,
    Response,
    Router,
    bad_request,
    forbidden,
    not_found,
    ok,
    status_code,
)
from blacksheep.server.authorization import allow_anonymous
from guardpost import Identity
from loguru import logger

from unoledger import errors
from unoledger.engine.commitment import from_hex
from unoledger.server import metrics
from unoledger.server.auth import get_player_id
from unoledger.server.registry import SessionRegistry
from unoledger.shared.models import (
    ActionRecord,
    CreatedSession,
    GameState,
    PlayerTurn,
    SessionExport,
    StartGame,
    SubmitAction,
    Verification,
)


async def ledger_errors_middleware(
    request: Request, handler: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await handler(request)
    except errors.SessionNotFound as exc:
        return not_found(str(exc))
    except errors.NotAuthorized as exc:
        return forbidden(str(exc))
    except (errors.InvalidState, errors.CapacityError) as exc:
        return status_code(409, str(exc))
    except errors.InvalidDigest as exc:
        return bad_request(str(exc))
    except errors.StoreUnavailable as exc:
        logger.error("Request {path} failed: {exc}", path=request.url.path, exc=exc)
        return status_code(503, "Session store is unavailable.")


async def create_game(identity: Identity, registry: SessionRegistry) -> CreatedSession:
    session_id = await registry.create_game(get_player_id(identity))
    return CreatedSession(id=session_id)


async def get_active_games(registry: SessionRegistry) -> list[int]:
    return await registry.get_active_games()


async def get_game_state(session_id: int, registry: SessionRegistry) -> GameState:
    return await registry.get_game_state(session_id)


async def join_game(session_id: int, identity: Identity, registry: SessionRegistry) -> None:
    await registry.join_game(session_id, get_player_id(identity))


async def start_game(
    session_id: int,
    identity: Identity,
    data: FromJSON[StartGame],
    registry: SessionRegistry,
) -> None:
    initial_state_hash = from_hex(data.value.initial_state_hash)
    await registry.start_game(session_id, initial_state_hash, get_player_id(identity))


async def submit_action(
    session_id: int,
    identity: Identity,
    data: FromJSON[SubmitAction],
    registry: SessionRegistry,
) -> None:
    action_commitment = from_hex(data.value.action_commitment)
    await registry.submit_action(session_id, action_commitment, get_player_id(identity))


async def get_game_actions(session_id: int, registry: SessionRegistry) -> list[ActionRecord]:
    return await registry.get_game_actions(session_id)


async def end_game(session_id: int, identity: Identity, registry: SessionRegistry) -> None:
    await registry.end_game(session_id, get_player_id(identity))


async def is_player_turn(session_id: int, player: str, registry: SessionRegistry) -> PlayerTurn:
    is_turn = await registry.is_player_turn(session_id, player)
    return PlayerTurn(session_id=session_id, player=player, is_turn=is_turn)


async def verify_game(session_id: int, registry: SessionRegistry) -> Verification:
    return await registry.verify_game(session_id)


async def export_game(session_id: int, registry: SessionRegistry) -> SessionExport:
    return await registry.export_game(session_id)


@allow_anonymous()
async def health() -> Response:
    return ok("OK")


async def get_metrics(request: Request) -> Response:
    accept_headers = request.get_headers(b"Accept")
    content, headers = metrics.render_metrics(accept_headers)
    response = ok(content)
    response.headers.add_many(headers)
    return response


def build_router() -> Router:
    router = Router()
    router.add_post("/sessions", create_game)
    router.add_get("/sessions", get_active_games)
    router.add_get("/sessions/{session_id}", get_game_state)
    router.add_post("/sessions/{session_id}/join", join_game)
    router.add_post("/sessions/{session_id}/start", start_game)
    router.add_post("/sessions/{session_id}/actions", submit_action)
    router.add_get("/sessions/{session_id}/actions", get_game_actions)
    router.add_post("/sessions/{session_id}/end", end_game)
    router.add_get("/sessions/{session_id}/turns/{player}", is_player_turn)
    router.add_get("/sessions/{session_id}/verify", verify_game)
    router.add_get("/sessions/{session_id}/export", export_game)
    router.add_get("/healthz", health)
    router.add_get("/metrics", get_metrics)
    return router

from unoledger.engine.roster import MAX_PLAYERS, MIN_PLAYERS_TO_START, PlayerId, Roster
from unoledger.engine.session import Action, Session, SessionId, rebuild, replay
from unoledger.engine.turns import TurnManager

__all__ = [
    "Action",
    "MAX_PLAYERS",
    "MIN_PLAYERS_TO_START",
    "PlayerId",
    "Roster",
    "Session",
    "SessionId",
    "TurnManager",
    "rebuild",
    "replay",
]

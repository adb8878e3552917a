class LedgerError(Exception):
    pass


class SessionNotFound(LedgerError):
    pass


class PlayerNotFound(LedgerError):
    pass


class InvalidState(LedgerError):
    pass


class GameAlreadyStarted(InvalidState):
    pass


class GameNotStarted(InvalidState):
    pass


class GameEnded(InvalidState):
    pass


class NotAuthorized(LedgerError):
    pass


class NotYourTurn(NotAuthorized):
    pass


class CapacityError(LedgerError):
    pass


class RosterFull(CapacityError):
    pass


class NotEnoughPlayers(InvalidState, CapacityError):
    pass


class InvalidDigest(LedgerError, ValueError):
    pass


class StoreUnavailable(LedgerError):
    pass

from blacksheep import Request
from guardpost import AuthenticationHandler, Identity

PLAYER_HEADER = b"X-Player-Id"


class PlayerHeaderAuthentication(AuthenticationHandler):
    """
    Trusts the player id sent by a gateway that already authenticated the caller.
    """

    def __init__(self, header: bytes = PLAYER_HEADER):
        self._header = header

    def authenticate(self, context: Request) -> Identity | None:
        value = context.get_first_header(self._header)

        if value:
            context.identity = Identity({"sub": value.decode()}, authentication_mode="Header")

        return context.identity


def get_player_id(identity: Identity) -> str:
    return identity.claims["sub"]

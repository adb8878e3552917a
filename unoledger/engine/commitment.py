"""
Hash chaining of session state.

Every part fed into the hash is encoded canonically before hashing:
booleans as a single byte, integers as 8-byte big-endian unsigned,
strings as UTF-8 and digests as their raw bytes.
"""

import hashlib
from typing import TYPE_CHECKING, Iterable, TypeAlias

from unoledger import errors

if TYPE_CHECKING:
    from unoledger.engine.session import Session

Digest: TypeAlias = bytes
HashPart: TypeAlias = Digest | str | int | bool

DIGEST_SIZE = 32
EMPTY_DIGEST = bytes(DIGEST_SIZE)


def encode(part: HashPart) -> bytes:
    # bool is a subclass of int, check it first.
    if isinstance(part, bool):
        return b"\x01" if part else b"\x00"

    if isinstance(part, int):
        if part < 0:
            raise ValueError(f"Cannot encode negative integer {part}.")

        return part.to_bytes(8, "big")

    if isinstance(part, str):
        return part.encode()

    if isinstance(part, bytes):
        return part

    raise TypeError(f"Cannot encode {part.__class__.__name__} into a digest.")


def hash_parts(*parts: HashPart) -> Digest:
    digest = hashlib.sha256()

    for part in parts:
        digest.update(encode(part))

    return digest.digest()


def player_digest(player: str) -> Digest:
    return hash_parts(player)


def roster_digest(members: Iterable[str]) -> Digest:
    accumulator = EMPTY_DIGEST

    for member in members:
        accumulator = hash_parts(accumulator, player_digest(member))

    return accumulator


def move_commitment(move: str, salt: str = "") -> Digest:
    """
    Commitment a player publishes before revealing a move.

    Move and salt are each prefixed with their encoded length, so no other
    (move, salt) pair produces the same digest.
    """
    parts: list[HashPart] = []

    for part in (move, salt):
        parts += [len(encode(part)), part]

    return hash_parts(*parts)


def initial_state_hash(
    session_id: int, timestamp: int, creator: str, members: Iterable[str]
) -> Digest:
    return hash_parts(session_id, hash_parts(timestamp, creator, roster_digest(members)))


def fold(prior_hash: Digest, action_commitment: Digest) -> Digest:
    """
    One step of the action chain: commits to the fact that
    `action_commitment` was appended right after `prior_hash`.
    """
    return hash_parts(prior_hash, action_commitment)


def full_state_digest(session: "Session", chain_hash: Digest) -> Digest:
    """
    Digest of the visible session snapshot, anchored to the chain step
    that produced it. This is what gets published as the session state hash.
    """
    return hash_parts(
        chain_hash,
        session.id,
        roster_digest(session.roster),
        session.is_active,
        session.turns.current_player_index,
        session.last_action_timestamp,
        session.turns.turn_count,
        session.turns.direction_clockwise,
    )


def to_hex(digest: Digest) -> str:
    return digest.hex()


def from_hex(value: str) -> Digest:
    try:
        digest = bytes.fromhex(value)
    except (TypeError, ValueError):
        raise errors.InvalidDigest(f"Cannot parse digest {value!r}.")

    return ensure_digest(digest)


def ensure_digest(value: bytes) -> Digest:
    if len(value) != DIGEST_SIZE:
        raise errors.InvalidDigest(
            f"Digest must be {DIGEST_SIZE} bytes long, got {len(value)}."
        )

    return value

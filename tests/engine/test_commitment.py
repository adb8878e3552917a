import hashlib

import pytest

from unoledger import errors
from unoledger.engine import commitment


def sha256(*chunks: bytes) -> bytes:
    return hashlib.sha256(b"".join(chunks)).digest()


def test_encode_parts():
    assert commitment.encode(True) == b"\x01"
    assert commitment.encode(False) == b"\x00"
    assert commitment.encode(1) == b"\x00\x00\x00\x00\x00\x00\x00\x01"
    assert commitment.encode("bob") == b"bob"
    assert commitment.encode(b"\xff") == b"\xff"


def test_encode_rejects_negative_integer():
    with pytest.raises(ValueError):
        commitment.encode(-1)


def test_encode_rejects_unknown_type():
    with pytest.raises(TypeError):
        commitment.encode(1.5)  # type: ignore[arg-type]


def test_hash_parts_concatenates_encoded_parts():
    assert commitment.hash_parts(1, "a", True) == sha256(
        (1).to_bytes(8, "big"), b"a", b"\x01"
    )


def test_fold_hashes_prior_then_commitment():
    prior = commitment.hash_parts("prior")
    action = commitment.hash_parts("action")

    assert commitment.fold(prior, action) == sha256(prior, action)
    assert commitment.fold(prior, action) != commitment.fold(action, prior)


def test_empty_roster_digest_is_zero_accumulator():
    assert commitment.roster_digest([]) == commitment.EMPTY_DIGEST


def test_roster_digest_folds_member_digests():
    alice, bob = sha256(b"alice"), sha256(b"bob")
    expected = sha256(sha256(commitment.EMPTY_DIGEST, alice), bob)

    assert commitment.roster_digest(["alice", "bob"]) == expected


def test_roster_digest_depends_on_order():
    assert commitment.roster_digest(["alice", "bob"]) != commitment.roster_digest(
        ["bob", "alice"]
    )


def test_initial_state_hash():
    roster_digest = commitment.roster_digest(["alice"])
    inner = sha256((100).to_bytes(8, "big"), b"alice", roster_digest)
    expected = sha256((1).to_bytes(8, "big"), inner)

    assert commitment.initial_state_hash(1, 100, "alice", ["alice"]) == expected


def test_hex_round_trip():
    digest = commitment.hash_parts("x")

    assert commitment.from_hex(commitment.to_hex(digest)) == digest


@pytest.mark.parametrize("value", ["zz", "abc", "00" * 31, "00" * 33])
def test_from_hex_rejects_malformed_digest(value):
    with pytest.raises(errors.InvalidDigest):
        commitment.from_hex(value)


def test_invalid_digest_is_value_error():
    with pytest.raises(ValueError):
        commitment.ensure_digest(b"short")


def test_move_commitment_prefixes_lengths():
    expected = sha256(
        (5).to_bytes(8, "big"), b"red 7", (6).to_bytes(8, "big"), b"pepper"
    )

    assert commitment.move_commitment("red 7", "pepper") == expected


def test_move_commitment_binds_move_to_salt():
    assert commitment.move_commitment("red 7", "x") != commitment.move_commitment("red 7x")
    assert commitment.move_commitment("red 7", "x") != commitment.move_commitment("red ", "7x")

from __future__ import annotations

import hashlib

import pytest

from tickets.commit_reveal import (
    batch_commitment_hash,
    batch_verify_reveals,
    commit,
    commit_with_chain,
    commitment_hash,
    ensure_batch_reveals,
    is_reveal_timely,
    mark_revealed,
    open_commitment,
    verify_reveal,
)
from tickets.errors import (
    AlreadyRevealed,
    BadReveal,
    LengthMismatch,
    RevealTooEarly,
    RevealTooLate,
)
from tickets.types.core import Reveal

SEED = bytes(range(32))


def mk_seed(i: int) -> bytes:
    return bytes([i]) * 32


def expected_hash(seed: bytes, nonce: int) -> bytes:
    return hashlib.sha256(seed + nonce.to_bytes(4, "little")).digest()


def test_commit_matches_sha256_of_seed_and_le_nonce():
    h, c = commit(SEED, 7, "alice", 100)
    assert h == expected_hash(SEED, 7)
    assert c.hash == h
    assert c.committed_at == 100
    assert c.committer == "alice"
    assert c.revealed is False


@pytest.mark.parametrize("nonce", [0, 1, 0xDEADBEEF, 0xFFFFFFFF])
def test_round_trip(nonce: int):
    h, _ = commit(SEED, nonce, None, 0)
    assert verify_reveal(h, Reveal(seed=SEED, nonce=nonce, revealed_at=12345))


def test_any_seed_byte_flip_is_detected():
    h, _ = commit(SEED, 42, "alice", 0)
    for i in range(32):
        tampered = bytearray(SEED)
        tampered[i] ^= 0x01
        assert not verify_reveal(h, Reveal(seed=bytes(tampered), nonce=42, revealed_at=0))


@pytest.mark.parametrize("other", [43, 41, 42 ^ (1 << 24), 42 ^ (1 << 8)])
def test_nonce_change_is_detected(other: int):
    h, _ = commit(SEED, 42, "alice", 0)
    assert not verify_reveal(h, Reveal(seed=SEED, nonce=other, revealed_at=0))


def test_commit_rejects_malformed_inputs():
    with pytest.raises(ValueError):
        commit(SEED[:31], 1, None, 0)
    with pytest.raises(ValueError):
        commit(SEED + b"\x00", 1, None, 0)
    with pytest.raises(ValueError):
        commit(SEED, -1, None, 0)
    with pytest.raises(ValueError):
        commit(SEED, 1 << 32, None, 0)
    with pytest.raises(TypeError):
        commit(SEED, True, None, 0)


def test_verify_fails_closed_on_malformed_reveal():
    h, _ = commit(SEED, 1, None, 0)
    # A short seed must not be zero-padded into a match
    short = SEED[:31]
    h_short_padded = expected_hash(short + b"\x00", 1)
    assert not verify_reveal(h_short_padded, Reveal(seed=short, nonce=1, revealed_at=0))
    assert not verify_reveal(h, Reveal(seed=SEED, nonce=1 << 32, revealed_at=0))
    assert not verify_reveal(h, Reveal(seed=SEED, nonce=-1, revealed_at=0))
    assert not verify_reveal(h[:31], Reveal(seed=SEED, nonce=1, revealed_at=0))
    assert not verify_reveal("not-bytes", Reveal(seed=SEED, nonce=1, revealed_at=0))  # type: ignore[arg-type]


def test_mark_revealed_flips_once():
    _, c = commit(SEED, 1, "alice", 0)
    mark_revealed(c)
    assert c.revealed is True
    with pytest.raises(AlreadyRevealed):
        mark_revealed(c)
    assert c.revealed is True


@pytest.mark.parametrize(
    "revealed_at,expected",
    [
        (99, False),
        (100, True),  # min bound inclusive
        (150, True),
        (200, True),  # max bound inclusive
        (201, False),
    ],
)
def test_reveal_window_is_inclusive(revealed_at: int, expected: bool):
    r = Reveal(seed=SEED, nonce=0, revealed_at=revealed_at)
    assert is_reveal_timely(r, 100, 200) is expected


def test_batch_verify_all_or_nothing():
    seeds = [mk_seed(i) for i in range(4)]
    hashes = [commitment_hash(s, i) for i, s in enumerate(seeds)]
    reveals = [Reveal(seed=s, nonce=i, revealed_at=0) for i, s in enumerate(seeds)]
    assert batch_verify_reveals(hashes, reveals)

    bad = list(reveals)
    bad[2] = Reveal(seed=seeds[2], nonce=99, revealed_at=0)
    assert not batch_verify_reveals(hashes, bad)

    # Swapped order does not verify index-wise
    assert not batch_verify_reveals(hashes, list(reversed(reveals)))


def test_batch_verify_length_mismatch_fails_closed():
    h = commitment_hash(SEED, 0)
    r = Reveal(seed=SEED, nonce=0, revealed_at=0)
    assert batch_verify_reveals([h, h], [r]) is False
    assert batch_verify_reveals([h], [r, r]) is False


def test_ensure_batch_reveals_reports_cause():
    seeds = [mk_seed(i) for i in range(3)]
    hashes = [commitment_hash(s, 0) for s in seeds]
    reveals = [Reveal(seed=s, nonce=0, revealed_at=0) for s in seeds]
    ensure_batch_reveals(hashes, reveals)

    with pytest.raises(LengthMismatch) as ei:
        ensure_batch_reveals(hashes, reveals[:2])
    assert ei.value.commitments == 3 and ei.value.reveals == 2

    reveals[1] = Reveal(seed=mk_seed(9), nonce=0, revealed_at=0)
    with pytest.raises(BadReveal) as ei2:
        ensure_batch_reveals(hashes, reveals)
    assert ei2.value.index == 1
    assert ei2.value.code == "bad_reveal"


def test_batch_commitment_hash_is_ordered_concatenation():
    a, b = mk_seed(1), mk_seed(2)
    assert batch_commitment_hash([a, b]) == hashlib.sha256(a + b).digest()
    assert batch_commitment_hash([a, b]) != batch_commitment_hash([b, a])
    assert batch_commitment_hash([]) == hashlib.sha256(b"").digest()
    with pytest.raises(ValueError):
        batch_commitment_hash([a, b"\x00" * 16])


def test_commit_with_chain_links_previous_digest():
    genesis = commit_with_chain(SEED, 1)
    assert genesis == expected_hash(SEED, 1)

    nxt = commit_with_chain(mk_seed(7), 2, genesis, "alice")
    assert nxt == hashlib.sha256(mk_seed(7) + (2).to_bytes(4, "little") + genesis).digest()

    # Rewriting an earlier round changes every later link
    forged_genesis = commit_with_chain(mk_seed(8), 1)
    assert commit_with_chain(mk_seed(7), 2, forged_genesis) != nxt

    # Committer is not bound into the digest
    assert commit_with_chain(mk_seed(7), 2, genesis, "bob") == nxt

    with pytest.raises(ValueError):
        commit_with_chain(SEED, 1, genesis[:31])


def test_open_commitment_flow_and_metrics(metrics, registry):
    _, c = commit(SEED, 5, "alice", 10)

    with pytest.raises(RevealTooEarly):
        open_commitment(c, Reveal(seed=SEED, nonce=5, revealed_at=99), 100, 200, metrics=metrics)
    with pytest.raises(RevealTooLate):
        open_commitment(c, Reveal(seed=SEED, nonce=5, revealed_at=201), 100, 200, metrics=metrics)
    with pytest.raises(BadReveal):
        open_commitment(c, Reveal(seed=SEED, nonce=6, revealed_at=150), 100, 200, metrics=metrics)
    assert c.revealed is False

    open_commitment(c, Reveal(seed=SEED, nonce=5, revealed_at=150), 100, 200, metrics=metrics)
    assert c.revealed is True

    with pytest.raises(AlreadyRevealed):
        open_commitment(c, Reveal(seed=SEED, nonce=5, revealed_at=150), 100, 200, metrics=metrics)

    def count(outcome: str) -> float:
        return registry.get_sample_value("tickets_reveals_total", {"outcome": outcome}) or 0.0

    assert count("too_early") == 1.0
    assert count("too_late") == 1.0
    assert count("bad_reveal") == 1.0
    assert count("accepted") == 1.0
    assert count("duplicate") == 1.0

from __future__ import annotations

import json

from typer.testing import CliRunner

from tickets.cli import app
from tickets.commit_reveal import commit_with_chain, commitment_hash
from tickets.utils.bytes import to_hex

runner = CliRunner()
SEED = to_hex(bytes(range(32)))


def run(*args: str):
    return runner.invoke(app, list(args))


def test_quote_demand_curve():
    r = run("quote", "--base-price", "100", "--max-supply", "10", "--minted", "4")
    assert r.exit_code == 0, r.output
    out = json.loads(r.stdout)
    assert (out["demand_price"], out["price"], out["source"]) == (110, 110, "neutral")


def test_quote_with_oracle_and_freeze():
    args = ["quote", "-b", "100", "-s", "10", "--oracle-price", "110", "--reference-price", "100"]
    out = json.loads(run(*args).stdout)
    assert (out["price"], out["multiplier"], out["source"]) == (110, 11000, "primary")

    out = json.loads(run(*args, "--frozen").stdout)
    assert (out["price"], out["source"]) == (100, "frozen")


def test_quote_clamps_and_strategies():
    out = json.loads(run("quote", "-b", "100", "-s", "10", "--strategy", "ab_test_b", "--ceiling", "115").stdout)
    assert (out["demand_price"], out["price"]) == (120, 115)


def test_quote_rejects_bad_parameters():
    r = run("quote", "--base-price", "0", "--max-supply", "10")
    assert r.exit_code == 2
    r = run("quote", "-b", "100", "-s", "10", "--floor", "500", "--ceiling", "100")
    assert r.exit_code == 2


def test_commit_then_verify():
    r = run("commit", "--nonce", "7", "--seed", SEED)
    assert r.exit_code == 0
    out = json.loads(r.stdout)
    assert out["commitment"] == to_hex(commitment_hash(bytes(range(32)), 7))

    ok = run("verify", "--commitment", out["commitment"], "--seed", SEED, "--nonce", "7")
    assert ok.exit_code == 0 and json.loads(ok.stdout) == {"valid": True}
    bad = run("verify", "--commitment", out["commitment"], "--seed", SEED, "--nonce", "8")
    assert bad.exit_code == 1 and json.loads(bad.stdout) == {"valid": False}


def test_commit_generates_seed_when_omitted():
    out = json.loads(run("commit", "--nonce", "1").stdout)
    assert len(bytes.fromhex(out["seed"][2:])) == 32
    assert out["commitment"] == to_hex(commitment_hash(bytes.fromhex(out["seed"][2:]), 1))


def test_commit_rejects_short_seed():
    assert run("commit", "--nonce", "1", "--seed", "0xabcd").exit_code == 2


def test_batch_hash_and_chain():
    out = json.loads(run("batch-hash", SEED, SEED).stdout)
    assert out["count"] == 2

    prev = to_hex(b"\xaa" * 32)
    out = json.loads(run("chain", "--seed", SEED, "--nonce", "3", "--previous", prev).stdout)
    assert out["linked"] is True
    assert out["hash"] == to_hex(commit_with_chain(bytes(range(32)), 3, b"\xaa" * 32))
    out = json.loads(run("chain", "--seed", SEED, "--nonce", "3").stdout)
    assert (out["hash"], out["linked"]) == (to_hex(commitment_hash(bytes(range(32)), 3)), False)

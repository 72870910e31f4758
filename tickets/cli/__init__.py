"""
tickets.cli
-----------

Offline CLI for price quotes and commit–reveal tooling.

Commands:
  - quote      : Price one tier through the full engine (demand curve, optional
                 oracle multiplier, freeze, floor/ceiling clamp).
  - commit     : Compute H(seed || nonce_le) for a seed (random if omitted).
  - verify     : Check a (seed, nonce) reveal against a commitment.
  - batch-hash : Cohort anchor over a list of seeds.
  - chain      : Chained commitment H(seed || nonce_le || previous?).

Example:
  python -m tickets.cli quote --base-price 100 --max-supply 10 --minted 4
  python -m tickets.cli commit --nonce 7
"""

from __future__ import annotations

import json
import secrets
import sys
from typing import List, NoReturn, Optional, Sequence

import typer

from ..commit_reveal import batch_commitment_hash, commit_with_chain, commitment_hash, verify_reveal
from ..config import PricingConfig
from ..constants import DEFAULT_FEED_TIMEOUT_S, SEED_LEN
from ..errors import TicketError
from ..oracle import HTTPFeedResolver, OracleAdapter, StaticFeedResolver, StaticPriceFeed
from ..pricing.engine import TierPricingEngine
from ..store import MemoryKeyValue
from ..types.core import Reveal
from ..utils.bytes import from_hex, to_hex
from ..utils.time import ManualClock, SystemClock

__all__ = ["app", "main"]

_CLI_TIER = "CLI"
_CLI_FEED = "static://cli"

app = typer.Typer(
    name="tickets",
    help="Soulbound ticket pricing and commit–reveal tools.",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(msg: str, code: int = 2) -> NoReturn:
    typer.echo(msg, err=True)
    raise typer.Exit(code=code)


def _hex_arg(value: str, what: str) -> bytes:
    try:
        return from_hex(value)
    except ValueError:
        _fail(f"{what} must be hex (0x-prefixed or bare)")


@app.command("quote")
def cmd_quote(
    base_price: int = typer.Option(..., "--base-price", "-b", help="Tier base price (> 0)."),
    max_supply: int = typer.Option(..., "--max-supply", "-s", help="Tier capacity (> 0)."),
    minted: int = typer.Option(0, "--minted", "-m", min=0, help="Tickets already minted."),
    strategy: str = typer.Option("standard", "--strategy", help="standard | ab_test_a | ab_test_b"),
    oracle_price: Optional[int] = typer.Option(None, "--oracle-price", help="Observed feed price."),
    reference_price: int = typer.Option(0, "--reference-price", help="Feed price meaning 1.0x."),
    floor: Optional[int] = typer.Option(None, "--floor", help="Price floor."),
    ceiling: Optional[int] = typer.Option(None, "--ceiling", help="Price ceiling."),
    frozen: bool = typer.Option(False, "--frozen", help="Suppress the oracle multiplier."),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="PricingConfig JSON/YAML file (feeds resolved over HTTP)."
    ),
) -> None:
    """Quote a tier price; prints the breakdown as JSON."""
    try:
        if config is not None:
            cfg = PricingConfig.from_file(config)
            adapter = OracleAdapter(HTTPFeedResolver(timeout=DEFAULT_FEED_TIMEOUT_S), SystemClock())
        else:
            cfg = PricingConfig()
            feed = StaticPriceFeed()
            adapter = OracleAdapter(StaticFeedResolver({_CLI_FEED: feed}), ManualClock(0))
            if oracle_price is not None:
                feed.set_price(_CLI_TIER, oracle_price, observed_at=0)
                cfg = cfg.with_changes(
                    oracle_address=_CLI_FEED,
                    oracle_pair_id=_CLI_TIER,
                    oracle_reference_price=reference_price,
                )
        overrides = {}
        if floor is not None:
            overrides["price_floor"] = floor
        if ceiling is not None:
            overrides["price_ceiling"] = ceiling
        if frozen:
            overrides["is_frozen"] = True
        if overrides:
            cfg = cfg.with_changes(**overrides)

        engine = TierPricingEngine(MemoryKeyValue(), adapter, config=cfg)
        engine.create_tier(_CLI_TIER, _CLI_TIER, base_price, max_supply, strategy)
        if minted:
            engine.mint(_CLI_TIER, minted, 0)
        q = engine.quote(_CLI_TIER)
    except TicketError as e:
        _fail(json.dumps(e.to_dict()))
    except OSError as e:
        _fail(f"cannot read config: {e}")
    out = q.to_dict()
    out.pop("tier_key")
    typer.echo(json.dumps(out, indent=2))


@app.command("commit")
def cmd_commit(
    nonce: int = typer.Option(..., "--nonce", "-n", min=0, max=0xFFFFFFFF, help="u32 nonce."),
    seed: Optional[str] = typer.Option(None, "--seed", help="32-byte hex seed (random if omitted)."),
) -> None:
    """
    Compute a commitment. When no seed is given a fresh one is generated and
    printed; keep it secret until the reveal.
    """
    seed_b = secrets.token_bytes(SEED_LEN) if seed is None else _hex_arg(seed, "seed")
    try:
        h = commitment_hash(seed_b, nonce)
    except ValueError as e:
        _fail(str(e))
    typer.echo(json.dumps({"seed": to_hex(seed_b), "nonce": nonce, "commitment": to_hex(h)}, indent=2))


@app.command("verify")
def cmd_verify(
    commitment: str = typer.Option(..., "--commitment", help="0x-hex commitment."),
    seed: str = typer.Option(..., "--seed", help="Revealed 32-byte hex seed."),
    nonce: int = typer.Option(..., "--nonce", "-n", help="Revealed nonce."),
) -> None:
    """Exit 0 when the reveal opens the commitment, 1 otherwise."""
    ok = verify_reveal(
        _hex_arg(commitment, "commitment"),
        Reveal(seed=_hex_arg(seed, "seed"), nonce=nonce, revealed_at=0),
    )
    typer.echo(json.dumps({"valid": ok}))
    if not ok:
        raise typer.Exit(code=1)


@app.command("batch-hash")
def cmd_batch_hash(
    seeds: List[str] = typer.Argument(None, help="32-byte hex seeds, in order."),
) -> None:
    """Hash the concatenation of the seeds (cohort fairness anchor)."""
    try:
        h = batch_commitment_hash([_hex_arg(s, "seed") for s in (seeds or [])])
    except ValueError as e:
        _fail(str(e))
    typer.echo(json.dumps({"count": len(seeds or []), "hash": to_hex(h)}))


@app.command("chain")
def cmd_chain(
    seed: str = typer.Option(..., "--seed", help="32-byte hex seed."),
    nonce: int = typer.Option(..., "--nonce", "-n", help="u32 nonce."),
    previous: Optional[str] = typer.Option(None, "--previous", "-p", help="Previous round digest."),
) -> None:
    """Chained commitment linking this round to the previous one."""
    try:
        h = commit_with_chain(
            _hex_arg(seed, "seed"),
            nonce,
            None if previous is None else _hex_arg(previous, "previous"),
        )
    except (TypeError, ValueError) as e:
        _fail(str(e))
    typer.echo(json.dumps({"hash": to_hex(h), "linked": previous is not None}))


def main(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - thin wrapper
    """Entry-point for the `tickets` console script and `python -m tickets.cli`."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="tickets")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()

from __future__ import annotations

import pytest

from tickets.store import MemoryKeyValue, open_store
from tickets.store.kv import Buckets
from tickets.store.sqlite import SQLiteKeyValue
from tickets.types.core import PricingStrategy, Ticket, Tier


@pytest.fixture(params=["memory", "sqlite"])
def kv(request, tmp_path):
    if request.param == "memory":
        store = MemoryKeyValue()
    else:
        store = SQLiteKeyValue(str(tmp_path / "kv.db"))
    yield store
    store.close()


def test_basic_operations(kv):
    assert kv.get(b"a") is None
    kv.put(b"a", b"1")
    assert kv.get(b"a") == b"1" and kv.has(b"a")
    kv.put(b"a", b"2")
    assert kv.get(b"a") == b"2"
    kv.delete(b"a")
    kv.delete(b"a")
    assert not kv.has(b"a")
    with pytest.raises(TypeError):
        kv.put("a", b"1")  # type: ignore[arg-type]


def test_iter_prefix_is_ordered_and_bounded(kv):
    for k in (b"\x01b", b"\x01a", b"\x02a", b"\x01\xff", b"\x00z"):
        kv.put(k, k)
    assert [k for k, _ in kv.iter_prefix(b"\x01")] == [b"\x01a", b"\x01b", b"\x01\xff"]


def test_transaction_rolls_back_on_error(kv):
    kv.put(b"keep", b"1")
    with pytest.raises(RuntimeError):
        with kv.transaction():
            kv.put(b"keep", b"2")
            kv.put(b"new", b"x")
            with kv.transaction():
                kv.delete(b"keep")
            raise RuntimeError("boom")
    assert kv.get(b"keep") == b"1"
    assert not kv.has(b"new")

    with kv.transaction():
        kv.put(b"new", b"y")
    assert kv.get(b"new") == b"y"


def test_open_store_uris(tmp_path):
    assert isinstance(open_store("memory://"), MemoryKeyValue)
    s = open_store(f"sqlite:///{tmp_path}/data/tickets.db")
    assert isinstance(s, SQLiteKeyValue)
    assert s.path == f"{tmp_path}/data/tickets.db"
    s.close()
    with pytest.raises(ValueError):
        open_store("redis://localhost")


def test_buckets_round_trip_records(kv):
    b = Buckets(kv)
    b.put_tier("VIP", Tier("VIP", 500, 500, 5, pricing_strategy=PricingStrategy.AB_TEST_B))
    b.put_tier("GA", Tier("General", 100, 100, 10, minted=3))
    assert [k for k, _ in b.iter_tiers()] == ["GA", "VIP"]
    assert b.get_tier("VIP").pricing_strategy is PricingStrategy.AB_TEST_B
    assert b.get_tier("nope") is None

    b.put_ticket(Ticket(2, "GA", "bob", 10, 100))
    b.put_ticket(Ticket(1, "GA", "alice", 5, 0))
    assert [t.token_id for t in b.iter_tickets()] == [1, 2]

    b.put_owner(1, "alice")
    b.put_balance("alice", 1)
    assert (b.get_owner(1), b.get_balance("alice"), b.get_balance("nobody")) == ("alice", 1, 0)
    b.del_owner(1)
    assert b.get_owner(1) is None

    b.put_meta_json(Buckets.META_TOKEN_COUNTER, 7)
    assert b.get_meta_json(Buckets.META_TOKEN_COUNTER) == 7

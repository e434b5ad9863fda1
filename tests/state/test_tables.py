from __future__ import annotations

import pytest

from stakeboost.state.asset import Asset, Symbol
from stakeboost.state.records import (
    ACCOUNTS,
    STAKE_STATS,
    STAKES,
    STATS,
    Account,
    CurrencyStats,
    StakePosition,
    StakeStat,
    record_from_dict,
    record_to_dict,
)
from stakeboost.state.tables import TableStore


TOK = Symbol(0, "TOK")


def _acct(amount: int) -> Account:
    return Account(balance=Asset(amount, TOK))


def _position(pid: int, amount: int = 10) -> StakePosition:
    return StakePosition(id=pid, quantity=Asset(amount, TOK), start=100, duration_index=0)


def test_payer_is_kept_on_update() -> None:
    store = TableStore()
    store.upsert(ACCOUNTS, "alice", "TOK", _acct(1), payer="bob")
    store.upsert(ACCOUNTS, "alice", "TOK", _acct(5), payer="alice")
    assert store.get(ACCOUNTS, "alice", "TOK") == _acct(5)
    assert store.payer_of(ACCOUNTS, "alice", "TOK") == "bob"
    assert store.rows_billed_to("bob") == 1
    assert store.rows_billed_to("alice") == 0


def test_upsert_rejects_wrong_record_type() -> None:
    store = TableStore()
    with pytest.raises(TypeError):
        store.upsert(ACCOUNTS, "alice", "TOK", _position(0), payer="alice")
    with pytest.raises(KeyError):
        store.upsert("nope", "alice", "TOK", _acct(1), payer="alice")


def test_erase_removes_empty_scope_and_missing_row_raises() -> None:
    store = TableStore()
    store.upsert(ACCOUNTS, "alice", "TOK", _acct(0), payer="alice")
    assert store.scopes(ACCOUNTS) == ["alice"]
    store.erase(ACCOUNTS, "alice", "TOK")
    assert store.scopes(ACCOUNTS) == []
    assert len(store) == 0
    with pytest.raises(KeyError):
        store.erase(ACCOUNTS, "alice", "TOK")


def test_rows_iterate_in_ascending_key_order() -> None:
    store = TableStore()
    for name in ("carol", "alice", "bob"):
        store.upsert(STAKE_STATS, "TOK", name, StakeStat(name, Asset(1, TOK), 50), payer="token")
    assert [k for k, _ in store.rows(STAKE_STATS, "TOK")] == ["alice", "bob", "carol"]
    assert [(s, k) for s, k, _ in store.iter_all(STAKE_STATS)] == [("TOK", "alice"), ("TOK", "bob"), ("TOK", "carol")]


def test_primary_keys_are_never_reused() -> None:
    store = TableStore()
    assert store.next_primary_key(STAKES, "alice") == 0
    store.upsert(STAKES, "alice", 0, _position(0), payer="token")
    store.upsert(STAKES, "alice", 1, _position(1), payer="token")
    store.erase(STAKES, "alice", 1)
    store.erase(STAKES, "alice", 0)
    assert store.next_primary_key(STAKES, "alice") == 2
    assert store.next_primary_key(STAKES, "bob") == 0
    with pytest.raises(ValueError):
        store.set_next_primary_key(STAKES, "alice", 1)


def test_copy_is_isolated() -> None:
    store = TableStore()
    store.upsert(ACCOUNTS, "alice", "TOK", _acct(1), payer="alice")
    clone = store.copy()
    clone.upsert(ACCOUNTS, "alice", "TOK", _acct(9), payer="alice")
    clone.upsert(ACCOUNTS, "bob", "TOK", _acct(2), payer="bob")
    clone.upsert(STAKES, "bob", 0, _position(0), payer="token")
    assert store.get(ACCOUNTS, "alice", "TOK") == _acct(1)
    assert store.get(ACCOUNTS, "bob", "TOK") is None
    assert store.next_primary_key(STAKES, "bob") == 0


def test_copy_on_write_isolates_both_sides() -> None:
    store = TableStore()
    for name in ("alice", "bob", "carol"):
        store.upsert(ACCOUNTS, name, "TOK", _acct(10), payer=name)
    store.upsert(STAKES, "bob", 0, _position(0), payer="token")
    clone = store.copy()

    # Untouched scopes stay shared until one side writes.
    assert clone._tables[ACCOUNTS]["carol"] is store._tables[ACCOUNTS]["carol"]

    store.upsert(ACCOUNTS, "alice", "TOK", _acct(1), payer="alice")
    clone.erase(STAKES, "bob", 0)
    clone.upsert(ACCOUNTS, "bob", "TOK", _acct(7), payer="bob")
    assert clone.get(ACCOUNTS, "alice", "TOK") == _acct(10)
    assert store.get(ACCOUNTS, "bob", "TOK") == _acct(10)
    assert store.rows(STAKES, "bob") == [(0, _position(0))]
    assert clone.rows(STAKES, "bob") == []
    assert clone._tables[ACCOUNTS]["carol"] is store._tables[ACCOUNTS]["carol"]

    # A clone of a clone is isolated from both.
    second = clone.copy()
    second.upsert(ACCOUNTS, "carol", "TOK", _acct(3), payer="carol")
    assert store.get(ACCOUNTS, "carol", "TOK") == _acct(10)
    assert clone.get(ACCOUNTS, "carol", "TOK") == _acct(10)
    assert second.get(ACCOUNTS, "carol", "TOK") == _acct(3)


def test_record_codec_roundtrip_keeps_precision() -> None:
    sym = Symbol(4, "TOK")
    stats = CurrencyStats(
        supply=Asset(0, sym),
        max_supply=Asset(10_000_000, sym),
        created=5,
        updated=7,
        boosts_issued=2,
    )
    encoded = record_to_dict(STATS, stats)
    assert encoded["supply"] == "0@4,TOK"
    assert record_from_dict(STATS, encoded) == stats


def test_records_validate_invariants() -> None:
    with pytest.raises(ValueError):
        Account(balance=Asset(-1, TOK))
    with pytest.raises(ValueError):
        CurrencyStats(supply=Asset(11, TOK), max_supply=Asset(10, TOK), created=0, updated=0)
    with pytest.raises(ValueError):
        StakeStat("alice", Asset(1, TOK), -5)

from __future__ import annotations

import json

import pytest

from stakeboost.core.config import TokenConfig
from stakeboost.core.contract import TokenContract
from stakeboost.integration.host import InMemoryHost
from stakeboost.integration.snapshot import LEDGER_SNAPSHOT_VERSION, snapshot_from_store, store_from_snapshot
from stakeboost.state.asset import Asset, Symbol
from stakeboost.state.records import STAKES
from stakeboost.state.state_root import compute_state_root


TOK = Symbol(0, "TOK")


def _tok(n: int) -> Asset:
    return Asset(n, TOK)


def _replay() -> TokenContract:
    host = InMemoryHost(now=1_000)
    for name in ("alice", "bob", "carol"):
        host.create_account(name)
    c = TokenContract(TokenConfig(), host, "token")
    c.create(_tok(1_000), auth={"token"})
    c.transfer("token", "alice", _tok(300), auth={"token"})
    c.transfer("token", "bob", _tok(300), auth={"token"})
    c.add_stake("alice", _tok(100), 0, auth={"alice"})
    c.add_stake("bob", _tok(50), 3, auth={"bob"})
    c.update(TOK, auth={"token"})
    host.run_until(c, 1_240)
    c.transfer("bob", "carol", _tok(120), "rent", auth={"bob"})
    return c


def test_snapshot_round_trip_preserves_rows_payers_and_counters() -> None:
    c = _replay()
    snap = snapshot_from_store(c.store)
    assert snap.data["version"] == LEDGER_SNAPSHOT_VERSION

    decoded = json.loads(snap.canonical_bytes())
    restored = store_from_snapshot(decoded)
    assert compute_state_root(restored) == compute_state_root(c.store)
    assert snapshot_from_store(restored).commitment_hex() == snap.commitment_hex()
    # alice's only position expired; the id counter must survive the round trip.
    assert restored.rows(STAKES, "alice") == []
    assert restored.next_primary_key(STAKES, "alice") == 1


def test_replay_is_deterministic() -> None:
    a, b = _replay(), _replay()
    assert snapshot_from_store(a.store).commitment_hex() == snapshot_from_store(b.store).commitment_hex()
    # boosts fall due at 1120 and 1240
    assert a.get_stats("TOK").boosts_issued == 2


def test_restored_store_drives_a_contract() -> None:
    c = _replay()
    restored = store_from_snapshot(json.loads(snapshot_from_store(c.store).canonical_bytes()))
    clone = TokenContract(TokenConfig(), c.host, "token", store=restored)
    assert clone.get_balance("carol", "TOK") == c.get_balance("carol", "TOK")
    assert clone.get_stake_weight("bob", TOK) == 100 * 50
    pos = clone.add_stake("alice", _tok(10), 0, auth={"alice"})
    assert pos.id == 1


@pytest.mark.parametrize(
    "snapshot, exc",
    [
        ([], TypeError),
        ({"version": 2}, ValueError),
        ({"version": True}, ValueError),
        ({"tables": {"nope": []}}, ValueError),
        ({"tables": {"accounts": {}}}, TypeError),
        ({"tables": {"accounts": [{"scope": "a", "key": True, "payer": "a", "record": {}}]}}, ValueError),
        ({"tables": []}, TypeError),
        ({"next_keys": {}}, TypeError),
        ({"next_keys": [{"table": "stakes", "scope": "a", "next": -1}]}, ValueError),
    ],
)
def test_malformed_snapshots_are_rejected(snapshot, exc) -> None:
    with pytest.raises(exc):
        store_from_snapshot(snapshot)

"""
Portable snapshots of a ledger `TableStore`.

A snapshot is the canonical row view (rows, payers, primary-key counters)
plus a version number. Restoring it yields a store with the same state root,
so a node can resume from a snapshot and keep replaying operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..state.canonical import canonical_digest, canonical_json_bytes
from ..state.records import RECORD_CODECS, record_from_dict
from ..state.state_root import canonical_rows
from ..state.tables import TableStore


LEDGER_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Versioned snapshot of a `TableStore`.

    `commitment_hex` is computed over `data`, which never contains it.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_hex(self) -> str:
        return canonical_digest("ledger_snapshot", self.data, version=self.version)


def snapshot_from_store(store: TableStore, *, version: int = LEDGER_SNAPSHOT_VERSION) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    data: Dict[str, Any] = {"version": int(version)}
    data.update(canonical_rows(store))
    return LedgerSnapshot(version=version, data=data)


def store_from_snapshot(snapshot: Mapping[str, Any]) -> TableStore:
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    version = snapshot.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    tables = snapshot.get("tables", {})
    if not isinstance(tables, Mapping):
        raise TypeError("snapshot.tables must be an object")
    unknown = sorted(set(tables) - set(RECORD_CODECS))
    if unknown:
        raise ValueError(f"unknown tables in snapshot: {', '.join(unknown)}")

    store = TableStore()
    for table, entries in tables.items():
        if not isinstance(entries, list):
            raise TypeError(f"snapshot.tables.{table} must be a list")
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise TypeError(f"snapshot.tables.{table} entries must be objects")
            scope, key, payer = entry.get("scope"), entry.get("key"), entry.get("payer")
            if not isinstance(scope, str) or not isinstance(payer, str):
                raise ValueError(f"invalid {table} entry (scope/payer)")
            if isinstance(key, bool) or not isinstance(key, (int, str)):
                raise ValueError(f"invalid {table} entry (key)")
            if store.contains(table, scope, key):
                raise ValueError(f"duplicate {table} entry ({scope}, {key!r})")
            store.upsert(table, scope, key, record_from_dict(table, entry.get("record")), payer=payer)

    counters = snapshot.get("next_keys", [])
    if not isinstance(counters, list):
        raise TypeError("snapshot.next_keys must be a list")
    for entry in counters:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.next_keys entries must be objects")
        table, scope, value = entry.get("table"), entry.get("scope"), entry.get("next")
        if not isinstance(table, str) or not isinstance(scope, str):
            raise ValueError("invalid next_keys entry")
        store.set_next_primary_key(table, scope, value)  # type: ignore[arg-type]
    return store

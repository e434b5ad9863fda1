"""
Deterministic state root hashing (v1).

Two stores holding the same logical rows hash identically regardless of the
order in which rows were written. Used by replay tests and by snapshot
commitments.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .canonical import canonical_digest
from .records import RECORD_CODECS, record_to_dict
from .tables import TableStore


STATE_ROOT_VERSION = 1


def _key_to_json(key: Any) -> Any:
    if isinstance(key, bool) or not isinstance(key, (int, str)):
        raise TypeError(f"table keys must be int or str, got {type(key).__name__}")
    return key


def canonical_rows(store: TableStore) -> Dict[str, Any]:
    """
    Plain-data view of every row and primary-key counter, sorted.

    Payers are part of the view: they determine resource accounting and so
    belong to consensus state.
    """
    tables: Dict[str, List[Dict[str, Any]]] = {}
    for table in sorted(RECORD_CODECS):
        entries: List[Dict[str, Any]] = []
        for scope, key, row in store.iter_all(table):
            entries.append(
                {
                    "scope": scope,
                    "key": _key_to_json(key),
                    "payer": row.payer,
                    "record": record_to_dict(table, row.record),
                }
            )
        tables[table] = entries

    counters = [
        {"table": table, "scope": scope, "next": int(value)}
        for (table, scope), value in store.primary_key_counters().items()
    ]
    counters.sort(key=lambda e: (e["table"], e["scope"]))
    return {"tables": tables, "next_keys": counters}


def compute_state_root(store: TableStore) -> str:
    """
    Compute a deterministic state root hash for the ledger tables.

    Returns a 0x-prefixed sha256 digest.
    """
    if not isinstance(store, TableStore):
        raise TypeError("store must be a TableStore")
    return canonical_digest("state_root", canonical_rows(store), version=STATE_ROOT_VERSION)

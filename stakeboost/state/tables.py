"""
Keyed table store: (table, scope, key) -> record, with payer attribution.

This is the in-process stand-in for the host's persistent table storage.

Notes:
- Iteration helpers always return rows in ascending key order; callers must
  not depend on dict insertion order for consensus-critical logic.
- `copy()` is copy-on-write: the two stores share every scope's row dict until
  one of them writes to that scope. Records are immutable, so only the dicts
  need copying. The facade stages every operation on such a copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterator, List, Optional, Set, Tuple

from .records import RECORD_CODECS


Key = Hashable
Scope = str


@dataclass(frozen=True)
class Row:
    record: Any
    payer: str


class TableStore:
    """
    Deterministic multi-table store.

    Each (table, scope) also carries a monotonic primary-key counter used for
    auto-assigned ids; counters never move backwards, so erased ids are not
    reused.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[Scope, Dict[Key, Row]]] = {}
        self._next_keys: Dict[Tuple[str, Scope], int] = {}
        # (table, scope) slots whose row dict another store may still reference
        self._shared: Set[Tuple[str, Scope]] = set()

    def _writable(self, table: str, scope: Scope) -> Dict[Key, Row]:
        rows = self._scope(table, scope, create=True)
        assert rows is not None
        slot = (table, scope)
        if slot in self._shared:
            rows = self._tables[table][scope] = dict(rows)
            self._shared.discard(slot)
        return rows

    def _scope(self, table: str, scope: Scope, *, create: bool = False) -> Optional[Dict[Key, Row]]:
        if table not in RECORD_CODECS:
            raise KeyError(f"unknown table: {table}")
        scopes = self._tables.get(table)
        if scopes is None:
            if not create:
                return None
            scopes = self._tables[table] = {}
        rows = scopes.get(scope)
        if rows is None and create:
            rows = scopes[scope] = {}
        return rows

    def get(self, table: str, scope: Scope, key: Key) -> Optional[Any]:
        """Return the record at (table, scope, key), or None."""
        rows = self._scope(table, scope)
        if rows is None:
            return None
        row = rows.get(key)
        return None if row is None else row.record

    def contains(self, table: str, scope: Scope, key: Key) -> bool:
        rows = self._scope(table, scope)
        return rows is not None and key in rows

    def upsert(self, table: str, scope: Scope, key: Key, record: Any, payer: str) -> None:
        """
        Insert or replace a record.

        `payer` is recorded on insert only; replacing an existing row keeps
        its original payer.
        """
        codec = RECORD_CODECS.get(table)
        if codec is None:
            raise KeyError(f"unknown table: {table}")
        if not isinstance(record, codec[0]):
            raise TypeError(f"{table} rows must be {codec[0].__name__}, got {type(record).__name__}")
        rows = self._writable(table, scope)
        existing = rows.get(key)
        if existing is None:
            if not isinstance(payer, str) or not payer:
                raise ValueError("payer must be a non-empty str")
            rows[key] = Row(record=record, payer=payer)
            if isinstance(key, int) and not isinstance(key, bool):
                slot = (table, scope)
                self._next_keys[slot] = max(self._next_keys.get(slot, 0), key + 1)
        else:
            rows[key] = Row(record=record, payer=existing.payer)

    def erase(self, table: str, scope: Scope, key: Key) -> None:
        rows = self._scope(table, scope)
        if rows is None or key not in rows:
            raise KeyError(f"no row at {table}/{scope}/{key!r}")
        rows = self._writable(table, scope)
        del rows[key]
        if not rows:
            del self._tables[table][scope]

    def rows(self, table: str, scope: Scope) -> List[Tuple[Key, Any]]:
        """All (key, record) pairs in a scope, ascending by key."""
        rows = self._scope(table, scope)
        if not rows:
            return []
        return [(k, rows[k].record) for k in sorted(rows)]

    def scopes(self, table: str) -> List[Scope]:
        if table not in RECORD_CODECS:
            raise KeyError(f"unknown table: {table}")
        return sorted(self._tables.get(table, {}))

    def iter_all(self, table: str) -> Iterator[Tuple[Scope, Key, Row]]:
        """Every row of a table as (scope, key, Row), ascending by (scope, key)."""
        for scope in self.scopes(table):
            rows = self._tables[table][scope]
            for key in sorted(rows):
                yield scope, key, rows[key]

    def payer_of(self, table: str, scope: Scope, key: Key) -> Optional[str]:
        rows = self._scope(table, scope)
        if rows is None or key not in rows:
            return None
        return rows[key].payer

    def rows_billed_to(self, payer: str) -> int:
        """Number of live rows whose storage is billed to `payer`."""
        return sum(
            1
            for table in RECORD_CODECS
            for _scope, _key, row in self.iter_all(table)
            if row.payer == payer
        )

    def next_primary_key(self, table: str, scope: Scope) -> int:
        """The id the next auto-keyed row in (table, scope) will receive."""
        if table not in RECORD_CODECS:
            raise KeyError(f"unknown table: {table}")
        return self._next_keys.get((table, scope), 0)

    def set_next_primary_key(self, table: str, scope: Scope, value: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError("primary key counter must be a non-negative int")
        if value < self.next_primary_key(table, scope):
            raise ValueError("primary key counter cannot move backwards")
        self._next_keys[(table, scope)] = value

    def primary_key_counters(self) -> Dict[Tuple[str, Scope], int]:
        return dict(self._next_keys)

    def copy(self) -> "TableStore":
        """Copy-on-write clone; costs one entry per scope, not per row."""
        clone = TableStore()
        clone._tables = {table: dict(scopes) for table, scopes in self._tables.items()}
        clone._next_keys = dict(self._next_keys)
        slots = {(table, scope) for table, scopes in self._tables.items() for scope in scopes}
        # Both sides now reference the same row dicts.
        self._shared |= slots
        clone._shared = slots
        return clone

    def __len__(self) -> int:
        return sum(len(rows) for scopes in self._tables.values() for rows in scopes.values())

    def __repr__(self) -> str:
        return f"TableStore({len(self)} rows)"

"""Global ledger invariants.

Each function returns True when the invariant holds over the whole store, and
`check_all()` returns the list of violated invariant IDs (empty = all pass).
The facade runs `check_all` after every operation before committing.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple

from ..state.records import ACCOUNTS, STAKE_STATS, STAKES, STATS
from ..state.tables import TableStore
from .config import TokenConfig
from .stake_book import position_weight


def inv_supply_within_cap(store: TableStore, config: TokenConfig) -> bool:
    return all(0 <= row.record.supply.amount <= row.record.max_supply.amount for _s, _k, row in store.iter_all(STATS))


def inv_boosts_within_count(store: TableStore, config: TokenConfig) -> bool:
    return all(row.record.boosts_issued <= config.boost_count for _s, _k, row in store.iter_all(STATS))


def inv_balances_nonneg(store: TableStore, config: TokenConfig) -> bool:
    return all(row.record.balance.amount >= 0 for _s, _k, row in store.iter_all(ACCOUNTS))


def inv_balances_sum_to_supply(store: TableStore, config: TokenConfig) -> bool:
    totals: Dict[str, int] = {}
    for _owner, code, row in store.iter_all(ACCOUNTS):
        totals[code] = totals.get(code, 0) + row.record.balance.amount
    for code, _key, row in store.iter_all(STATS):
        if totals.pop(code, 0) != row.record.supply.amount:
            return False
    # Balances for a symbol without stats would be value out of nowhere.
    return not any(totals.values())


def inv_stake_within_balance(store: TableStore, config: TokenConfig) -> bool:
    for code, staker, row in store.iter_all(STAKE_STATS):
        acct = store.get(ACCOUNTS, staker, code)
        balance = 0 if acct is None else acct.balance.amount
        if row.record.total_stake.amount > balance:
            return False
    return True


def inv_stake_stats_match_positions(store: TableStore, config: TokenConfig) -> bool:
    derived: Dict[Tuple[str, str], Tuple[int, int]] = {}
    for staker, _pid, row in store.iter_all(STAKES):
        pos = row.record
        key = (pos.quantity.symbol.code, staker)
        total, weight = derived.get(key, (0, 0))
        derived[key] = (total + pos.quantity.amount, weight + position_weight(config, pos))

    for code, staker, row in store.iter_all(STAKE_STATS):
        expected = derived.pop((code, staker), (0, 0))
        if (row.record.total_stake.amount, row.record.stake_weight) != expected:
            return False
    return not derived


INVARIANT_REGISTRY: dict[str, Callable[[TableStore, TokenConfig], bool]] = {
    "inv_supply_within_cap": inv_supply_within_cap,
    "inv_boosts_within_count": inv_boosts_within_count,
    "inv_balances_nonneg": inv_balances_nonneg,
    "inv_balances_sum_to_supply": inv_balances_sum_to_supply,
    "inv_stake_within_balance": inv_stake_within_balance,
    "inv_stake_stats_match_positions": inv_stake_stats_match_positions,
}


def check_all(store: TableStore, config: TokenConfig) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(store, config)
    ]

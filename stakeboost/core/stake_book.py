"""
Stake positions and their per-staker aggregate.

`StakePosition` rows (scope = staker) are the source of truth. `StakeStat`
rows (scope = symbol code, key = staker) are a cache of the staker's live
positions for that symbol. The cache is updated incrementally on every new
position and rebuilt from the positions during each expiry sweep; both paths
compute weight as `stake_weights[idx] * quantity.amount`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..errors import (
    DurationIndexOutOfRange,
    InsufficientUnstakedBalance,
    InvalidAmount,
    SymbolMismatch,
    UnknownToken,
)
from ..state.asset import Asset, Symbol
from ..state.records import STAKE_STATS, STAKES, STATS, StakePosition, StakeStat
from ..state.tables import TableStore
from .config import TokenConfig
from .context import TxContext
from .ledger import read_balance


@dataclass(frozen=True)
class ExpirySummary:
    expired_positions: int
    cleared_stakers: Tuple[str, ...]
    remaining_stakers: int


def read_stake_stat(store: TableStore, staker: str, code: str) -> StakeStat | None:
    return store.get(STAKE_STATS, code, staker)


def read_stake(store: TableStore, staker: str, symbol: Symbol) -> Asset:
    stat = read_stake_stat(store, staker, symbol.code)
    if stat is None:
        return Asset.zero(symbol)
    return stat.total_stake


def position_weight(config: TokenConfig, position: StakePosition) -> int:
    return config.weight_for(position.duration_index) * position.quantity.amount


def position_matured(config: TokenConfig, position: StakePosition, now: int) -> bool:
    return position.start + config.duration_for(position.duration_index) <= now


class StakeBook:
    def __init__(self, config: TokenConfig) -> None:
        self.config = config

    # -- mutations -------------------------------------------------------------

    def add_stake(
        self,
        ctx: TxContext,
        staker: str,
        quantity: Asset,
        duration_index: int,
        *,
        authorized: bool = False,
    ) -> StakePosition:
        """
        Lock `quantity` of the staker's unstaked balance for `durations[duration_index]`.

        `authorized=True` is used by the staked-transfer flow, where the
        underlying transfer already proved the sender's authority and the
        receiver never signed.
        """
        if not authorized:
            ctx.require_auth(staker)
        ctx.require_account(staker)
        if (
            not isinstance(duration_index, int)
            or isinstance(duration_index, bool)
            or not (0 <= duration_index < self.config.duration_count)
        ):
            raise DurationIndexOutOfRange(
                f"duration index {duration_index!r} not in [0, {self.config.duration_count})"
            )
        stats = ctx.store.get(STATS, quantity.symbol.code, quantity.symbol.code)
        if stats is None:
            raise UnknownToken(f"token with symbol does not exist: {quantity.symbol.code}")
        if not quantity.is_valid() or quantity.amount <= 0:
            raise InvalidAmount("must stake positive quantity")
        if quantity.symbol != stats.supply.symbol:
            raise SymbolMismatch("symbol precision mismatch")

        unstaked = self.get_unstaked_balance(ctx.store, staker, quantity.symbol)
        if quantity.amount > unstaked.amount:
            raise InsufficientUnstakedBalance(
                f"{staker} has {unstaked} unstaked, cannot stake {quantity}"
            )

        pid = ctx.store.next_primary_key(STAKES, staker)
        position = StakePosition(id=pid, quantity=quantity, start=ctx.now, duration_index=duration_index)
        ctx.store.upsert(STAKES, staker, pid, position, payer=ctx.contract)

        code = quantity.symbol.code
        prev = read_stake_stat(ctx.store, staker, code)
        added_weight = position_weight(self.config, position)
        if prev is None:
            stat = StakeStat(staker=staker, total_stake=quantity, stake_weight=added_weight)
        else:
            stat = StakeStat(
                staker=staker,
                total_stake=prev.total_stake + quantity,
                stake_weight=prev.stake_weight + added_weight,
            )
        ctx.store.upsert(STAKE_STATS, code, staker, stat, payer=ctx.contract)
        return position

    def expire_and_recompute(self, ctx: TxContext, symbol: Symbol) -> ExpirySummary:
        """
        Erase matured positions for `symbol` and rebuild every staker's aggregate.

        Stakers are visited in ascending order. A staker whose surviving
        positions total zero loses their `StakeStat` row.
        """
        code = symbol.code
        expired = 0
        cleared: List[str] = []
        for staker, _stat in ctx.store.rows(STAKE_STATS, code):
            total = Asset.zero(symbol)
            weight = 0
            for pid, position in ctx.store.rows(STAKES, staker):
                if position.quantity.symbol.code != code:
                    continue
                if position_matured(self.config, position, ctx.now):
                    ctx.store.erase(STAKES, staker, pid)
                    expired += 1
                    continue
                total = total + position.quantity
                weight += position_weight(self.config, position)

            if total.amount == 0:
                ctx.store.erase(STAKE_STATS, code, staker)
                cleared.append(staker)
            else:
                ctx.store.upsert(
                    STAKE_STATS,
                    code,
                    staker,
                    StakeStat(staker=staker, total_stake=total, stake_weight=weight),
                    payer=ctx.contract,
                )

        remaining = len(ctx.store.rows(STAKE_STATS, code))
        return ExpirySummary(expired_positions=expired, cleared_stakers=tuple(cleared), remaining_stakers=remaining)

    # -- queries ---------------------------------------------------------------

    def get_stake(self, store: TableStore, staker: str, symbol: Symbol) -> Asset:
        return read_stake(store, staker, symbol)

    def get_stake_weight(self, store: TableStore, staker: str, symbol: Symbol) -> int:
        stat = read_stake_stat(store, staker, symbol.code)
        return 0 if stat is None else stat.stake_weight

    def get_unstaked_balance(self, store: TableStore, staker: str, symbol: Symbol) -> Asset:
        balance = read_balance(store, staker, symbol.code).amount
        staked = read_stake(store, staker, symbol).amount
        return Asset(balance - staked, symbol)

    def positions(self, store: TableStore, staker: str, symbol: Symbol | None = None) -> List[StakePosition]:
        out = [p for _pid, p in store.rows(STAKES, staker)]
        if symbol is not None:
            out = [p for p in out if p.quantity.symbol == symbol]
        return out

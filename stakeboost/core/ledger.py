"""
Balances and per-symbol supply bookkeeping.

The ledger owns the `accounts` and `stat` tables. Every balance mutation goes
through `sub_balance` / `add_balance`, which keep balances non-negative and
create rows lazily on first credit. They are plain functions over a `TxContext`
so the distribution engine can credit stakers without holding a `Ledger`.

`Ledger` sits below the stake book and the distribution engine: it reads
staked amounts through an injected `StakeReader` and hands the stakers' fee
share to an injected `FeeDistributor`. The facade wires both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from ..errors import (
    DuplicateToken,
    InsufficientUnstakedBalance,
    InvalidAmount,
    InvalidSupply,
    InvalidSymbol,
    MemoTooLong,
    MissingBalanceRow,
    NonZeroBalanceOnClose,
    SelfTransfer,
    SupplyExceeded,
    SymbolMismatch,
    UnknownToken,
)
from ..state.asset import Asset, Symbol
from ..state.records import ACCOUNTS, STATS, Account, CurrencyStats
from ..state.tables import TableStore
from .config import TokenConfig
from .context import TxContext
from .fixed_point import mul_bps


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferReceipt:
    quantity: Asset
    fee: int
    distributed: int
    retained: int


# (store, staker, symbol) -> amount of the staker's balance locked in stakes
StakeReader = Callable[[TableStore, str, Symbol], Asset]


class FeeDistributor(Protocol):
    def distribute(self, ctx: TxContext, quantity: Asset) -> int: ...


def sub_balance(ctx: TxContext, owner: str, value: Asset) -> None:
    if value.amount < 0:
        raise InvalidAmount(f"cannot debit a negative amount: {value}")
    row = ctx.store.get(ACCOUNTS, owner, value.symbol.code)
    if row is None:
        raise MissingBalanceRow(f"no balance object found for {owner}")
    if row.balance.amount < value.amount:
        raise InsufficientUnstakedBalance(f"overdrawn balance: {owner} has {row.balance}, needs {value}")
    ctx.store.upsert(ACCOUNTS, owner, value.symbol.code, Account(balance=row.balance - value), payer=owner)


def add_balance(ctx: TxContext, owner: str, value: Asset, payer: str) -> None:
    if value.amount < 0:
        raise InvalidAmount(f"cannot credit a negative amount: {value}")
    code = value.symbol.code
    row = ctx.store.get(ACCOUNTS, owner, code)
    if row is None:
        ctx.store.upsert(ACCOUNTS, owner, code, Account(balance=value), payer=payer)
        return
    ctx.store.upsert(ACCOUNTS, owner, code, Account(balance=row.balance + value), payer=payer)


def read_stats(store: TableStore, code: str) -> CurrencyStats | None:
    return store.get(STATS, code, code)


def read_balance(store: TableStore, owner: str, code: str) -> Asset:
    """Balance of `owner`; zero for a missing row of an existing token."""
    row = store.get(ACCOUNTS, owner, code)
    if row is not None:
        return row.balance
    stats = read_stats(store, code)
    if stats is None:
        raise UnknownToken(f"token with symbol does not exist: {code}")
    return Asset.zero(stats.supply.symbol)


class Ledger:
    def __init__(self, config: TokenConfig, *, distribution: FeeDistributor, staked: StakeReader) -> None:
        self.config = config
        self.distribution = distribution
        self.staked = staked

    # -- supply ----------------------------------------------------------------

    def create(self, ctx: TxContext, max_supply: Asset) -> CurrencyStats:
        ctx.require_auth(ctx.contract)
        sym = max_supply.symbol
        if not sym.is_valid():
            raise InvalidSymbol(f"invalid symbol name: {sym}")
        if not max_supply.is_valid() or max_supply.amount <= 0:
            raise InvalidSupply(f"max-supply must be positive: {max_supply}")
        if ctx.store.contains(STATS, sym.code, sym.code):
            raise DuplicateToken(f"token with symbol already exists: {sym.code}")

        stats = CurrencyStats(
            supply=Asset.zero(sym),
            max_supply=max_supply,
            created=ctx.now,
            updated=ctx.now,
            boosts_issued=0,
        )
        ctx.store.upsert(STATS, sym.code, sym.code, stats, payer=ctx.contract)

        issued = mul_bps(max_supply.amount, self.config.issue_bps)
        if issued > 0:
            self.issue(ctx, max_supply.with_amount(issued))
        logger.info("created %s: max_supply=%s issued=%d", sym, max_supply, issued)
        return self.get_stats(ctx.store, sym.code)  # type: ignore[return-value]

    def issue(self, ctx: TxContext, quantity: Asset) -> None:
        code = quantity.symbol.code
        stats = self.get_stats(ctx.store, code)
        if stats is None:
            raise UnknownToken(f"token with symbol does not exist: {code}")
        if not quantity.is_valid() or quantity.amount <= 0:
            raise InvalidAmount(f"must issue positive quantity: {quantity}")
        if quantity.symbol != stats.supply.symbol:
            raise SymbolMismatch("symbol precision mismatch")
        if quantity.amount > stats.max_supply.amount - stats.supply.amount:
            raise SupplyExceeded(f"quantity exceeds available supply: {quantity}")

        ctx.store.upsert(
            STATS,
            code,
            code,
            CurrencyStats(
                supply=stats.supply + quantity,
                max_supply=stats.max_supply,
                created=stats.created,
                updated=stats.updated,
                boosts_issued=stats.boosts_issued,
            ),
            payer=ctx.contract,
        )
        self.add_balance(ctx, ctx.contract, quantity, payer=ctx.contract)

    # -- transfers -------------------------------------------------------------

    def transfer(self, ctx: TxContext, from_: str, to: str, quantity: Asset, memo: str = "") -> TransferReceipt:
        """
        Move `quantity` from `from_` to `to`, charging a fee on top.

        The sender pays `quantity + fee`. Part of the fee is spread over the
        stakers of the symbol and the rest stays with the contract, so the
        symbol's total balance is unchanged.
        """
        if from_ == to:
            raise SelfTransfer("cannot transfer to self")
        ctx.require_auth(from_)
        ctx.require_account(to)
        code = quantity.symbol.code
        stats = self.get_stats(ctx.store, code)
        if stats is None:
            raise UnknownToken(f"token with symbol does not exist: {code}")

        ctx.notify(from_)
        ctx.notify(to)

        if not quantity.is_valid() or quantity.amount <= 0:
            raise InvalidAmount(f"must transfer positive quantity: {quantity}")
        if quantity.symbol != stats.supply.symbol:
            raise SymbolMismatch("symbol precision mismatch")
        if not isinstance(memo, str):
            raise TypeError("memo must be a str")
        if len(memo.encode("utf-8")) > self.config.max_memo_bytes:
            raise MemoTooLong(f"memo has more than {self.config.max_memo_bytes} bytes")

        fee = mul_bps(quantity.amount, self.config.fee_bps)
        debit = quantity.with_amount(quantity.amount + fee)
        if not debit.is_valid():
            raise InvalidAmount("transfer plus fee overflows")

        row = ctx.store.get(ACCOUNTS, from_, code)
        if row is None:
            raise MissingBalanceRow(f"no balance object found for {from_}")
        staked = self.staked(ctx.store, from_, quantity.symbol).amount
        if row.balance.amount - staked < debit.amount:
            raise InsufficientUnstakedBalance(
                f"{from_} cannot spend {debit}: balance {row.balance}, staked {staked}"
            )

        self.sub_balance(ctx, from_, debit)

        distributed = 0
        if fee > 0:
            to_stakers = mul_bps(fee, self.config.fee_to_stakers_bps)
            if to_stakers > 0:
                distributed = self.distribution.distribute(ctx, quantity.with_amount(to_stakers))
            retained = fee - distributed
            if retained > 0:
                self.add_balance(ctx, ctx.contract, quantity.with_amount(retained), payer=ctx.contract)

        payer = to if ctx.has_auth(to) else from_
        self.add_balance(ctx, to, quantity, payer=payer)
        return TransferReceipt(quantity=quantity, fee=fee, distributed=distributed, retained=fee - distributed)

    def sub_balance(self, ctx: TxContext, owner: str, value: Asset) -> None:
        sub_balance(ctx, owner, value)

    def add_balance(self, ctx: TxContext, owner: str, value: Asset, payer: str) -> None:
        add_balance(ctx, owner, value, payer)

    # -- row lifecycle ---------------------------------------------------------

    def open(self, ctx: TxContext, owner: str, symbol: Symbol, payer: str) -> bool:
        """Create a zero balance row for `owner`. Returns False when the row already existed."""
        ctx.require_auth(payer)
        ctx.require_account(owner)
        stats = self.get_stats(ctx.store, symbol.code)
        if stats is None:
            raise UnknownToken(f"symbol does not exist: {symbol.code}")
        if stats.supply.symbol != symbol:
            raise SymbolMismatch("symbol precision mismatch")
        if ctx.store.contains(ACCOUNTS, owner, symbol.code):
            return False
        ctx.store.upsert(ACCOUNTS, owner, symbol.code, Account(balance=Asset.zero(symbol)), payer=payer)
        return True

    def close(self, ctx: TxContext, owner: str, symbol: Symbol) -> None:
        ctx.require_auth(owner)
        row = ctx.store.get(ACCOUNTS, owner, symbol.code)
        if row is None:
            raise MissingBalanceRow("balance row already deleted or never existed")
        if row.balance.amount != 0:
            raise NonZeroBalanceOnClose("cannot close because the balance is not zero")
        ctx.store.erase(ACCOUNTS, owner, symbol.code)

    # -- queries ---------------------------------------------------------------

    def get_stats(self, store: TableStore, code: str) -> CurrencyStats | None:
        return read_stats(store, code)

    def get_supply(self, store: TableStore, code: str) -> Asset:
        stats = self.get_stats(store, code)
        if stats is None:
            raise UnknownToken(f"token with symbol does not exist: {code}")
        return stats.supply

    def get_balance(self, store: TableStore, owner: str, code: str) -> Asset:
        return read_balance(store, owner, code)

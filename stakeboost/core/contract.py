"""
Token contract facade.

`TokenContract` composes the ledger, stake book, distribution engine and
emission scheduler into the public operations. Every operation runs against a
staged copy of the store and a fresh effect buffer:

- success: the staged store replaces the live one and staged effects
  (notifications, deferred calls) are handed to the host;
- any exception: the staged copy is dropped, so nothing is visible.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, TypeVar

from ..errors import InvariantViolation, LedgerError
from ..state.asset import Asset, Symbol
from ..state.records import CurrencyStats, StakePosition
from ..state.tables import TableStore
from .config import TokenConfig
from .context import HostEnv, TxContext
from .distribution import DistributionEngine
from .emission import EmissionScheduler, TickReport
from .invariants import check_all
from .ledger import Ledger, TransferReceipt
from .stake_book import StakeBook


logger = logging.getLogger(__name__)

T = TypeVar("T")


class TokenContract:
    def __init__(
        self,
        config: TokenConfig,
        host: HostEnv,
        contract: str,
        *,
        store: Optional[TableStore] = None,
        check_invariants: bool = True,
    ) -> None:
        if not isinstance(contract, str) or not contract:
            raise ValueError("contract must be a non-empty str")
        self.config = config
        self.host = host
        self.contract = contract
        self.store = store if store is not None else TableStore()
        self.check_invariants = check_invariants

        # One distribution engine serves both fee shares and boosts.
        self.distribution = DistributionEngine()
        self.stake_book = StakeBook(config)
        self.ledger = Ledger(config, distribution=self.distribution, staked=self.stake_book.get_stake)
        self.emission = EmissionScheduler(config, self.ledger, self.stake_book, self.distribution)

    def _execute(self, action: str, auth: Iterable[str], fn: Callable[[TxContext], T]) -> T:
        staged = self.store.copy()
        ctx = TxContext(
            store=staged,
            contract=self.contract,
            now=int(self.host.now()),
            auth=frozenset(auth),
            host=self.host,
            action=action,
        )
        try:
            result = fn(ctx)
            if self.check_invariants:
                violations = check_all(staged, self.config)
                if violations:
                    raise InvariantViolation(violations)
        except LedgerError as exc:
            logger.info("%s aborted: %s: %s", action, exc.code, exc)
            raise

        self.store = staged
        ctx.effects.flush(self.host)
        return result

    # -- operations ------------------------------------------------------------

    def create(self, max_supply: Asset, *, auth: Iterable[str]) -> CurrencyStats:
        return self._execute("create", auth, lambda ctx: self.ledger.create(ctx, max_supply))

    def transfer(self, from_: str, to: str, quantity: Asset, memo: str = "", *, auth: Iterable[str]) -> TransferReceipt:
        return self._execute("transfer", auth, lambda ctx: self.ledger.transfer(ctx, from_, to, quantity, memo))

    def transfer_staked(
        self,
        from_: str,
        to: str,
        quantity: Asset,
        memo: str,
        duration_index: int,
        *,
        auth: Iterable[str],
    ) -> StakePosition:
        """Transfer, then lock the received quantity on the receiver's behalf."""

        def run(ctx: TxContext) -> StakePosition:
            self.ledger.transfer(ctx, from_, to, quantity, memo)
            return self.stake_book.add_stake(ctx, to, quantity, duration_index, authorized=True)

        return self._execute("transferstkd", auth, run)

    def open(self, owner: str, symbol: Symbol, payer: str, *, auth: Iterable[str]) -> bool:
        return self._execute("open", auth, lambda ctx: self.ledger.open(ctx, owner, symbol, payer))

    def close(self, owner: str, symbol: Symbol, *, auth: Iterable[str]) -> None:
        return self._execute("close", auth, lambda ctx: self.ledger.close(ctx, owner, symbol))

    def add_stake(self, staker: str, quantity: Asset, duration_index: int, *, auth: Iterable[str]) -> StakePosition:
        return self._execute(
            "addstake", auth, lambda ctx: self.stake_book.add_stake(ctx, staker, quantity, duration_index)
        )

    def update(self, symbol: Symbol, *, auth: Iterable[str]) -> TickReport:
        return self._execute("update", auth, lambda ctx: self.emission.tick(ctx, symbol))

    # -- queries ---------------------------------------------------------------

    def get_stats(self, code: str) -> Optional[CurrencyStats]:
        return self.ledger.get_stats(self.store, code)

    def get_supply(self, code: str) -> Asset:
        return self.ledger.get_supply(self.store, code)

    def get_balance(self, owner: str, code: str) -> Asset:
        return self.ledger.get_balance(self.store, owner, code)

    def get_stake(self, staker: str, symbol: Symbol) -> Asset:
        return self.stake_book.get_stake(self.store, staker, symbol)

    def get_stake_weight(self, staker: str, symbol: Symbol) -> int:
        return self.stake_book.get_stake_weight(self.store, staker, symbol)

    def get_unstaked_balance(self, staker: str, symbol: Symbol) -> Asset:
        return self.stake_book.get_unstaked_balance(self.store, staker, symbol)

    def positions(self, staker: str, symbol: Optional[Symbol] = None) -> list[StakePosition]:
        return self.stake_book.positions(self.store, staker, symbol)

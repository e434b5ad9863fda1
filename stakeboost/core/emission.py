"""
Decaying emission ("boost") schedule.

Boost `i` (1-based) mints

    floor(e^(lambda * i) / divisor * reserve)

where `reserve = floor(max_supply * (10000 - issue_bps) / 10000)` is the part
of the cap that `create` did not issue. Boost `i` becomes due at
`created + i * boost_interval`; at most one boost is minted per tick, and
`boosts_issued` only ever moves forward.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..errors import SymbolMismatch, UnknownToken
from ..state.asset import Symbol
from ..state.records import STATS, CurrencyStats
from .config import TokenConfig
from .context import TxContext
from .fixed_point import BPS_DENOM, EXP_SCALE, exp_scaled, mul_bps
from .distribution import DistributionEngine
from .ledger import Ledger
from .stake_book import ExpirySummary, StakeBook
from .timer import RecurringTimer


logger = logging.getLogger(__name__)


def boost_reserve(config: TokenConfig, max_supply_amount: int) -> int:
    return mul_bps(max_supply_amount, BPS_DENOM - config.issue_bps)


def emission_amount(config: TokenConfig, max_supply_amount: int, index: int) -> int:
    """Amount minted by boost number `index` (1-based) for a token capped at `max_supply_amount`."""
    if not isinstance(index, int) or isinstance(index, bool) or index < 1:
        raise ValueError(f"boost index must be a positive int: {index!r}")
    reserve = boost_reserve(config, max_supply_amount)
    decay = exp_scaled(config.boost_lambda.scaled(index))
    div = config.boost_divisor
    return (decay * reserve * div.den) // (EXP_SCALE * div.num)


def emission_schedule(config: TokenConfig, max_supply_amount: int) -> List[int]:
    """Every boost amount, index 1..boost_count."""
    return [emission_amount(config, max_supply_amount, i) for i in range(1, config.boost_count + 1)]


@dataclass(frozen=True)
class TickReport:
    symbol: Symbol
    expiry: ExpirySummary
    boost_index: Optional[int]
    emitted: int
    distributed: int
    skip_reason: Optional[str]
    rearmed: bool
    request_id: Optional[str]


class EmissionScheduler:
    def __init__(
        self, config: TokenConfig, ledger: Ledger, stake_book: StakeBook, distribution: DistributionEngine
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.stake_book = stake_book
        self.distribution = distribution
        self.timer = RecurringTimer(interval=config.update_interval)

    def tick(self, ctx: TxContext, symbol: Symbol) -> TickReport:
        """
        One run of the recurring job: expire matured stakes, mint the next
        boost if it is due, and re-arm.

        Skipping the boost (not due yet, schedule exhausted, cap reached) is
        not an error; the job still re-arms so later ticks keep running.
        """
        ctx.require_auth(ctx.contract)
        symbol.require_valid()
        stats = self.ledger.get_stats(ctx.store, symbol.code)
        if stats is None:
            raise UnknownToken(f"token with symbol does not exist: {symbol.code}")
        if stats.supply.symbol != symbol:
            raise SymbolMismatch("symbol precision mismatch")

        expiry = self.stake_book.expire_and_recompute(ctx, symbol)
        if expiry.expired_positions:
            logger.info(
                "tick %s: expired %d position(s), cleared %s",
                symbol.code,
                expiry.expired_positions,
                list(expiry.cleared_stakers),
            )

        boost_index, emitted, distributed, skip_reason = self._maybe_boost(ctx, stats)

        rearmed = False
        rid: Optional[str] = None
        settled = boost_index is None and stats.boosts_issued >= self.config.boost_count and expiry.remaining_stakers == 0
        if self.config.stop_when_settled and settled:
            logger.info("tick %s: all boosts issued and no stakers left; not re-arming", symbol.code)
        else:
            rid = self.timer.arm(ctx, symbol)
            rearmed = True
            logger.debug("tick %s: re-armed in %ds (request %s)", symbol.code, self.timer.interval, rid)

        return TickReport(
            symbol=symbol,
            expiry=expiry,
            boost_index=boost_index,
            emitted=emitted,
            distributed=distributed,
            skip_reason=skip_reason,
            rearmed=rearmed,
            request_id=rid,
        )

    def _maybe_boost(self, ctx: TxContext, stats: CurrencyStats):
        code = stats.supply.symbol.code
        next_index = stats.boosts_issued + 1
        if next_index > self.config.boost_count:
            logger.debug("tick %s: no boosts left (%d issued)", code, stats.boosts_issued)
            return None, 0, 0, "exhausted"

        due = stats.created + next_index * self.config.boost_interval
        if ctx.now < due:
            logger.debug("tick %s: boost %d not due until %d (now %d)", code, next_index, due, ctx.now)
            return None, 0, 0, "not_due"

        emission = emission_amount(self.config, stats.max_supply.amount, next_index)
        if emission > stats.max_supply.amount - stats.supply.amount:
            logger.warning(
                "tick %s: boost %d of %d would exceed max supply %s; skipped",
                code,
                next_index,
                emission,
                stats.max_supply,
            )
            return None, 0, 0, "cap"

        quantity = stats.supply.with_amount(emission)
        ctx.store.upsert(
            STATS,
            code,
            code,
            CurrencyStats(
                supply=stats.supply + quantity,
                max_supply=stats.max_supply,
                created=stats.created,
                updated=ctx.now,
                boosts_issued=next_index,
            ),
            payer=ctx.contract,
        )

        distributed = 0
        if emission > 0:
            distributed = self.distribution.distribute(ctx, quantity)
            remainder = emission - distributed
            if remainder > 0:
                self.ledger.add_balance(ctx, ctx.contract, quantity.with_amount(remainder), payer=ctx.contract)

        logger.info(
            "tick %s: boost %d minted %d (distributed %d, retained %d)",
            code,
            next_index,
            emission,
            distributed,
            emission - distributed,
        )
        return next_index, emission, distributed, None

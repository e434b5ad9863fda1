"""
Recurring self-call timer.

The emission job re-arms itself by scheduling a deferred `update(symbol)`
call back to the contract. Each arming carries an idempotency key derived
from (contract, symbol, logical time), so two armings at the same block time
for the same symbol collide and the second is rejected instead of silently
queueing a duplicate.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.asset import Symbol
from ..state.canonical import canonical_digest
from .context import DeferredCall, TxContext


TIMER_REQUEST_VERSION = 1
UPDATE_ACTION = "update"


def request_id(contract: str, symbol: Symbol, now: int) -> str:
    payload = {"contract": contract, "symbol": str(symbol), "now": int(now)}
    return canonical_digest("timer_request", payload, version=TIMER_REQUEST_VERSION)


@dataclass(frozen=True)
class RecurringTimer:
    interval: int
    action: str = UPDATE_ACTION

    def __post_init__(self) -> None:
        if not isinstance(self.interval, int) or isinstance(self.interval, bool) or self.interval <= 0:
            raise ValueError("interval must be a positive int")

    def arm(self, ctx: TxContext, symbol: Symbol) -> str:
        """Schedule the next tick for `symbol`; returns the request id."""
        rid = request_id(ctx.contract, symbol, ctx.now)
        call = DeferredCall(
            contract=ctx.contract,
            action=self.action,
            args={"symbol": str(symbol)},
            authorizer=ctx.contract,
        )
        ctx.schedule(call, self.interval, rid)
        return rid

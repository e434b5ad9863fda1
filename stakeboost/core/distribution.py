"""
Proportional distribution of a token quantity across stakers.

`compute_shares` is the pure integer kernel; `DistributionEngine` applies it
to the live `StakeStat` rows of a symbol and credits the shares.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..errors import InvalidAmount
from ..state.asset import Asset
from ..state.records import STAKE_STATS
from .context import TxContext
from .ledger import add_balance


def compute_shares(amount: int, weights: Sequence[Tuple[str, int]]) -> List[Tuple[str, int]]:
    """
    Split `amount` by weight: `share_i = amount * w_i // total_weight`.

    Shares are returned in the given order. An empty list means there is no
    positive total weight and nothing may be distributed. The sum of shares is
    at most `amount` and falls short by less than `len(weights)`.
    """
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"amount must be a non-negative int: {amount!r}")
    total = 0
    for name, w in weights:
        if not isinstance(w, int) or isinstance(w, bool) or w < 0:
            raise ValueError(f"weight for {name} must be a non-negative int: {w!r}")
        total += w
    if total == 0:
        return []
    return [(name, (amount * w) // total) for name, w in weights]


class DistributionEngine:
    """Stateless; one instance is shared by the ledger (fee shares) and the emission scheduler (boosts)."""

    def distribute(self, ctx: TxContext, quantity: Asset) -> int:
        """
        Credit every staker of `quantity.symbol` their weighted share.

        Returns the amount actually distributed. The caller owns the
        remainder `quantity.amount - distributed` and must credit it somewhere.
        """
        if not quantity.is_valid() or quantity.amount < 0:
            raise InvalidAmount(f"cannot distribute {quantity}")
        if quantity.amount == 0:
            return 0

        stats = ctx.store.rows(STAKE_STATS, quantity.symbol.code)
        weights = [(staker, stat.stake_weight) for staker, stat in stats]
        distributed = 0
        for staker, share in compute_shares(quantity.amount, weights):
            if share == 0:
                continue
            add_balance(ctx, staker, quantity.with_amount(share), payer=ctx.contract)
            distributed += share
        return distributed

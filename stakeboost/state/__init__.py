"""
State management for the stakeboost token ledger
"""

from .asset import MAX_AMOUNT, Asset, Symbol
from .records import ACCOUNTS, STAKE_STATS, STAKES, STATS, Account, CurrencyStats, StakePosition, StakeStat
from .tables import Row, TableStore

__all__ = [
    "MAX_AMOUNT",
    "Asset",
    "Symbol",
    "ACCOUNTS",
    "STATS",
    "STAKES",
    "STAKE_STATS",
    "Account",
    "CurrencyStats",
    "StakePosition",
    "StakeStat",
    "Row",
    "TableStore",
]

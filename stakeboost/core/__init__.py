"""
Core token ledger: balances, staking, distribution and emission
"""

from .fixed_point import BPS_DENOM, Ratio, exp_scaled, mul_bps, mul_div
from .config import ConfigError, TokenConfig, load_token_config, load_token_config_from_env, token_config_from_mapping
from .context import DeferredCall, HostEnv, TxContext, TxEffects
from .stake_book import ExpirySummary, StakeBook
from .distribution import DistributionEngine, compute_shares
from .ledger import Ledger, TransferReceipt
from .timer import RecurringTimer, request_id
from .emission import EmissionScheduler, TickReport, boost_reserve, emission_amount, emission_schedule
from .invariants import INVARIANT_REGISTRY, check_all
from .contract import TokenContract

__all__ = [
    "BPS_DENOM",
    "Ratio",
    "exp_scaled",
    "mul_bps",
    "mul_div",
    "ConfigError",
    "TokenConfig",
    "load_token_config",
    "load_token_config_from_env",
    "token_config_from_mapping",
    "DeferredCall",
    "HostEnv",
    "TxContext",
    "TxEffects",
    "ExpirySummary",
    "StakeBook",
    "DistributionEngine",
    "compute_shares",
    "Ledger",
    "TransferReceipt",
    "RecurringTimer",
    "request_id",
    "EmissionScheduler",
    "TickReport",
    "boost_reserve",
    "emission_amount",
    "emission_schedule",
    "INVARIANT_REGISTRY",
    "check_all",
    "TokenContract",
]

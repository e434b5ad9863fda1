"""
stakeboost: a fungible-token ledger with fees, time-weighted staking and a
decaying emission schedule.
"""

__version__ = "0.1.0"

"""
Table records and their canonical dict encoding.

Records are immutable; mutation means writing a new record under the same
key. Each table name maps to a (record type, encoder, decoder) triple so the
store can be snapshotted and hashed without knowing record internals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Tuple

from .asset import Asset, Symbol


# Table names
ACCOUNTS = "accounts"  # scope=owner, key=symbol code
STATS = "stat"  # scope=symbol code, key=symbol code
STAKES = "stakes"  # scope=staker, key=position id
STAKE_STATS = "stakestats"  # scope=symbol code, key=staker


@dataclass(frozen=True)
class Account:
    balance: Asset

    def __post_init__(self) -> None:
        if self.balance.amount < 0:
            raise ValueError(f"balance cannot be negative: {self.balance}")


@dataclass(frozen=True)
class CurrencyStats:
    supply: Asset
    max_supply: Asset
    created: int
    updated: int
    boosts_issued: int = 0

    def __post_init__(self) -> None:
        if self.supply.symbol != self.max_supply.symbol:
            raise ValueError("supply and max_supply symbols differ")
        if not (0 <= self.supply.amount <= self.max_supply.amount):
            raise ValueError(f"supply out of range: {self.supply} (max {self.max_supply})")
        if self.boosts_issued < 0:
            raise ValueError("boosts_issued must be non-negative")


@dataclass(frozen=True)
class StakePosition:
    id: int
    quantity: Asset
    start: int
    duration_index: int


@dataclass(frozen=True)
class StakeStat:
    staker: str
    total_stake: Asset
    stake_weight: int

    def __post_init__(self) -> None:
        if self.total_stake.amount < 0:
            raise ValueError("total_stake must be non-negative")
        if self.stake_weight < 0:
            raise ValueError("stake_weight must be non-negative")


def _asset_to_str(a: Asset) -> str:
    # Symbol text carries the precision, so "0 TOK" and "0.00 TOK" stay distinct.
    return f"{a.amount}@{a.symbol}"


def _asset_from_str(s: Any) -> Asset:
    if not isinstance(s, str) or "@" not in s:
        raise ValueError(f"invalid encoded asset: {s!r}")
    amount_raw, symbol_raw = s.split("@", 1)
    return Asset(int(amount_raw), Symbol.parse(symbol_raw))


def _account_to_dict(r: Account) -> Dict[str, Any]:
    return {"balance": _asset_to_str(r.balance)}


def _account_from_dict(d: Mapping[str, Any]) -> Account:
    return Account(balance=_asset_from_str(d["balance"]))


def _stats_to_dict(r: CurrencyStats) -> Dict[str, Any]:
    return {
        "supply": _asset_to_str(r.supply),
        "max_supply": _asset_to_str(r.max_supply),
        "created": int(r.created),
        "updated": int(r.updated),
        "boosts_issued": int(r.boosts_issued),
    }


def _stats_from_dict(d: Mapping[str, Any]) -> CurrencyStats:
    return CurrencyStats(
        supply=_asset_from_str(d["supply"]),
        max_supply=_asset_from_str(d["max_supply"]),
        created=int(d["created"]),
        updated=int(d["updated"]),
        boosts_issued=int(d["boosts_issued"]),
    )


def _position_to_dict(r: StakePosition) -> Dict[str, Any]:
    return {
        "id": int(r.id),
        "quantity": _asset_to_str(r.quantity),
        "start": int(r.start),
        "duration_index": int(r.duration_index),
    }


def _position_from_dict(d: Mapping[str, Any]) -> StakePosition:
    return StakePosition(
        id=int(d["id"]),
        quantity=_asset_from_str(d["quantity"]),
        start=int(d["start"]),
        duration_index=int(d["duration_index"]),
    )


def _stake_stat_to_dict(r: StakeStat) -> Dict[str, Any]:
    return {
        "staker": r.staker,
        "total_stake": _asset_to_str(r.total_stake),
        "stake_weight": int(r.stake_weight),
    }


def _stake_stat_from_dict(d: Mapping[str, Any]) -> StakeStat:
    return StakeStat(
        staker=str(d["staker"]),
        total_stake=_asset_from_str(d["total_stake"]),
        stake_weight=int(d["stake_weight"]),
    )


Codec = Tuple[type, Callable[[Any], Dict[str, Any]], Callable[[Mapping[str, Any]], Any]]

RECORD_CODECS: Dict[str, Codec] = {
    ACCOUNTS: (Account, _account_to_dict, _account_from_dict),
    STATS: (CurrencyStats, _stats_to_dict, _stats_from_dict),
    STAKES: (StakePosition, _position_to_dict, _position_from_dict),
    STAKE_STATS: (StakeStat, _stake_stat_to_dict, _stake_stat_from_dict),
}


def record_to_dict(table: str, record: Any) -> Dict[str, Any]:
    codec = RECORD_CODECS.get(table)
    if codec is None:
        raise KeyError(f"unknown table: {table}")
    record_type, encode, _decode = codec
    if not isinstance(record, record_type):
        raise TypeError(f"{table} rows must be {record_type.__name__}, got {type(record).__name__}")
    return encode(record)


def record_from_dict(table: str, data: Mapping[str, Any]) -> Any:
    codec = RECORD_CODECS.get(table)
    if codec is None:
        raise KeyError(f"unknown table: {table}")
    if not isinstance(data, Mapping):
        raise TypeError(f"{table} row must be an object")
    return codec[2](data)

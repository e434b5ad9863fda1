"""
Economic configuration for a token deployment.

All constants the ledger needs (issuance split, fee rates, stake duration and
weight tables, boost curve, timer interval) live in one immutable
`TokenConfig` that is passed into every component. Defaults are the short
test schedule (minutes instead of months).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from .fixed_point import BPS_DENOM, MAX_EXP_ARG, Ratio


ONE_MINUTE = 60
ONE_HOUR = ONE_MINUTE * 60
ONE_DAY = ONE_HOUR * 24
ONE_YEAR = ONE_DAY * 365

CONFIG_ENV_VAR = "STAKEBOOST_CONFIG"


class ConfigError(ValueError):
    """Raised for malformed or inconsistent configuration."""


def _require_int(name: str, v: Any, *, lo: int, hi: Optional[int] = None) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ConfigError(f"{name} must be an int, got {v!r}")
    if v < lo or (hi is not None and v > hi):
        bound = f"[{lo}, {hi}]" if hi is not None else f">= {lo}"
        raise ConfigError(f"{name} must be in {bound}: {v}")


@dataclass(frozen=True)
class TokenConfig:
    # Share of max supply issued to the contract at create; the rest is the boost reserve.
    issue_bps: int = 7_500
    # Transaction fee charged on top of the transferred amount.
    fee_bps: int = 100
    # Share of each fee routed to stakers; the remainder stays with the contract.
    fee_to_stakers_bps: int = 7_000

    stake_durations: Tuple[int, ...] = (
        1 * ONE_MINUTE,
        3 * ONE_MINUTE,
        6 * ONE_MINUTE,
        12 * ONE_MINUTE,
        12 * 2 * ONE_MINUTE,
        12 * 5 * ONE_MINUTE,
    )
    stake_weights: Tuple[int, ...] = (50, 60, 75, 100, 100, 100)

    boost_interval: int = ONE_MINUTE * 2
    boost_count: int = 312
    boost_lambda: Ratio = field(default_factory=lambda: Ratio(-15, 1000))
    boost_divisor: Ratio = field(default_factory=lambda: Ratio(66, 1))

    update_interval: int = ONE_MINUTE
    max_memo_bytes: int = 256
    # When set, the tick stops re-arming once all boosts are issued and nobody is staked.
    stop_when_settled: bool = False

    def __post_init__(self) -> None:
        for name in ("issue_bps", "fee_bps", "fee_to_stakers_bps"):
            _require_int(name, getattr(self, name), lo=0, hi=BPS_DENOM)
        _require_int("boost_interval", self.boost_interval, lo=1)
        _require_int("boost_count", self.boost_count, lo=0)
        _require_int("update_interval", self.update_interval, lo=1)
        _require_int("max_memo_bytes", self.max_memo_bytes, lo=0)
        if not isinstance(self.stop_when_settled, bool):
            raise ConfigError("stop_when_settled must be a bool")

        durations = tuple(self.stake_durations)
        weights = tuple(self.stake_weights)
        object.__setattr__(self, "stake_durations", durations)
        object.__setattr__(self, "stake_weights", weights)
        if not durations:
            raise ConfigError("stake_durations must not be empty")
        if len(durations) != len(weights):
            raise ConfigError(
                f"stake_durations and stake_weights differ in length: {len(durations)} != {len(weights)}"
            )
        for i, d in enumerate(durations):
            _require_int(f"stake_durations[{i}]", d, lo=1)
        for i, w in enumerate(weights):
            _require_int(f"stake_weights[{i}]", w, lo=0)

        if not isinstance(self.boost_lambda, Ratio) or not isinstance(self.boost_divisor, Ratio):
            raise ConfigError("boost_lambda and boost_divisor must be Ratio values")
        if self.boost_divisor.num <= 0:
            raise ConfigError("boost_divisor must be positive")
        if abs(self.boost_lambda.num) * self.boost_count > MAX_EXP_ARG * self.boost_lambda.den:
            raise ConfigError("boost_lambda * boost_count exceeds the exp domain")

    @property
    def duration_count(self) -> int:
        return len(self.stake_durations)

    def weight_for(self, duration_index: int) -> int:
        return self.stake_weights[duration_index]

    def duration_for(self, duration_index: int) -> int:
        return self.stake_durations[duration_index]


_RATIO_FIELDS = {"boost_lambda", "boost_divisor"}
_TUPLE_FIELDS = {"stake_durations", "stake_weights"}


def _reject_floats(path: str, value: Any) -> None:
    if isinstance(value, float):
        raise ConfigError(f"{path}: floats are not allowed (use ints, bps or 'num/den' strings)")
    if isinstance(value, Mapping):
        for k, v in value.items():
            _reject_floats(f"{path}.{k}", v)
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            _reject_floats(f"{path}[{i}]", v)


def token_config_from_mapping(obj: Mapping[str, Any]) -> TokenConfig:
    """Build a `TokenConfig` from plain data; unknown keys are rejected."""
    if not isinstance(obj, Mapping):
        raise ConfigError("token config must be a mapping")
    known = {f.name for f in fields(TokenConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ConfigError(f"unknown token config keys: {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for key, value in obj.items():
        _reject_floats(key, value)
        if key in _RATIO_FIELDS:
            try:
                kwargs[key] = Ratio.parse(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"{key}: {exc}") from exc
        elif key in _TUPLE_FIELDS:
            if not isinstance(value, (list, tuple)):
                raise ConfigError(f"{key} must be a list")
            kwargs[key] = tuple(value)
        else:
            kwargs[key] = value
    return TokenConfig(**kwargs)


def load_token_config(path: str | Path) -> TokenConfig:
    """
    Load a `TokenConfig` from a YAML file.

    Example:

        issue_bps: 7500
        fee_bps: 100
        stake_durations: [60, 180, 360]
        stake_weights: [50, 60, 75]
        boost_lambda: "-15/1000"
        boost_divisor: 66
    """
    p = Path(path)
    obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    if obj is None:
        obj = {}
    if not isinstance(obj, Mapping):
        raise ConfigError(f"{p}: top-level YAML value must be a mapping")
    section = obj.get("token", obj)
    return token_config_from_mapping(section)


def load_token_config_from_env(default: Optional[TokenConfig] = None) -> TokenConfig:
    """Load from `$STAKEBOOST_CONFIG` if set, else return `default` (or the built-in defaults)."""
    raw = os.environ.get(CONFIG_ENV_VAR)
    if raw is None or not raw.strip():
        return default if default is not None else TokenConfig()
    return load_token_config(raw.strip())

from __future__ import annotations

from pathlib import Path

import pytest

from stakeboost.core.config import (
    CONFIG_ENV_VAR,
    ConfigError,
    TokenConfig,
    load_token_config,
    load_token_config_from_env,
    token_config_from_mapping,
)
from stakeboost.core.fixed_point import Ratio


def test_defaults_reproduce_short_test_schedule() -> None:
    cfg = TokenConfig()
    assert cfg.issue_bps == 7_500
    assert cfg.fee_bps == 100
    assert cfg.fee_to_stakers_bps == 7_000
    assert cfg.stake_durations == (60, 180, 360, 720, 1440, 3600)
    assert cfg.stake_weights == (50, 60, 75, 100, 100, 100)
    assert cfg.boost_interval == 120
    assert cfg.boost_count == 312
    assert cfg.boost_lambda == Ratio(-15, 1000)
    assert cfg.boost_divisor == Ratio(66)
    assert cfg.update_interval == 60
    assert cfg.max_memo_bytes == 256
    assert cfg.stop_when_settled is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"issue_bps": 10_001},
        {"fee_bps": -1},
        {"stake_durations": (60, 120), "stake_weights": (1,)},
        {"stake_durations": (), "stake_weights": ()},
        {"stake_durations": (0,), "stake_weights": (1,)},
        {"boost_divisor": Ratio(0)},
        {"boost_interval": 0},
        {"update_interval": 0},
        {"boost_lambda": Ratio(-1), "boost_count": 65},
    ],
)
def test_invalid_configs_raise(kwargs: dict) -> None:
    with pytest.raises(ConfigError):
        TokenConfig(**kwargs)


def test_config_error_is_a_value_error() -> None:
    assert issubclass(ConfigError, ValueError)


def test_mapping_rejects_unknown_keys_and_floats() -> None:
    with pytest.raises(ConfigError):
        token_config_from_mapping({"fee_pct": 1})
    with pytest.raises(ConfigError):
        token_config_from_mapping({"boost_lambda": -0.015})
    with pytest.raises(ConfigError):
        token_config_from_mapping({"stake_weights": [50, 60.5, 75, 100, 100, 100]})


def test_load_yaml(tmp_path: Path) -> None:
    p = tmp_path / "token.yaml"
    p.write_text(
        "\n".join(
            [
                "token:",
                "  issue_bps: 5000",
                "  stake_durations: [10, 20]",
                "  stake_weights: [1, 2]",
                "  boost_lambda: \"-1/100\"",
                "  boost_divisor: 10",
                "  boost_count: 3",
                "  stop_when_settled: true",
            ]
        ),
        encoding="utf-8",
    )
    cfg = load_token_config(p)
    assert cfg.issue_bps == 5_000
    assert cfg.stake_durations == (10, 20)
    assert cfg.stake_weights == (1, 2)
    assert cfg.boost_lambda == Ratio(-1, 100)
    assert cfg.boost_divisor == Ratio(10)
    assert cfg.boost_count == 3
    assert cfg.stop_when_settled is True
    # Untouched keys keep their defaults.
    assert cfg.fee_bps == 100


def test_load_yaml_rejects_float_literals(tmp_path: Path) -> None:
    p = tmp_path / "token.yaml"
    p.write_text("boost_lambda: -0.015\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_token_config(p)


def test_load_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert load_token_config_from_env() == TokenConfig()

    p = tmp_path / "token.yaml"
    p.write_text("fee_bps: 250\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(p))
    assert load_token_config_from_env().fee_bps == 250

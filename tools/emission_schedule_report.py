#!/usr/bin/env python3
"""
Print the boost (emission) schedule for a token configuration.

Usage:
    python tools/emission_schedule_report.py --max-supply 1000 [--config token.yaml] [--out report.json]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stakeboost.core.config import TokenConfig, load_token_config, load_token_config_from_env
from stakeboost.core.emission import boost_reserve, emission_schedule
from stakeboost.core.fixed_point import mul_bps
from stakeboost.logging_conf import setup_logging


logger = logging.getLogger("emission_schedule_report")


def build_report(config: TokenConfig, max_supply: int) -> dict:
    amounts = emission_schedule(config, max_supply)
    reserve = boost_reserve(config, max_supply)
    cumulative = 0
    rows = []
    for i, amount in enumerate(amounts, start=1):
        cumulative += amount
        rows.append(
            {
                "index": i,
                "due_offset_s": i * config.boost_interval,
                "amount": amount,
                "cumulative": cumulative,
            }
        )
    return {
        "schema": "stakeboost/emission-schedule/v1",
        "max_supply": max_supply,
        "issued_at_create": mul_bps(max_supply, config.issue_bps),
        "reserve": reserve,
        "boost_count": config.boost_count,
        "boost_interval_s": config.boost_interval,
        "boost_lambda": str(config.boost_lambda),
        "boost_divisor": str(config.boost_divisor),
        "total_emitted": cumulative,
        "unemitted_reserve": reserve - cumulative,
        "boosts": rows,
    }


def main() -> int:
    ap = argparse.ArgumentParser(description="Deterministic boost schedule report")
    ap.add_argument("--max-supply", type=int, required=True, help="max supply in base units")
    ap.add_argument("--config", type=str, default="", help="YAML token config (default: $STAKEBOOST_CONFIG or built-in)")
    ap.add_argument("--out", type=str, default="")
    ap.add_argument("--log-level", type=str, default=None)
    args = ap.parse_args()

    setup_logging(args.log_level)
    if args.max_supply <= 0:
        raise SystemExit("max-supply must be positive")

    config = load_token_config(args.config) if args.config else load_token_config_from_env()
    report = build_report(config, args.max_supply)
    if report["unemitted_reserve"] < 0:
        logger.error("schedule over-emits the reserve by %d", -report["unemitted_reserve"])
        return 1

    payload = json.dumps(report, indent=2, sort_keys=True)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
        logger.info("wrote %s", out_path)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

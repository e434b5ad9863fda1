from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from stakeboost.core.config import TokenConfig
from stakeboost.core.fixed_point import Ratio


def test_build_report_default_schedule() -> None:
    from tools.emission_schedule_report import build_report

    report = build_report(TokenConfig(), 1_000)
    assert report["issued_at_create"] == 750
    assert report["reserve"] == 250
    assert len(report["boosts"]) == 312
    assert report["boosts"][0] == {"index": 1, "due_offset_s": 120, "amount": 3, "cumulative": 3}
    assert report["total_emitted"] == report["boosts"][-1]["cumulative"]
    assert 0 <= report["unemitted_reserve"] <= 250


def test_main_writes_json_and_flags_over_emission(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import tools.emission_schedule_report as report_tool

    # Leave the root logger alone; pytest owns it during the run.
    monkeypatch.setattr(report_tool, "setup_logging", lambda level=None: None)
    monkeypatch.delenv("STAKEBOOST_CONFIG", raising=False)
    out = tmp_path / "schedule.json"
    monkeypatch.setattr(sys, "argv", ["emission_schedule_report.py", "--max-supply", "1000", "--out", str(out)])
    assert report_tool.main() == 0
    assert json.loads(out.read_text(encoding="utf-8"))["boost_count"] == 312

    cfg = tmp_path / "steep.yaml"
    cfg.write_text("boost_divisor: 1\nboost_count: 3\n", encoding="utf-8")
    monkeypatch.setattr(
        sys, "argv", ["emission_schedule_report.py", "--max-supply", "1000", "--config", str(cfg), "--out", str(out)]
    )
    assert report_tool.main() == 1


def test_steep_schedule_overruns_reserve() -> None:
    from tools.emission_schedule_report import build_report

    report = build_report(TokenConfig(boost_divisor=Ratio(1), boost_count=3), 1_000)
    assert report["unemitted_reserve"] < 0

from __future__ import annotations

import logging

import pytest

from stakeboost.core.config import TokenConfig
from stakeboost.core.contract import TokenContract
from stakeboost.core.emission import boost_reserve, emission_amount, emission_schedule
from stakeboost.core.fixed_point import Ratio
from stakeboost.errors import DuplicateRequest, SymbolMismatch, UnauthorizedPrincipal, UnknownToken
from stakeboost.integration.host import InMemoryHost
from stakeboost.state.asset import Asset, Symbol


TOK = Symbol(0, "TOK")


def _tok(n: int) -> Asset:
    return Asset(n, TOK)


def _make_contract(host: InMemoryHost, **cfg) -> TokenContract:
    c = TokenContract(TokenConfig(**cfg), host, "token")
    c.create(_tok(1_000), auth={"token"})
    return c


# -- schedule math ---------------------------------------------------------------


def test_reserve_is_the_unissued_part_of_the_cap() -> None:
    assert boost_reserve(TokenConfig(), 1_000) == 250
    assert boost_reserve(TokenConfig(issue_bps=10_000), 1_000) == 0


def test_emission_amounts() -> None:
    cfg = TokenConfig()
    assert emission_amount(cfg, 1_000, 1) == 3
    steep = TokenConfig(boost_divisor=Ratio(1))
    assert emission_amount(steep, 1_000, 1) == 246
    assert emission_amount(steep, 1_000, 2) == 242
    with pytest.raises(ValueError):
        emission_amount(cfg, 1_000, 0)


def test_default_schedule_fits_inside_reserve() -> None:
    cfg = TokenConfig()
    for max_supply in (1_000, 10**9, 10**15):
        schedule = emission_schedule(cfg, max_supply)
        assert len(schedule) == cfg.boost_count
        assert sum(schedule) <= boost_reserve(cfg, max_supply)
        assert all(a >= b for a, b in zip(schedule, schedule[1:]))


# -- ticks -----------------------------------------------------------------------


def test_tick_mints_due_boost_to_stakers(funded: TokenContract, caplog: pytest.LogCaptureFixture) -> None:
    funded.add_stake("alice", _tok(100), 5, auth={"alice"})
    funded.host.advance(120)
    with caplog.at_level(logging.INFO, logger="stakeboost.core.emission"):
        report = funded.update(TOK, auth={"token"})
    assert (report.boost_index, report.emitted, report.distributed, report.skip_reason) == (1, 3, 3, None)
    assert report.rearmed and report.request_id is not None
    assert funded.get_balance("alice", "TOK") == _tok(303)
    stats = funded.get_stats("TOK")
    assert stats.supply == _tok(753)
    assert stats.boosts_issued == 1
    assert stats.updated == 1_120
    assert "boost 1 minted 3" in caplog.text


def test_tick_before_due_time_skips_boost_but_rearms(funded: TokenContract) -> None:
    funded.host.advance(119)
    report = funded.update(TOK, auth={"token"})
    assert report.boost_index is None
    assert report.skip_reason == "not_due"
    assert report.rearmed
    assert funded.get_stats("TOK").boosts_issued == 0
    [pending] = funded.host.pending()
    assert pending.due == 1_119 + 60
    assert pending.call.action == "update"
    assert pending.call.args == {"symbol": str(TOK)}


def test_boost_without_stakers_goes_to_contract(funded: TokenContract) -> None:
    funded.host.advance(120)
    report = funded.update(TOK, auth={"token"})
    assert (report.emitted, report.distributed) == (3, 0)
    assert funded.get_balance("token", "TOK") == _tok(153)


def test_second_tick_at_same_time_is_a_duplicate_request(funded: TokenContract) -> None:
    funded.host.advance(120)
    funded.update(TOK, auth={"token"})
    with pytest.raises(DuplicateRequest):
        funded.update(TOK, auth={"token"})
    assert funded.get_stats("TOK").boosts_issued == 1
    assert len(funded.host.pending()) == 1


def test_boost_that_would_exceed_cap_is_skipped(host: InMemoryHost, caplog: pytest.LogCaptureFixture) -> None:
    c = _make_contract(host, boost_divisor=Ratio(1))
    host.advance(120)
    assert c.update(TOK, auth={"token"}).emitted == 246
    assert c.get_supply("TOK") == _tok(996)

    host.advance(120)
    with caplog.at_level(logging.WARNING, logger="stakeboost.core.emission"):
        report = c.update(TOK, auth={"token"})
    assert report.skip_reason == "cap"
    assert report.emitted == 0
    assert c.get_stats("TOK").boosts_issued == 1
    assert c.get_supply("TOK") == _tok(996)
    assert "would exceed max supply" in caplog.text


def test_tick_validation(funded: TokenContract) -> None:
    with pytest.raises(UnauthorizedPrincipal):
        funded.update(TOK, auth={"alice"})
    with pytest.raises(UnknownToken):
        funded.update(Symbol(0, "XYZ"), auth={"token"})
    with pytest.raises(SymbolMismatch):
        funded.update(Symbol(2, "TOK"), auth={"token"})
    assert funded.host.pending() == []


def test_recurring_job_issues_one_boost_per_interval(funded: TokenContract) -> None:
    funded.update(TOK, auth={"token"})
    results = funded.host.run_until(funded, 1_600)
    assert all(r.ok for r in results)
    # Ticks every 60s from 1060 through 1600; boosts fall due every 120s from 1120.
    assert len(results) == 10
    assert funded.get_stats("TOK").boosts_issued == 5
    assert funded.host.now() == 1_600
    assert funded.host.next_due() == 1_660


def test_exhausted_schedule_keeps_rearming_by_default(host: InMemoryHost) -> None:
    c = _make_contract(host, boost_count=1)
    host.advance(120)
    c.update(TOK, auth={"token"})
    host.run_until(c, 1_300)
    assert c.get_stats("TOK").boosts_issued == 1
    assert host.next_due() == 1_360


def test_stop_when_settled_ends_the_job(host: InMemoryHost) -> None:
    c = _make_contract(host, boost_count=1, stop_when_settled=True)
    host.advance(120)
    first = c.update(TOK, auth={"token"})
    assert first.boost_index == 1 and first.rearmed

    [result] = host.run_until(c, 1_180)
    assert result.ok
    assert result.result.skip_reason == "exhausted"
    assert result.result.rearmed is False
    assert result.result.request_id is None
    assert host.pending() == []


def test_stop_when_settled_waits_for_stakers_to_expire(host: InMemoryHost) -> None:
    c = _make_contract(host, boost_count=1, stop_when_settled=True)
    c.transfer("token", "alice", _tok(100), auth={"token"})
    c.add_stake("alice", _tok(100), 1, auth={"alice"})  # 180s lock, matures at 1180
    host.advance(120)
    c.update(TOK, auth={"token"})

    results = host.run_until(c, 1_240)
    reports = [r.result for r in results]
    # 1180 expires alice's position; the schedule is then settled and the job stops.
    assert [r.expiry.expired_positions for r in reports] == [1]
    assert reports[-1].rearmed is False
    assert host.pending() == []
    assert c.get_balance("alice", "TOK") == _tok(103)

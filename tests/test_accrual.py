import asyncio
from dataclasses import replace
from decimal import Decimal

import pytest

from cosmicforge.accrual import AccrualScheduler, accrue, offline_catch_up
from cosmicforge.config import GameConfig

from conftest import single_generator_catalog


def _producing_state(output="0.1", owned=1):
    state = single_generator_catalog(base_output=output).default_state(GameConfig())
    return state.with_item(replace(state.find("gen"), owned=Decimal(owned)))


@pytest.mark.parametrize("elapsed", [0, -5, float("nan")])
def test_accrue_ignores_non_positive_elapsed(elapsed):
    state = _producing_state()
    new_state, gain = accrue(state, elapsed)
    assert new_state is state
    assert gain == 0


def test_accrue_adds_rate_times_elapsed():
    state = replace(_producing_state(), energy=Decimal(0))
    new_state, gain = accrue(state, 10)

    assert gain == 1
    assert new_state.energy == 1
    assert new_state.statistics.total_energy_generated == 1
    assert new_state.statistics.max_energy_reached == 1
    assert new_state.statistics.total_time_played_seconds == 10


def test_accrue_discards_overflowing_tick(catalog):
    state = catalog.default_state()
    state = state.with_item(replace(state.find("h_cloud"), owned=Decimal("1e999990")))
    state = replace(state, stardust=Decimal("1e9"))

    new_state, gain = accrue(state, 1)
    assert new_state is state
    assert gain == 0


def test_offline_catch_up_is_capped():
    state = replace(_producing_state(), energy=Decimal(0))
    new_state, gain = offline_catch_up(state, 48 * 3600)

    assert gain == Decimal(8640)
    assert new_state.energy == Decimal(8640)
    # offline time does not count as played time
    assert new_state.statistics.total_time_played_seconds == 0


def test_offline_catch_up_applies_temporal_storage(catalog):
    state = catalog.default_state()
    state = state.with_item(replace(state.find("h_cloud"), owned=Decimal(2)))
    state = state.with_item(replace(state.find("offline_boost_1"), owned=Decimal(1)))

    _, gain = offline_catch_up(state, 100)
    assert gain == Decimal("39")


def test_offline_catch_up_ignores_clock_skew():
    state = _producing_state()
    new_state, gain = offline_catch_up(state, -100)
    assert new_state is state
    assert gain == 0


class _Ticker:
    def __init__(self):
        self.now = 100.0
        self.ticks = []

    def clock(self):
        return self.now

    def on_tick(self, elapsed):
        self.ticks.append(elapsed)


def test_scheduler_step_measures_elapsed():
    ticker = _Ticker()
    scheduler = AccrualScheduler(ticker.on_tick, interval=0.1, clock=ticker.clock)

    assert scheduler.step() == 0.0
    ticker.now += 2.5
    assert scheduler.step() == 2.5
    ticker.now -= 1.0
    assert scheduler.step() == 0.0
    assert ticker.ticks == [2.5]


def test_scheduler_rejects_bad_interval():
    with pytest.raises(ValueError):
        AccrualScheduler(lambda elapsed: None, interval=0)


def test_scheduler_runs_ticks_and_jobs_until_stopped():
    ticks = []
    saves = []

    async def run():
        scheduler = AccrualScheduler(ticks.append, interval=0.01)
        scheduler.add_periodic(0.02, lambda: saves.append(1), name="autosave")
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.2)
        await scheduler.stop()
        assert not scheduler.running
        count = len(ticks)
        await asyncio.sleep(0.05)
        assert len(ticks) == count

    asyncio.run(run())
    assert ticks
    assert all(elapsed > 0 for elapsed in ticks)
    assert saves


def test_game_tick_accrues(tiny_game):
    tiny_game.buy("gen")
    assert tiny_game.tick(5.0) == Decimal("0.5")
    assert tiny_game.energy == Decimal("0.5")

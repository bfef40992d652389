"""Energy accrual over wall-clock time and the session tick loop.

``accrue`` is the single formula shared by live ticks and offline catch-up:
``energy += energy_per_second * elapsed``. A tick that would produce a
non-finite value is dropped and the state is returned unchanged.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from cosmicforge.bignum import D, ONE, ZERO, Number
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.economy import energy_per_second, offline_multiplier
from cosmicforge.types import GameState

log = logging.getLogger(__name__)


def accrue(state: GameState, elapsed_seconds: Number, config: GameConfig = GAME_CONFIG,
           *, multiplier: Decimal = ONE, played: bool = True) -> Tuple[GameState, Decimal]:
    """Advance ``state`` by ``elapsed_seconds``. Returns (new_state, energy_gained)."""
    elapsed = D(elapsed_seconds)
    if not elapsed.is_finite() or elapsed <= 0:
        return state, ZERO
    try:
        rate = energy_per_second(state, config)
        gain = rate * elapsed * multiplier
        energy = state.energy + gain
    except ArithmeticError as e:
        log.warning("discarding tick: %s", e)
        return state, ZERO
    if not (rate.is_finite() and gain.is_finite() and energy.is_finite()):
        log.warning("discarding tick with non-finite result (rate=%s)", rate)
        return state, ZERO

    stats = state.statistics.record_energy(gain, energy)
    if played:
        stats = replace(stats, total_time_played_seconds=stats.total_time_played_seconds + elapsed)
    return replace(state, energy=energy, statistics=stats), gain


def offline_catch_up(state: GameState, elapsed_seconds: Number,
                     config: GameConfig = GAME_CONFIG) -> Tuple[GameState, Decimal]:
    """One-shot accrual for time spent away, capped at the offline window."""
    elapsed = D(elapsed_seconds)
    if not elapsed.is_finite() or elapsed <= 0:
        return state, ZERO
    elapsed = min(elapsed, config.max_offline_seconds)
    return accrue(state, elapsed, config, multiplier=offline_multiplier(state), played=False)


@dataclass
class _PeriodicJob:
    interval: float
    callback: Callable[[], None]
    name: str


class AccrualScheduler:
    """Cooperative tick loop on asyncio.

    Each tick measures real elapsed time with a monotonic clock and passes it
    to ``on_tick``; periodic jobs (auto-save) run on their own interval.
    ``stop()`` cancels and awaits every task so no timer outlives the session.
    """

    def __init__(self, on_tick: Callable[[float], object], interval: float = 0.1,
                 clock: Callable[[], float] = time.monotonic) -> None:
        if interval <= 0:
            raise ValueError("tick interval must be positive")
        self.on_tick = on_tick
        self.interval = interval
        self._clock = clock
        self._last: Optional[float] = None
        self._jobs: List[_PeriodicJob] = []
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def add_periodic(self, interval: float, callback: Callable[[], None], name: str = "") -> None:
        if interval <= 0:
            raise ValueError("job interval must be positive")
        self._jobs.append(_PeriodicJob(interval, callback, name or getattr(callback, "__name__", "job")))
        if self.running:
            self._tasks.append(asyncio.ensure_future(self._run_job(self._jobs[-1])))

    def step(self) -> float:
        """Run one tick now. Returns the elapsed seconds passed to ``on_tick``."""
        now = self._clock()
        elapsed = 0.0 if self._last is None else max(0.0, now - self._last)
        self._last = now
        if elapsed > 0.0:
            self.on_tick(elapsed)
        return elapsed

    def start(self) -> None:
        if self.running:
            return
        self._last = self._clock()
        self._tasks = [asyncio.ensure_future(self._run_ticks())]
        for job in self._jobs:
            self._tasks.append(asyncio.ensure_future(self._run_job(job)))

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._last = None

    async def _run_ticks(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.step()
            except Exception:
                log.exception("tick failed")

    async def _run_job(self, job: _PeriodicJob) -> None:
        while True:
            await asyncio.sleep(job.interval)
            try:
                job.callback()
            except Exception:
                log.exception("periodic job %s failed", job.name)

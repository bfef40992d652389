"""Headless game session.

Loads the local save (with offline catch-up), runs the accrual loop and
periodic auto-save, and writes a final save on shutdown. A UI layer drives
the same ``Session`` by calling ``session.game`` commands and the remote
save/load methods.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from cosmicforge.accrual import AccrualScheduler
from cosmicforge.config import SessionConfig
from cosmicforge.game import Game
from cosmicforge.remote import RemoteResult, RemoteStore
from cosmicforge.save import load_game, save_game

log = logging.getLogger(__name__)

ResultCallback = Callable[[RemoteResult], None]


class Session:
    def __init__(self, config: SessionConfig, game: Optional[Game] = None,
                 remote: Optional[RemoteStore] = None) -> None:
        self.config = config
        self.game = game if game is not None else Game()
        self.remote = remote if remote is not None else RemoteStore(
            config.remote_url, timeout=config.remote_timeout)
        self.scheduler = AccrualScheduler(self.game.tick, interval=config.tick_interval)
        self.scheduler.add_periodic(config.autosave_interval, self.autosave, name="autosave")
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def autosave(self) -> bool:
        return save_game(self.game, self.config.save_path)

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        if load_game(self.game, self.config.save_path):
            log.info("loaded save from %s", self.config.save_path)
        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        self.autosave()
        self._loop = None

    # ── Remote save/load ─────────────────────────────────────────────

    @property
    def remote_busy(self) -> bool:
        return self.remote.in_flight

    def _on_loop(self, fn: Callable[[], None]) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(fn)
        else:
            fn()

    def save_remote(self, identity: str, callback: Optional[ResultCallback] = None) -> bool:
        """Upload the current snapshot. False if a remote save is already pending."""
        def done(result: RemoteResult) -> None:
            if callback is not None:
                self._on_loop(lambda: callback(result))

        return self.remote.save_async(identity, self.game.snapshot(), done)

    def load_remote(self, identity: str, callback: Optional[ResultCallback] = None) -> bool:
        """Download and apply a save. The state swap happens on the session loop."""
        def apply(result: RemoteResult) -> None:
            if result.ok and not self.game.restore(result.state or {}):
                result = RemoteResult(False, result.status, "Save data could not be restored")
            if callback is not None:
                callback(result)

        return self.remote.load_async(identity, lambda result: self._on_loop(lambda: apply(result)))


async def run_session(config: SessionConfig, duration: Optional[float] = None) -> Game:
    session = Session(config)
    await session.start()
    try:
        if duration is not None:
            await asyncio.sleep(duration)
        else:
            while True:
                await asyncio.sleep(config.autosave_interval)
                log.info("energy=%s (%s/s) stardust=%s",
                         session.game.energy, session.game.energy_per_second(),
                         session.game.stardust)
    finally:
        await session.stop()
    return session.game


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SessionConfig.from_env()
    try:
        asyncio.run(run_session(config))
    except KeyboardInterrupt:
        log.info("session ended")


if __name__ == "__main__":
    main()

"""Balance constants and runtime settings.

``GameConfig`` mirrors the game's balance sheet; the session and server
settings can be overridden from the environment (``COSMICFORGE_*`` and
``SAVE_SECRET``).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional

from cosmicforge.errors import ConfigError


@dataclass(frozen=True)
class GameConfig:
    # Starting values
    starting_energy: Decimal = Decimal(25)
    starting_stardust: Decimal = Decimal(0)
    base_click_energy: Decimal = Decimal(1)

    # Ascension
    ascension_requirement: Decimal = Decimal("5e5")
    ascension_exponent: Decimal = Decimal("0.35")

    # Prestige
    prestige_base_requirement: Decimal = Decimal(8)
    prestige_requirement_scaling: Decimal = Decimal(8)
    prestige_points_per_level: Decimal = Decimal(12)
    prestige_multiplier_base: Decimal = Decimal("1.18")

    # Cost scaling factors
    generator_cost_scaling: Decimal = Decimal("1.09")
    upgrade_cost_scaling: Decimal = Decimal("1.22")
    stardust_upgrade_cost_scaling: Decimal = Decimal("1.42")
    # Floor for generator scaling once cost reductions apply
    min_generator_cost_scaling: Decimal = Decimal("1.01")

    # Stardust effects
    stardust_effect_base: Decimal = Decimal("1.07")
    energy_from_stardust_exponent: Decimal = Decimal("0.55")

    # Offline progress
    max_offline_hours: Decimal = Decimal(24)

    local_save_key: str = "cosmicForgeSave"

    @property
    def max_offline_seconds(self) -> Decimal:
        return self.max_offline_hours * 3600


GAME_CONFIG = GameConfig()


def _default_save_path() -> Path:
    return Path.home() / ".cosmicforge" / f"{GAME_CONFIG.local_save_key}.json"


@dataclass
class SessionConfig:
    tick_interval: float = 0.1
    autosave_interval: float = 5.0
    save_path: Path = field(default_factory=_default_save_path)
    remote_url: str = "http://127.0.0.1:8000"
    remote_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "SessionConfig":
        cfg = cls()
        override = os.environ.get("COSMICFORGE_SAVE_PATH")
        if override:
            cfg.save_path = Path(override).expanduser().resolve()
        url = os.environ.get("COSMICFORGE_REMOTE_URL")
        if url:
            cfg.remote_url = url
        try:
            if "COSMICFORGE_TICK_INTERVAL" in os.environ:
                cfg.tick_interval = float(os.environ["COSMICFORGE_TICK_INTERVAL"])
            if "COSMICFORGE_AUTOSAVE_INTERVAL" in os.environ:
                cfg.autosave_interval = float(os.environ["COSMICFORGE_AUTOSAVE_INTERVAL"])
            if "COSMICFORGE_REMOTE_TIMEOUT" in os.environ:
                cfg.remote_timeout = float(os.environ["COSMICFORGE_REMOTE_TIMEOUT"])
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e
        if cfg.tick_interval <= 0 or cfg.autosave_interval <= 0:
            raise ConfigError("tick and autosave intervals must be positive")
        return cfg


@dataclass
class ServerConfig:
    save_secret: str
    storage_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if not self.save_secret:
            raise ConfigError("SAVE_SECRET is not defined in the server environment.")

    @classmethod
    def from_env(cls) -> "ServerConfig":
        storage = os.environ.get("COSMICFORGE_SAVE_DIR")
        return cls(
            save_secret=os.environ.get("SAVE_SECRET", ""),
            storage_dir=Path(storage).expanduser().resolve() if storage else None,
        )

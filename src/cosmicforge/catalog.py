"""Item catalog: fixed generator/upgrade definitions and fresh game states.

Definitions are read from ``catalog_data.json`` beside this module. Numbers
are stored as strings there so they load exactly into Decimal.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from cosmicforge.bignum import D
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.types import (
    GameState,
    Generator,
    Prestige,
    Statistics,
    StardustEffect,
    StardustUpgrade,
    Upgrade,
    UpgradeKind,
)

log = logging.getLogger(__name__)

_DATA_PATH = Path(__file__).resolve().parent / "catalog_data.json"


@dataclass(frozen=True)
class Catalog:
    generators: Tuple[Generator, ...]
    upgrades: Tuple[Upgrade, ...]
    stardust_upgrades: Tuple[StardustUpgrade, ...]

    def __post_init__(self) -> None:
        ids = [item.id for item in (*self.generators, *self.upgrades, *self.stardust_upgrades)]
        dupes = {i for i in ids if ids.count(i) > 1}
        if dupes:
            raise ValueError(f"duplicate catalog ids: {sorted(dupes)}")
        gen_ids = {gen.id for gen in self.generators}
        for upg in self.upgrades:
            if upg.kind is UpgradeKind.PER_GENERATOR and upg.target not in gen_ids:
                raise ValueError(f"upgrade {upg.id!r} targets unknown generator {upg.target!r}")

    def default_state(self, config: GameConfig = GAME_CONFIG, start_time: int = 0) -> GameState:
        """Fresh state: starting balances, nothing owned, cost caches at base cost."""
        return GameState(
            energy=config.starting_energy,
            stardust=config.starting_stardust,
            generators=tuple(replace(g, cost=g.base_cost) for g in self.generators),
            upgrades=tuple(replace(u, cost=u.base_cost) for u in self.upgrades),
            stardust_upgrades=tuple(replace(s, cost=s.base_cost) for s in self.stardust_upgrades),
            prestige=Prestige(),
            statistics=Statistics(start_time=start_time),
        )


def _max_level(entry: dict):
    value = entry.get("max_level")
    return None if value is None else D(value)


def parse_catalog(raw: dict) -> Catalog:
    generators = []
    for entry in raw.get("generators", []):
        generators.append(Generator(
            id=entry["id"],
            name=entry["name"],
            tier=int(entry["tier"]),
            base_cost=D(entry["base_cost"]),
            base_output=D(entry["base_output"]),
        ))
    upgrades = []
    for entry in raw.get("upgrades", []):
        upgrades.append(Upgrade(
            id=entry["id"],
            name=entry["name"],
            base_cost=D(entry["base_cost"]),
            base_multiplier=D(entry["base_multiplier"]),
            kind=UpgradeKind(entry["kind"]),
            target=entry.get("target"),
            max_level=_max_level(entry),
            description=entry.get("description", ""),
        ))
    stardust_upgrades = []
    for entry in raw.get("stardust_upgrades", []):
        stardust_upgrades.append(StardustUpgrade(
            id=entry["id"],
            name=entry["name"],
            base_cost=D(entry["base_cost"]),
            base_multiplier=D(entry["base_multiplier"]),
            effect=StardustEffect(entry["effect"]),
            max_level=_max_level(entry),
            description=entry.get("description", ""),
        ))
    return Catalog(
        generators=tuple(sorted(generators, key=lambda g: g.tier)),
        upgrades=tuple(upgrades),
        stardust_upgrades=tuple(stardust_upgrades),
    )


def load_catalog(path: Optional[Path] = None) -> Catalog:
    if path is None:
        path = _DATA_PATH
    raw = json.loads(path.read_text(encoding="utf-8"))
    catalog = parse_catalog(raw)
    log.debug(
        "loaded catalog from %s: %d generators, %d upgrades, %d stardust upgrades",
        path, len(catalog.generators), len(catalog.upgrades), len(catalog.stardust_upgrades),
    )
    return catalog

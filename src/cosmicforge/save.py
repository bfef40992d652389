"""Save/load and export/import of game state.

Only a lean snapshot is persisted: balances, per-item owned counts, the
Prestige record, statistics and a ``lastActive`` timestamp. Cached costs and
multipliers are rebuilt on load by overlaying the snapshot on a fresh
default state, so catalog entries added after a save default correctly.

Auto-save: JSON file written atomically (tmp + rename).
Export: base64 of the compact snapshot JSON.
Import: raw JSON or base64-JSON.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from cosmicforge.accrual import offline_catch_up
from cosmicforge.bignum import D, ZERO, floor, from_text, to_text
from cosmicforge.catalog import Catalog
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.costs import refresh_costs
from cosmicforge.resets import prestige_multiplier
from cosmicforge.types import GameState, Prestige, Statistics

if TYPE_CHECKING:
    from cosmicforge.game import Game

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

# Statistics fields carried in a snapshot (start_time is stored separately).
_STAT_FIELDS = {
    "totalEnergyGenerated": "total_energy_generated",
    "totalAscensions": "total_ascensions",
    "totalPrestiges": "total_prestiges",
    "totalClicks": "total_clicks",
    "maxEnergyReached": "max_energy_reached",
    "maxStardustReached": "max_stardust_reached",
    "totalTimePlayedSeconds": "total_time_played_seconds",
}

_RESTORE_ERRORS = (KeyError, TypeError, ValueError, ArithmeticError)


def to_lean_snapshot(state: GameState, last_active: int) -> dict:
    stats = {key: to_text(getattr(state.statistics, attr)) for key, attr in _STAT_FIELDS.items()}
    stats["startTime"] = state.statistics.start_time
    return {
        "version": SNAPSHOT_VERSION,
        "energy": to_text(state.energy),
        "stardust": to_text(state.stardust),
        "generators": [{"id": g.id, "owned": to_text(g.owned)} for g in state.generators],
        "upgrades": [{"id": u.id, "owned": to_text(u.owned)} for u in state.upgrades],
        "stardustUpgrades": [{"id": s.id, "owned": to_text(s.owned)} for s in state.stardust_upgrades],
        "prestige": {
            "level": to_text(state.prestige.level),
            "points": to_text(state.prestige.points),
        },
        "statistics": stats,
        "lastActive": int(last_active),
    }


def _count(value) -> Decimal:
    count = from_text(value)
    if count < 0:
        raise ValueError(f"negative count {value!r}")
    return floor(count)


def _balance(value) -> Decimal:
    amount = from_text(value)
    if amount < 0:
        raise ValueError(f"negative balance {value!r}")
    return amount


def _owned_map(entries) -> Dict[str, Decimal]:
    result = {}
    for entry in entries or []:
        result[str(entry["id"])] = _count(entry.get("owned", 0))
    return result


def _overlay(items: tuple, saved: Dict[str, Decimal], label: str) -> tuple:
    known = {item.id for item in items}
    for unknown in sorted(set(saved) - known):
        log.warning("unknown %s '%s' in save, skipping", label, unknown)
    restored = []
    for item in items:
        owned = saved.get(item.id)
        if owned is None:
            restored.append(item)
            continue
        max_level = getattr(item, "max_level", None)
        if max_level is not None and owned > max_level:
            log.warning("%s '%s' owned %s above max level %s, clamping", label, item.id, owned, max_level)
            owned = max_level
        restored.append(replace(item, owned=owned))
    return tuple(restored)


def from_lean_snapshot(snapshot: dict, catalog: Catalog, config: GameConfig = GAME_CONFIG,
                       now: Optional[int] = None) -> Tuple[GameState, Decimal]:
    """Rebuild a full GameState from ``snapshot``.

    Returns ``(state, offline_gain)``. Offline catch-up runs once, on the
    restored state, when ``lastActive`` lies in the past relative to ``now``.
    Raises KeyError/TypeError/ValueError/ArithmeticError on malformed input.
    """
    if not isinstance(snapshot, dict):
        raise TypeError("snapshot must be a JSON object")
    state = catalog.default_state(config)

    if "energy" in snapshot:
        state = replace(state, energy=_balance(snapshot["energy"]))
    if "stardust" in snapshot:
        state = replace(state, stardust=_balance(snapshot["stardust"]))

    state = replace(
        state,
        generators=_overlay(state.generators, _owned_map(snapshot.get("generators")),
                            "generator"),
        upgrades=_overlay(state.upgrades, _owned_map(snapshot.get("upgrades")),
                          "upgrade"),
        stardust_upgrades=_overlay(
            state.stardust_upgrades,
            _owned_map(snapshot.get("stardustUpgrades")),
            "stardust upgrade",
        ),
    )

    saved_prestige = snapshot.get("prestige")
    if saved_prestige:
        if not isinstance(saved_prestige, dict):
            raise TypeError("prestige must be a JSON object")
        points = _count(saved_prestige.get("points", 0))
        state = replace(state, prestige=Prestige(
            level=_count(saved_prestige.get("level", 0)),
            points=points,
            multiplier=prestige_multiplier(points, config),
        ))

    saved_stats = snapshot.get("statistics") or {}
    if not isinstance(saved_stats, dict):
        raise TypeError("statistics must be a JSON object")
    stats = Statistics()
    for key, attr in _STAT_FIELDS.items():
        if key in saved_stats:
            stats = replace(stats, **{attr: _balance(saved_stats[key])})
    stats = replace(stats, start_time=int(saved_stats.get("startTime", 0)))
    state = replace(state, statistics=stats.record_energy(ZERO, state.energy).record_stardust(state.stardust))

    state = refresh_costs(state, config)

    offline_gain = ZERO
    last_active = snapshot.get("lastActive")
    if last_active is not None and now is not None:
        elapsed = (D(now) - D(int(last_active))) / 1000
        if elapsed > 0:
            state, offline_gain = offline_catch_up(state, elapsed, config)
            if offline_gain > 0:
                log.info("offline for %ss, gained %s energy", elapsed, offline_gain)
    return state, offline_gain


def restore_snapshot(game: Game, data: dict, now: Optional[int] = None) -> bool:
    """Restore game state from a snapshot dict. Returns True on success."""
    if now is None:
        now = game.clock()
    try:
        state, _ = from_lean_snapshot(data, game.catalog, game.config, now)
    except _RESTORE_ERRORS as e:
        log.error("error restoring save data: %s", e)
        return False
    game.replace_state(state)
    return True


def _encode(game: Game) -> str:
    return json.dumps(to_lean_snapshot(game.state, game.clock()), separators=(",", ":"))


def build_export_text(game: Game) -> str:
    """base64-JSON export payload."""
    return base64.b64encode(_encode(game).encode("utf-8")).decode("ascii")


def parse_import_text(encoded: str) -> Optional[dict]:
    """Parse raw JSON or base64-JSON import text; None when neither fits."""
    encoded = encoded.strip()
    try:
        data = json.loads(encoded)
        if isinstance(data, dict) and "version" in data:
            return data
    except ValueError:
        pass

    try:
        raw = base64.b64decode(encoded, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    if isinstance(data, dict) and "version" in data:
        return data
    return None


def import_save_text(game: Game, encoded: str) -> bool:
    data = parse_import_text(encoded)
    if data is None:
        log.warning("could not parse import text (not a valid save)")
        return False
    return restore_snapshot(game, data)


def save_game(game: Game, path: Path) -> bool:
    """Auto-save: write JSON atomically (tmp + rename)."""
    tmp_path = path.with_suffix(".tmp")
    try:
        text = json.dumps(to_lean_snapshot(game.state, game.clock()), indent=2)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except (OSError, ValueError) as e:
        log.error("error saving game to %s: %s", path, e)
        return False
    return True


def load_game(game: Game, path: Path) -> bool:
    """Auto-load: read JSON, restore state. Returns False on missing/corrupt file."""
    if not path.exists():
        return False
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.error("error loading save file %s: %s", path, e)
        return False
    return restore_snapshot(game, data)

"""Ascension and Prestige resets.

Ascension converts Energy into Stardust and restarts the run keeping
Stardust, Stardust upgrades, Prestige and Statistics. Prestige converts a
Stardust threshold into Prestige points and restarts everything except the
Prestige record and Statistics. Both are no-ops when ineligible.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Tuple

from cosmicforge.bignum import ONE, ZERO, floor, power
from cosmicforge.catalog import Catalog
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.costs import refresh_costs
from cosmicforge.types import ActionResult, GameState, Prestige

log = logging.getLogger(__name__)


def can_ascend(state: GameState, config: GameConfig = GAME_CONFIG) -> bool:
    return state.energy >= config.ascension_requirement


def ascension_payout(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    if not can_ascend(state, config):
        return ZERO
    return floor(power(state.energy / config.ascension_requirement, config.ascension_exponent))


def ascend(state: GameState, catalog: Catalog,
           config: GameConfig = GAME_CONFIG) -> Tuple[GameState, ActionResult]:
    if not can_ascend(state, config):
        return state, ActionResult(False, "not enough energy to ascend")

    payout = ascension_payout(state, config)
    stardust = state.stardust + payout
    stats = replace(
        state.statistics,
        total_ascensions=state.statistics.total_ascensions + ONE,
    ).record_stardust(stardust)

    fresh = catalog.default_state(config, start_time=state.statistics.start_time)
    new_state = replace(
        fresh,
        stardust=stardust,
        stardust_upgrades=state.stardust_upgrades,
        prestige=state.prestige,
        statistics=stats,
    )
    # Generator costs depend on retained stardust upgrades.
    new_state = refresh_costs(new_state, config)
    log.info("ascended: +%s stardust (total %s)", payout, stardust)
    return new_state, ActionResult(True, amount=payout)


def prestige_requirement(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    exponent = (state.prestige.level + ONE) * config.prestige_requirement_scaling
    return power(config.prestige_base_requirement, exponent)


def can_prestige(state: GameState, config: GameConfig = GAME_CONFIG) -> bool:
    return state.stardust >= prestige_requirement(state, config)


def prestige_points_gain(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    return (state.prestige.level + ONE) * config.prestige_points_per_level


def prestige_multiplier(points: Decimal, config: GameConfig = GAME_CONFIG) -> Decimal:
    return power(config.prestige_multiplier_base, points)


def prestige(state: GameState, catalog: Catalog,
             config: GameConfig = GAME_CONFIG) -> Tuple[GameState, ActionResult]:
    if not can_prestige(state, config):
        return state, ActionResult(False, "not enough stardust to prestige")

    gained = prestige_points_gain(state, config)
    points = state.prestige.points + gained
    new_prestige = Prestige(
        level=state.prestige.level + ONE,
        points=points,
        multiplier=prestige_multiplier(points, config),
    )
    stats = replace(
        state.statistics,
        total_prestiges=state.statistics.total_prestiges + ONE,
    )
    fresh = catalog.default_state(config, start_time=state.statistics.start_time)
    new_state = replace(fresh, prestige=new_prestige, statistics=stats)
    log.info("prestiged to level %s: +%s points (total %s)", new_prestige.level, gained, points)
    return new_state, ActionResult(True, amount=gained)

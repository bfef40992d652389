"""Geometric cost curves.

cost(n) = base_cost * scaling ** owned, so buying ``q`` more costs the
geometric series ``unit * (scaling ** q - 1) / (scaling - 1)``.

Purchases whose cost would pass the clamp ceiling (``scaling ** (owned + q)``
above ``SENTINEL``) are priced at ``UNAFFORDABLE`` and never go through.
"""
from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Optional

from cosmicforge.bignum import CONTEXT, LOG_CEILING, ONE, ZERO, floor, log, power
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.types import (
    GameState,
    Generator,
    Item,
    StardustEffect,
    StardustUpgrade,
    Upgrade,
)

# Price of a purchase that cannot be represented; compares above any balance.
UNAFFORDABLE = Decimal("Infinity")

# max_affordable's log solve is exact to within a level or two.
_CORRECTION_STEPS = 8


def cost_scaling(item: Item, state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    if isinstance(item, Generator):
        scaling = config.generator_cost_scaling
        reduced = False
        for su in state.stardust_upgrades:
            if su.effect is StardustEffect.GENERATOR_COST_REDUCTION and su.owned > 0:
                scaling *= power(su.base_multiplier, su.owned)
                reduced = True
        if reduced:
            scaling = max(scaling, config.min_generator_cost_scaling)
        return scaling
    if isinstance(item, Upgrade):
        return config.upgrade_cost_scaling
    if isinstance(item, StardustUpgrade):
        return config.stardust_upgrade_cost_scaling
    raise TypeError(f"unknown item type {type(item).__name__}")


def unit_cost(item: Item, state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    return item.base_cost * power(cost_scaling(item, state, config), item.owned)


def remaining_levels(item: Item) -> Optional[Decimal]:
    """Levels left before the cap, or None when the item is uncapped."""
    max_level = getattr(item, "max_level", None)
    if max_level is None:
        return None
    return max(max_level - item.owned, ZERO)


def _representable_levels(scaling: Decimal) -> Optional[Decimal]:
    """Highest total level whose ``scaling ** level`` stays under the clamp ceiling."""
    if scaling <= ONE:
        return None
    return floor(LOG_CEILING / scaling.ln(CONTEXT))


def bulk_cost(item: Item, quantity: Decimal, state: GameState,
              config: GameConfig = GAME_CONFIG) -> Decimal:
    if quantity <= 0:
        return ZERO
    scaling = cost_scaling(item, state, config)
    ceiling = _representable_levels(scaling)
    if ceiling is not None and item.owned + quantity > ceiling:
        return UNAFFORDABLE
    unit = unit_cost(item, state, config)
    if scaling == ONE:
        return unit * quantity
    return unit * (power(scaling, quantity) - ONE) / (scaling - ONE)


def max_affordable(item: Item, currency: Decimal, state: GameState,
                   config: GameConfig = GAME_CONFIG) -> Decimal:
    """Largest whole quantity whose bulk cost fits in ``currency`` (0 if none)."""
    remaining = remaining_levels(item)
    if remaining is not None and remaining <= 0:
        return ZERO
    unit = unit_cost(item, state, config)
    if unit <= 0 or currency < unit:
        return ZERO
    scaling = cost_scaling(item, state, config)
    if scaling == ONE:
        count = floor(currency / unit)
    else:
        count = floor(log(currency / unit * (scaling - ONE) + ONE, scaling))
    ceiling = _representable_levels(scaling)
    if ceiling is not None:
        count = min(count, ceiling - item.owned)
    if remaining is not None:
        count = min(count, remaining)
    count = max(count, ZERO)

    # The log solve can land one off either side after rounding.
    for _ in range(_CORRECTION_STEPS):
        if count <= 0 or bulk_cost(item, count, state, config) <= currency:
            break
        count -= 1
    for _ in range(_CORRECTION_STEPS):
        if remaining is not None and count >= remaining:
            break
        if bulk_cost(item, count + 1, state, config) > currency:
            break
        count += 1
    return count


def can_afford(item: Item, quantity: Decimal, currency: Decimal, state: GameState,
               config: GameConfig = GAME_CONFIG) -> bool:
    if quantity <= 0:
        return False
    remaining = remaining_levels(item)
    if remaining is not None and quantity > remaining:
        return False
    return bulk_cost(item, quantity, state, config) <= currency


def refresh_costs(state: GameState, config: GameConfig = GAME_CONFIG) -> GameState:
    """Recompute every cached ``cost`` from its ``owned`` count."""
    return replace(
        state,
        generators=tuple(replace(g, cost=unit_cost(g, state, config)) for g in state.generators),
        upgrades=tuple(replace(u, cost=unit_cost(u, state, config)) for u in state.upgrades),
        stardust_upgrades=tuple(
            replace(s, cost=unit_cost(s, state, config)) for s in state.stardust_upgrades
        ),
    )

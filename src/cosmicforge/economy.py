"""Derived rates: energy per second / per click and the multipliers behind them.

All functions are pure reads of a GameState. Composition order is fixed:

    sum(owned * base_output * generator_upgrades * synergy)
      * global * stardust * stardust_energy * efficiency

and the same order is used for live ticks, clicks and offline catch-up.
"""
from __future__ import annotations

from decimal import Decimal

from cosmicforge.bignum import ONE, ZERO, clamp, power
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.types import GameState, Generator, StardustEffect, UpgradeKind


def _leveled(base: Decimal, level: Decimal) -> Decimal:
    if level <= 0:
        return ONE
    return power(base, level)


def _upgrade_product(state: GameState, kind: UpgradeKind) -> Decimal:
    result = ONE
    for upg in state.upgrades:
        if upg.kind is kind:
            result *= _leveled(upg.base_multiplier, upg.owned)
    return result


def _stardust_product(state: GameState, effect: StardustEffect) -> Decimal:
    result = ONE
    for su in state.stardust_upgrades:
        if su.effect is effect:
            result *= _leveled(su.base_multiplier, su.owned)
    return result


def global_multiplier(state: GameState) -> Decimal:
    return _upgrade_product(state, UpgradeKind.GLOBAL)


def efficiency_multiplier(state: GameState) -> Decimal:
    return _upgrade_product(state, UpgradeKind.EFFICIENCY)


def generator_upgrade_multiplier(state: GameState, generator: Generator) -> Decimal:
    result = ONE
    for upg in state.upgrades:
        if upg.kind is UpgradeKind.PER_GENERATOR and upg.target == generator.id:
            result *= _leveled(upg.base_multiplier, upg.owned)
    return result


def synergy_multiplier(state: GameState, generator: Generator) -> Decimal:
    """Boost from the tier below: ``base ** (owned_of_preceding_tier * levels)``."""
    preceding = None
    for gen in state.generators:
        if gen.tier == generator.tier - 1:
            preceding = gen
            break
    if preceding is None or preceding.owned <= 0:
        return ONE
    result = ONE
    for upg in state.upgrades:
        if upg.kind is UpgradeKind.SYNERGY and upg.owned > 0:
            result *= power(upg.base_multiplier, preceding.owned * upg.owned)
    return result


def stardust_amplifier(state: GameState) -> Decimal:
    return _stardust_product(state, StardustEffect.AMPLIFIER)


def stardust_multiplier(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    base = power(config.stardust_effect_base, state.stardust)
    return clamp(base * stardust_amplifier(state) * state.prestige.multiplier)


def stardust_energy_multiplier(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    """Stardust Infusion: ``base ** level * (1 + stardust) ** exponent`` once owned."""
    result = ONE
    for su in state.stardust_upgrades:
        if su.effect is StardustEffect.ENERGY_FROM_STARDUST and su.owned > 0:
            result *= power(su.base_multiplier, su.owned) * power(
                ONE + state.stardust, config.energy_from_stardust_exponent)
    return clamp(result)


def offline_multiplier(state: GameState) -> Decimal:
    return _stardust_product(state, StardustEffect.OFFLINE_BOOST)


def quantum_unlocked(state: GameState) -> bool:
    return any(
        su.effect is StardustEffect.QUANTUM_UNLOCK and su.owned > 0
        for su in state.stardust_upgrades
    )


def generator_output(state: GameState, generator: Generator) -> Decimal:
    """Per-second output of one generator line before global multipliers."""
    if generator.owned <= 0:
        return ZERO
    return (generator.owned * generator.base_output
            * generator_upgrade_multiplier(state, generator)
            * synergy_multiplier(state, generator))


def _apply_global(total: Decimal, state: GameState, config: GameConfig) -> Decimal:
    total *= global_multiplier(state)
    total *= stardust_multiplier(state, config)
    total *= stardust_energy_multiplier(state, config)
    total *= efficiency_multiplier(state)
    return total


def energy_per_second(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    total = ZERO
    for gen in state.generators:
        total += generator_output(state, gen)
    if total == ZERO:
        return ZERO
    return _apply_global(total, state, config)


def energy_per_click(state: GameState, config: GameConfig = GAME_CONFIG) -> Decimal:
    return _apply_global(config.base_click_energy, state, config)

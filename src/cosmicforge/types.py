from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

from cosmicforge.bignum import ONE, ZERO


class UpgradeKind(str, Enum):
    GLOBAL = "global"
    PER_GENERATOR = "generator"
    SYNERGY = "synergy"
    EFFICIENCY = "efficiency"


class StardustEffect(str, Enum):
    AMPLIFIER = "amplifier"
    ENERGY_FROM_STARDUST = "energy_from_stardust"
    GENERATOR_COST_REDUCTION = "generator_cost_reduction"
    OFFLINE_BOOST = "offline_boost"
    QUANTUM_UNLOCK = "quantum_unlock"


@dataclass(frozen=True)
class Generator:
    id: str
    name: str
    tier: int
    base_cost: Decimal
    base_output: Decimal
    owned: Decimal = ZERO
    cost: Decimal = ZERO  # cached; base_cost * scaling ** owned


@dataclass(frozen=True)
class Upgrade:
    """Leveled multiplier bought with Energy.

    ``target`` is only set for PER_GENERATOR upgrades.
    """
    id: str
    name: str
    base_cost: Decimal
    base_multiplier: Decimal
    kind: UpgradeKind
    target: Optional[str] = None
    max_level: Optional[Decimal] = None
    description: str = ""
    owned: Decimal = ZERO
    cost: Decimal = ZERO

    @property
    def maxed(self) -> bool:
        return self.max_level is not None and self.owned >= self.max_level


@dataclass(frozen=True)
class StardustUpgrade:
    """Leveled effect bought with Stardust; survives Ascension."""
    id: str
    name: str
    base_cost: Decimal
    base_multiplier: Decimal
    effect: StardustEffect
    max_level: Optional[Decimal] = None
    description: str = ""
    owned: Decimal = ZERO
    cost: Decimal = ZERO

    @property
    def maxed(self) -> bool:
        return self.max_level is not None and self.owned >= self.max_level


Item = Union[Generator, Upgrade, StardustUpgrade]


@dataclass(frozen=True)
class Prestige:
    level: Decimal = ZERO
    points: Decimal = ZERO
    multiplier: Decimal = ONE


@dataclass(frozen=True)
class Statistics:
    total_energy_generated: Decimal = ZERO
    total_ascensions: Decimal = ZERO
    total_prestiges: Decimal = ZERO
    total_clicks: Decimal = ZERO
    max_energy_reached: Decimal = ZERO
    max_stardust_reached: Decimal = ZERO
    total_time_played_seconds: Decimal = ZERO
    start_time: int = 0  # epoch ms

    def record_energy(self, gained: Decimal, balance: Decimal) -> "Statistics":
        return replace(
            self,
            total_energy_generated=self.total_energy_generated + max(gained, ZERO),
            max_energy_reached=max(self.max_energy_reached, balance),
        )

    def record_stardust(self, balance: Decimal) -> "Statistics":
        return replace(self, max_stardust_reached=max(self.max_stardust_reached, balance))


@dataclass(frozen=True)
class GameState:
    energy: Decimal = ZERO
    stardust: Decimal = ZERO
    generators: Tuple[Generator, ...] = ()
    upgrades: Tuple[Upgrade, ...] = ()
    stardust_upgrades: Tuple[StardustUpgrade, ...] = ()
    prestige: Prestige = field(default_factory=Prestige)
    statistics: Statistics = field(default_factory=Statistics)

    def find(self, item_id: str) -> Optional[Item]:
        for group in (self.generators, self.upgrades, self.stardust_upgrades):
            for item in group:
                if item.id == item_id:
                    return item
        return None

    def generator(self, generator_id: str) -> Optional[Generator]:
        for gen in self.generators:
            if gen.id == generator_id:
                return gen
        return None

    def with_item(self, item: Item) -> "GameState":
        """Return a copy with the same-id entry swapped for ``item``."""
        if isinstance(item, Generator):
            return replace(self, generators=_swap(self.generators, item))
        if isinstance(item, Upgrade):
            return replace(self, upgrades=_swap(self.upgrades, item))
        if isinstance(item, StardustUpgrade):
            return replace(self, stardust_upgrades=_swap(self.stardust_upgrades, item))
        raise TypeError(f"unknown item type {type(item).__name__}")


def _swap(items: tuple, new_item: Item) -> tuple:
    return tuple(new_item if existing.id == new_item.id else existing for existing in items)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a player intent; failures leave state untouched."""

    success: bool
    reason: str = ""
    amount: Decimal = ZERO
    quantity: Decimal = ZERO

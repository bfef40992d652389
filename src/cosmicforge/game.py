"""Game session: owns the current GameState and turns player intents into
state transitions.

Every command builds a complete new GameState and swaps it in with a single
assignment, so readers never observe a half-applied purchase or reset.
Commands report an ``ActionResult``; they do not raise on ineligible input.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional, Union

from cosmicforge import costs, economy, resets
from cosmicforge.accrual import accrue
from cosmicforge.bignum import D, ONE, ZERO, is_whole
from cosmicforge.catalog import Catalog, load_catalog
from cosmicforge.config import GAME_CONFIG, GameConfig
from cosmicforge.errors import ValidationError
from cosmicforge.save import restore_snapshot, to_lean_snapshot
from cosmicforge.types import ActionResult, GameState, Item, StardustUpgrade

log = logging.getLogger(__name__)

BUY_MAX = "max"

Quantity = Union[int, Decimal, str]


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_quantity(quantity: Quantity) -> Optional[Decimal]:
    """Whole positive quantity, or None for BUY_MAX. Raises ValidationError."""
    if isinstance(quantity, str) and quantity.strip().lower() == BUY_MAX:
        return None
    try:
        value = D(quantity)
    except (TypeError, ArithmeticError) as e:
        raise ValidationError(f"invalid quantity {quantity!r}") from e
    if not is_whole(value):
        raise ValidationError(f"quantity must be a whole number, got {quantity!r}")
    if value <= 0:
        raise ValidationError(f"quantity must be positive, got {quantity!r}")
    return value


class Game:
    def __init__(self, catalog: Optional[Catalog] = None, config: GameConfig = GAME_CONFIG,
                 clock: Callable[[], int] = now_ms) -> None:
        self.catalog = catalog if catalog is not None else load_catalog()
        self.config = config
        self.clock = clock
        self._state = self.catalog.default_state(config, start_time=clock())

    # ── Read accessors ───────────────────────────────────────────────

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def energy(self) -> Decimal:
        return self._state.energy

    @property
    def stardust(self) -> Decimal:
        return self._state.stardust

    def energy_per_second(self) -> Decimal:
        return economy.energy_per_second(self._state, self.config)

    def energy_per_click(self) -> Decimal:
        return economy.energy_per_click(self._state, self.config)

    def stardust_multiplier(self) -> Decimal:
        return economy.stardust_multiplier(self._state, self.config)

    @property
    def quantum_unlocked(self) -> bool:
        return economy.quantum_unlocked(self._state)

    def can_ascend(self) -> bool:
        return resets.can_ascend(self._state, self.config)

    def ascension_payout(self) -> Decimal:
        return resets.ascension_payout(self._state, self.config)

    def can_prestige(self) -> bool:
        return resets.can_prestige(self._state, self.config)

    def prestige_requirement(self) -> Decimal:
        return resets.prestige_requirement(self._state, self.config)

    def prestige_points_gain(self) -> Decimal:
        return resets.prestige_points_gain(self._state, self.config)

    def next_cost(self, item_id: str, quantity: Quantity = 1) -> Optional[Decimal]:
        """Price of ``quantity`` more (BUY_MAX prices the max affordable); None if invalid."""
        item = self._state.find(item_id)
        if item is None:
            return None
        try:
            count = parse_quantity(quantity)
        except ValidationError:
            return None
        if count is None:
            count = costs.max_affordable(item, self._balance_for(item), self._state, self.config)
        return costs.bulk_cost(item, count, self._state, self.config)

    def max_affordable(self, item_id: str) -> Decimal:
        item = self._state.find(item_id)
        if item is None:
            return ZERO
        return costs.max_affordable(item, self._balance_for(item), self._state, self.config)

    # ── Commands ─────────────────────────────────────────────────────

    def click(self) -> ActionResult:
        state = self._state
        try:
            gain = economy.energy_per_click(state, self.config)
            energy = state.energy + gain
        except ArithmeticError as e:
            log.warning("click discarded: %s", e)
            return ActionResult(False, "numeric overflow")
        if not (gain.is_finite() and energy.is_finite()):
            return ActionResult(False, "numeric overflow")
        stats = replace(
            state.statistics.record_energy(gain, energy),
            total_clicks=state.statistics.total_clicks + ONE,
        )
        self._state = replace(state, energy=energy, statistics=stats)
        return ActionResult(True, amount=gain)

    def buy(self, item_id: str, quantity: Quantity = 1) -> ActionResult:
        try:
            requested = parse_quantity(quantity)
        except ValidationError as e:
            return ActionResult(False, str(e))

        state = self._state
        item = state.find(item_id)
        if item is None:
            return ActionResult(False, f"unknown item {item_id!r}")
        if getattr(item, "maxed", False):
            return ActionResult(False, "already at max level")

        balance = self._balance_for(item)
        if requested is None:
            count = costs.max_affordable(item, balance, state, self.config)
            if count <= 0:
                return ActionResult(False, "cannot afford")
        else:
            count = requested
            remaining = costs.remaining_levels(item)
            if remaining is not None and count > remaining:
                return ActionResult(False, "exceeds max level")
        if not costs.can_afford(item, count, balance, state, self.config):
            return ActionResult(False, "cannot afford")

        price = costs.bulk_cost(item, count, state, self.config)
        new_state = state.with_item(replace(item, owned=item.owned + count))
        if isinstance(item, StardustUpgrade):
            new_state = replace(new_state, stardust=state.stardust - price)
        else:
            new_state = replace(new_state, energy=state.energy - price)
        self._state = costs.refresh_costs(new_state, self.config)
        log.debug("bought %s x%s for %s", item_id, count, price)
        return ActionResult(True, amount=price, quantity=count)

    def ascend(self) -> ActionResult:
        self._state, result = resets.ascend(self._state, self.catalog, self.config)
        return result

    def prestige(self) -> ActionResult:
        self._state, result = resets.prestige(self._state, self.catalog, self.config)
        return result

    def tick(self, elapsed_seconds: float) -> Decimal:
        self._state, gained = accrue(self._state, elapsed_seconds, self.config)
        return gained

    def hard_reset(self) -> None:
        self._state = self.catalog.default_state(self.config, start_time=self.clock())
        log.info("game state reset to defaults")

    def snapshot(self) -> dict:
        """Lean snapshot of the current state stamped with the current time."""
        return to_lean_snapshot(self._state, self.clock())

    def restore(self, snapshot: dict, now: Optional[int] = None) -> bool:
        """Replace the state from ``snapshot`` (with offline catch-up up to ``now``)."""
        return restore_snapshot(self, snapshot, now)

    def replace_state(self, state: GameState) -> None:
        """Swap in a fully-built state (used by the save codec)."""
        self._state = state

    def _balance_for(self, item: Item) -> Decimal:
        if isinstance(item, StardustUpgrade):
            return self._state.stardust
        return self._state.energy

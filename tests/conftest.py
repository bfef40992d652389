from __future__ import annotations

from decimal import Decimal

import pytest

from cosmicforge.catalog import Catalog, load_catalog
from cosmicforge.config import GameConfig
from cosmicforge.game import Game
from cosmicforge.types import Generator


class FakeClock:
    """Millisecond wall clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def single_generator_catalog(base_cost="10", base_output="0.1") -> Catalog:
    return Catalog(
        generators=(Generator(
            id="gen",
            name="Test Generator",
            tier=1,
            base_cost=Decimal(base_cost),
            base_output=Decimal(base_output),
        ),),
        upgrades=(),
        stardust_upgrades=(),
    )


@pytest.fixture
def catalog() -> Catalog:
    return load_catalog()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def game(catalog, clock) -> Game:
    return Game(catalog, clock=clock)


@pytest.fixture
def tiny_config() -> GameConfig:
    return GameConfig(starting_energy=Decimal(10))


@pytest.fixture
def tiny_game(tiny_config, clock) -> Game:
    return Game(single_generator_catalog(), tiny_config, clock=clock)

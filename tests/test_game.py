from dataclasses import replace
from decimal import Decimal

import pytest

from cosmicforge import costs
from cosmicforge.errors import ValidationError
from cosmicforge.game import BUY_MAX, parse_quantity


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "abc", "", float("nan"), float("inf"), True, None])
def test_invalid_quantity_is_rejected(game, quantity):
    before = game.state
    result = game.buy("h_cloud", quantity)
    assert not result.success
    assert result.reason
    assert game.state is before


def test_parse_quantity():
    assert parse_quantity(3) == 3
    assert parse_quantity("12") == 12
    assert parse_quantity(" MAX ") is None
    with pytest.raises(ValidationError):
        parse_quantity("2.5")


def test_unknown_item(game):
    result = game.buy("dyson_sphere")
    assert not result.success
    assert "unknown" in result.reason


def test_cannot_afford_leaves_state(game):
    before = game.state
    result = game.buy("universe")
    assert not result.success
    assert game.state is before


def test_buy_max(game):
    game.replace_state(replace(game.state, energy=Decimal(1000)))
    expected = game.max_affordable("h_cloud")

    result = game.buy("h_cloud", BUY_MAX)

    assert result.success
    assert result.quantity == expected
    gen = game.state.find("h_cloud")
    assert gen.owned == expected
    assert 0 <= game.energy < gen.cost
    assert gen.cost == costs.unit_cost(gen, game.state)


def test_buy_max_with_nothing_affordable(game):
    game.replace_state(replace(game.state, energy=Decimal(1)))
    assert not game.buy("h_cloud", BUY_MAX).success


def test_quantity_beyond_max_level(game):
    game.replace_state(replace(game.state, stardust=Decimal("1e9")))
    result = game.buy("quantum_unlock", 2)
    assert not result.success
    assert "max level" in result.reason


def test_maxed_item_cannot_be_bought(game):
    game.replace_state(replace(game.state, stardust=Decimal("1e9")))
    assert game.buy("quantum_unlock").success
    assert game.quantum_unlocked

    result = game.buy("quantum_unlock")
    assert not result.success
    assert result.reason == "already at max level"


def test_stardust_upgrades_are_paid_with_stardust(game):
    game.replace_state(replace(game.state, stardust=Decimal(10)))
    result = game.buy("stardust_boost_1")

    assert result.success
    assert result.amount == 1
    assert game.stardust == 9
    assert game.energy == 25
    assert game.state.find("stardust_boost_1").cost == Decimal("1.42")


def test_cost_reduction_purchase_reprices_generators(game):
    game.replace_state(replace(game.state, stardust=Decimal(100)))
    game.replace_state(game.state.with_item(replace(game.state.find("h_cloud"), owned=Decimal(10))))
    before = costs.unit_cost(game.state.find("h_cloud"), game.state)

    assert game.buy("generator_cost_reduction_1").success
    assert game.state.find("h_cloud").cost < before


def test_next_cost(game):
    assert game.next_cost("h_cloud") == 8
    assert game.next_cost("h_cloud", 2) == Decimal("16.72")
    assert game.next_cost("nope") is None


def test_click_adds_energy_and_counts(game):
    result = game.click()
    assert result.success
    assert result.amount == 1
    assert game.energy == 26
    assert game.state.statistics.total_clicks == 1
    assert game.state.statistics.total_energy_generated == 1


def test_ascend_and_prestige_commands(game):
    assert not game.ascend().success

    game.replace_state(replace(game.state, energy=Decimal("5e5")))
    assert game.can_ascend()
    assert game.ascension_payout() == 1
    assert game.ascend().success
    assert game.stardust == 1

    assert not game.can_prestige()
    game.replace_state(replace(game.state, stardust=game.prestige_requirement()))
    assert game.prestige().success
    assert game.state.prestige.level == 1
    assert game.stardust == 0


def test_hard_reset(game, clock):
    game.buy("h_cloud")
    game.click()
    clock.advance(5000)

    game.hard_reset()

    assert game.energy == 25
    assert game.state.find("h_cloud").owned == 0
    assert game.state.statistics.total_clicks == 0
    assert game.state.statistics.start_time == clock.now


def test_snapshot_is_stamped_with_clock(game, clock):
    assert game.snapshot()["lastActive"] == clock.now


def test_prestige_points_preview(game):
    assert game.prestige_points_gain() == 12


def test_restore_with_explicit_now(tiny_game, clock):
    tiny_game.buy("gen")
    snapshot = tiny_game.snapshot()

    assert tiny_game.restore(snapshot, now=clock.now + 30_000)
    assert tiny_game.energy == 3


def test_buy_max_with_balance_past_the_ceiling(game):
    snapshot = game.snapshot()
    snapshot["energy"] = "1e1100"
    assert game.restore(snapshot)

    result = game.buy("h_cloud", BUY_MAX)
    assert result.success
    assert result.quantity > 0
    assert game.energy.is_finite()
    assert game.energy > 0

    # every further level is priced past the ceiling
    assert not game.buy("h_cloud", BUY_MAX).success
    assert not game.buy("h_cloud").success


def test_next_cost_quantities(game):
    assert game.next_cost("h_cloud", BUY_MAX) == Decimal("16.72")
    assert game.next_cost("h_cloud", "abc") is None
    assert game.next_cost("h_cloud", 0) is None

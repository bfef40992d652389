from decimal import Decimal

import pytest

from cosmicforge.bignum import D, SENTINEL, clamp, floor, from_text, is_whole, log, power, to_text
from cosmicforge.config import SessionConfig
from cosmicforge.errors import ConfigError


def test_coercion():
    assert D(0.1) == Decimal("0.1")
    assert D(" 12 ") == 12
    with pytest.raises(TypeError):
        D(True)


def test_power_edge_cases():
    assert power(Decimal(5), Decimal(0)) == 1
    assert power(Decimal(1), Decimal("1e50")) == 1
    assert power(Decimal(2), Decimal(10)) == 1024
    assert power(Decimal(0), Decimal(3)) == 0
    assert power(Decimal(10), Decimal("1e6")) == SENTINEL


def test_log():
    assert abs(log(Decimal(1024), Decimal(2)) - 10) < Decimal("1e-30")
    with pytest.raises(ValueError):
        log(Decimal(0), Decimal(2))
    with pytest.raises(ValueError):
        log(Decimal(5), Decimal(1))


def test_clamp_and_text():
    assert clamp(Decimal("Infinity")) == SENTINEL
    assert clamp(Decimal("-Infinity")) == -SENTINEL
    assert clamp(Decimal("NaN")) == 0
    assert from_text(to_text(Decimal("1.5e300"))) == Decimal("1.5e300")
    with pytest.raises(ValueError):
        to_text(Decimal("NaN"))
    with pytest.raises(ValueError):
        from_text("Infinity")


def test_floor_and_whole():
    assert floor(Decimal("2.9")) == 2
    assert is_whole(Decimal("3.0"))
    assert not is_whole(Decimal("3.1"))
    assert not is_whole(Decimal("Infinity"))


def test_session_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("COSMICFORGE_SAVE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("COSMICFORGE_TICK_INTERVAL", "0.5")
    cfg = SessionConfig.from_env()
    assert cfg.save_path == (tmp_path / "s.json").resolve()
    assert cfg.tick_interval == 0.5

    monkeypatch.setenv("COSMICFORGE_AUTOSAVE_INTERVAL", "soon")
    with pytest.raises(ConfigError):
        SessionConfig.from_env()
    monkeypatch.setenv("COSMICFORGE_AUTOSAVE_INTERVAL", "0")
    with pytest.raises(ConfigError):
        SessionConfig.from_env()

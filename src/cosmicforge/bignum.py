"""Big-number helpers built on ``decimal.Decimal``.

Every economy quantity is a Decimal. Plain ``+``/``*``/comparisons use the
ambient context; anything that can explode (powers, logarithms) goes through
the wide, non-trapping ``CONTEXT`` below and is clamped to ``SENTINEL`` so a
non-finite value never reaches game state.
"""
from __future__ import annotations

from decimal import Context, Decimal, ROUND_FLOOR, ROUND_HALF_EVEN
from typing import Union

Number = Union[Decimal, int, str, float]

PRECISION = 40
EXPONENT_LIMIT = 999_999_999

CONTEXT = Context(
    prec=PRECISION,
    rounding=ROUND_HALF_EVEN,
    Emin=-EXPONENT_LIMIT,
    Emax=EXPONENT_LIMIT,
    traps=[],
)

ZERO = Decimal(0)
ONE = Decimal(1)

# Largest value a clamped power may return.
SENTINEL = Decimal("1e1000")
LOG_CEILING = SENTINEL.ln(CONTEXT)


def D(value: Number) -> Decimal:
    """Coerce ``value`` to a Decimal (floats go through their repr)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        return Decimal(value.strip())
    raise TypeError(f"cannot convert {type(value).__name__} to Decimal")


def is_finite(value: Decimal) -> bool:
    return isinstance(value, Decimal) and value.is_finite()


def floor(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR)


def is_whole(value: Decimal) -> bool:
    return value.is_finite() and value == floor(value)


def power(base: Decimal, exponent: Decimal) -> Decimal:
    """``base ** exponent`` clamped to ``SENTINEL``.

    Large exponents are checked in log space first (``exponent * ln(base)``)
    so the result is never computed when it would exceed the ceiling.
    """
    base = D(base)
    exponent = D(exponent)
    if exponent == ZERO or base == ONE:
        return ONE
    if base <= ZERO:
        if base == ZERO:
            return ZERO if exponent > ZERO else SENTINEL
        # Negative bases only appear with integral exponents.
        result = CONTEXT.power(base, exponent)
        return result if result.is_finite() else SENTINEL
    log_value = CONTEXT.multiply(exponent, base.ln(CONTEXT))
    if log_value > LOG_CEILING:
        return SENTINEL
    result = CONTEXT.power(base, exponent)
    if not result.is_finite():
        return SENTINEL
    return result


def log(value: Decimal, base: Decimal) -> Decimal:
    """Logarithm of ``value`` in ``base``. Both must be positive, base != 1."""
    value = D(value)
    base = D(base)
    if value <= ZERO or base <= ZERO or base == ONE:
        raise ValueError(f"log undefined for value={value}, base={base}")
    return CONTEXT.divide(value.ln(CONTEXT), base.ln(CONTEXT))


def clamp(value: Decimal) -> Decimal:
    """Replace a non-finite value with the signed sentinel (NaN becomes 0)."""
    if value.is_finite():
        return value
    if value.is_nan():
        return ZERO
    return -SENTINEL if value.is_signed() else SENTINEL


def to_text(value: Decimal) -> str:
    if not value.is_finite():
        raise ValueError(f"refusing to serialize non-finite value {value}")
    return str(value)


def from_text(text: Number) -> Decimal:
    value = D(text)
    if not value.is_finite():
        raise ValueError(f"non-finite value {text!r}")
    return value

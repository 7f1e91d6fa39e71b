"""Currency conversion utilities for the storefront.

Prices are stored in the settlement currency (``SETTLEMENT_CURRENCY``, BDT by
default). Every other currency carries an exchange rate expressed as
"units of that currency per 1 unit of the settlement currency", so the
settlement currency itself always has rate 1.

Conversion chain
----------------
amount (from) ÷ rate(from) → settlement amount
settlement amount × rate(to) → amount (to)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")


class UnknownCurrencyError(ValueError):
    """Raised when no exchange rate is known for a currency code."""


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise into Decimal
    return Decimal(str(value))


def quantize_money(amount: Number) -> Decimal:
    """Round to two decimal places, half-up."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def convert(
    amount: Number,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, Number],
) -> Decimal:
    """Convert ``amount`` between two currencies using settlement-relative rates.

    The result is not rounded; callers quantize when presenting or charging.
    """
    value = to_decimal(amount)
    source = from_currency.upper()
    target = to_currency.upper()
    if source == target:
        return value

    try:
        from_rate = to_decimal(rates[source])
        to_rate = to_decimal(rates[target])
    except KeyError as exc:
        raise UnknownCurrencyError(f"No exchange rate for {exc.args[0]}") from None

    if from_rate <= 0 or to_rate <= 0:
        raise UnknownCurrencyError(
            f"Exchange rate must be positive ({source}={from_rate}, {target}={to_rate})"
        )

    return value / from_rate * to_rate

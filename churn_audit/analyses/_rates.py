"""Rate helpers shared by the retention and churn analyses."""

from decimal import Decimal, ROUND_HALF_UP

# Monthly summaries report fractions in [0, 1] with 2 decimal places
FRACTION_PRECISION = Decimal("0.01")
# Parameterised reports round to 4 decimal places
PARAMETER_PRECISION = Decimal("0.0001")
ZERO_RATE = Decimal("0")


def safe_ratio(numerator: int, denominator: int, precision: Decimal) -> Decimal:
    """Return ``numerator / denominator`` quantized to ``precision``.

    A zero denominator yields ``Decimal("0")`` instead of raising. Query
    engines return NULL for ``x / NULLIF(0, 0)``; reports built on these
    metrics expect a number, so an empty base population reads as a 0 rate.
    """
    if denominator == 0:
        return ZERO_RATE
    return (Decimal(numerator) / Decimal(denominator)).quantize(
        precision, rounding=ROUND_HALF_UP
    )


def safe_percentage(numerator: int, denominator: int, precision: Decimal) -> Decimal:
    """Return ``numerator / denominator * 100`` quantized to ``precision``.

    Same zero-denominator policy as :func:`safe_ratio`.
    """
    if denominator == 0:
        return ZERO_RATE
    return (Decimal(numerator) / Decimal(denominator) * 100).quantize(
        precision, rounding=ROUND_HALF_UP
    )

"""Price/tick conversion for Uniswap V3 style concentrated liquidity pools.

tick = log_1.0001(price), where price is the raw-unit ratio built from a
human price unit and both token decimals.
All arithmetic runs in Decimal with a fixed context so identical inputs map
to identical ticks on every host.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal

from cellar_rebalancer.models.token import TokenInfo

MIN_TICK = -887272
MAX_TICK = 887272

_CTX = Context(prec=50)
_LN_BASE = _CTX.ln(Decimal("1.0001"))


def unit_to_price(units: float | Decimal, token_0: TokenInfo, token_1: TokenInfo) -> Decimal:
    """Scale a human price unit into a raw amount ratio using token decimals."""
    amount_0 = _CTX.multiply(Decimal(str(units)), Decimal(10) ** token_0.decimals)
    amount_1 = Decimal(10) ** token_1.decimals
    return _CTX.divide(amount_0, amount_1)


def price_to_tick(price: Decimal) -> int:
    """Nearest tick to *price*, clamped to [MIN_TICK, MAX_TICK]."""
    if not price.is_finite() or price <= 0:
        raise ValueError(f"price must be positive and finite, got {price}")
    raw = _CTX.divide(_CTX.ln(price), _LN_BASE)
    tick = int(raw.to_integral_value(rounding=ROUND_HALF_UP))
    return max(MIN_TICK, min(MAX_TICK, tick))


def nearest_usable_tick(tick: int, spacing: int) -> int:
    """Round *tick* to the closest multiple of *spacing* inside the valid range."""
    if spacing <= 0:
        raise ValueError(f"tick spacing must be positive, got {spacing}")
    if spacing == 1:
        return tick
    quotient = (Decimal(tick) / Decimal(spacing)).to_integral_value(rounding=ROUND_HALF_UP)
    rounded = int(quotient) * spacing
    if rounded < MIN_TICK:
        rounded += spacing
    elif rounded > MAX_TICK:
        rounded -= spacing
    return rounded


def scale_weight(weight: float, factor: int) -> int:
    """Integer weight units: round(factor * weight), halves away from zero."""
    scaled = Decimal(str(weight)) * factor
    return int(scaled.to_integral_value(rounding=ROUND_HALF_UP))


def tick_to_price(tick: int) -> Decimal:
    """Inverse of price_to_tick (raw units), handy for logs and the CLI."""
    return _CTX.power(Decimal("1.0001"), tick)

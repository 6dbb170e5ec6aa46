import logging
import math

from pydantic import NonNegativeFloat, PositiveFloat, PositiveInt

from equitysim.validation import GrowthRate, InvalidInput, validated

logger = logging.getLogger(__name__)


@validated(annual_rate="annual_growth_rate")
def price_at(base_price: PositiveFloat, annual_rate: GrowthRate, years_offset: NonNegativeFloat) -> float:
    """
    Projects a share price under constant compound growth.

    Args:
        base_price: Price at offset 0
        annual_rate: Annual growth rate (0.20 = +20%/year, >= -1)
        years_offset: Offset in years; fractional for sub-year periods

    Returns:
        base_price * (1 + annual_rate) ** years_offset

    Raises:
        InvalidInput: If the projected price does not fit in a float
    """
    try:
        price = base_price * (1 + annual_rate) ** years_offset
    except OverflowError:
        price = math.inf
    if not math.isfinite(price):
        raise InvalidInput("annual_growth_rate", annual_rate, f"projected price overflows after {years_offset} years")

    logger.debug("price_at: %.4f @ %.4f%% for %.4fy -> %.4f", base_price, annual_rate * 100, years_offset, price)
    return price


@validated()
def market_cap(price: PositiveFloat, outstanding_shares: PositiveInt) -> float:
    return price * outstanding_shares


@validated(cap="market_cap")
def price_from_market_cap(cap: PositiveFloat, outstanding_shares: PositiveInt) -> float:
    """Per-share price implied by a market capitalization."""
    return cap / outstanding_shares


@validated(current_cap="current_market_cap", future_cap="future_market_cap")
def implied_growth_rate(current_cap: PositiveFloat, future_cap: NonNegativeFloat, horizon_years: NonNegativeFloat) -> float:
    """
    Constant annual rate that compounds `current_cap` into `future_cap`.

    A zero horizon has no room to grow, so the rate is 0.
    """
    if horizon_years == 0:
        return 0.0
    try:
        rate = (future_cap / current_cap) ** (1 / horizon_years) - 1
    except OverflowError:
        rate = math.inf
    if not math.isfinite(rate):
        raise InvalidInput("future_market_cap", future_cap, f"implied growth overflows over {horizon_years} years")

    logger.debug("implied_growth_rate: %.0f -> %.0f over %sy = %.4f%%", current_cap, future_cap, horizon_years, rate * 100)
    return rate

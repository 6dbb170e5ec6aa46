import logging
from typing import List, Optional

import numpy as np

from equitysim import market as price_projector
from equitysim import returns
from equitysim.models import (
    Grant,
    MarketState,
    PeriodResult,
    SimulationInput,
    SimulationResult,
    TaxPolicy,
)
from equitysim.tax import TaxEngine
from equitysim.validation import InvalidInput
from equitysim.vesting import vested_units

logger = logging.getLogger(__name__)


class ScheduleBuilder:
    """
    Builds the period-by-period vesting breakdown and the summary returns for one grant.

    Grants, market states and tax policies are validated when they are constructed;
    every run checks the query point and the argument types up front and then works
    only on its own frozen inputs, so one builder can serve any number of concurrent
    simulations.
    """

    def __init__(self, tax_engine: Optional[TaxEngine] = None):
        self.tax_engine = tax_engine or TaxEngine()

    def _validate(self, grant: Grant, market: MarketState, tax_policy: TaxPolicy, elapsed_periods: int) -> int:
        for name, value, expected in (("grant", grant, Grant),
                                      ("market", market, MarketState),
                                      ("tax_policy", tax_policy, TaxPolicy)):
            if not isinstance(value, expected):
                raise InvalidInput(name, value, f"must be a {expected.__name__}")

        horizon = grant.horizon_periods(elapsed_periods)
        if grant.cliff_periods == grant.vesting_length_periods:
            logger.warning(
                "cliff_periods equals vesting_length_periods (%s); the whole grant vests at the cliff",
                grant.vesting_length_periods,
            )
        return horizon

    def _vested_at(self, grant: Grant, elapsed: float) -> float:
        return vested_units(
            grant.total_units,
            elapsed,
            grant.vesting_length_periods,
            grant.cliff_periods,
            grant.curve,
        )

    def _price_at(self, grant: Grant, market: MarketState, period: float) -> float:
        return price_projector.price_at(market.base_price, market.annual_growth_rate, grant.years_at(period))

    def _period_rows(self, grant: Grant, market: MarketState, horizon: int) -> List[PeriodResult]:
        rows = []
        previous = 0.0
        for period in np.arange(1, horizon + 1):
            period = int(period)
            cumulative = self._vested_at(grant, period)
            newly_vested = cumulative - previous
            price = self._price_at(grant, market, period)

            rows.append(PeriodResult(
                period_index=period,
                newly_vested_units=newly_vested,
                cumulative_vested_units=cumulative,
                price_at_period=price,
                period_value=newly_vested * price,
                is_cliff_period=period <= grant.cliff_periods,
            ))
            previous = cumulative
        return rows

    def build(self,
              grant: Grant,
              market: MarketState,
              tax_policy: TaxPolicy,
              elapsed_periods: int) -> SimulationResult:
        """
        Runs one simulation.

        Args:
            grant: Granted units, exercise price and vesting terms
            market: Base price, annual growth and outstanding shares
            tax_policy: Qualification flag and holding period
            elapsed_periods: Query point, in the grant's period unit

        Returns:
            SimulationResult covering periods 1..max(vesting length, elapsed)

        Raises:
            InvalidInput: If any parameter is malformed (raised before any computation),
                or if the projected price overflows a float
        """
        horizon = self._validate(grant, market, tax_policy, elapsed_periods)
        schedule = self._period_rows(grant, market, horizon)

        # Query-time snapshot
        vested_now = self._vested_at(grant, elapsed_periods)
        current_price = self._price_at(grant, market, elapsed_periods)

        # Horizon snapshot
        vested_at_horizon = schedule[-1].cumulative_vested_units
        future_price = schedule[-1].price_at_period

        current_return = returns.gross_return(current_price, grant.exercise_price, vested_now)
        future_return = returns.gross_return(future_price, grant.exercise_price, vested_at_horizon)
        sale_gain = returns.sale_gain(future_price, current_price, vested_now)

        tax_result = self.tax_engine.compute_for_policy(current_return, sale_gain, tax_policy)

        logger.debug(
            "build: %s grant of %.0f units, %.2f vested at period %s, horizon %s",
            grant.curve.value, grant.total_units, vested_now, elapsed_periods, horizon,
        )

        return SimulationResult(
            grant=grant,
            market=market,
            tax_policy=tax_policy,
            elapsed_periods=elapsed_periods,
            horizon_periods=horizon,
            current_price=current_price,
            future_price=future_price,
            vested_units=vested_now,
            horizon_vested_units=vested_at_horizon,
            current_return=current_return,
            future_return=future_return,
            total_current_value=returns.total_value(current_price, vested_now),
            total_future_value=returns.total_value(future_price, vested_at_horizon),
            exercise_cost=returns.exercise_cost(grant.exercise_price, vested_now),
            exercise_gain=current_return,
            sale_gain=sale_gain,
            schedule=tuple(schedule),
            tax=tax_result,
        )

    def run(self, sim_input: SimulationInput) -> SimulationResult:
        return self.build(sim_input.grant, sim_input.market, sim_input.tax_policy, sim_input.elapsed_periods)


def build_schedule(grant: Grant,
                   market: MarketState,
                   tax_policy: TaxPolicy,
                   elapsed_periods: int) -> SimulationResult:
    return ScheduleBuilder().build(grant, market, tax_policy, elapsed_periods)

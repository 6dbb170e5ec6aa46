import logging
from typing import Optional

from pydantic import NonNegativeFloat, NonNegativeInt

from equitysim import equity_rules
from equitysim.models import TaxPolicy, TaxRegime, TaxResult
from equitysim.validation import validated

logger = logging.getLogger(__name__)


class TaxEngine:
    """
    Flat-rate tax model for option gains.

    Qualified options held for at least the minimum holding period pay the capital
    gains rate on the whole gain. Everything else pays the ordinary income rate on
    the exercise gain and the capital gains rate on the later sale gain. The rates
    are simplifications, not a bracket computation.
    """

    @validated()
    def __init__(self,
                 ordinary_income_rate: Optional[NonNegativeFloat] = None,
                 capital_gains_rate: Optional[NonNegativeFloat] = None,
                 qualified_min_holding_years: Optional[NonNegativeInt] = None):
        self.ordinary_income_rate = (
            equity_rules.ORDINARY_INCOME_RATE if ordinary_income_rate is None else ordinary_income_rate
        )
        self.capital_gains_rate = (
            equity_rules.CAPITAL_GAINS_RATE if capital_gains_rate is None else capital_gains_rate
        )
        self.qualified_min_holding_years = (
            equity_rules.QUALIFIED_MIN_HOLDING_YEARS if qualified_min_holding_years is None
            else qualified_min_holding_years
        )

    def is_capital_gains_only(self, qualified: bool, holding_years: int) -> bool:
        return qualified and holding_years >= self.qualified_min_holding_years

    @validated(holding_years="holding_period_years")
    def compute_tax(self,
                    exercise_gain: NonNegativeFloat,
                    sale_gain: NonNegativeFloat,
                    qualified: bool,
                    holding_years: NonNegativeInt) -> TaxResult:
        """
        Computes tax owed on an exercise gain and a subsequent sale gain.

        Both gains must already be floored at 0 (see returns.gross_return and
        returns.sale_gain); a negative gain is rejected rather than turned into a refund.
        `qualified` must be a real bool: a truthy tag such as "no" is rejected.
        """
        if self.is_capital_gains_only(qualified, holding_years):
            exercise_tax = 0.0
            sale_tax = (exercise_gain + sale_gain) * self.capital_gains_rate
            nominal_rate = self.capital_gains_rate
        else:
            # Exercise spread is taxed as income; the nominal label is the income rate
            exercise_tax = exercise_gain * self.ordinary_income_rate
            sale_tax = sale_gain * self.capital_gains_rate
            nominal_rate = self.ordinary_income_rate

        gross_gain = exercise_gain + sale_gain
        total_tax = exercise_tax + sale_tax
        regime = TaxRegime.QUALIFIED if qualified else TaxRegime.NON_QUALIFIED

        logger.debug(
            "compute_tax[%s, %sy]: exercise=%.2f sale=%.2f -> tax=%.2f",
            regime.value, holding_years, exercise_gain, sale_gain, total_tax,
        )

        return TaxResult(
            exercise_tax=exercise_tax,
            sale_tax=sale_tax,
            total_tax=total_tax,
            net_after_tax=gross_gain - total_tax,
            nominal_rate_percent=nominal_rate * 100,
            effective_rate_percent=total_tax / gross_gain * 100 if gross_gain > 0 else 0.0,
            regime=regime,
        )

    def compute_for_policy(self, exercise_gain: float, sale_gain: float, policy: TaxPolicy) -> TaxResult:
        return self.compute_tax(exercise_gain, sale_gain, policy.qualified, policy.holding_period_years)


# Helper for external calls
def compute_tax(exercise_gain: float, sale_gain: float, qualified: bool, holding_years: int) -> TaxResult:
    return TaxEngine().compute_tax(exercise_gain, sale_gain, qualified, holding_years)

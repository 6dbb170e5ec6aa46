from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from pydantic import NonNegativeFloat, NonNegativeInt, PositiveFloat, PositiveInt, field_validator, model_validator

from equitysim import equity_rules
from equitysim import market as price_projector
from equitysim import returns
from equitysim.validation import (
    GrowthRate,
    InvalidInput,
    check_cliff_within_vesting,
    validated,
    validated_dataclass,
)


def _parse_tag(enum_cls, field_name: str, tag: Any):
    """Parses a user-facing tag ('cliff-heavy', 'Cliff_Heavy', or the member itself)."""
    if isinstance(tag, enum_cls):
        return tag
    if isinstance(tag, str):
        normalized = tag.strip().lower().replace("_", "-")
        for member in enum_cls:
            if member.value == normalized:
                return member
    raise InvalidInput(field_name, tag, f"unknown tag, expected one of {[m.value for m in enum_cls]}")


class VestingCurve(str, Enum):
    LINEAR = "linear"
    BACKLOADED = "backloaded"
    FRONTLOADED = "frontloaded"
    CLIFF_HEAVY = "cliff-heavy"

    @classmethod
    def parse(cls, tag: Any) -> "VestingCurve":
        return _parse_tag(cls, "curve", tag)


class TaxRegime(str, Enum):
    QUALIFIED = "qualified"
    NON_QUALIFIED = "non-qualified"

    @classmethod
    def parse(cls, tag: Any) -> "TaxRegime":
        return _parse_tag(cls, "tax_regime", tag)


class PeriodUnit(str, Enum):
    YEAR = "year"
    MONTH = "month"

    @classmethod
    def parse(cls, tag: Any) -> "PeriodUnit":
        return _parse_tag(cls, "period_unit", tag)

    @property
    def periods_per_year(self) -> int:
        return equity_rules.PERIODS_PER_YEAR[self.value]


@validated_dataclass
class Grant:
    """An equity grant. Vesting length and cliff are counted in `period_unit`."""
    total_units: NonNegativeFloat
    exercise_price: NonNegativeFloat
    vesting_length_periods: PositiveInt
    cliff_periods: NonNegativeInt = 0
    curve: VestingCurve = VestingCurve.LINEAR
    period_unit: PeriodUnit = PeriodUnit.YEAR

    @field_validator("curve", mode="before")
    @classmethod
    def _parse_curve(cls, value: Any) -> VestingCurve:
        return VestingCurve.parse(value)

    @field_validator("period_unit", mode="before")
    @classmethod
    def _parse_period_unit(cls, value: Any) -> PeriodUnit:
        return PeriodUnit.parse(value)

    @model_validator(mode="after")
    def _cliff_within_vesting(self) -> "Grant":
        check_cliff_within_vesting(self.cliff_periods, self.vesting_length_periods)
        return self

    def years_at(self, period_index: float) -> float:
        """Converts a period offset into the year offset used for price projection."""
        return period_index / self.period_unit.periods_per_year

    @validated()
    def horizon_periods(self, elapsed_periods: NonNegativeInt) -> int:
        """Schedule length for a query at `elapsed_periods`: the vesting length, or longer."""
        return max(self.vesting_length_periods, elapsed_periods)


@validated_dataclass
class MarketState:
    base_price: PositiveFloat
    annual_growth_rate: GrowthRate
    outstanding_shares: PositiveInt

    @property
    def market_cap(self) -> float:
        return price_projector.market_cap(self.base_price, self.outstanding_shares)

    @classmethod
    @validated()
    def from_market_caps(cls,
                         current_market_cap: PositiveFloat,
                         future_market_cap: NonNegativeFloat,
                         outstanding_shares: PositiveInt,
                         horizon_years: NonNegativeFloat):
        """
        Builds a market state from a current and a target market capitalization.

        The base price is the current cap spread over outstanding shares; the growth
        rate is the constant annual rate that compounds the current cap into the
        future cap after `horizon_years`.
        """
        base_price = price_projector.price_from_market_cap(current_market_cap, outstanding_shares)
        growth = price_projector.implied_growth_rate(current_market_cap, future_market_cap, horizon_years)
        return cls(base_price=base_price, annual_growth_rate=growth, outstanding_shares=outstanding_shares)


@validated_dataclass
class TaxPolicy:
    qualified: bool
    holding_period_years: NonNegativeInt = 0

    @property
    def regime(self) -> TaxRegime:
        return TaxRegime.QUALIFIED if self.qualified else TaxRegime.NON_QUALIFIED

    @classmethod
    def from_regime(cls, regime: Any, holding_period_years: int = 0) -> "TaxPolicy":
        return cls(
            qualified=TaxRegime.parse(regime) is TaxRegime.QUALIFIED,
            holding_period_years=holding_period_years,
        )


@dataclass(frozen=True)
class PeriodResult:
    """
    One row of the vesting breakdown.

    `price_at_period` is positive, except under a -100% growth rate, where every
    period after offset 0 is priced at 0.
    """
    period_index: int
    newly_vested_units: float
    cumulative_vested_units: float
    price_at_period: float
    period_value: float
    is_cliff_period: bool



@dataclass(frozen=True)
class TaxResult:
    exercise_tax: float
    sale_tax: float
    total_tax: float
    net_after_tax: float
    nominal_rate_percent: float  # Branch label (20.315 or 30), not a measured rate
    effective_rate_percent: float
    regime: TaxRegime


@dataclass(frozen=True)
class SimulationInput:
    """Everything the presentation layer hands to the engine for one run."""
    grant: Grant
    market: MarketState
    tax_policy: TaxPolicy
    elapsed_periods: int

    @classmethod
    def from_defaults(cls, **overrides) -> "SimulationInput":
        """
        Builds an input from `equity_rules.DEFAULT_INPUTS`, with keyword overrides.

        The market state is derived from the current/future market caps, with the
        future cap reached at the schedule horizon.
        """
        values: Dict[str, Any] = dict(equity_rules.DEFAULT_INPUTS)
        unknown = set(overrides) - set(values)
        if unknown:
            name = sorted(unknown)[0]
            raise InvalidInput(name, overrides[name], "unknown input field")
        values.update(overrides)

        grant = Grant(
            total_units=values["granted_units"],
            exercise_price=values["exercise_price"],
            vesting_length_periods=values["vesting_length_periods"],
            cliff_periods=values["cliff_periods"],
            curve=values["curve"],
            period_unit=values["period_unit"],
        )
        elapsed = values["elapsed_periods"]
        horizon_years = grant.years_at(grant.horizon_periods(elapsed))
        market = MarketState.from_market_caps(
            values["current_market_cap"],
            values["future_market_cap"],
            values["outstanding_shares"],
            horizon_years,
        )
        tax_policy = TaxPolicy.from_regime(values["tax_regime"], values["holding_period_years"])
        return cls(grant=grant, market=market, tax_policy=tax_policy, elapsed_periods=elapsed)


@dataclass(frozen=True)
class SimulationResult:
    """Contains all outputs from one simulation run. Read-only."""
    grant: Grant
    market: MarketState
    tax_policy: TaxPolicy
    elapsed_periods: int
    horizon_periods: int

    current_price: float
    future_price: float
    vested_units: float  # At elapsed_periods
    horizon_vested_units: float

    current_return: float
    future_return: float
    total_current_value: float
    total_future_value: float
    exercise_cost: float
    exercise_gain: float
    sale_gain: float

    schedule: Tuple[PeriodResult, ...]
    tax: TaxResult

    @property
    def granted_percentage(self) -> float:
        return returns.granted_percentage(self.grant.total_units, self.market.outstanding_shares)

    @property
    def vested_percentage(self) -> float:
        if self.grant.total_units == 0:
            return 0.0
        return self.vested_units / self.grant.total_units * 100

    @property
    def remaining_units(self) -> float:
        return self.grant.total_units - self.vested_units

    @property
    def remaining_periods(self) -> int:
        return max(0, self.grant.vesting_length_periods - self.elapsed_periods)

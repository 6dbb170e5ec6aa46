"""
Equity compensation valuation engine.

This package projects the value of stock options and RSUs over a vesting
schedule, with compound stock-price growth and a flat-rate tax model.
All calculations are pure functions of their inputs; formatting and input
handling belong to the caller.

All public classes are re-exported here.
"""

__version__ = "0.1.0"

# Models
from equitysim.models import (
    Grant,
    MarketState,
    TaxPolicy,
    PeriodResult,
    TaxResult,
    SimulationInput,
    SimulationResult,
    VestingCurve,
    TaxRegime,
    PeriodUnit,
)

# Errors
from equitysim.validation import (
    InvalidInput,
    DegenerateConfiguration,
)

# Vesting
from equitysim.vesting import (
    vested_units,
    CURVE_DESCRIPTIONS,
    CURVE_FORMULAS,
    get_curve_description,
    get_all_curve_names,
)

# Price projection
from equitysim.market import (
    price_at,
    market_cap,
    price_from_market_cap,
    implied_growth_rate,
)

# Returns
from equitysim.returns import (
    gross_return,
    exercise_cost,
    sale_gain,
    total_value,
    granted_percentage,
    granted_units_from_percentage,
)

# Tax
from equitysim.tax import (
    TaxEngine,
    compute_tax,
)

# Schedule
from equitysim.schedule import (
    ScheduleBuilder,
    build_schedule,
)

# Tabular views
from equitysim.analytics import (
    schedule_to_frame,
    summary_to_series,
    compare_curves,
    compare_tax_regimes,
)

__all__ = [
    # Models
    "Grant",
    "MarketState",
    "TaxPolicy",
    "PeriodResult",
    "TaxResult",
    "SimulationInput",
    "SimulationResult",
    "VestingCurve",
    "TaxRegime",
    "PeriodUnit",
    # Errors
    "InvalidInput",
    "DegenerateConfiguration",
    # Vesting
    "vested_units",
    "CURVE_DESCRIPTIONS",
    "CURVE_FORMULAS",
    "get_curve_description",
    "get_all_curve_names",
    # Price projection
    "price_at",
    "market_cap",
    "price_from_market_cap",
    "implied_growth_rate",
    # Returns
    "gross_return",
    "exercise_cost",
    "sale_gain",
    "total_value",
    "granted_percentage",
    "granted_units_from_percentage",
    # Tax
    "TaxEngine",
    "compute_tax",
    # Schedule
    "ScheduleBuilder",
    "build_schedule",
    # Tabular views
    "schedule_to_frame",
    "summary_to_series",
    "compare_curves",
    "compare_tax_regimes",
]

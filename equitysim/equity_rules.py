# Equity Compensation Constants (simplified flat-rate model)

# Tax Rates
# Ordinary income rate is a flat stand-in for progressive brackets, not a measured marginal rate
ORDINARY_INCOME_RATE = 0.30
CAPITAL_GAINS_RATE = 0.20315

# Qualified options must be held this many years before gains are taxed as capital gains only
QUALIFIED_MIN_HOLDING_YEARS = 2

# Vesting Curve Shapes
BACKLOADED_EXPONENT = 1.5
FRONTLOADED_EXPONENT = 0.7

# Portion of the grant released at the cliff under the cliff-heavy curve
CLIFF_HEAVY_TRANCHE = 0.25

# Period Units
PERIODS_PER_YEAR = {
    "year": 1,
    "month": 12,
}

# Starting values of the simulator form
DEFAULT_INPUTS = {
    "outstanding_shares": 10_000_000,
    "current_market_cap": 50_000_000_000,
    "future_market_cap": 100_000_000_000,
    "granted_units": 50_000,
    "exercise_price": 1_000,
    "vesting_length_periods": 4,
    "cliff_periods": 1,
    "elapsed_periods": 4,
    "tax_regime": "qualified",
    "holding_period_years": 2,
    "curve": "linear",
    "period_unit": "year",
}

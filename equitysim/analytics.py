from dataclasses import replace
from typing import Optional

import pandas as pd

from equitysim.models import SimulationInput, SimulationResult, TaxPolicy, TaxRegime, VestingCurve
from equitysim.schedule import ScheduleBuilder

SCHEDULE_COLUMNS = [
    "Period",
    "Newly_Vested",
    "Cumulative_Vested",
    "Vested_Pct",
    "Price",
    "Period_Value",
    "Is_Cliff",
]


def schedule_to_frame(result: SimulationResult) -> pd.DataFrame:
    """
    Returns the vesting breakdown as a DataFrame indexed by Period.

    Vested_Pct is cumulative vested units as a percentage of the grant.
    """
    total = result.grant.total_units
    df = pd.DataFrame([
        {
            "Period": row.period_index,
            "Newly_Vested": row.newly_vested_units,
            "Cumulative_Vested": row.cumulative_vested_units,
            "Vested_Pct": row.cumulative_vested_units / total * 100 if total > 0 else 0.0,
            "Price": row.price_at_period,
            "Period_Value": row.period_value,
            "Is_Cliff": row.is_cliff_period,
        }
        for row in result.schedule
    ], columns=SCHEDULE_COLUMNS)

    df.set_index("Period", inplace=True)
    return df


def summary_to_series(result: SimulationResult) -> pd.Series:
    """Headline figures of a run, keyed by display name."""
    return pd.Series({
        "Current Price": result.current_price,
        "Future Price": result.future_price,
        "Vested Units": result.vested_units,
        "Vested Pct": result.vested_percentage,
        "Granted Pct": result.granted_percentage,
        "Current Return": result.current_return,
        "Future Return": result.future_return,
        "Exercise Cost": result.exercise_cost,
        "Total Tax": result.tax.total_tax,
        "Net After Tax": result.tax.net_after_tax,
    })


def _summary_row(result: SimulationResult) -> dict:
    return {
        "Vested_Units": result.vested_units,
        "Current_Return": result.current_return,
        "Future_Return": result.future_return,
        "Total_Tax": result.tax.total_tax,
        "Net_After_Tax": result.tax.net_after_tax,
    }


def compare_curves(sim_input: SimulationInput, builder: Optional[ScheduleBuilder] = None) -> pd.DataFrame:
    """
    Runs the same input under every vesting curve.
    Returns a DataFrame indexed by curve name.
    """
    builder = builder or ScheduleBuilder()
    rows = {}
    for curve in VestingCurve:
        grant = replace(sim_input.grant, curve=curve)
        result = builder.build(grant, sim_input.market, sim_input.tax_policy, sim_input.elapsed_periods)
        rows[curve.value] = _summary_row(result)

    df = pd.DataFrame.from_dict(rows, orient="index")
    df.index.name = "Curve"
    return df


def compare_tax_regimes(sim_input: SimulationInput, builder: Optional[ScheduleBuilder] = None) -> pd.DataFrame:
    """
    Runs the same input as a qualified and as a non-qualified grant, keeping the holding period.
    Returns a DataFrame indexed by regime name.
    """
    builder = builder or ScheduleBuilder()
    holding_years = sim_input.tax_policy.holding_period_years
    rows = {}
    for regime in TaxRegime:
        policy = TaxPolicy.from_regime(regime, holding_years)
        result = builder.build(sim_input.grant, sim_input.market, policy, sim_input.elapsed_periods)
        row = _summary_row(result)
        row["Effective_Rate_Pct"] = result.tax.effective_rate_percent
        rows[regime.value] = row

    df = pd.DataFrame.from_dict(rows, orient="index")
    df.index.name = "Regime"
    return df

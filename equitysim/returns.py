from pydantic import NonNegativeFloat, PositiveInt

from equitysim.validation import validated


@validated()
def gross_return(current_price: NonNegativeFloat, exercise_price: NonNegativeFloat, vested_units: NonNegativeFloat) -> float:
    """
    Spread captured by exercising vested units at `current_price`.

    Out-of-the-money units contribute nothing: a holder never exercises at a loss.
    """
    return max(0.0, current_price - exercise_price) * vested_units


@validated()
def exercise_cost(exercise_price: NonNegativeFloat, vested_units: NonNegativeFloat) -> float:
    return exercise_price * vested_units


@validated()
def sale_gain(future_price: NonNegativeFloat, current_price: NonNegativeFloat, vested_units: NonNegativeFloat) -> float:
    """Gain between exercise at `current_price` and sale at `future_price`, floored at 0."""
    return max(0.0, future_price - current_price) * vested_units


@validated()
def total_value(price: NonNegativeFloat, units: NonNegativeFloat) -> float:
    """Market value of a position, ignoring the exercise price."""
    return price * units


@validated()
def granted_percentage(granted_units: NonNegativeFloat, outstanding_shares: PositiveInt) -> float:
    """Grant size as a percentage of all outstanding shares."""
    return granted_units / outstanding_shares * 100


@validated(percentage="granted_percentage")
def granted_units_from_percentage(percentage: NonNegativeFloat, outstanding_shares: PositiveInt) -> int:
    """Whole number of units that a percentage of outstanding shares represents."""
    return int(round(outstanding_shares * percentage / 100))

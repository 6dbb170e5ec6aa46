import logging
from typing import Callable, Dict, List

from pydantic import NonNegativeFloat, NonNegativeInt, PositiveInt

from equitysim import equity_rules
from equitysim.models import VestingCurve
from equitysim.validation import DegenerateConfiguration, check_cliff_within_vesting, validated

logger = logging.getLogger(__name__)


# Curve descriptions for display
CURVE_DESCRIPTIONS: Dict[str, str] = {
    VestingCurve.LINEAR.value: (
        "Units vest evenly from the cliff to the end of the schedule. "
        "Each period after the cliff releases the same share of the grant."
    ),
    VestingCurve.BACKLOADED.value: (
        "Vesting starts slowly after the cliff and accelerates toward the end "
        "(progress ^ 1.5). Rewards staying for the full term."
    ),
    VestingCurve.FRONTLOADED.value: (
        "Vesting is fastest right after the cliff and decelerates toward the end "
        "(progress ^ 0.7). Most of the grant is owned early."
    ),
    VestingCurve.CLIFF_HEAVY.value: (
        "A 25% tranche is released the moment the cliff is reached; the remaining "
        "75% then vests evenly until the end of the schedule."
    ),
}


def get_curve_description(curve_name: str) -> str:
    """Get the description for a vesting curve by name."""
    return CURVE_DESCRIPTIONS.get(curve_name, "No description available.")


def get_all_curve_names() -> List[str]:
    """Get list of all available curve names."""
    return list(CURVE_DESCRIPTIONS.keys())


def progress_fraction(post_cliff_elapsed: float, post_cliff_span: float) -> float:
    """Share of the post-cliff schedule that has elapsed (unclamped)."""
    if post_cliff_span <= 0:
        raise DegenerateConfiguration(
            f"post-cliff span must be positive to compute progress, got {post_cliff_span}"
        )
    return post_cliff_elapsed / post_cliff_span


def _linear(total: float, progress: float) -> float:
    return total * progress


def _backloaded(total: float, progress: float) -> float:
    return total * progress ** equity_rules.BACKLOADED_EXPONENT


def _frontloaded(total: float, progress: float) -> float:
    return total * progress ** equity_rules.FRONTLOADED_EXPONENT


def _cliff_heavy(total: float, progress: float) -> float:
    tranche = equity_rules.CLIFF_HEAVY_TRANCHE * total
    remainder = total - tranche
    return tranche + min(remainder, remainder * progress)


CURVE_FORMULAS: Dict[VestingCurve, Callable[[float, float], float]] = {
    VestingCurve.LINEAR: _linear,
    VestingCurve.BACKLOADED: _backloaded,
    VestingCurve.FRONTLOADED: _frontloaded,
    VestingCurve.CLIFF_HEAVY: _cliff_heavy,
}


@validated(
    total="total_units",
    elapsed="elapsed_periods",
    vesting_length="vesting_length_periods",
    cliff="cliff_periods",
)
def vested_units(total: NonNegativeFloat,
                 elapsed: NonNegativeFloat,
                 vesting_length: PositiveInt,
                 cliff: NonNegativeInt = 0,
                 curve=VestingCurve.LINEAR) -> float:
    """
    Vested quantity of a grant after `elapsed` periods.

    Nothing vests before the cliff. Once the cliff is reached the selected curve is
    evaluated on post-cliff progress; when the cliff covers the whole schedule the
    grant vests in full at the cliff. The result is clamped to [0, total].

    Args:
        total: Granted units
        elapsed: Periods since grant (fractional allowed)
        vesting_length: Schedule length in periods
        cliff: Cliff length in periods (<= vesting_length)
        curve: VestingCurve member or tag

    Returns:
        Vested units
    """
    check_cliff_within_vesting(cliff, vesting_length)
    curve = VestingCurve.parse(curve)

    if elapsed < cliff:
        return 0.0

    post_cliff_span = vesting_length - cliff
    if post_cliff_span <= 0:
        return float(total)

    progress = progress_fraction(elapsed - cliff, post_cliff_span)
    if progress >= 1:
        return float(total)

    vested = float(min(total, max(0.0, CURVE_FORMULAS[curve](total, progress))))
    logger.debug("vested_units[%s]: elapsed=%s progress=%.4f -> %.2f/%.2f", curve.value, elapsed, progress, vested, total)
    return vested

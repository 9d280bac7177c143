"""Number formatting for report text.

Report text is compared literally, so rounding and float rendering must be
deterministic across platforms.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal, localcontext

__all__ = ["format_number", "round_to_sig_figs"]


def round_to_sig_figs(value: float, figures: int) -> float:
    """Round a value to a number of significant figures.

    The exact decimal expansion of the value is quantized to ``figures``
    significant digits (half to even), so the result is the closest double
    to the decimal answer over the whole float range, subnormals included.

    - Zero is returned unchanged
    - Non-finite values (inf, nan) are returned unchanged
    - ``figures < 1`` returns the value unchanged
    - A result that would overflow to infinity returns the value unchanged

    Args:
        value: Number to round
        figures: Number of significant figures to keep

    Returns:
        Rounded value

    Example:
        >>> round_to_sig_figs(1234, 2)
        1200.0
        >>> round_to_sig_figs(0.0056789, 3)
        0.00568
    """
    if value == 0 or not math.isfinite(value) or figures < 1:
        return value

    exact = Decimal(value)
    shift = exact.adjusted() + 1 - figures

    with localcontext() as ctx:
        # One spare digit for a carry such as 9.99 -> 10.0
        ctx.prec = figures + 1
        ctx.rounding = ROUND_HALF_EVEN
        rounded = float(exact.quantize(Decimal(1).scaleb(shift)))

    if math.isinf(rounded):
        return value
    return rounded


def format_number(value: float) -> str:
    """Render a float for report text.

    - inf, -inf and nan become ``Infinity``, ``-Infinity`` and ``NaN``
    - Integral values drop the trailing ``.0``
    - Everything else uses the shortest round-trip representation

    Args:
        value: Number to render

    Returns:
        Text form of the number
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if float(value).is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))

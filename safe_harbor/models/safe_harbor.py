r"""Five-percent safe harbor cost test.

A facility's construction is treated as begun when the taxpayer pays or
incurs (within the meaning of IRC §461) five percent or more of the total
cost of the facility.

Formula:
    SH\% = \frac{Allocated}{Total} \times 100

The qualification test compares the display value (rounded to two
decimals) against the 5% threshold, so a project shown as "5.00%" is
always shown as qualified.

References:
    - IRS Notice 2013-29, §4.
    - IRS Notice 2018-59, §5.
"""

import math
from typing import Optional

SAFE_HARBOR_THRESHOLD_PCT = 5.0
AUDIT_DEFENSE_TARGET_PCT = 6.5


def _is_amount(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def safe_harbor_percentage(allocated: float, total: float) -> Optional[float]:
    """Calculate allocated cost as a percentage of total facility cost.

    Args:
        allocated: Cost paid or incurred and allocated to the facility ($).
        total: Estimated total facility cost ($).

    Returns:
        Percentage rounded to 2 decimals, or None when the inputs are
        degenerate (zero or negative total, negative or non-numeric
        amounts). An allocation above the total is returned as-is (>100%).

    Example:
        >>> safe_harbor_percentage(520_000, 8_000_000)
        6.5
    """
    if not (_is_amount(allocated) and _is_amount(total)) or total == 0:
        return None
    return round(allocated / total * 100, 2)


def is_safe_harbor_qualified(percentage: Optional[float]) -> bool:
    """Return True if a (rounded) percentage meets the 5% threshold.

    An undefined percentage is never qualified.
    """
    if percentage is None:
        return False
    return round(percentage, 2) >= SAFE_HARBOR_THRESHOLD_PCT


def recommended_safe_harbor_amount(total: float) -> Optional[float]:
    """Target spend of 6.5% of total cost, leaving margin for cost true-ups."""
    if not _is_amount(total):
        return None
    return round(total * AUDIT_DEFENSE_TARGET_PCT / 100, 2)


def safe_harbor_shortfall(allocated: float, total: float) -> Optional[float]:
    """Additional spend needed to reach the 5% threshold (0 if already met)."""
    if not (_is_amount(allocated) and _is_amount(total)):
        return None
    required = total * SAFE_HARBOR_THRESHOLD_PCT / 100
    return round(max(0.0, required - allocated), 2)

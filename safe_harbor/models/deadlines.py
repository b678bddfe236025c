"""Statutory dates and deadline arithmetic for BOC safe-harbor planning.

All comparisons against statutory deadlines are inclusive: a payment made
on the deadline itself still qualifies.

References:
    - Treas. Reg. §1.461-4(d)(6)(ii) (105-day economic performance rule).
    - IRS Notice 2021-41, §4 (four-year continuity safe harbor).
    - IRS Notice 2025-42 (FEOC and small-project deadlines).
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

# Construction must begin by this date for a permanent FEOC exemption
FEOC_DEADLINE = date(2025, 12, 31)
# Last day for the 5% safe harbor on projects <= 1.5 MW AC
ITC_SMALL_DEADLINE = date(2026, 7, 4)
# 5% safe harbor eliminated for ITC/PTC on projects > 1.5 MW AC
LARGE_PROJECT_CUTOFF = date(2025, 9, 2)

ECONOMIC_PERFORMANCE_DAYS = 105
CONTINUITY_YEARS = 4


def parse_date(value) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date.

    Returns:
        The calendar date, or None if the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def add_days(start: date, n: int) -> date:
    """Return the date n calendar days after start."""
    return start + timedelta(days=n)


def days_between(start: date, end: date) -> int:
    """Elapsed calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def delivery_deadline(payment_date) -> Optional[date]:
    """Economic-performance deadline: 105 days after payment.

    An accrual-basis taxpayer paying before delivery may treat property as
    provided at payment if delivery is reasonably expected within 3.5
    months (105 days).

    Example:
        >>> delivery_deadline(date(2025, 12, 15))
        datetime.date(2026, 3, 30)
    """
    d = parse_date(payment_date)
    if d is None:
        return None
    return add_days(d, ECONOMIC_PERFORMANCE_DAYS)


def continuity_deadline(reference_date) -> Optional[date]:
    """Placed-in-service deadline under the 4-year continuity safe harbor.

    December 31 of the fourth calendar year after the year construction
    began.
    """
    d = parse_date(reference_date)
    if d is None:
        return None
    return date(d.year + CONTINUITY_YEARS, 12, 31)


def on_or_before(value, deadline: date) -> bool:
    """Inclusive deadline test. Invalid dates never meet a deadline."""
    d = parse_date(value)
    return d is not None and d <= deadline


def days_remaining(deadline: date, as_of: Optional[date] = None) -> int:
    """Days from as_of (default today) until deadline."""
    return days_between(as_of or date.today(), deadline)


@dataclass
class CriticalDeadline:
    """A fixed statutory milestone shown on the compliance dashboard."""

    name: str
    description: str
    deadline: date
    days_remaining: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "deadline": self.deadline.isoformat(),
            "days_remaining": self.days_remaining,
        }


def critical_deadlines(as_of: Optional[date] = None) -> List[CriticalDeadline]:
    """Return the statutory milestones with days remaining from as_of."""
    as_of = as_of or date.today()
    milestones = [
        ("FEOC Exemption Deadline",
         "Construction must begin by this date for permanent FEOC exemption",
         FEOC_DEADLINE),
        ("ITC/PTC Safe Harbor (≤1.5MW)",
         "Last day for 5% safe harbor on small projects",
         ITC_SMALL_DEADLINE),
        ("4-Year Continuity Safe Harbor",
         "Projects qualifying in 2025 must be placed in service by this date",
         continuity_deadline(FEOC_DEADLINE)),
    ]
    return [
        CriticalDeadline(name, desc, deadline, days_remaining(deadline, as_of))
        for name, desc, deadline in milestones
    ]

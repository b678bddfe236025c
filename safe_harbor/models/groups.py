"""Strategic group classification for BOC safe-harbor planning.

Projects fall into one of four planning groups depending on size, payment
timing, and whether physical work can be completed by July 4, 2026:

    Group 1  <= 1.5 MW, paid by 12/31/25          Low risk
    Group 2  >  1.5 MW, paid by 12/31/25, PW ok   Low risk
    Group 3  >  1.5 MW, paid by 12/31/25, no PW   High risk
    Group 4  paid after 12/31/25                  Very High risk

Inputs that match no branch (non-positive capacity, invalid date) are
reported as Group.UNASSIGNED rather than raising.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from safe_harbor.models.boc_track import SIZE_THRESHOLD_MW
from safe_harbor.models.deadlines import FEOC_DEADLINE, parse_date
from safe_harbor.models.project import Group, RiskLevel


@dataclass(frozen=True)
class GroupGuidance:
    """Static planning guidance for a group (presentation data)."""

    title: str
    risk_level: RiskLevel
    rationale: str
    feoc_boc_year: Optional[int] = None
    itc_boc_year: Optional[int] = None
    pis_deadline: Optional[date] = None
    actions: tuple = ()


GROUP_GUIDANCE: Dict[Group, GroupGuidance] = {
    Group.SMALL_PROJECT: GroupGuidance(
        title="Small project",
        risk_level=RiskLevel.LOW,
        rationale=(
            "Projects of 1.5 MW AC or less keep the 5% safe harbor for ITC/PTC. "
            "A single 2025 payment achieves both the FEOC exemption and ITC/PTC BOC."
        ),
        feoc_boc_year=2025,
        itc_boc_year=2025,
        pis_deadline=date(2029, 12, 31),
        actions=(
            "Pay or incur at least 5% of total cost by December 31, 2025",
            "Document reasonable expectation of delivery within 105 days",
            "Maintain continuous efforts toward completion",
        ),
    ),
    Group.LARGE_ON_TRACK: GroupGuidance(
        title="Large project, on track for physical work",
        risk_level=RiskLevel.LOW,
        rationale=(
            "The 2025 5% payment preserves the FEOC exemption, and physical work of a "
            "significant nature by July 4, 2026 establishes ITC/PTC BOC. Dual BOC dates: "
            "FEOC BOC = 2025, ITC/PTC BOC = 2026."
        ),
        feoc_boc_year=2025,
        itc_boc_year=2026,
        pis_deadline=date(2029, 12, 31),
        actions=(
            "Pay or incur at least 5% of total cost by December 31, 2025 for FEOC",
            "Begin physical work of a significant nature before July 4, 2026",
            "Keep separate records for the FEOC and ITC/PTC BOC dates",
        ),
    ),
    Group.LARGE_NO_PHYSICAL_WORK: GroupGuidance(
        title="Large project, physical work not feasible",
        risk_level=RiskLevel.HIGH,
        rationale=(
            "The FEOC exemption is preserved by the 2025 payment, but ITC/PTC BOC fails "
            "without physical work by July 4, 2026. The placed-in-service deadline "
            "compresses to December 31, 2027 instead of December 31, 2029."
        ),
        feoc_boc_year=2025,
        itc_boc_year=None,
        pis_deadline=date(2027, 12, 31),
        actions=(
            "Pay or incur at least 5% of total cost by December 31, 2025 for FEOC",
            "Re-examine whether off-site physical work under a binding contract is possible",
            "Plan to place the project in service by December 31, 2027",
        ),
    ),
    Group.NO_2025_SAFE_HARBOR: GroupGuidance(
        title="No 2025 safe harbor",
        risk_level=RiskLevel.VERY_HIGH,
        rationale=(
            "Payment after December 31, 2025 forfeits the FEOC exemption. The project must "
            "meet material assistance thresholds: non-PRC content of at least 40% for 2026 "
            "BOC and at least 45% for 2027 BOC."
        ),
        actions=(
            "Source equipment meeting the non-PRC content threshold for the BOC year",
            "Use the Physical Work Test for ITC/PTC BOC",
            "Obtain supplier certifications for material assistance cost ratios",
        ),
    ),
    Group.UNASSIGNED: GroupGuidance(
        title="Unassigned",
        risk_level=RiskLevel.UNKNOWN,
        rationale="Capacity or payment date is missing or invalid; the project cannot be classified.",
    ),
}


@dataclass(frozen=True)
class GroupResult:
    """Group classification with its static guidance."""

    group: Group
    guidance: GroupGuidance = field(compare=False)

    @property
    def assigned(self) -> bool:
        return self.group is not Group.UNASSIGNED

    @property
    def risk_level(self) -> RiskLevel:
        return self.guidance.risk_level

    @property
    def actions(self) -> List[str]:
        return list(self.guidance.actions)

    def to_dict(self) -> dict:
        return {
            "group": int(self.group),
            "title": self.guidance.title,
            "risk_level": self.guidance.risk_level.value,
            "rationale": self.guidance.rationale,
            "pis_deadline": (self.guidance.pis_deadline.isoformat()
                             if self.guidance.pis_deadline else None),
            "actions": list(self.guidance.actions),
        }


def _result(group: Group) -> GroupResult:
    return GroupResult(group=group, guidance=GROUP_GUIDANCE[group])


def classify_group(capacity_mw: float, payment_date, physical_work_feasible: bool) -> GroupResult:
    """Assign a project to a strategic planning group.

    Args:
        capacity_mw: Project capacity in MW AC.
        payment_date: Safe-harbor payment date (date or ISO string).
        physical_work_feasible: Physical work can be completed by July 4, 2026.
            Only consulted for projects > 1.5 MW paid by December 31, 2025.

    Returns:
        GroupResult; Group.UNASSIGNED if capacity or date is invalid.
    """
    d = parse_date(payment_date)
    try:
        capacity = float(capacity_mw)
    except (TypeError, ValueError):
        return _result(Group.UNASSIGNED)
    if d is None or not math.isfinite(capacity) or capacity <= 0:
        return _result(Group.UNASSIGNED)

    if d > FEOC_DEADLINE:
        return _result(Group.NO_2025_SAFE_HARBOR)
    if capacity <= SIZE_THRESHOLD_MW:
        return _result(Group.SMALL_PROJECT)
    if physical_work_feasible:
        return _result(Group.LARGE_ON_TRACK)
    return _result(Group.LARGE_NO_PHYSICAL_WORK)

"""Project evaluation engine for the Safe Harbor compliance system.

Combines the individual rule modules (safe harbor test, BOC track, group,
deadlines, ITC rate, compliance audit) into a single per-project
evaluation, and rolls a portfolio up into dashboard metrics. Every
function here is pure: results depend only on the arguments.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from safe_harbor.models.boc_track import TrackResult, classify_boc_track
from safe_harbor.models.compliance import ComplianceResult, audit_compliance
from safe_harbor.models.deadlines import (
    FEOC_DEADLINE,
    continuity_deadline,
    delivery_deadline,
    on_or_before,
)
from safe_harbor.models.groups import GroupResult, classify_group
from safe_harbor.models.itc_rate import ITCRateResult, compute_itc_rate
from safe_harbor.models.project import ComplianceStatus, Group, Project
from safe_harbor.models.safe_harbor import (
    is_safe_harbor_qualified,
    recommended_safe_harbor_amount,
    safe_harbor_percentage,
    safe_harbor_shortfall,
)


@dataclass
class ProjectEvaluation:
    """Derived view of a project.

    Attributes:
        project_id: Evaluated project.
        percentage: Safe-harbor percentage (None if undefined).
        qualified: Meets the 5% safe harbor test.
        track: BOC track classification.
        group: Group classification from current inputs.
        delivery_deadline: 105-day economic performance deadline.
        continuity_deadline: 4-year placed-in-service deadline.
        recommended_amount: 6.5% audit-defense target ($).
        shortfall: Additional spend needed to reach 5% ($).
        itc: ITC rate and breakdown.
        compliance: Compliance audit result.
    """

    project_id: int
    percentage: Optional[float]
    qualified: bool
    track: TrackResult
    group: GroupResult
    delivery_deadline: Optional[date]
    continuity_deadline: Optional[date]
    recommended_amount: Optional[float]
    shortfall: Optional[float]
    itc: ITCRateResult
    compliance: ComplianceResult

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "percentage": self.percentage,
            "qualified": self.qualified,
            "track": self.track.to_dict(),
            "group": self.group.to_dict(),
            "delivery_deadline": self.delivery_deadline.isoformat() if self.delivery_deadline else None,
            "continuity_deadline": self.continuity_deadline.isoformat() if self.continuity_deadline else None,
            "recommended_amount": self.recommended_amount,
            "shortfall": self.shortfall,
            "itc": self.itc.to_dict(),
            "compliance": self.compliance.to_dict(),
        }


@dataclass
class PortfolioSummary:
    """Dashboard metrics across all projects."""

    total_projects: int = 0
    qualified_projects: int = 0
    feoc_eligible: int = 0
    total_invested: float = 0.0
    by_group: Dict[Group, int] = field(default_factory=dict)
    by_status: Dict[ComplianceStatus, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_projects": self.total_projects,
            "qualified_projects": self.qualified_projects,
            "feoc_eligible": self.feoc_eligible,
            "total_invested": self.total_invested,
            "by_group": {int(g): n for g, n in self.by_group.items()},
            "by_status": {s.value: n for s, n in self.by_status.items()},
        }


def initial_boc_qualified(capacity_mw: float, allocated: float, total: float, payment_date) -> bool:
    """BOC status recorded when a project is created.

    Construction is treated as begun when the 5% test is met and at least
    one BOC track is available for the payment date. Inputs that leave the
    project unassigned to a group never qualify.
    """
    if not classify_group(capacity_mw, payment_date, False).assigned:
        return False
    percentage = safe_harbor_percentage(allocated, total)
    return is_safe_harbor_qualified(percentage) and classify_boc_track(capacity_mw, payment_date).eligible


def is_feoc_eligible(project: Project) -> bool:
    """Track eligible and paid on or before the FEOC deadline."""
    track = classify_boc_track(project.capacity_mw, project.payment_date)
    return track.eligible and on_or_before(project.payment_date, FEOC_DEADLINE)


def evaluate_project(project: Project) -> ProjectEvaluation:
    """Run every rule against a project.

    The group is classified from the project's current inputs; the frozen
    Project.group is left untouched.

    Args:
        project: Project to evaluate.

    Returns:
        ProjectEvaluation with all derived values.
    """
    percentage = project.safe_harbor_percentage
    return ProjectEvaluation(
        project_id=project.project_id,
        percentage=percentage,
        qualified=is_safe_harbor_qualified(percentage),
        track=classify_boc_track(project.capacity_mw, project.payment_date),
        group=classify_group(project.capacity_mw, project.payment_date, project.physical_work_by_726),
        delivery_deadline=delivery_deadline(project.payment_date),
        continuity_deadline=continuity_deadline(project.payment_date),
        recommended_amount=recommended_safe_harbor_amount(project.total_cost),
        shortfall=safe_harbor_shortfall(project.allocated_cost, project.total_cost),
        itc=compute_itc_rate(project.itc_compliance),
        compliance=audit_compliance(project),
    )


def summarize_portfolio(projects: Iterable[Project]) -> PortfolioSummary:
    """Roll projects up into dashboard metrics.

    Groups are counted from each project's frozen group value.
    """
    summary = PortfolioSummary()
    for project in projects:
        summary.total_projects += 1
        if is_safe_harbor_qualified(project.safe_harbor_percentage):
            summary.qualified_projects += 1
        if is_feoc_eligible(project):
            summary.feoc_eligible += 1
        summary.total_invested += project.allocated_cost
        summary.by_group[project.group] = summary.by_group.get(project.group, 0) + 1
        status = audit_compliance(project).status
        summary.by_status[status] = summary.by_status.get(status, 0) + 1
    return summary


def evaluate_portfolio(projects: Iterable[Project]) -> List[ProjectEvaluation]:
    return [evaluate_project(p) for p in projects]

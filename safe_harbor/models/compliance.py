"""Compliance audit for ITC and BOC safe-harbor documentation.

Aggregates a project's compliance flags into an ordered issue list and a
three-level status:

    0 issues     Compliant
    1-2 issues   At Risk
    3+ issues    Non-Compliant
"""

from dataclasses import dataclass, field
from typing import List

from safe_harbor.models.project import ComplianceStatus, Project
from safe_harbor.models.safe_harbor import is_safe_harbor_qualified

AT_RISK_MAX_ISSUES = 2


@dataclass
class ComplianceResult:
    status: ComplianceStatus = ComplianceStatus.COMPLIANT
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"status": self.status.value, "issues": list(self.issues)}


def compliance_status(issue_count: int) -> ComplianceStatus:
    """Map an issue count to a compliance status."""
    if issue_count == 0:
        return ComplianceStatus.COMPLIANT
    if issue_count <= AT_RISK_MAX_ISSUES:
        return ComplianceStatus.AT_RISK
    return ComplianceStatus.NON_COMPLIANT


def audit_compliance(project: Project) -> ComplianceResult:
    """Audit a project's compliance flags.

    Args:
        project: Project to audit.

    Returns:
        ComplianceResult with status and issues in check order.
    """
    flags = project.itc_compliance
    issues = []

    if not flags.boc_qualified:
        issues.append("Beginning of Construction not established")
    if not flags.prevailing_wage:
        issues.append("Prevailing wage requirements not met")
    if not flags.apprenticeship:
        issues.append("Apprenticeship requirements not met")
    if not flags.labor_standards_registered and (flags.prevailing_wage or flags.apprenticeship):
        issues.append("Labor standards records not registered")
    if not flags.continuous_construction:
        issues.append("Continuous construction efforts not documented")
    if not is_safe_harbor_qualified(project.safe_harbor_percentage):
        issues.append("Safe harbor allocation below 5% of total cost")

    return ComplianceResult(status=compliance_status(len(issues)), issues=issues)

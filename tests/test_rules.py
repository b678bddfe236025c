"""Unit tests for the Safe Harbor rule engine.

Tests cover date arithmetic, the 5% safe harbor test, BOC track and group
classification, ITC rate, the compliance audit, and the combined project
evaluation. Each test verifies against hand-computed values.
"""

import math
from datetime import date

import pytest

from safe_harbor.models.boc_track import (
    TRACK_FEOC_ONLY,
    TRACK_NONE,
    TRACK_PHYSICAL_WORK,
    classify_boc_track,
)
from safe_harbor.models.calculations import (
    evaluate_project,
    initial_boc_qualified,
    summarize_portfolio,
)
from safe_harbor.models.compliance import audit_compliance, compliance_status
from safe_harbor.models.deadlines import (
    FEOC_DEADLINE,
    ITC_SMALL_DEADLINE,
    add_days,
    continuity_deadline,
    critical_deadlines,
    days_between,
    delivery_deadline,
    on_or_before,
    parse_date,
)
from safe_harbor.models.groups import GROUP_GUIDANCE, classify_group
from safe_harbor.models.itc_rate import compute_itc_rate
from safe_harbor.models.project import (
    ComplianceStatus,
    Group,
    ITCCompliance,
    Project,
    RiskLevel,
)
from safe_harbor.models.safe_harbor import (
    is_safe_harbor_qualified,
    recommended_safe_harbor_amount,
    safe_harbor_percentage,
    safe_harbor_shortfall,
)


def _fully_compliant_flags(**overrides) -> ITCCompliance:
    flags = dict(
        boc_qualified=True,
        prevailing_wage=True,
        apprenticeship=True,
        labor_standards_registered=True,
        continuous_construction=True,
    )
    flags.update(overrides)
    return ITCCompliance(**flags)


# ---- Date Arithmetic ----

class TestDeadlines:
    def test_delivery_deadline_105_days(self):
        """Payment on Dec 15, 2025 -> delivery expected by Mar 30, 2026."""
        assert delivery_deadline(date(2025, 12, 15)) == date(2026, 3, 30)

    def test_delivery_deadline_accepts_iso_string(self):
        assert delivery_deadline("2025-12-15") == date(2026, 3, 30)

    def test_delivery_deadline_leap_year(self):
        """105 days from Jan 1, 2028 crosses Feb 29."""
        assert delivery_deadline(date(2028, 1, 1)) == date(2028, 4, 15)

    def test_continuity_deadline(self):
        assert continuity_deadline(date(2025, 6, 1)) == date(2029, 12, 31)

    def test_continuity_deadline_year_end(self):
        assert continuity_deadline(date(2025, 12, 31)) == date(2029, 12, 31)

    def test_invalid_date_gives_no_deadline(self):
        assert delivery_deadline("not-a-date") is None
        assert continuity_deadline(None) is None

    def test_add_days_and_days_between(self):
        start = date(2025, 12, 15)
        assert days_between(start, add_days(start, 105)) == 105
        assert days_between(add_days(start, 10), start) == -10

    def test_on_or_before_is_inclusive(self):
        assert on_or_before(FEOC_DEADLINE, FEOC_DEADLINE)
        assert not on_or_before(date(2026, 1, 1), FEOC_DEADLINE)
        assert not on_or_before("garbage", FEOC_DEADLINE)

    def test_parse_date(self):
        assert parse_date("2025-06-01") == date(2025, 6, 1)
        assert parse_date("2025-02-30") is None
        assert parse_date(12345) is None

    def test_critical_deadlines(self):
        milestones = critical_deadlines(as_of=date(2025, 12, 1))
        assert [m.deadline for m in milestones] == [
            FEOC_DEADLINE, ITC_SMALL_DEADLINE, date(2029, 12, 31),
        ]
        assert milestones[0].days_remaining == 30


# ---- Safe Harbor Percentage ----

class TestSafeHarborPercentage:
    def test_percentage_basic(self):
        """$520K of $8M = 6.50%."""
        assert safe_harbor_percentage(520_000, 8_000_000) == 6.5

    def test_percentage_rounds_to_two_decimals(self):
        assert safe_harbor_percentage(1, 3) == 33.33

    def test_full_allocation_is_100(self):
        assert safe_harbor_percentage(750_000, 750_000) == 100.0

    def test_over_allocation_surfaced(self):
        assert safe_harbor_percentage(150, 100) == 150.0

    def test_zero_total_fails_closed(self):
        assert safe_harbor_percentage(100, 0) is None
        assert not is_safe_harbor_qualified(safe_harbor_percentage(100, 0))

    def test_negative_and_nan_fail_closed(self):
        assert safe_harbor_percentage(-1, 100) is None
        assert safe_harbor_percentage(5, -100) is None
        assert safe_harbor_percentage(math.nan, 100) is None
        assert safe_harbor_percentage("5", 100) is None

    def test_threshold_exact(self):
        assert is_safe_harbor_qualified(safe_harbor_percentage(50_000, 1_000_000))

    def test_threshold_rounding_then_compare(self):
        """4.996% displays as 5.00% and qualifies."""
        pct = safe_harbor_percentage(49_960, 1_000_000)
        assert pct == 5.0
        assert is_safe_harbor_qualified(pct)

    def test_below_threshold(self):
        pct = safe_harbor_percentage(49_940, 1_000_000)
        assert pct == 4.99
        assert not is_safe_harbor_qualified(pct)

    def test_recommended_amount(self):
        """6.5% audit-defense target."""
        assert recommended_safe_harbor_amount(8_000_000) == pytest.approx(520_000)

    def test_shortfall(self):
        assert safe_harbor_shortfall(300_000, 8_000_000) == pytest.approx(100_000)
        assert safe_harbor_shortfall(520_000, 8_000_000) == 0.0


# ---- BOC Track ----

class TestBOCTrack:
    def test_large_project_paid_by_feoc_deadline(self):
        result = classify_boc_track(2.0, "2025-12-31")
        assert result.eligible
        assert not result.warning
        assert "FEOC Exemption Only" in result.track
        assert result.details

    def test_large_project_after_feoc_deadline(self):
        result = classify_boc_track(2.0, "2026-01-01")
        assert not result.eligible
        assert result.warning
        assert result.track == TRACK_PHYSICAL_WORK

    def test_small_project_both_tracks(self):
        result = classify_boc_track(1.0, "2025-06-01")
        assert result.track == "ITC/PTC via 5% safe harbor + FEOC exemption"
        assert result.eligible
        assert not result.warning
        assert result.details == ""

    def test_small_project_itc_only(self):
        result = classify_boc_track(1.5, "2026-07-04")
        assert result.track == "ITC/PTC via 5% safe harbor"
        assert result.eligible

    def test_small_project_no_track(self):
        result = classify_boc_track(1.0, "2026-07-05")
        assert result.track == TRACK_NONE
        assert not result.eligible
        assert result.warning

    def test_threshold_is_inclusive_small(self):
        """Exactly 1.5 MW is a small project."""
        assert "ITC/PTC" in classify_boc_track(1.5, date(2025, 6, 1)).track

    def test_large_project_feoc_deadline_inclusive(self):
        on_deadline = classify_boc_track(2.0, date(2025, 12, 31))
        assert on_deadline.eligible
        assert on_deadline.track == TRACK_FEOC_ONLY
        assert not classify_boc_track(2.0, date(2026, 1, 1)).eligible

    def test_small_project_itc_deadline_inclusive(self):
        assert classify_boc_track(1.5, date(2026, 7, 4)).eligible
        assert not classify_boc_track(1.5, date(2026, 7, 5)).eligible

    def test_invalid_date_has_no_track(self):
        assert classify_boc_track(2.0, "bad").track == TRACK_PHYSICAL_WORK
        assert classify_boc_track(1.0, None).track == TRACK_NONE

    def test_deterministic(self):
        assert classify_boc_track(2.0, "2025-12-31") == classify_boc_track(2.0, "2025-12-31")
        assert classify_boc_track(2.0, "2025-12-31").track == TRACK_FEOC_ONLY


# ---- Group Classification ----

class TestGroups:
    def test_group_1_small(self):
        assert classify_group(1.0, "2025-12-01", False).group == Group.SMALL_PROJECT

    def test_group_2_large_physical_work(self):
        assert classify_group(5.0, "2025-12-01", True).group == Group.LARGE_ON_TRACK

    def test_group_3_large_no_physical_work(self):
        result = classify_group(5.0, "2025-12-01", False)
        assert result.group == Group.LARGE_NO_PHYSICAL_WORK
        assert result.guidance.pis_deadline == date(2027, 12, 31)

    @pytest.mark.parametrize("physical_work", [True, False])
    def test_group_4_after_2025(self, physical_work):
        assert classify_group(5.0, "2026-01-01", physical_work).group == Group.NO_2025_SAFE_HARBOR

    def test_group_4_small_project_after_2025(self):
        assert classify_group(1.0, "2026-01-01", False).group == Group.NO_2025_SAFE_HARBOR

    def test_size_threshold_inclusive_for_group_1(self):
        """Exactly 1.5 MW is small, so Group 1 regardless of physical work."""
        assert classify_group(1.5, "2025-12-01", False).group == Group.SMALL_PROJECT
        assert classify_group(1.5001, "2025-12-01", False).group == Group.LARGE_NO_PHYSICAL_WORK

    def test_feoc_deadline_inclusive_for_groups(self):
        """A Dec 31, 2025 payment is still a 2025 safe harbor, not Group 4."""
        assert classify_group(5.0, "2025-12-31", True).group == Group.LARGE_ON_TRACK
        assert classify_group(5.0, "2025-12-31", False).group == Group.LARGE_NO_PHYSICAL_WORK
        assert classify_group(1.0, "2025-12-31", False).group == Group.SMALL_PROJECT
        assert classify_group(5.0, "2026-01-01", True).group == Group.NO_2025_SAFE_HARBOR

    def test_risk_levels(self):
        assert classify_group(1.0, "2025-12-01", False).risk_level == RiskLevel.LOW
        assert classify_group(5.0, "2025-12-01", True).risk_level == RiskLevel.LOW
        assert classify_group(5.0, "2025-12-01", False).risk_level == RiskLevel.HIGH
        assert classify_group(5.0, "2026-01-01", False).risk_level == RiskLevel.VERY_HIGH

    def test_unassigned_on_bad_input(self):
        assert classify_group(0, "2025-12-01", False).group == Group.UNASSIGNED
        assert classify_group(-3, "2025-12-01", False).group == Group.UNASSIGNED
        assert classify_group(math.nan, "2025-12-01", False).group == Group.UNASSIGNED
        assert classify_group(2.0, "2025-13-01", False).group == Group.UNASSIGNED
        assert not classify_group(2.0, None, True).assigned

    def test_guidance_table_covers_every_group(self):
        assert set(GROUP_GUIDANCE) == set(Group)

    def test_group_4_guidance_mentions_thresholds(self):
        rationale = GROUP_GUIDANCE[Group.NO_2025_SAFE_HARBOR].rationale
        assert "40%" in rationale and "45%" in rationale

    def test_deterministic(self):
        assert classify_group(5.0, "2025-12-01", True) == classify_group(5.0, "2025-12-01", True)


# ---- ITC Rate ----

class TestITCRate:
    def test_maximum_rate(self):
        result = compute_itc_rate(ITCCompliance(
            prevailing_wage=True, apprenticeship=True,
            domestic_content=True, energy_community=True,
        ))
        assert result.rate == 50

    def test_reduced_base_rate(self):
        result = compute_itc_rate(ITCCompliance(apprenticeship=True))
        assert result.rate == 6

    def test_full_base_only(self):
        assert compute_itc_rate(ITCCompliance(prevailing_wage=True, apprenticeship=True)).rate == 30

    def test_bonuses_on_reduced_base(self):
        assert compute_itc_rate(ITCCompliance(domestic_content=True, energy_community=True)).rate == 26

    def test_breakdown_order(self):
        result = compute_itc_rate(ITCCompliance(
            prevailing_wage=True, apprenticeship=True,
            domestic_content=True, domestic_content_percentage=45, energy_community=True,
        ))
        assert len(result.breakdown) == 4
        assert result.breakdown[0].startswith("Base rate: 30%")
        assert "Domestic content" in result.breakdown[1]
        assert "Energy community" in result.breakdown[2]
        assert result.breakdown[-1] == "Total ITC rate: 50%"

    def test_breakdown_no_bonuses(self):
        result = compute_itc_rate(ITCCompliance())
        assert result.breakdown == [
            "Base rate: 6% (labor standards not met)",
            "Total ITC rate: 6%",
        ]

    def test_credit_value(self):
        result = compute_itc_rate(ITCCompliance(prevailing_wage=True, apprenticeship=True))
        assert result.credit_value(8_000_000) == pytest.approx(2_400_000)


# ---- Compliance Audit ----

class TestComplianceAudit:
    def _project(self, flags: ITCCompliance, allocated: float = 520_000) -> Project:
        return Project(
            project_id=1, capacity_mw=5.0, total_cost=8_000_000, allocated_cost=allocated,
            payment_date=date(2025, 12, 15), itc_compliance=flags,
        )

    def test_compliant(self):
        result = audit_compliance(self._project(_fully_compliant_flags()))
        assert result.status == ComplianceStatus.COMPLIANT
        assert result.issues == []

    def test_at_risk(self):
        result = audit_compliance(self._project(_fully_compliant_flags(continuous_construction=False)))
        assert result.status == ComplianceStatus.AT_RISK
        assert len(result.issues) == 1

    def test_non_compliant_default_flags(self):
        """Default flags: no BOC, wage, apprenticeship or continuity -> 4 issues."""
        result = audit_compliance(self._project(ITCCompliance()))
        assert result.status == ComplianceStatus.NON_COMPLIANT
        assert len(result.issues) == 4

    def test_issue_order(self):
        result = audit_compliance(self._project(ITCCompliance(prevailing_wage=True), allocated=100))
        assert result.issues == [
            "Beginning of Construction not established",
            "Apprenticeship requirements not met",
            "Labor standards records not registered",
            "Continuous construction efforts not documented",
            "Safe harbor allocation below 5% of total cost",
        ]

    def test_labor_registration_only_when_claimed(self):
        flags = _fully_compliant_flags(
            prevailing_wage=False, apprenticeship=False, labor_standards_registered=False,
        )
        issues = audit_compliance(self._project(flags)).issues
        assert "Labor standards records not registered" not in issues

    def test_zero_total_cost_is_an_issue(self):
        project = self._project(_fully_compliant_flags())
        project.total_cost = 0
        result = audit_compliance(project)
        assert result.issues == ["Safe harbor allocation below 5% of total cost"]

    @pytest.mark.parametrize("count,status", [
        (0, ComplianceStatus.COMPLIANT),
        (1, ComplianceStatus.AT_RISK),
        (2, ComplianceStatus.AT_RISK),
        (3, ComplianceStatus.NON_COMPLIANT),
        (6, ComplianceStatus.NON_COMPLIANT),
    ])
    def test_status_thresholds(self, count, status):
        assert compliance_status(count) == status


# ---- Evaluation ----

class TestEvaluation:
    def _sunrise(self, **overrides) -> Project:
        fields = dict(
            project_id=1, name="Project Sunrise", capacity_mw=5.0, total_cost=8_000_000,
            allocated_cost=520_000, payment_date=date(2025, 12, 15), physical_work_by_726=True,
            group=Group.LARGE_ON_TRACK,
        )
        fields.update(overrides)
        return Project(**fields)

    def test_evaluate_sunrise(self):
        ev = evaluate_project(self._sunrise())
        assert ev.percentage == 6.5
        assert ev.qualified
        assert ev.track.track == TRACK_FEOC_ONLY
        assert ev.group.group == Group.LARGE_ON_TRACK
        assert ev.delivery_deadline == date(2026, 3, 30)
        assert ev.continuity_deadline == date(2029, 12, 31)
        assert ev.recommended_amount == pytest.approx(520_000)
        assert ev.itc.rate == 6

    def test_evaluate_does_not_touch_frozen_group(self):
        project = self._sunrise(payment_date=date(2026, 2, 1))
        ev = evaluate_project(project)
        assert ev.group.group == Group.NO_2025_SAFE_HARBOR
        assert project.group == Group.LARGE_ON_TRACK

    def test_evaluation_to_dict(self):
        data = evaluate_project(self._sunrise()).to_dict()
        assert data["delivery_deadline"] == "2026-03-30"
        assert data["group"]["group"] == 2

    def test_initial_boc_qualified(self):
        assert initial_boc_qualified(5.0, 520_000, 8_000_000, date(2025, 12, 15))
        assert not initial_boc_qualified(5.0, 520_000, 8_000_000, date(2026, 1, 15))
        assert not initial_boc_qualified(1.0, 10_000, 8_000_000, date(2025, 12, 15))
        assert not initial_boc_qualified(1.0, 10_000, 0, date(2025, 12, 15))

    @pytest.mark.parametrize("capacity", [0.0, -2.0, math.nan])
    def test_initial_boc_not_qualified_when_unassigned(self, capacity):
        """Small-project track is open, but unassigned capacity never qualifies."""
        assert not initial_boc_qualified(capacity, 60_000, 1_000_000, date(2025, 10, 1))

    def test_initial_boc_not_qualified_for_invalid_date(self):
        assert not initial_boc_qualified(1.0, 60_000, 1_000_000, "2025-13-01")

    def test_portfolio_summary(self):
        projects = [
            self._sunrise(),
            self._sunrise(project_id=2, allocated_cost=100_000, payment_date=date(2026, 3, 1),
                          group=Group.NO_2025_SAFE_HARBOR),
            self._sunrise(project_id=3, capacity_mw=1.0, allocated_cost=600_000,
                          payment_date=date(2026, 5, 1), group=Group.NO_2025_SAFE_HARBOR),
        ]
        summary = summarize_portfolio(projects)
        assert summary.total_projects == 3
        assert summary.qualified_projects == 2
        assert summary.feoc_eligible == 1
        assert summary.total_invested == pytest.approx(1_220_000)
        assert summary.by_group == {Group.LARGE_ON_TRACK: 1, Group.NO_2025_SAFE_HARBOR: 2}
        assert sum(summary.by_status.values()) == 3

    def test_empty_portfolio(self):
        summary = summarize_portfolio([])
        assert summary.total_projects == 0
        assert summary.total_invested == 0.0

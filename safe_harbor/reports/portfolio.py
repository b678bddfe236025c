"""Portfolio compliance PDF report generation using ReportLab.

Generates a professional PDF containing the dashboard metrics, critical
statutory deadlines, a per-project qualification table, per-project
detail (group guidance, ITC breakdown, compliance issues), and the
regulatory references.
"""

import logging
import tempfile
from datetime import date
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from safe_harbor.models.calculations import evaluate_project, summarize_portfolio
from safe_harbor.models.deadlines import critical_deadlines
from safe_harbor.models.project import ComplianceStatus, Group, Project
from safe_harbor.reports.charts import create_group_pie_chart, create_safe_harbor_chart
from safe_harbor.utils.formatters import (
    format_currency_exact,
    format_days,
    format_long_date,
    format_millions,
    format_percent,
    format_short_date,
)

logger = logging.getLogger(__name__)

REFERENCES = [
    "IRS Notice 2013-29. Beginning of Construction for Sections 45 and 48.",
    "IRS Notice 2018-59. Beginning of Construction for the Investment Tax Credit.",
    "IRS Notice 2020-41. Extension of Continuity Safe Harbor.",
    "IRS Notice 2021-41. Continuity Safe Harbor Extended to Six Years for 2016-2020 Projects.",
    "IRS Notice 2025-42. Beginning of Construction for Wind and Solar Facilities.",
    "Treasury Regulation §1.461-4(d)(6)(ii). Economic performance for property provided to the taxpayer.",
]

_STATUS_COLORS = {
    ComplianceStatus.COMPLIANT: colors.green,
    ComplianceStatus.AT_RISK: colors.orange,
    ComplianceStatus.NON_COMPLIANT: colors.red,
}


def _group_label(group: Group) -> str:
    return "Unassigned" if group is Group.UNASSIGNED else f"Group {int(group)}"


def generate_portfolio_report(
    projects: List[Project], output_path: str, as_of: Optional[date] = None
) -> None:
    """Generate a portfolio compliance PDF report.

    Args:
        projects: Projects to report on.
        output_path: File path for the output PDF.
        as_of: Date used for days-remaining figures (default today).
    """
    as_of = as_of or date.today()
    doc = SimpleDocTemplate(
        output_path,
        pagesize=letter,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "CustomTitle", parent=styles["Title"], fontSize=18, spaceAfter=6
    )
    heading_style = ParagraphStyle(
        "CustomHeading", parent=styles["Heading2"], fontSize=14,
        spaceAfter=8, spaceBefore=12, textColor=colors.HexColor("#1565c0"),
    )
    body_style = styles["Normal"]
    small_style = ParagraphStyle(
        "Small", parent=body_style, fontSize=8, textColor=colors.grey,
    )

    summary = summarize_portfolio(projects)
    evaluations = [evaluate_project(p) for p in projects]
    elements = []

    # --- PAGE 1: Dashboard ---
    elements.append(Paragraph("Safe Harbor Compliance System", title_style))
    elements.append(Paragraph(f"Portfolio Report as of {format_long_date(as_of)}", styles["Heading3"]))
    elements.append(Spacer(1, 12))

    overview_data = [
        ["Total Projects", str(summary.total_projects)],
        ["5% Qualified", str(summary.qualified_projects)],
        ["FEOC Eligible", str(summary.feoc_eligible)],
        ["Total Invested", format_millions(summary.total_invested)],
    ]
    overview_table = Table(overview_data, colWidths=[2.5 * inch, 4.5 * inch])
    overview_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("LINEBELOW", (0, -1), (-1, -1), 1, colors.grey),
    ]))
    elements.append(overview_table)
    elements.append(Spacer(1, 16))

    elements.append(Paragraph("Critical Deadlines", heading_style))
    deadline_data = [["Milestone", "Deadline", "Remaining"]]
    for milestone in critical_deadlines(as_of):
        deadline_data.append([
            milestone.name, format_short_date(milestone.deadline), format_days(milestone.days_remaining),
        ])
    deadline_table = Table(deadline_data, colWidths=[3.5 * inch, 1.75 * inch, 1.75 * inch])
    deadline_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1565c0")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f5f5f5")]),
    ]))
    elements.append(deadline_table)
    elements.append(Spacer(1, 16))

    elements.append(Paragraph("Projects Overview", heading_style))
    cell_style = ParagraphStyle("Cell", parent=body_style, fontSize=8, leading=10)
    project_data = [["Project", "Capacity", "Safe Harbor %", "BOC Track", "Group", "Status"]]
    status_styles = []
    for row, (project, ev) in enumerate(zip(projects, evaluations), start=1):
        project_data.append([
            Paragraph(escape(project.name or f"Project {project.project_id}"), cell_style),
            f"{project.capacity_mw:,.1f} MW",
            format_percent(ev.percentage),
            Paragraph(ev.track.track, cell_style),
            str(int(project.group)) if project.group is not Group.UNASSIGNED else "-",
            ev.compliance.status.value,
        ])
        status_styles.append(("TEXTCOLOR", (5, row), (5, row), _STATUS_COLORS[ev.compliance.status]))
        status_styles.append((
            "TEXTCOLOR", (2, row), (2, row), colors.green if ev.qualified else colors.red,
        ))
    project_table = Table(
        project_data,
        colWidths=[1.5 * inch, 0.8 * inch, 1.0 * inch, 2.0 * inch, 0.6 * inch, 1.1 * inch],
        repeatRows=1,
    )
    project_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e0e0e0")),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (1, 1), (2, -1), "RIGHT"),
    ] + status_styles))
    elements.append(project_table)

    with tempfile.TemporaryDirectory() as tmpdir:
        if projects:
            bar_path = str(Path(tmpdir) / "safe_harbor.png")
            create_safe_harbor_chart(
                [p.name or f"Project {p.project_id}" for p in projects],
                [ev.percentage for ev in evaluations],
                bar_path,
            )
            elements.append(Spacer(1, 12))
            elements.append(Image(bar_path, width=6.5 * inch, height=3.5 * inch))

            pie_path = str(Path(tmpdir) / "groups.png")
            group_counts = {
                _group_label(g): n
                for g, n in sorted(summary.by_group.items())
            }
            create_group_pie_chart(group_counts, pie_path)
            elements.append(Image(pie_path, width=4.0 * inch, height=3.3 * inch))

        # --- Project detail pages ---
        for project, ev in zip(projects, evaluations):
            elements.append(PageBreak())
            elements.append(Paragraph(escape(project.name or f"Project {project.project_id}"), heading_style))
            detail_data = [
                ["Location", project.location or "Not specified"],
                ["Capacity", f"{project.capacity_mw:,.2f} MW AC"],
                ["Total Cost", format_currency_exact(project.total_cost)],
                ["Allocated Cost", format_currency_exact(project.allocated_cost)],
                ["Safe Harbor %", format_percent(ev.percentage)],
                ["Payment Date", format_long_date(project.payment_date)],
                ["105-Day Delivery Deadline", format_long_date(ev.delivery_deadline)],
                ["4-Year Continuity Deadline", format_long_date(ev.continuity_deadline)],
                ["Recommended Amount (6.5%)",
                 format_currency_exact(ev.recommended_amount) if ev.recommended_amount is not None else "N/A"],
                ["BOC Track", ev.track.track],
                ["ITC Rate", f"{ev.itc.rate}%"],
            ]
            detail_table = Table(detail_data, colWidths=[2.5 * inch, 4.5 * inch])
            detail_table.setStyle(TableStyle([
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("LINEBELOW", (0, -1), (-1, -1), 1, colors.grey),
            ]))
            elements.append(detail_table)
            elements.append(Spacer(1, 10))

            guidance = ev.group.guidance
            elements.append(Paragraph(
                f"<b>{_group_label(ev.group.group)}: {escape(guidance.title)}</b> "
                f"(Risk: {guidance.risk_level.value})", body_style,
            ))
            elements.append(Paragraph(guidance.rationale, body_style))
            for action in guidance.actions:
                elements.append(Paragraph(f"&bull; {action}", body_style))
            elements.append(Spacer(1, 8))

            elements.append(Paragraph("<b>ITC Rate Breakdown</b>", body_style))
            for line in ev.itc.breakdown:
                elements.append(Paragraph(f"&bull; {line}", body_style))
            elements.append(Spacer(1, 8))

            elements.append(Paragraph(
                f"<b>Compliance Status:</b> {ev.compliance.status.value}", body_style,
            ))
            for issue in ev.compliance.issues:
                elements.append(Paragraph(f"&bull; {issue}", body_style))

        # --- References ---
        elements.append(PageBreak())
        elements.append(Paragraph("Regulatory References", heading_style))
        for i, ref in enumerate(REFERENCES, 1):
            elements.append(Paragraph(f"[{i}] {ref}", small_style))
        elements.append(Spacer(1, 20))
        elements.append(Paragraph(
            "<i>This report provides guidance only. Consult tax and legal professionals "
            "for specific situations.</i>",
            small_style,
        ))

        # Build PDF (must happen while tmpdir exists for chart images)
        doc.build(elements)
    logger.info("Portfolio report with %d projects written to %s", len(projects), output_path)

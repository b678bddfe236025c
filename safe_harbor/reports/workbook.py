"""Excel project register export.

Creates an .xlsx workbook with:
- Projects: one row per project with inputs, safe harbor %, track, group,
  deadlines, ITC rate and compliance status (safe harbor % as a live formula)
- Compliance: ITC compliance flags and audit issues per project
- Summary: dashboard metrics and critical deadlines
"""

import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

import xlsxwriter

from safe_harbor.models.calculations import evaluate_project, summarize_portfolio
from safe_harbor.models.deadlines import critical_deadlines
from safe_harbor.models.groups import GROUP_GUIDANCE
from safe_harbor.models.project import Group, ITCCompliance, Project

logger = logging.getLogger(__name__)

PROJECT_COLUMNS = [
    ("ID", 6), ("Project", 24), ("Location", 14), ("Capacity (MW AC)", 14),
    ("Total Cost", 16), ("Allocated Cost", 16), ("Safe Harbor %", 13), ("5% Qualified", 12),
    ("Payment Date", 13), ("105-Day Deadline", 15), ("Continuity Deadline", 17),
    ("BOC Track", 44), ("Group", 8), ("Risk", 10), ("ITC Rate", 9), ("Status", 15),
]


def create_project_register(
    projects: List[Project], output_path: str, as_of: Optional[date] = None
) -> str:
    """Write the project register workbook.

    Args:
        projects: Projects to export.
        output_path: Destination path; the suffix is forced to .xlsx.
        as_of: Date used for days-remaining figures (default today).

    Returns:
        The path actually written.
    """
    if not output_path.endswith(".xlsx"):
        output_path = str(Path(output_path).with_suffix(".xlsx"))

    workbook = xlsxwriter.Workbook(output_path)
    fmt = _create_formats(workbook)

    _create_projects_sheet(workbook.add_worksheet("Projects"), fmt, projects)
    _create_compliance_sheet(workbook.add_worksheet("Compliance"), fmt, projects)
    _create_summary_sheet(workbook.add_worksheet("Summary"), fmt, projects, as_of or date.today())

    workbook.close()
    logger.info("Project register with %d projects written to %s", len(projects), output_path)
    return output_path


def _create_formats(wb) -> dict:
    f = {}
    blue = '#1565C0'
    lblue = '#E3F2FD'

    f['title'] = wb.add_format({'bold': True, 'font_size': 16, 'font_color': blue})
    f['subtitle'] = wb.add_format({'italic': True, 'font_color': '#555555', 'font_size': 10})
    f['section'] = wb.add_format({'bold': True, 'font_size': 11, 'font_color': blue,
                                  'bg_color': lblue, 'border': 1, 'valign': 'vcenter'})
    f['header'] = wb.add_format({'bold': True, 'font_color': 'white', 'bg_color': blue,
                                 'align': 'center', 'border': 1, 'valign': 'vcenter',
                                 'text_wrap': True})
    f['text'] = wb.add_format({'border': 1})
    f['wrap'] = wb.add_format({'border': 1, 'text_wrap': True, 'valign': 'top'})
    f['currency'] = wb.add_format({'num_format': '$#,##0.00', 'border': 1})
    f['number'] = wb.add_format({'num_format': '#,##0.00', 'border': 1})
    f['percent'] = wb.add_format({'num_format': '0.00"%"', 'border': 1})
    f['date'] = wb.add_format({'num_format': 'yyyy-mm-dd', 'border': 1})
    f['center'] = wb.add_format({'align': 'center', 'border': 1})
    f['pass_fmt'] = wb.add_format({'bold': True, 'font_color': '#1B5E20', 'bg_color': '#C8E6C9', 'border': 1})
    f['fail_fmt'] = wb.add_format({'bold': True, 'font_color': '#B71C1C', 'bg_color': '#FFCDD2', 'border': 1})
    f['warn_fmt'] = wb.add_format({'bold': True, 'font_color': '#E65100', 'bg_color': '#FFE0B2', 'border': 1})
    return f


def _write_date(ws, row, col, value, f) -> None:
    if value is None:
        ws.write_string(row, col, "N/A", f['center'])
    else:
        ws.write_datetime(row, col, value, f['date'])


def _create_projects_sheet(ws, f, projects: List[Project]) -> None:
    ws.write(0, 0, "Safe Harbor Project Register", f['title'])
    ws.write(1, 0, "Safe harbor % = Allocated Cost / Total Cost x 100", f['subtitle'])

    header_row = 3
    for col, (name, width) in enumerate(PROJECT_COLUMNS):
        ws.write(header_row, col, name, f['header'])
        ws.set_column(col, col, width)
    ws.freeze_panes(header_row + 1, 2)

    status_fmt = {"Compliant": f['pass_fmt'], "At Risk": f['warn_fmt'], "Non-Compliant": f['fail_fmt']}
    for i, project in enumerate(projects):
        row = header_row + 1 + i
        ev = evaluate_project(project)
        excel_row = row + 1
        ws.write_number(row, 0, project.project_id, f['center'])
        ws.write_string(row, 1, project.name, f['text'])
        ws.write_string(row, 2, project.location, f['text'])
        ws.write_number(row, 3, project.capacity_mw, f['number'])
        ws.write_number(row, 4, project.total_cost, f['currency'])
        ws.write_number(row, 5, project.allocated_cost, f['currency'])
        ws.write_formula(
            row, 6, f'=IF(E{excel_row}>0,ROUND(F{excel_row}/E{excel_row}*100,2),"N/A")',
            f['percent'], ev.percentage if ev.percentage is not None else "N/A",
        )
        ws.write_string(row, 7, "Yes" if ev.qualified else "No",
                        f['pass_fmt'] if ev.qualified else f['fail_fmt'])
        _write_date(ws, row, 8, project.payment_date, f)
        _write_date(ws, row, 9, ev.delivery_deadline, f)
        _write_date(ws, row, 10, ev.continuity_deadline, f)
        ws.write_string(row, 11, ev.track.track, f['warn_fmt'] if ev.track.warning else f['text'])
        if project.group is Group.UNASSIGNED:
            ws.write_string(row, 12, "Unassigned", f['center'])
        else:
            ws.write_number(row, 12, int(project.group), f['center'])
        ws.write_string(row, 13, GROUP_GUIDANCE[project.group].risk_level.value, f['center'])
        ws.write_string(row, 14, f"{ev.itc.rate}%", f['center'])
        ws.write_string(row, 15, ev.compliance.status.value, status_fmt[ev.compliance.status.value])


def _create_compliance_sheet(ws, f, projects: List[Project]) -> None:
    flag_names = ITCCompliance.field_names()
    headers = ["ID", "Project"] + [n.replace("_", " ").title() for n in flag_names] + ["Issues"]
    for col, name in enumerate(headers):
        ws.write(0, col, name, f['header'])
    ws.set_column(0, 0, 6)
    ws.set_column(1, 1, 24)
    ws.set_column(2, 1 + len(flag_names), 14)
    ws.set_column(2 + len(flag_names), 2 + len(flag_names), 60)
    ws.set_row(0, 30)

    for i, project in enumerate(projects, start=1):
        flags = project.itc_compliance.to_dict()
        ev = evaluate_project(project)
        ws.write_number(i, 0, project.project_id, f['center'])
        ws.write_string(i, 1, project.name, f['text'])
        for j, name in enumerate(flag_names):
            value = flags[name]
            if isinstance(value, bool):
                ws.write_string(i, 2 + j, "Yes" if value else "No",
                                f['pass_fmt'] if value else f['fail_fmt'])
            else:
                ws.write_number(i, 2 + j, value, f['percent'])
        ws.write_string(i, 2 + len(flag_names), "\n".join(ev.compliance.issues) or "None", f['wrap'])


def _create_summary_sheet(ws, f, projects: List[Project], as_of: date) -> None:
    summary = summarize_portfolio(projects)
    ws.set_column(0, 0, 34)
    ws.set_column(1, 2, 18)

    ws.write(0, 0, "Portfolio Summary", f['title'])
    ws.write(1, 0, f"As of {as_of.isoformat()}", f['subtitle'])

    ws.write(3, 0, "Dashboard", f['section'])
    rows = [
        ("Total Projects", summary.total_projects, f['center']),
        ("5% Qualified", summary.qualified_projects, f['center']),
        ("FEOC Eligible", summary.feoc_eligible, f['center']),
        ("Total Invested", summary.total_invested, f['currency']),
    ]
    for i, (label, value, cell_fmt) in enumerate(rows, start=4):
        ws.write_string(i, 0, label, f['text'])
        ws.write_number(i, 1, value, cell_fmt)

    row = 4 + len(rows) + 1
    ws.write(row, 0, "Critical Deadlines", f['section'])
    ws.write(row + 1, 0, "Milestone", f['header'])
    ws.write(row + 1, 1, "Deadline", f['header'])
    ws.write(row + 1, 2, "Days Remaining", f['header'])
    for i, milestone in enumerate(critical_deadlines(as_of), start=row + 2):
        ws.write_string(i, 0, milestone.name, f['text'])
        ws.write_datetime(i, 1, milestone.deadline, f['date'])
        ws.write_number(i, 2, milestone.days_remaining, f['center'])

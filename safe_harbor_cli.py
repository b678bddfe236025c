#!/usr/bin/env python3
"""
Safe Harbor CLI - Beginning of Construction Compliance Tool

A command-line interface for the Safe Harbor compliance engine:
- Evaluate a project's 5% safe harbor percentage and BOC track
- Classify projects into strategic planning groups (1-4)
- Compute 105-day delivery and 4-year continuity deadlines
- Compute the applicable ITC rate and audit compliance flags
- Draft IRS Notice 2013-29 equipment contracts (text or PDF)
- Generate a portfolio PDF report or Excel project register
- Save/load project portfolios as JSON

Usage:
    python safe_harbor_cli.py                              # Sample portfolio dashboard
    python safe_harbor_cli.py --capacity 5 --total-cost 8000000 \\
        --allocated-cost 520000 --payment-date 2025-12-15   # Evaluate a project
    python safe_harbor_cli.py --load portfolio.json --report  # Portfolio PDF
    python safe_harbor_cli.py --contract                   # Draft sample contract
    python safe_harbor_cli.py --guidance                   # Compliance guide
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from safe_harbor.config import Settings, configure_logging
from safe_harbor.data.registry import ProjectRegistry, sample_registry
from safe_harbor.data.storage import export_text, load_registry, save_projects
from safe_harbor.data.validators import (
    validate_capacity,
    validate_contract,
    validate_costs,
    validate_payment_date,
)
from safe_harbor.models.calculations import evaluate_project, summarize_portfolio
from safe_harbor.models.deadlines import critical_deadlines, parse_date
from safe_harbor.models.project import ContractData, Group, Project
from safe_harbor.reports.contract import (
    contract_compliance_elements,
    draft_contract,
    write_contract_pdf,
)
from safe_harbor.utils.formatters import (
    format_currency,
    format_currency_exact,
    format_days,
    format_long_date,
    format_millions,
    format_percent,
    format_short_date,
)

logger = logging.getLogger("safe_harbor.cli")


# ============================================================================
# FORMATTING UTILITIES
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_subheader(text: str) -> None:
    """Print a formatted subsection header."""
    print(f"\n--- {text} ---")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")

    for row in rows:
        row_line = "|".join(str(cell).center(w) for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


# ============================================================================
# DISPLAY
# ============================================================================

def print_dashboard(projects: List[Project], as_of: date) -> None:
    """Print portfolio metrics, critical deadlines and the project table."""
    summary = summarize_portfolio(projects)

    print_header("SAFE HARBOR DASHBOARD")
    print(f"  Total Projects:    {summary.total_projects}")
    print(f"  5% Qualified:      {summary.qualified_projects}")
    print(f"  FEOC Eligible:     {summary.feoc_eligible}")
    print(f"  Total Invested:    {format_millions(summary.total_invested)}")

    print_subheader("Critical Deadlines")
    for milestone in critical_deadlines(as_of):
        print(f"  {milestone.name:<32} {format_short_date(milestone.deadline):>14}   "
              f"{format_days(milestone.days_remaining)}")

    if not projects:
        return

    print_subheader("Projects Overview")
    rows = []
    for project in projects:
        ev = evaluate_project(project)
        rows.append([
            str(project.project_id),
            project.name or "-",
            f"{project.capacity_mw:g} MW",
            format_percent(ev.percentage),
            ev.track.track,
            str(int(project.group)) if project.group is not Group.UNASSIGNED else "-",
            "Qualified" if ev.qualified else "Below 5%",
        ])
    print_table(["ID", "Project", "Capacity", "Safe Harbor %", "BOC Track", "Group", "Status"], rows)


def print_project_detail(project: Project) -> None:
    """Print the full evaluation of a single project."""
    ev = evaluate_project(project)

    print_header(f"PROJECT {project.project_id}: {project.name or 'Unnamed'}")
    print(f"  Location:          {project.location or 'Not specified'}")
    print(f"  Capacity:          {project.capacity_mw:g} MW AC")
    print(f"  Total Cost:        {format_currency_exact(project.total_cost)}")
    print(f"  Allocated Cost:    {format_currency_exact(project.allocated_cost)}")
    print(f"  Payment Date:      {format_long_date(project.payment_date)}")

    print_subheader("Safe Harbor Test")
    mark = "✓ Exceeds" if ev.qualified else "✗ Below"
    print(f"  Safe Harbor %:     {format_percent(ev.percentage)}  ({mark} 5% minimum requirement)")
    if ev.recommended_amount is not None:
        print(f"  Recommended (6.5%): {format_currency_exact(ev.recommended_amount)}")
    if ev.shortfall:
        print(f"  Shortfall to 5%:   {format_currency_exact(ev.shortfall)}")

    print_subheader("BOC Qualification Track")
    print(f"  {'[OK]' if ev.track.eligible else '[!!]'} {ev.track.track}")
    if ev.track.details:
        print(f"       {ev.track.details}")

    print_subheader("Deadlines")
    print(f"  105-Day Delivery:  {format_long_date(ev.delivery_deadline)}")
    print(f"  4-Year Continuity: {format_long_date(ev.continuity_deadline)}")

    print_subheader("Strategic Group")
    print(f"  Assigned:          {group_label(project.group)}")
    if ev.group.group != project.group:
        # group is frozen at creation; show what current inputs would give
        print(f"  Current inputs:    {group_label(ev.group.group)}")
    else:
        guidance = ev.group.guidance
        print(f"  Risk:              {guidance.risk_level.value}")
        print(f"  {guidance.rationale}")
        for action in guidance.actions:
            print(f"    - {action}")

    print_subheader("ITC Rate")
    for line in ev.itc.breakdown:
        print(f"  {line}")
    if project.total_cost > 0:
        print(f"  Estimated credit:  {format_currency(ev.itc.credit_value(project.total_cost))}")

    print_subheader("Compliance Audit")
    print(f"  Status:            {ev.compliance.status.value}")
    for issue in ev.compliance.issues:
        print(f"    - {issue}")


def group_label(group: Group) -> str:
    if group is Group.UNASSIGNED:
        return "Unassigned"
    return f"Group {int(group)}"


def print_guidance() -> None:
    """Print the BOC compliance guide."""
    print_header("IRS SAFE HARBOR COMPLIANCE GUIDE")
    print("""
UNDERSTANDING THE 5% SAFE HARBOR TEST
  A facility's construction is deemed to have begun if the taxpayer pays or
  incurs (within the meaning of IRC §461) five percent or more of the total
  cost of the facility, and thereafter makes continuous efforts to advance
  toward completion.

  Total cost: all costs properly included in depreciable basis under IRC §167.
  Excludes land acquisition and non-integral property.

THE 105-DAY ECONOMIC PERFORMANCE RULE
  Treas. Reg. §1.461-4(d)(6)(ii) lets an accrual-basis taxpayer treat property
  as provided when payment is made if delivery is reasonably expected within
  3.5 months (105 days) after payment.
  Example: payment on December 15, 2025 -> delivery expected by March 30, 2026.

DUAL-TRACK BOC FRAMEWORK (POST-NOTICE 2025-42)
  Track 1: ITC/PTC continuation
    - Projects >1.5MW AC: 5% safe harbor eliminated (effective 9/2/25);
      must use the Physical Work Test
    - Projects <=1.5MW AC: 5% safe harbor retained through July 4, 2026
  Track 2: FEOC exemption
    - Construction must begin by December 31, 2025
    - Physical Work Test and 5% safe harbor both available, for all sizes

REQUIRED CONTRACT ELEMENTS
  - Enforceable under local law
  - Liquidated damages of at least 5% of contract price
  - Specific delivery timeline (105-day rule)
  - Title transfer and risk of loss provisions

BEST PRACTICES
  1. Over-document contemporaneously     4. Front-load contract review
  2. Exceed 5% minimum (aim for 6-7%)     5. Maintain single source of truth
  3. Verify interconnection status first  6. Plan for cost true-ups

Based on Treasury Notices 2013-29, 2018-59, 2020-41, 2021-41, and 2025-42.
This tool provides guidance only. Consult tax and legal professionals.
""")


# ============================================================================
# COMMANDS
# ============================================================================

def add_project_from_args(registry: ProjectRegistry, args) -> Optional[Project]:
    """Validate calculator input and add it to the registry.

    Returns:
        The new project, or None if validation failed (errors printed).
    """
    checks = [
        validate_capacity(args.capacity),
        validate_costs(args.total_cost, args.allocated_cost),
        validate_payment_date(args.payment_date),
    ]
    ok = True
    for valid, msg in checks:
        if not valid:
            ok = False
            print(f"  Error: {msg}")
        elif msg:
            print(f"  {msg}")
    if not ok:
        return None

    return registry.add_project(
        capacity_mw=args.capacity,
        total_cost=args.total_cost,
        allocated_cost=args.allocated_cost,
        payment_date=parse_date(args.payment_date),
        physical_work_by_726=args.physical_work,
        name=args.name,
        location=args.location,
    )


def apply_compliance_updates(registry: ProjectRegistry, updates: List[List[str]]) -> bool:
    """Apply --set ID FIELD VALUE updates. Returns False on the first error."""
    for project_id, field_name, raw_value in updates:
        try:
            registry.update_compliance(int(project_id), field_name, raw_value)
        except (KeyError, ValueError) as e:
            print(f"  Error: cannot set {field_name} on project {project_id}: {e}")
            return False
    return True


def load_contract_data(path: Optional[str]) -> ContractData:
    if not path:
        return ContractData()
    with open(path, "r", encoding="utf-8") as f:
        return ContractData.from_dict(json.load(f))


def run_contract(args, settings: Settings) -> int:
    """Draft, print and export a contract. Returns the exit code."""
    try:
        contract = load_contract_data(args.contract_data)
    except (OSError, ValueError, TypeError) as e:
        print(f"\nError reading contract data: {e}")
        return 1

    valid, messages = validate_contract(contract)
    for msg in messages:
        print(f"  {msg}")
    if not valid:
        return 1

    text = draft_contract(contract)
    if not args.quiet:
        print_header("GENERATED CONTRACT")
        print(text)
        print_subheader("Key Compliance Elements Included")
        for element in contract_compliance_elements(contract):
            print(f"  * {element}")

    path = export_text(text, args.output_dir or settings.output_dir)
    print(f"\nContract saved to {path}")

    if args.contract_pdf:
        try:
            write_contract_pdf(text, args.contract_pdf)
            print(f"Contract PDF generated: {args.contract_pdf}")
        except Exception as e:
            logger.exception("Contract PDF generation failed")
            print(f"\nError generating contract PDF: {e}")
            return 1
    return 0


# ============================================================================
# MAIN
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Safe Harbor - Beginning of Construction Compliance Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python safe_harbor_cli.py                                  # Sample dashboard
  python safe_harbor_cli.py -c 1.2 --total-cost 2000000 --allocated-cost 130000 \\
      --payment-date 2025-11-01 --name "Rooftop A"           # Evaluate a project
  python safe_harbor_cli.py -c 5 --total-cost 8000000 --allocated-cost 520000 \\
      --payment-date 2025-12-15 --physical-work --save portfolio.json
  python safe_harbor_cli.py --load portfolio.json --set 1 prevailing_wage yes
  python safe_harbor_cli.py --load portfolio.json --report   # Portfolio PDF
  python safe_harbor_cli.py --load portfolio.json --excel    # Excel register
  python safe_harbor_cli.py --contract --contract-pdf contract.pdf
  python safe_harbor_cli.py --guidance                       # Compliance guide
        """
    )

    # Calculator input
    parser.add_argument("--capacity", "-c", type=float,
                        help="Capacity in MW AC (adds a project when given)")
    parser.add_argument("--total-cost", type=float, default=0.0,
                        help="Estimated total project cost ($)")
    parser.add_argument("--allocated-cost", type=float, default=0.0,
                        help="Equipment cost allocated ($)")
    parser.add_argument("--payment-date", type=str, default=date.today().isoformat(),
                        help="Payment date YYYY-MM-DD (default: today)")
    parser.add_argument("--physical-work", action="store_true",
                        help="Physical work can be completed by July 4, 2026")
    parser.add_argument("--name", "-n", type=str, default="",
                        help="Project name")
    parser.add_argument("--location", type=str, default="",
                        help="Project location")
    parser.add_argument("--set", nargs=3, action="append", default=[],
                        metavar=("ID", "FIELD", "VALUE"),
                        help="Update a compliance field, e.g. --set 1 prevailing_wage yes")
    parser.add_argument("--project", "-p", type=int,
                        help="Show full detail for a project id")

    # File operations
    parser.add_argument("--load", type=str,
                        help="Load portfolio from JSON file")
    parser.add_argument("--save", type=str,
                        help="Save portfolio to JSON file")
    parser.add_argument("--report", type=str, nargs="?", const="Safe_Harbor_Report.pdf",
                        help="Generate portfolio PDF report (optional: specify filename)")
    parser.add_argument("--excel", type=str, nargs="?", const="Safe_Harbor_Register.xlsx",
                        help="Export project register to Excel")
    parser.add_argument("--output-dir", type=str,
                        help="Directory for exported contracts (default: $SAFE_HARBOR_OUTPUT_DIR or .)")

    # Contract drafting
    parser.add_argument("--contract", action="store_true",
                        help="Draft an equipment purchase contract")
    parser.add_argument("--contract-data", type=str,
                        help="JSON file with contract fields (default: sample contract)")
    parser.add_argument("--contract-pdf", type=str,
                        help="Also render the contract to this PDF file")

    # Display options
    parser.add_argument("--as-of", type=str,
                        help="Reference date for days remaining (default: today)")
    parser.add_argument("--guidance", "-g", action="store_true",
                        help="Show the compliance guide")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress detailed output")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    if args.guidance:
        print_guidance()
        return 0

    if args.contract:
        return run_contract(args, settings)

    as_of = parse_date(args.as_of) if args.as_of else date.today()
    if as_of is None:
        parser.error(f"--as-of '{args.as_of}' is not a valid YYYY-MM-DD date")

    # Load or create portfolio
    if args.load:
        try:
            registry = load_registry(args.load)
        except (OSError, ValueError) as e:
            print(f"\nError loading {args.load}: {e}")
            return 1
        print(f"Loaded {len(registry)} projects from {args.load}")
    else:
        registry = sample_registry()

    new_project = None
    if args.capacity is not None:
        new_project = add_project_from_args(registry, args)
        if new_project is None:
            return 1
        print(f"\nProject added successfully (id {new_project.project_id}).")

    if args.set and not apply_compliance_updates(registry, args.set):
        return 1

    projects = registry.list_projects()

    if not args.quiet:
        print_dashboard(projects, as_of)
        detail_id = args.project or (new_project.project_id if new_project else None)
        if detail_id is not None:
            try:
                print_project_detail(registry.get(detail_id))
            except KeyError as e:
                print(f"\n  Error: {e}")
                return 1

    if args.save:
        save_projects(projects, args.save)
        print(f"\nPortfolio saved to {args.save}")

    if args.report:
        try:
            from safe_harbor.reports.portfolio import generate_portfolio_report

            generate_portfolio_report(projects, args.report, as_of=as_of)
            print(f"\nPDF report generated: {args.report}")
        except Exception as e:
            logger.exception("Portfolio report generation failed")
            print(f"\nError generating PDF: {e}")

    if args.excel:
        try:
            from safe_harbor.reports.workbook import create_project_register

            path = create_project_register(projects, args.excel, as_of=as_of)
            print(f"\nExcel workbook generated: {path}")
        except Exception as e:
            logger.exception("Excel export failed")
            print(f"\nError generating Excel: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())

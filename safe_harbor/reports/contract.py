"""Binding written contract drafting for 5% safe-harbor equipment purchases.

Renders a fixed-structure equipment purchase contract containing the
elements IRS Notice 2013-29 expects of a binding written contract:
enforceability under state law, liquidated damages of at least 5% of the
contract price, a documented delivery expectation for the 105-day
economic performance rule, and title/risk-of-loss provisions.

The only computation is the liquidated damages amount (5% of price);
everything else is templating.
"""

import time
from datetime import date
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from safe_harbor.models.deadlines import ECONOMIC_PERFORMANCE_DAYS
from safe_harbor.models.project import ContractData
from safe_harbor.utils.formatters import format_currency_exact, format_long_date

LIQUIDATED_DAMAGES_RATE = 0.05

_TEMPLATE = """\
BINDING WRITTEN CONTRACT FOR EQUIPMENT PURCHASE
IRS Notice 2013-29 Compliant

Contract Date: {contract_date}
Contract Number: {contract_number}

PARTIES:
Seller: {vendor_name}
Buyer: {buyer_name}

PROJECT ALLOCATION:
This equipment is allocated to: {project_name}
Project Location: {project_location}

EQUIPMENT SPECIFICATIONS:
{equipment}
Quantity: {quantity}

TOTAL CONTRACT PRICE: {total_price}

PAYMENT TERMS:
{payment_terms}

DELIVERY SCHEDULE:
Delivery Date: {delivery_date}

REASONABLE DELIVERY EXPECTATION ({days}-Day Rule):
Seller represents and Buyer reasonably expects that delivery will occur within {days} days of payment. \
This expectation is based on Seller's current manufacturing schedule, shipping capacity, and absence \
of known supply chain disruptions as of the contract date.

LIQUIDATED DAMAGES PROVISION:
In the event Seller fails to deliver the equipment in accordance with the terms of this contract, \
Seller shall pay Buyer liquidated damages in the amount of {liquidated_damages}, which represents \
five percent (5%) of the total contract price. This provision is enforceable under applicable state \
law and is intended to satisfy the requirements of IRS Notice 2013-29 for establishing a binding \
written contract for Beginning of Construction purposes under IRC §48.

TITLE AND RISK OF LOSS:
Title to the equipment shall pass to Buyer upon [SPECIFY: delivery at project site / payment / other].
Risk of loss shall transfer to Buyer upon [SPECIFY: delivery at project site / payment / other].

ECONOMIC PERFORMANCE:
For purposes of IRC §461 and Treasury Regulation §1.461-4(d)(6)(ii), the parties acknowledge that \
economic performance occurs when the property is provided to the Buyer. If Buyer is an accrual-basis \
taxpayer making payment prior to delivery, Buyer may treat the property as provided when payment is \
made if Buyer reasonably expects delivery within 3.5 months ({days} days) after payment, as \
documented in this contract.

GOVERNING LAW:
This contract shall be governed by the laws of [SPECIFY STATE].

ENTIRE AGREEMENT:
This contract constitutes the entire agreement between the parties and supersedes all prior \
negotiations, representations, or agreements.

SIGNATURES:
(To be executed by authorized representatives)

_________________________          _________________________
{vendor_name:<35}{buyer_name}
Date: _______________              Date: _______________"""


def calculate_liquidated_damages(total_price: float) -> float:
    """Liquidated damages: exactly 5% of the contract price, in cents."""
    return round(total_price * LIQUIDATED_DAMAGES_RATE, 2)


def generate_contract_number() -> str:
    return f"SH-{int(time.time() * 1000)}"


def draft_contract(
    contract: ContractData,
    contract_date: Optional[date] = None,
    contract_number: Optional[str] = None,
) -> str:
    """Render the equipment purchase contract text.

    Args:
        contract: Parties, equipment, price and delivery details.
        contract_date: Execution date shown on the contract (default today).
        contract_number: Contract reference (default "SH-<epoch ms>").

    Returns:
        Contract text with no trailing whitespace.
    """
    return _TEMPLATE.format(
        contract_date=format_long_date(contract_date or date.today()),
        contract_number=contract_number or generate_contract_number(),
        vendor_name=contract.vendor_name,
        buyer_name=contract.buyer_name,
        project_name=contract.project_name,
        project_location=contract.project_location,
        equipment=contract.equipment,
        quantity=contract.quantity,
        total_price=format_currency_exact(contract.total_price),
        payment_terms=contract.payment_terms,
        delivery_date=format_long_date(contract.delivery_date),
        days=ECONOMIC_PERFORMANCE_DAYS,
        liquidated_damages=format_currency_exact(calculate_liquidated_damages(contract.total_price)),
    ).strip()


def contract_compliance_elements(contract: ContractData) -> List[str]:
    """Key compliance elements included in a drafted contract."""
    damages = format_currency_exact(calculate_liquidated_damages(contract.total_price))
    return [
        f"5% liquidated damages provision ({damages})",
        f"{ECONOMIC_PERFORMANCE_DAYS}-day reasonable delivery expectation statement",
        "Project allocation documentation",
        "Economic performance clarification for IRC §461",
        "Enforceable under state law representation",
    ]


def write_contract_pdf(text: str, output_path: str) -> None:
    """Render drafted contract text to a PDF.

    Section headings (all-caps lines) are set in bold; other lines are
    body text. Blank lines separate paragraphs.

    Args:
        text: Output of draft_contract().
        output_path: File path for the output PDF.
    """
    doc = SimpleDocTemplate(
        output_path,
        pagesize=letter,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        leftMargin=0.9 * inch,
        rightMargin=0.9 * inch,
    )
    styles = getSampleStyleSheet()
    body_style = ParagraphStyle("ContractBody", parent=styles["Normal"], fontSize=10, leading=13)
    heading_style = ParagraphStyle(
        "ContractHeading", parent=body_style, fontName="Helvetica-Bold", spaceBefore=6,
    )
    title_style = ParagraphStyle("ContractTitle", parent=styles["Title"], fontSize=14)
    signature_style = ParagraphStyle("Signature", parent=body_style, fontName="Courier", fontSize=9)

    lines = text.splitlines()
    elements = []
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            elements.append(Spacer(1, 6))
        elif i == 0:
            elements.append(Paragraph(escape(stripped), title_style))
        elif stripped.startswith("_") or stripped.startswith("Date:") or (
                i > 0 and lines[i - 1].strip().startswith("_")):
            elements.append(Paragraph(escape(line).replace(" ", "&nbsp;"), signature_style))
        elif stripped.isupper() or (stripped.endswith(":") and stripped[:-1].isupper()):
            elements.append(Paragraph(escape(stripped), heading_style))
        else:
            elements.append(Paragraph(escape(stripped), body_style))

    doc.build(elements)

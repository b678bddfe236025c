"""Boundary validation for project and contract input.

Each validator returns a tuple of (is_valid: bool, message: str).
Messages describe errors or warnings for user display. The rule engine
itself never raises on business-rule grounds; malformed input is stopped
here before it reaches the engine.
"""

import math
from datetime import date
from typing import List, Tuple

from safe_harbor.models.deadlines import parse_date
from safe_harbor.models.project import ContractData, ITCCompliance, Project

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


def parse_bool(value) -> bool:
    """Parse a user-supplied boolean ("yes", "true", "1", ...).

    Raises:
        ValueError: If the value is not a recognizable boolean.
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Not a boolean value: {value!r}")


def _is_number(value) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


def validate_capacity(capacity_mw: float) -> Tuple[bool, str]:
    """Validate capacity in MW AC.

    Args:
        capacity_mw: Project nameplate capacity.

    Returns:
        (is_valid, message) tuple.
    """
    if not _is_number(capacity_mw):
        return False, "Capacity must be a number."
    if capacity_mw <= 0:
        return False, "Capacity must be greater than 0 MW."
    if capacity_mw > 2000:
        return True, f"Warning: {capacity_mw} MW is unusually large. Verify this is correct."
    return True, ""


def validate_costs(total_cost: float, allocated_cost: float) -> Tuple[bool, str]:
    """Validate total and allocated cost.

    An allocation above the total is accepted with a warning; the safe
    harbor percentage will exceed 100%.
    """
    if not (_is_number(total_cost) and _is_number(allocated_cost)):
        return False, "Costs must be numbers."
    if total_cost < 0 or allocated_cost < 0:
        return False, "Costs cannot be negative."
    if total_cost == 0:
        return False, "Total project cost must be greater than $0."
    if allocated_cost > total_cost:
        return True, "Warning: Allocated cost exceeds total project cost."
    return True, ""


def validate_payment_date(payment_date) -> Tuple[bool, str]:
    """Validate the safe-harbor payment date (date or ISO string)."""
    if parse_date(payment_date) is None:
        return False, f"Payment date '{payment_date}' is not a valid YYYY-MM-DD date."
    return True, ""


def validate_domestic_content_percentage(value: float) -> Tuple[bool, str]:
    if not _is_number(value) or not 0 <= value <= 100:
        return False, "Domestic content percentage must be between 0 and 100."
    return True, ""


def validate_compliance(compliance: ITCCompliance) -> Tuple[bool, str]:
    """Check that compliance flags are booleans and the percentage is in range."""
    for name in ITCCompliance.field_names():
        value = getattr(compliance, name)
        if name == "domestic_content_percentage":
            valid, msg = validate_domestic_content_percentage(value)
            if not valid:
                return False, msg
        elif not isinstance(value, bool):
            return False, f"Compliance flag '{name}' must be true or false, got {value!r}."
    return True, ""


def validate_project(project: Project) -> Tuple[bool, List[str]]:
    """Run all validations on a complete project.

    Args:
        project: Project to validate.

    Returns:
        (is_valid, messages) where messages includes all errors and warnings.
    """
    messages = []
    is_valid = True

    checks = [
        validate_capacity(project.capacity_mw),
        validate_costs(project.total_cost, project.allocated_cost),
        validate_payment_date(project.payment_date),
    ]

    for valid, msg in checks:
        if not valid:
            is_valid = False
        if msg:
            messages.append(msg)

    if not isinstance(project.project_id, int) or isinstance(project.project_id, bool):
        is_valid = False
        messages.append(f"Project id must be an integer, got {project.project_id!r}.")
    if not isinstance(project.name, str):
        is_valid = False
        messages.append("Project name must be text.")
    elif not project.name.strip():
        messages.append("Warning: Project name is empty.")

    return is_valid, messages


def validate_contract(contract: ContractData) -> Tuple[bool, List[str]]:
    """Validate contract data before drafting."""
    messages = []
    is_valid = True

    if not _is_number(contract.total_price) or contract.total_price <= 0:
        is_valid = False
        messages.append("Total price must be greater than $0.")
    for label, value in (("Vendor name", contract.vendor_name),
                         ("Buyer name", contract.buyer_name),
                         ("Equipment description", contract.equipment)):
        if not value.strip():
            is_valid = False
            messages.append(f"{label} is required.")
    if not isinstance(contract.delivery_date, date):
        is_valid = False
        messages.append("Delivery date must be a date.")
    if not contract.project_name.strip():
        messages.append("Warning: No project allocation named in the contract.")

    return is_valid, messages

"""Data models for Safe Harbor compliance projects.

Defines dataclasses for project inputs, ITC compliance flags, and
equipment contract data, plus the enumerations shared by the rule
classifiers. All models support JSON serialization via
to_dict()/from_dict() methods.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum, IntEnum
from typing import Optional

from safe_harbor.models.safe_harbor import safe_harbor_percentage


class Group(IntEnum):
    """Strategic BOC planning group.

    UNASSIGNED is an explicit state for projects whose inputs do not
    satisfy any classification branch (non-positive capacity, invalid
    payment date).
    """

    UNASSIGNED = 0
    SMALL_PROJECT = 1
    LARGE_ON_TRACK = 2
    LARGE_NO_PHYSICAL_WORK = 3
    NO_2025_SAFE_HARBOR = 4


class RiskLevel(str, Enum):
    LOW = "Low"
    HIGH = "High"
    VERY_HIGH = "Very High"
    UNKNOWN = "Unknown"


class ComplianceStatus(str, Enum):
    COMPLIANT = "Compliant"
    AT_RISK = "At Risk"
    NON_COMPLIANT = "Non-Compliant"


def _coerce_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


@dataclass
class ITCCompliance:
    """Investment Tax Credit compliance flags for a project.

    Attributes:
        boc_qualified: Beginning of Construction established (set at creation).
        prevailing_wage: Prevailing wage requirements met.
        apprenticeship: Apprenticeship requirements met.
        domestic_content: Domestic content bonus claimed.
        energy_community: Energy community bonus claimed.
        labor_standards_registered: Labor standards records registered.
        continuous_construction: Continuous construction efforts documented.
        domestic_content_percentage: Share of domestic content (0-100). Only
            meaningful when domestic_content is True.
    """

    boc_qualified: bool = False
    prevailing_wage: bool = False
    apprenticeship: bool = False
    domestic_content: bool = False
    energy_community: bool = False
    labor_standards_registered: bool = False
    continuous_construction: bool = False
    domestic_content_percentage: float = 0.0

    def __post_init__(self):
        if not 0 <= self.domestic_content_percentage <= 100:
            raise ValueError(
                f"domestic_content_percentage must be 0-100, got {self.domestic_content_percentage}"
            )

    @classmethod
    def field_names(cls) -> list:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> dict:
        return {
            "boc_qualified": self.boc_qualified,
            "prevailing_wage": self.prevailing_wage,
            "apprenticeship": self.apprenticeship,
            "domestic_content": self.domestic_content,
            "energy_community": self.energy_community,
            "labor_standards_registered": self.labor_standards_registered,
            "continuous_construction": self.continuous_construction,
            "domestic_content_percentage": self.domestic_content_percentage,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ITCCompliance":
        valid_fields = set(cls.field_names())
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


@dataclass
class Project:
    """A renewable-energy project tracked for BOC safe-harbor compliance.

    Attributes:
        project_id: Unique identifier assigned by the registry.
        name: Project name (e.g., "Project Sunrise").
        capacity_mw: Nameplate capacity in megawatts AC.
        total_cost: Estimated total project cost ($).
        allocated_cost: Equipment cost paid or incurred and allocated ($).
        payment_date: Date of the safe-harbor payment; anchors all deadlines.
        physical_work_by_726: Physical work can be completed by July 4, 2026.
        group: Strategic group, frozen when the project is created.
        itc_compliance: ITC compliance flags, mutable after creation.
        location: Site location (e.g., "Texas").
        interconnection_status: Current interconnection queue status.
        site_control: Site control secured.
        permits: Permitting status.
        estimated_pis: Estimated placed-in-service date.
    """

    project_id: int = 0
    name: str = ""
    capacity_mw: float = 0.0
    total_cost: float = 0.0
    allocated_cost: float = 0.0
    payment_date: Optional[date] = None
    physical_work_by_726: bool = False
    group: Group = Group.UNASSIGNED
    itc_compliance: ITCCompliance = field(default_factory=ITCCompliance)
    location: str = ""
    interconnection_status: str = ""
    site_control: bool = False
    permits: str = ""
    estimated_pis: Optional[date] = None

    @property
    def safe_harbor_percentage(self) -> Optional[float]:
        """Allocated cost as a percentage of total cost, recomputed on demand."""
        return safe_harbor_percentage(self.allocated_cost, self.total_cost)

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "name": self.name,
            "capacity_mw": self.capacity_mw,
            "total_cost": self.total_cost,
            "allocated_cost": self.allocated_cost,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "physical_work_by_726": self.physical_work_by_726,
            "group": int(self.group),
            "itc_compliance": self.itc_compliance.to_dict(),
            "location": self.location,
            "interconnection_status": self.interconnection_status,
            "site_control": self.site_control,
            "permits": self.permits,
            "estimated_pis": self.estimated_pis.isoformat() if self.estimated_pis else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        data = dict(data)
        data["payment_date"] = _coerce_date(data.get("payment_date"))
        data["estimated_pis"] = _coerce_date(data.get("estimated_pis"))
        data["group"] = Group(data.get("group", 0))
        data["itc_compliance"] = ITCCompliance.from_dict(data.get("itc_compliance") or {})
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


@dataclass
class ContractData:
    """Inputs for drafting a binding written equipment contract.

    Defaults reproduce the sample contract offered to new users.
    """

    vendor_name: str = "ABC Solar Supply"
    buyer_name: str = "Trail Ridge Power LLC"
    equipment: str = "Solar photovoltaic modules and inverters"
    quantity: str = "1,500 modules (550W each), 30 string inverters"
    total_price: float = 2_500_000.0
    delivery_date: date = field(default_factory=lambda: date(2026, 3, 15))
    project_name: str = "Project Sunrise 5MW"
    project_location: str = "Texas"
    payment_terms: str = "50% deposit upon execution, 50% upon delivery"

    def __post_init__(self):
        if isinstance(self.delivery_date, str):
            self.delivery_date = date.fromisoformat(self.delivery_date)
        if self.total_price < 0:
            raise ValueError(f"total_price must be >= 0, got {self.total_price}")

    def to_dict(self) -> dict:
        return {
            "vendor_name": self.vendor_name,
            "buyer_name": self.buyer_name,
            "equipment": self.equipment,
            "quantity": self.quantity,
            "total_price": self.total_price,
            "delivery_date": self.delivery_date.isoformat(),
            "project_name": self.project_name,
            "project_location": self.project_location,
            "payment_terms": self.payment_terms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ContractData":
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})

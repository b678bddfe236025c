r"""Investment Tax Credit rate under IRC §48 / §48E.

Formula:
    ITC = Base + Bonus_{DC} + Bonus_{EC}

where Base is 30% when prevailing wage and apprenticeship requirements
are both met (6% otherwise), and each of the domestic content and energy
community bonuses adds 10 percentage points. The maximum is 50%.

References:
    - IRC §48(a)(9)-(12), as amended by the Inflation Reduction Act of 2022.
    - IRS Notice 2023-38 (domestic content), Notice 2023-29 (energy communities).
"""

from dataclasses import dataclass, field
from typing import List

from safe_harbor.models.project import ITCCompliance

BASE_RATE_FULL = 30
BASE_RATE_REDUCED = 6
DOMESTIC_CONTENT_BONUS = 10
ENERGY_COMMUNITY_BONUS = 10


@dataclass
class ITCRateResult:
    """Applicable ITC rate with its audit trail.

    Attributes:
        rate: ITC rate in percent.
        breakdown: Line items in order: base rate, applicable bonuses, total.
    """

    rate: int = 0
    breakdown: List[str] = field(default_factory=list)

    def credit_value(self, eligible_basis: float) -> float:
        """Estimated credit in dollars for a given eligible basis."""
        return eligible_basis * self.rate / 100

    def to_dict(self) -> dict:
        return {"rate": self.rate, "breakdown": list(self.breakdown)}


def compute_itc_rate(compliance: ITCCompliance) -> ITCRateResult:
    """Compute the ITC percentage from labor-standard and bonus flags.

    Args:
        compliance: Project compliance flags.

    Returns:
        ITCRateResult with rate and ordered breakdown lines.

    Example:
        >>> compute_itc_rate(ITCCompliance(prevailing_wage=True, apprenticeship=True)).rate
        30
    """
    breakdown = []
    if compliance.prevailing_wage and compliance.apprenticeship:
        rate = BASE_RATE_FULL
        breakdown.append(f"Base rate: {BASE_RATE_FULL}% (prevailing wage and apprenticeship met)")
    else:
        rate = BASE_RATE_REDUCED
        breakdown.append(f"Base rate: {BASE_RATE_REDUCED}% (labor standards not met)")

    if compliance.domestic_content:
        rate += DOMESTIC_CONTENT_BONUS
        breakdown.append(
            f"Domestic content bonus: +{DOMESTIC_CONTENT_BONUS}% "
            f"({compliance.domestic_content_percentage:.0f}% domestic content)"
        )
    if compliance.energy_community:
        rate += ENERGY_COMMUNITY_BONUS
        breakdown.append(f"Energy community bonus: +{ENERGY_COMMUNITY_BONUS}%")

    breakdown.append(f"Total ITC rate: {rate}%")
    return ITCRateResult(rate=rate, breakdown=breakdown)

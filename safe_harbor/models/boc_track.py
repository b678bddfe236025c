"""Beginning of Construction track classification.

Post-Notice 2025-42 there are two independent BOC tracks:

* ITC/PTC continuation: the 5% safe harbor survives only for projects of
  1.5 MW AC or less, through July 4, 2026. Larger projects must use the
  Physical Work Test.
* FEOC exemption: construction must begin by December 31, 2025. Both the
  Physical Work Test and the 5% safe harbor are available, for any size.
"""

import math
from dataclasses import dataclass

from safe_harbor.models.deadlines import FEOC_DEADLINE, ITC_SMALL_DEADLINE, on_or_before

SIZE_THRESHOLD_MW = 1.5

TRACK_FEOC_ONLY = "FEOC Exemption Only (5% safe harbor available)"
TRACK_PHYSICAL_WORK = "Must use Physical Work Test"
TRACK_ITC_PTC = "ITC/PTC via 5% safe harbor"
TRACK_FEOC = "FEOC exemption"
TRACK_NONE = "Neither track available"

LARGE_PROJECT_DETAILS = "Projects >1.5MW cannot use 5% safe harbor for ITC/PTC after 9/2/25"


@dataclass(frozen=True)
class TrackResult:
    """Result of BOC track classification.

    Attributes:
        track: Human-readable track label (composite labels joined by " + ").
        eligible: At least one BOC track is available.
        warning: The project needs attention (no 5% track available).
        details: Explanatory note, empty when none applies.
    """

    track: str
    eligible: bool
    warning: bool
    details: str = ""

    def to_dict(self) -> dict:
        return {
            "track": self.track,
            "eligible": self.eligible,
            "warning": self.warning,
            "details": self.details,
        }


def is_large_project(capacity_mw: float) -> bool:
    """True if capacity exceeds the 1.5 MW AC small-project threshold."""
    return not math.isnan(capacity_mw) and capacity_mw > SIZE_THRESHOLD_MW


def classify_boc_track(capacity_mw: float, payment_date) -> TrackResult:
    """Determine which BOC track(s) a project can use.

    Args:
        capacity_mw: Project capacity in MW AC.
        payment_date: Safe-harbor payment date (date or ISO string). An
            invalid date satisfies no deadline.

    Returns:
        TrackResult describing the available track(s).

    Example:
        >>> classify_boc_track(1.0, "2025-06-01").track
        'ITC/PTC via 5% safe harbor + FEOC exemption'
    """
    feoc_ok = on_or_before(payment_date, FEOC_DEADLINE)

    if is_large_project(capacity_mw):
        return TrackResult(
            track=TRACK_FEOC_ONLY if feoc_ok else TRACK_PHYSICAL_WORK,
            eligible=feoc_ok,
            warning=not feoc_ok,
            details=LARGE_PROJECT_DETAILS,
        )

    tracks = []
    if on_or_before(payment_date, ITC_SMALL_DEADLINE):
        tracks.append(TRACK_ITC_PTC)
    if feoc_ok:
        tracks.append(TRACK_FEOC)

    return TrackResult(
        track=" + ".join(tracks) if tracks else TRACK_NONE,
        eligible=bool(tracks),
        warning=not tracks,
    )

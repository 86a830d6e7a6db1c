from dataclasses import dataclass, field
from datetime import date

from rentroll.anomaly.models import PropertyProfile


class UnitStatus:
    OCCUPIED = "occupied"
    VACANT = "vacant"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class CandidateUnit:
    """One normalized unit row read from a document.

    Floor and door are canonical strings ("0" for ground floor, "-1" for
    basement, "tv"/"th"/"mf" or digits for doors).
    """

    unit_id: str | None = None
    address: str | None = None
    zipcode: str | None = None
    floor: str | None = None
    door: str | None = None
    size_sqm: float | None = None
    rent_current: float | None = None
    tenant_name: str | None = None
    lease_start: date | None = None
    lease_end: date | None = None
    unit_status: str = UnitStatus.VACANT
    # Set when an unparsable lease date was replaced with today.
    dates_defaulted: bool = False


@dataclass(frozen=True)
class ExtractionResult:
    """Output of the unit extraction step."""

    units: list[CandidateUnit] = field(default_factory=list)
    property: PropertyProfile | None = None
    dropped_count: int = 0

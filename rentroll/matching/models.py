from dataclasses import dataclass, field
from datetime import datetime

from rentroll.extraction.models import CandidateUnit


class MatchStatus:
    MATCHED = "matched"
    FUZZY = "fuzzy"
    MISSING = "missing"


class MatchMethod:
    EXACT = "exact"
    COMPOSITE = "composite"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class CanonicalUnit:
    """Read-only row of the portfolio's rent_roll_unit table."""

    unit_id: int
    asset_id: str | None = None
    property_name: str | None = None
    address: str | None = None
    zipcode: str | None = None
    floor: str | None = None
    door: str | None = None
    size_sqm: float | None = None
    tenant_name: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class MatchResult:
    """Outcome for one document candidate."""

    candidate: CandidateUnit
    status: str
    confidence: float = 0.0
    method: str | None = None
    canonical: CanonicalUnit | None = None

    @property
    def matched_unit_id(self) -> int | None:
        return self.canonical.unit_id if self.canonical is not None else None


@dataclass(frozen=True)
class MatchingStats:
    total_pdf_units: int = 0
    total_db_units: int = 0
    matched: int = 0
    fuzzy: int = 0
    missing: int = 0
    extra: int = 0
    avg_confidence: float = 0.0


@dataclass(frozen=True)
class MatchReport:
    """Everything the matching stage produces for one job."""

    results: list[MatchResult] = field(default_factory=list)
    extra: list[CanonicalUnit] = field(default_factory=list)
    stats: MatchingStats = field(default_factory=MatchingStats)

    @property
    def matched(self) -> list[MatchResult]:
        return [r for r in self.results if r.status in (MatchStatus.MATCHED, MatchStatus.FUZZY)]

    @property
    def missing(self) -> list[MatchResult]:
        return [r for r in self.results if r.status == MatchStatus.MISSING]

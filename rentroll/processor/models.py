from collections.abc import Callable
from dataclasses import dataclass, field

from rentroll.anomaly.models import Anomaly, PropertyProfile, RiskFlag
from rentroll.extraction.models import ExtractionResult
from rentroll.matching.models import MatchReport

# (status, percent, message)
ProgressCallback = Callable[[str, int, str], None]


def ignore_progress(status: str, percent: int, message: str) -> None:
    _ = status, percent, message


@dataclass(frozen=True)
class AnalysisResult:
    """Accumulated output of the extraction, matching and anomaly stages."""

    extraction: ExtractionResult
    match_report: MatchReport
    profile: PropertyProfile | None = None
    anomalies: list[Anomaly] = field(default_factory=list)
    risk_flags: list[RiskFlag] = field(default_factory=list)

"""Named sub-scores for comparing a document candidate with a canonical unit.

Each sub-score is None when the attribute is missing on either side; the
blend only weighs sub-scores that are present.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from rentroll.extraction.models import CandidateUnit
from rentroll.extraction.normalization import normalize_door, normalize_floor
from rentroll.matching.address import normalize_address, normalize_name, string_similarity
from rentroll.matching.models import CanonicalUnit

DEFAULT_WEIGHTS: Mapping[str, float] = {
    "address": 0.4,
    "position": 0.3,
    "size": 0.2,
    "tenant": 0.1,
}

# (max relative difference, score), checked in order.
SIZE_TIERS: tuple[tuple[float, float], ...] = ((0.05, 1.0), (0.10, 0.8), (0.20, 0.5))


@dataclass(frozen=True)
class ScoreBreakdown:
    address: float | None = None
    position: float | None = None
    size: float | None = None
    tenant: float | None = None
    address_identical: bool = False

    def blend(self, weights: Mapping[str, float] = DEFAULT_WEIGHTS) -> float:
        parts = {
            "address": self.address,
            "position": self.position,
            "size": self.size,
            "tenant": self.tenant,
        }
        total_weight = sum(weights[name] for name, score in parts.items() if score is not None)
        if total_weight == 0:
            return 0.0
        weighted = sum(weights[name] * score for name, score in parts.items() if score is not None)
        return weighted / total_weight


def address_score(candidate: CandidateUnit, unit: CanonicalUnit) -> float | None:
    left = normalize_address(candidate.address)
    right = normalize_address(unit.address)
    if not left or not right:
        return None
    return string_similarity(left, right)


def position_score(candidate: CandidateUnit, unit: CanonicalUnit) -> float | None:
    """1.0 when floor and door both agree, 0.5 for one, 0.0 for neither."""
    pairs = (
        (candidate.floor, normalize_floor(unit.floor)),
        (candidate.door, normalize_door(unit.door)),
    )
    comparable = [(left, right) for left, right in pairs if left is not None and right is not None]
    if not comparable:
        return None
    return 0.5 * sum(1 for left, right in comparable if left == right)


def size_score(candidate_size: float | None, unit_size: float | None) -> float | None:
    if not candidate_size or not unit_size:
        return None
    difference = abs(candidate_size - unit_size) / max(candidate_size, unit_size, 1.0)
    for limit, score in SIZE_TIERS:
        if difference <= limit:
            return score
    return 0.0


def tenant_score(candidate_name: str | None, unit_name: str | None) -> float | None:
    left = normalize_name(candidate_name)
    right = normalize_name(unit_name)
    if not left or not right:
        return None
    return string_similarity(left, right)


def score_pair(candidate: CandidateUnit, unit: CanonicalUnit) -> ScoreBreakdown:
    return ScoreBreakdown(
        address=address_score(candidate, unit),
        position=position_score(candidate, unit),
        size=size_score(candidate.size_sqm, unit.size_sqm),
        tenant=tenant_score(candidate.tenant_name, unit.tenant_name),
        address_identical=bool(candidate.address)
        and normalize_address(candidate.address) == normalize_address(unit.address),
    )

"""Reconciles document candidates against the canonical unit pool.

`match_units` is a pure function of its inputs: the same candidates, pool
and config always give the same classifications and confidences.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rentroll.extraction.models import CandidateUnit
from rentroll.extraction.normalization import normalize_door, normalize_floor
from rentroll.matching.address import normalize_address
from rentroll.matching.models import (
    CanonicalUnit,
    MatchingStats,
    MatchMethod,
    MatchReport,
    MatchResult,
    MatchStatus,
)
from rentroll.matching.scoring import DEFAULT_WEIGHTS, ScoreBreakdown, score_pair

_ExactKey = tuple[str, str, str, str]


@dataclass(frozen=True)
class MatchingConfig:
    min_confidence: float = 0.5
    high_confidence: float = 0.85
    min_address_similarity: float = 0.5
    address_mismatch_factor: float = 0.8
    tie_epsilon: float = 1e-3
    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    @classmethod
    def from_settings(cls, settings: Any) -> "MatchingConfig":
        return cls(
            min_confidence=settings.match_min_confidence,
            high_confidence=settings.match_high_confidence,
        )


@dataclass(frozen=True)
class _Scored:
    unit: CanonicalUnit
    breakdown: ScoreBreakdown
    confidence: float


def match_units(
    candidates: list[CandidateUnit],
    pool: list[CanonicalUnit],
    config: MatchingConfig | None = None,
) -> MatchReport:
    """Classify every candidate as matched, fuzzy or missing and list extra units.

    Candidates are processed in order; a canonical unit claimed by an earlier
    candidate is not offered to later ones.
    """
    config = config or MatchingConfig()
    exact_index = _build_exact_index(pool)
    claimed: set[int] = set()
    results: list[MatchResult] = []

    for candidate in candidates:
        result = _match_exact(candidate, exact_index, claimed)
        if result is None:
            available = [unit for unit in pool if unit.unit_id not in claimed]
            result = _match_scored(candidate, available, config)
        if result.canonical is not None:
            claimed.add(result.canonical.unit_id)
        results.append(result)

    extra = [unit for unit in pool if unit.unit_id not in claimed]
    return MatchReport(
        results=results,
        extra=extra,
        stats=_build_stats(results, len(pool), len(extra)),
    )


def exact_key(
    address: str | None,
    zipcode: str | None,
    floor: Any,
    door: Any,
) -> _ExactKey | None:
    """Deterministic lookup key, or None unless all four parts are present."""
    parts = (
        normalize_address(address),
        (zipcode or "").strip(),
        normalize_floor(floor) or "",
        normalize_door(door) or "",
    )
    if not all(parts):
        return None
    return parts


def _build_exact_index(pool: list[CanonicalUnit]) -> dict[_ExactKey, list[CanonicalUnit]]:
    index: dict[_ExactKey, list[CanonicalUnit]] = {}
    for unit in pool:
        key = exact_key(unit.address, unit.zipcode, unit.floor, unit.door)
        if key is not None:
            index.setdefault(key, []).append(unit)
    return index


def _match_exact(
    candidate: CandidateUnit,
    index: dict[_ExactKey, list[CanonicalUnit]],
    claimed: set[int],
) -> MatchResult | None:
    key = exact_key(candidate.address, candidate.zipcode, candidate.floor, candidate.door)
    if key is None:
        return None
    options = [unit for unit in index.get(key, []) if unit.unit_id not in claimed]
    if len(options) != 1:
        return None
    return MatchResult(
        candidate=candidate,
        status=MatchStatus.MATCHED,
        confidence=1.0,
        method=MatchMethod.EXACT,
        canonical=options[0],
    )


def _match_scored(
    candidate: CandidateUnit,
    available: list[CanonicalUnit],
    config: MatchingConfig,
) -> MatchResult:
    scored = [
        entry
        for unit in _zipcode_scope(candidate, available)
        if (entry := _score(candidate, unit, config)) is not None
    ]
    best = _pick_best(scored, config.tie_epsilon)
    if best is None or best.confidence < config.min_confidence:
        return MatchResult(candidate=candidate, status=MatchStatus.MISSING)
    status = MatchStatus.MATCHED if best.confidence >= config.high_confidence else MatchStatus.FUZZY
    return MatchResult(
        candidate=candidate,
        status=status,
        confidence=best.confidence,
        method=_method(best),
        canonical=best.unit,
    )


def _zipcode_scope(candidate: CandidateUnit, units: list[CanonicalUnit]) -> list[CanonicalUnit]:
    if not candidate.zipcode:
        return units
    same_zip = [unit for unit in units if (unit.zipcode or "").strip() == candidate.zipcode]
    return same_zip or units


def _score(candidate: CandidateUnit, unit: CanonicalUnit, config: MatchingConfig) -> _Scored | None:
    breakdown = score_pair(candidate, unit)
    if breakdown.address is None or breakdown.address < config.min_address_similarity:
        return None
    confidence = breakdown.blend(config.weights)
    if not breakdown.address_identical:
        confidence *= config.address_mismatch_factor
    return _Scored(unit=unit, breakdown=breakdown, confidence=round(confidence, 4))


def _pick_best(scored: list[_Scored], epsilon: float) -> _Scored | None:
    if not scored:
        return None
    top = max(entry.confidence for entry in scored)
    tied = [entry for entry in scored if top - entry.confidence <= epsilon]
    return min(tied, key=_tie_break_key)


def _tie_break_key(entry: _Scored) -> tuple[int, float, int]:
    """Exact floor+door first, then most recently updated, then lowest unit id."""
    updated = entry.unit.updated_at.timestamp() if entry.unit.updated_at else float("-inf")
    return (0 if entry.breakdown.position == 1.0 else 1, -updated, entry.unit.unit_id)


def _method(best: _Scored) -> str:
    if not best.breakdown.address_identical:
        return MatchMethod.FUZZY
    if best.breakdown.position == 1.0 and best.confidence == 1.0:
        return MatchMethod.EXACT
    return MatchMethod.COMPOSITE


def _build_stats(results: list[MatchResult], total_db_units: int, extra: int) -> MatchingStats:
    matched = [r for r in results if r.status == MatchStatus.MATCHED]
    fuzzy = [r for r in results if r.status == MatchStatus.FUZZY]
    confident = matched + fuzzy
    average = sum(r.confidence for r in confident) / len(confident) if confident else 0.0
    return MatchingStats(
        total_pdf_units=len(results),
        total_db_units=total_db_units,
        matched=len(matched),
        fuzzy=len(fuzzy),
        missing=len(results) - len(confident),
        extra=extra,
        avg_confidence=round(average, 4),
    )

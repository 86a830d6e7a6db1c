"""Builds the JSON result payload stored on a completed job."""

import uuid
from dataclasses import asdict
from typing import Any

from rentroll.anomaly.models import Anomaly, RiskFlag
from rentroll.database.models import ParsedUnitRecord
from rentroll.extraction.models import CandidateUnit, ExtractionResult
from rentroll.matching.models import CanonicalUnit, MatchingStats, MatchReport, MatchResult


def build_parsed_units(job_id: str, match_report: MatchReport) -> list[ParsedUnitRecord]:
    return [
        ParsedUnitRecord(
            id=str(uuid.uuid4()),
            job_id=job_id,
            unit_id=result.candidate.unit_id,
            address=result.candidate.address,
            zipcode=result.candidate.zipcode,
            floor=result.candidate.floor,
            door=result.candidate.door,
            size_sqm=result.candidate.size_sqm,
            rent_current=result.candidate.rent_current,
            tenant_name=result.candidate.tenant_name,
            lease_start=result.candidate.lease_start,
            lease_end=result.candidate.lease_end,
            unit_status=result.candidate.unit_status,
            match_status=result.status,
            matched_unit_id=result.matched_unit_id,
            match_confidence=result.confidence,
            match_method=result.method,
        )
        for result in match_report.results
    ]


def build_report(
    *,
    job_id: str | None,
    file_name: str,
    match_report: MatchReport,
    summary: str,
    extraction: ExtractionResult | None = None,
    anomalies: list[Anomaly] | None = None,
    risk_flags: list[RiskFlag] | None = None,
) -> dict[str, Any]:
    return {
        "jobId": job_id,
        "fileName": file_name,
        "matchedUnits": [
            _matched_entry(result, result.canonical)
            for result in match_report.matched
            if result.canonical is not None
        ],
        "missingInDb": [_candidate_entry(result.candidate) for result in match_report.missing],
        "extraInDb": [_canonical_entry(unit) for unit in match_report.extra],
        "stats": stats_to_dict(match_report.stats),
        "summary": summary,
        "anomalies": [_anomaly_entry(anomaly) for anomaly in anomalies or []],
        "riskFlags": [asdict(flag) for flag in risk_flags or []],
        "droppedUnits": extraction.dropped_count if extraction else 0,
        "defaultedLeaseDates": sum(1 for unit in extraction.units if unit.dates_defaulted)
        if extraction
        else 0,
    }


def stats_to_dict(stats: MatchingStats) -> dict[str, Any]:
    return {
        "totalPdfUnits": stats.total_pdf_units,
        "totalDbUnits": stats.total_db_units,
        "matched": stats.matched,
        "fuzzy": stats.fuzzy,
        "missing": stats.missing,
        "extra": stats.extra,
        "avgConfidence": stats.avg_confidence,
    }


def _matched_entry(result: MatchResult, canonical: CanonicalUnit) -> dict[str, Any]:
    return {
        "pdfUnit": _candidate_entry(result.candidate),
        "dbUnit": _canonical_entry(canonical),
        "status": result.status,
        "confidence": result.confidence,
        "method": result.method,
    }


def _candidate_entry(unit: CandidateUnit) -> dict[str, Any]:
    return {
        "unitId": unit.unit_id,
        "address": unit.address,
        "zipcode": unit.zipcode,
        "floor": unit.floor,
        "door": unit.door,
        "sizeSqm": unit.size_sqm,
        "rentCurrent": unit.rent_current,
        "tenantName": unit.tenant_name,
        "leaseStart": unit.lease_start.isoformat() if unit.lease_start else None,
        "leaseEnd": unit.lease_end.isoformat() if unit.lease_end else None,
        "unitStatus": unit.unit_status,
    }


def _canonical_entry(unit: CanonicalUnit) -> dict[str, Any]:
    return {
        "unitId": unit.unit_id,
        "address": unit.address,
        "zipcode": unit.zipcode,
        "floor": unit.floor,
        "door": unit.door,
        "sizeSqm": unit.size_sqm,
        "propertyName": unit.property_name,
    }


def _anomaly_entry(anomaly: Anomaly) -> dict[str, Any]:
    return {
        "type": anomaly.type,
        "severity": anomaly.severity,
        "field": anomaly.field,
        "expectedValue": anomaly.expected_value,
        "actualValue": anomaly.actual_value,
        "source": anomaly.source,
        "description": anomaly.description,
    }

from datetime import date

from rentroll.anomaly.models import Anomaly, RiskFlag
from rentroll.extraction.models import CandidateUnit, ExtractionResult
from rentroll.matching.models import (
    CanonicalUnit,
    MatchingStats,
    MatchMethod,
    MatchReport,
    MatchResult,
    MatchStatus,
)
from rentroll.reporting.report import build_parsed_units, build_report


def _match_report() -> MatchReport:
    matched = CandidateUnit(
        unit_id="1",
        address="Vesterbrogade 12",
        zipcode="1620",
        floor="0",
        door="tv",
        lease_start=date(2020, 2, 1),
        dates_defaulted=True,
    )
    missing = CandidateUnit(unit_id="9", address="Strandvejen 200")
    canonical = CanonicalUnit(unit_id=11, address="Vesterbrogade 12", property_name="Vestergården")
    extra = CanonicalUnit(unit_id=12, address="Vesterbrogade 14")
    return MatchReport(
        results=[
            MatchResult(
                candidate=matched,
                status=MatchStatus.MATCHED,
                confidence=1.0,
                method=MatchMethod.EXACT,
                canonical=canonical,
            ),
            MatchResult(candidate=missing, status=MatchStatus.MISSING),
        ],
        extra=[extra],
        stats=MatchingStats(
            total_pdf_units=2,
            total_db_units=2,
            matched=1,
            missing=1,
            extra=1,
            avg_confidence=1.0,
        ),
    )


class TestBuildReport:
    def test_report_layout(self) -> None:
        match_report = _match_report()

        report = build_report(
            job_id="job-1",
            file_name="roll.pdf",
            match_report=match_report,
            summary="1 unit matched",
            extraction=ExtractionResult(
                units=[result.candidate for result in match_report.results],
                dropped_count=2,
            ),
            anomalies=[
                Anomaly(
                    type="value_mismatch",
                    severity="high",
                    field="property_value",
                    source="BBR",
                    description="Property value differs by 30.0% from BBR records",
                    expected_value="10.000.000",
                    actual_value="13.000.000",
                )
            ],
            risk_flags=[RiskFlag(type="critical_value_mismatch", level="critical", message="m")],
        )

        assert report["jobId"] == "job-1"
        assert report["fileName"] == "roll.pdf"
        entry = report["matchedUnits"][0]
        assert entry["pdfUnit"]["leaseStart"] == "2020-02-01"
        assert entry["dbUnit"] == {
            "unitId": 11,
            "address": "Vesterbrogade 12",
            "zipcode": None,
            "floor": None,
            "door": None,
            "sizeSqm": None,
            "propertyName": "Vestergården",
        }
        assert (entry["status"], entry["confidence"], entry["method"]) == ("matched", 1.0, "exact")
        assert [unit["unitId"] for unit in report["missingInDb"]] == ["9"]
        assert [unit["unitId"] for unit in report["extraInDb"]] == [12]
        assert report["stats"]["totalPdfUnits"] == 2
        assert report["stats"]["avgConfidence"] == 1.0
        assert report["anomalies"][0]["expectedValue"] == "10.000.000"
        assert report["riskFlags"] == [
            {"type": "critical_value_mismatch", "level": "critical", "message": "m"}
        ]
        assert report["droppedUnits"] == 2
        assert report["defaultedLeaseDates"] == 1

    def test_defaults_without_extraction_or_anomalies(self) -> None:
        report = build_report(
            job_id=None,
            file_name="fast.pdf",
            match_report=MatchReport(),
            summary="Analysis complete.",
        )

        assert report["jobId"] is None
        assert report["matchedUnits"] == []
        assert report["anomalies"] == []
        assert report["riskFlags"] == []
        assert report["droppedUnits"] == 0
        assert report["defaultedLeaseDates"] == 0

    def test_matched_result_without_canonical_unit_is_skipped(self) -> None:
        orphan = MatchResult(
            candidate=CandidateUnit(unit_id="5", address="Istedgade 3"),
            status=MatchStatus.MATCHED,
            confidence=0.9,
        )

        report = build_report(
            job_id="job-2",
            file_name="roll.pdf",
            match_report=MatchReport(results=[orphan]),
            summary="",
        )

        assert report["matchedUnits"] == []


class TestBuildParsedUnits:
    def test_one_record_per_candidate(self) -> None:
        records = build_parsed_units("job-1", _match_report())

        assert [record.job_id for record in records] == ["job-1", "job-1"]
        assert records[0].matched_unit_id == 11
        assert records[0].match_method == "exact"
        assert records[0].floor == "0"
        assert records[1].match_status == "missing"
        assert records[1].matched_unit_id is None
        assert records[0].id != records[1].id

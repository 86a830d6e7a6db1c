from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Any, TypeVar

from rentroll.anomaly.detector import detect_anomalies
from rentroll.anomaly.models import Anomaly, PropertyProfile, RiskFlag
from rentroll.anomaly.profile import profile_from_text
from rentroll.anomaly.risk_flags import calculate_risk_flags
from rentroll.config.settings import Settings
from rentroll.database.repositories.canonical_units_repository import CanonicalUnitsRepository
from rentroll.database.repositories.registry_repository import RegistryRepository
from rentroll.extraction.base import BaseUnitExtractor
from rentroll.extraction.factory import UnitExtractorFactory
from rentroll.extraction.models import ExtractionResult
from rentroll.jobs.status import JobStatus
from rentroll.logging.logger import Log
from rentroll.matching.engine import MatchingConfig, match_units
from rentroll.matching.models import MatchReport
from rentroll.pdf.base import BasePdfExtractor
from rentroll.pdf.factory import PdfExtractorFactory
from rentroll.pdf.page_selector import select_text
from rentroll.processor.exceptions import EmptyDocumentError, StageTimeoutError
from rentroll.processor.models import AnalysisResult, ProgressCallback, ignore_progress
from rentroll.reporting.report import build_report
from rentroll.reporting.summary import Summarizer, build_summarizer
from rentroll.storage.file_storage import FileStorage

T = TypeVar("T")


class Processor:
    """Orchestrates the document analysis pipeline.

    Pipeline: load -> extract pages -> select text -> extract units ->
    (match units || detect anomalies) -> report.
    """

    def __init__(
        self,
        *,
        file_storage: FileStorage,
        pdf_extractor: BasePdfExtractor,
        unit_extractor: BaseUnitExtractor,
        canonical_units: CanonicalUnitsRepository,
        registry: RegistryRepository,
        summarizer: Summarizer,
        matching_config: MatchingConfig | None = None,
        max_chars: int = 20_000,
        stage_timeout_seconds: float = 120.0,
    ) -> None:
        self._file_storage = file_storage
        self._pdf_extractor = pdf_extractor
        self._unit_extractor = unit_extractor
        self._canonical_units = canonical_units
        self._registry = registry
        self._summarizer = summarizer
        self._matching_config = matching_config or MatchingConfig()
        self._max_chars = max_chars
        self._stage_timeout_seconds = stage_timeout_seconds

    def load_text(self, file_path: str, progress: ProgressCallback = ignore_progress) -> str:
        """Read the stored PDF and return its prioritized, budgeted text.

        Raises:
            EmptyDocumentError: if the PDF has no text layer.
        """
        raw_bytes = self._file_storage.load(file_path)
        Log.info(f"Loaded {len(raw_bytes)} bytes from {file_path}")

        document = self._pdf_extractor.extract(raw_bytes)
        progress(JobStatus.EXTRACTING, 20, f"Extracted text from {document.page_count} pages")

        text = select_text(document, self._max_chars)
        if not text.strip():
            raise EmptyDocumentError(f"No extractable text in {file_path}")
        Log.info(
            f"Selected {len(text)} chars from {document.page_count} pages "
            f"(table indicators: {document.has_table_indicators})"
        )
        return text

    def analyze(
        self,
        text: str,
        *,
        asset_id: str | None = None,
        cross_reference: bool = False,
        progress: ProgressCallback = ignore_progress,
    ) -> AnalysisResult:
        """Extract units from text, then run matching and anomaly detection in parallel."""
        if not text.strip():
            raise EmptyDocumentError("Document text is empty")

        extraction = self._unit_extractor.extract(text)
        progress(JobStatus.EXTRACTING, 35, f"Extracted {len(extraction.units)} units")

        profile = extraction.property or profile_from_text(text)
        progress(JobStatus.MATCHING, 50, "Matching units against portfolio")

        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="analysis")
        try:
            matching_future = executor.submit(self._match, extraction, asset_id)
            anomaly_future = None
            if cross_reference and profile is not None and profile.address:
                anomaly_future = executor.submit(self._detect, profile, profile.address)

            match_report = self._wait(matching_future, "matching")
            anomalies, risk_flags = (
                self._wait(anomaly_future, "anomaly detection")
                if anomaly_future is not None
                else ([], [])
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        Log.info(
            f"Matched {match_report.stats.matched} / fuzzy {match_report.stats.fuzzy} / "
            f"missing {match_report.stats.missing} / extra {match_report.stats.extra}; "
            f"{len(anomalies)} anomalies"
        )
        return AnalysisResult(
            extraction=extraction,
            match_report=match_report,
            profile=profile,
            anomalies=anomalies,
            risk_flags=risk_flags,
        )

    def build_report(
        self,
        analysis: AnalysisResult,
        *,
        job_id: str | None,
        file_name: str,
    ) -> dict[str, Any]:
        return build_report(
            job_id=job_id,
            file_name=file_name,
            match_report=analysis.match_report,
            summary=self._summarizer.summarize(analysis.match_report.stats),
            extraction=analysis.extraction,
            anomalies=analysis.anomalies,
            risk_flags=analysis.risk_flags,
        )

    def _match(self, extraction: ExtractionResult, asset_id: str | None) -> MatchReport:
        pool = self._canonical_units.list_units(asset_id)
        Log.debug(f"Loaded {len(pool)} canonical units (asset: {asset_id or 'all'})")
        return match_units(extraction.units, pool, self._matching_config)

    def _detect(
        self, profile: PropertyProfile, address: str
    ) -> tuple[list[Anomaly], list[RiskFlag]]:
        snapshots = self._registry.find_snapshots(address, profile.zipcode)
        anomalies = detect_anomalies(profile, snapshots)
        return anomalies, calculate_risk_flags(anomalies)

    def _wait(self, future: Future[T], stage: str) -> T:
        try:
            return future.result(timeout=self._stage_timeout_seconds)
        except FutureTimeoutError as exc:
            raise StageTimeoutError(
                f"{stage} did not finish within {self._stage_timeout_seconds}s"
            ) from exc


def build_processor(
    settings: Settings,
    files_root: Path | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    return Processor(
        file_storage=FileStorage(files_root or Path(settings.files_root)),
        pdf_extractor=PdfExtractorFactory.create(settings),
        unit_extractor=UnitExtractorFactory.create(settings),
        canonical_units=CanonicalUnitsRepository(),
        registry=RegistryRepository(),
        summarizer=build_summarizer(settings),
        matching_config=MatchingConfig.from_settings(settings),
        max_chars=settings.extraction_max_chars,
        stage_timeout_seconds=settings.stage_timeout_seconds,
    )

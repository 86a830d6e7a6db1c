from rentroll.database.models import JobRecord
from rentroll.jobs.base import BaseJobStore
from rentroll.jobs.status import JobStatus
from rentroll.logging.logger import Log
from rentroll.processor.processor import Processor
from rentroll.progress.publisher import ProgressPublisher
from rentroll.reporting.report import build_parsed_units
from rentroll.worker.failures import classify_failure


class JobRunner:
    """Run one claimed job through every stage, then complete or fail it."""

    def __init__(
        self,
        processor: Processor,
        job_store: BaseJobStore,
        publisher: ProgressPublisher,
    ) -> None:
        self._processor = processor
        self._job_store = job_store
        self._publisher = publisher

    def run(self, job: JobRecord) -> None:
        """Execute a single job. Never raises."""
        Log.info(f"Running job {job.id} (attempt {job.retry_count + 1}/{job.max_retries})")
        try:
            self._process(job)
        except Exception as exc:
            self._handle_failure(job, exc)

    def _process(self, job: JobRecord) -> None:
        self._progress(job.id, JobStatus.EXTRACTING, 10, "Loading document")
        text = self._processor.load_text(
            job.file_path,
            progress=lambda status, percent, message: self._progress(job.id, status, percent, message),
        )
        analysis = self._processor.analyze(
            text,
            asset_id=job.asset_id,
            cross_reference=job.cross_reference,
            progress=lambda status, percent, message: self._progress(job.id, status, percent, message),
        )

        self._job_store.save_parsed_units(job.id, build_parsed_units(job.id, analysis.match_report))
        self._progress(job.id, JobStatus.MATCHING, 70, "Saved parsed units")

        report = self._processor.build_report(analysis, job_id=job.id, file_name=job.file_name)
        self._progress(job.id, JobStatus.MATCHING, 90, "Report built")

        self._job_store.complete(job.id, report)
        self._publisher.finish(job.id, JobStatus.COMPLETED, "Processing complete")
        Log.info(f"Job {job.id} completed successfully")

    def _progress(self, job_id: str, status: str, percent: int, message: str) -> None:
        recorded = self._job_store.update_progress(job_id, status, percent, message)
        self._publisher.publish(job_id, status, recorded, message)

    def _handle_failure(self, job: JobRecord, exc: Exception) -> None:
        """Record the failed attempt: back to pending with backoff, or failed for good."""
        failure = classify_failure(exc)
        Log.error(
            f"Job {job.id} failed ({'structural' if failure.structural else 'transient'}): "
            f"{failure.message}"
        )
        try:
            updated = self._job_store.fail(job.id, failure.message, structural=failure.structural)
        except Exception as store_exc:
            Log.exception(f"Job {job.id}: could not record failure: {store_exc}")
            return

        if updated.status == JobStatus.FAILED:
            Log.error(f"Job {job.id} permanently failed after {updated.retry_count} attempts")
            self._publisher.finish(job.id, JobStatus.FAILED, failure.message)
        else:
            Log.warning(
                f"Job {job.id} will be retried (attempt {updated.retry_count + 1}"
                f"/{updated.max_retries}) after {updated.next_attempt_at}"
            )
            self._publisher.reset(job.id)
            self._publisher.publish(job.id, JobStatus.PENDING, 0, f"Retry scheduled: {failure.message}")

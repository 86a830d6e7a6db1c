import socket
import threading
import uuid

from rentroll.config.settings import Settings
from rentroll.database.models import JobRecord
from rentroll.jobs.base import BaseJobStore
from rentroll.logging.logger import Log
from rentroll.worker.job_runner import JobRunner


def make_worker_id() -> str:
    return f"{socket.gethostname()}:{uuid.uuid4().hex[:8]}"


class Worker:
    """Poll loop: claim -> dispatch -> sleep when idle."""

    def __init__(
        self,
        job_store: BaseJobStore,
        job_runner: JobRunner,
        settings: Settings,
        worker_id: str | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._job_store = job_store
        self._job_runner = job_runner
        self._settings = settings
        self.worker_id = worker_id or make_worker_id()
        self._stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs until interrupted or stopped.

        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info(f"Worker {self.worker_id} started, polling for jobs")
        jobs_done = 0
        try:
            while not self._stop_event.is_set():
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                job = self._try_claim_job()
                if job:
                    self._job_runner.run(job)
                    jobs_done += 1
                else:
                    Log.debug("No jobs available, sleeping")
                    self._stop_event.wait(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_claim_job(self) -> JobRecord | None:
        """Attempt to claim the next pending job. Gracefully handle store errors."""
        try:
            job = self._job_store.claim_next(self.worker_id)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
        if job is not None:
            Log.info(f"Worker {self.worker_id} claimed job {job.id}")
        return job

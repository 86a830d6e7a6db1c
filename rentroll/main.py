import signal
import threading
from types import FrameType

from rentroll.config.settings import Settings
from rentroll.database.connection import close_pool, init_pool
from rentroll.jobs.factory import JobStoreFactory
from rentroll.logging.logger import Log
from rentroll.processor.processor import build_processor
from rentroll.progress.publisher import ProgressPublisher
from rentroll.worker.job_runner import JobRunner
from rentroll.worker.worker import Worker, make_worker_id


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker threads."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    stop_event = threading.Event()

    def _stop(signum: int, frame: FrameType | None) -> None:
        _ = frame
        Log.info(f"Received signal {signum}, stopping workers")
        stop_event.set()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)

    try:
        job_store = JobStoreFactory.create(settings)
        processor = build_processor(settings)
        publisher = ProgressPublisher()
        job_runner = JobRunner(processor, job_store, publisher)
        workers = [
            Worker(job_store, job_runner, settings, make_worker_id(), stop_event)
            for _ in range(max(1, settings.worker_concurrency))
        ]
        threads = [
            threading.Thread(target=worker.run, name=f"worker-{index}")
            for index, worker in enumerate(workers, start=1)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        Log.info("All workers stopped")
    finally:
        close_pool()


if __name__ == "__main__":
    main()

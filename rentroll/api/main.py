import threading

import uvicorn

from rentroll.api.app import create_app
from rentroll.config.settings import Settings
from rentroll.database.connection import close_pool, init_pool
from rentroll.jobs.factory import JobStoreFactory
from rentroll.logging.logger import Log
from rentroll.processor.processor import build_processor
from rentroll.progress.publisher import ProgressPublisher
from rentroll.worker.job_runner import JobRunner
from rentroll.worker.worker import Worker


def main() -> None:
    """Entry point for the HTTP service.

    With the in-memory job store, workers run as threads of this process
    since no other process can see the queue.
    """
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    job_store = JobStoreFactory.create(settings)
    processor = build_processor(settings)
    publisher = ProgressPublisher()
    app = create_app(settings, job_store=job_store, processor=processor, publisher=publisher)

    stop_event = threading.Event()
    threads: list[threading.Thread] = []
    if settings.job_store_backend == "memory":
        job_runner = JobRunner(processor, job_store, publisher)
        for index in range(1, max(1, settings.worker_concurrency) + 1):
            worker = Worker(job_store, job_runner, settings, stop_event=stop_event)
            thread = threading.Thread(target=worker.run, name=f"worker-{index}", daemon=True)
            thread.start()
            threads.append(thread)
        Log.info(f"Started {len(threads)} in-process worker(s)")

    try:
        uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
    finally:
        stop_event.set()
        for thread in threads:
            thread.join(timeout=settings.job_poll_interval_seconds + 1)
        close_pool()


if __name__ == "__main__":
    main()

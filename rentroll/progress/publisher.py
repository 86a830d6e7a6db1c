"""In-process, thread-safe pub/sub for job progress events."""

import queue
import threading
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from typing import Any

from rentroll.logging.logger import Log


@dataclass(frozen=True)
class ProgressEvent:
    job_id: str
    status: str
    progress: int
    message: str = ""
    terminal: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Subscription:
    """Queue-backed stream of events; iteration ends once the subscription is closed."""

    def __init__(self, publisher: "ProgressPublisher", job_id: str | None) -> None:
        self.job_id = job_id
        self._publisher = publisher
        self._queue: queue.Queue[ProgressEvent | None] = queue.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, timeout: float | None = None) -> ProgressEvent | None:
        """Next event, or None once closed. Raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def close(self) -> None:
        self._publisher.unsubscribe(self)

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            event = self._queue.get()
            if event is None:
                return
            yield event

    def _deliver(self, event: ProgressEvent) -> None:
        if not self._closed:
            self._queue.put(event)

    def _end(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put(None)


class ProgressPublisher:
    """Delivers progress events to subscribers of one job or of all jobs.

    Progress per job never goes backwards: a lower value is raised to the
    last published one. Publishing with no subscribers is a no-op.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []
        self._last_progress: dict[str, int] = {}

    def subscribe(self, job_id: str | None = None) -> Subscription:
        subscription = Subscription(self, job_id)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            subscription._end()

    def publish(self, job_id: str, status: str, progress: int, message: str = "") -> ProgressEvent:
        with self._lock:
            progress = max(0, min(100, progress))
            last = self._last_progress.get(job_id, 0)
            if progress < last:
                Log.debug(f"Job {job_id}: progress event {progress} raised to {last}")
                progress = last
            self._last_progress[job_id] = progress
            event = ProgressEvent(job_id=job_id, status=status, progress=progress, message=message)
            for subscription in self._matching(job_id):
                subscription._deliver(event)
        return event

    def finish(self, job_id: str, status: str, message: str = "") -> ProgressEvent:
        """Deliver the terminal event and close the job's own subscriptions."""
        with self._lock:
            progress = 100 if status == "completed" else self._last_progress.get(job_id, 0)
            event = ProgressEvent(
                job_id=job_id,
                status=status,
                progress=progress,
                message=message,
                terminal=True,
            )
            for subscription in self._matching(job_id):
                subscription._deliver(event)
                if subscription.job_id == job_id:
                    self._subscriptions.remove(subscription)
                    subscription._end()
            self._last_progress.pop(job_id, None)
        return event

    def reset(self, job_id: str) -> None:
        """Forget the recorded progress of a job, e.g. before a retry restarts at 0."""
        with self._lock:
            self._last_progress.pop(job_id, None)

    def _matching(self, job_id: str) -> list[Subscription]:
        return [s for s in self._subscriptions if s.job_id is None or s.job_id == job_id]

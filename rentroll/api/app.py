"""HTTP surface for the job lifecycle and the synchronous fast-parse stream."""

import json
import queue
import threading
import uuid
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from rentroll.config.settings import Settings
from rentroll.database.models import JobRecord
from rentroll.jobs.base import BaseJobStore
from rentroll.jobs.exceptions import ConflictError, JobNotFoundError
from rentroll.jobs.status import ALL_STATUSES, JobStatus
from rentroll.logging.logger import Log
from rentroll.processor.processor import Processor
from rentroll.progress.publisher import ProgressPublisher, Subscription
from rentroll.storage.file_storage import FileStorage

PDF_CONTENT_TYPES = frozenset({"application/pdf", "application/x-pdf"})
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class FastParseRequest(BaseModel):
    text: str | None = None
    fileName: str | None = None
    assetId: str | None = None
    crossReference: bool = False


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def job_to_dict(job: JobRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": job.id,
        "fileName": job.file_name,
        "fileSizeBytes": job.file_size_bytes,
        "status": job.status,
        "progress": job.progress,
        "errorMessage": job.error_message,
        "retryCount": job.retry_count,
        "maxRetries": job.max_retries,
        "assetId": job.asset_id,
        "crossReference": job.cross_reference,
        "createdAt": _iso(job.created_at),
        "startedAt": _iso(job.started_at),
        "completedAt": _iso(job.completed_at),
        "nextAttemptAt": _iso(job.next_attempt_at),
    }
    if job.status == JobStatus.COMPLETED and job.result:
        payload["stats"] = job.result.get("stats")
    return payload


def _stored_event(job: JobRecord) -> dict[str, Any]:
    message = job.error_message or "" if job.status == JobStatus.FAILED else ""
    return {"status": job.status, "progress": job.progress, "message": message}


def sse_data(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=True)}\n\n"


def create_app(
    settings: Settings,
    *,
    job_store: BaseJobStore,
    processor: Processor,
    file_storage: FileStorage | None = None,
    publisher: ProgressPublisher | None = None,
) -> FastAPI:
    app = FastAPI(title="Rent Roll Reconciliation", version="0.1.0")
    storage = file_storage or FileStorage(Path(settings.files_root))
    progress_publisher = publisher or ProgressPublisher()
    max_upload_mb = settings.max_upload_bytes // (1024 * 1024)

    def _get_job(job_id: str) -> JobRecord:
        job = job_store.find_by_id(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/jobs", status_code=202)
    async def create_job(
        file: UploadFile | None = File(None),
        assetId: str | None = Form(None),
        crossReference: bool = Form(False),
    ) -> dict[str, Any]:
        if file is None or not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")
        if (file.content_type or "").lower() not in PDF_CONTENT_TYPES:
            raise HTTPException(status_code=400, detail="File must be a PDF")
        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=400, detail=f"File size exceeds {max_upload_mb}MB limit"
            )

        file_path = storage.save(content)
        job = job_store.enqueue(
            file_name=file.filename,
            file_path=file_path,
            file_size_bytes=len(content),
            asset_id=assetId or None,
            cross_reference=crossReference,
        )
        Log.info(f"Queued job {job.id} for {file.filename} ({len(content)} bytes)")
        return {"jobId": job.id, "status": job.status, "message": "Job queued for processing"}

    @app.get("/jobs")
    def list_jobs(
        status: str | None = Query(None),
        assetId: str | None = Query(None),
        limit: int = Query(20),
    ) -> dict[str, Any]:
        if status is not None and status not in ALL_STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown status '{status}'")
        jobs = job_store.list_jobs(status=status, asset_id=assetId, limit=limit)
        return {"jobs": [job_to_dict(job) for job in jobs]}

    @app.post("/jobs/fast-parse")
    def fast_parse(request: FastParseRequest) -> StreamingResponse:
        return StreamingResponse(
            _stream_fast_parse(request),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @app.get("/jobs/{job_id}")
    def get_job(job_id: str) -> dict[str, Any]:
        return job_to_dict(_get_job(job_id))

    @app.get("/jobs/{job_id}/results", response_model=None)
    def get_results(job_id: str) -> dict[str, Any] | JSONResponse:
        job = _get_job(job_id)
        if job.status != JobStatus.COMPLETED:
            return JSONResponse(
                status_code=400,
                content={"error": "Results not ready", "status": job.status, "progress": job.progress},
            )
        return {**(job.result or {}), "jobId": job.id, "completedAt": _iso(job.completed_at)}

    @app.get("/jobs/{job_id}/events")
    def job_events(job_id: str) -> StreamingResponse:
        # Subscribe before reading the job so a finish in between is not lost.
        subscription = progress_publisher.subscribe(job_id)
        try:
            job = _get_job(job_id)
        except HTTPException:
            subscription.close()
            raise

        def iterator() -> Iterator[str]:
            try:
                if job.is_terminal:
                    yield sse_data(_stored_event(job))
                else:
                    yield from _live_events(job, subscription)
                yield sse_data({"type": "done"})
            finally:
                subscription.close()

        return StreamingResponse(iterator(), media_type="text/event-stream", headers=SSE_HEADERS)

    @app.delete("/jobs/{job_id}")
    def delete_job(job_id: str) -> dict[str, bool]:
        job = _get_job(job_id)
        try:
            job_store.cancel(job_id)
        except JobNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Job not found") from exc
        except ConflictError as exc:
            raise HTTPException(
                status_code=409, detail="Cannot cancel job while processing"
            ) from exc
        try:
            storage.delete(job.file_path)
        except Exception as exc:
            Log.warning(f"Could not remove file for job {job_id}: {exc}")
        return {"success": True}

    def _live_events(job: JobRecord, subscription: Subscription) -> Iterator[str]:
        """Relay published events; between them, fall back to the stored job.

        Workers in another process publish elsewhere, so the job store is
        the source of truth for progress and the terminal state.
        """
        last_seen = (job.status, job.progress)
        while True:
            try:
                event = subscription.get(timeout=settings.events_poll_interval_seconds)
            except queue.Empty:
                current = job_store.find_by_id(job.id)
                if current is None:
                    return
                if current.is_terminal:
                    yield sse_data(_stored_event(current))
                    return
                if (current.status, current.progress) != last_seen:
                    last_seen = (current.status, current.progress)
                    yield sse_data(_stored_event(current))
                continue
            if event is None:
                return
            last_seen = (event.status, event.progress)
            yield sse_data({"status": event.status, "progress": event.progress, "message": event.message})
            if event.terminal:
                return

    def _stream_fast_parse(request: FastParseRequest) -> Iterator[str]:
        event_queue: queue.Queue[dict[str, Any] | None] = queue.Queue()
        stream_id = f"fast-{uuid.uuid4().hex[:12]}"

        def emit(status: str, percent: int, message: str) -> None:
            event = progress_publisher.publish(stream_id, status, percent, message)
            event_queue.put({"status": event.status, "progress": event.progress, "message": event.message})

        def worker() -> None:
            try:
                if not request.text or not request.fileName:
                    raise ValueError("Missing required fields: text and fileName")
                emit(JobStatus.PENDING, 10, "Analyzing document structure...")
                analysis = processor.analyze(
                    request.text,
                    asset_id=request.assetId,
                    cross_reference=request.crossReference,
                    progress=emit,
                )
                report = processor.build_report(analysis, job_id=None, file_name=request.fileName)
                event = progress_publisher.finish(stream_id, JobStatus.COMPLETED, "Complete")
                event_queue.put({"status": event.status, "progress": event.progress, "message": event.message})
                event_queue.put({"type": "results", "data": report})
            except Exception as exc:
                Log.warning(f"Fast parse {stream_id} failed: {exc}")
                event = progress_publisher.finish(stream_id, JobStatus.FAILED, str(exc) or "Processing failed")
                event_queue.put({"status": event.status, "progress": 0, "message": event.message})
            finally:
                event_queue.put({"type": "done"})
                event_queue.put(None)

        threading.Thread(target=worker, name=stream_id, daemon=True).start()
        while True:
            item = event_queue.get()
            if item is None:
                break
            yield sse_data(item)

    return app


__all__ = ["create_app", "job_to_dict"]

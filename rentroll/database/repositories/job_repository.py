import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from rentroll.database.connection import get_connection
from rentroll.database.models import JobRecord, ParsedUnitRecord
from rentroll.jobs.backoff import BackoffPolicy
from rentroll.jobs.base import BaseJobStore
from rentroll.jobs.exceptions import ConflictError, JobError, JobNotFoundError
from rentroll.jobs.lifecycle import resolve_failure, resolve_progress
from rentroll.jobs.status import IN_FLIGHT_STATUSES, JobStatus
from rentroll.logging.logger import Log

_JOB_COLUMNS = """
    id::text AS id, file_name, file_path, file_size_bytes, status, progress,
    retry_count, max_retries, asset_id, cross_reference, error_message,
    locked_by, result, created_at, started_at, completed_at,
    next_attempt_at, updated_at
"""

_UNIT_COLUMNS = """
    id::text AS id, job_id::text AS job_id, unit_id, unit_address, unit_zipcode,
    unit_floor, unit_door, size_sqm, rent_current, tenant_name, lease_start,
    lease_end, unit_status, match_status, matched_unit_id, match_confidence,
    match_method
"""


class JobRepository(BaseJobStore):
    """Database operations for the pdf_jobs and pdf_parsed_units tables."""

    CLAIM_ATTEMPTS = 5

    def __init__(self, max_retries: int, backoff: BackoffPolicy) -> None:
        self._max_retries = max_retries
        self._backoff = backoff

    def enqueue(
        self,
        *,
        file_name: str,
        file_path: str,
        file_size_bytes: int,
        asset_id: str | None = None,
        cross_reference: bool = False,
        max_retries: int | None = None,
    ) -> JobRecord:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO pdf_jobs
                        (id, file_name, file_path, file_size_bytes, status, progress,
                         retry_count, max_retries, asset_id, cross_reference)
                    VALUES (%s, %s, %s, %s, 'pending', 0, 0, %s, %s, %s)
                    RETURNING {_JOB_COLUMNS}
                    """,
                    (
                        str(uuid.uuid4()),
                        file_name,
                        file_path,
                        file_size_bytes,
                        max_retries if max_retries is not None else self._max_retries,
                        asset_id,
                        cross_reference,
                    ),
                )
                row = cur.fetchone()
            if row is None:
                conn.rollback()
                raise JobError(f"Insert of job for {file_name} returned no row")
            conn.commit()
        return _row_to_job(row)

    def claim_next(self, worker_id: str) -> JobRecord | None:
        """Claim the next pending job using SELECT FOR UPDATE SKIP LOCKED.

        The follow-up UPDATE is conditional on the row still being pending;
        its rowcount is the success signal. A lost race moves on to the
        next candidate instead of waiting.
        """
        for _ in range(self.CLAIM_ATTEMPTS):
            with get_connection() as conn:
                try:
                    return self._claim_once(conn, worker_id)
                except ConflictError as exc:
                    conn.rollback()
                    Log.debug(f"Claim race lost, trying next candidate: {exc}")
        return None

    def _claim_once(
        self, conn: psycopg.Connection[Any], worker_id: str
    ) -> JobRecord | None:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id
                FROM pdf_jobs
                WHERE status = 'pending'
                  AND retry_count < max_retries
                  AND (next_attempt_at IS NULL OR next_attempt_at <= NOW())
                ORDER BY created_at, id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """
            )
            candidate = cur.fetchone()
            if candidate is None:
                conn.commit()
                return None

            cur.execute(
                f"""
                UPDATE pdf_jobs
                SET status = 'processing',
                    locked_by = %s,
                    locked_at = NOW(),
                    started_at = COALESCE(started_at, NOW()),
                    updated_at = NOW()
                WHERE id = %s AND status = 'pending'
                RETURNING {_JOB_COLUMNS}
                """,
                (worker_id, candidate["id"]),
            )
            if cur.rowcount != 1:
                raise ConflictError(f"Job {candidate['id']} was claimed by another worker")
            row = cur.fetchone()
        if row is None:
            raise ConflictError(f"Job {candidate['id']} vanished during claim")
        conn.commit()
        return _row_to_job(row)

    def update_progress(
        self,
        job_id: str,
        status: str,
        percent: int,
        message: str | None = None,
    ) -> int:
        with get_connection() as conn:
            row = self._lock_job(conn, job_id, "status, progress")
            recorded = resolve_progress(job_id, row["status"], row["progress"], status, percent)
            conn.execute(
                """
                UPDATE pdf_jobs
                SET status = %s, progress = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (status, recorded, job_id),
            )
            conn.commit()
        if message:
            Log.debug(f"Job {job_id} [{status} {recorded}%] {message}")
        return recorded

    def fail(self, job_id: str, error_message: str, structural: bool = False) -> JobRecord:
        """Increment retry_count; back to pending with backoff, or failed at max."""
        with get_connection() as conn:
            row = self._lock_job(conn, job_id, "status, retry_count, max_retries")
            if row["status"] in (JobStatus.COMPLETED, JobStatus.FAILED):
                conn.rollback()
                raise ConflictError(f"Job {job_id} is already '{row['status']}'")
            retry_count, terminal = resolve_failure(
                row["retry_count"], row["max_retries"], structural
            )
            with conn.cursor(row_factory=dict_row) as cur:
                if terminal:
                    cur.execute(
                        f"""
                        UPDATE pdf_jobs
                        SET status = 'failed', retry_count = %s, error_message = %s,
                            locked_by = NULL, locked_at = NULL, next_attempt_at = NULL,
                            completed_at = NOW(), updated_at = NOW()
                        WHERE id = %s
                        RETURNING {_JOB_COLUMNS}
                        """,
                        (retry_count, error_message, job_id),
                    )
                else:
                    delay = self._backoff.delay(retry_count)
                    cur.execute(
                        f"""
                        UPDATE pdf_jobs
                        SET status = 'pending', progress = 0, retry_count = %s,
                            error_message = %s, locked_by = NULL, locked_at = NULL,
                            next_attempt_at = NOW() + %s, updated_at = NOW()
                        WHERE id = %s
                        RETURNING {_JOB_COLUMNS}
                        """,
                        (retry_count, error_message, delay, job_id),
                    )
                updated = cur.fetchone()
            if updated is None:
                conn.rollback()
                raise JobNotFoundError(f"Job {job_id} not found")
            conn.commit()
        return _row_to_job(updated)

    def complete(self, job_id: str, result: dict[str, Any]) -> JobRecord:
        with get_connection() as conn:
            row = self._lock_job(conn, job_id, "status")
            if row["status"] not in IN_FLIGHT_STATUSES:
                conn.rollback()
                raise ConflictError(f"Job {job_id} is '{row['status']}', cannot complete")
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE pdf_jobs
                    SET status = 'completed', progress = 100, result = %s,
                        locked_by = NULL, locked_at = NULL,
                        completed_at = NOW(), updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_JOB_COLUMNS}
                    """,
                    (Jsonb(result), job_id),
                )
                updated = cur.fetchone()
            if updated is None:
                conn.rollback()
                raise JobNotFoundError(f"Job {job_id} not found")
            conn.commit()
        return _row_to_job(updated)

    def cancel(self, job_id: str) -> None:
        with get_connection() as conn:
            row = self._lock_job(conn, job_id, "status")
            if row["status"] in IN_FLIGHT_STATUSES:
                conn.rollback()
                raise ConflictError(f"Cannot cancel job {job_id} while {row['status']}")
            conn.execute("DELETE FROM pdf_parsed_units WHERE job_id = %s", (job_id,))
            conn.execute("DELETE FROM pdf_jobs WHERE id = %s", (job_id,))
            conn.commit()

    def find_by_id(self, job_id: str) -> JobRecord | None:
        """Find a job by ID."""
        if not _is_uuid(job_id):
            return None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM pdf_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        return _row_to_job(row) if row is not None else None

    def list_jobs(
        self,
        *,
        status: str | None = None,
        asset_id: str | None = None,
        limit: int = 20,
    ) -> list[JobRecord]:
        conditions: list[str] = []
        params: list[Any] = []
        if status is not None:
            conditions.append("status = %s")
            params.append(status)
        if asset_id is not None:
            conditions.append("asset_id = %s")
            params.append(asset_id)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(self._cap_limit(limit))
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS}
                    FROM pdf_jobs
                    {where}
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    params,
                )
                rows = cur.fetchall()
        return [_row_to_job(row) for row in rows]

    def save_parsed_units(self, job_id: str, units: list[ParsedUnitRecord]) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM pdf_parsed_units WHERE job_id = %s", (job_id,))
                if units:
                    cur.executemany(
                        """
                        INSERT INTO pdf_parsed_units
                            (id, job_id, unit_id, unit_address, unit_zipcode, unit_floor,
                             unit_door, size_sqm, rent_current, tenant_name, lease_start,
                             lease_end, unit_status, match_status, matched_unit_id,
                             match_confidence, match_method)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                                %s, %s, %s)
                        """,
                        [
                            (
                                unit.id,
                                job_id,
                                unit.unit_id,
                                unit.address,
                                unit.zipcode,
                                unit.floor,
                                unit.door,
                                unit.size_sqm,
                                unit.rent_current,
                                unit.tenant_name,
                                unit.lease_start,
                                unit.lease_end,
                                unit.unit_status,
                                unit.match_status,
                                unit.matched_unit_id,
                                unit.match_confidence,
                                unit.match_method,
                            )
                            for unit in units
                        ],
                    )
            conn.commit()

    def list_parsed_units(self, job_id: str) -> list[ParsedUnitRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_UNIT_COLUMNS} FROM pdf_parsed_units WHERE job_id = %s ORDER BY id",
                    (job_id,),
                )
                rows = cur.fetchall()
        return [_row_to_unit(row) for row in rows]

    @staticmethod
    def _lock_job(
        conn: psycopg.Connection[Any], job_id: str, columns: str
    ) -> dict[str, Any]:
        if not _is_uuid(job_id):
            raise JobNotFoundError(f"Job {job_id} not found")
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"SELECT {columns} FROM pdf_jobs WHERE id = %s FOR UPDATE",
                (job_id,),
            )
            row = cur.fetchone()
        if row is None:
            conn.rollback()
            raise JobNotFoundError(f"Job {job_id} not found")
        return row


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _row_to_job(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        file_name=row["file_name"],
        file_path=row["file_path"],
        file_size_bytes=row["file_size_bytes"],
        status=row["status"],
        progress=row["progress"],
        retry_count=row["retry_count"],
        max_retries=row["max_retries"],
        asset_id=row["asset_id"],
        cross_reference=row["cross_reference"],
        error_message=row["error_message"],
        locked_by=row["locked_by"],
        result=row["result"],
        created_at=row["created_at"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        next_attempt_at=row["next_attempt_at"],
        updated_at=row["updated_at"],
    )


def _row_to_unit(row: dict[str, Any]) -> ParsedUnitRecord:
    return ParsedUnitRecord(
        id=row["id"],
        job_id=row["job_id"],
        unit_id=row["unit_id"],
        address=row["unit_address"],
        zipcode=row["unit_zipcode"],
        floor=row["unit_floor"],
        door=row["unit_door"],
        size_sqm=float(row["size_sqm"]) if row["size_sqm"] is not None else None,
        rent_current=float(row["rent_current"]) if row["rent_current"] is not None else None,
        tenant_name=row["tenant_name"],
        lease_start=row["lease_start"],
        lease_end=row["lease_end"],
        unit_status=row["unit_status"],
        match_status=row["match_status"],
        matched_unit_id=row["matched_unit_id"],
        match_confidence=row["match_confidence"],
        match_method=row["match_method"],
    )

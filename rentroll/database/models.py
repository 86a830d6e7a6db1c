from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from rentroll.jobs.status import is_in_flight, is_terminal


@dataclass
class JobRecord:
    """Represents a row from the pdf_jobs table."""

    id: str
    file_name: str
    file_path: str
    file_size_bytes: int
    status: str
    progress: int = 0
    retry_count: int = 0
    max_retries: int = 3
    asset_id: str | None = None
    cross_reference: bool = False
    error_message: str | None = None
    locked_by: str | None = None
    result: dict[str, Any] | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    next_attempt_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def is_in_flight(self) -> bool:
        return is_in_flight(self.status)


@dataclass
class ParsedUnitRecord:
    """Represents a row from the pdf_parsed_units table."""

    id: str
    job_id: str
    unit_id: str | None = None
    address: str | None = None
    zipcode: str | None = None
    floor: str | None = None
    door: str | None = None
    size_sqm: float | None = None
    rent_current: float | None = None
    tenant_name: str | None = None
    lease_start: date | None = None
    lease_end: date | None = None
    unit_status: str = "vacant"
    match_status: str = "missing"
    matched_unit_id: int | None = None
    match_confidence: float = 0.0
    match_method: str | None = None

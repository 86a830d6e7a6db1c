"""Decides whether a failed attempt is worth retrying."""

from dataclasses import dataclass

import psycopg

from rentroll.extraction.exceptions import ExtractionError
from rentroll.jobs.exceptions import StructuralError, TransientError, ValidationError
from rentroll.pdf.exceptions import PdfExtractionError
from rentroll.storage.exceptions import FileReadError, UnsupportedStorageError

STRUCTURAL_ERRORS: tuple[type[BaseException], ...] = (
    StructuralError,
    ValidationError,
    PdfExtractionError,
    FileNotFoundError,
    FileReadError,
    UnsupportedStorageError,
)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    TransientError,
    ExtractionError,
    TimeoutError,
    psycopg.OperationalError,
)


@dataclass(frozen=True)
class Failure:
    structural: bool
    message: str


def classify_failure(exc: BaseException) -> Failure:
    """Structural failures are terminal at once; everything else is retried.

    Unknown exception types count as transient.
    """
    message = str(exc) or type(exc).__name__
    if isinstance(exc, STRUCTURAL_ERRORS):
        return Failure(structural=True, message=message)
    if not isinstance(exc, TRANSIENT_ERRORS):
        message = f"{type(exc).__name__}: {message}"
    return Failure(structural=False, message=message)

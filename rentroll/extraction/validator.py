"""Checks the shape of the parsed extraction response and builds the result."""

from datetime import date
from typing import Any

from rentroll.extraction.exceptions import ExtractionValidationError
from rentroll.extraction.models import ExtractionResult
from rentroll.extraction.normalization import normalize_property, normalize_units


def validate_and_build(data: dict[str, Any], today: date | None = None) -> ExtractionResult:
    """Validate the top-level shape and normalize every row.

    Only the envelope is strict. Individual rows and fields are normalized
    leniently and never fail the batch.

    Raises:
        ExtractionValidationError: if `units` is missing or not a list, or
            `property` is neither an object nor null.
    """
    units_raw = _require_units(data)
    property_raw = data.get("property")
    if property_raw is not None and not isinstance(property_raw, dict):
        raise ExtractionValidationError("'property' must be an object or null")
    units, dropped = normalize_units(units_raw, today)
    return ExtractionResult(
        units=units,
        property=normalize_property(property_raw),
        dropped_count=dropped,
    )


def _require_units(data: dict[str, Any]) -> list[Any]:
    if "units" not in data:
        raise ExtractionValidationError("Missing required top-level field: units")
    units = data["units"]
    if units is None:
        return []
    if not isinstance(units, list):
        raise ExtractionValidationError("'units' must be a list")
    return units

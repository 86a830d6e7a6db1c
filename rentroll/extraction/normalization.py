"""Row-level normalization of raw extraction output.

Every function here is pure and tolerant: a bad field never fails the
row, and a bad row never fails the batch.
"""

import math
import re
from datetime import date, datetime
from typing import Any

from rentroll.anomaly.models import PropertyProfile
from rentroll.extraction.models import CandidateUnit, UnitStatus
from rentroll.logging.logger import Log

_NUMERIC_CHARS = re.compile(r"[^0-9.,\-]")
_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d", "%d.%m.%y", "%d-%m-%y")

_STATUS_ALIASES: dict[str, str] = {
    "occupied": UnitStatus.OCCUPIED,
    "let": UnitStatus.OCCUPIED,
    "leased": UnitStatus.OCCUPIED,
    "rented": UnitStatus.OCCUPIED,
    "udlejet": UnitStatus.OCCUPIED,
    "vacant": UnitStatus.VACANT,
    "empty": UnitStatus.VACANT,
    "available": UnitStatus.VACANT,
    "ledig": UnitStatus.VACANT,
    "tom": UnitStatus.VACANT,
    "terminated": UnitStatus.TERMINATED,
    "notice given": UnitStatus.TERMINATED,
    "opsagt": UnitStatus.TERMINATED,
}

_FLOOR_ALIASES: dict[str, str] = {
    "st": "0",
    "stuen": "0",
    "stueetage": "0",
    "ground": "0",
    "ground floor": "0",
    "kl": "-1",
    "kld": "-1",
    "kælder": "-1",
    "basement": "-1",
}
_FLOOR_NUMBER = re.compile(r"^(-?\d+)\s*\.?\s*(?:sal|etage|floor)?$")

_DOOR_ALIASES: dict[str, str] = {
    "tv": "tv",
    "v": "tv",
    "venstre": "tv",
    "left": "tv",
    "th": "th",
    "h": "th",
    "højre": "th",
    "right": "th",
    "mf": "mf",
    "m": "mf",
    "midt": "mf",
    "middle": "mf",
}

_UNIT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "unit_id": ("unit_id", "id"),
    "address": ("unit_address", "address"),
    "zipcode": ("unit_zipcode", "zipcode", "zip_code"),
    "floor": ("unit_floor", "floor"),
    "door": ("unit_door", "door"),
    "size_sqm": ("size_sqm", "size"),
    "rent_current": ("rent_current", "monthly_rent", "rent"),
    "tenant_name": ("tenant_name", "tenant"),
    "lease_start": ("lease_start",),
    "lease_end": ("lease_end",),
    "unit_status": ("unit_status", "occupancy_status", "status"),
}


def parse_number(value: Any) -> float | None:
    """Parse a loosely formatted number and round half-up to whole units.

    Absent values give None, unparsable values give 0.
    """
    number = _to_float(value)
    if number is None:
        return None
    return float(math.floor(number + 0.5))


def parse_date(value: Any, today: date | None = None) -> tuple[date | None, bool]:
    """Parse an ISO or day-first date.

    Returns (date, defaulted). Unparsable input yields today's date with
    defaulted=True; absent input yields (None, False).
    """
    if value is None:
        return None, False
    if isinstance(value, datetime):
        return value.date(), False
    if isinstance(value, date):
        return value, False
    text = str(value).strip()
    if not text:
        return None, False
    try:
        return date.fromisoformat(text[:10]), False
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date(), False
        except ValueError:
            continue
    Log.warning(f"Unparsable date '{text}', defaulting to today")
    return (today or date.today()), True


def parse_status(value: Any) -> str:
    if value is None:
        return UnitStatus.VACANT
    return _STATUS_ALIASES.get(str(value).strip().lower(), UnitStatus.VACANT)


def normalize_floor(value: Any) -> str | None:
    """Canonical floor string: "0" ground floor, "-1" basement, digits otherwise."""
    text = _text(value)
    if text is None:
        return None
    lowered = text.lower().rstrip(".").strip()
    if lowered in _FLOOR_ALIASES:
        return _FLOOR_ALIASES[lowered]
    match = _FLOOR_NUMBER.match(lowered)
    if match:
        return str(int(match.group(1)))
    return lowered


def normalize_door(value: Any) -> str | None:
    """Canonical door string: "tv", "th", "mf" or the door number."""
    text = _text(value)
    if text is None:
        return None
    lowered = text.lower().rstrip(".").strip()
    if lowered in _DOOR_ALIASES:
        return _DOOR_ALIASES[lowered]
    if lowered.isdigit():
        return str(int(lowered))
    return lowered


def normalize_zipcode(value: Any) -> str | None:
    text = _text(value)
    if text is None:
        return None
    digits = re.sub(r"\D", "", text)
    return digits or text


def normalize_candidate(raw: Any, today: date | None = None) -> CandidateUnit | None:
    """Build a CandidateUnit from one raw row.

    Returns None when the row has neither an external unit id nor an address.
    """
    if not isinstance(raw, dict):
        return None
    fields = {name: _first(raw, aliases) for name, aliases in _UNIT_FIELD_ALIASES.items()}
    unit_id = _text(fields["unit_id"])
    address = _text(fields["address"])
    if unit_id is None and address is None:
        return None

    lease_start, start_defaulted = parse_date(fields["lease_start"], today)
    lease_end, end_defaulted = parse_date(fields["lease_end"], today)
    return CandidateUnit(
        unit_id=unit_id,
        address=address,
        zipcode=normalize_zipcode(fields["zipcode"]),
        floor=normalize_floor(fields["floor"]),
        door=normalize_door(fields["door"]),
        size_sqm=parse_number(fields["size_sqm"]),
        rent_current=parse_number(fields["rent_current"]),
        tenant_name=_text(fields["tenant_name"]),
        lease_start=lease_start,
        lease_end=lease_end,
        unit_status=parse_status(fields["unit_status"]),
        dates_defaulted=start_defaulted or end_defaulted,
    )


def normalize_units(rows: Any, today: date | None = None) -> tuple[list[CandidateUnit], int]:
    """Normalize a list of raw rows. Returns (units, dropped_count)."""
    if not isinstance(rows, list):
        return [], 0
    units: list[CandidateUnit] = []
    dropped = 0
    for row in rows:
        unit = normalize_candidate(row, today)
        if unit is None:
            dropped += 1
            continue
        units.append(unit)
    if dropped:
        Log.info(f"Dropped {dropped} row(s) without unit id or address")
    return units, dropped


def normalize_property(raw: Any) -> PropertyProfile | None:
    """Build a PropertyProfile from the extraction response's property block."""
    if not isinstance(raw, dict):
        return None
    year = _to_float(raw.get("building_year"))
    profile = PropertyProfile(
        address=_text(raw.get("address")),
        zipcode=normalize_zipcode(raw.get("zipcode")),
        property_value=_positive(_to_float(raw.get("property_value"))),
        building_year=int(year) if year else None,
        total_area=_positive(_to_float(raw.get("total_area"))),
        property_tax=_positive(_to_float(raw.get("property_tax"))),
    )
    return None if profile.is_empty else profile


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        cleaned = _NUMERIC_CHARS.sub("", text)
        try:
            number = float(_canonical_separators(cleaned))
        except ValueError:
            return 0.0
    # JSON NaN and Infinity are accepted by the decoder but are not amounts.
    return number if math.isfinite(number) else 0.0


def _canonical_separators(text: str) -> str:
    """Resolve thousands/decimal separators ("12.500,50" and "12,500.50")."""
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    separator = "," if "," in text else "." if "." in text else ""
    if not separator:
        return text
    groups = text.split(separator)
    # "12.500" and "1,250,000" are thousands groups, "72,5" is a decimal.
    if len(groups) > 2 or len(groups[-1]) == 3:
        return "".join(groups)
    return text.replace(",", ".")


def _positive(value: float | None) -> float | None:
    return value if value else None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None

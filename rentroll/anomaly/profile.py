"""Builds a PropertyProfile from labelled key terms found in a document."""

import re
from collections.abc import Iterable

from rentroll.anomaly.models import PropertyProfile

KeyTerm = tuple[str, str]

ADDRESS_LABELS = ("address", "location", "adresse")
ZIPCODE_LABELS = ("zip", "postal", "postnr")
VALUE_LABELS = ("price", "value", "asking", "pris", "værdi")
YEAR_LABELS = ("year", "built", "construction", "opført", "byggeår")
AREA_LABELS = ("area", "size", "sqm", "m²", "areal")
TAX_LABELS = ("tax", "ejendomsskat")

_KEY_TERM_LINE = re.compile(r"^\s*([^:\n]{2,60}?)\s*:\s*(\S.*?)\s*$")
_AMOUNT = re.compile(r"\d[\d.,]*")
_YEAR = re.compile(r"\b(1[89]|20)\d{2}\b")
_ZIPCODE = re.compile(r"\b\d{4}\b")


def key_terms_from_text(text: str) -> list[KeyTerm]:
    """Collect "Label: value" lines in document order."""
    terms: list[KeyTerm] = []
    for line in text.splitlines():
        match = _KEY_TERM_LINE.match(line)
        if match:
            terms.append((match.group(1), match.group(2)))
    return terms


def profile_from_key_terms(terms: Iterable[KeyTerm]) -> PropertyProfile | None:
    """First matching label wins for each field; None when nothing is found."""
    terms = list(terms)
    tax = _first_amount(terms, TAX_LABELS)
    profile = PropertyProfile(
        address=_first_value(terms, ADDRESS_LABELS),
        zipcode=_first_pattern(terms, ZIPCODE_LABELS, _ZIPCODE),
        property_value=_first_amount(terms, VALUE_LABELS, exclude=TAX_LABELS),
        building_year=_first_year(terms),
        total_area=_first_amount(terms, AREA_LABELS),
        property_tax=tax,
    )
    return None if profile.is_empty else profile


def profile_from_text(text: str) -> PropertyProfile | None:
    return profile_from_key_terms(key_terms_from_text(text))


def parse_amount(value: str) -> float | None:
    """Parse "DKK 12.500.000" or "1,250,000.50" style amounts."""
    match = _AMOUNT.search(value)
    if not match:
        return None
    digits = match.group(0).rstrip(".,")
    if "," in digits and "." in digits:
        decimal = "," if digits.rfind(",") > digits.rfind(".") else "."
    elif digits.count(",") == 1 and len(digits.split(",")[1]) != 3:
        decimal = ","
    elif digits.count(".") == 1 and len(digits.split(".")[1]) != 3:
        decimal = "."
    else:
        decimal = ""
    thousands = {",", "."} - {decimal}
    cleaned = "".join(char for char in digits if char not in thousands)
    try:
        return float(cleaned.replace(",", "."))
    except ValueError:
        return None


def _matches(label: str, keywords: tuple[str, ...]) -> bool:
    lowered = label.lower()
    return any(keyword in lowered for keyword in keywords)


def _first_value(terms: list[KeyTerm], keywords: tuple[str, ...]) -> str | None:
    for label, value in terms:
        if _matches(label, keywords) and value.strip():
            return value.strip()
    return None


def _first_pattern(
    terms: list[KeyTerm], keywords: tuple[str, ...], pattern: re.Pattern[str]
) -> str | None:
    for label, value in terms:
        if _matches(label, keywords):
            match = pattern.search(value)
            if match:
                return match.group(0)
    return None


def _first_amount(
    terms: list[KeyTerm],
    keywords: tuple[str, ...],
    exclude: tuple[str, ...] = (),
) -> float | None:
    for label, value in terms:
        if _matches(label, keywords) and not _matches(label, exclude):
            amount = parse_amount(value)
            if amount:
                return amount
    return None


def _first_year(terms: list[KeyTerm]) -> int | None:
    for label, value in terms:
        if _matches(label, YEAR_LABELS):
            match = _YEAR.search(value)
            if match:
                return int(match.group(0))
    return None

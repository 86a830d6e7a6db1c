"""Orders pages by how likely they hold the unit table and caps the total text."""

from rentroll.pdf.models import ExtractedDocument, PageText

RENT_ROLL_KEYWORDS: tuple[str, ...] = (
    "rent roll",
    "unit list",
    "tenant list",
    "lejefortegnelse",
    "lejemål",
    "huslejeliste",
    "unit",
    "tenant",
    "lease",
    "sqm",
    "m²",
    "floor",
    "etage",
    "door",
    "dør",
)

DEFAULT_MAX_CHARS = 20_000


def has_rent_roll_keywords(page: PageText) -> bool:
    lowered = page.text.lower()
    return any(keyword in lowered for keyword in RENT_ROLL_KEYWORDS)


def prioritize_pages(pages: list[PageText]) -> list[PageText]:
    """Keyword pages first, then table-like pages, then page order."""
    return sorted(
        pages,
        key=lambda page: (
            not has_rent_roll_keywords(page),
            not page.is_table_like,
            page.number,
        ),
    )


def select_text(document: ExtractedDocument, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Assemble prioritized page text, never longer than max_chars.

    Each page is introduced by a "--- Page N ---" header; the last page that
    fits is truncated. Blank pages are skipped.
    """
    parts: list[str] = []
    used = 0
    for page in prioritize_pages(document.pages):
        if not page.text.strip():
            continue
        header = f"--- Page {page.number} ---\n"
        separator = "\n" if parts else ""
        remaining = max_chars - used - len(separator) - len(header)
        if remaining <= 0:
            break
        chunk = f"{separator}{header}{page.text[:remaining]}"
        parts.append(chunk)
        used += len(chunk)
    return "".join(parts)

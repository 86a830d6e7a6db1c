from dataclasses import dataclass, field


@dataclass(frozen=True)
class PageText:
    """Text layer of one page. `number` is 1-based."""

    number: int
    text: str

    @property
    def average_cells_per_line(self) -> float:
        lines = [line for line in self.text.splitlines() if line.strip()]
        if not lines:
            return 0.0
        return sum(len(line.split()) for line in lines) / len(lines)

    @property
    def is_table_like(self) -> bool:
        return self.average_cells_per_line > 3


@dataclass(frozen=True)
class ExtractedDocument:
    pages: list[PageText] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def has_table_indicators(self) -> bool:
        return any(page.is_table_like for page in self.pages)

    @property
    def text(self) -> str:
        return "\n".join(page.text for page in self.pages).strip()

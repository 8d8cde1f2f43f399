"""Row model for dialogue tables and model responses."""

from dataclasses import dataclass
from typing import List, Optional

from config.constants import COL_NR, COL_FILENR, COL_ID, COL_SYMBOL, COL_USE, COL_TRACE


@dataclass
class TranslationRecord:
    """One row of the dialogue table."""
    nr: Optional[int] = None
    file_nr: str = ""
    id: str = ""
    symbol: str = ""
    use: str = ""
    trace: str = ""
    original_text: str = ""
    translated_text: str = ""


@dataclass(frozen=True)
class TranslatedItem:
    """One element of a model response."""
    nr: Optional[int]
    translated_text: str


@dataclass(frozen=True)
class FieldMap:
    """Maps the two text fields onto their run-time header names."""
    source_header: str
    target_header: str

    @property
    def columns(self) -> List[str]:
        """Output column order of the table file."""
        return [
            COL_NR, COL_FILENR, COL_ID, COL_SYMBOL, COL_USE, COL_TRACE,
            self.source_header, self.target_header,
        ]


@dataclass
class Batch:
    """
    A run of selected rows sent together in one request.

    `start` and `end` are positions in the selected sequence. A skipped batch
    covers exactly one oversized row and holds no records.
    """
    records: List[TranslationRecord]
    start: int
    end: int
    estimated_tokens: int = 0
    skipped: bool = False

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class Table:
    """A loaded dialogue table plus what is needed to write it back unchanged."""
    records: List[TranslationRecord]
    field_map: FieldMap
    newline: str = "\r\n"
    has_bom: bool = False

    def __len__(self) -> int:
        return len(self.records)

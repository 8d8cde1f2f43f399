"""Validation utilities that decide which rows still need translation."""

from dataclasses import dataclass
from typing import List, Sequence

from .records import TranslationRecord


@dataclass
class Selection:
    """Rows picked for translation, in table order."""
    rows: List[TranslationRecord]
    total: int

    @property
    def selected(self) -> int:
        return len(self.rows)

    @property
    def percentage(self) -> float:
        return self.selected / self.total * 100 if self.total else 0.0


def check_space_pattern(original: str, translated: str) -> bool:
    """
    Check if two strings agree on every word boundary.

    Equal-length strings where no position has a space on one side and a
    different character on the other are treated as not actually translated.
    """
    if len(original) != len(translated):
        return False

    for a, b in zip(original, translated):
        if (a == ' ' or b == ' ') and a != b:
            return False

    return True


def needs_translation(record: TranslationRecord) -> bool:
    """Check if a row is untranslated, an untouched copy, or a suspicious edit."""
    if not record.original_text or record.nr is None:
        return False

    return (
        record.translated_text == ""
        or record.translated_text == record.original_text
        or check_space_pattern(record.original_text, record.translated_text)
    )


def select_rows(records: Sequence[TranslationRecord]) -> Selection:
    """Select rows requiring translation, keeping table order."""
    rows = [r for r in records if needs_translation(r)]
    return Selection(rows=rows, total=len(records))

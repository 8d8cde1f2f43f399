"""Apply model responses back onto the loaded table."""

import logging
from dataclasses import dataclass
from typing import Dict, Sequence

from .records import TranslatedItem, TranslationRecord

logger = logging.getLogger(__name__)


@dataclass
class MergeOutcome:
    applied: int = 0
    dropped: int = 0

    @property
    def changed(self) -> bool:
        return self.applied + self.dropped > 0


def index_by_nr(records: Sequence[TranslationRecord]) -> Dict[int, TranslationRecord]:
    """Map each NR to the first row carrying it."""
    index: Dict[int, TranslationRecord] = {}
    for record in records:
        if record.nr is not None and record.nr not in index:
            index[record.nr] = record
    return index


def merge_results(
    records: Sequence[TranslationRecord],
    items: Sequence[TranslatedItem],
) -> MergeOutcome:
    """
    Overwrite translated text of the rows matching each item's NR.

    Items without NR or with an NR not present in the table are dropped.
    `changed` is true whenever the response was non-empty.
    """
    index = index_by_nr(records)
    outcome = MergeOutcome()

    for item in items:
        record = index.get(item.nr) if item.nr is not None else None
        if record is None:
            outcome.dropped += 1
            continue
        record.translated_text = item.translated_text
        outcome.applied += 1

    if outcome.dropped:
        logger.debug(f"Dropped {outcome.dropped} response item(s) without a matching NR")

    return outcome

"""Token-aware batch building for translation requests."""

import logging
import math
from typing import Iterator, List, Sequence

from .codec import serialize_output
from .records import Batch, FieldMap, TranslatedItem, TranslationRecord

logger = logging.getLogger(__name__)


class TokenAwareBatchBuilder:
    """
    Batch builder that respects the output token budget.

    The size of a batch is estimated from the serialized response the model
    would produce for it, using the source text as a stand-in for the
    translation. JSON overhead does not grow linearly with the item count, so
    the full estimate is recomputed for every tentative addition.
    """

    def __init__(
        self,
        max_tokens: int,
        field_map: FieldMap,
        token_factor: float,
    ):
        """
        Initialize token-aware batch builder.

        Args:
            max_tokens: Maximum estimated output tokens per batch
            field_map: Header names used when serializing the estimate
            token_factor: Estimated tokens per serialized character
        """
        self.max_tokens = max_tokens
        self.field_map = field_map
        self.token_factor = token_factor

    def estimate_tokens(self, records: Sequence[TranslationRecord]) -> int:
        """Estimate output tokens for a batch of rows."""
        items = [TranslatedItem(nr=r.nr, translated_text=r.original_text) for r in records]
        payload = serialize_output(items, self.field_map)
        return math.ceil(len(payload) * self.token_factor)

    def build(self, rows: Sequence[TranslationRecord], start: int) -> Batch:
        """
        Greedily build the batch beginning at `start`.

        Returns a skipped batch covering only `rows[start]` when that row alone
        exceeds the budget.
        """
        if not 0 <= start < len(rows):
            raise IndexError(f"Batch start {start} out of range for {len(rows)} rows")

        current_batch: List[TranslationRecord] = []
        current_tokens = 0
        end = start

        while end < len(rows):
            tokens = self.estimate_tokens(current_batch + [rows[end]])
            if tokens > self.max_tokens:
                break
            current_batch.append(rows[end])
            current_tokens = tokens
            end += 1

        if not current_batch:
            return Batch(
                records=[],
                start=start,
                end=start + 1,
                estimated_tokens=self.estimate_tokens([rows[start]]),
                skipped=True,
            )

        return Batch(
            records=current_batch,
            start=start,
            end=end,
            estimated_tokens=current_tokens,
        )

    def iter_batches(self, rows: Sequence[TranslationRecord]) -> Iterator[Batch]:
        """Yield consecutive batches until every row has been consumed."""
        position = 0
        while position < len(rows):
            batch = self.build(rows, position)
            if batch.skipped:
                logger.debug(
                    f"Row with NR {rows[position].nr} needs ~{batch.estimated_tokens} tokens "
                    f"(budget {self.max_tokens})"
                )
            yield batch
            position = batch.end

    def __call__(self, rows: Sequence[TranslationRecord]) -> List[Batch]:
        """Partition all rows into batches."""
        return list(self.iter_batches(rows))

"""Translation manager that drives batch translation of a dialogue table."""

import csv
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from config.constants import PROMPT_DISPLAY_LENGTH, RESPONSE_DISPLAY_LENGTH
from config.settings import TranslationConfig
from translators import BaseTranslator
from utils.batch_manager import TokenAwareBatchBuilder
from utils.codec import PromptBuilder, decode_response, response_schema
from utils.control import RateLimiter, RunControl, RunObserver
from utils.errors import ResponseDecodeError, TranslationCallError
from utils.file_handler import create_backup, load_table, read_dictionary, save_table
from utils.merger import merge_results
from utils.records import Table
from utils.validators import select_rows

logger = logging.getLogger(__name__)


class RunState(Enum):
    LOADING = "loading"
    SELECTING_BATCH = "selecting_batch"
    CALLING = "calling"
    MERGING = "merging"
    SAVING = "saving"
    DONE = "done"
    ABORTED = "aborted"
    ERROR = "error"


@dataclass
class RunResult:
    """Summary of one translation run."""
    state: RunState = RunState.LOADING
    total_rows: int = 0
    selected_rows: int = 0
    batches_sent: int = 0
    rows_skipped: int = 0
    rows_merged: int = 0
    changed: bool = False
    stopped: bool = False
    saved: bool = False
    backup_file: Optional[Path] = None
    error: Optional[str] = None


def _truncate(text: str, length: int) -> str:
    return text if len(text) <= length else text[:length] + "..."


class TranslationManager:
    """
    Translates the untranslated rows of one table file in place.

    Batches are sent strictly one after another. A failed batch ends the
    loop but keeps everything merged so far, which is then saved. Stop and
    abort requests are honoured between batches only.
    """

    def __init__(
        self,
        config: TranslationConfig,
        translator: BaseTranslator,
        control: Optional[RunControl] = None,
        observer: Optional[RunObserver] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.config = config
        self.translator = translator
        self.control = control or RunControl()
        self.observer = observer or RunObserver()
        self.rate_limiter = rate_limiter or RateLimiter(config.rate_limit_delay)
        self.state = RunState.LOADING
        self.table: Optional[Table] = None

    def _log(self, message: str, level: int = logging.INFO):
        logger.log(level, message)
        self.observer.on_log(message)

    def _set_state(self, state: RunState):
        logger.debug(f"State: {self.state.value} -> {state.value}")
        self.state = state

    def _finish(self, result: RunResult, state: RunState, start_time: float) -> RunResult:
        self._set_state(state)
        result.state = state
        elapsed = time.time() - start_time
        logger.info(
            f"Run finished ({state.value}) in {elapsed:.1f}s: "
            f"{result.batches_sent} batch(es) sent, {result.rows_merged} row(s) merged, "
            f"{result.rows_skipped} row(s) skipped"
        )
        return result

    async def process_file(self) -> RunResult:
        """Run the whole load, translate and save cycle."""
        start_time = time.time()
        config = self.config.validate()
        field_map = config.field_map

        self._set_state(RunState.LOADING)
        table = load_table(config.input_file, field_map)
        self.table = table

        selection = select_rows(table.records)
        result = RunResult(total_rows=selection.total, selected_rows=selection.selected)

        self._log(f"Total rows: {selection.total}")
        self._log(f"Untranslated rows: {selection.selected} ({selection.percentage:.1f}%)")

        if not selection.rows:
            self._log("Nothing to translate!")
            return self._finish(result, RunState.DONE, start_time)

        prompt_builder = PromptBuilder(
            config.source_language,
            config.target_language,
            field_map,
            read_dictionary(config.dictionary_file),
        )
        result.backup_file = create_backup(config.input_file)

        batch_builder = TokenAwareBatchBuilder(
            max_tokens=config.token_budget,
            field_map=field_map,
            token_factor=config.token_factor,
        )
        schema = response_schema(field_map)
        rows = selection.rows

        try:
            await self.translator.initialize()

            for batch in batch_builder.iter_batches(rows):
                if self.control.aborting:
                    self._log("Aborting due to user request...")
                    return self._finish(result, RunState.ABORTED, start_time)

                if self.control.stopping:
                    self._log("Stopping due to user request...")
                    result.stopped = True
                    break

                self._set_state(RunState.SELECTING_BATCH)
                position = batch.end

                if batch.skipped:
                    result.rows_skipped += 1
                    self._log(
                        f"Row with NR {rows[batch.start].nr} is too large and gets skipped!",
                        logging.WARNING,
                    )
                    continue

                row_count = len(batch)
                self._log(f"Sending {row_count} {'row' if row_count == 1 else 'rows'} for translation...")

                prompt = prompt_builder.build(batch.records)
                logger.debug(
                    f"Sent prompt (first {PROMPT_DISPLAY_LENGTH} characters):\n"
                    f"{_truncate(prompt, PROMPT_DISPLAY_LENGTH)}"
                )

                self._set_state(RunState.CALLING)
                result.batches_sent += 1
                try:
                    response = await self.translator.send(prompt, schema)
                    logger.debug(
                        f"Raw response (first {RESPONSE_DISPLAY_LENGTH} characters):\n"
                        f"{_truncate(response.text, RESPONSE_DISPLAY_LENGTH)}"
                    )
                    items = decode_response(response.text, field_map, response.finish_reason)
                except ResponseDecodeError as e:
                    self._log(
                        f"JSON Deserialization Error. Response might be truncated. Length: {e.response_length}",
                        logging.ERROR,
                    )
                    self._log(f"Finish reason: {e.finish_reason}", logging.ERROR)
                    self._log(f"Stopping due to error during translation!\n{e}", logging.ERROR)
                    result.error = str(e)
                    break
                except TranslationCallError as e:
                    self._log(f"Stopping due to error during translation!\n{e}", logging.ERROR)
                    result.error = str(e)
                    break
                except Exception as e:
                    self._log(f"Stopping due to error during translation!\n{e}", logging.ERROR)
                    result.error = f"{type(e).__name__}: {e}"
                    break

                self._set_state(RunState.MERGING)
                outcome = merge_results(table.records, items)
                result.rows_merged += outcome.applied
                result.changed = result.changed or outcome.changed

                if not self.control.aborting:
                    self.observer.on_progress(100 * position / len(rows))

                if position < len(rows):
                    await self.rate_limiter.wait(self.control)
        finally:
            await self.translator.cleanup()

        final_state = RunState.ERROR if result.error else RunState.DONE

        if self.control.aborting:
            self._log("Aborting due to user request...")
            return self._finish(result, RunState.ABORTED, start_time)

        if not result.changed:
            self._log("Nothing to save.")
            return self._finish(result, final_state, start_time)

        self._set_state(RunState.SAVING)
        self._log("Saving...")
        try:
            await save_table(table, config.input_file)
        except (OSError, csv.Error) as e:
            self._log(f"Error saving CSV file: {e}", logging.ERROR)
            result.error = result.error or f"Error saving CSV file: {e}"
            return self._finish(result, RunState.ERROR, start_time)

        result.saved = True
        self._log("File saved!")
        return self._finish(result, final_state, start_time)

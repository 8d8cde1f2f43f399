"""File I/O utilities for tab-delimited dialogue tables."""

import codecs
import csv
import io
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import aiofiles.os

from config.constants import COL_NR, COL_FILENR, COL_ID, COL_SYMBOL, COL_USE, COL_TRACE
from .errors import BackupError, ConfigError, TableFormatError
from .records import FieldMap, Table, TranslationRecord

logger = logging.getLogger(__name__)

# Tab-delimited, no quoting and no escaping
CSV_FORMAT = {
    'delimiter': '\t',
    'quoting': csv.QUOTE_NONE,
    'quotechar': None,
    'escapechar': None,
}


def _detect_newline(text: str) -> str:
    pos = text.find('\n')
    if pos > 0 and text[pos - 1] == '\r':
        return '\r\n'
    if pos >= 0:
        return '\n'
    return '\r\n'


def _parse_nr(value: str, line_num: int) -> Optional[int]:
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise TableFormatError(f"Line {line_num}: {COL_NR} '{value}' is not an integer") from None


def load_table(input_file: str, field_map: FieldMap) -> Table:
    """
    Load a tab-delimited table into translation records.

    Headers are matched case-insensitively, unknown columns are ignored and
    missing cells read as empty strings.
    """
    logger.info(f"Loading input file: {input_file}")
    with open(input_file, 'rb') as f:
        raw = f.read()

    has_bom = raw.startswith(codecs.BOM_UTF8)
    try:
        text = raw.decode('utf-8-sig')
        lines = list(csv.reader(io.StringIO(text, newline=''), **CSV_FORMAT))
    except UnicodeDecodeError as e:
        raise TableFormatError(f"'{input_file}' is not valid UTF-8: {e}") from e
    except csv.Error as e:
        raise TableFormatError(f"'{input_file}' could not be parsed: {e}") from e

    header = lines[0] if lines else None
    if not header:
        raise TableFormatError(f"'{input_file}' has no header row")

    columns: Dict[str, int] = {}
    for idx, name in enumerate(header):
        columns.setdefault(name.strip().upper(), idx)

    if field_map.source_header.upper() not in columns:
        raise TableFormatError(
            f"Column '{field_map.source_header}' not found in '{input_file}'"
        )
    if field_map.target_header.upper() not in columns:
        logger.warning(f"Column '{field_map.target_header}' not found, treating all rows as untranslated")

    known = {c.upper() for c in field_map.columns}
    ignored = [name for name in header if name.strip().upper() not in known]
    if ignored:
        logger.debug(f"Ignoring columns: {', '.join(ignored)}")

    records: List[TranslationRecord] = []
    for line_num, row in enumerate(lines[1:], start=2):
        if not row:
            continue

        def cell(name: str) -> str:
            idx = columns.get(name.upper())
            if idx is None or idx >= len(row):
                return ""
            return row[idx]

        records.append(TranslationRecord(
            nr=_parse_nr(cell(COL_NR), line_num),
            file_nr=cell(COL_FILENR),
            id=cell(COL_ID),
            symbol=cell(COL_SYMBOL),
            use=cell(COL_USE),
            trace=cell(COL_TRACE),
            original_text=cell(field_map.source_header),
            translated_text=cell(field_map.target_header),
        ))

    return Table(
        records=records,
        field_map=field_map,
        newline=_detect_newline(text),
        has_bom=has_bom,
    )


def render_table(table: Table) -> str:
    """Render a table to text. Raises csv.Error for cells with tabs or line breaks."""
    buffer = io.StringIO(newline='')
    writer = csv.writer(buffer, lineterminator=table.newline, **CSV_FORMAT)
    writer.writerow(table.field_map.columns)
    for r in table.records:
        writer.writerow([
            "" if r.nr is None else str(r.nr),
            r.file_nr,
            r.id,
            r.symbol,
            r.use,
            r.trace,
            r.original_text,
            r.translated_text,
        ])
    content = buffer.getvalue()
    return '\ufeff' + content if table.has_bom else content


async def save_table(table: Table, output_file: str):
    """Write the table through a temporary file and replace `output_file` with it."""
    logger.info(f"Saving table to: {output_file}")
    content = render_table(table)
    temp_file = f"{output_file}.tmp"
    try:
        async with aiofiles.open(temp_file, 'w', encoding='utf-8', newline='') as f:
            await f.write(content)
        await aiofiles.os.replace(temp_file, output_file)
    except Exception as e:
        logger.error(f"Error writing output file: {e}")
        if await aiofiles.os.path.exists(temp_file):
            await aiofiles.os.remove(temp_file)
        raise


def read_dictionary(dictionary_file: Optional[str]) -> str:
    """Read the glossary injected into every prompt, or '' when none is set."""
    if not dictionary_file:
        return ""
    logger.info(f"Loading dictionary file: {dictionary_file}")
    try:
        with open(dictionary_file, 'r', encoding='utf-8-sig') as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ConfigError(f"Dictionary file '{dictionary_file}' is not valid UTF-8: {e}") from e


def backup_path(input_file: str, now: Optional[datetime] = None) -> Path:
    """Path of the timestamped backup next to the input file."""
    path = Path(input_file)
    now = now or datetime.now()
    return path.with_name(f"{path.stem}_backup_{now:%Y-%m-%d-%I-%M-%S}.csv")


def create_backup(input_file: str, now: Optional[datetime] = None) -> Path:
    """
    Copy the input file byte for byte before anything is changed.

    Raises:
        BackupError: the source cannot be read or the backup already exists.
    """
    backup_file = backup_path(input_file, now)
    logger.info(f'Writing backup file "{backup_file}"...')
    try:
        with open(input_file, 'rb') as src, open(backup_file, 'xb') as dst:
            shutil.copyfileobj(src, dst)
    except OSError as e:
        logger.error(f"Error writing backup file: {e}")
        raise BackupError(f"Could not create backup '{backup_file}': {e}") from e
    logger.info(f'"{backup_file}" saved!')
    return backup_file

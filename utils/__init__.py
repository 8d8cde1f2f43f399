"""Utility modules for TableTranslate."""

from .records import TranslationRecord, TranslatedItem, FieldMap, Batch, Table
from .errors import (
    ConfigError,
    TableFormatError,
    BackupError,
    TranslationCallError,
    ResponseDecodeError,
)
from .file_handler import load_table, save_table, create_backup, read_dictionary
from .validators import check_space_pattern, needs_translation, select_rows, Selection
from .batch_manager import TokenAwareBatchBuilder
from .codec import PromptBuilder, decode_response, response_schema, serialize_output, serialize_request
from .merger import merge_results, MergeOutcome
from .control import ControlSignal, RunControl, RateLimiter, RunObserver, TqdmObserver

__all__ = [
    'TranslationRecord',
    'TranslatedItem',
    'FieldMap',
    'Batch',
    'Table',
    'ConfigError',
    'TableFormatError',
    'BackupError',
    'TranslationCallError',
    'ResponseDecodeError',
    'load_table',
    'save_table',
    'create_backup',
    'read_dictionary',
    'check_space_pattern',
    'needs_translation',
    'select_rows',
    'Selection',
    'TokenAwareBatchBuilder',
    'PromptBuilder',
    'decode_response',
    'response_schema',
    'serialize_output',
    'serialize_request',
    'merge_results',
    'MergeOutcome',
    'ControlSignal',
    'RunControl',
    'RateLimiter',
    'RunObserver',
    'TqdmObserver',
]

"""Exception types raised by the translation pipeline."""

from typing import Optional


class ConfigError(ValueError):
    """Run configuration is invalid; nothing has been processed yet."""


class TableFormatError(ValueError):
    """The input table cannot be mapped onto translation records."""


class BackupError(OSError):
    """The backup copy of the input file could not be created."""


class TranslationCallError(RuntimeError):
    """The translation service call failed (transport, quota or HTTP status)."""


class ResponseDecodeError(ValueError):
    """The model response is not valid JSON or does not match the schema."""

    def __init__(
        self,
        message: str,
        response_length: int = 0,
        finish_reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.response_length = response_length
        self.finish_reason = finish_reason

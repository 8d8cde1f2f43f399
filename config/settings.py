"""Run configuration for a translation job."""

import os
from dataclasses import dataclass
from typing import List, Optional

from config.constants import RATE_LIMIT_DELAY, THINKING_TOKEN_LIMITS
from utils.errors import ConfigError
from utils.records import FieldMap


@dataclass(frozen=True)
class TranslationConfig:
    """Immutable settings passed into the translation manager."""
    input_file: str
    api_key: str
    model_name: str
    output_tokens: int
    token_factor: float
    thinking_tokens: int
    source_language: str
    source_header: str
    target_language: str
    target_header: str
    dictionary_file: Optional[str] = None
    rate_limit_delay: float = RATE_LIMIT_DELAY

    @property
    def token_budget(self) -> int:
        """Output tokens left for visible output after the thinking reserve."""
        return self.output_tokens - self.thinking_tokens

    @property
    def field_map(self) -> FieldMap:
        return FieldMap(self.source_header, self.target_header)

    def collect_errors(self) -> List[str]:
        """Return every configuration problem found, in display order."""
        errors = []

        if not self.input_file or not self.input_file.strip() or not os.path.isfile(self.input_file):
            errors.append("Please select a valid CSV file.")

        if not self.api_key or not self.api_key.strip():
            errors.append("Please specify an API key.")

        if not self.model_name or not self.model_name.strip():
            errors.append("Please specify a model name.")

        if self.output_tokens <= 0:
            errors.append("Please specify a positive integer output token size.")

        if self.token_factor <= 0:
            errors.append("Please specify a positive token factor.")

        if self.thinking_tokens < 0:
            errors.append("Please specify a non-negative integer thinking token size.")
        elif self.thinking_tokens >= self.output_tokens:
            errors.append("The output token size must be greater than the thinking token size.")
        else:
            limit_error = self._thinking_limit_error()
            if limit_error:
                errors.append(limit_error)

        for value, label in (
            (self.source_language, "source language"),
            (self.source_header, "source header"),
            (self.target_language, "target language"),
            (self.target_header, "target header"),
        ):
            if not value or not value.strip():
                errors.append(f"Please specify a {label}.")

        if (self.source_header and self.target_header
                and self.source_header.upper() == self.target_header.upper()):
            errors.append("Source and target header must be different.")

        if self.dictionary_file and not os.path.isfile(self.dictionary_file):
            errors.append(f"Dictionary file '{self.dictionary_file}' does not exist.")

        if self.rate_limit_delay < 0:
            errors.append("The delay between requests must not be negative.")

        return errors

    def _thinking_limit_error(self) -> Optional[str]:
        model = (self.model_name or "").lower()
        for name, (limit, is_prefix) in THINKING_TOKEN_LIMITS.items():
            matches = model.startswith(name) if is_prefix else model == name
            if matches and self.thinking_tokens > limit:
                return f"Model '{self.model_name}' is limited to {limit} thinking tokens!"
        return None

    def validate(self) -> 'TranslationConfig':
        """Raise ConfigError listing all problems, or return self."""
        errors = self.collect_errors()
        if errors:
            raise ConfigError("\n".join(f"Error: {e}" for e in errors))
        return self

from pathlib import Path

import pytest

from config.settings import TranslationConfig
from helpers import table_text


@pytest.fixture
def write_table(tmp_path: Path):
    def _write(rows, name: str = "dialog.csv", **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(table_text(rows, **kwargs).encode("utf-8"))
        return path
    return _write


@pytest.fixture
def make_config():
    def _make(input_file, **overrides) -> TranslationConfig:
        values = dict(
            input_file=str(input_file),
            api_key="test-key",
            model_name="gemini-2.5-flash",
            output_tokens=10_000,
            token_factor=1.0,
            thinking_tokens=0,
            source_language="German",
            source_header="DE",
            target_language="English",
            target_header="EN",
            rate_limit_delay=0.0,
        )
        values.update(overrides)
        return TranslationConfig(**values)
    return _make

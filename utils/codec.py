"""Request/response serialization for batch translation prompts."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from config.constants import COL_NR, PAYLOAD_KEY
from .errors import ResponseDecodeError
from .records import FieldMap, TranslatedItem, TranslationRecord

PROMPTS_DIR = Path(__file__).parent / "prompts"
UNWRITABLE_CHARS = ('\t', '\r', '\n')


def _dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(',', ':'))


def serialize_request(records: Sequence[TranslationRecord], field_map: FieldMap) -> str:
    """Serialize rows as the `{"d": [...]}` request payload."""
    return _dumps({
        PAYLOAD_KEY: [
            {COL_NR: r.nr, field_map.source_header: r.original_text}
            for r in records
        ]
    })


def serialize_output(items: Sequence[TranslatedItem], field_map: FieldMap) -> str:
    """Serialize items the way the model is expected to answer."""
    return _dumps({
        PAYLOAD_KEY: [
            {COL_NR: item.nr, field_map.target_header: item.translated_text}
            for item in items
        ]
    })


def response_schema(field_map: FieldMap) -> Dict:
    """Structured-output schema for the model response."""
    return {
        "type": "OBJECT",
        "properties": {
            PAYLOAD_KEY: {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        COL_NR: {"type": "INTEGER"},
                        field_map.target_header: {"type": "STRING"},
                    },
                    "required": [COL_NR, field_map.target_header],
                },
            }
        },
        "required": [PAYLOAD_KEY],
    }


def _get_ci(entry: Dict, name: str) -> Any:
    """Look up a property name case-insensitively."""
    if name in entry:
        return entry[name]
    upper = name.upper()
    for key, value in entry.items():
        if key.upper() == upper:
            return value
    return None


def decode_response(
    content: str,
    field_map: FieldMap,
    finish_reason: Optional[str] = None,
) -> List[TranslatedItem]:
    """
    Parse and validate a model response.

    Raises:
        ResponseDecodeError: malformed, truncated or schema-mismatched response.
    """
    length = len(content or "")

    def fail(message: str) -> ResponseDecodeError:
        return ResponseDecodeError(message, response_length=length, finish_reason=finish_reason)

    try:
        data = json.loads(content or "")
    except json.JSONDecodeError as e:
        raise fail(f"JSON deserialization error: {e}") from e

    if not isinstance(data, dict):
        raise fail("Response is not a JSON object")

    entries = _get_ci(data, PAYLOAD_KEY)
    if not isinstance(entries, list):
        raise fail(f"Response has no '{PAYLOAD_KEY}' array")

    items = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise fail(f"Element {idx} is not an object")

        nr = _get_ci(entry, COL_NR)
        if nr is not None and (isinstance(nr, bool) or not isinstance(nr, int)):
            raise fail(f"Element {idx} has a non-integer {COL_NR}: {nr!r}")

        text = _get_ci(entry, field_map.target_header)
        if not isinstance(text, str):
            raise fail(f"Element {idx} has no string '{field_map.target_header}' field")
        # The table is written without escaping
        if any(c in text for c in UNWRITABLE_CHARS):
            raise fail(f"Element {idx} contains a tab or line break: {text!r}")

        items.append(TranslatedItem(nr=nr, translated_text=text))

    return items


class PromptBuilder:
    """Builds the instruction prompt sent with every batch."""

    def __init__(
        self,
        source_lang: str,
        target_lang: str,
        field_map: FieldMap,
        dictionary_text: str = "",
    ):
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.field_map = field_map
        self.dictionary_text = dictionary_text

        self._batch_prompt_template = (PROMPTS_DIR / "batch_prompt.txt").read_text(encoding="utf-8")
        self._dictionary_template = (PROMPTS_DIR / "dictionary_prompt.txt").read_text(encoding="utf-8")
        self._input_template = (PROMPTS_DIR / "input_prompt.txt").read_text(encoding="utf-8")

    def build(self, records: Sequence[TranslationRecord]) -> str:
        """Create the full prompt for a batch of rows."""
        prompt = self._batch_prompt_template.format(
            source_lang=self.source_lang,
            target_lang=self.target_lang,
            source_header=self.field_map.source_header,
            target_header=self.field_map.target_header,
        )

        if self.dictionary_text:
            prompt += self._dictionary_template.format(dictionary=self.dictionary_text)

        return prompt + self._input_template.format(
            items_json=serialize_request(records, self.field_map)
        )

import json

import pytest

from utils.codec import PromptBuilder, decode_response, response_schema, serialize_output, serialize_request
from utils.errors import ResponseDecodeError
from utils.records import FieldMap, TranslatedItem, TranslationRecord

FIELDS = FieldMap("DE", "EN")


@pytest.mark.unit
def test_serialize_request_renames_source_field():
    rows = [
        TranslationRecord(nr=1, original_text="Hallo", translated_text="ignored", symbol="X"),
        TranslationRecord(nr=2, original_text="Grüß dich"),
    ]
    assert serialize_request(rows, FIELDS) == '{"d":[{"NR":1,"DE":"Hallo"},{"NR":2,"DE":"Grüß dich"}]}'


@pytest.mark.unit
def test_serialize_output_uses_target_header():
    items = [TranslatedItem(7, 'Say "hi"')]
    assert serialize_output(items, FIELDS) == '{"d":[{"NR":7,"EN":"Say \\"hi\\""}]}'


@pytest.mark.unit
def test_prompt_contains_instructions_and_payload():
    builder = PromptBuilder("German", "English", FIELDS)
    prompt = builder.build([TranslationRecord(nr=1, original_text="Hallo")])

    assert "from German to English" in prompt
    assert "DE field" in prompt
    assert "EN field" in prompt
    assert '[{"NR":1,"EN":"Translation here"},{"NR":2,"EN":"Another translation"}]' in prompt
    assert "dictionary" not in prompt
    assert prompt.endswith('\nJSON Input:\n{"d":[{"NR":1,"DE":"Hallo"}]}')


@pytest.mark.unit
def test_prompt_inserts_dictionary_verbatim():
    glossary = "Erzbaron = Ore Baron\nBuddler = Digger {literal}"
    builder = PromptBuilder("German", "English", FIELDS, dictionary_text=glossary)
    prompt = builder.build([TranslationRecord(nr=1, original_text="Hallo")])

    assert "Use the following dictionary for common terms:\n" + glossary in prompt
    assert prompt.index(glossary) < prompt.index("JSON Input:")


@pytest.mark.unit
def test_response_schema_names_target_header():
    schema = response_schema(FIELDS)
    item = schema["properties"]["d"]["items"]
    assert schema["type"] == "OBJECT"
    assert schema["required"] == ["d"]
    assert item["properties"] == {"NR": {"type": "INTEGER"}, "EN": {"type": "STRING"}}
    assert item["required"] == ["NR", "EN"]


@pytest.mark.unit
def test_decode_valid_response():
    text = json.dumps({"d": [{"NR": 1, "EN": "Hello"}, {"NR": 2, "EN": "World"}]})
    assert decode_response(text, FIELDS) == [TranslatedItem(1, "Hello"), TranslatedItem(2, "World")]


@pytest.mark.unit
def test_decode_accepts_fewer_items_and_case_insensitive_keys():
    text = json.dumps({"D": [{"nr": 5, "en": "Five"}]})
    assert decode_response(text, FIELDS) == [TranslatedItem(5, "Five")]


@pytest.mark.unit
def test_decode_keeps_items_without_nr():
    text = json.dumps({"d": [{"NR": None, "EN": "Orphan"}, {"EN": "No key"}]})
    assert [item.nr for item in decode_response(text, FIELDS)] == [None, None]


@pytest.mark.unit
def test_decode_truncated_response_reports_length_and_finish_reason():
    text = '{"d":[{"NR":1,"EN":"Hel'
    with pytest.raises(ResponseDecodeError) as exc_info:
        decode_response(text, FIELDS, finish_reason="MAX_TOKENS")
    assert exc_info.value.response_length == len(text)
    assert exc_info.value.finish_reason == "MAX_TOKENS"


@pytest.mark.unit
@pytest.mark.parametrize("text", [
    "",
    "[]",
    '{"items": []}',
    '{"d": {"NR": 1}}',
    '{"d": ["Hello"]}',
    '{"d": [{"NR": "1", "EN": "Hello"}]}',
    '{"d": [{"NR": true, "EN": "Hello"}]}',
    '{"d": [{"NR": 1.5, "EN": "Hello"}]}',
    '{"d": [{"NR": 1}]}',
    '{"d": [{"NR": 1, "EN": null}]}',
    '{"d": [{"NR": 1, "DE": "Hallo"}]}',
])
def test_decode_rejects_schema_mismatch(text):
    with pytest.raises(ResponseDecodeError):
        decode_response(text, FIELDS)


@pytest.mark.unit
@pytest.mark.parametrize("translation", ["Line one\nline two", "Line one\r\nline two", "Hello\tWorld"])
def test_decode_rejects_text_the_table_cannot_hold(translation):
    text = json.dumps({"d": [{"NR": 1, "EN": "Hello"}, {"NR": 2, "EN": translation}]})
    with pytest.raises(ResponseDecodeError, match="tab or line break"):
        decode_response(text, FIELDS)

import pytest

from utils.merger import merge_results
from utils.records import TranslatedItem, TranslationRecord


def table():
    return [
        TranslationRecord(nr=1, original_text="Hallo"),
        TranslationRecord(nr=2, original_text="Welt", translated_text="Welt"),
        TranslationRecord(nr=2, original_text="Doppelt"),
        TranslationRecord(nr=None, original_text="Ohne"),
    ]


@pytest.mark.unit
def test_merge_updates_first_row_with_matching_nr():
    records = table()
    outcome = merge_results(records, [TranslatedItem(2, "World"), TranslatedItem(1, "Hello")])

    assert [r.translated_text for r in records] == ["Hello", "World", "", ""]
    assert outcome.applied == 2
    assert outcome.changed


@pytest.mark.unit
def test_merge_drops_unknown_and_missing_nr():
    records = table()
    outcome = merge_results(records, [TranslatedItem(99, "Nobody"), TranslatedItem(None, "Orphan")])

    assert [r.translated_text for r in records] == ["", "Welt", "", ""]
    assert outcome.applied == 0
    assert outcome.dropped == 2
    assert outcome.changed


@pytest.mark.unit
def test_merge_of_empty_response_changes_nothing():
    records = table()
    outcome = merge_results(records, [])
    assert not outcome.changed
    assert [r.translated_text for r in records] == ["", "Welt", "", ""]


@pytest.mark.unit
def test_merge_leaves_other_fields_alone():
    records = [TranslationRecord(nr=1, file_nr="3", symbol="DIA", trace="t", original_text="Hallo")]
    merge_results(records, [TranslatedItem(1, "Hello")])
    assert records[0] == TranslationRecord(
        nr=1, file_nr="3", symbol="DIA", trace="t", original_text="Hallo", translated_text="Hello"
    )

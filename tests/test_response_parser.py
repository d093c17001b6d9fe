"""Tests for extraction response recovery."""

import random

import pytest

from wellness_journal.domain.conversation import ExtractionResult
from wellness_journal.domain.entries import EntryDraft, EntryType
from wellness_journal.services.response_parser import (
    NOT_UNDERSTOOD_REPLY,
    EntriesShape,
    LegacyShape,
    UnrecognizedShape,
    classify_payload,
    parse_extraction_response,
    recover_json_object,
)


def test_parses_entries_shape() -> None:
    raw = (
        '{"entries": [{"type": "fitness", "content": "Ran 30 minutes",'
        ' "parsed_data": {"exercise": "running", "duration": 30}},'
        ' {"type": "diet", "content": "Ate a salad", "parsed_data": {"calories": 300}}],'
        ' "reply": "Nice work! Save these?"}'
    )

    result = parse_extraction_response(raw, utterance="ran then had salad")

    assert [draft.type for draft in result.entries] == [EntryType.FITNESS, EntryType.DIET]
    assert result.entries[0].fields == {"exercise": "running", "duration": 30}
    assert result.entries[1].content == "Ate a salad"
    assert result.reply == "Nice work! Save these?"


def test_fenced_block_is_preferred() -> None:
    raw = 'Here you go:\n```json\n{"entries": [], "reply": "Hi"}\n```\nThanks!'

    result = parse_extraction_response(raw, utterance="hello")

    assert result.entries == []
    assert result.reply == "Hi"


def test_brace_span_is_used_when_text_surrounds_object() -> None:
    raw = 'Sure. {"entries": [{"type": "mood", "content": "Feeling good"}], "reply": "Yay"} Done.'

    result = parse_extraction_response(raw, utterance="good mood")

    assert len(result.entries) == 1
    assert result.entries[0].type == EntryType.MOOD
    assert result.entries[0].fields == {}


def test_legacy_shape_records_utterance() -> None:
    raw = (
        '{"should_record": true, "type": "energy",'
        ' "parsed_data": {"energy_level": 3}, "reply": "Rest up"}'
    )

    result = parse_extraction_response(raw, utterance="  so tired today  ")

    assert len(result.entries) == 1
    draft = result.entries[0]
    assert draft.type == EntryType.ENERGY
    assert draft.content == "so tired today"
    assert draft.fields == {"energy_level": 3}
    assert result.reply == "Rest up"


def test_legacy_shape_without_recording_yields_no_drafts() -> None:
    raw = '{"should_record": false, "type": null, "reply": "Hello!"}'

    result = parse_extraction_response(raw, utterance="hi")

    assert result.entries == []
    assert result.reply == "Hello!"


def test_unknown_type_becomes_other_and_missing_content_uses_utterance() -> None:
    raw = '{"entries": [{"type": "sleep"}, "junk", 3], "reply": "Noted"}'

    result = parse_extraction_response(raw, utterance="slept 8 hours")

    assert len(result.entries) == 1
    assert result.entries[0].type == EntryType.OTHER
    assert result.entries[0].content == "slept 8 hours"


def test_fields_key_is_accepted_as_blob() -> None:
    raw = '{"entries": [{"type": "diet", "content": "Rice", "fields": {"calories": 200}}]}'

    result = parse_extraction_response(raw, utterance="rice")

    assert result.entries[0].fields == {"calories": 200}
    assert result.reply == ""


def test_non_string_reply_becomes_empty() -> None:
    result = parse_extraction_response('{"entries": [], "reply": 42}', utterance="x")

    assert result.reply == ""


def test_plain_text_becomes_reply() -> None:
    result = parse_extraction_response("  Just chatting today.  ", utterance="hey")

    assert result.entries == []
    assert result.reply == "Just chatting today."


def test_empty_text_uses_not_understood_reply() -> None:
    result = parse_extraction_response("", utterance="hey", language="zh")

    assert result.entries == []
    assert result.reply == NOT_UNDERSTOOD_REPLY["zh"]


def test_unrecognized_object_keeps_reply_only() -> None:
    result = parse_extraction_response('{"reply": "Hmm", "foo": 1}', utterance="x")

    assert result.entries == []
    assert result.reply == "Hmm"


def test_recover_json_object_rejects_arrays() -> None:
    assert recover_json_object("[1, 2, 3]") is None
    assert recover_json_object("{not json}") is None


def test_classify_payload_order() -> None:
    assert isinstance(classify_payload({"entries": [], "reply": "a"}), EntriesShape)
    assert isinstance(
        classify_payload({"should_record": True, "type": "diet"}), LegacyShape
    )
    assert isinstance(classify_payload({"should_record": "yes"}), UnrecognizedShape)


def test_draft_fields_are_coerced_on_ingest() -> None:
    raw = (
        '{"entries": [{"type": "diet", "content": "Burger",'
        ' "parsed_data": {"calories": "600", "protein": "n/a", "side": "fries"}}],'
        ' "reply": "Save it?"}'
    )

    result = parse_extraction_response(raw, utterance="burger")

    assert result.entries[0].fields == {"calories": 600.0, "side": "fries"}


def test_legacy_fields_are_coerced_on_ingest() -> None:
    raw = '{"should_record": true, "type": "mood", "parsed_data": {"mood_score": "12"}}'

    result = parse_extraction_response(raw, utterance="meh")

    assert result.entries[0].fields == {}


@pytest.mark.parametrize(
    "raw",
    [
        '{"entries": [',
        '{"entries": [{"type": "diet", "content": "Rice"',
        "```json\n{\"entries\": []",
        "```",
        "{" * 5000,
        "[" * 5000,
        "\x00\xff",
        "}{",
        "null",
    ],
)
def test_truncated_or_garbled_input_never_raises(raw: str) -> None:
    result = parse_extraction_response(raw, utterance="hi")

    assert isinstance(result, ExtractionResult)
    assert isinstance(result.reply, str)
    assert result.reply
    assert result.entries == []


def test_random_text_yields_well_formed_result() -> None:
    rng = random.Random(20240503)
    alphabet = '{}[]":,`\\ \nabcxyz0123456789entriesreplytype-.'

    for _ in range(500):
        raw = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 80)))
        result = parse_extraction_response(raw, utterance="something")

        assert isinstance(result, ExtractionResult)
        assert isinstance(result.reply, str)
        assert all(isinstance(draft, EntryDraft) for draft in result.entries)


def test_parsing_is_repeatable() -> None:
    raw = (
        '```json\n{"entries": [{"type": "energy", "content": "Tired",'
        ' "parsed_data": {"energy_level": "3", "reason": "late night"}}],'
        ' "reply": "Rest well"}\n```'
    )

    first = parse_extraction_response(raw, utterance="tired")
    second = parse_extraction_response(raw, utterance="tired")

    assert first == second
    assert first.entries[0].fields == {"energy_level": 3, "reason": "late night"}

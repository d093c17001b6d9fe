"""Recovery of structured extraction results from raw model text.

The extraction service promises JSON but does not always deliver it. Recovery
runs in order, each step only when the previous one failed:

1. take the body of a fenced code block, if there is one;
2. decode the candidate as a JSON object, else decode the greedy
   ``{ ... }`` span of the original text;
3. resolve the object as the entries shape, the legacy single-entry shape,
   or an unrecognized object carrying only a reply;
4. with no object at all, surface the raw text itself as the reply.

Nothing here raises for any input and nothing performs I/O.
"""

import json
import logging
import re
from dataclasses import dataclass

from wellness_journal.domain.conversation import ExtractionResult
from wellness_journal.domain.entries import EntryDraft, EntryType
from wellness_journal.domain.fields import normalize_fields
from wellness_journal.domain.profiles import Language
from wellness_journal.errors import MalformedExtraction

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_BRACE_PATTERN = re.compile(r"\{[\s\S]*\}")

NOT_UNDERSTOOD_REPLY: dict[Language, str] = {
    "en": "Sorry, I didn't quite understand. Could you say that again?",
    "zh": "抱歉，我没太理解。你可以再说一遍吗？",
}


@dataclass(frozen=True)
class EntriesShape:
    """Current response shape: a list of entries plus a reply."""

    entries: list[object]
    reply: object


@dataclass(frozen=True)
class LegacyShape:
    """Older single-entry shape with a should-record flag."""

    should_record: bool
    type: object
    parsed_data: object
    reply: object


@dataclass(frozen=True)
class UnrecognizedShape:
    """Any other object; only its reply is used."""

    reply: object


ResponseShape = EntriesShape | LegacyShape | UnrecognizedShape


def parse_extraction_response(
    raw: str | None, *, utterance: str, language: Language = "en"
) -> ExtractionResult:
    """Convert raw extraction text into drafts and a reply."""
    text = raw or ""
    payload = recover_json_object(text)
    if payload is None:
        reply = text.strip() or NOT_UNDERSTOOD_REPLY.get(
            language, NOT_UNDERSTOOD_REPLY["en"]
        )
        return ExtractionResult(entries=[], reply=reply)
    return resolve_shape(classify_payload(payload), utterance=utterance)


def recover_json_object(raw: str) -> dict[str, object] | None:
    """Return the first recoverable JSON object in the text, or None."""
    try:
        return _decode_response(raw)
    except MalformedExtraction:
        logger.warning(
            "Extraction response held no structured object",
            extra={"response_length": len(raw)},
        )
        return None


def classify_payload(payload: dict[str, object]) -> ResponseShape:
    """Match a decoded object against the known response shapes, in order."""
    entries = payload.get("entries")
    if isinstance(entries, list):
        return EntriesShape(entries=entries, reply=payload.get("reply"))
    should_record = payload.get("should_record")
    if isinstance(should_record, bool) and "type" in payload:
        return LegacyShape(
            should_record=should_record,
            type=payload.get("type"),
            parsed_data=payload.get("parsed_data"),
            reply=payload.get("reply"),
        )
    return UnrecognizedShape(reply=payload.get("reply"))


def resolve_shape(shape: ResponseShape, *, utterance: str) -> ExtractionResult:
    """Turn a classified shape into an extraction result."""
    reply = _reply_text(shape.reply)
    if isinstance(shape, EntriesShape):
        drafts = [
            draft
            for item in shape.entries
            if (draft := _draft_from_item(item, utterance)) is not None
        ]
        return ExtractionResult(entries=drafts, reply=reply)
    if isinstance(shape, LegacyShape):
        entry_type = EntryType.coerce(shape.type)
        if shape.should_record and entry_type is not None:
            draft = EntryDraft(
                type=entry_type,
                content=utterance.strip(),
                fields=normalize_fields(entry_type, shape.parsed_data),
            )
            return ExtractionResult(entries=[draft], reply=reply)
    return ExtractionResult(entries=[], reply=reply)


def _decode_response(raw: str) -> dict[str, object]:
    candidate = raw.strip()
    fence = _FENCE_PATTERN.search(raw)
    if fence:
        candidate = fence.group(1).strip()

    payload = _load_object(candidate)
    if payload is not None:
        return payload

    span = _BRACE_PATTERN.search(raw)
    if span:
        payload = _load_object(span.group(0))
        if payload is not None:
            return payload
    raise MalformedExtraction("No JSON object found in extraction response")


def _load_object(candidate: str) -> dict[str, object] | None:
    if not candidate:
        return None
    try:
        value = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _draft_from_item(item: object, utterance: str) -> EntryDraft | None:
    if not isinstance(item, dict):
        return None
    entry_type = EntryType.coerce(item.get("type")) or EntryType.OTHER
    content = item.get("content")
    if not isinstance(content, str) or not content.strip():
        content = utterance
    blob = item.get("parsed_data")
    if blob is None:
        blob = item.get("fields")
    return EntryDraft(
        type=entry_type,
        content=content.strip(),
        fields=normalize_fields(entry_type, blob),
    )


def _reply_text(value: object) -> str:
    return value if isinstance(value, str) else ""

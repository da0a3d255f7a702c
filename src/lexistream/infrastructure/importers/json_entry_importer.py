from __future__ import annotations

import json
from pathlib import Path

from lexistream.core.keys import normalize_lookup_key
from lexistream.domain.models.entry import EntrySnapshot, ExampleSentence, Expression, Synonym
from lexistream.infrastructure.parsers.section_rules import (
    classify_formality,
    classify_source,
    detect_gender,
)


class EntryJsonError(ValueError):
    pass


def load_entry_from_json(raw: str | dict[str, object]) -> EntrySnapshot:
    """
    Convert a complete, non-streamed JSON record into a snapshot.

    Keys follow the all-at-once response shape: ``word``, ``ipa``,
    ``meaning``, ``partOfSpeech``, ``gender``, ``synonyms``, ``expressions``
    and ``examples``.
    """
    payload = _decode(raw) if isinstance(raw, str) else raw
    if not isinstance(payload, dict):
        raise EntryJsonError("Entry JSON must be an object.")

    gender_raw = _opt_str(payload.get("gender"))
    return EntrySnapshot(
        headword=_opt_str(payload.get("word")),
        phonetic=_opt_str(payload.get("ipa")),
        part_of_speech=_opt_str(payload.get("partOfSpeech")),
        gender_marker=detect_gender([gender_raw]) if gender_raw else None,
        meaning=_opt_str(payload.get("meaning")),
        synonym_list=_items(payload, "synonyms", ("word", "translation"), _synonym),
        expression_list=_items(payload, "expressions", ("original", "translation"), _expression),
        example_list=_items(
            payload,
            "examples",
            ("original", "translation", "source", "formality"),
            _example,
        ),
    )


def load_entry_for_term(path: Path, term: str) -> EntrySnapshot:
    """Read a JSON file holding either one record or records keyed by term."""
    payload = _decode(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise EntryJsonError(f"{path} must contain a JSON object.")

    if "word" in payload:
        return load_entry_from_json(payload)

    key = normalize_lookup_key(term)
    for candidate, record in payload.items():
        if str(candidate).strip().casefold() == key:
            if not isinstance(record, dict):
                raise EntryJsonError(f"Record for {term!r} must be a JSON object.")
            return load_entry_from_json(record)
    raise EntryJsonError(f"No record for {term!r} in {path}")


class JsonFileFallback:
    """Non-streaming retrieval backed by a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def __call__(self, term: str) -> EntrySnapshot:
        return load_entry_for_term(self.path, term)


def _decode(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise EntryJsonError(f"Invalid entry JSON: {exc}") from exc


def _items(payload: dict[str, object], key: str, required: tuple[str, ...], build):
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise EntryJsonError(f"'{key}' must be a list.")

    out = []
    for item in value:
        if not isinstance(item, dict):
            raise EntryJsonError(f"Each '{key}' item must be a JSON object.")
        fields = {name: _opt_str(item.get(name)) for name in required}
        missing = [name for name, v in fields.items() if v is None]
        if missing:
            raise EntryJsonError(f"'{key}' item missing: {', '.join(missing)}")
        out.append(build(fields))
    return tuple(out)


def _synonym(fields: dict[str, str]) -> Synonym:
    return Synonym(word=fields["word"], translation=fields["translation"])


def _expression(fields: dict[str, str]) -> Expression:
    return Expression(original=fields["original"], translation=fields["translation"])


def _example(fields: dict[str, str]) -> ExampleSentence:
    return ExampleSentence(
        original=fields["original"],
        translation=fields["translation"],
        source=classify_source(fields["source"]),
        formality=classify_formality(fields["formality"]),
    )


def _opt_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None

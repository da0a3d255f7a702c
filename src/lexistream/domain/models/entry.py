from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any


class Gender(str, Enum):
    MASCULINE = "masculine"
    FEMININE = "feminine"


class ExampleSource(str, Enum):
    YOUTUBE = "YouTube"
    PODCAST = "Podcast"
    INFORMAL = "Informal"


class Formality(str, Enum):
    CASUAL = "casual"
    NEUTRAL = "neutral"
    FORMAL = "formal"


@dataclass(frozen=True, slots=True)
class Synonym:
    word: str
    translation: str


@dataclass(frozen=True, slots=True)
class Expression:
    original: str
    translation: str


@dataclass(frozen=True, slots=True)
class ExampleSentence:
    original: str
    translation: str
    source: ExampleSource
    formality: Formality


@dataclass(frozen=True, slots=True)
class EntrySnapshot:
    """
    Dictionary entry as currently known.

    ``None`` marks a field that has not been parsed (yet). List fields use
    tuples; an empty tuple is a parsed section with no items.
    """

    headword: str | None = None
    phonetic: str | None = None
    part_of_speech: str | None = None
    gender_marker: Gender | None = None
    meaning: str | None = None
    synonym_list: tuple[Synonym, ...] | None = None
    expression_list: tuple[Expression, ...] | None = None
    example_list: tuple[ExampleSentence, ...] | None = None

    @classmethod
    def empty(cls) -> EntrySnapshot:
        return cls()

    def present_fields(self) -> tuple[str, ...]:
        return tuple(name for name in ENTRY_FIELDS if getattr(self, name) is not None)

    def is_empty(self) -> bool:
        return not self.present_fields()

    def missing(self, required: tuple[str, ...] | list[str]) -> tuple[str, ...]:
        out: list[str] = []
        for name in required:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                out.append(name)
        return tuple(out)

    def overlay(self, newer: EntrySnapshot) -> EntrySnapshot:
        """Field-wise override: whatever ``newer`` has present wins."""
        updates = {name: getattr(newer, name) for name in newer.present_fields()}
        return replace(self, **updates) if updates else self

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in self.present_fields():
            value = getattr(self, name)
            if isinstance(value, Enum):
                out[name] = value.value
            elif isinstance(value, tuple):
                out[name] = [_item_to_dict(item) for item in value]
            else:
                out[name] = value
        return out


def _item_to_dict(item: Synonym | Expression | ExampleSentence) -> dict[str, str]:
    out: dict[str, str] = {}
    for f in fields(item):
        value = getattr(item, f.name)
        out[f.name] = value.value if isinstance(value, Enum) else value
    return out


ENTRY_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(EntrySnapshot))

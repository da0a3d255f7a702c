from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Union

from lexistream.domain.models.entry import (
    EntrySnapshot,
    ExampleSentence,
    ExampleSource,
    Expression,
    Formality,
    Gender,
    Synonym,
)

# Level-2 headings only; "###" example sub-headers never open or close a section.
_HEADER_RE = re.compile(r"^##[ \t]+(?P<title>\S[^\n]*?)[ \t\r]*$", re.MULTILINE)
_SUBHEADER_RE = re.compile(r"^###[ \t]*", re.MULTILINE)

_SYNONYM_RE = re.compile(r"-\s*\*\*(?P<word>.+?)\*\*\s*\((?P<translation>.+)\)")
_EXPRESSION_RE = re.compile(r"\d+\.\s*\*\*(?P<original>.+?)\*\*\s*[-–—]\s*(?P<translation>.+)")
_EXAMPLE_HEADER_RE = re.compile(r"(?P<source>[^|]+?)\s*\|\s*(?P<formality>[^|]+)")
_EMPHASIS_RE = re.compile(r"^[*_]+|[*_]+$")


@dataclass(frozen=True, slots=True)
class SingleValueRule:
    title: str
    field: str

    def apply(self, body: str) -> dict[str, object]:
        value = body.strip()
        return {self.field: value} if value else {}


@dataclass(frozen=True, slots=True)
class PartOfSpeechRule:
    title: str = "Part of Speech"

    def apply(self, body: str) -> dict[str, object]:
        tokens = body.split()
        if not tokens:
            return {}
        out: dict[str, object] = {"part_of_speech": tokens[0]}
        gender = detect_gender(tokens[1:])
        if gender is not None:
            out["gender_marker"] = gender
        return out


@dataclass(frozen=True, slots=True)
class ItemListRule:
    """Every non-blank line must be an item; one stray line rejects the section."""

    title: str
    field: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], object]

    def apply(self, body: str) -> dict[str, object]:
        items: list[object] = []
        for raw in body.splitlines():
            line = raw.strip()
            if not line:
                continue
            match = self.pattern.fullmatch(line)
            if match is None:
                return {}
            items.append(self.build(match))
        return {self.field: tuple(items)} if items else {}


@dataclass(frozen=True, slots=True)
class ExamplesRule:
    title: str = "Examples"
    field: str = "example_list"

    def apply(self, body: str) -> dict[str, object]:
        examples = parse_example_blocks(body)
        return {self.field: tuple(examples)} if examples else {}


SectionRule = Union[SingleValueRule, PartOfSpeechRule, ItemListRule, ExamplesRule]


def _synonym(match: re.Match[str]) -> Synonym:
    return Synonym(word=match.group("word").strip(), translation=match.group("translation").strip())


def _expression(match: re.Match[str]) -> Expression:
    return Expression(
        original=match.group("original").strip(),
        translation=match.group("translation").strip(),
    )


RULES: tuple[SectionRule, ...] = (
    SingleValueRule(title="Word", field="headword"),
    SingleValueRule(title="IPA", field="phonetic"),
    PartOfSpeechRule(),
    SingleValueRule(title="Meaning", field="meaning"),
    ItemListRule(title="Synonyms", field="synonym_list", pattern=_SYNONYM_RE, build=_synonym),
    ItemListRule(title="Expressions", field="expression_list", pattern=_EXPRESSION_RE, build=_expression),
    ExamplesRule(),
)

SECTION_TITLES: frozenset[str] = frozenset(rule.title for rule in RULES)


def extract_entry(text: str, *, final: bool = False) -> EntrySnapshot:
    """
    Apply every section rule to ``text`` and assemble a snapshot.

    Unless ``final`` is set, the unterminated last line is left out: it may
    still be growing, and nothing is read from it until its newline arrives.
    """
    scanned = text if final else complete_lines(text)
    sections = scan_sections(scanned)

    values: dict[str, object] = {}
    for rule in RULES:
        body = sections.get(rule.title)
        if body is None:
            continue
        values.update(rule.apply(body))
    return EntrySnapshot(**values)  # type: ignore[arg-type]


def complete_lines(text: str) -> str:
    return text[: text.rfind("\n") + 1]


def scan_sections(text: str) -> dict[str, str]:
    """Map each recognized header title to its body. First occurrence wins."""
    headers = list(_HEADER_RE.finditer(text))
    sections: dict[str, str] = {}
    for idx, match in enumerate(headers):
        title = match.group("title")
        if title not in SECTION_TITLES or title in sections:
            continue
        end = headers[idx + 1].start() if idx + 1 < len(headers) else len(text)
        sections[title] = text[match.end() : end]
    return sections


def parse_example_blocks(body: str) -> list[ExampleSentence]:
    examples: list[ExampleSentence] = []
    # Anything before the first sub-header is not an example.
    for block in _SUBHEADER_RE.split(body)[1:]:
        header, _, rest = block.partition("\n")
        match = _EXAMPLE_HEADER_RE.fullmatch(header.strip())
        if match is None:
            continue

        lines = [line.strip() for line in rest.splitlines() if line.strip()]
        if len(lines) < 2:
            continue

        translation = strip_emphasis(lines[1])
        if not translation:
            continue

        examples.append(
            ExampleSentence(
                original=lines[0],
                translation=translation,
                source=classify_source(match.group("source")),
                formality=classify_formality(match.group("formality")),
            )
        )
    return examples


def strip_emphasis(line: str) -> str:
    return _EMPHASIS_RE.sub("", line.strip()).strip()


def detect_gender(tokens: list[str]) -> Gender | None:
    for token in tokens:
        lowered = token.lower()
        if "masculine" in lowered:
            return Gender.MASCULINE
        if "feminine" in lowered:
            return Gender.FEMININE
    return None


def classify_source(label: str) -> ExampleSource:
    lowered = label.strip().lower()
    if "youtube" in lowered:
        return ExampleSource.YOUTUBE
    if "podcast" in lowered:
        return ExampleSource.PODCAST
    return ExampleSource.INFORMAL


def classify_formality(label: str) -> Formality:
    lowered = label.strip().lower()
    if "casual" in lowered or "informal" in lowered:
        return Formality.CASUAL
    if "formal" in lowered:
        return Formality.FORMAL
    return Formality.NEUTRAL

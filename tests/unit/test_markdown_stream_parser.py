from __future__ import annotations

from pathlib import Path

import pytest

from lexistream.core.errors import ParserFinalizedError
from lexistream.domain.models.entry import EntrySnapshot, Synonym
from lexistream.infrastructure.parsers.markdown_stream_parser import MarkdownStreamParser
from lexistream.infrastructure.parsers.section_rules import extract_entry
from lexistream.infrastructure.sources.replay_source import split_chunks

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "fatigue.md"


def test_single_chunk_minimal_record() -> None:
    parser = MarkdownStreamParser()
    snapshot = parser.add_chunk("## Word\nchat\n## Meaning\ncat, feline\n")

    assert snapshot == EntrySnapshot(headword="chat", meaning="cat, feline")
    assert snapshot.present_fields() == ("headword", "meaning")


def test_headword_is_not_emitted_while_its_line_is_incomplete() -> None:
    parser = MarkdownStreamParser()

    first = parser.add_chunk("## Word\nch")
    assert first.headword is None

    second = parser.add_chunk("at\n## IPA\n/ʃa/\n")
    assert second.headword == "chat"
    assert second.phonetic == "/ʃa/"


def test_snapshot_is_idempotent() -> None:
    parser = MarkdownStreamParser()
    parser.add_chunk(FIXTURE.read_text(encoding="utf-8")[:200])

    assert parser.snapshot() == parser.snapshot()


def test_empty_chunk_changes_nothing() -> None:
    parser = MarkdownStreamParser()
    before = parser.add_chunk("## Word\nchat\n")
    after = parser.add_chunk("")

    assert before == after
    assert parser.chunk_count == 2
    assert parser.buffer == "## Word\nchat\n"


def test_non_string_chunk_is_rejected() -> None:
    parser = MarkdownStreamParser()
    with pytest.raises(TypeError):
        parser.add_chunk(None)  # type: ignore[arg-type]


def test_fields_never_disappear_once_present_under_char_by_char_growth() -> None:
    text = FIXTURE.read_text(encoding="utf-8")
    parser = MarkdownStreamParser()

    seen: dict[str, object] = {}
    for chunk in split_chunks(text, 1):
        snapshot = parser.add_chunk(chunk)
        for name in seen:
            assert getattr(snapshot, name) is not None, name
        for name in ("headword", "phonetic", "part_of_speech", "gender_marker", "meaning"):
            if name in seen:
                assert getattr(snapshot, name) == seen[name], name
        for name in snapshot.present_fields():
            seen.setdefault(name, getattr(snapshot, name))

    assert set(seen) == set(parser.finalize().present_fields())


@pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 16, 64, 4096])
def test_final_snapshot_does_not_depend_on_chunking(chunk_size: int) -> None:
    text = FIXTURE.read_text(encoding="utf-8")
    parser = MarkdownStreamParser()
    for chunk in split_chunks(text, chunk_size):
        parser.add_chunk(chunk)

    assert parser.finalize() == extract_entry(text, final=True)


def test_list_grows_line_by_line() -> None:
    parser = MarkdownStreamParser()

    assert parser.add_chunk("## Synonyms\n- **a** (x)\n- **b** (y").synonym_list == (
        Synonym(word="a", translation="x"),
    )
    assert parser.add_chunk(")\n").synonym_list == (
        Synonym(word="a", translation="x"),
        Synonym(word="b", translation="y"),
    )


def test_malformed_line_suppresses_list() -> None:
    parser = MarkdownStreamParser()
    assert parser.add_chunk("## Synonyms\n- **a** (x)\nbadline\n").synonym_list is None


def test_corrected_list_parses_in_order() -> None:
    parser = MarkdownStreamParser()
    snapshot = parser.add_chunk("## Synonyms\n- **a** (x)\n- **b** (y)\n")

    assert snapshot.synonym_list == (
        Synonym(word="a", translation="x"),
        Synonym(word="b", translation="y"),
    )


def test_finalize_reads_unterminated_tail() -> None:
    parser = MarkdownStreamParser()
    parser.add_chunk("## Word\nchat\n## Meaning\ncat")

    assert parser.snapshot().meaning is None
    final = parser.finalize()
    assert final.meaning == "cat"
    assert parser.finalize() == final


def test_parser_is_single_use() -> None:
    parser = MarkdownStreamParser()
    parser.add_chunk("## Word\nchat\n")
    parser.finalize()

    assert parser.finalized
    with pytest.raises(ParserFinalizedError):
        parser.add_chunk("more")

from __future__ import annotations

from lexistream.domain.models.entry import EntrySnapshot, Synonym
from lexistream.infrastructure.parsers.snapshot_emitter import EntryStream, SnapshotEmitter


def test_emitter_suppresses_equal_snapshots() -> None:
    emitter = SnapshotEmitter()
    first = EntrySnapshot(headword="chat")

    assert emitter.observe(EntrySnapshot.empty()) is None
    assert emitter.observe(first) is first
    assert emitter.observe(EntrySnapshot(headword="chat")) is None
    assert emitter.emitted == 1
    assert emitter.last == first


def test_emitter_compares_lists_deeply_and_in_order() -> None:
    emitter = SnapshotEmitter()
    ab = EntrySnapshot(synonym_list=(Synonym("a", "x"), Synonym("b", "y")))
    ba = EntrySnapshot(synonym_list=(Synonym("b", "y"), Synonym("a", "x")))

    assert emitter.observe(ab) is ab
    assert emitter.observe(EntrySnapshot(synonym_list=(Synonym("a", "x"), Synonym("b", "y")))) is None
    assert emitter.observe(ba) is ba


def test_emitter_distinguishes_empty_list_from_absent() -> None:
    emitter = SnapshotEmitter()
    assert emitter.observe(EntrySnapshot(example_list=())) is not None


def test_split_headword_emits_once_with_both_fields() -> None:
    stream = EntryStream()

    assert stream.feed("## Word\nch") is None
    update = stream.feed("at\n## IPA\n/ʃa/\n")

    assert update is not None
    assert update.headword == "chat"
    assert update.phonetic == "/ʃa/"
    assert stream.emitter.emitted == 1


def test_two_chunks_with_equal_snapshots_notify_once() -> None:
    stream = EntryStream()
    notifications = [
        stream.feed("## Word\nchat\n"),
        stream.feed("## Mean"),
    ]

    assert [n for n in notifications if n is not None] == [EntrySnapshot(headword="chat")]


def test_finalize_is_authoritative_after_a_suppressed_chunk() -> None:
    stream = EntryStream()
    stream.feed("## Word\nchat\n")
    assert stream.feed("## Meaning\ncat") is None

    final = stream.finalize()
    assert final == EntrySnapshot(headword="chat", meaning="cat")
    assert stream.emitter.last == EntrySnapshot(headword="chat")

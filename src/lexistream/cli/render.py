from __future__ import annotations

from rich.table import Table

from lexistream.domain.models.entry import EntrySnapshot


def entry_table(entry: EntrySnapshot, title: str = "Entry") -> Table:
    out = Table(title=title, show_lines=True)
    out.add_column("Field")
    out.add_column("Value", overflow="fold")

    for name, value in entry.to_dict().items():
        if isinstance(value, list):
            out.add_row(name, "\n".join(_format_item(item) for item in value) or "(none)")
        else:
            out.add_row(name, str(value))
    return out


def _format_item(item: dict[str, str]) -> str:
    if "word" in item:
        return f"{item['word']} ({item['translation']})"
    if "source" in item:
        return f"[{item['source']} | {item['formality']}] {item['original']} / {item['translation']}"
    return f"{item['original']} - {item['translation']}"

from __future__ import annotations

import importlib
import json
from pathlib import Path

from lexistream.cli.commands import web_cmd
from lexistream.cli.main import main
from lexistream.web.app import create_app

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "fatigue.md"


def test_parse_command_replays_file() -> None:
    assert main(["parse", str(FIXTURE), "--chunk-size", "9"]) == 0


def test_parse_command_missing_file(tmp_path: Path) -> None:
    assert main(["parse", str(tmp_path / "missing.md")]) == 1


def test_lookup_command_with_fallback(tmp_path: Path) -> None:
    markdown = tmp_path / "partial.md"
    markdown.write_text("## Word\nchat\n", encoding="utf-8")
    fallback = tmp_path / "entries.json"
    fallback.write_text(json.dumps({"chat": {"word": "chat", "meaning": "cat"}}), encoding="utf-8")

    code = main(
        ["lookup", "chat", "--markdown", str(markdown), "--fallback-json", str(fallback), "--delay", "0"]
    )
    assert code == 0


def test_lookup_command_without_fallback_fails(tmp_path: Path) -> None:
    markdown = tmp_path / "partial.md"
    markdown.write_text("## Word\nchat\n", encoding="utf-8")

    assert main(["lookup", "chat", "--markdown", str(markdown)]) == 1


def test_web_command_serves_app_factory_with_reload(monkeypatch) -> None:
    calls: list[tuple[str, dict]] = []
    monkeypatch.setattr(web_cmd.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    assert main(["web", "--reload", "--port", "0"]) == 0

    app, kwargs = calls[0]
    assert app == web_cmd.APP_FACTORY
    assert kwargs == {"factory": True, "host": "127.0.0.1", "port": 0, "reload": True}

    module_name, _, attr = app.partition(":")
    assert getattr(importlib.import_module(module_name), attr) is create_app

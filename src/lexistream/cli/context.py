from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from lexistream.application.services.lookup_cache import LookupCache
from lexistream.core.config import Settings


@dataclass(slots=True)
class CLIContext:
    settings: Settings
    console: Console
    cache: LookupCache

from __future__ import annotations

import argparse

import uvicorn

from lexistream.cli.context import CLIContext

# uvicorn only reloads apps it can re-import, so the app is always built
# through the factory.
APP_FACTORY = "lexistream.web.app:create_app"


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("web", help="Serve the streaming lookup API over SSE")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--reload", action="store_true", help="Restart the server when sources change")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.console.print(
        f"[bold]lexistream[/bold] on http://{args.host}:{args.port} "
        f"(chunk size {ctx.settings.chunk_size}, timeout {ctx.settings.stream_timeout_s}s)"
    )
    uvicorn.run(APP_FACTORY, factory=True, host=args.host, port=args.port, reload=args.reload)
    return 0

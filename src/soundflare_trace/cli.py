"""CLI entry point for SoundFlare Trace.

Usage:
    python -m soundflare_trace <command> [options]

Commands:
    dump   --trace KEY (--db PATH | --json FILE | --rest URL)
           Load a whole trace and print its turns with indented spans
    serve  (--db PATH | --json FILE)
           Run the JSON API on localhost

Unset options fall back to ~/.config/soundflare-trace/settings.json.
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Optional

from .errors import TraceError
from .models import ConversationTurn, FlatSpan
from .sources import DuckDBSpanSource, InMemorySpanSource, RestSpanSource
from .sources.base import SpanSource
from .tracing import AsyncTraceLoader, TraceViewer
from .utils.logger import log_context
from .utils.settings import get_settings


def format_span(flat: FlatSpan) -> str:
    span = flat.span
    duration = f"{span.duration_ms:.1f} ms" if span.duration_ms is not None else "-"
    marker = " !" if span.is_error else ""
    return f"{'  ' * (flat.level + 1)}{span.name or 'Unknown'}  ({duration}){marker}"


def format_turn(turn: ConversationTurn) -> str:
    lines = [
        f"[{turn.id}] {turn.title}  "
        f"{turn.span_count} span(s), {turn.duration:.1f} ms"
    ]
    lines.extend(format_span(flat) for flat in turn.spans)
    return "\n".join(lines)


def output_trace(viewer: TraceViewer, as_json: bool = False) -> None:
    """Print the loaded trace to stdout."""
    turns = viewer.get_turns()
    if as_json:
        payload = {
            "status": viewer.session.status(),
            "turns": [turn.to_dict() for turn in turns],
        }
        print(json.dumps(payload, indent=2, default=str))
        return

    status = viewer.session.status()
    print(
        f"Trace {viewer.trace_key}: {status['spans_loaded']} span(s), "
        f"{len(turns)} turn(s), {status['pages_loaded']} page(s)"
    )
    if not turns:
        print("  (no conversation turns)")
    for turn in turns:
        print(format_turn(turn))

    outside = status["span_count"] - sum(t.span_count for t in turns)
    if outside:
        print(f"({outside} span(s) before the first turn not shown)")


def _sync_source(args) -> SpanSource:
    settings = get_settings()
    if args.json:
        return InMemorySpanSource.from_json_file(args.json)
    db_path = args.db or settings.duckdb_path
    if not db_path:
        raise ValueError(
            "No span source: pass --db, --json or --rest, "
            "or set duckdb_path or rest_base_url"
        )
    return DuckDBSpanSource(db_path, table=settings.spans_table)


def _rest_base_url(args) -> Optional[str]:
    """REST endpoint to dump from: --rest, else settings when no local source is set."""
    if args.rest:
        return args.rest
    settings = get_settings()
    if args.json or args.db or settings.duckdb_path:
        return None
    return settings.rest_base_url or None


async def _dump_rest(args, base_url: str, page_size: int) -> TraceViewer:
    settings = get_settings()
    async with RestSpanSource(
        base_url,
        api_key=args.api_key,
        table=settings.spans_table,
        timeout=settings.fetch_timeout_seconds,
    ) as source:
        viewer = TraceViewer(page_size=page_size)
        viewer.open(args.trace)
        loader = AsyncTraceLoader(viewer, source)
        await loader.load_all()
        await loader.refresh_count()
        return viewer


def cmd_dump(args) -> None:
    """Handle dump command."""
    page_size = args.page_size or get_settings().page_size
    with log_context(trace_key=args.trace, auto_request_id=True):
        base_url = _rest_base_url(args)
        if base_url:
            viewer = asyncio.run(_dump_rest(args, base_url, page_size))
        else:
            viewer = TraceViewer(_sync_source(args), page_size)
            viewer.open(args.trace)
            viewer.load_all()
            viewer.refresh_count()

    if viewer.session.last_error:
        print(f"Warning: {viewer.session.last_error}", file=sys.stderr)
    output_trace(viewer, as_json=args.format == "json")


def cmd_serve(args) -> None:
    """Handle serve command."""
    from .api import TraceAPIServer

    settings = get_settings()
    page_size = args.page_size or settings.page_size
    server = TraceAPIServer(
        _sync_source(args),
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        page_size=page_size,
    )
    print(f"Serving traces on {server.url} (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soundflare-trace",
        description="Reconstruct voice-agent traces into conversation turns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    dump_parser = subparsers.add_parser("dump", help="Print a trace as turns")
    dump_parser.add_argument("--trace", required=True, help="Trace key to load")
    source_group = dump_parser.add_mutually_exclusive_group()
    source_group.add_argument("--db", help="DuckDB file holding the spans table")
    source_group.add_argument("--json", help="JSON export of span rows")
    source_group.add_argument("--rest", help="PostgREST base URL")
    dump_parser.add_argument(
        "--api-key",
        default=os.environ.get("SOUNDFLARE_API_KEY"),
        help="API key for --rest (default: $SOUNDFLARE_API_KEY)",
    )
    dump_parser.add_argument("--page-size", type=int, help="Spans per page")
    dump_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    dump_parser.set_defaults(func=cmd_dump)

    serve_parser = subparsers.add_parser("serve", help="Run the trace API")
    serve_group = serve_parser.add_mutually_exclusive_group()
    serve_group.add_argument("--db", help="DuckDB file holding the spans table")
    serve_group.add_argument("--json", help="JSON export of span rows")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to listen on")
    serve_parser.add_argument("--page-size", type=int, help="Spans per page")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        args.func(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except TraceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0

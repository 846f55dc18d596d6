"""
CLI tool for eventfn

Lists, serves, and locally invokes decorated functions.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_settings
from .decoders import parse_event_body
from .decorators import discover_functions, get_default_table
from .errors import ConfigError
from .logs import configure_logging
from .types import EventContext, EventEnvelope, HttpEnvelope, InvocationState, TriggerType


def parse_query(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Turn ["name=Alice", ...] into a dict"""
    query: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Invalid query parameter (expected key=value): {pair}")
        query[key] = value
    return query


def load_payload(data: Optional[str], data_file: Optional[str]) -> Any:
    """Read the JSON payload given with --data or --data-file"""
    if data and data_file:
        raise ValueError("Use either --data or --data-file, not both")
    if data_file:
        data = Path(data_file).read_text()
    if not data:
        return None
    return json.loads(data)


def build_envelope(trigger_type: TriggerType, payload: Any, query: Dict[str, str]):
    """Build the envelope a platform would deliver for a local call"""
    if trigger_type is TriggerType.HTTP:
        body = b"" if payload is None else json.dumps(payload).encode("utf-8")
        return HttpEnvelope(
            method="POST" if body else "GET",
            query_params=query,
            body=body,
            content_type="application/json" if body else None,
        )
    local = EventContext(event_id="local", event_type="local.call")
    if payload is None:
        return EventEnvelope(context=local)

    # Same body shapes the HTTP event route accepts
    envelope = parse_event_body(payload)
    if envelope.context == EventContext():
        envelope = replace(envelope, context=local)
    return envelope


def list_functions(source_dir: str, module_name: str) -> None:
    for entry in discover_functions(source_dir, module_name):
        trigger_info = f" -> {entry.route}" if entry.trigger_type is TriggerType.HTTP else ""
        print(f"{entry.name} ({entry.trigger_type.value}){trigger_info}")


def call_function(args: argparse.Namespace) -> int:
    from .runtime import invoke

    settings = load_settings(args.config, start=args.source_dir)
    configure_logging(settings.log_level, settings.log_format)

    discover_functions(args.source_dir, args.module)
    table = get_default_table()
    if args.name not in table:
        print(f"Error: function '{args.name}' not found (available: {', '.join(table.names())})")
        return 1

    entry = table.resolve(args.name)
    envelope = build_envelope(
        entry.trigger_type,
        load_payload(args.data, args.data_file),
        parse_query(args.query),
    )
    invocation = asyncio.run(invoke(args.name, envelope, table, settings=settings))

    if invocation.response is not None:
        print(f"HTTP {invocation.response.status_code}")
        print(invocation.response.body)
    else:
        print(invocation.state.value)
    return 0 if invocation.state is InvocationState.SUCCEEDED else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="eventfn",
        description="eventfn - serve and invoke event-driven functions",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # List command
    list_parser = subparsers.add_parser("list", help="List discovered functions")
    list_parser.add_argument("source_dir", help="Source directory containing functions")
    list_parser.add_argument("--module", "-m", default="functions", help="Functions module (default: functions)")

    # Run command
    run_parser = subparsers.add_parser("run", help="Serve functions over HTTP")
    run_parser.add_argument("source_dir", help="Source directory containing functions")
    run_parser.add_argument("--module", "-m", default="functions", help="Functions module (default: functions)")
    run_parser.add_argument("--function", "-f", help="Specific function to serve")
    run_parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on")
    run_parser.add_argument("--host", default=None, help="Interface to bind")
    run_parser.add_argument("--config", "-c", default=None, help="Path to eventfn.yaml (default: auto-detect)")

    # Call command
    call_parser = subparsers.add_parser("call", help="Invoke one function locally")
    call_parser.add_argument("source_dir", help="Source directory containing functions")
    call_parser.add_argument("name", help="Function to invoke")
    call_parser.add_argument("--module", "-m", default="functions", help="Functions module (default: functions)")
    call_parser.add_argument("--data", "-d", default=None, help="JSON payload")
    call_parser.add_argument("--data-file", default=None, help="File containing the JSON payload")
    call_parser.add_argument(
        "--query", "-q",
        action="append",
        default=None,
        help="Query parameter for HTTP functions (key=value, repeatable)",
    )
    call_parser.add_argument("--config", "-c", default=None, help="Path to eventfn.yaml (default: auto-detect)")

    args = parser.parse_args(argv)

    try:
        if args.command == "list":
            list_functions(args.source_dir, args.module)
        elif args.command == "run":
            from .runtime import run_function

            settings = load_settings(
                args.config,
                start=args.source_dir,
                port=args.port,
                host=args.host,
                function_target=args.function,
            )
            run_function(args.source_dir, args.module, args.function, settings)
        elif args.command == "call":
            return call_function(args)
        else:
            parser.print_help()
    except (FileNotFoundError, ConfigError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

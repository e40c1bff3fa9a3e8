from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Dict, List, Optional

from mcp.shared.exceptions import McpError

from lta_datamall.mcp_servers.datamall import server as datamall_server
from lta_datamall.mcp_servers.datamall.catalog import list_tool_descriptors

from .settings import AppSettings


def _parse_tool_args(pairs: List[str]) -> Dict[str, str]:
    """Turns ["busStopCode=83139", "serviceNo=15"] into a mapping. Values stay strings."""
    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Invalid --arg '{pair}'. Expected key=value.")
        out[key.strip()] = value
    return out


def _print_tools() -> int:
    tools = [t.model_dump(mode="json", by_alias=True, exclude_none=True) for t in list_tool_descriptors()]
    print(json.dumps(tools, indent=2))
    return 0


def _call(args: argparse.Namespace, s: AppSettings) -> int:
    dispatcher = datamall_server.build_dispatcher(s)
    try:
        result = dispatcher.call_tool_sync(args.tool, _parse_tool_args(args.arg))
    except McpError as e:
        print(f"Error ({e.error.code}): {e.error.message}", file=sys.stderr)
        return 2

    for block in result.content:
        print(getattr(block, "text", block))
    return 1 if result.isError else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lta-datamall",
        description="LTA DataMall MCP server CLI (serve over stdio, list tools, one-shot tool calls).",
    )

    parser.add_argument("--dotenv", type=str, default=".env", help="Path to .env file (default: .env)")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override LOG_LEVEL.",
    )

    # No subcommand means "serve", which is what MCP clients launch.
    sub = parser.add_subparsers(dest="cmd", required=False)

    sub.add_parser("serve", help="Run the MCP server on stdio.")
    sub.add_parser("tools", help="Print the tool catalog as JSON.")

    p_call = sub.add_parser("call", help="Invoke one tool against DataMall and print the result.")
    p_call.add_argument("tool", type=str, help="Tool name, e.g. bus_arrival")
    p_call.add_argument(
        "--arg",
        "-a",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Tool argument; repeat for several (e.g. -a busStopCode=83139 -a serviceNo=15).",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = AppSettings.load(args.dotenv)
    if args.log_level:
        settings = replace(settings, log_level=args.log_level)

    if args.cmd is None or args.cmd == "serve":
        datamall_server.main(settings)
        return

    datamall_server.configure_logging(settings.log_level)
    if args.cmd == "tools":
        raise SystemExit(_print_tools())
    elif args.cmd == "call":
        raise SystemExit(_call(args, settings))
    else:
        raise SystemExit(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    main()

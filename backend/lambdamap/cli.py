"""
lambdamap command line interface.

`serve` starts the HTTP surface; `discover` runs one discovery pass and
prints the graph to stdout.
"""

import argparse
import json
import sys

from lambdamap.compiler.layout import compute_layout
from lambdamap.compiler.render_mermaid import render_mermaid
from lambdamap.config import LOG_LEVEL, PORT, get_settings
from lambdamap.logging_setup import setup_logging
from lambdamap.pipeline.discovery import run_discovery


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="lambdamap",
        description="Discover the topology of a Lambda fleet",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=PORT, help="Port")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload")

    discover_parser = subparsers.add_parser("discover", help="Run discovery once")
    discover_parser.add_argument("--format", choices=["json", "mermaid"], default="json")
    discover_parser.add_argument(
        "--layout", action="store_true", help="Include layer and position per node (json only)"
    )
    discover_parser.add_argument("--region", help="Override the AWS region")
    discover_parser.add_argument(
        "--no-code", action="store_true", help="Skip deployment package analysis"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "serve":
        from lambdamap.main import run_server
        run_server(host=args.host, port=args.port, reload=args.reload)
        return 0

    setup_logging(LOG_LEVEL)
    return cmd_discover(args.format, args.layout, args.region, args.no_code)


def cmd_discover(fmt: str, layout: bool, region=None, no_code: bool = False) -> int:
    settings = get_settings()
    if region:
        settings.region = region
    if no_code:
        settings.analyze_code = False

    result = run_discovery(settings)

    if fmt == "mermaid":
        print(render_mermaid(result.graph))
    else:
        payload = result.to_dict()
        if layout:
            payload["graph"] = compute_layout(result.graph).to_dict()
        print(json.dumps(payload, indent=2))

    if not result.ok:
        print(f"Error: {result.fatal_error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command line entry: analyze a lease PDF or run the HTTP API."""

from __future__ import annotations

import argparse
from typing import List, Optional

from cli.analyze import run_analyze_cli


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="RentSight launcher")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Summarize a lease PDF and list potential issues.")
    analyze.add_argument("pdf", help="Path to the PDF file.")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.command == "analyze":
        return run_analyze_cli(args.pdf)

    import uvicorn

    uvicorn.run("server.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

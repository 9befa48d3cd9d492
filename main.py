# main.py
"""
Command-line entry point.

    python main.py convert invoice.xml            # print normalized JSON
    python main.py convert invoice.xml --no-strip # keep namespace prefixes
    python main.py serve                          # run the HTTP API
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from invoice_graph import explain_result, run_conversion
from logging_config import get_logger
from settings import get_settings

logger = get_logger("xml2json.cli")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Normalize XML invoices into JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="convert one XML file and print the result")
    convert.add_argument("file", type=Path, help="XML invoice file")
    convert.add_argument("--no-strip", action="store_true", help="do not strip namespace prefixes")

    sub.add_parser("serve", help="run the HTTP API with uvicorn")
    return parser.parse_args(argv)


def convert_file(path: Path, strip: bool = True) -> int:
    try:
        xml = path.read_bytes()
    except OSError as e:
        logger.error("cannot read %s: %s", path, e)
        return 2
    report = run_conversion(xml, strip=strip)
    print(json.dumps(report["body"], indent=2, ensure_ascii=False))
    logger.info(explain_result(report))
    return 0 if report["body"].get("ok") else 1


def serve() -> int:
    import uvicorn
    settings = get_settings()
    uvicorn.run("api:app", host=settings.host, port=settings.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    if args.command == "convert":
        return convert_file(args.file, strip=not args.no_strip)
    return serve()


if __name__ == "__main__":
    sys.exit(main())

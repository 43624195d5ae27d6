# bimeter/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional

from bimeter.app.config import DEFAULT_MODEL
from bimeter.core.context import DEFAULT_METADATA_DIR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bimeter")
    parser.add_argument(
        "--metadata-dir",
        default=str(DEFAULT_METADATA_DIR),
        help="Directory holding devices.yml (default: packaged tables).",
    )
    parser.add_argument("--model", default=DEFAULT_MODEL, help="Device model from devices.yml.")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("models", help="List known device models.")
    sub.add_parser("datapoints", help="Show the datapoint table of --model.")

    pr = sub.add_parser("replay", help="Replay a JSON-lines message capture.")
    pr.add_argument("capture", help="Capture file, one message per line.")
    pr.add_argument("--options", default=None, help="YAML file with reassembly options.")
    pr.add_argument("--state", default=None, help="JSON file to restore/save device state.")
    pr.add_argument("--out", default=None, help="Append updates to this JSON-lines file.")
    pr.add_argument("--device", default="device", help="Device id for lines without one.")
    pr.add_argument("--quiet", action="store_true", help="Do not print updates.")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)

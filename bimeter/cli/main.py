# bimeter/cli/main.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from bimeter.core.errors import MeterError

from bimeter.cli.args import parse_args
from bimeter.cli.commands import (
    cmd_datapoints,
    cmd_models,
    cmd_replay,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(
        verbose=args.verbose,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        if args.cmd == "models":
            return cmd_models(args)
        if args.cmd == "datapoints":
            return cmd_datapoints(args)
        if args.cmd == "replay":
            return cmd_replay(args)

        return 2
    except MeterError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

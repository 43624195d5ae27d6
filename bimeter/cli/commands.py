# bimeter/cli/commands.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from bimeter.app.capture import read_capture
from bimeter.app.config import BimeterConfig
from bimeter.app.runner import finish_run, replay, start_run
from bimeter.app.sinks import JsonlUpdateSink
from bimeter.core.context import Context
from bimeter.interfaces import UpdateSink
from bimeter.runtime.messages import MeterUpdate


# ---------------- Update sink ----------------

class PrintUpdateSink(UpdateSink):
    """Print updates to stdout."""

    def on_update(self, update: MeterUpdate) -> None:
        status = update.sequence_status.value if update.sequence_status else "-"
        print(f"UPDATE {update.device_id} seq={update.sequence} ({status}) -> {update.values}")

    def close(self) -> None:
        return None

# ---------------- Logging ----------------

def configure_logging(*, verbose: bool = False, log_file: Optional[Path] = None) -> None:
    root = logging.getLogger()
    level = logging.DEBUG if verbose else logging.WARNING
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    root.setLevel(level)
    if log_file is not None:
        configure_file_logging(log_file)


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)

# ---------------- Commands ----------------

def cmd_models(args) -> int:
    ctx = Context.load(args.metadata_dir)
    for name in sorted(ctx.models):
        m = ctx.models[name]
        print(
            f"{name}: datapoints={len(m.datapoints)} seq_inc={m.sequence_increment} "
            f"reverse_code={m.reverse_code}"
        )
    return 0


def cmd_datapoints(args) -> int:
    model = Context.load(args.metadata_dir).model(args.model)

    print(f"{model.name} (seq_inc={model.sequence_increment}, reverse_code={model.reverse_code})\n")
    for dp in sorted(model.datapoints, key=lambda d: d.dp_id):
        unit = f" [{dp.unit}]" if dp.unit else ""
        scale = f" /{dp.divisor:g}" if dp.divisor != 1 else ""
        print(f"  {dp.dp_id:>4}  {dp.field_name:<22} {dp.kind.value:<13}{scale}{unit}")
    return 0


def cmd_replay(args) -> int:
    cfg = BimeterConfig(
        metadata_dir=args.metadata_dir,
        model=args.model,
        options_path=args.options,
        state_path=args.state,
    )
    run = start_run(cfg)

    sinks: list[UpdateSink] = []
    if not args.quiet:
        sinks.append(PrintUpdateSink())
    if args.out:
        sinks.append(JsonlUpdateSink(args.out))

    try:
        stats = replay(run, read_capture(args.capture, default_device=args.device), sinks)
    finally:
        for s in sinks:
            s.close()

    finish_run(run)
    print(
        f"Replayed {stats.messages} messages ({stats.time_syncs} time syncs): "
        f"{stats.updates} updates, {stats.gaps} gaps, {stats.duplicates} duplicates"
    )
    return 0

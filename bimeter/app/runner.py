# bimeter/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from bimeter.app.capture import CaptureEvent, TimeSync
from bimeter.app.config import BimeterConfig, load_options
from bimeter.core.context import Context
from bimeter.core.state_store import DeviceStateStore
from bimeter.interfaces.update_sink import UpdateSink
from bimeter.runtime.reassembler import Reassembler
from bimeter.runtime.sequence import SequenceStatus


@dataclass(frozen=True)
class AppRun:
    config: BimeterConfig
    context: Context
    store: DeviceStateStore
    reassembler: Reassembler


@dataclass
class ReplayStats:
    messages: int = 0
    time_syncs: int = 0
    updates: int = 0
    gaps: int = 0
    duplicates: int = 0


def start_run(
    cfg: BimeterConfig,
    *,
    context: Optional[Context] = None,
    logger: Optional[logging.Logger] = None,
) -> AppRun:
    log = logger or logging.getLogger(__name__)

    context = context or Context.load(cfg.metadata_dir)
    model = context.model(cfg.model)
    options = load_options(cfg.options_path)

    store = DeviceStateStore.load_json(cfg.state_path) if cfg.state_path else DeviceStateStore()
    log.info(
        "RUN_START model=%s devices_restored=%d options=%s",
        model.name,
        len(store),
        options.as_dict(),
    )

    reassembler = Reassembler(model, store=store, options=options, logger=log)
    return AppRun(config=cfg, context=context, store=store, reassembler=reassembler)


def replay(run: AppRun, events: Iterable[CaptureEvent], sinks: Sequence[UpdateSink] = ()) -> ReplayStats:
    """Feed captured events through the reassembler, fanning updates out to sinks."""
    stats = ReplayStats()
    for ev in events:
        if isinstance(ev, TimeSync):
            run.reassembler.process_time_sync(ev.device_id)
            stats.time_syncs += 1
            continue

        update = run.reassembler.process(ev)
        stats.messages += 1
        if update.sequence_status is SequenceStatus.GAP:
            stats.gaps += 1
        elif update.sequence_status is SequenceStatus.DUPLICATE:
            stats.duplicates += 1

        if not update:
            continue
        stats.updates += 1
        for sink in sinks:
            sink.on_update(update)
    return stats


def finish_run(run: AppRun) -> None:
    if run.config.state_path:
        run.store.save_json(run.config.state_path)
        logging.getLogger(__name__).info("STATE_SAVED path=%s devices=%d", run.config.state_path, len(run.store))

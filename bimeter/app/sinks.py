# bimeter/app/sinks.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, TextIO

from bimeter.interfaces.update_sink import UpdateSink
from bimeter.runtime.messages import MeterUpdate


class JsonlUpdateSink(UpdateSink):
    """
    Appends every non-empty update to a JSON-lines file:

        {"device_id": ..., "sequence": ..., "sequence_status": ..., "values": {...}}
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._f: Optional[TextIO] = open(self._path, "a", encoding="utf-8")
        self._log = logging.getLogger(__name__)
        self._written = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def written(self) -> int:
        return self._written

    def on_update(self, update: MeterUpdate) -> None:
        if self._f is None or not update:
            return
        self._f.write(json.dumps(update.as_dict(), ensure_ascii=False) + "\n")
        self._written += 1

    def close(self) -> None:
        f, self._f = self._f, None
        if f is not None:
            f.close()
            self._log.info("UPDATES_WRITTEN path=%s count=%d", self._path, self._written)

# bimeter/interfaces/update_sink.py
from typing import Protocol
from bimeter.runtime.messages import MeterUpdate


class UpdateSink(Protocol):
    def on_update(self, update: MeterUpdate) -> None: ...
    def close(self) -> None: ...

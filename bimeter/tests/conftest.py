from __future__ import annotations

import pytest

from bimeter.core.context import DEFAULT_METADATA_DIR
from bimeter.model.loader import MetadataLoader
from bimeter.runtime.options import MeterOptions
from bimeter.runtime.reassembler import Reassembler

T0 = "2024-05-01T12:00:00+00:00"


@pytest.fixture
def pj_model():
    loader = MetadataLoader(DEFAULT_METADATA_DIR)
    loader.load_all()
    return loader.get_model("PJ-1203A")


@pytest.fixture
def make_reassembler(pj_model):
    def _make(**opts) -> Reassembler:
        return Reassembler(pj_model, options=MeterOptions(**opts), clock=lambda: T0)

    return _make

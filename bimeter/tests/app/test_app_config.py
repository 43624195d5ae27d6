from __future__ import annotations

from pathlib import Path

import pytest

from bimeter.app.config import load_options
from bimeter.core.errors import OptionsError
from bimeter.runtime.options import MeterOptions, MissingDataDisposition, TriggerMode


def test_no_path_means_defaults():
    assert load_options(None) == MeterOptions()


def test_yaml_options_file(tmp_path: Path):
    p = tmp_path / "options.yml"
    p.write_text(
        "late_energy_flow_b: true\nmissing_data_behavior: nullify_missing\n",
        encoding="utf-8",
    )
    o = load_options(p)
    assert o.trigger_b is TriggerMode.ENERGY_FLOW
    assert o.missing_data_disposition is MissingDataDisposition.NULLIFY_MISSING


def test_empty_file_means_defaults(tmp_path: Path):
    p = tmp_path / "options.yml"
    p.write_text("", encoding="utf-8")
    assert load_options(p) == MeterOptions()


@pytest.mark.parametrize("text", ["- a\n- b\n", "a: [\n"])
def test_bad_options_file(tmp_path: Path, text):
    p = tmp_path / "options.yml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(OptionsError):
        load_options(p)


def test_missing_options_file(tmp_path: Path):
    with pytest.raises(OptionsError):
        load_options(tmp_path / "nope.yml")

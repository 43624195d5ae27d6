# bimeter/app/config.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from bimeter.core.context import DEFAULT_METADATA_DIR
from bimeter.core.errors import OptionsError
from bimeter.runtime.options import MeterOptions

DEFAULT_MODEL = "PJ-1203A"


@dataclass(frozen=True)
class BimeterConfig:
    metadata_dir: str | Path = DEFAULT_METADATA_DIR
    model: str = DEFAULT_MODEL
    options_path: Optional[str | Path] = None
    state_path: Optional[str | Path] = None


def load_options(path: str | Path | None) -> MeterOptions:
    """
    Read reassembly options from a YAML mapping, e.g.

        late_energy_flow_a: true
        signed_power_a: true
        missing_data_behavior: nullify_missing

    No path means defaults.
    """
    if path is None:
        return MeterOptions()

    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise OptionsError(f"Options file not found: {path}") from None
    except yaml.YAMLError as e:
        raise OptionsError(f"Options file is not valid YAML: {path}", hint=str(e)) from None

    if not isinstance(data, dict):
        raise OptionsError(f"Options file must contain a mapping: {path}")

    return MeterOptions.from_mapping(data)

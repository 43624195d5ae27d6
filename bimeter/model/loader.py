# bimeter/model/loader.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import yaml

from bimeter.utils.hashing import fingerprint_files
from .datapoint import Datapoint
from .meter import DEFAULT_SEQUENCE_INCREMENT, MeterModel


class MetadataLoader:
    """
    Loads the static datapoint tables from YAML into MeterModel objects.

    Loads:
        - devices.yml

    After calling load_all(), exposes:
        self.models      : dict[str, MeterModel]
        self.file_hashes : dict[str, str]  (filename -> sha256)
    """

    REQUIRED_FILES = ("devices.yml",)

    def __init__(self, config_dir: str | Path):
        self.config_dir = Path(config_dir)
        self.models: Dict[str, MeterModel] = {}
        self.file_hashes: Dict[str, str] = {}

    # ---------------------------------------------------------------------
    # YAML utility
    # ---------------------------------------------------------------------
    def _load_yaml(self, filename: str) -> dict:
        full_path = self.config_dir / filename
        if not full_path.exists():
            raise FileNotFoundError(f"Missing metadata file: {full_path}")

        with open(full_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    # ---------------------------------------------------------------------
    # Public entry point
    # ---------------------------------------------------------------------
    def load_all(self) -> None:
        """Load all device models + compute file hashes."""
        self.models.clear()
        self.file_hashes.clear()

        self.file_hashes.update(fingerprint_files(self.config_dir, self.REQUIRED_FILES))
        self._load_devices()

    # ---------------------------------------------------------------------
    # Devices
    # ---------------------------------------------------------------------
    def _load_devices(self) -> None:
        data = self._load_yaml("devices.yml")

        devices = data.get("devices")
        if not isinstance(devices, dict):
            raise ValueError("devices.yml is missing 'devices' root node")

        for name_raw, dinfo in devices.items():
            name = str(name_raw)
            if not isinstance(dinfo, dict):
                raise ValueError(f"Device '{name}' entry must be a mapping")

            model = MeterModel(
                name=name,
                sequence_increment=int(dinfo.get("sequence_increment", DEFAULT_SEQUENCE_INCREMENT)),
                reverse_code=int(dinfo.get("reverse_code", 1)),
                power_scale=int(dinfo.get("power_scale", 10)),
            )

            datapoints = dinfo.get("datapoints") or {}
            if not isinstance(datapoints, dict):
                raise ValueError(f"Device '{name}' 'datapoints' must be a mapping")

            for dp_raw, dpinfo in datapoints.items():
                dp_id = int(dp_raw)
                if not isinstance(dpinfo, dict):
                    raise ValueError(f"Device '{name}' datapoint {dp_id} entry must be a mapping")

                divisor = dpinfo.get("divisor", 1)
                if not isinstance(divisor, (int, float)):
                    raise ValueError(f"Device '{name}' datapoint {dp_id} divisor must be numeric")

                dp = Datapoint(
                    dp_id=dp_id,
                    name=str(dpinfo.get("name", "")),
                    kind=str(dpinfo.get("kind", "passthrough")),
                    channel=dpinfo.get("channel"),
                    divisor=divisor,
                    unit=str(dpinfo.get("unit", "")),
                )
                model.add_datapoint(dp)

            self.models[name] = model

    # ---------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------
    def get_model(self, name: str) -> Optional[MeterModel]:
        return self.models.get(name)

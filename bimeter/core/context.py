# bimeter/core/context.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import yaml

from bimeter.model.loader import MetadataLoader
from bimeter.model.meter import MeterModel

from bimeter.core.errors import MetadataConfigError

DEFAULT_METADATA_DIR = Path(__file__).resolve().parents[1] / "metadata"


@dataclass(frozen=True)
class Context:
    models: Dict[str, MeterModel]
    metadata_hashes: Dict[str, str]

    @classmethod
    def load(cls, metadata_dir: str | Path = DEFAULT_METADATA_DIR) -> "Context":
        """Load the datapoint tables found in metadata_dir."""
        metadata_dir = Path(metadata_dir)

        ml = MetadataLoader(metadata_dir)
        try:
            ml.load_all()
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            raise MetadataConfigError(
                "Failed to load metadata.",
                hint=str(e),
                details={"metadata_dir": str(metadata_dir)},
            ) from None
        except Exception as e:
            raise MetadataConfigError(
                "Unexpected error while loading metadata.",
                hint=str(e),
                details={"metadata_dir": str(metadata_dir)},
            ) from None

        return cls(models=dict(ml.models), metadata_hashes=dict(ml.file_hashes))

    def model(self, name: str) -> MeterModel:
        m = self.models.get(name)
        if m is None:
            raise MetadataConfigError(
                f"Unknown device model '{name}'.",
                hint="known models: " + ", ".join(sorted(self.models)) if self.models else None,
            )
        return m

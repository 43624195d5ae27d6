# bimeter/utils/hashing.py
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, Iterable


def sha256_file(path: Path) -> str:
    """
    SHA256 of a metadata file, streamed in 64 KiB chunks.
    Returns lowercase hex digest.
    """
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def fingerprint_files(config_dir: Path, filenames: Iterable[str]) -> Dict[str, str]:
    """filename -> sha256 for each file under config_dir (all must exist)."""
    config_dir = Path(config_dir)
    out: Dict[str, str] = {}
    for fn in filenames:
        path = config_dir / fn
        if not path.exists():
            raise FileNotFoundError(f"Missing metadata file: {path}")
        out[fn] = sha256_file(path)
    return out

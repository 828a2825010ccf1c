import os
import re
from pathlib import Path
from typing import Optional

_KEY_RE = re.compile(r"^[A-Za-z0-9._-]+$")

class SlotStorage:
    """Durable key-value slots, one JSON file per key under ``root``."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key or ""):
            raise ValueError(f"Invalid slot key: {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        p = self._path(key)
        self.root.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(".json.tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, p)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise


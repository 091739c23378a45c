"""Native hash crossmap: resolves any known (possibly superseded) native hash
to the original hash the native was first published under.

The file is YAML (or JSON) in one of two shapes:

    # mapping: canonical -> later hashes
    "0x4EDE34FBADD967A6": ["0x7715C03B", "0xD2C9A7F1D4F37F3E"]

    # rows: canonical first, then its later hashes
    - ["0x4EDE34FBADD967A6", "0x7715C03B"]

Hashes are ints or hex strings; quote bare hex so YAML does not read
all-digit values as decimal.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml

log = logging.getLogger(__name__)


class CrossmapError(ValueError):
    pass


def _hash(value) -> int:
    if isinstance(value, bool):
        raise CrossmapError(f"not a native hash: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text, 16)
    except ValueError:
        raise CrossmapError(f"not a native hash: {value!r}") from None


class Crossmap:
    def __init__(self, rows: Iterable[Iterable] = ()):
        self._canonical: Dict[int, int] = {}
        for row in rows:
            self.add_row(row)

    def add_row(self, row: Iterable):
        hashes = [_hash(h) for h in row]
        if not hashes:
            return
        canonical = hashes[0]
        for h in hashes:
            self._canonical[h] = canonical

    def __call__(self, native_hash: int) -> Optional[int]:
        return self._canonical.get(native_hash)

    def __len__(self):
        return len(self._canonical)

    @classmethod
    def from_data(cls, data) -> "Crossmap":
        if data is None:
            return cls()
        if isinstance(data, dict):
            rows = []
            for canonical, later in data.items():
                if later is None:
                    later = []
                elif not isinstance(later, list):
                    later = [later]
                rows.append([canonical, *later])
            return cls(rows)
        if isinstance(data, list):
            if not all(isinstance(row, list) for row in data):
                raise CrossmapError("crossmap rows must be lists of hashes")
            return cls(data)
        raise CrossmapError(f"unsupported crossmap document: {type(data).__name__}")

    @classmethod
    def load(cls, path) -> "Crossmap":
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise CrossmapError(f"{path}: {e}") from e
        cmap = cls.from_data(data)
        log.info("Loaded %d crossmap hashes from %s", len(cmap), path)
        return cmap


def identity_crossmap(native_hash: int) -> Optional[int]:
    """Every hash is its own canonical hash."""
    return native_hash

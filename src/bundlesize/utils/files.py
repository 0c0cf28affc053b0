"""Utility helpers for working with files."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_dirname(name: str) -> str:
    """Map an arbitrary bundle id onto a single flat directory name."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "entry"


def atomic_write_text(path: Path, content: str) -> None:
    """Write text so readers only ever see the old or the complete new content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

"""Normalization of configured entrypoints into uniform descriptors."""

from __future__ import annotations

import fnmatch
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from bundlesize.errors import ConfigError
from bundlesize.models import EntryDescriptor, EntrySource, ImportSpec, InlineCode

LOGGER = logging.getLogger(__name__)

DEFAULT_EXTERNALS: Tuple[str, ...] = ("react", "react-dom")

_GLOB_CHARS = ("*", "?", "[")


def _entry_source(raw: dict) -> Optional[EntrySource]:
    code = raw.get("code")
    module = raw.get("import")
    if code:
        return InlineCode(code=code)
    if module:
        return ImportSpec(module=module, imported_names=tuple(raw.get("imported_names") or ()))
    return None


def normalize_entry(raw: str | dict) -> EntryDescriptor:
    """Turn one raw entrypoint (string or mapping) into an :class:`EntryDescriptor`."""
    if isinstance(raw, str):
        if not raw.strip():
            raise ConfigError("Entrypoint strings must not be empty")
        return EntryDescriptor(id=raw, source=ImportSpec(module=raw))

    entry_id = raw.get("id")
    if not entry_id:
        raise ConfigError("Each entrypoint object needs a non-empty id")

    source = _entry_source(raw)
    if source is None:
        raise ConfigError(f'Entry "{entry_id}" must have either code or import property defined')

    externals = raw.get("externals")
    return EntryDescriptor(
        id=entry_id,
        source=source,
        externals=tuple(externals) if externals is not None else None,
    )


def normalize_entries(raw_entries: Iterable[str | dict]) -> List[EntryDescriptor]:
    """Normalize all entrypoints, rejecting duplicate ids."""
    entries: List[EntryDescriptor] = []
    seen: set[str] = set()
    for raw in raw_entries:
        entry = normalize_entry(raw)
        if entry.id in seen:
            raise ConfigError(f"Duplicate entrypoint id: {entry.id}")
        seen.add(entry.id)
        entries.append(entry)
    return entries


def _matches(entry_id: str, pattern: str) -> bool:
    if any(char in pattern for char in _GLOB_CHARS):
        return fnmatch.fnmatchcase(entry_id.lower(), pattern.lower())
    return pattern.lower() in entry_id.lower()


def filter_entries(entries: Sequence[EntryDescriptor], patterns: Sequence[str]) -> List[EntryDescriptor]:
    """Keep entries whose id matches any of the glob or substring patterns."""
    if not patterns:
        return list(entries)
    selected = [entry for entry in entries if any(_matches(entry.id, p) for p in patterns)]
    if not selected:
        LOGGER.warning("No entries match the provided filter pattern(s)")
    return selected


def read_peer_dependencies(package: str, root_dir: Path) -> Optional[Tuple[str, ...]]:
    """Return the peer dependency names declared by an installed package, if any."""
    package_json = root_dir / "node_modules" / package / "package.json"
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.warning("Could not resolve peer dependencies for %s: %s", package, exc)
        return None
    peers = data.get("peerDependencies")
    if not peers:
        return None
    return tuple(peers)


def resolve_externals(entry: EntryDescriptor, root_dir: Path) -> Tuple[str, ...]:
    """Pick externals: explicit ones, else the package's peer dependencies, else the defaults."""
    if entry.externals is not None:
        return entry.externals
    if isinstance(entry.source, ImportSpec):
        peers = read_peer_dependencies(entry.source.package_root, root_dir)
        if peers is not None:
            return peers
    return DEFAULT_EXTERNALS

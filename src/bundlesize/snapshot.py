"""Size snapshot serialization and file IO."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter, ValidationError

from bundlesize.errors import SnapshotFormatError
from bundlesize.models import SizeEntry, SizeSnapshot
from bundlesize.utils.files import atomic_write_text

SNAPSHOT_FILENAME = "size-snapshot.json"


class _SizeEntryModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parsed: StrictInt = Field(ge=0)
    gzip: StrictInt = Field(ge=0)


_SNAPSHOT_ADAPTER = TypeAdapter(Dict[str, _SizeEntryModel])


def merge_sizes(pairs: Iterable[Tuple[str, SizeEntry]]) -> SizeSnapshot:
    """Merge (id, size) pairs into a snapshot sorted by id; later pairs win on collision."""
    merged: SizeSnapshot = {}
    for bundle_id, size in pairs:
        merged[bundle_id] = size
    return {bundle_id: merged[bundle_id] for bundle_id in sorted(merged)}


def snapshot_to_dict(snapshot: SizeSnapshot) -> Dict[str, Dict[str, int]]:
    return {bundle_id: snapshot[bundle_id].to_dict() for bundle_id in sorted(snapshot)}


def dumps_snapshot(snapshot: SizeSnapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2, sort_keys=True) + "\n"


def parse_snapshot(data: Any) -> SizeSnapshot:
    """Validate decoded JSON and convert it into a snapshot."""
    try:
        validated = _SNAPSHOT_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise SnapshotFormatError(f"Malformed size snapshot: {exc}") from exc
    return merge_sizes((key, SizeEntry(parsed=value.parsed, gzip=value.gzip)) for key, value in validated.items())


def loads_snapshot(text: str | bytes) -> SizeSnapshot:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise SnapshotFormatError(f"Size snapshot is not valid JSON: {exc}") from exc
    return parse_snapshot(data)


def read_snapshot(path: Path) -> SizeSnapshot:
    return loads_snapshot(Path(path).read_bytes())


def write_snapshot(path: Path, snapshot: SizeSnapshot) -> Path:
    """Persist the snapshot in one atomic write."""
    path = Path(path)
    atomic_write_text(path, dumps_snapshot(snapshot))
    return path

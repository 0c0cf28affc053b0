"""Core bundlesize data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True, slots=True)
class InlineCode:
    """Entry whose module source is given verbatim."""

    code: str


@dataclass(frozen=True, slots=True)
class ImportSpec:
    """Entry that imports a module, optionally only some named exports."""

    module: str
    imported_names: Tuple[str, ...] = ()

    @property
    def package_root(self) -> str:
        parts = self.module.split("/")
        return "/".join(parts[:2] if self.module.startswith("@") else parts[:1])


EntrySource = Union[InlineCode, ImportSpec]


@dataclass(frozen=True, slots=True)
class EntryDescriptor:
    """One configured bundle entrypoint.

    ``externals`` of ``None`` means they are derived when the entry is built.
    """

    id: str
    source: EntrySource
    externals: Optional[Tuple[str, ...]] = None

    def describe(self) -> str:
        if isinstance(self.source, InlineCode):
            return "code import"
        names = ", ".join(self.source.imported_names) or "*"
        return f"{self.source.module} [{names}]"


@dataclass(frozen=True, slots=True)
class ManifestChunk:
    """A single chunk as reported by the bundler manifest."""

    file: str
    name: Optional[str] = None
    is_entry: bool = False
    is_dynamic_entry: bool = False
    imports: Tuple[str, ...] = ()
    dynamic_imports: Tuple[str, ...] = ()


Manifest = Dict[str, ManifestChunk]


def parse_manifest(raw: Mapping[str, Mapping[str, Any]]) -> Manifest:
    """Convert a vite-style JSON manifest into :class:`ManifestChunk` records."""
    manifest: Manifest = {}
    for key, chunk in raw.items():
        manifest[key] = ManifestChunk(
            file=chunk["file"],
            name=chunk.get("name"),
            is_entry=bool(chunk.get("isEntry", False)),
            is_dynamic_entry=bool(chunk.get("isDynamicEntry", False)),
            imports=tuple(chunk.get("imports") or ()),
            dynamic_imports=tuple(chunk.get("dynamicImports") or ()),
        )
    return manifest


@dataclass(frozen=True, slots=True)
class SizeEntry:
    parsed: int
    gzip: int

    def to_dict(self) -> Dict[str, int]:
        return {"parsed": self.parsed, "gzip": self.gzip}


SizeSnapshot = Dict[str, SizeEntry]

# Sentinel relative diffs, kept as ints so JSON output is exactly -1 / 0.
REMOVED = -1
NO_CHANGE = 0


@dataclass(slots=True)
class MetricDiff:
    previous: int
    current: int
    absolute_diff: int
    relative_diff: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "previous": self.previous,
            "current": self.current,
            "absoluteDiff": self.absolute_diff,
            "relativeDiff": self.relative_diff,
        }


@dataclass(slots=True)
class ComparisonEntry:
    id: str
    parsed: MetricDiff
    gzip: MetricDiff
    is_new: bool = False
    is_removed: bool = False

    @property
    def is_changed(self) -> bool:
        return self.is_new or self.is_removed or self.parsed.absolute_diff != 0 or self.gzip.absolute_diff != 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "parsed": self.parsed.to_dict(), "gzip": self.gzip.to_dict()}


@dataclass(slots=True)
class Totals:
    total_parsed: int = 0
    total_gzip: int = 0
    total_parsed_percent: float = 0
    total_gzip_percent: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalParsed": self.total_parsed,
            "totalGzip": self.total_gzip,
            "totalParsedPercent": self.total_parsed_percent,
            "totalGzipPercent": self.total_gzip_percent,
        }


@dataclass(slots=True)
class FileCounts:
    added: int = 0
    removed: int = 0
    changed: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "added": self.added,
            "removed": self.removed,
            "changed": self.changed,
            "total": self.total,
        }


@dataclass(slots=True)
class ComparisonResult:
    """Outcome of diffing two snapshots, entries in display order."""

    entries: List[ComparisonEntry] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    file_counts: FileCounts = field(default_factory=FileCounts)

    def get(self, bundle_id: str) -> Optional[ComparisonEntry]:
        for entry in self.entries:
            if entry.id == bundle_id:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "totals": self.totals.to_dict(),
            "fileCounts": self.file_counts.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ResolvedSnapshot:
    snapshot: Optional[SizeSnapshot]
    actual_commit: Optional[str]


@dataclass(frozen=True, slots=True)
class PullRequestInfo:
    """The subset of GitHub pull request metadata used for reporting."""

    number: int
    repo: str
    base_ref: str
    base_sha: str
    head_sha: str

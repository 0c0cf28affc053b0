"""Application configuration: file loading, validation and CI defaults."""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bundlesize.entries import normalize_entries
from bundlesize.errors import ConfigError
from bundlesize.models import EntryDescriptor

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAMES = ("bundle-size-checker.toml", "bundle-size-checker.json")
DEFAULT_STORAGE_URL = "https://s3.eu-central-1.amazonaws.com/mui-org-ci/artifacts"
DEFAULT_DETAILS_URL = "https://frontend-public.mui.com/size-comparison"
DEFAULT_FALLBACK_DEPTH = 3
DEFAULT_MAX_DETAILS_LINES = 100


class EntryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str
    code: Optional[str] = None
    import_: Optional[str] = Field(default=None, alias="import")
    imported_names: Optional[List[str]] = Field(default=None, alias="importedNames")
    externals: Optional[List[str]] = None

    def to_raw(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "import": self.import_,
            "imported_names": self.imported_names,
            "externals": self.externals,
        }


class UploadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    repo: Optional[str] = None
    branch: Optional[str] = None
    is_pull_request: Optional[bool] = Field(default=None, alias="isPullRequest")


class ConfigFile(BaseModel):
    """Schema of ``bundle-size-checker.{toml,json}``."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    entrypoints: List[Union[str, EntryModel]] = Field(min_length=1)
    upload: Union[bool, UploadModel, None] = None
    track: List[str] = Field(default_factory=list)
    fallback_depth: int = Field(default=DEFAULT_FALLBACK_DEPTH, ge=0, le=50, alias="fallbackDepth")
    max_details_lines: int = Field(default=DEFAULT_MAX_DETAILS_LINES, ge=1, alias="maxDetailsLines")
    storage_url: str = Field(default=DEFAULT_STORAGE_URL, alias="storageUrl")
    details_url: str = Field(default=DEFAULT_DETAILS_URL, alias="detailsUrl")
    repo: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CIInfo:
    slug: Optional[str] = None
    branch: Optional[str] = None
    is_pr: bool = False
    pr_branch: Optional[str] = None


@dataclass(frozen=True, slots=True)
class UploadConfig:
    repo: str
    branch: str
    is_pull_request: bool = False


@dataclass(slots=True)
class AppConfig:
    entrypoints: List[EntryDescriptor] = field(default_factory=list)
    upload: Optional[UploadConfig] = None
    track: Tuple[str, ...] = ()
    fallback_depth: int = DEFAULT_FALLBACK_DEPTH
    max_details_lines: int = DEFAULT_MAX_DETAILS_LINES
    storage_url: str = DEFAULT_STORAGE_URL
    details_url: str = DEFAULT_DETAILS_URL
    repo: Optional[str] = None


def detect_ci_info(environ: Mapping[str, str] | None = None) -> CIInfo:
    """Read repository and branch information from GitHub Actions or CircleCI variables."""
    env = os.environ if environ is None else environ

    if env.get("GITHUB_ACTIONS"):
        is_pr = env.get("GITHUB_EVENT_NAME", "").startswith("pull_request")
        return CIInfo(
            slug=env.get("GITHUB_REPOSITORY"),
            branch=env.get("GITHUB_BASE_REF") if is_pr else env.get("GITHUB_REF_NAME"),
            is_pr=is_pr,
            pr_branch=env.get("GITHUB_HEAD_REF") or None,
        )

    if env.get("CIRCLECI"):
        owner = env.get("CIRCLE_PROJECT_USERNAME")
        name = env.get("CIRCLE_PROJECT_REPONAME")
        is_pr = bool(env.get("CIRCLE_PULL_REQUEST"))
        return CIInfo(
            slug=f"{owner}/{name}" if owner and name else None,
            branch=env.get("CIRCLE_BRANCH"),
            is_pr=is_pr,
            pr_branch=env.get("CIRCLE_BRANCH") if is_pr else None,
        )

    return CIInfo()


def apply_upload_defaults(upload: UploadModel, ci_info: CIInfo) -> UploadConfig:
    """Fill missing upload fields from the CI environment."""
    repo = upload.repo or ci_info.slug
    if not repo:
        raise ConfigError(
            'Missing required field: upload.repo. Please specify a repository (e.g., "mui/material-ui").'
        )

    branch = upload.branch or (ci_info.pr_branch if ci_info.is_pr else ci_info.branch)
    if not branch:
        raise ConfigError("Missing required field: upload.branch. Please specify a branch name.")

    is_pull_request = upload.is_pull_request if upload.is_pull_request is not None else ci_info.is_pr
    return UploadConfig(repo=repo, branch=branch, is_pull_request=bool(is_pull_request))


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as handle:
                return tomllib.load(handle)
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read configuration from {path}: {exc}") from exc


def find_config_file(root_dir: Path) -> Path:
    for name in CONFIG_FILENAMES:
        candidate = root_dir / name
        if candidate.is_file():
            return candidate
    raise ConfigError(
        "No bundle-size-checker configuration file found. Please create a "
        f"{' or '.join(CONFIG_FILENAMES)} file in your project root."
    )


def build_config(data: Mapping[str, Any], ci_info: CIInfo | None = None) -> AppConfig:
    """Validate raw configuration data and apply defaults."""
    try:
        parsed = ConfigFile.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    entries = normalize_entries(
        raw if isinstance(raw, str) else raw.to_raw() for raw in parsed.entrypoints
    )

    upload: Optional[UploadConfig] = None
    if parsed.upload is True or isinstance(parsed.upload, UploadModel):
        ci = ci_info if ci_info is not None else detect_ci_info()
        model = parsed.upload if isinstance(parsed.upload, UploadModel) else UploadModel()
        upload = apply_upload_defaults(model, ci)

    return AppConfig(
        entrypoints=entries,
        upload=upload,
        track=tuple(parsed.track),
        fallback_depth=parsed.fallback_depth,
        max_details_lines=parsed.max_details_lines,
        storage_url=parsed.storage_url.rstrip("/"),
        details_url=parsed.details_url.rstrip("/"),
        repo=parsed.repo or (upload.repo if upload else None),
    )


def load_config(root_dir: Path, path: Path | None = None, ci_info: CIInfo | None = None) -> AppConfig:
    """Load the configuration from ``path`` or from the first config file in ``root_dir``."""
    config_path = path if path is not None else find_config_file(root_dir)
    LOGGER.debug("Loading configuration from %s", config_path)
    return build_config(_read_config_file(config_path), ci_info)

"""Cached application state kept in a TOML file under the user cache directory."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import tomli_w

_APP_NAME = "evans"
_DEFAULT_FILE_NAME = "cache.toml"


@dataclass
class UpdateInfo:
    """What is known about an available update."""

    latest_version: str = ""
    installed_by: str = ""

    def update_available(self) -> bool:
        return self.latest_version != ""


@dataclass
class Cache:
    """Cached items. ``save_func``, if set, replaces writing to disk."""

    version: str = ""
    update_info: UpdateInfo = field(default_factory=UpdateInfo)
    command_history: list[str] = field(default_factory=list)
    save_func: Callable[[], None] | None = field(default=None, compare=False, repr=False)

    def _to_document(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "updateInfo": {
                "latestVersion": self.update_info.latest_version,
                "installedBy": self.update_info.installed_by,
            },
            "commandHistory": list(self.command_history),
        }

    @classmethod
    def _from_document(cls, data: dict[str, Any]) -> Cache:
        info = data.get("updateInfo") or {}
        return cls(
            version=str(data.get("version", "")),
            update_info=UpdateInfo(
                latest_version=str(info.get("latestVersion", "")),
                installed_by=str(info.get("installedBy", "")),
            ),
            command_history=[str(item) for item in data.get("commandHistory") or []],
        )

    def save(self) -> None:
        """Write the cache to its file; raises OSError if it cannot be created."""
        if self.save_func is not None:
            self.save_func()
            return
        resolve_path().write_text(tomli_w.dumps(self._to_document()), encoding="utf-8")


def resolve_path() -> Path:
    """Return the location of the cache file."""
    base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / _APP_NAME / _DEFAULT_FILE_NAME


def _init_cache_file(path: Path, current_version: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        tomli_w.dumps(Cache(version=current_version)._to_document()), encoding="utf-8"
    )


def _load(path: Path) -> Cache:
    with path.open("rb") as f:
        return Cache._from_document(tomllib.load(f))


def get(current_version: str) -> Cache:
    """Load the cache, creating it, or clearing it if it was written by another version."""
    path = resolve_path()
    if not path.exists():
        _init_cache_file(path, current_version)

    cache = _load(path)
    if not cache.version or cache.version != current_version:
        _init_cache_file(path, current_version)
        cache = _load(path)
    return cache
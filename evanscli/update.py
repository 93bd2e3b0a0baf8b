"""Checking for, announcing and applying application updates."""

from __future__ import annotations

import io
import itertools
import logging
import os
import sys
import threading
from abc import ABC, abstractmethod
from concurrent.futures import CancelledError
from enum import Enum
from typing import Callable, Iterable, Mapping, Protocol, TextIO

from packaging.version import Version

from .cache import Cache, UpdateInfo
from .config import Config

_log = logging.getLogger(__name__)

_SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
_TICK_SECONDS = 0.1

_UPDATE_INFO_FORMAT = """
new update available:
  current version: {current}
   latest version: {latest}

"""


class MeansUnavailable(Exception):
    """Raised when none of the candidate means is installed."""


class Means(ABC):
    """A way the application was installed and can be updated by."""

    @property
    @abstractmethod
    def type_name(self) -> str:
        """The identifier stored in the cache for this means."""

    @abstractmethod
    def installed(self) -> bool:
        """Whether the application was installed by this means."""

    @abstractmethod
    def latest_tag(self) -> Version:
        """The latest released version."""

    @abstractmethod
    def update(self, version: Version) -> None:
        """Install ``version``."""


MeansBuilder = Callable[[], Means]


class _Prompt(Protocol):
    def select(self, message: str, options: list[str]) -> tuple[int, str]: ...


def _as_version(value: Version | str) -> Version:
    return value if isinstance(value, Version) else Version(value)


def _triple(v: Version) -> tuple[int, int, int]:
    release = tuple(v.release) + (0, 0, 0)
    return release[0], release[1], release[2]


class UpdateLevel(str, Enum):
    """Which kind of new release counts as an update."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    def found(self, current: Version, latest: Version) -> bool:
        """Whether ``latest`` is an update of this level over ``current``."""
        cur, new = _triple(current), _triple(latest)
        if self is UpdateLevel.MAJOR:
            return new[0] > cur[0]
        if self is UpdateLevel.MINOR:
            return new[:2] > cur[:2]
        return new > cur


class Updater:
    """Compares the current version with the latest one a means offers."""

    def __init__(
        self,
        current: Version | str | None,
        means: Means | None,
        level: UpdateLevel = UpdateLevel.PATCH,
    ) -> None:
        self.current = _as_version(current) if current is not None else None
        self.means = means
        self.level = UpdateLevel(level)

    def updatable(self) -> tuple[bool, Version]:
        """Return whether an update exists and the latest version."""
        if self.means is None or self.current is None:
            raise ValueError("updater needs a current version and a means")
        latest = self.means.latest_tag()
        return self.level.found(self.current, latest), latest

    def update(self, cancel: threading.Event | None = None) -> None:
        """Install the latest version if it is an update."""
        if cancel is not None and cancel.is_set():
            raise CancelledError()
        found, latest = self.updatable()
        if not found:
            return
        if cancel is not None and cancel.is_set():
            raise CancelledError()
        assert self.means is not None
        self.means.update(latest)


def select_available_means(builders: Iterable[MeansBuilder]) -> Means:
    """Return the first built means that reports itself installed."""
    errors: list[Exception] = []
    for build in builders:
        try:
            means = build()
        except Exception as exc:  # a builder may fail for any reason
            errors.append(exc)
            continue
        if means.installed():
            return means
    if errors:
        raise RuntimeError(
            "failed to instantiate new means: " + "; ".join(str(e) for e in errors)
        )
    raise MeansUnavailable("no available means")


def new_updater(cfg: Config, current: Version | str | None, means: Means | None) -> Updater:
    """Create an Updater using the configured update level."""
    try:
        level = UpdateLevel(cfg.meta.update_level)
    except ValueError:
        raise ValueError(f"unknown update level: '{cfg.meta.update_level}'") from None
    return Updater(current, means, level)


def check_update(
    cfg: Config,
    cache: Cache,
    means_builders: Mapping[str, MeansBuilder],
    current: Version | str,
) -> None:
    """Find out whether an update exists and record the latest version in ``cache``."""
    if cache.update_info.installed_by == "":
        try:
            means = select_available_means(means_builders.values())
        except MeansUnavailable:
            # Installed by hand; nothing to update with.
            return
        except RuntimeError as exc:
            raise RuntimeError(
                f"failed to instantiate new means, available means not found: {exc}"
            ) from exc
        cache.update_info.installed_by = means.type_name
        cache.save()
    else:
        build = means_builders.get(cache.update_info.installed_by)
        if build is None:
            return
        try:
            means = build()
        except Exception as exc:
            _log.debug("failed to build a new means: %s", exc)
            return

    found, latest = new_updater(cfg, current, means).updatable()
    if found:
        cache.update_info.latest_version = str(latest)
        cache.save()


def _restart() -> None:
    try:
        os.execv(sys.executable, [sys.executable, *sys.argv])
    except OSError as exc:
        raise RuntimeError(f"failed to exec the command: args={sys.argv}: {exc}") from exc


def process_update(
    cfg: Config,
    writer: TextIO,
    cache: Cache,
    prompt: _Prompt,
    means_builders: Mapping[str, MeansBuilder],
    current: Version | str,
    restart: Callable[[], None] | None = None,
) -> None:
    """Apply a cached update, asking the user first unless auto update is enabled."""
    if not cache.update_info.update_available():
        return

    current_version = _as_version(current)
    if _as_version(cache.update_info.latest_version) <= current_version:
        cache.update_info = UpdateInfo()
        cache.save()
        return

    build = means_builders.get(cache.update_info.installed_by)
    if build is None:
        return
    try:
        means = build()
    except Exception as exc:
        _log.debug("failed to build a new means: %s", exc)
        return

    if cfg.meta.auto_update:
        try:
            update(io.StringIO(), new_updater(cfg, current_version, means), cache)
        except CancelledError:
            pass
        return

    print_update_info(writer, current_version, cache.update_info.latest_version)

    try:
        _, selected = prompt.select("update?", ["yes", "no"])
    except Exception:
        return
    if selected == "no":
        return

    try:
        update(writer, new_updater(cfg, current_version, means), cache)
    except CancelledError:
        return

    (restart or _restart)()


def update(
    writer: TextIO,
    updater: Updater,
    cache: Cache,
    cancel: threading.Event | None = None,
) -> None:
    """Run ``updater`` showing a spinner; an interrupt or ``cancel`` aborts it."""
    cancel = cancel if cancel is not None else threading.Event()
    done = threading.Event()
    outcome: dict[str, BaseException] = {}

    def run() -> None:
        try:
            updater.update(cancel)
        except BaseException as exc:  # handed back to the waiting thread
            outcome["error"] = exc
        finally:
            done.set()

    threading.Thread(target=run, daemon=True).start()
    frames = itertools.cycle(_SPINNER)
    try:
        while True:
            if cancel.is_set():
                raise CancelledError()
            if done.wait(_TICK_SECONDS):
                break
            writer.write(f"\r{next(frames)} updating...")
    except KeyboardInterrupt:
        cancel.set()
        raise CancelledError() from None

    error = outcome.get("error")
    if isinstance(error, CancelledError):
        raise error
    if error is not None:
        raise RuntimeError(f"failed to update Evans: {error}") from error

    writer.write("\r             \r✔ updated!\n\n")
    cache.update_info = UpdateInfo()
    cache.save()


def print_update_info(writer: TextIO, current: Version | str, latest: str) -> None:
    """Write the notice that a new release is available."""
    writer.write(_UPDATE_INFO_FORMAT.format(current=_as_version(current), latest=latest))
"""Upgrades of settings written by older releases to the current layout."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, MutableMapping

_log = logging.getLogger(__name__)

Settings = MutableMapping[str, Any]


def migrate(old: str, settings: Settings) -> None:
    """Apply every migration step reachable from version ``old`` to ``settings``.

    Each step returns the version it upgraded to; migration continues from that
    version until no step is registered for it.
    """
    while (script := _SCRIPTS.get(old)) is not None:
        old = script(old, settings)


def _as_values(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def migrate_0610_to_0611(old: str, settings: Settings) -> str:
    """Upgrade a v0.6.10 (or older) layout to v0.6.11 and return ``"0.6.11"``.

    Returns an empty string if the old header table cannot be read.
    """
    updated = "0.6.11"
    settings.setdefault("meta", {})["configversion"] = updated

    request = settings.setdefault("request", {})
    raw = request.get("header")

    # v0.6.10 stored headers as an array of {key, val} tables.
    if raw is None:
        header: dict[str, list[str]] = {}
    elif isinstance(raw, Mapping):
        header = {str(key).lower(): _as_values(value) for key, value in raw.items()}
    elif isinstance(raw, list):
        header = {}
        for entry in raw:
            if not isinstance(entry, Mapping):
                _log.debug("failed to unmarshal 'request.header' in v%s", old)
                return ""
            fields = {str(k).lower(): v for k, v in entry.items()}
            header[str(fields.get("key", ""))] = [str(fields.get("val", ""))]
    else:
        _log.debug("failed to unmarshal 'request.header' in v%s", old)
        return ""
    request["header"] = header

    # v0.6.11 moved input.promptFormat to repl.inputPromptFormat and dropped [input].
    old_input = settings.get("input")
    if isinstance(old_input, Mapping) and "promptformat" in old_input:
        settings.setdefault("repl", {})["inputpromptformat"] = old_input["promptformat"]
    settings.pop("input", None)

    return updated


_SCRIPTS: dict[str, Callable[[str, Settings], str]] = {
    "0.6.10": migrate_0610_to_0611,
}
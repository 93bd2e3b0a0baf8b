"""Configuration merged from defaults, the global file, the project file and flags.

Priority is flags > project (local) file > global file > defaults.
"""

from __future__ import annotations

import copy
import csv
import io
import logging
import os
import shutil
import subprocess
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import tomli_w

from .flags import Flags, HeaderValue
from .migrate import migrate

_log = logging.getLogger(__name__)

_LOCAL_CONFIG_NAME = ".evans.toml"
_GLOBAL_CONFIG_NAME = "config.toml"
_OLDEST_CONFIG_VERSION = "0.6.10"


class ValidationError(ValueError):
    """Raised when the merged configuration is in an invalid state."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(self.errors)

    def __str__(self) -> str:
        if len(self.errors) == 1:
            body = f"1 error occurred:\n\t* {self.errors[0]}\n\n"
        else:
            items = "\n\t* ".join(self.errors)
            body = f"{len(self.errors)} errors occurred:\n\t* {items}\n\n"
        return f"invalid config condition: {body}"


@dataclass
class Server:
    host: str = "127.0.0.1"
    port: str = "50051"
    reflection: bool = False
    tls: bool = False
    name: str = ""


@dataclass
class Request:
    header: dict[str, list[str]] = field(default_factory=lambda: {"grpc-client": ["evans"]})
    web: bool = False
    ca_cert_file: str = ""
    cert_file: str = ""
    cert_key_file: str = ""


@dataclass
class REPL:
    prompt_format: str = "{package}.{service}@{addr}:{port}"
    input_prompt_format: str = "{ancestor}{name} ({type}) => "
    colored_output: bool = True
    silent: bool = False
    splash_text_path: str = ""
    history_size: int = 100


@dataclass
class Meta:
    config_version: str = _OLDEST_CONFIG_VERSION
    auto_update: bool = False
    update_level: str = "patch"


@dataclass
class Default:
    proto_path: list[str] = field(default_factory=list)
    proto_file: list[str] = field(default_factory=list)
    package: str = ""
    service: str = ""


@dataclass
class Log:
    prefix: str = "evans: "


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "t", "true")
    return bool(value)


def _to_str(value: Any) -> str:
    return "" if value is None else str(value)


def _to_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(item) for item in value]


def _to_header(value: Any) -> dict[str, list[str]]:
    if not isinstance(value, Mapping):
        return {}
    header: dict[str, list[str]] = {}
    for key, values in value.items():
        if isinstance(values, (list, tuple)):
            header[str(key)] = [str(item) for item in values]
        else:
            header[str(key)] = [str(values)]
    return header


def _drop_leading_empty(items: list[str]) -> list[str]:
    if items and items[0] == "":
        return items[1:]
    return items


@dataclass
class Config:
    """The conclusive configuration."""

    default: Default = field(default_factory=Default)
    meta: Meta = field(default_factory=Meta)
    repl: REPL = field(default_factory=REPL)
    server: Server = field(default_factory=Server)
    log: Log = field(default_factory=Log)
    request: Request = field(default_factory=Request)

    def validate(self) -> None:
        """Raise ValidationError listing every invalid condition."""
        invalid_cases = [
            ("port must not be empty", len(self.server.port) == 0),
            (
                "certFile config or --cert flag required",
                self.request.cert_file == "" and self.request.cert_key_file != "",
            ),
            (
                "certKeyFile config or --certkey flag required",
                self.request.cert_file != "" and self.request.cert_key_file == "",
            ),
            (
                "one or more proto files, or gRPC reflection required",
                len(self.default.proto_file) == 0 and not self.server.reflection,
            ),
            (
                "currently, gRPC-Web with TLS communication is not supported",
                self.request.web and self.server.tls,
            ),
        ]
        errors = [name for name, cond in invalid_cases if cond]
        if errors:
            raise ValidationError(errors)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> Config:
        """Build a Config from nested settings with lower-cased keys."""

        def section(name: str) -> Mapping[str, Any]:
            value = settings.get(name)
            return value if isinstance(value, Mapping) else {}

        d, m, r, s, lg, rq = (
            section(name) for name in ("default", "meta", "repl", "server", "log", "request")
        )
        defaults_repl, defaults_server = REPL(), Server()
        return cls(
            default=Default(
                # Empty leading entries only keep the keys visible in written files.
                proto_path=_drop_leading_empty(_to_list(d.get("protopath"))),
                proto_file=_drop_leading_empty(_to_list(d.get("protofile"))),
                package=_to_str(d.get("package")),
                service=_to_str(d.get("service")),
            ),
            meta=Meta(
                config_version=_to_str(m.get("configversion")),
                auto_update=_to_bool(m.get("autoupdate", False)),
                update_level=_to_str(m.get("updatelevel")),
            ),
            repl=REPL(
                prompt_format=_to_str(r.get("promptformat")),
                input_prompt_format=_to_str(r.get("inputpromptformat")),
                colored_output=_to_bool(r.get("coloredoutput", False)),
                silent=_to_bool(r.get("silent", False)),
                splash_text_path=_to_str(r.get("splashtextpath")),
                history_size=int(r.get("historysize", defaults_repl.history_size) or 0),
            ),
            server=Server(
                host=_to_str(s.get("host", defaults_server.host)),
                port=_to_str(s.get("port")),
                reflection=_to_bool(s.get("reflection", False)),
                tls=_to_bool(s.get("tls", False)),
                name=_to_str(s.get("name")),
            ),
            log=Log(prefix=_to_str(lg.get("prefix"))),
            request=Request(
                header=_to_header(rq.get("header")),
                web=_to_bool(rq.get("web", False)),
                ca_cert_file=_to_str(rq.get("cacertfile")),
                cert_file=_to_str(rq.get("certfile")),
                cert_key_file=_to_str(rq.get("certkeyfile")),
            ),
        )


def default_settings(current_version: str | None = None) -> dict[str, Any]:
    """Return the default settings; ``current_version`` stamps meta.configVersion."""
    return {
        "default": {"protopath": [""], "protofile": [""], "package": "", "service": ""},
        "meta": {
            "configversion": current_version or _OLDEST_CONFIG_VERSION,
            "autoupdate": False,
            "updatelevel": "patch",
        },
        "repl": {
            "promptformat": "{package}.{service}@{addr}:{port}",
            "inputpromptformat": "{ancestor}{name} ({type}) => ",
            "coloredoutput": True,
            "silent": False,
            "splashtextpath": "",
            "historysize": 100,
        },
        "server": {
            "host": "127.0.0.1",
            "port": "50051",
            "reflection": False,
            "tls": False,
            "name": "",
        },
        "log": {"prefix": "evans: "},
        "request": {
            "header": {"grpc-client": ["evans"]},
            "cacertfile": "",
            "certfile": "",
            "certkeyfile": "",
            "web": False,
        },
    }


def _read_record(text: str) -> list[str] | None:
    try:
        return next(csv.reader(io.StringIO(text), strict=True))
    except (StopIteration, csv.Error):
        return None


def string_to_string_slice_to_map(val: str) -> dict[str, list[str]]:
    """Parse the text form of a header flag; an empty map on any error."""
    val = val.strip("[]")
    if not val:
        return {}
    pairs = _read_record(val)
    if pairs is None:
        return {}
    out: dict[str, list[str]] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            return {}
        out[key] = value.split(",")
    return out


def string_to_string_to_map(val: str) -> dict[str, str]:
    """Parse ``[a=1,b=2]`` into a map; an empty map on any error."""
    val = val.strip("[]")
    if not val:
        return {}
    pairs = _read_record(val)
    if pairs is None:
        return {}
    out: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            return {}
        out[key] = value
    return out


def string_slice_to_slice(val: str) -> list[str]:
    """Parse ``[a,b]`` into a list; an empty list on any error."""
    val = val[1:-1]
    if not val:
        return []
    return _read_record(val) or []


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def _deep_merge(base: dict[str, Any], other: Mapping[str, Any]) -> None:
    for key, value in other.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)


def _drop_none(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(item) for item in value if item is not None]
    return value


def _lookup(settings: Mapping[str, Any], key: str) -> Any:
    node: Any = settings
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def _assign(settings: dict[str, Any], key: str, value: Any) -> None:
    *parents, last = key.split(".")
    node = settings
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[last] = value


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return _lower_keys(tomllib.load(f))


def _write_settings(path: Path, settings: Mapping[str, Any]) -> None:
    path.write_text(tomli_w.dumps(_drop_none(settings)), encoding="utf-8")


# Settings key, flag name, attribute of Flags.
_SCALAR_BINDINGS = [
    ("default.package", "package", "package"),
    ("default.service", "service", "service"),
    ("server.host", "host", "host"),
    ("server.port", "port", "port"),
    ("server.reflection", "reflection", "reflection"),
    ("server.tls", "tls", "tls"),
    ("server.name", "servername", "server_name"),
    ("request.web", "web", "web"),
    ("request.cacertfile", "cacert", "cacert"),
    ("request.certfile", "cert", "cert"),
    ("request.certkeyfile", "certkey", "cert_key"),
    ("repl.silent", "silent", "silent"),
]


def _bind_flags(settings: dict[str, Any], flags: Flags) -> None:
    for key, flag_name, attr in _SCALAR_BINDINGS:
        if flag_name in flags.changed:
            _assign(settings, key, getattr(flags, attr))

    # Header values from flags are added to the configured ones, skipping duplicates.
    current = _to_header(_lookup(settings, "request.header"))
    encountered = {key: set(values) for key, values in current.items()}
    incoming = string_to_string_slice_to_map(str(HeaderValue(flags.header)))
    for key, values in incoming.items():
        key = key.lower()
        for value in values:
            if value in encountered.get(key, ()):
                continue
            current.setdefault(key, []).append(value)
    _assign(settings, "request.header", current)

    # Proto paths and files given by flags are appended to the configured ones.
    for key, extra in (("default.protopath", flags.path), ("default.protofile", flags.proto)):
        _assign(settings, key, _to_list(_lookup(settings, key)) + list(extra))


def _config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "evans"


def _project_root() -> Path | None:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-cdup"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return Path(result.stdout.strip())


def _local_config_path() -> Path | None:
    here = Path(_LOCAL_CONFIG_NAME)
    if here.exists():
        return here.resolve()
    root = _project_root()
    if root is None:
        return None
    candidate = root / _LOCAL_CONFIG_NAME
    return candidate if candidate.exists() else None


def _write_latest_default_config(path: Path, current_version: str) -> Config:
    settings = default_settings(current_version)
    _write_settings(path, settings)
    return Config.from_settings(settings)


def get(overrides: Flags | None, current_version: str) -> Config:
    """Load the global and project files, apply ``overrides`` and return the result.

    A missing global file is created with the defaults. A global file written by
    another version is migrated and written back.
    """
    cfg_dir = _config_dir()
    global_path = cfg_dir / _GLOBAL_CONFIG_NAME

    if not global_path.is_file():
        _log.debug("global config is not found, create a new one: %s", global_path)
        cfg_dir.mkdir(parents=True, exist_ok=True)
        settings = default_settings(current_version)
        _write_settings(global_path, settings)
    else:
        _log.debug("load global config from %s", cfg_dir)
        settings = default_settings()
        _deep_merge(settings, _load_toml(global_path))

        old = _to_str(_lookup(settings, "meta.configversion"))
        if old != current_version:
            migrate(old, settings)
            _log.debug("migrated the global config to the latest structure")
            _write_settings(global_path, settings)

        local_path = _local_config_path()
        if local_path is None:
            _log.debug("local config is not found")
        else:
            _log.debug("load local config from %s", local_path)
            _deep_merge(settings, _load_toml(local_path))

    if overrides is not None:
        _bind_flags(settings, overrides)
    return Config.from_settings(settings)


def _get_editor() -> str:
    env = os.environ.get("EDITOR", "")
    if env:
        return env
    return shutil.which("vim") or ""


def _run_editor(editor: str, cfg_path: str) -> None:
    try:
        subprocess.run([editor, cfg_path], check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise RuntimeError(f"failed to execute {editor}: {exc}") from exc


def edit(
    current_version: str, run_editor: Callable[[str, str], None] | None = None
) -> None:
    """Open the project config in an editor, creating it at the project root if missing."""
    path = _local_config_path()
    if path is None:
        root = _project_root()
        if root is None:
            raise RuntimeError("--edit must be call inside a Git project")
        path = root / _LOCAL_CONFIG_NAME
        _log.debug("create a new local config to %s", path)
        _write_latest_default_config(path, current_version)
    editor = _get_editor()
    if not editor:
        raise RuntimeError("--edit requires one of $EDITOR value or Vim")
    (run_editor or _run_editor)(editor, str(path))


def edit_global(
    current_version: str, run_editor: Callable[[str, str], None] | None = None
) -> None:
    """Open the global config in an editor, creating it first if missing."""
    path = _config_dir() / _GLOBAL_CONFIG_NAME
    if not path.exists():
        _log.debug("global config is not found. create a new global config to %s", path)
        path.parent.mkdir(parents=True, exist_ok=True)
        _write_latest_default_config(path, current_version)
    editor = _get_editor()
    if not editor:
        raise RuntimeError("--edit requires one of $EDITOR value or Vim")
    (run_editor or _run_editor)(editor, str(path))
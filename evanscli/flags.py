"""Command line flags and their parsing."""

from __future__ import annotations

import csv
import io
import sys
from dataclasses import dataclass, field
from typing import Iterator


class FlagError(ValueError):
    """Raised for malformed or conflicting command line flags."""


def _read_record(text: str) -> list[str]:
    try:
        return next(csv.reader(io.StringIO(text), strict=True))
    except StopIteration as exc:
        raise FlagError(f"{text!r} holds no values") from exc
    except csv.Error as exc:
        raise FlagError(str(exc)) from exc


def _quote_field(value: str) -> str:
    needs_quotes = value != "" and (
        value == "\\."
        or any(ch in value for ch in ',"\r\n')
        or value[0].isspace()
    )
    if not needs_quotes:
        return value
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


class HeaderValue:
    """A repeatable key=value flag whose keys may hold several values."""

    def __init__(self, initial: dict[str, list[str]] | None = None) -> None:
        self.value: dict[str, list[str]] = initial if initial is not None else {}
        self.changed = False

    def set(self, val: str) -> None:
        """Add the pairs in ``val``, formatted as ``a=1,b=2``."""
        count = val.count("=")
        if count == 0:
            raise FlagError(f"{val} must be formatted as key=value")
        pairs = [val.strip('"')] if count == 1 else _read_record(val)

        parsed: dict[str, list[str]] = {}
        for pair in pairs:
            key, sep, item = pair.partition("=")
            if not sep:
                raise FlagError(f"{pair} must be formatted as key=value")
            parsed.setdefault(key, []).append(item)

        if not self.changed:
            self.value = parsed
        else:
            self.value.update(parsed)
        self.changed = True

    @property
    def type_name(self) -> str:
        return "slice of strings"

    def __str__(self) -> str:
        records = [f"{key}={','.join(values)}" for key, values in self.value.items()]
        line = ",".join(_quote_field(record) for record in records)
        return "[" + line.strip() + "]"


@dataclass
class Flags:
    """Every flag the command line accepts."""

    repl: bool = False
    cli: bool = False
    call: str = ""
    file: str = ""
    silent: bool = False
    package: str = ""
    service: str = ""
    path: list[str] = field(default_factory=list)
    proto: list[str] = field(default_factory=list)
    host: str = ""
    port: str = "50051"
    header: dict[str, list[str]] = field(default_factory=dict)
    web: bool = False
    reflection: bool = False
    tls: bool = False
    cacert: str = ""
    cert: str = ""
    cert_key: str = ""
    server_name: str = ""
    edit: bool = False
    edit_global: bool = False
    verbose: bool = False
    version: bool = False
    help: bool = False
    changed: set[str] = field(default_factory=set)

    def validate(self) -> None:
        """Raise FlagError if the flags are in a conflicting state."""
        invalid_cases = [
            ("cannot specify both of --cli and --repl", self.cli and self.repl),
        ]
        messages = [name for name, cond in invalid_cases if cond]
        if messages:
            raise FlagError("; ".join(messages))


@dataclass(frozen=True)
class _Spec:
    name: str
    short: str
    kind: str
    attr: str


_SPECS = [
    _Spec("repl", "", "bool", "repl"),
    _Spec("cli", "", "bool", "cli"),
    _Spec("call", "", "string", "call"),
    _Spec("file", "f", "string", "file"),
    _Spec("silent", "s", "bool", "silent"),
    _Spec("package", "", "string", "package"),
    _Spec("service", "", "string", "service"),
    _Spec("path", "", "slice", "path"),
    _Spec("proto", "", "slice", "proto"),
    _Spec("host", "", "string", "host"),
    _Spec("port", "p", "string", "port"),
    _Spec("header", "", "header", "header"),
    _Spec("web", "", "bool", "web"),
    _Spec("reflection", "r", "bool", "reflection"),
    _Spec("tls", "t", "bool", "tls"),
    _Spec("cacert", "", "string", "cacert"),
    _Spec("cert", "", "string", "cert"),
    _Spec("certkey", "", "string", "cert_key"),
    _Spec("servername", "", "string", "server_name"),
    _Spec("edit", "e", "bool", "edit"),
    _Spec("edit-global", "", "bool", "edit_global"),
    _Spec("verbose", "", "bool", "verbose"),
    _Spec("version", "v", "bool", "version"),
    _Spec("help", "h", "bool", "help"),
]
_BY_NAME = {spec.name: spec for spec in _SPECS}
_BY_SHORT = {spec.short: spec for spec in _SPECS if spec.short}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(spec: _Spec, value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise FlagError(f'invalid argument "{value}" for "--{spec.name}" flag')


class _Parser:
    def __init__(self) -> None:
        self.flags = Flags()
        self.header = HeaderValue(self.flags.header)
        self.replaced_slices: set[str] = set()

    def apply(self, spec: _Spec, value: str | bool) -> None:
        if spec.kind in ("bool", "string"):
            setattr(self.flags, spec.attr, value)
        elif spec.kind == "slice":
            items = _read_record(value) if value else []
            if spec.name in self.replaced_slices:
                getattr(self.flags, spec.attr).extend(items)
            else:
                setattr(self.flags, spec.attr, items)
                self.replaced_slices.add(spec.name)
        else:
            self.header.set(value)
        self.flags.changed.add(spec.name)

    def long(self, arg: str, rest: Iterator[str]) -> None:
        name, eq, value = arg[2:].partition("=")
        spec = _BY_NAME.get(name)
        if spec is None:
            raise FlagError(f"unknown flag: --{name}")
        if spec.kind == "bool":
            self.apply(spec, _parse_bool(spec, value) if eq else True)
            return
        if not eq:
            following = next(rest, None)
            if following is None:
                raise FlagError(f"flag needs an argument: --{name}")
            value = following
        self.apply(spec, value)

    def shorts(self, arg: str, rest: Iterator[str]) -> None:
        letters = arg[1:]
        for pos, letter in enumerate(letters):
            spec = _BY_SHORT.get(letter)
            if spec is None:
                raise FlagError(f"unknown shorthand flag: '{letter}' in {arg}")
            tail = letters[pos + 1:]
            if spec.kind == "bool":
                if tail.startswith("="):
                    self.apply(spec, _parse_bool(spec, tail[1:]))
                    return
                self.apply(spec, True)
                continue
            if tail.startswith("="):
                tail = tail[1:]
            if not tail:
                following = next(rest, None)
                if following is None:
                    raise FlagError(f"flag needs an argument: '{letter}' in {arg}")
                tail = following
            self.apply(spec, tail)
            return


def parse_args(argv: list[str] | None = None) -> tuple[Flags, list[str]]:
    """Parse ``argv`` into Flags and the remaining positional arguments."""
    args = list(sys.argv[1:] if argv is None else argv)
    parser = _Parser()
    positional: list[str] = []
    rest = iter(args)
    for arg in rest:
        if arg == "--":
            positional.extend(rest)
            break
        if arg.startswith("--"):
            parser.long(arg, rest)
        elif arg.startswith("-") and len(arg) > 1:
            parser.shorts(arg, rest)
        else:
            positional.append(arg)
    parser.flags.header = parser.header.value
    return parser.flags, positional
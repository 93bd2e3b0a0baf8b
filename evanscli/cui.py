"""Character user interfaces that write lines to an output and an error stream."""

from __future__ import annotations

import sys
from typing import TextIO

_RESET = "\x1b[0m"
_BLUE = "34"
_YELLOW = "33"
_RED = "31"


def _paint(code: str, s: str) -> str:
    return f"\x1b[{code}m{s}{_RESET}"


class UI:
    """Writes plain lines to a writer and an error writer."""

    def __init__(self, writer: TextIO | None = None, err_writer: TextIO | None = None) -> None:
        self.writer = writer if writer is not None else sys.stdout
        self.err_writer = err_writer if err_writer is not None else sys.stderr

    def output(self, s: str) -> None:
        """Write ``s`` and a line break to the writer."""
        self.writer.write(f"{s}\n")

    def info(self, s: str) -> None:
        """Same as output; kept apart so wrappers can decorate it."""
        self.output(s)

    def warn(self, s: str) -> None:
        """Same as error; kept apart so wrappers can decorate it."""
        self.error(s)

    def error(self, s: str) -> None:
        """Write ``s`` and a line break to the error writer."""
        self.err_writer.write(f"{s}\n")


class ColoredUI:
    """Wraps another UI and colours its info, warning and error lines."""

    def __init__(self, ui: UI) -> None:
        self.ui = ui

    @property
    def writer(self) -> TextIO:
        return self.ui.writer

    @property
    def err_writer(self) -> TextIO:
        return self.ui.err_writer

    def output(self, s: str) -> None:
        self.ui.output(s)

    def info(self, s: str) -> None:
        self.ui.info(_paint(_BLUE, s))

    def warn(self, s: str) -> None:
        self.ui.warn(_paint(_YELLOW, s))

    def error(self, s: str) -> None:
        self.ui.error(_paint(_RED, s))


def new_colored(ui: UI | ColoredUI) -> ColoredUI:
    """Wrap ``ui`` in a ColoredUI unless it already is one."""
    if isinstance(ui, ColoredUI):
        return ui
    return ColoredUI(ui)
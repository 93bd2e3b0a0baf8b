import io
import sys

from evanscli.cui import UI, ColoredUI, new_colored


def test_writer_option_sets_writer():
    out = io.StringIO()
    ui = UI(writer=out)
    assert ui.writer is out


def test_err_writer_option_sets_err_writer():
    err = io.StringIO()
    ui = UI(err_writer=err)
    assert ui.err_writer is err


def test_default_writers_are_standard_streams():
    ui = UI()
    assert ui.writer is sys.stdout
    assert ui.err_writer is sys.stderr


def test_output_and_info_go_to_writer():
    out, err = io.StringIO(), io.StringIO()
    ui = UI(out, err)
    ui.output("hello")
    ui.info("world")
    assert out.getvalue() == "hello\nworld\n"
    assert err.getvalue() == ""


def test_warn_and_error_go_to_err_writer():
    out, err = io.StringIO(), io.StringIO()
    ui = UI(out, err)
    ui.warn("careful")
    ui.error("broken")
    assert err.getvalue() == "careful\nbroken\n"
    assert out.getvalue() == ""


def test_colored_ui_paints_lines():
    out, err = io.StringIO(), io.StringIO()
    ui = ColoredUI(UI(out, err))
    ui.info("i")
    ui.output("o")
    ui.warn("w")
    ui.error("e")
    assert out.getvalue() == "\x1b[34mi\x1b[0m\no\n"
    assert err.getvalue() == "\x1b[33mw\x1b[0m\n\x1b[31me\x1b[0m\n"


def test_new_colored_is_idempotent():
    out = io.StringIO()
    base = UI(out, io.StringIO())
    colored = new_colored(base)
    assert isinstance(colored, ColoredUI)
    assert new_colored(colored) is colored
    assert colored.writer is out
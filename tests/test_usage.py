from evanscli.usage import (
    CommandSpec,
    FlagSpec,
    build_root_command,
    format_version,
    render_options,
    render_usage,
)

VERSION = "0.10.0"

EXPECTED_USAGE_OUT = f"""evans {VERSION}

Usage: evans [global options ...] <command>

Options:
        --silent, -s                     hide redundant output (default "false")
        --path strings                   comma-separated proto file paths (default "[]")
        --proto strings                  comma-separated proto file names (default "[]")
        --host string                    gRPC server host
        --port, -p string                gRPC server port (default "50051")
        --header slice of strings        default headers that set to each requests (example: foo=bar) (default "[]")
        --web                            use gRPC-Web protocol (default "false")
        --reflection, -r                 use gRPC reflection (default "false")
        --tls, -t                        use a secure TLS connection (default "false")
        --cacert string                  the CA certificate file for verifying the server
        --cert string                    the certificate file for mutual TLS auth. it must be provided with --certkey.
        --certkey string                 the private key file for mutual TLS auth. it must be provided with --cert.
        --servername string              override the server name used to verify the hostname (ignored if --tls is disabled)
        --edit, -e                       edit the project config file by using $EDITOR (default "false")
        --edit-global                    edit the global config file by using $EDITOR (default "false")
        --verbose                        verbose output (default "false")
        --version, -v                    display version and exit (default "false")
        --help, -h                       display help text and exit (default "false")

Available Commands:
        cli         CLI mode
        repl        REPL mode

"""


def child(command, name):
    return next(c for c in command.commands if c.name == name)


def test_root_usage_matches_expected():
    root = build_root_command(register_new=True)
    assert render_usage(root, VERSION) == EXPECTED_USAGE_OUT


def test_root_usage_without_new_commands():
    text = render_usage(build_root_command(), VERSION)
    assert "Available Commands" not in text
    assert text.endswith('display help text and exit (default "false")\n\n')


def test_format_version():
    assert format_version("1.2.3") == "evans 1.2.3\n"


def test_root_options_hide_hidden_flags():
    text = render_options(build_root_command())
    assert "--repl" not in text
    assert "--call" not in text
    assert "--silent, -s" in text


def test_call_usage():
    root = build_root_command(register_new=True)
    call = child(child(root, "cli"), "call")
    text = render_usage(call, VERSION)
    assert "Usage: evans [global options ...] cli call [options ...] <method>\n\n" in text
    assert "Examples:\n" in text
    options = text.split("Options:\n", 1)[1].strip("\n").splitlines()
    assert [line.split()[0] for line in options] == [
        "--enrich",
        "--emit-defaults",
        "--output,",
        "--file,",
        "--help,",
    ]
    columns = {len(line) - len(line[8:].split("  ", 1)[1].lstrip()) for line in options}
    assert len(columns) == 1
    assert options[2].endswith('(default "curl")')


def test_cli_lists_sub_commands_sorted_with_aliases():
    root = build_root_command(register_new=True)
    text = render_usage(child(root, "cli"), VERSION)
    commands = text.split("Available Commands:\n", 1)[1].strip("\n").splitlines()
    assert [line.split("  ")[0].strip() for line in commands] == [
        "call, c",
        "desc, describe",
        "list, ls, show",
    ]


def test_repl_shows_inherited_hidden_flags():
    root = build_root_command(register_new=True)
    text = render_usage(child(root, "repl"), VERSION)
    assert "--package string" in text
    assert "--service string" in text
    assert "Usage: evans [global options ...] repl [options ...]\n" in text


def test_lookup_inherited():
    root = build_root_command(register_new=True)
    call = child(child(root, "cli"), "call")
    flag = call.lookup_inherited("file")
    assert flag.shorthand == "f"
    assert call.lookup_inherited("nope") is None
    assert root.lookup_inherited("file") is None


def test_add_command_sets_parent():
    parent = CommandSpec(use="top <command>")
    sub = CommandSpec(use="sub", short="a sub", flags=[FlagSpec("x", "an x", "1", "", "int")])
    parent.add_command(sub)
    assert sub.parent is parent
    text = render_usage(sub, "1.0.0")
    assert "Usage: top sub\n" in text
    assert '--x int' in text and '(default "1")' in text
    assert "--help, -h" in text
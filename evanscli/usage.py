"""The command tree and the help text printed for each command."""

from __future__ import annotations

from dataclasses import dataclass, field

APP_NAME = "evans"

_INDENT = " " * 8
_PADDING = 8


@dataclass
class FlagSpec:
    """A flag as shown in help output."""

    name: str
    usage: str
    default: str = ""
    shorthand: str = ""
    value_name: str = ""
    hidden: bool = False


@dataclass(eq=False)
class CommandSpec:
    """A command, its flags and its sub-commands."""

    use: str
    short: str = ""
    long: str = ""
    example: str = ""
    aliases: list[str] = field(default_factory=list)
    flags: list[FlagSpec] = field(default_factory=list)
    persistent_flags: list[FlagSpec] = field(default_factory=list)
    inherited_help_flags: list[str] = field(default_factory=list)
    parent: CommandSpec | None = field(default=None, repr=False)
    commands: list[CommandSpec] = field(default_factory=list, repr=False)

    @property
    def name(self) -> str:
        words = self.use.split()
        return words[0] if words else ""

    def add_command(self, command: CommandSpec) -> None:
        """Attach ``command`` as a sub-command."""
        command.parent = self
        self.commands.append(command)

    def local_flags(self) -> list[FlagSpec]:
        """Flags defined on this command itself, in definition order."""
        return [*self.flags, *self.persistent_flags]

    def lookup_inherited(self, name: str) -> FlagSpec | None:
        """Find a persistent flag named ``name`` on an ancestor."""
        node = self.parent
        while node is not None:
            for flag in node.persistent_flags:
                if flag.name == name:
                    return flag
            node = node.parent
        return None


def _tabulate(rows: list[tuple[str, str]]) -> str:
    if not rows:
        return ""
    width = max(len(cell) for cell, _ in rows) + _PADDING
    return "".join(f"{cell.ljust(width)}{rest}\n" for cell, rest in rows)


def format_version(version: str) -> str:
    """The version line: application name and version."""
    return f"{APP_NAME} {version}\n"


def render_options(command: CommandSpec, inherited_flags: list[str] | tuple[str, ...] = ()) -> str:
    """Render the Options section for ``command``."""
    is_root = command.parent is None
    rows: list[tuple[str, str]] = []
    has_help = False

    def add(flag: FlagSpec) -> None:
        nonlocal has_help
        if is_root and flag.hidden:
            return
        if flag.name == "help":
            has_help = True
        cell = f"--{flag.name}"
        if flag.shorthand:
            cell += f", -{flag.shorthand}"
        if flag.value_name:
            cell += f" {flag.value_name}"
        usage = flag.usage
        if flag.default:
            usage += f' (default "{flag.default}")'
        rows.append((_INDENT + cell, usage))

    for flag in command.local_flags():
        add(flag)
    for name in inherited_flags:
        flag = command.lookup_inherited(name)
        if flag is not None:
            add(flag)

    if not has_help:
        rows.append((_INDENT + "--help, -h", 'display help text and exit (default "false")'))
    return "Options:\n" + _tabulate(rows)


def render_usage(
    command: CommandSpec, version: str, inherited_flags: list[str] | None = None
) -> str:
    """Render the full help text for ``command``."""
    if inherited_flags is None:
        inherited_flags = command.inherited_help_flags

    uses = [command.use]
    node = command.parent
    while node is not None:
        uses.insert(0, node.use.removesuffix(" <command>"))
        node = node.parent

    parts = [format_version(version), "\n", f"Usage: {' '.join(uses)}\n\n"]
    if command.long:
        parts += [command.long, "\n\n"]
    if command.example:
        parts += ["Examples:\n", command.example, "\n\n"]
    parts += [render_options(command, inherited_flags), "\n"]

    children = [c for c in sorted(command.commands, key=lambda c: c.name) if c.name != "help"]
    if children:
        rows = [(_INDENT + ", ".join([c.name, *c.aliases]), c.short) for c in children]
        parts += ["Available Commands:\n", _tabulate(rows), "\n"]
    return "".join(parts)


def _bool(name: str, usage: str, shorthand: str = "", hidden: bool = False) -> FlagSpec:
    return FlagSpec(name, usage, "false", shorthand, "", hidden)


def _string(
    name: str, usage: str, default: str = "", shorthand: str = "", hidden: bool = False
) -> FlagSpec:
    return FlagSpec(name, usage, default, shorthand, "string", hidden)


def _global_flags() -> list[FlagSpec]:
    return [
        _bool("repl", "launch Evans as REPL mode", hidden=True),
        _bool("cli", "start as CLI mode", hidden=True),
        _string("call", "call specified RPC by CLI mode", hidden=True),
        _string(
            "file",
            "a script file that will be executed by (used only CLI mode)",
            shorthand="f",
            hidden=True,
        ),
        _bool("silent", "hide redundant output", "s"),
        _string("package", "default package", hidden=True),
        _string("service", "default service", hidden=True),
        FlagSpec("path", "comma-separated proto file paths", "[]", "", "strings"),
        FlagSpec("proto", "comma-separated proto file names", "[]", "", "strings"),
        _string("host", "gRPC server host"),
        _string("port", "gRPC server port", "50051", "p"),
        FlagSpec(
            "header",
            "default headers that set to each requests (example: foo=bar)",
            "[]",
            "",
            "slice of strings",
        ),
        _bool("web", "use gRPC-Web protocol"),
        _bool("reflection", "use gRPC reflection", "r"),
        _bool("tls", "use a secure TLS connection", "t"),
        _string("cacert", "the CA certificate file for verifying the server"),
        _string(
            "cert",
            "the certificate file for mutual TLS auth. it must be provided with --certkey.",
        ),
        _string(
            "certkey",
            "the private key file for mutual TLS auth. it must be provided with --cert.",
        ),
        _string(
            "servername",
            "override the server name used to verify the hostname (ignored if --tls is disabled)",
        ),
        _bool("edit", "edit the project config file by using $EDITOR", "e"),
        _bool("edit-global", "edit the global config file by using $EDITOR"),
        _bool("verbose", "verbose output"),
        _bool("version", "display version and exit", "v"),
        _bool("help", "display help text and exit", "h"),
    ]


def _call_command() -> CommandSpec:
    return CommandSpec(
        use="call [options ...] <method>",
        aliases=["c"],
        short="call a method",
        long="call invokes a method based on the passed method name.",
        example="\n".join(
            [
                "        $ echo '{}' | evans -r cli call api.Service.Unary"
                " # call Unary method with an empty message",
                "        $ evans -r cli call -f in.json api.Service.Unary"
                "  # call Unary method with an input file",
                "",
                "        $ evans -r cli call -f in.json --enrich --output json"
                " api.Service.Unary # enrich output with JSON format",
            ]
        ),
        flags=[
            _bool("enrich", "enrich response output includes header, message, trailer and status"),
            _bool("emit-defaults", "render fields with default values"),
            _string(
                "output",
                'output format. one of "json" or "curl". "curl" is a curl-like format.',
                "curl",
                "o",
            ),
        ],
        inherited_help_flags=["file"],
    )


def _list_command() -> CommandSpec:
    return CommandSpec(
        use="list [options ...] [fully-qualified service/method name]",
        aliases=["ls", "show"],
        short="list services or methods",
        long=(
            "list provides listing feature against to gRPC services or methods belong to a service.\n"
            "If a fully-qualified service name (in the form of <package name>.<service name>),\n"
            "list lists method names belong to the service. If not, list lists all services."
        ),
        example="\n".join(
            [
                "        $ evans -r cli list             # list all services",
                "        $ evans -r cli list -o json     # list all services with JSON format",
                '        $ evans -r cli list api.Service # list all methods belong to service "api.Service"',
            ]
        ),
        flags=[_string("output", 'output format. one of "json" or "name".', "name", "o")],
    )


def _describe_command() -> CommandSpec:
    return CommandSpec(
        use="desc [options ...] [symbol]",
        aliases=["describe"],
        short="describe the descriptor of a symbol",
        long=(
            "desc shows the descriptor of the given symbol.\n"
            "The symbol should be a fully-qualified name. If no symbol is passed, "
            "desc shows all descriptors of the loaded services."
        ),
        example="\n".join(
            [
                "        $ evans -r cli desc             # describe the descriptors of the loaded services",
                '        $ evans -r cli desc api.Service # describe the service descriptor of "api.Service"',
                '        $ evans -r cli desc api.Request # describe the message descriptor of "api.Request"',
            ]
        ),
    )


def build_root_command(register_new: bool = False) -> CommandSpec:
    """Build the root command; ``register_new`` adds the cli and repl sub-commands."""
    root = CommandSpec(
        use="evans [global options ...] <command>",
        persistent_flags=_global_flags(),
    )
    if register_new:
        cli = CommandSpec(use="cli", short="CLI mode")
        cli.add_command(_call_command())
        cli.add_command(_list_command())
        cli.add_command(_describe_command())
        root.add_command(cli)
        root.add_command(
            CommandSpec(
                use="repl [options ...]",
                short="REPL mode",
                inherited_help_flags=["package", "service"],
            )
        )
    return root
# evanscli

`evanscli` is a library of the command-line parts of a gRPC client that do not
depend on the gRPC transport: flag parsing, a layered TOML configuration, a
cache file, self-update checks and help text.

## Modules

- **`evanscli.cui`**: `UI(writer, err_writer)` writes lines with `output` and
  `info` to the writer and with `error` and `warn` to the error writer
  (standard output and standard error when not given). `new_colored(ui)` wraps
  a `UI` in a `ColoredUI`, which colours `info` blue, `warn` yellow and `error`
  red with ANSI escapes; a `ColoredUI` passed in is returned unchanged.
- **`evanscli.flags`**: `parse_args(argv)` returns a `Flags` dataclass and the
  remaining positional arguments. It accepts long flags (`--port 8080`,
  `--port=8080`), shorthands (`-p`, `-r`, `-t`, `-s`, `-f`, `-e`, `-v`, `-h`)
  and `--` to end flag parsing. `Flags.changed` holds the names of the flags
  that were given. `Flags.validate()` raises `FlagError` if `--cli` and `--repl`
  are both set. `HeaderValue` collects repeated `--header key=value` options;
  a value without `=` raises `FlagError`.
- **`evanscli.cache`**: `get(current_version)` loads the TOML cache at
  `resolve_path()` (`$XDG_CACHE_HOME/evans/cache.toml`, falling back to
  `~/.cache`). A missing file, or one written by another version, is written
  afresh. `Cache.save()` writes it back, or calls `save_func` if one is set.
- **`evanscli.config`**: `get(overrides, current_version)` builds a `Config`
  from the defaults, the global file `$XDG_CONFIG_HOME/evans/config.toml`, a
  project `.evans.toml` (looked up in the working directory, then at the Git
  project root found with `git rev-parse --show-cdup`) and a `Flags` value, in
  rising order of priority. A missing global file is created with the
  defaults; one from another version is migrated with
  `evanscli.migrate.migrate` and written back. Header, `--path` and `--proto`
  values from flags are added to the configured ones. `Config.validate()`
  raises `ValidationError` listing every invalid condition. `edit` and
  `edit_global` open the project or global file in `$EDITOR` (or `vim`),
  creating it first if it is missing.
- **`evanscli.update`**: `check_update` asks an install `Means` for the latest
  release and records it in the cache; `process_update` announces it, asks
  through a prompt object with a `select(message, options)` method, installs it
  with `update` while showing a spinner, and then restarts the interpreter.
  `UpdateLevel` (`patch`, `minor`, `major`) decides which releases count as an
  update; `new_updater` raises `ValueError` for any other level.
- **`evanscli.usage`**: `build_root_command(register_new)` builds the command
  tree (with `register_new=True`, the `cli` command with `call`, `list` and
  `desc`, and the `repl` command). `render_usage(command, version)` and
  `render_options(command, inherited_flags)` produce its help text.

## Examples

Collect headers the way the `--header` flag does:

```python
from evanscli.flags import HeaderValue

value = HeaderValue({"ogiso": ["setsuna"]})
value.set("touma=kazusa,touma=youko")
print(str(value))  # ["touma=kazusa,youko"]
```

Parse flags and load the merged configuration:

```python
from evanscli import config
from evanscli.flags import parse_args

flags, rest = parse_args(["--port", "8080", "--proto", "api.proto"])
flags.validate()
cfg = config.get(flags, "0.10.0")
cfg.validate()  # raises config.ValidationError if something is wrong
print(cfg.server.port)  # 8080
```

Print help for the `cli call` command:

```python
from evanscli.usage import build_root_command, render_usage

root = build_root_command(register_new=True)
cli = next(c for c in root.commands if c.name == "cli")
call = next(c for c in cli.commands if c.name == "call")
print(render_usage(call, "0.10.0"))
```

## What this package does not do

It makes no gRPC calls, has no REPL and installs no command: there is nothing
to run from the shell. `evanscli.update.Means` is an abstract class, and the
package ships no concrete means; callers pass their own builders to
`check_update` and `process_update`.

## Requirements

Python 3.11 or later, with `tomli-w` and `packaging`.
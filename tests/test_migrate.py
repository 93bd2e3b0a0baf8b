import tomllib

import pytest

from evanscli import config
from evanscli.migrate import migrate, migrate_0610_to_0611


def _old_settings():
    return {
        "meta": {"configversion": "0.6.10"},
        "request": {"header": [{"key": "grpc-client", "val": "evans"}]},
        "input": {"promptformat": "{ancestor}{name} ({type}) => "},
    }


def test_migrate_converts_header_list_to_map():
    settings = _old_settings()
    migrate("0.6.10", settings)
    assert settings["request"]["header"] == {"grpc-client": ["evans"]}
    assert settings["meta"]["configversion"] == "0.6.11"


def test_migrate_moves_input_prompt_format():
    settings = _old_settings()
    migrate("0.6.10", settings)
    assert settings["repl"]["inputpromptformat"] == "{ancestor}{name} ({type}) => "
    assert "input" not in settings


def test_unknown_version_is_left_alone():
    settings = _old_settings()
    migrate("9.9.9", settings)
    assert settings == _old_settings()


def test_step_returns_updated_version():
    assert migrate_0610_to_0611("0.6.10", _old_settings()) == "0.6.11"


def test_step_fails_on_unreadable_header():
    settings = {"request": {"header": "broken"}}
    assert migrate_0610_to_0611("0.6.10", settings) == ""
    assert settings["meta"]["configversion"] == "0.6.11"


@pytest.mark.parametrize("old_version", ["0.6.10"])
def test_get_loads_old_config(tmp_path, monkeypatch, old_version):
    cfg_home = tmp_path / "config"
    evans_dir = cfg_home / "evans"
    evans_dir.mkdir(parents=True)
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(cfg_home))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.chdir(work)

    (evans_dir / "config.toml").write_text(
        "[meta]\n"
        f'configVersion = "{old_version}"\n'
        "\n"
        "[[request.header]]\n"
        'key = "grpc-client"\n'
        'val = "evans"\n'
        "\n"
        "[input]\n"
        'promptFormat = "> "\n',
        encoding="utf-8",
    )

    cfg = config.get(None, "1.0.0")

    assert cfg.request.header == {"grpc-client": ["evans"]}
    assert cfg.repl.input_prompt_format == "> "
    with (evans_dir / "config.toml").open("rb") as f:
        written = tomllib.load(f)
    assert "input" not in written
    assert written["request"]["header"] == {"grpc-client": ["evans"]}
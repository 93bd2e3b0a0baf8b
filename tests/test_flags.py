import pytest

from evanscli.flags import FlagError, Flags, HeaderValue, parse_args


@pytest.mark.parametrize(
    "given, expected",
    [
        ("touma=kazusa,touma=youko", '["touma=kazusa,youko"]'),
        ("sawamura='spencer=eriri'", "[sawamura='spencer=eriri']"),
        ("sawamura=spencer=eriri", "[sawamura=spencer=eriri]"),
        ("megumi=kato", "[megumi=kato]"),
        ("yuki=asuna,alice", '["yuki=asuna,alice"]'),
    ],
)
def test_header_value_set_and_str(given, expected):
    value = HeaderValue({"ogiso": ["setsuna"]})
    value.set(given)
    assert str(value) == expected


def test_header_value_rejects_missing_equals():
    value = HeaderValue({"ogiso": ["setsuna"]})
    with pytest.raises(FlagError):
        value.set("alice")


def test_header_value_initial_string():
    assert str(HeaderValue({"ogiso": ["setsuna"]})) == "[ogiso=setsuna]"
    assert str(HeaderValue()) == "[]"


def test_header_value_merges_after_first_set():
    value = HeaderValue({"ogiso": ["setsuna"]})
    value.set("a=1")
    value.set("b=2")
    value.set("a=3")
    assert value.value == {"a": ["3"], "b": ["2"]}


def test_header_value_strips_quotes_on_single_pair():
    value = HeaderValue()
    value.set('"a=b"')
    assert value.value == {"a": ["b"]}


def test_validate_rejects_cli_and_repl():
    with pytest.raises(FlagError, match="cannot specify both of --cli and --repl"):
        Flags(cli=True, repl=True).validate()
    assert Flags(cli=True).validate() is None


def test_parse_defaults():
    flags, args = parse_args([])
    assert flags.port == "50051"
    assert flags.path == []
    assert flags.header == {}
    assert args == []
    assert flags.changed == set()


def test_parse_mixed_flags_and_positionals():
    flags, args = parse_args(
        ["--port", "8080", "-r", "--path", "a,b", "--path", "c", "x.proto", "--tls=false"]
    )
    assert flags.port == "8080"
    assert flags.reflection is True
    assert flags.tls is False
    assert flags.path == ["a", "b", "c"]
    assert args == ["x.proto"]
    assert {"port", "reflection", "path", "tls"} <= flags.changed


def test_parse_headers():
    flags, _ = parse_args(
        ["--header", "ogiso=setsuna", "--header", "touma=kazusa,youko", "--header", "sound=of=destiny"]
    )
    assert flags.header == {
        "ogiso": ["setsuna"],
        "touma": ["kazusa,youko"],
        "sound": ["of=destiny"],
    }


def test_parse_header_without_value_fails():
    with pytest.raises(FlagError):
        parse_args(["--header", "foo"])


def test_parse_short_forms():
    flags, args = parse_args(["-p9000", "-f", "in.json", "-rt", "--", "--cli"])
    assert flags.port == "9000"
    assert flags.file == "in.json"
    assert flags.reflection and flags.tls
    assert args == ["--cli"]


def test_parse_unknown_flag():
    with pytest.raises(FlagError, match="unknown flag: --foo"):
        parse_args(["--foo"])


def test_parse_missing_argument():
    with pytest.raises(FlagError, match="needs an argument"):
        parse_args(["--port"])


def test_parse_invalid_bool():
    with pytest.raises(FlagError, match="invalid argument"):
        parse_args(["--web=maybe"])
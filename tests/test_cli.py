# tests/test_cli.py
import json

import pytest

from pgf_runtime.cli import EXIT_DECODE_ERROR, EXIT_OK, EXIT_QUERY_ERROR, main


def test_info(foods_file, capsys):
    assert main(["info", str(foods_file)]) == EXIT_OK
    out = capsys.readouterr().out
    assert "Foods (PGF 1.0), start category Comment" in out
    assert "FoodsEng [en-US]" in out


def test_info_json(foods_file, capsys):
    assert main(["info", str(foods_file), "--json"]) == EXIT_OK
    summary = json.loads(capsys.readouterr().out)
    assert summary["languages"] == {"FoodsEng": "en-US", "FoodsIta": "it-IT"}
    assert summary["diagnostics"] == []


def test_parse(foods_file, capsys):
    assert main(["parse", str(foods_file), "FoodsEng", "this pizza is delicious"]) == EXIT_OK
    assert capsys.readouterr().out == "Pred (This Pizza) Delicious\n"


def test_parse_without_result(foods_file, capsys):
    assert main(["parse", str(foods_file), "FoodsEng", "delicious is pizza"]) == EXIT_OK
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "no parse" in captured.err


@pytest.mark.parametrize(
    "flags, expected",
    [
        ([], "queste pizze sono italiane\n"),
        (["--all"], "queste pizze sono italiane\n"),
        (["--table"], "s\tqueste pizze sono italiane\n"),
    ],
)
def test_linearize(foods_file, capsys, flags, expected):
    argv = ["linearize", str(foods_file), "FoodsIta", "Pred (These Pizza) Italian"] + flags
    assert main(argv) == EXIT_OK
    assert capsys.readouterr().out == expected


def test_parse_refuses_long_input(foods_file, capsys):
    argv = ["parse", str(foods_file), "FoodsEng", "this pizza is delicious", "--max-tokens", "3"]
    assert main(argv) == EXIT_QUERY_ERROR
    assert "4 tokens, the limit is 3" in capsys.readouterr().err


def test_json(foods_file, capsys):
    assert main(["json", str(foods_file), "--indent", "2"]) == EXIT_OK
    assert json.loads(capsys.readouterr().out)["abstract"]["startcat"] == "Comment"


def test_query_errors_exit_1(foods_file, capsys):
    assert main(["parse", str(foods_file), "FoodsFre", "x"]) == EXIT_QUERY_ERROR
    assert main(["linearize", str(foods_file), "FoodsEng", "Pred ("]) == EXIT_QUERY_ERROR
    assert "error:" in capsys.readouterr().err


def test_unreadable_grammar_exits_2(tmp_path, capsys):
    assert main(["info", str(tmp_path / "missing.pgf")]) == EXIT_DECODE_ERROR

    broken = tmp_path / "broken.pgf"
    broken.write_bytes(b"\x00\x07\x00\x00")
    assert main(["info", str(broken)]) == EXIT_DECODE_ERROR
    assert "cannot decode" in capsys.readouterr().err

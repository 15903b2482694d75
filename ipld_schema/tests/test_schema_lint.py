"""Tests for the schema lint command line."""

import sys
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from ipld_schema.schema_lint import lint_file, main


@pytest.fixture
def schema_file(tmp_path):
    def write(text, name="schema.ipldsch"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return write


class TestLintFile:

    def test_valid_file(self, schema_file, capsys):
        path = schema_file("type Color enum { red, green }")
        assert lint_file(path) == (0, 0)
        assert capsys.readouterr().out == ""

    def test_parse_error_reports_line(self, schema_file, capsys):
        path = schema_file("type A Int\ntype B { Int : Int }")
        assert lint_file(path) == (1, 0)
        out = capsys.readouterr().out
        assert f"{path}:2: error: Map key type must be String" in out

    def test_end_of_input_error(self, schema_file, capsys):
        path = schema_file("type T struct {")
        assert lint_file(path) == (1, 0)
        assert "error: Unexpected end of input" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        path = tmp_path / "missing.ipldsch"
        assert lint_file(path) == (1, 0)
        assert "file not found" in capsys.readouterr().out

    def test_duplicate_warning(self, schema_file, capsys):
        path = schema_file("type T Int\ntype T String")
        assert lint_file(path) == (0, 1)
        assert "warning: type 'T' is declared more than once" in capsys.readouterr().out

    @pytest.mark.parametrize("parser", ["handwritten", "peg"])
    def test_dump_yaml(self, schema_file, capsys, parser):
        path = schema_file("type L [Int] representation advanced RMT")
        assert lint_file(path, parser=parser, dump="yaml") == (0, 0)
        dumped = yaml.safe_load(capsys.readouterr().out)
        assert dumped["types"]["L"]["representation"] == {"advanced": "RMT"}

    def test_peg_parser_errors(self, schema_file, capsys):
        path = schema_file("type T @")
        assert lint_file(path, parser="peg") == (1, 0)
        assert "error: Unexpected character" in capsys.readouterr().out


class TestMain:

    def test_exit_status_ok(self, schema_file, capsys):
        path = schema_file("type T Int")
        assert main([str(path)]) == 0

    def test_exit_status_error(self, schema_file, capsys):
        good = schema_file("type T Int", "good.ipldsch")
        bad = schema_file("type", "bad.ipldsch")
        assert main([str(good), str(bad)]) == 1
        assert "1 error(s), 0 warning(s)" in capsys.readouterr().out

    def test_warnings_do_not_fail(self, schema_file, capsys):
        path = schema_file("type T Int type T Int")
        assert main([str(path)]) == 0
        assert "0 error(s), 1 warning(s)" in capsys.readouterr().out

    def test_dump_json(self, schema_file, capsys):
        path = schema_file("type T &Block")
        assert main(["--dump", "json", str(path)]) == 0
        assert '"expectedType": "Block"' in capsys.readouterr().out

    def test_requires_files(self):
        with pytest.raises(SystemExit):
            main([])

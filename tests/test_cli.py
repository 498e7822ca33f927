"""Tests for the CLI module: arg parsing, exit codes, output format, end-to-end."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from polyast.checks import Issue
from polyast.cli import build_parser, format_issue, main, parse_param_arg
from tests.conftest import rng

# ---------------------------------------------------------------------------
# Argument parsing helpers
# ---------------------------------------------------------------------------


class TestParseHelpers:
    def test_parse_param_int(self) -> None:
        assert parse_param_arg("too-many-parameters.max=3") == ("too-many-parameters", "max", 3)

    def test_parse_param_negative_int(self) -> None:
        assert parse_param_arg("r.n=-2") == ("r", "n", -2)

    def test_parse_param_string(self) -> None:
        assert parse_param_arg("r.name=abc") == ("r", "name", "abc")

    def test_parse_param_dotted_rule(self) -> None:
        assert parse_param_arg("a.b.c=1") == ("a.b", "c", 1)

    @pytest.mark.parametrize("raw", ["noequals", "nodot=1", ".name=1", "rule.=1"])
    def test_parse_param_invalid(self, raw) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_param_arg(raw)


class TestBuildParser:
    def test_defaults(self) -> None:
        ns = build_parser().parse_args(["a.slang"])
        assert ns.files == ["a.slang"]
        assert ns.rule == []
        assert ns.param == []
        assert not ns.validate and not ns.debug and not ns.verbose

    def test_requires_files(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatIssue:
    def test_located_issue(self) -> None:
        issue = Issue("todo-comment", "Do it.", rng(3, 4, 3, 8))
        assert format_issue(Path("f.slang"), issue) == "f.slang:3:5: Do it. [todo-comment]"

    def test_file_issue(self) -> None:
        issue = Issue("file-rule", "Whole file.", None)
        assert format_issue(Path("f.slang"), issue) == "f.slang: Whole file. [file-rule]"


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestMain:
    def test_clean_file(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "ok.slang", "a == b;\n")
        assert main([str(path), "--config", str(tmp_path / "none.toml")]) == 0
        assert capsys.readouterr().out == ""

    def test_issues_printed(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "x;\na == a; // todo\n")
        assert main([str(path), "--config", str(tmp_path / "none.toml")]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            f"{path}:2:6: Correct one of the identical sub-expressions on both sides this operator"
            " [identical-binary-operand]",
            f"{path}:2:12: Complete the task associated to this TODO comment. [todo-comment]",
        ]

    def test_rule_selection(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "a == a; // todo\n")
        assert main([str(path), "-r", "todo-comment"]) == 0
        out = capsys.readouterr().out
        assert "[todo-comment]" in out
        assert "identical-binary-operand" not in out

    def test_rule_param(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "fun f(a, b, c) {}\n")
        assert main([str(path), "-r", "too-many-parameters", "-p", "too-many-parameters.max=2"]) == 0
        assert "This function has 3 parameters" in capsys.readouterr().out

    def test_config_file(self, tmp_path, capsys) -> None:
        cfg = _write(tmp_path, "rules.toml", '[rules]\nenabled = ["todo-comment"]\n')
        path = _write(tmp_path, "f.slang", "a == a; // todo\n")
        assert main([str(path), "--config", str(cfg)]) == 0
        assert "identical-binary-operand" not in capsys.readouterr().out

    def test_parse_error_exit_1(self, tmp_path, capsys) -> None:
        bad = _write(tmp_path, "bad.slang", "a b;\n")
        good = _write(tmp_path, "good.slang", "c != c;\n")
        assert main([str(bad), str(good), "-r", "identical-binary-operand"]) == 1
        captured = capsys.readouterr()
        assert "error: missing ';' before 'b'" in captured.err
        assert f"--> {bad}:1:3" in captured.err
        assert f"{good}:1:6:" in captured.out

    def test_missing_file_exit_1(self, tmp_path, capsys) -> None:
        assert main([str(tmp_path / "absent.slang")]) == 1
        assert "absent.slang" in capsys.readouterr().err

    def test_unknown_rule_exit_2(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "x;\n")
        assert main([str(path), "-r", "nope"]) == 2
        assert "error: unknown rule: nope" in capsys.readouterr().err

    def test_bad_param_exit_2(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "x;\n")
        assert main([str(path), "-p", "broken"]) == 2
        assert "invalid param format" in capsys.readouterr().err

    def test_unknown_param_exit_2(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "x;\n")
        assert main([str(path), "-p", "todo-comment.max=1"]) == 2
        assert "invalid rule parameter" in capsys.readouterr().err

    def test_bad_toml_exit_2(self, tmp_path, capsys) -> None:
        cfg = _write(tmp_path, "bad.toml", "[rules\n")
        path = _write(tmp_path, "f.slang", "x;\n")
        assert main([str(path), "--config", str(cfg)]) == 2
        assert capsys.readouterr().err.startswith("error:")

    def test_debug_dumps_tree(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "x;\n")
        assert main([str(path), "--debug"]) == 0
        err = capsys.readouterr().err
        assert f"--- {path}" in err
        assert "TopLevel\n  Identifier x\n" in err

    def test_cpd_dumps_tokens(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", 'import a;\nx = "s";\n')
        assert main([str(path), "--cpd"]) == 0
        err = capsys.readouterr().err
        assert err.splitlines() == [f"--- {path}", "2:1 x", "2:3 =", "2:5 LITERAL", "2:8 ;"]

    def test_validate_flag(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "f.slang", "if (a) { b; } else { c; }\n")
        assert main([str(path), "--validate"]) == 0

    def test_blank_file_ok(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "blank.slang", "\n")
        assert main([str(path)]) == 0
        assert capsys.readouterr().out == ""

"""Command-line interface for polyast."""

from __future__ import annotations

import argparse
import logging
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from polyast.analysis import FileReport, analyze_files
from polyast.checks import Check, Issue
from polyast.converter import ASTConverter
from polyast.errors import ParseError
from polyast.tree import TopLevel


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    files: list[Path]
    enabled_rules: list[str] | None
    rule_params: dict[str, dict[str, Any]]
    validate: bool
    debug: bool
    cpd: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="polyast",
        description="Run syntax-tree checks over SLang source files",
    )
    p.add_argument("files", nargs="+", help="Source files to analyze")
    p.add_argument(
        "-r",
        "--rule",
        action="append",
        default=[],
        metavar="KEY",
        help="Rule to run (repeatable, default: rules from config, else all)",
    )
    p.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        metavar="RULE.NAME=VALUE",
        help="Rule parameter (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover polyast.toml)",
    )
    p.add_argument("--validate", action="store_true", help="Check trees against their source")
    p.add_argument("--debug", action="store_true", help="Dump trees to stderr")
    p.add_argument(
        "--cpd", action="store_true", help="Dump duplicate-detection tokens to stderr"
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return p


def parse_param_arg(s: str) -> tuple[str, str, Any]:
    """Parse a RULE.NAME=VALUE string into (rule, name, value).

    Integer-looking values become ints.
    """
    key, sep, raw = s.partition("=")
    rule, dot, name = key.rpartition(".")
    if not sep or not dot or not rule or not name:
        raise argparse.ArgumentTypeError(f"invalid param format (expected RULE.NAME=VALUE): {s}")
    value: Any = int(raw) if raw.lstrip("-").isdigit() else raw
    return rule, name, value


def load_config(config_path: Path | None, base_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else base_dir / "polyast.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace, base_dir: Path | None = None) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, base_dir if base_dir is not None else Path("."))

    # Rule selection: config < CLI
    enabled: list[str] | None = None
    rule_params: dict[str, dict[str, Any]] = {}
    cfg_rules = config.get("rules")
    if isinstance(cfg_rules, dict):
        cfg_enabled = cfg_rules.get("enabled")
        if isinstance(cfg_enabled, list):
            enabled = [str(r) for r in cfg_enabled]
        for key, value in cfg_rules.items():
            if isinstance(value, dict):
                rule_params[str(key)] = dict(value)
    if args.rule:
        enabled = list(args.rule)

    # Rule parameters: config < CLI
    for raw in args.param:
        rule, name, value = parse_param_arg(raw)
        rule_params.setdefault(rule, {})[name] = value

    validate = bool(config.get("validate", False)) or args.validate

    return CliOptions(
        files=[Path(f) for f in args.files],
        enabled_rules=enabled,
        rule_params=rule_params,
        validate=validate,
        debug=args.debug,
        cpd=args.cpd,
        verbose=args.verbose,
    )


class _DumpingConverter:
    """Wrap a converter to print every tree it builds, or its CPD tokens."""

    def __init__(self, inner: ASTConverter, *, tree: bool = True, cpd: bool = False) -> None:
        self._inner = inner
        self._tree = tree
        self._cpd = cpd

    def parse(self, content: str, filename: str | None = None) -> TopLevel:
        from polyast.highlighting import cpd_tokens
        from polyast.printer import dump_tree

        top = self._inner.parse(content, filename)
        print(f"--- {filename}", file=sys.stderr)
        if self._tree:
            dump_tree(top, file=sys.stderr)
        if self._cpd:
            for token in cpd_tokens(top):
                start = token.text_range.start
                print(f"{start.line}:{start.line_offset + 1} {token.image}", file=sys.stderr)
        return top

    def terminate(self) -> None:
        self._inner.terminate()


def format_issue(path: Path, issue: Issue) -> str:
    """Render one issue as ``file:line:col: message [rule]``."""
    if issue.text_range is None:
        return f"{path}: {issue.message} [{issue.rule_key}]"
    start = issue.text_range.start
    return f"{path}:{start.line}:{start.line_offset + 1}: {issue.message} [{issue.rule_key}]"


def build_checks(options: CliOptions) -> list[Check]:
    """Instantiate the selected rules; KeyError/TypeError on bad rule config."""
    from polyast.rules import create_checks

    return create_checks(options.enabled_rules, options.rule_params)


def run(options: CliOptions, checks: list[Check]) -> list[FileReport]:
    """Analyze the files named in *options* with *checks*."""
    from polyast.parser import SLangConverter

    converter: ASTConverter = SLangConverter(validate=options.validate)
    if options.debug or options.cpd:
        converter = _DumpingConverter(converter, tree=options.debug, cpd=options.cpd)
    return analyze_files(options.files, converter, checks)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, tomllib.TOMLDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        checks = build_checks(options)
    except KeyError as exc:
        print(f"error: {exc.args[0]}", file=sys.stderr)
        return 2
    except TypeError as exc:
        print(f"error: invalid rule parameter: {exc}", file=sys.stderr)
        return 2

    reports = run(options, checks)
    failed = False
    for report in reports:
        if report.error is not None:
            failed = True
            if isinstance(report.error, ParseError):
                print(report.error.format(str(report.path)), file=sys.stderr)
            else:
                print(f"error: {report.path}: {report.error}", file=sys.stderr)
            continue
        for issue in report.issues:
            print(format_issue(report.path, issue))

    return 1 if failed else 0

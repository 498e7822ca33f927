"""Minimal LSP server for SLang: parse errors and check issues as diagnostics."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from polyast import __version__
from polyast.checks import ChecksVisitor, Issue
from polyast.errors import ParseError
from polyast.parser import parse
from polyast.ranges import TextRange
from polyast.rules import create_checks

server = LanguageServer("polyast-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)


def _to_range(text_range: TextRange | None) -> Range:
    """Convert a 1-based-line range to an LSP range (file issues map to 0:0)."""
    if text_range is None:
        return Range(start=Position(line=0, character=0), end=Position(line=0, character=0))
    return Range(
        start=Position(line=text_range.start.line - 1, character=text_range.start.line_offset),
        end=Position(line=text_range.end.line - 1, character=text_range.end.line_offset),
    )


def _issue_diagnostic(issue: Issue) -> Diagnostic:
    return Diagnostic(
        range=_to_range(issue.text_range),
        message=issue.message,
        severity=DiagnosticSeverity.Warning,
        code=issue.rule_key,
        source="polyast",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse and check the document, then publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics: list[Diagnostic] = []

    if source.strip():
        try:
            top = parse(source, filename)
        except ParseError as exc:
            if exc.position is not None:
                line = exc.position.line - 1
                col = exc.position.line_offset
            else:
                line = col = 0
            diagnostics.append(
                Diagnostic(
                    range=Range(
                        start=Position(line=line, character=col),
                        end=Position(line=line, character=col + 1),
                    ),
                    message=exc.message,
                    severity=DiagnosticSeverity.Error,
                    source="polyast",
                )
            )
        else:
            issues = ChecksVisitor(create_checks()).analyze(filename, source, top)
            diagnostics.extend(_issue_diagnostic(issue) for issue in issues)

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()

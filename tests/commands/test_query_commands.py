"""Tests for the parse, normalize, focus and merge command runners."""

from __future__ import annotations

import json
from pathlib import Path

import click
import pytest
import typer

from eql.commands.focus import FocusArgs, run_focus
from eql.commands.merge import MergeArgs, run_merge
from eql.commands.normalize import NormalizeArgs, run_normalize
from eql.commands.parse import ParseArgs, run_parse
from eql.output_format import OutputFormat


def _parse_args(query: str, **overrides: object) -> ParseArgs:
    args = ParseArgs(
        query=query,
        config=".eql-cli.json",
        color_flag=False,
        out=OutputFormat.TREE,
        out_theme="",
    )
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


def _focus_args(query: str, keys: list[str]) -> FocusArgs:
    return FocusArgs(
        query=query,
        keys=keys,
        config=".eql-cli.json",
        color_flag=False,
        out_theme="",
    )


def test_run_parse_prints_tree(capsys: pytest.CaptureFixture[str]) -> None:
    """Default output should be an indented node tree."""
    run_parse(_parse_args("[:a {:b [:c]}]"))
    captured = capsys.readouterr().out

    assert captured.splitlines()[0] == "root"
    assert "prop dispatch_key=:a key=:a" in captured
    assert "join dispatch_key=:b key=:b query_kind=subquery" in captured
    assert "prop dispatch_key=:c key=:c" in captured


def test_run_parse_json_output(capsys: pytest.CaptureFixture[str]) -> None:
    """JSON output should describe the whole tree."""
    run_parse(_parse_args("[[:user/id 1]]", out="json"))
    payload = json.loads(capsys.readouterr().out)

    assert payload["type"] == "root"
    assert payload["children"] == [
        {
            "type": "prop",
            "dispatch_key": ":user/id",
            "key": "[:user/id 1]",
            "meta": {"line": 1, "column": 2},
        }
    ]


def test_run_parse_edn_output(capsys: pytest.CaptureFixture[str]) -> None:
    """EDN output should print the canonical query."""
    run_parse(_parse_args("[({:a [:b]} {:p 1})]", out="EDN"))

    assert capsys.readouterr().out == "[{(:a {:p 1}) [:b]}]\n"


def test_run_parse_rejects_unknown_format() -> None:
    """Unknown --out values are usage errors."""
    with pytest.raises(click.UsageError, match="--out must be one of"):
        run_parse(_parse_args("[:a]", out="yaml"))


def test_run_parse_reports_query_errors() -> None:
    """Malformed queries are usage errors carrying the parse message."""
    with pytest.raises(click.UsageError, match="Join must be a single-entry mapping"):
        run_parse(_parse_args("[{:a [:b] :c [:d]}]"))


def test_run_parse_reports_notation_errors() -> None:
    """Unreadable notation is a usage error."""
    with pytest.raises(click.UsageError, match="Invalid query notation"):
        run_parse(_parse_args("[:a"))


def test_run_parse_reads_query_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """@FILE arguments read the query from a file."""
    query_file = tmp_path / "query.edn"
    query_file.write_text("[:from/file]\n", encoding="utf-8")

    run_parse(_parse_args(f"@{query_file}", out="edn"))

    assert capsys.readouterr().out == "[:from/file]\n"


def test_run_parse_missing_query_file(tmp_path: Path) -> None:
    """Missing query files are reported as bad parameters."""
    with pytest.raises(typer.BadParameter, match="not found"):
        run_parse(_parse_args(f"@{tmp_path / 'missing.edn'}"))


def test_run_normalize_prints_canonical_query(capsys: pytest.CaptureFixture[str]) -> None:
    """Normalize should move params onto keys and drop metadata."""
    args = NormalizeArgs(
        query="^{:doc \"x\"} [:a, ({:b [:c]} {:n 2})]",
        config=".eql-cli.json",
        color_flag=False,
        out_theme="",
    )

    run_normalize(args)

    assert capsys.readouterr().out == "[:a {(:b {:n 2}) [:c]}]\n"


def test_run_focus_prints_subquery(capsys: pytest.CaptureFixture[str]) -> None:
    """Focus should print the sub-query along the key path."""
    run_focus(_focus_args("[:a {:b [:c {:d [:e]}]}]", [":b", ":d"]))

    assert capsys.readouterr().out == "[:e]\n"


def test_run_focus_accepts_ident_keys(capsys: pytest.CaptureFixture[str]) -> None:
    """Ident keys are given in notation."""
    run_focus(_focus_args("[{[:user/id 1] [:user/name]}]", ["[:user/id 1]"]))

    assert capsys.readouterr().out == "[:user/name]\n"


def test_run_focus_not_found_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    """An unresolved path prints Not found and exits with status 1."""
    with pytest.raises(typer.Exit) as exc_info:
        run_focus(_focus_args("[:a]", [":missing"]))

    assert exc_info.value.exit_code == 1
    assert "Not found" in capsys.readouterr().out


def test_run_focus_rejects_bad_key() -> None:
    """Keys must be readable notation."""
    with pytest.raises(typer.BadParameter, match="Invalid key"):
        run_focus(_focus_args("[:a]", ["[:unclosed"]))


def test_run_merge_prints_merged_query(capsys: pytest.CaptureFixture[str]) -> None:
    """Merge should combine joins on the same key."""
    args = MergeArgs(
        left="[:a {:b [:c]}]",
        right="[{:b [:d]} :e]",
        config=".eql-cli.json",
        color_flag=False,
        out_theme="",
    )

    run_merge(args)

    assert capsys.readouterr().out == "[:a {:b [:c :d]} :e]\n"


def test_run_merge_reports_conflicts() -> None:
    """Conflicting params are usage errors."""
    args = MergeArgs(
        left="[(:a {:x 1})]",
        right="[(:a {:x 2})]",
        config=".eql-cli.json",
        color_flag=False,
        out_theme="",
    )

    with pytest.raises(click.UsageError, match="Conflicting params"):
        run_merge(args)

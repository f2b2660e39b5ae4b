"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from metacheck import cli
from metacheck.cli import EXIT_INVALID, _build_parser
from tests._fixtures.metadata_builder import STORAGE_PATH, STORAGE_SOURCE, storage_metadata


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda **_kwargs: None)


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "check", "metadata.json"])
    assert args.verbose is True
    assert args.command == "check"
    assert args.paths == ["metadata.json"]


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["check", "a.sol", "b.json", "--verbose"])
    assert args.verbose is True
    assert args.paths == ["a.sol", "b.json"]


def test_cli_accepts_check_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(["check", "--no-fetch", "--json", "bundle.zip"])
    assert args.no_fetch is True
    assert args.json is True


def test_cli_serve_defaults() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve"])
    assert args.host == "127.0.0.1"
    assert args.port == 8000


def _seed(root: Path, *, with_source: bool) -> None:
    root.mkdir(parents=True, exist_ok=True)
    (root / "metadata.json").write_bytes(storage_metadata().to_bytes())
    if with_source:
        (root / "1_Storage.sol").write_text(STORAGE_SOURCE, encoding="utf-8")


def test_check_prints_json_for_valid_contract(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = tmp_path / "project"
    _seed(project, with_source=True)

    cli.main(["--config", str(tmp_path), "check", "--no-fetch", "--json", str(project)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["ignored"] == []
    assert len(payload["contracts"]) == 1
    contract = payload["contracts"][0]
    assert contract["valid"] is True
    assert contract["compiledPath"] == STORAGE_PATH
    assert contract["name"] == "Storage"


def test_check_exits_with_invalid_status_for_missing_sources(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    project = tmp_path / "project"
    _seed(project, with_source=False)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path), "check", "--no-fetch", str(project), str(tmp_path / "nope.sol")])

    assert excinfo.value.code == EXIT_INVALID
    out = capsys.readouterr().out
    assert f"[INVALID] {STORAGE_PATH}:Storage (1 missing)" in out
    assert "Ignored nonexistent path" in out


def test_check_reports_missing_metadata(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "1_Storage.sol"
    source.write_text(STORAGE_SOURCE, encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path), "check", str(source)])

    assert excinfo.value.code == 1
    assert "Metadata file not found" in capsys.readouterr().err

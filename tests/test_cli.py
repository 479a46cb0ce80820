"""Tests for the ingestion CLI exit codes."""

import importlib.util
from pathlib import Path
from unittest.mock import Mock

import pytest
from twlaw.errors import FetchError
from twlaw.ingest import IngestionSummary
from twlaw.types import TargetLawConfig

SCRIPT_PATH = Path(__file__).parent.parent / "scripts" / "ingest.py"


@pytest.fixture
def cli(monkeypatch, tmp_path):
    loader_spec = importlib.util.spec_from_file_location("twlaw_ingest_cli", SCRIPT_PATH)
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    monkeypatch.setattr(module, "get_settings", Mock())
    monkeypatch.setattr(module, "default_sources", Mock(return_value=[]))
    monkeypatch.setattr("sys.argv", ["ingest.py", "--targeted", "--skip-fetch"])
    return module


def test_fatal_ingestion_error_exits_1(cli, monkeypatch):
    monkeypatch.setattr(cli, "run_ingestion", Mock(side_effect=FetchError("HTTP 503")))
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 1


def test_unexpected_error_exits_1(cli, monkeypatch):
    monkeypatch.setattr(cli, "run_ingestion", Mock(side_effect=RuntimeError("boom")))
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 1


def test_invalid_configuration_exits_1(cli, monkeypatch):
    monkeypatch.setattr(cli, "get_settings", Mock(side_effect=ValueError("bad ARCHIVE_TOOL")))
    run = Mock()
    monkeypatch.setattr(cli, "run_ingestion", run)
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 1
    run.assert_not_called()


def test_missing_targets_still_succeed(cli, monkeypatch, tmp_path):
    summary = IngestionSummary(seed_dir=tmp_path, full_corpus=False, target_count=2, written=1)
    summary.missing.append(TargetLawConfig("tw-aml", "G0380131", "AML", "02-money-laundering-control.json"))
    run = Mock(return_value=summary)
    monkeypatch.setattr(cli, "run_ingestion", run)

    cli.main()

    assert run.call_args.kwargs == {"skip_fetch": True, "full_corpus": False}

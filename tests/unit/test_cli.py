"""CLI integration tests for bharat_osint.cli.main.

``ReportClient`` is replaced with an in-memory stand-in so the console can be
driven end to end without network access.  Every test points the
recently-used store at ``tmp_path`` through a TOML config file.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import List

import pytest

import bharat_osint.cli as cli
from bharat_osint.config import OsintConfig
from bharat_osint.core import PROVIDER_UNREACHABLE_MESSAGE
from bharat_osint.history import RECENT_SEARCHES_KEY
from bharat_osint.report import AnalysisReport, ProviderUnreachable
from bharat_osint.validators import INVALID_IDENTIFIER_REASON

# ---------------------------------------------------------------------------
# Fixtures & helpers
# ---------------------------------------------------------------------------


class FakeClient:
    """Async context manager standing in for ``ReportClient``."""

    failing: set = set()
    configs: List[OsintConfig] = []

    def __init__(self, config: OsintConfig):
        FakeClient.configs.append(config)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def fetch(self, identifier: str) -> AnalysisReport:
        if identifier in FakeClient.failing:
            raise ProviderUnreachable("refused")
        return AnalysisReport.from_payload(
            {
                "phoneNumber": identifier,
                "country": "India",
                "operator": "Airtel",
                "circle": "Delhi NCR",
                "riskLevel": "MEDIUM",
                "confidenceScore": 64,
                "findings": [
                    {"source": "Forum", "summary": 'Quoted as "reseller"', "timestamp": "2024", "severity": "Warning"}
                ],
            }
        )


@pytest.fixture()
def config_path(tmp_path, monkeypatch) -> Path:
    FakeClient.failing = set()
    FakeClient.configs = []
    monkeypatch.setattr(cli, "ReportClient", FakeClient)
    path = tmp_path / "osint.toml"
    path.write_text(
        f'recent_store_path = "{(tmp_path / "recent.json").as_posix()}"\n'
        "items_per_page = 2\n"
        "temperature = 0.9\n"
        'unknown_key = "ignored"\n',
        encoding="utf-8",
    )
    return path


def _run(*argv: str) -> None:
    asyncio.run(cli.main(list(argv)))


def _recent(tmp_path: Path) -> List[str]:
    return json.loads((tmp_path / "recent.json").read_text(encoding="utf-8"))[RECENT_SEARCHES_KEY]


# ---------------------------------------------------------------------------
# Single mode
# ---------------------------------------------------------------------------


def test_single_target_prints_report(config_path, tmp_path, capsys):
    _run("09123456789", "--config", str(config_path))

    out = capsys.readouterr().out
    assert "PRIMARY_UID      +91 91234 56789 (India)" in out
    assert "TELECOM_NODE     Airtel / Delhi NCR Circle" in out
    assert _recent(tmp_path) == ["+91 91234 56789"]


def test_config_overrides_defaults(config_path):
    _run("9123456789", "--config", str(config_path))

    cfg = FakeClient.configs[0]
    assert cfg.items_per_page == 2
    assert cfg.temperature == 0.9
    assert not hasattr(cfg, "unknown_key")


def test_stdin_input(monkeypatch, config_path, capsys):
    monkeypatch.setattr(sys, "stdin", SimpleNamespace(read=lambda: "+91 98765 43210\n"))

    _run("--config", str(config_path))

    assert "+91 98765 43210" in capsys.readouterr().out


def test_invalid_identifier_exits_with_reason(config_path, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("12345", "--config", str(config_path))

    assert exc.value.code == 1
    assert INVALID_IDENTIFIER_REASON in capsys.readouterr().err


def test_provider_failure_exits_with_generic_message(config_path, capsys):
    FakeClient.failing = {"+91 91234 56789"}

    with pytest.raises(SystemExit) as exc:
        _run("9123456789", "--config", str(config_path), "--show-log")

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert PROVIDER_UNREACHABLE_MESSAGE in err
    assert ">> " in err and "SCAN ABORTED: SYSTEM TIMEOUT." in err


def test_blank_input_is_nothing_to_analyse(config_path, capsys):
    _run("   ", "--config", str(config_path))

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "nothing to analyse" in captured.err


def test_json_output(config_path, capsys):
    _run("9123456789", "--config", str(config_path), "--json")

    payload = json.loads(capsys.readouterr().out)
    assert payload["phoneNumber"] == "+91 91234 56789"
    assert payload["riskLevel"] == "MEDIUM"


# ---------------------------------------------------------------------------
# Batch mode
# ---------------------------------------------------------------------------


def test_batch_file_paginates(config_path, tmp_path, capsys):
    targets = tmp_path / "targets.txt"
    targets.write_text("9000000001\n9000000002, bogus\n9000000003\n", encoding="utf-8")

    _run("--batch", "--file", str(targets), "--config", str(config_path), "--page", "2")

    out = capsys.readouterr().out
    assert "+91 90000 00003" in out
    assert "+91 90000 00001" not in out
    assert out.rstrip().endswith("Page 2 of 2 (3 targets)")
    assert _recent(tmp_path)[0] == "+91 90000 00003"


def test_batch_partial_failure_is_not_an_error(config_path, capsys):
    FakeClient.failing = {"+91 90000 00002"}

    _run("--batch", "9000000001,9000000002", "--config", str(config_path))

    out = capsys.readouterr().out
    assert "Page 1 of 1 (1 targets)" in out


def test_batch_all_invalid_reports_no_targets(config_path, capsys):
    _run("--batch", "1,2,3", "--config", str(config_path))
    assert capsys.readouterr().out == "No targets extracted.\n"


def test_input_file_missing_exits(config_path, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("--file", str(tmp_path / "missing.txt"), "--config", str(config_path))

    assert exc.value.code == 1
    assert "input file not found" in capsys.readouterr().err.lower()


def test_config_load_failure_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("9123456789", "--config", str(tmp_path / "nope.toml"))

    assert exc.value.code == 1
    assert "failed to load config" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


def test_single_exports_to_directory_and_file(config_path, tmp_path, capsys):
    out_dir = tmp_path / "exports"
    out_dir.mkdir()
    json_file = tmp_path / "report.json"

    _run("9123456789", "--config", str(config_path), "--csv-out", str(out_dir), "--json-out", str(json_file))

    csv_text = (out_dir / "DETAILED_LOG_919123456789.csv").read_text(encoding="utf-8")
    assert '"Forum","Quoted as ""reseller""","2024","Warning"' in csv_text
    assert json.loads(json_file.read_text(encoding="utf-8"))["operator"] == "Airtel"
    assert capsys.readouterr().err.count("Exported ") == 2


def test_batch_csv_export_uses_manifest(config_path, tmp_path):
    out_dir = tmp_path / "exports"
    out_dir.mkdir()

    _run("--batch", "9000000001\n9000000002", "--config", str(config_path), "--csv-out", str(out_dir))

    [written] = list(out_dir.iterdir())
    assert written.name.startswith("BATCH_MANIFEST_")
    assert written.read_text(encoding="utf-8").split("\n")[1].startswith('"+91 90000 00001","Airtel"')


def test_export_with_nothing_to_export(config_path, tmp_path, capsys):
    _run("--batch", "bogus", "--config", str(config_path), "--csv-out", str(tmp_path / "x.csv"))

    assert "nothing to export" in capsys.readouterr().err
    assert not (tmp_path / "x.csv").exists()


# ---------------------------------------------------------------------------
# Recently-used list
# ---------------------------------------------------------------------------


def test_recent_listing(config_path, capsys):
    _run("9000000001", "--config", str(config_path))
    _run("9000000002", "--config", str(config_path))
    capsys.readouterr()

    _run("--recent", "--config", str(config_path))

    assert capsys.readouterr().out == "1. +91 90000 00002\n2. +91 90000 00001\n"


def test_recent_pick_reruns_identifier(config_path, tmp_path, capsys):
    _run("9000000001", "--config", str(config_path))
    _run("9000000002", "--config", str(config_path))
    capsys.readouterr()

    _run("--recent-pick", "2", "--config", str(config_path))

    assert "+91 90000 00001" in capsys.readouterr().out
    assert _recent(tmp_path) == ["+91 90000 00001", "+91 90000 00002"]


def test_recent_pick_out_of_range_exits(config_path, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("--recent-pick", "3", "--config", str(config_path))

    assert exc.value.code == 1
    assert "no recent search #3" in capsys.readouterr().err


def test_wipe_recent(config_path, tmp_path, capsys):
    _run("9000000001", "--config", str(config_path))

    _run("--wipe-recent", "--config", str(config_path))

    assert _recent(tmp_path) == []
    assert "Recent searches wiped." in capsys.readouterr().err


def test_export_without_path_uses_export_dir(config_path, tmp_path):
    export_dir = tmp_path / "osint-exports"
    with config_path.open("a", encoding="utf-8") as fh:
        fh.write(f'export_dir = "{export_dir.as_posix()}"\n')

    _run("9123456789", "--config", str(config_path), "--csv-out")

    assert (export_dir / "DETAILED_LOG_919123456789.csv").exists()

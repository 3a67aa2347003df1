"""Export helpers turning reports into downloadable JSON and CSV artifacts.

Two row-quoting rules coexist in the CSV output and are kept on purpose:
batch manifest values are wrapped in double quotes *without* escaping, while
finding values in a single-report manifest have inner quotes doubled.  A batch
value containing ``"`` therefore produces a malformed row.
"""
from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .report import AnalysisReport
from .state import OrchestrationState

__all__ = [
    "BATCH_HEADERS",
    "FINDINGS_HEADERS",
    "ExportArtifact",
    "format_score",
    "to_structured_export",
    "to_tabular_export",
    "select_export_data",
    "export_filename",
    "build_json_artifact",
    "build_csv_artifact",
    "write_artifact",
]

ExportData = Union[AnalysisReport, Sequence[AnalysisReport]]

BATCH_HEADERS = ["Identifier", "Operator", "Circle", "Risk_Level", "Confidence_Score"]
FINDINGS_HEADERS = ["Source", "Summary", "Timestamp", "Severity"]
FINDINGS_SECTION = "INTELLIGENCE FINDINGS MANIFEST"

_NON_DIGIT_RE = re.compile(r"\D")


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    media_type: str
    content: bytes


def _is_batch(data: ExportData) -> bool:
    return not isinstance(data, AnalysisReport)


def format_score(score: Union[int, float]) -> str:
    if isinstance(score, float) and score.is_integer():
        return f"{int(score)}%"
    return f"{score}%"


def _quote(value: object) -> str:
    return f'"{value}"'


def _quote_escaped(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _join_rows(rows: Iterable[List[str]]) -> str:
    return "\n".join(",".join(row) for row in rows)


# ---------------------------------------------------------------------------
# Serialisers
# ---------------------------------------------------------------------------

def to_structured_export(data: ExportData) -> bytes:
    """Serialise one report (object) or a batch (array) as pretty JSON."""
    if _is_batch(data):
        payload: object = [report.to_payload() for report in data]
    else:
        payload = data.to_payload()
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def _batch_rows(reports: Sequence[AnalysisReport]) -> List[List[str]]:
    rows = [list(BATCH_HEADERS)]
    for report in reports:
        rows.append(
            [
                _quote(report.identifier),
                _quote(report.operator),
                _quote(report.circle),
                _quote(report.risk_level.value),
                _quote(format_score(report.confidence_score)),
            ]
        )
    return rows


def _single_rows(report: AnalysisReport) -> List[List[str]]:
    rows = [
        ["TARGET IDENTIFIER", report.identifier],
        ["OPERATOR", report.operator],
        ["CIRCLE", report.circle],
        ["RISK ASSESSMENT", report.risk_level.value],
        ["CONFIDENCE SCORE", format_score(report.confidence_score)],
        ["CONNECTION TYPE", report.metadata.connection_type],
        [""],
        [FINDINGS_SECTION],
        list(FINDINGS_HEADERS),
    ]
    for finding in report.findings:
        rows.append(
            [
                _quote_escaped(finding.source),
                _quote_escaped(finding.summary),
                _quote_escaped(finding.timestamp),
                _quote(finding.severity.value),
            ]
        )
    return rows


def to_tabular_export(data: ExportData) -> bytes:
    """Render the CSV manifest for a batch or for a single report."""
    rows = _batch_rows(data) if _is_batch(data) else _single_rows(data)
    return _join_rows(rows).encode("utf-8")


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------

def select_export_data(state: OrchestrationState) -> Optional[ExportData]:
    """Batch results win over the single result; ``None`` when neither exists."""
    if state.batch_results:
        return list(state.batch_results)
    return state.result


def export_filename(kind: str, data: ExportData, now_ms: Optional[int] = None) -> str:
    """Return the download name for a ``"json"`` or ``"csv"`` export of *data*."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    if kind == "json":
        return f"OSINT_REPORT_{stamp}.json"
    if kind == "csv":
        if _is_batch(data):
            return f"BATCH_MANIFEST_{stamp}.csv"
        return f"DETAILED_LOG_{_NON_DIGIT_RE.sub('', data.identifier)}.csv"
    raise ValueError(f"Unsupported export kind: {kind}")


def build_json_artifact(
    state: OrchestrationState, now_ms: Optional[int] = None
) -> Optional[ExportArtifact]:
    data = select_export_data(state)
    if data is None:
        return None
    return ExportArtifact(
        filename=export_filename("json", data, now_ms),
        media_type="application/json",
        content=to_structured_export(data),
    )


def build_csv_artifact(
    state: OrchestrationState, now_ms: Optional[int] = None
) -> Optional[ExportArtifact]:
    data = select_export_data(state)
    if data is None:
        return None
    return ExportArtifact(
        filename=export_filename("csv", data, now_ms),
        media_type="text/csv;charset=utf-8",
        content=to_tabular_export(data),
    )


def write_artifact(artifact: ExportArtifact, destination: str | Path) -> Path:
    """Write *artifact* to *destination*.

    An existing directory receives the artifact under its own filename;
    anything else is treated as the target file path.
    """
    path = Path(destination)
    if path.is_dir():
        path = path / artifact.filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(artifact.content)
    return path

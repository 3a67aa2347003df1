from typing import List, Sequence

from .exporter import format_score
from .report import AnalysisReport

_BATCH_COLUMNS = ("IDENTIFIER", "OPERATOR", "CIRCLE", "RISK", "CONFIDENCE")


def render_report(report: AnalysisReport) -> str:
    """Plain-text summary of a single report followed by its findings."""
    meta = report.metadata
    lines: List[str] = [
        f"PRIMARY_UID      {report.identifier} ({report.country or 'Unknown'})",
        f"TELECOM_NODE     {report.operator} / {report.circle} Circle",
        f"RISK_ASSESSMENT  {report.risk_level.value}  confidence {format_score(report.confidence_score)}",
        f"CONN_TYPE        {meta.connection_type or '-'}",
        f"DND_FILTER       {'ACTIVE_BLOCKED' if meta.is_dnd else 'INACTIVE_BYPASS'}",
        f"ENTITY_CLASS     {meta.potential_owner_type or '-'}",
        "",
        "INTELLIGENCE MANIFEST",
    ]
    if not report.findings:
        lines.append("  (no findings)")
    for finding in report.findings:
        lines.append(f"  [{finding.severity.value:<7}] {finding.source}: {finding.summary}")
        if finding.timestamp:
            lines.append(f"            {finding.timestamp}")
    return "\n".join(lines) + "\n"


def render_batch_page(
    reports: Sequence[AnalysisReport], page: int, total_pages: int, total: int
) -> str:
    """Tabulate one page of batch results with a page footer."""
    if not total:
        return "No targets extracted.\n"

    rows = [list(_BATCH_COLUMNS)] + [
        [r.identifier, r.operator, r.circle, r.risk_level.value, format_score(r.confidence_score)] for r in reports
    ]
    widths = [max(len(row[i]) for row in rows) for i in range(len(_BATCH_COLUMNS))]
    out = ["  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip() for row in rows]
    out.append("")
    out.append(f"Page {page} of {total_pages} ({total} targets)")
    return "\n".join(out) + "\n"


def render_log(lines: Sequence[str]) -> str:
    return "".join(f">> {line}\n" for line in lines)

"""Export API: research query results for external consumption."""

import csv
import io
import json
from pathlib import Path
from typing import List

from ..research.filters import ResearchFilter
from ..research.models import ResearchDataView
from ..utils.time import utc_now_z
from .research_api import ResearchQueryGateway

EXPORT_SCHEMA_VERSION = "1"

CSV_COLUMNS = [
    "id",
    "title",
    "category",
    "client",
    "client_industry",
    "status",
    "start_date",
    "end_date",
    "tags",
    "satisfaction_score",
    "implementation_status",
    "document_count",
    "created_at",
]


def _write_or_return(output: str, out: Path | None) -> str:
    if out:
        out.write_text(output, encoding="utf-8")
        return f"Exported to {out}"
    return output


def render_json(records: List[ResearchDataView], filters: ResearchFilter) -> str:
    export_data = {
        "export_schema_version": EXPORT_SCHEMA_VERSION,
        "exported_at_utc": utc_now_z(),
        "filters": filters.model_dump(mode="json"),
        "count": len(records),
        "data": [record.model_dump(mode="json") for record in records],
    }
    return json.dumps(export_data, indent=2, sort_keys=True)


def render_csv(records: List[ResearchDataView]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for record in records:
        metrics = record.metrics
        writer.writerow(
            {
                "id": record.id,
                "title": record.title,
                "category": record.category or "",
                "client": record.client or "",
                "client_industry": record.client_industry or "",
                "status": record.status.value if record.status else "",
                "start_date": record.start_date.isoformat() if record.start_date else "",
                "end_date": record.end_date.isoformat() if record.end_date else "",
                "tags": ";".join(record.tags),
                "satisfaction_score": "" if not metrics or metrics.satisfaction_score is None else metrics.satisfaction_score,
                "implementation_status": (metrics.implementation_status or "") if metrics else "",
                "document_count": len(record.documents),
                "created_at": record.created_at.isoformat(),
            }
        )
    return buffer.getvalue()


def render_markdown(records: List[ResearchDataView]) -> str:
    if not records:
        return "_No research projects match the current filters._\n"
    lines: List[str] = []
    for record in records:
        lines.append(f"## {record.title}")
        meta = [
            f"**Category:** {record.category or '-'}",
            f"**Client:** {record.client or '-'}",
            f"**Status:** {record.status.value if record.status else '-'}",
        ]
        lines.append(" | ".join(meta))
        if record.tags:
            lines.append(f"Tags: {', '.join(record.tags)}")
        if record.summary:
            lines.append("")
            lines.append(record.summary)
        if record.metrics and record.metrics.satisfaction_score is not None:
            lines.append(f"Satisfaction: {record.metrics.satisfaction_score:g}/100")
        for doc in record.documents:
            link = f" ({doc.drive_url})" if doc.drive_url else ""
            lines.append(f"- {doc.title}{link}")
        lines.append("")
    return "\n".join(lines)


def export_research(
    gateway: ResearchQueryGateway,
    filters: ResearchFilter | None = None,
    format: str = "json",
    out: Path | None = None,
) -> str:
    """
    Export filtered research records.

    Args:
        gateway: Research query gateway
        filters: Active filter (None = unconstrained)
        format: "json", "csv" or "md"
        out: Output file path (if None, returns as string)

    Returns:
        Exported data as string, or a confirmation line when written to ``out``
    """
    filters = filters or ResearchFilter()
    if format not in ("json", "csv", "md"):
        raise ValueError(f"Unsupported format: {format}")
    records = gateway.query_research(filters)
    if format == "json":
        output = render_json(records, filters)
    elif format == "csv":
        output = render_csv(records)
    else:
        output = render_markdown(records)
    return _write_or_return(output, out)

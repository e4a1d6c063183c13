"""Load a demo research corpus from JSON into the research database."""

import json
from pathlib import Path
from typing import Any, Dict

from jsonschema import Draft202012Validator, FormatChecker

from research_portal.api.research_api import ResearchQueryGateway
from research_portal.utils.logging import get_logger

logger = get_logger(__name__)

_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["title"],
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "drive_id": {"type": ["string", "null"]},
        "drive_url": {"type": ["string", "null"]},
        "doc_type": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

CORPUS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["version", "projects"],
    "properties": {
        "version": {"const": 1},
        "companies": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "industry": {"type": ["string", "null"]},
                },
                "additionalProperties": False,
            },
        },
        "projects": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["title"],
                "properties": {
                    "title": {"type": "string", "minLength": 1},
                    "summary": {"type": ["string", "null"]},
                    "category": {"type": ["string", "null"]},
                    "client": {"type": ["string", "null"]},
                    "start_date": {"type": ["string", "null"], "format": "date"},
                    "end_date": {"type": ["string", "null"], "format": "date"},
                    "status": {"type": ["string", "null"]},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "metrics": {
                        "type": ["object", "null"],
                        "properties": {
                            "impact": {"type": ["string", "null"]},
                            "satisfaction_score": {"type": ["number", "null"]},
                            "implementation_status": {"type": ["string", "null"]},
                        },
                        "additionalProperties": False,
                    },
                    "documents": {"type": "array", "items": _DOCUMENT_SCHEMA},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


def validate_corpus(payload: Dict[str, Any]) -> None:
    """
    Validate a corpus document against CORPUS_SCHEMA.

    Raises:
        ValueError: Listing every schema violation, one per line
    """
    validator = Draft202012Validator(CORPUS_SCHEMA, format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.absolute_path))
    if errors:
        lines = []
        for err in errors:
            location = "/".join(str(part) for part in err.absolute_path) or "<root>"
            lines.append(f"{location}: {err.message}")
        raise ValueError("Invalid demo corpus:\n" + "\n".join(lines))


def load_corpus(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Demo corpus not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    validate_corpus(payload)
    return payload


def seed_corpus(gateway: ResearchQueryGateway, payload: Dict[str, Any]) -> Dict[str, int]:
    """
    Create companies, projects, metrics and documents through the gateway.

    Companies that already exist (by name) are reused. Projects are always
    inserted. Returns counts of what was created.
    """
    company_ids = {c.name: c.id for c in gateway.list_companies()}
    counts = {"companies": 0, "projects": 0, "documents": 0, "metrics": 0}

    for entry in payload.get("companies", []):
        if entry["name"] in company_ids:
            continue
        company = gateway.create_company(entry["name"], entry.get("industry"))
        company_ids[company.name] = company.id
        counts["companies"] += 1

    for entry in payload["projects"]:
        client_name = entry.get("client")
        if client_name and client_name not in company_ids:
            company = gateway.create_company(client_name)
            company_ids[client_name] = company.id
            counts["companies"] += 1

        project = gateway.create_project(
            {
                "title": entry["title"],
                "summary": entry.get("summary"),
                "category": entry.get("category"),
                "client_id": company_ids.get(client_name) if client_name else None,
                "start_date": entry.get("start_date"),
                "end_date": entry.get("end_date"),
                "status": entry.get("status"),
                "tags": entry.get("tags", []),
            }
        )
        counts["projects"] += 1

        if entry.get("metrics"):
            gateway.update_metrics(project.id, entry["metrics"])
            counts["metrics"] += 1
        for doc in entry.get("documents", []):
            gateway.add_research_document(project.id, **doc)
            counts["documents"] += 1

    logger.info(
        "Seeded %d companies, %d projects, %d documents, %d metrics",
        counts["companies"],
        counts["projects"],
        counts["documents"],
        counts["metrics"],
    )
    return counts


def main(gateway: ResearchQueryGateway, corpus_path: Path, force: bool = False) -> Dict[str, int]:
    """Seed the demo corpus unless the database already holds projects."""
    payload = load_corpus(corpus_path)
    if not force and gateway.query_research():
        logger.warning("Research database already has projects; skipping demo seed (use --force)")
        return {"companies": 0, "projects": 0, "documents": 0, "metrics": 0}
    return seed_corpus(gateway, payload)

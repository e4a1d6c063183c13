"""CLI entrypoint for the research portal."""

import argparse
import json
from pathlib import Path
from typing import Any, Dict

from research_portal.api.export import export_research
from research_portal.api.research_api import ResearchQueryGateway
from research_portal.config.loader import (
    get_database_url,
    get_demo_corpus_path,
    get_echo_sql,
    get_log_level,
    load_config_or_default,
)
from research_portal.database.db_client import get_session_factory
from research_portal.database.research_repo import ProjectNotFoundError
from research_portal.research.filters import ResearchFilter
from research_portal.research.models import DocumentType, ProjectStatus
from research_portal.runners.seed_demo import main as seed_demo_main
from research_portal.utils.logging import configure_logging, get_logger
from research_portal.utils.time import parse_date

logger = get_logger(__name__)


def _load_config(args: argparse.Namespace) -> Dict[str, Any]:
    config_path = getattr(args, "config", None)
    return load_config_or_default(Path(config_path) if config_path else None)


def build_gateway(config: Dict[str, Any]) -> ResearchQueryGateway:
    database_url = get_database_url(config)
    return ResearchQueryGateway(get_session_factory(database_url, echo=get_echo_sql(config)))


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create the research tables if they don't exist."""
    config = _load_config(args)
    build_gateway(config)
    print(f"Research database ready: {get_database_url(config)}")


def cmd_seed_demo(args: argparse.Namespace) -> None:
    config = _load_config(args)
    corpus_path = Path(args.corpus) if args.corpus else get_demo_corpus_path(config)
    counts = seed_demo_main(build_gateway(config), corpus_path, force=args.force)
    print(
        f"Seeded {counts['projects']} projects, {counts['companies']} companies, "
        f"{counts['documents']} documents, {counts['metrics']} metrics"
    )


def cmd_categories(args: argparse.Namespace) -> None:
    for category in build_gateway(_load_config(args)).list_categories():
        print(category)


def cmd_clients(args: argparse.Namespace) -> None:
    for client in build_gateway(_load_config(args)).list_clients():
        print(client)


def cmd_tags(args: argparse.Namespace) -> None:
    for tag in build_gateway(_load_config(args)).list_tags():
        print(tag)


def cmd_query(args: argparse.Namespace) -> None:
    """Run a filtered research query and print or write the result."""
    filters = ResearchFilter(
        category=args.category,
        client=args.client,
        start_date=parse_date(args.start_date),
        end_date=parse_date(args.end_date),
        search_term=args.search,
    )
    gateway = build_gateway(_load_config(args))
    out = Path(args.out) if args.out else None
    print(export_research(gateway, filters, format=args.format, out=out))


def cmd_project_show(args: argparse.Namespace) -> None:
    project = build_gateway(_load_config(args)).get_project(args.project_id)
    if project is None:
        raise ProjectNotFoundError(args.project_id)
    _print_json(project.model_dump(mode="json"))


def cmd_project_create(args: argparse.Namespace) -> None:
    gateway = build_gateway(_load_config(args))
    project = gateway.create_project(
        {
            "title": args.title,
            "summary": args.summary,
            "category": args.category,
            "client_id": args.client_id,
            "start_date": parse_date(args.start_date),
            "end_date": parse_date(args.end_date),
            "status": args.status,
            "tags": args.tag or [],
        }
    )
    _print_json(project.model_dump(mode="json"))


def cmd_project_update(args: argparse.Namespace) -> None:
    changes: Dict[str, Any] = {}
    for field in ("title", "summary", "category", "client_id", "status"):
        value = getattr(args, field)
        if value is not None:
            changes[field] = value
    for field in ("start_date", "end_date"):
        value = getattr(args, field)
        if value is not None:
            changes[field] = parse_date(value)
    if not changes:
        logger.error("Nothing to update; pass at least one field option")
        return
    project = build_gateway(_load_config(args)).update_project(args.project_id, changes)
    _print_json(project.model_dump(mode="json"))


def cmd_project_delete(args: argparse.Namespace) -> None:
    build_gateway(_load_config(args)).delete_project(args.project_id)
    print(f"Deleted research project {args.project_id}")


def cmd_metrics_set(args: argparse.Namespace) -> None:
    metrics = build_gateway(_load_config(args)).update_metrics(
        args.project_id,
        {
            "impact": args.impact,
            "satisfaction_score": args.satisfaction_score,
            "implementation_status": args.implementation_status,
        },
    )
    _print_json(metrics.model_dump(mode="json"))


def cmd_document_add(args: argparse.Namespace) -> None:
    build_gateway(_load_config(args)).add_research_document(
        args.project_id,
        args.title,
        drive_id=args.drive_id,
        drive_url=args.drive_url,
        doc_type=args.doc_type,
    )
    print(f"Added document '{args.title}' to project {args.project_id}")


def cmd_company_add(args: argparse.Namespace) -> None:
    company = build_gateway(_load_config(args)).create_company(args.name, args.industry)
    _print_json(company.model_dump(mode="json"))


def cmd_company_list(args: argparse.Namespace) -> None:
    companies = build_gateway(_load_config(args)).list_companies()
    if not companies:
        print("No companies configured.")
        return
    print(f"{'ID':<6} {'Name':<40} {'Industry':<30}")
    print("-" * 76)
    for company in companies:
        print(f"{company.id:<6} {company.name:<40} {company.industry or '-':<30}")


def _add_project_field_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--summary", type=str, help="Project summary")
    parser.add_argument("--category", type=str, help="Research category")
    parser.add_argument("--client-id", type=int, help="Owning company id")
    parser.add_argument("--start-date", type=str, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end-date", type=str, help="End date (YYYY-MM-DD)")
    parser.add_argument(
        "--status",
        type=str,
        choices=[status.value for status in ProjectStatus],
        help="Project status",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Research portal data tools")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config YAML (default: research_portal.config.yaml if present)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Create research tables")
    init_parser.set_defaults(func=cmd_init_db)

    seed_parser = subparsers.add_parser("seed-demo", help="Load the demo research corpus")
    seed_parser.add_argument("--corpus", type=str, help="Path to corpus JSON (default: from config)")
    seed_parser.add_argument(
        "--force",
        action="store_true",
        help="Seed even if projects already exist",
    )
    seed_parser.set_defaults(func=cmd_seed_demo)

    subparsers.add_parser("categories", help="List research categories").set_defaults(func=cmd_categories)
    subparsers.add_parser("clients", help="List research clients").set_defaults(func=cmd_clients)
    subparsers.add_parser("tags", help="List tag names").set_defaults(func=cmd_tags)

    query_parser = subparsers.add_parser("query", help="Query research projects")
    query_parser.add_argument("--category", type=str, help="Exact category")
    query_parser.add_argument("--client", type=str, help="Exact client name")
    query_parser.add_argument("--start-date", type=str, help="Projects starting on/after (YYYY-MM-DD)")
    query_parser.add_argument("--end-date", type=str, help="Projects ending on/before (YYYY-MM-DD)")
    query_parser.add_argument("--search", type=str, help="Case-insensitive text search")
    query_parser.add_argument(
        "--format",
        type=str,
        choices=["json", "csv", "md"],
        default="md",
        help="Output format (default: md)",
    )
    query_parser.add_argument("--out", type=str, help="Write output to this file")
    query_parser.set_defaults(func=cmd_query)

    # project commands
    project_parser = subparsers.add_parser("project", help="Research project commands")
    project_subparsers = project_parser.add_subparsers(dest="project_command")

    show_parser = project_subparsers.add_parser("show", help="Show one project with relations")
    show_parser.add_argument("project_id", type=int)
    show_parser.set_defaults(func=cmd_project_show)

    create_parser = project_subparsers.add_parser("create", help="Create a project")
    create_parser.add_argument("--title", type=str, required=True, help="Project title")
    _add_project_field_arguments(create_parser)
    create_parser.add_argument("--tag", action="append", help="Tag name (repeatable)")
    create_parser.set_defaults(func=cmd_project_create)

    update_parser = project_subparsers.add_parser("update", help="Update project fields")
    update_parser.add_argument("project_id", type=int)
    update_parser.add_argument("--title", type=str, help="Project title")
    _add_project_field_arguments(update_parser)
    update_parser.set_defaults(func=cmd_project_update)

    delete_parser = project_subparsers.add_parser("delete", help="Delete a project permanently")
    delete_parser.add_argument("project_id", type=int)
    delete_parser.set_defaults(func=cmd_project_delete)

    metrics_parser = subparsers.add_parser("metrics", help="Research metrics commands")
    metrics_subparsers = metrics_parser.add_subparsers(dest="metrics_command")
    metrics_set_parser = metrics_subparsers.add_parser("set", help="Create or replace project metrics")
    metrics_set_parser.add_argument("project_id", type=int)
    metrics_set_parser.add_argument("--impact", type=str)
    metrics_set_parser.add_argument("--satisfaction-score", type=float, help="0-100")
    metrics_set_parser.add_argument("--implementation-status", type=str)
    metrics_set_parser.set_defaults(func=cmd_metrics_set)

    document_parser = subparsers.add_parser("document", help="Research document commands")
    document_subparsers = document_parser.add_subparsers(dest="document_command")
    document_add_parser = document_subparsers.add_parser("add", help="Attach a document to a project")
    document_add_parser.add_argument("project_id", type=int)
    document_add_parser.add_argument("--title", type=str, required=True)
    document_add_parser.add_argument("--drive-id", type=str)
    document_add_parser.add_argument("--drive-url", type=str)
    document_add_parser.add_argument(
        "--doc-type",
        type=str,
        choices=[doc_type.value for doc_type in DocumentType],
    )
    document_add_parser.set_defaults(func=cmd_document_add)

    company_parser = subparsers.add_parser("company", help="Client company commands")
    company_subparsers = company_parser.add_subparsers(dest="company_command")
    company_add_parser = company_subparsers.add_parser("add", help="Create a company")
    company_add_parser.add_argument("name", type=str)
    company_add_parser.add_argument("--industry", type=str)
    company_add_parser.set_defaults(func=cmd_company_add)
    company_subparsers.add_parser("list", help="List companies").set_defaults(func=cmd_company_list)

    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return

    try:
        configure_logging(get_log_level(_load_config(args)))
        args.func(args)
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()

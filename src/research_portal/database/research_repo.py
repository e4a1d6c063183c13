"""Repository functions for the research corpus tables.

Functions take an open Session first, add/flush rows, and never commit:
the caller owns the unit of work.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import String, func, or_, select
from sqlalchemy.orm import Session, selectinload

from ..utils.logging import get_logger
from .schema import (
    Company,
    ProjectTag,
    ResearchDocument,
    ResearchMetrics,
    ResearchProject,
    Tag,
)

logger = get_logger(__name__)

PROJECT_FIELDS = ("title", "summary", "category", "client_id", "start_date", "end_date", "status")


class ProjectNotFoundError(LookupError):
    """Raised when an operation addresses a research project id that does not exist."""

    def __init__(self, project_id: int):
        super().__init__(f"Research project not found: {project_id}")
        self.project_id = project_id


def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _icontains(column, needle: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    return func.lower(column, type_=String).contains(needle, autoescape=True)


def _eager_project_options():
    return (
        selectinload(ResearchProject.client),
        selectinload(ResearchProject.project_tags).selectinload(ProjectTag.tag),
        selectinload(ResearchProject.metrics),
        selectinload(ResearchProject.documents),
    )


# Companies

def create_company(session: Session, name: str, industry: Optional[str] = None) -> Company:
    company = Company(name=name, industry=industry)
    session.add(company)
    session.flush()
    logger.debug(f"Created company {company.id}: {name}")
    return company


def list_companies(session: Session) -> List[Company]:
    return list(session.execute(select(Company).order_by(Company.name.asc())).scalars())


# Tags

def get_or_create_tag(session: Session, name: str) -> Tag:
    """
    Upsert a tag by name.

    Looks the name up first and only inserts when absent, so repeated calls
    with the same name always resolve to the same row.
    """
    tag = session.execute(select(Tag).where(Tag.name == name)).scalar_one_or_none()
    if tag is not None:
        return tag
    tag = Tag(name=name)
    session.add(tag)
    session.flush()
    logger.debug(f"Created tag {tag.id}: {name}")
    return tag


def attach_tags(session: Session, project: ResearchProject, tag_names: Iterable[str]) -> List[Tag]:
    """Resolve each name through the tag upsert and link it to the project once."""
    linked = {pt.tag_id for pt in project.project_tags}
    tags: List[Tag] = []
    for name in tag_names:
        tag = get_or_create_tag(session, name)
        tags.append(tag)
        if tag.id in linked:
            continue
        project.project_tags.append(ProjectTag(project_id=project.id, tag_id=tag.id, tag=tag))
        linked.add(tag.id)
    session.flush()
    return tags


def list_tag_names(session: Session) -> List[str]:
    return list(session.execute(select(Tag.name).order_by(Tag.name.asc())).scalars())


# Projects

def create_project(
    session: Session,
    *,
    title: str,
    summary: Optional[str] = None,
    category: Optional[str] = None,
    client_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
) -> ResearchProject:
    """
    Insert a project row and link its tags.

    Both phases run in the caller's transaction; nothing is committed here.
    """
    project = ResearchProject(
        title=title,
        summary=summary,
        category=category,
        client_id=client_id,
        start_date=start_date,
        end_date=end_date,
        status=_column_value(status),
    )
    session.add(project)
    session.flush()
    logger.debug(f"Created research project {project.id}: {title}")

    if tags:
        attach_tags(session, project, tags)
    return project


def find_project_by_id(session: Session, project_id: int, eager: bool = False) -> Optional[ResearchProject]:
    if not eager:
        return session.get(ResearchProject, project_id)
    stmt = select(ResearchProject).where(ResearchProject.id == project_id).options(*_eager_project_options())
    return session.execute(stmt).scalar_one_or_none()


def require_project(session: Session, project_id: int) -> ResearchProject:
    project = find_project_by_id(session, project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


def update_project_fields(session: Session, project_id: int, changes: Dict[str, Any]) -> ResearchProject:
    project = require_project(session, project_id)
    for field, value in changes.items():
        if field not in PROJECT_FIELDS:
            raise ValueError(f"Unknown research project field: {field}")
        setattr(project, field, _column_value(value))
    session.flush()
    return project


def delete_project(session: Session, project_id: int) -> None:
    """Hard delete; join rows, metrics and documents go with the project."""
    project = require_project(session, project_id)
    session.delete(project)
    session.flush()
    logger.debug(f"Deleted research project {project_id}")


# Metrics and documents

def upsert_metrics(
    session: Session,
    project_id: int,
    *,
    impact: Optional[str] = None,
    satisfaction_score: Optional[float] = None,
    implementation_status: Optional[str] = None,
) -> ResearchMetrics:
    """
    Create or fully replace the single metrics row of a project.

    Fields not supplied are written as None on an existing row.
    """
    require_project(session, project_id)
    metrics = session.execute(
        select(ResearchMetrics).where(ResearchMetrics.project_id == project_id)
    ).scalar_one_or_none()
    if metrics is None:
        metrics = ResearchMetrics(project_id=project_id)
        session.add(metrics)
    metrics.impact = impact
    metrics.satisfaction_score = satisfaction_score
    metrics.implementation_status = implementation_status
    session.flush()
    return metrics


def add_document(
    session: Session,
    project_id: int,
    *,
    title: str,
    drive_id: Optional[str] = None,
    drive_url: Optional[str] = None,
    doc_type: Optional[str] = None,
) -> ResearchDocument:
    require_project(session, project_id)
    document = ResearchDocument(
        project_id=project_id,
        title=title,
        drive_id=drive_id,
        drive_url=drive_url,
        doc_type=_column_value(doc_type),
    )
    session.add(document)
    session.flush()
    logger.debug(f"Added document {document.id} to project {project_id}")
    return document


# Read queries

def list_categories(session: Session) -> List[str]:
    stmt = (
        select(ResearchProject.category)
        .where(ResearchProject.category.is_not(None))
        .distinct()
        .order_by(ResearchProject.category.asc())
    )
    return list(session.execute(stmt).scalars())


def list_client_names(session: Session) -> List[str]:
    """Names of companies that own at least one project."""
    stmt = (
        select(Company.name)
        .join(ResearchProject, ResearchProject.client_id == Company.id)
        .distinct()
        .order_by(Company.name.asc())
    )
    return list(session.execute(stmt).scalars())


def query_filtered_projects(
    session: Session,
    category: Optional[str] = None,
    client: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search_term: Optional[str] = None,
) -> List[ResearchProject]:
    """
    Filtered research query executed by the database.

    None for any argument means "no constraint". Set arguments combine with
    AND. Relations are eager-loaded so rows can be shaped after the session
    closes. Newest projects first.
    """
    stmt = select(ResearchProject).outerjoin(Company, ResearchProject.client_id == Company.id)

    if category is not None:
        stmt = stmt.where(ResearchProject.category == category)
    if client is not None:
        stmt = stmt.where(Company.name == client)
    if start_date is not None:
        stmt = stmt.where(ResearchProject.start_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(ResearchProject.end_date <= end_date)
    if search_term is not None:
        needle = search_term.lower()
        stmt = stmt.where(
            or_(
                _icontains(ResearchProject.title, needle),
                _icontains(ResearchProject.summary, needle),
                _icontains(ResearchProject.category, needle),
                _icontains(Company.name, needle),
                ResearchProject.project_tags.any(
                    ProjectTag.tag.has(_icontains(Tag.name, needle))
                ),
            )
        )

    stmt = stmt.options(*_eager_project_options()).order_by(
        ResearchProject.created_at.desc(),
        ResearchProject.id.desc(),
    )
    return list(session.execute(stmt).scalars().unique())

"""Research query gateway: canonical surface over the research corpus.

Each call is its own unit of work. Database errors propagate unchanged
after the session is rolled back.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..database import research_repo
from ..database.db_client import SessionFactory, session_context
from ..research.filters import ResearchFilter
from ..research.models import (
    Company,
    DocumentCreate,
    DocumentSummary,
    DocumentType,
    MetricsSummary,
    MetricsUpdate,
    ProjectCreate,
    ProjectUpdate,
    ResearchDataView,
    ResearchDocument,
    ResearchMetrics,
    ResearchProject,
    ResearchProjectDetail,
    Tag,
)
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..database import schema

logger = get_logger(__name__)


def _project_fields(row: "schema.ResearchProject") -> Dict[str, Any]:
    return {
        "id": row.id,
        "title": row.title,
        "summary": row.summary,
        "category": row.category,
        "client_id": row.client_id,
        "start_date": row.start_date,
        "end_date": row.end_date,
        "status": row.status,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "tags": row.tag_names,
    }


def _project_row_to_model(row: "schema.ResearchProject") -> ResearchProject:
    return ResearchProject(**_project_fields(row))


def _project_row_to_detail(row: "schema.ResearchProject") -> ResearchProjectDetail:
    return ResearchProjectDetail(
        **_project_fields(row),
        client=Company.model_validate(row.client) if row.client else None,
        tag_records=[Tag.model_validate(pt.tag) for pt in row.project_tags],
        metrics=ResearchMetrics.model_validate(row.metrics) if row.metrics else None,
        documents=[ResearchDocument.model_validate(d) for d in row.documents],
    )


def _project_row_to_view(row: "schema.ResearchProject") -> ResearchDataView:
    """Shape one project row (relations loaded) into the denormalized read model."""
    metrics = None
    if row.metrics is not None:
        metrics = MetricsSummary(
            impact=row.metrics.impact,
            satisfaction_score=row.metrics.satisfaction_score,
            implementation_status=row.metrics.implementation_status,
        )
    return ResearchDataView(
        id=row.id,
        title=row.title,
        summary=row.summary,
        category=row.category,
        client=row.client.name if row.client else None,
        client_industry=row.client.industry if row.client else None,
        start_date=row.start_date,
        end_date=row.end_date,
        status=row.status,
        created_at=row.created_at,
        tags=row.tag_names,
        metrics=metrics,
        documents=[
            DocumentSummary(
                id=d.id,
                title=d.title,
                drive_id=d.drive_id,
                drive_url=d.drive_url,
                doc_type=d.doc_type,
            )
            for d in row.documents
        ],
    )


class ResearchQueryGateway:
    """
    Facade over the research database.

    The session factory is injected so callers control the engine lifecycle
    and tests can hand in an in-memory database.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    # Option lists

    def list_categories(self) -> List[str]:
        with session_context(self._session_factory) as session:
            return research_repo.list_categories(session)

    def list_clients(self) -> List[str]:
        with session_context(self._session_factory) as session:
            return research_repo.list_client_names(session)

    def list_tags(self) -> List[str]:
        with session_context(self._session_factory) as session:
            return research_repo.list_tag_names(session)

    # Filtered query

    def query_research(self, filters: Optional[ResearchFilter] = None) -> List[ResearchDataView]:
        """
        Run one filtered query and return the denormalized records as-is.

        No client-side filtering, sorting or pagination is applied.
        """
        filters = filters or ResearchFilter()
        with session_context(self._session_factory) as session:
            rows = research_repo.query_filtered_projects(session, **filters.to_query_params())
            return [_project_row_to_view(row) for row in rows]

    # Projects

    def create_project(self, data: ProjectCreate | Dict[str, Any]) -> ResearchProject:
        """
        Create a project and attach its tags in a single transaction.

        A failure in either phase rolls back the whole creation.
        """
        if not isinstance(data, ProjectCreate):
            data = ProjectCreate(**data)
        with session_context(self._session_factory) as session:
            row = research_repo.create_project(session, **data.model_dump())
            session.commit()
            logger.info(f"Created research project {row.id} ({len(data.tags)} tags)")
            return _project_row_to_model(row)

    def update_project(self, project_id: int, changes: ProjectUpdate | Dict[str, Any]) -> ResearchProject:
        if not isinstance(changes, ProjectUpdate):
            changes = ProjectUpdate(**changes)
        with session_context(self._session_factory) as session:
            row = research_repo.update_project_fields(
                session, project_id, changes.model_dump(exclude_unset=True)
            )
            session.commit()
            logger.info(f"Updated research project {project_id}")
            return _project_row_to_model(row)

    def get_project(self, project_id: int) -> Optional[ResearchProjectDetail]:
        with session_context(self._session_factory) as session:
            row = research_repo.find_project_by_id(session, project_id, eager=True)
            if row is None:
                return None
            return _project_row_to_detail(row)

    def delete_project(self, project_id: int) -> None:
        """Hard delete. Raises ProjectNotFoundError for an unknown id."""
        with session_context(self._session_factory) as session:
            research_repo.delete_project(session, project_id)
            session.commit()
            logger.info(f"Deleted research project {project_id}")

    # Metrics and documents

    def update_metrics(self, project_id: int, metrics: MetricsUpdate | Dict[str, Any]) -> ResearchMetrics:
        """Upsert by project id; an existing row is replaced as a whole."""
        if not isinstance(metrics, MetricsUpdate):
            metrics = MetricsUpdate(**metrics)
        with session_context(self._session_factory) as session:
            row = research_repo.upsert_metrics(session, project_id, **metrics.model_dump())
            session.commit()
            return ResearchMetrics.model_validate(row)

    def add_research_document(
        self,
        project_id: int,
        title: str,
        drive_id: Optional[str] = None,
        drive_url: Optional[str] = None,
        doc_type: Optional[DocumentType | str] = None,
    ) -> None:
        document = DocumentCreate(title=title, drive_id=drive_id, drive_url=drive_url, doc_type=doc_type)
        with session_context(self._session_factory) as session:
            research_repo.add_document(session, project_id, **document.model_dump())
            session.commit()

    # Companies

    def create_company(self, name: str, industry: Optional[str] = None) -> Company:
        with session_context(self._session_factory) as session:
            row = research_repo.create_company(session, name=name, industry=industry)
            session.commit()
            logger.info(f"Created company {row.id}: {name}")
            return Company.model_validate(row)

    def list_companies(self) -> List[Company]:
        with session_context(self._session_factory) as session:
            return [Company.model_validate(row) for row in research_repo.list_companies(session)]

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class DocumentType(str, Enum):
    REPORT = "report"
    PRESENTATION = "presentation"
    SPREADSHEET = "spreadsheet"
    DATASET = "dataset"
    NOTES = "notes"
    OTHER = "other"


class _OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Company(_OrmModel):
    id: int
    name: str
    industry: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Tag(_OrmModel):
    id: int
    name: str
    created_at: datetime


class ResearchMetrics(_OrmModel):
    id: int
    project_id: int
    impact: Optional[str] = None
    satisfaction_score: Optional[float] = None
    implementation_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ResearchDocument(_OrmModel):
    id: int
    project_id: int
    title: str
    drive_id: Optional[str] = None
    drive_url: Optional[str] = None
    doc_type: Optional[DocumentType] = None
    created_at: datetime
    updated_at: datetime


class ResearchProject(_OrmModel):
    id: int
    title: str
    summary: Optional[str] = None
    category: Optional[str] = None
    client_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    created_at: datetime
    updated_at: datetime
    tags: List[str] = []


class ResearchProjectDetail(ResearchProject):
    """Project with every relation resolved."""
    client: Optional[Company] = None
    tag_records: List[Tag] = []
    metrics: Optional[ResearchMetrics] = None
    documents: List[ResearchDocument] = []


# Read model returned by the query gateway

class MetricsSummary(BaseModel):
    impact: Optional[str] = None
    satisfaction_score: Optional[float] = None
    implementation_status: Optional[str] = None


class DocumentSummary(BaseModel):
    id: int
    title: str
    drive_id: Optional[str] = None
    drive_url: Optional[str] = None
    doc_type: Optional[DocumentType] = None


class ResearchDataView(BaseModel):
    """Denormalized, read-only projection: one record per project."""
    id: int
    title: str
    summary: Optional[str] = None
    category: Optional[str] = None
    client: Optional[str] = None
    client_industry: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    created_at: datetime
    tags: List[str] = Field(default_factory=list)
    metrics: Optional[MetricsSummary] = None
    documents: List[DocumentSummary] = Field(default_factory=list)


# Inputs

def _strip_tag_names(names: Optional[List[str]]) -> List[str]:
    """Trim names, drop blanks and collapse duplicates keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in names or []:
        cleaned = (name or "").strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1)
    summary: Optional[str] = None
    category: Optional[str] = None
    client_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return _strip_tag_names(value)


class ProjectUpdate(BaseModel):
    """Direct field update; only fields explicitly set are written."""
    title: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = None
    category: Optional[str] = None
    client_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None

    @field_validator("title")
    @classmethod
    def _title_not_null(cls, value):
        # Only runs for an explicitly supplied title; the column is NOT NULL.
        if value is None:
            raise ValueError("title cannot be cleared")
        return value


class MetricsUpdate(BaseModel):
    impact: Optional[str] = None
    satisfaction_score: Optional[float] = Field(default=None, ge=0, le=100)
    implementation_status: Optional[str] = None


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1)
    drive_id: Optional[str] = None
    drive_url: Optional[str] = None
    doc_type: Optional[DocumentType] = None

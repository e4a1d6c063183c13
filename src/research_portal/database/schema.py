from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from ..utils.time import utc_now

Base = declarative_base()


class Company(Base):
    """Research client organisation."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    industry = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    projects = relationship("ResearchProject", back_populates="client")


class ResearchProject(Base):
    __tablename__ = "research_projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    client_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String, nullable=True)  # ProjectStatus value
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    client = relationship("Company", back_populates="projects")
    project_tags = relationship(
        "ProjectTag",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by=lambda: (ProjectTag.created_at, ProjectTag.tag_id),
    )
    metrics = relationship(
        "ResearchMetrics",
        back_populates="project",
        uselist=False,
        cascade="all, delete-orphan",
    )
    documents = relationship(
        "ResearchDocument",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ResearchDocument.id",
    )

    @property
    def tag_names(self) -> list[str]:
        return [pt.tag.name for pt in self.project_tags if pt.tag is not None]


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class ProjectTag(Base):
    """Join record between a project and a tag; identity is the pair."""
    __tablename__ = "project_tags"

    project_id = Column(Integer, ForeignKey("research_projects.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    project = relationship("ResearchProject", back_populates="project_tags")
    tag = relationship("Tag")


class ResearchMetrics(Base):
    __tablename__ = "research_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(
        Integer,
        ForeignKey("research_projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,  # at most one metrics row per project
    )
    impact = Column(Text, nullable=True)
    satisfaction_score = Column(Float, nullable=True)  # 0-100
    implementation_status = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    project = relationship("ResearchProject", back_populates="metrics")


class ResearchDocument(Base):
    __tablename__ = "research_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("research_projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    drive_id = Column(String, nullable=True)
    drive_url = Column(String, nullable=True)
    doc_type = Column(String, nullable=True)  # DocumentType value
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    project = relationship("ResearchProject", back_populates="documents")

    __table_args__ = (
        Index("idx_research_documents_project_id", "project_id"),
    )


def create_all(engine) -> None:
    Base.metadata.create_all(engine)

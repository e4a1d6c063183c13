"""Tests for the research query gateway."""

from datetime import date

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from research_portal.database.research_repo import ProjectNotFoundError
from research_portal.database.schema import ProjectTag, ResearchDocument, ResearchMetrics, Tag
from research_portal.research.filters import ResearchFilter
from research_portal.research.models import DocumentType, ProjectStatus


def _titles(records):
    return sorted(r.title for r in records)


def _count(session, model, *criteria):
    stmt = select(func.count()).select_from(model)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    return session.execute(stmt).scalar_one()


def test_list_categories_on_empty_corpus(gateway):
    assert gateway.list_categories() == []
    assert gateway.list_clients() == []
    assert gateway.query_research(ResearchFilter()) == []


def test_list_categories_and_clients_are_distinct(gateway, corpus):
    assert gateway.list_categories() == ["Clinical NLP", "Imaging"]
    assert gateway.list_clients() == ["Acme Health", "Helix Diagnostics", "Northwind Clinics"]


def test_clients_without_projects_are_not_listed(gateway, corpus):
    gateway.create_company("Idle Partners")
    assert "Idle Partners" not in gateway.list_clients()


def test_unconstrained_filter_returns_every_project(gateway, corpus):
    records = gateway.query_research(ResearchFilter())
    assert len(records) == 4
    assert _titles(records) == sorted(p.title for p in corpus["projects"].values())


def test_category_filter_excludes_other_and_null_categories(gateway, corpus):
    records = gateway.query_research(ResearchFilter(category="Clinical NLP"))
    assert _titles(records) == ["Discharge Summary Triage", "Telehealth Adoption Study"]
    assert all(r.category == "Clinical NLP" for r in records)


def test_category_and_client_is_intersection(gateway, corpus):
    by_category = {r.id for r in gateway.query_research(ResearchFilter(category="Clinical NLP"))}
    by_client = {r.id for r in gateway.query_research(ResearchFilter(client="Acme Health"))}
    both = {
        r.id
        for r in gateway.query_research(ResearchFilter(category="Clinical NLP", client="Acme Health"))
    }
    assert both == by_category & by_client
    assert both == {corpus["projects"]["telehealth"].id}


def test_telehealth_scenario(gateway):
    acme = gateway.create_company("Acme Health")
    gateway.create_project(
        {"title": "Telehealth Adoption Study", "category": "Clinical NLP", "client_id": acme.id}
    )

    records = gateway.query_research(ResearchFilter(category="Clinical NLP"))
    assert [r.title for r in records] == ["Telehealth Adoption Study"]
    assert records[0].client == "Acme Health"
    assert gateway.query_research(ResearchFilter(category="Imaging")) == []


def test_date_range_bounds(gateway, corpus):
    records = gateway.query_research(ResearchFilter(start_date=date(2024, 1, 1)))
    assert _titles(records) == ["Discharge Summary Triage", "Telehealth Adoption Study"]

    records = gateway.query_research(ResearchFilter(end_date=date(2024, 6, 30)))
    assert _titles(records) == ["Chest X-ray Turnaround", "Telehealth Adoption Study"]

    records = gateway.query_research(
        ResearchFilter(start_date=date(2024, 1, 1), end_date=date(2024, 6, 30))
    )
    assert _titles(records) == ["Telehealth Adoption Study"]


def test_inverted_date_range_matches_nothing(gateway, corpus):
    records = gateway.query_research(
        ResearchFilter(start_date=date(2024, 12, 31), end_date=date(2024, 1, 1))
    )
    assert records == []


def test_search_term_is_case_insensitive_over_text_client_and_tags(gateway, corpus):
    assert _titles(gateway.query_research(ResearchFilter(search_term="X-RAY"))) == ["Chest X-ray Turnaround"]
    assert _titles(gateway.query_research(ResearchFilter(search_term="northwind"))) == [
        "Discharge Summary Triage"
    ]
    assert _titles(gateway.query_research(ResearchFilter(search_term="radiology"))) == [
        "Chest X-ray Turnaround"
    ]


def test_search_term_matches_wildcards_literally(gateway, corpus):
    assert gateway.query_research(ResearchFilter(search_term="%")) == []
    gateway.create_project({"title": "Uptake at 100% capacity"})
    assert _titles(gateway.query_research(ResearchFilter(search_term="100%"))) == ["Uptake at 100% capacity"]


def test_search_term_folds_non_ascii_case(gateway):
    gateway.create_project({"title": "Ärztliche Dokumentation", "tags": ["Übergabe"]})

    assert _titles(gateway.query_research(ResearchFilter(search_term="ärztliche"))) == ["Ärztliche Dokumentation"]
    assert _titles(gateway.query_research(ResearchFilter(search_term="ÄRZTLICHE"))) == ["Ärztliche Dokumentation"]
    assert _titles(gateway.query_research(ResearchFilter(search_term="übergabe"))) == ["Ärztliche Dokumentation"]


def test_view_record_shape(gateway, corpus):
    telehealth_id = corpus["projects"]["telehealth"].id
    gateway.update_metrics(telehealth_id, {"impact": "Visits up", "satisfaction_score": 88})
    gateway.add_research_document(telehealth_id, "Final report", "drive-1", "https://drive/x", "report")

    [record] = gateway.query_research(ResearchFilter(client="Acme Health"))
    assert record.client_industry == "Hospital Network"
    assert record.status is ProjectStatus.COMPLETED
    assert record.start_date == date(2024, 1, 15)
    assert record.tags == ["telehealth", "patient experience"]
    assert record.metrics.impact == "Visits up"
    assert record.metrics.satisfaction_score == 88
    assert record.metrics.implementation_status is None
    assert [d.title for d in record.documents] == ["Final report"]
    assert record.documents[0].doc_type is DocumentType.REPORT


def test_view_record_defaults_for_bare_project(gateway, corpus):
    [record] = gateway.query_research(ResearchFilter(search_term="usability"))
    assert record.tags == []
    assert record.documents == []
    assert record.metrics is None
    assert record.client is None
    assert record.client_industry is None


def test_tag_upsert_is_idempotent_across_creates(gateway, session):
    gateway.create_project({"title": "A", "tags": ["nlp", "imaging"]})
    gateway.create_project({"title": "B", "tags": ["imaging", "ehr", "nlp"]})

    names = session.execute(select(Tag.name).order_by(Tag.name)).scalars().all()
    assert names == ["ehr", "imaging", "nlp"]
    assert gateway.list_tags() == ["ehr", "imaging", "nlp"]


def test_duplicate_tags_in_one_request_collapse(gateway, session):
    project = gateway.create_project({"title": "A", "tags": ["nlp", " nlp ", "", "ehr"]})
    assert project.tags == ["nlp", "ehr"]
    assert _count(session, ProjectTag, ProjectTag.project_id == project.id) == 2


def test_create_project_with_unknown_client_rolls_back(gateway, session):
    with pytest.raises(IntegrityError):
        gateway.create_project({"title": "Orphan", "client_id": 9999, "tags": ["fresh-tag"]})

    assert gateway.query_research(ResearchFilter()) == []
    assert _count(session, Tag) == 0


def test_create_project_rejects_unknown_status(gateway):
    with pytest.raises(ValidationError):
        gateway.create_project({"title": "A", "status": "someday"})


def test_update_metrics_twice_keeps_one_row(gateway, corpus, session):
    project_id = corpus["projects"]["xray"].id
    first = gateway.update_metrics(
        project_id,
        {"impact": "Faster reads", "satisfaction_score": 70, "implementation_status": "pilot"},
    )
    second = gateway.update_metrics(project_id, {"satisfaction_score": 91})

    assert first.id == second.id
    assert _count(session, ResearchMetrics, ResearchMetrics.project_id == project_id) == 1
    assert second.satisfaction_score == 91
    # full-record replace: fields not supplied the second time are cleared
    assert second.impact is None
    assert second.implementation_status is None


def test_update_metrics_validates_score_range(gateway, corpus):
    with pytest.raises(ValidationError):
        gateway.update_metrics(corpus["projects"]["xray"].id, {"satisfaction_score": 101})


def test_update_metrics_unknown_project(gateway):
    with pytest.raises(ProjectNotFoundError):
        gateway.update_metrics(404, {"impact": "none"})


def test_add_research_document_allows_duplicate_titles(gateway, corpus):
    project_id = corpus["projects"]["triage"].id
    gateway.add_research_document(project_id, "Notes")
    gateway.add_research_document(project_id, "Notes", doc_type=DocumentType.NOTES)

    detail = gateway.get_project(project_id)
    assert [d.title for d in detail.documents] == ["Notes", "Notes"]
    assert detail.documents[1].doc_type is DocumentType.NOTES


def test_add_research_document_unknown_project(gateway):
    with pytest.raises(ProjectNotFoundError):
        gateway.add_research_document(404, "Lost")


def test_get_project_resolves_relations(gateway, corpus):
    project_id = corpus["projects"]["telehealth"].id
    gateway.update_metrics(project_id, {"implementation_status": "rolled out"})

    detail = gateway.get_project(project_id)
    assert detail.title == "Telehealth Adoption Study"
    assert detail.client.name == "Acme Health"
    assert [t.name for t in detail.tag_records] == ["telehealth", "patient experience"]
    assert detail.tags == ["telehealth", "patient experience"]
    assert detail.metrics.implementation_status == "rolled out"


def test_get_project_not_found(gateway):
    assert gateway.get_project(12345) is None


def test_delete_project_cascades_but_keeps_tags(gateway, corpus, session):
    project_id = corpus["projects"]["telehealth"].id
    gateway.update_metrics(project_id, {"impact": "x"})
    gateway.add_research_document(project_id, "Report")

    gateway.delete_project(project_id)

    assert gateway.get_project(project_id) is None
    assert project_id not in {r.id for r in gateway.query_research(ResearchFilter())}
    assert _count(session, ProjectTag, ProjectTag.project_id == project_id) == 0
    assert _count(session, ResearchMetrics, ResearchMetrics.project_id == project_id) == 0
    assert _count(session, ResearchDocument, ResearchDocument.project_id == project_id) == 0
    assert "telehealth" in gateway.list_tags()


def test_delete_unknown_project_raises(gateway):
    with pytest.raises(ProjectNotFoundError) as excinfo:
        gateway.delete_project(77)
    assert excinfo.value.project_id == 77
    assert isinstance(excinfo.value, LookupError)


def test_update_project_writes_only_given_fields(gateway, corpus):
    project_id = corpus["projects"]["portal"].id
    updated = gateway.update_project(project_id, {"category": "Digital Experience", "status": "active"})

    assert updated.category == "Digital Experience"
    assert updated.status is ProjectStatus.ACTIVE
    assert updated.title == "Patient Portal Usability Review"
    assert "Digital Experience" in gateway.list_categories()


def test_update_unknown_project_raises(gateway):
    with pytest.raises(ProjectNotFoundError):
        gateway.update_project(5, {"title": "Nope"})


def test_update_project_rejects_null_title(gateway, corpus):
    project_id = corpus["projects"]["portal"].id
    with pytest.raises(ValidationError):
        gateway.update_project(project_id, {"title": None})

    assert gateway.get_project(project_id).title == "Patient Portal Usability Review"
    assert gateway.update_project(project_id, {"summary": None}).summary is None


def test_duplicate_company_name_surfaces_integrity_error(gateway):
    gateway.create_company("Acme Health")
    with pytest.raises(IntegrityError):
        gateway.create_company("Acme Health")
    assert [c.name for c in gateway.list_companies()] == ["Acme Health"]

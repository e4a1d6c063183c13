"""Pytest configuration and fixtures."""

from datetime import date

import pytest

from research_portal.api.research_api import ResearchQueryGateway
from research_portal.database.db_client import get_session_factory


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    factory = get_session_factory("sqlite:///:memory:")
    try:
        yield factory
    finally:
        factory.kw["bind"].dispose()


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway(session_factory):
    return ResearchQueryGateway(session_factory)


@pytest.fixture
def corpus(gateway):
    """Small corpus: three clients, four projects, one unaffiliated."""
    acme = gateway.create_company("Acme Health", "Hospital Network")
    northwind = gateway.create_company("Northwind Clinics", "Outpatient Care")
    helix = gateway.create_company("Helix Diagnostics", "Medical Imaging")

    telehealth = gateway.create_project(
        {
            "title": "Telehealth Adoption Study",
            "summary": "Adoption drivers for virtual visits.",
            "category": "Clinical NLP",
            "client_id": acme.id,
            "start_date": date(2024, 1, 15),
            "end_date": date(2024, 6, 30),
            "status": "completed",
            "tags": ["telehealth", "patient experience"],
        }
    )
    triage = gateway.create_project(
        {
            "title": "Discharge Summary Triage",
            "summary": "Classifying discharge summaries for follow-up risk.",
            "category": "Clinical NLP",
            "client_id": northwind.id,
            "start_date": date(2024, 3, 1),
            "end_date": date(2024, 11, 15),
            "status": "active",
            "tags": ["nlp"],
        }
    )
    xray = gateway.create_project(
        {
            "title": "Chest X-ray Turnaround",
            "category": "Imaging",
            "client_id": helix.id,
            "start_date": date(2023, 9, 1),
            "end_date": date(2024, 2, 28),
            "status": "completed",
            "tags": ["radiology"],
        }
    )
    portal = gateway.create_project(
        {
            "title": "Patient Portal Usability Review",
            "category": None,
            "status": "planned",
        }
    )
    return {
        "companies": {"acme": acme, "northwind": northwind, "helix": helix},
        "projects": {"telehealth": telehealth, "triage": triage, "xray": xray, "portal": portal},
    }

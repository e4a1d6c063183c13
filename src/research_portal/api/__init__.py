"""API layer: canonical query surface for the research portal.

Key rules:

1. No SQLAlchemy imports - only call repo functions
2. No sorting/filtering beyond what the repo query does
3. Return Pydantic models only
"""

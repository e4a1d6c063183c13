"""Filter model for research queries.

A ``ResearchFilter`` captures one point-in-time query intent. Every
dimension is optional; ``None`` means "no constraint" and the dimensions
that are set combine with logical AND. The filter never validates date
ordering: an inverted range is passed through and simply matches nothing.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ResearchFilter(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    category: Optional[str] = None
    client: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_term: Optional[str] = None

    @field_validator("category", "client", "search_term", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def is_unconstrained(self) -> bool:
        return all(value is None for value in self.to_query_params().values())

    def to_query_params(self) -> Dict[str, Any]:
        """Nullable parameters handed to the backing store."""
        return {
            "category": self.category,
            "client": self.client,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "search_term": self.search_term,
        }

    def with_changes(self, **changes: Any) -> "ResearchFilter":
        """Return a new filter with ``changes`` applied (validated)."""
        data = self.model_dump()
        data.update(changes)
        return ResearchFilter(**data)

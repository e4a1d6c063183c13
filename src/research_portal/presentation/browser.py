"""Client-local view state for the research microsite."""

from typing import Any, List, Optional

from ..api.research_api import ResearchQueryGateway
from ..research.filters import ResearchFilter
from ..research.models import ResearchDataView
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ResearchBrowser:
    """
    Holds the active filter, option lists, results and loading flag.

    Every filter change re-runs the full query and replaces the result list.
    Queries carry a sequence number; a response is applied only when it
    belongs to the most recently issued query, so a slow earlier response
    never overwrites a newer one.

    Option-list failures stay in ``options_error``; query failures stay in
    ``last_error`` until the next successful query.
    """

    def __init__(self, gateway: ResearchQueryGateway, filters: Optional[ResearchFilter] = None):
        self.gateway = gateway
        self.filters = filters or ResearchFilter()
        self.categories: List[str] = []
        self.clients: List[str] = []
        self.results: List[ResearchDataView] = []
        self.loading = False
        self.last_error: Optional[Exception] = None
        self.options_error: Optional[Exception] = None
        self._issued_seq = 0

    def enter(self) -> List[ResearchDataView]:
        """First entry to the research view: load option lists, then query."""
        try:
            self.categories = self.gateway.list_categories()
            self.clients = self.gateway.list_clients()
        except Exception as exc:
            logger.exception("Failed to load research filter options")
            self.options_error = exc
        else:
            self.options_error = None
        return self.refresh()

    def set_filter(self, **changes: Any) -> List[ResearchDataView]:
        self.filters = self.filters.with_changes(**changes)
        return self.refresh()

    def clear_filters(self) -> List[ResearchDataView]:
        self.filters = ResearchFilter()
        return self.refresh()

    def refresh(self) -> List[ResearchDataView]:
        self._issued_seq += 1
        seq = self._issued_seq
        filters = self.filters
        self.loading = True
        try:
            records = self.gateway.query_research(filters)
        except Exception as exc:
            if seq == self._issued_seq:
                logger.exception("Research query failed; keeping previous results")
                self.last_error = exc
            return self.results
        else:
            if seq != self._issued_seq:
                logger.debug(f"Discarding stale research response {seq} (latest {self._issued_seq})")
                return self.results
            self.results = records
            self.last_error = None
            return self.results
        finally:
            if seq == self._issued_seq:
                self.loading = False

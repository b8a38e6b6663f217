"""
filters.py - Filter DTOs
Single responsibility: carry filter/sort inputs for issue queries.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from bugboard.domain.models import IssuePriority, IssueStatus, IssueType


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    PRIORITY_DESC = "priority-desc"
    PRIORITY_ASC = "priority-asc"

    @property
    def label(self) -> str:
        return SORT_LABELS[self]


SORT_LABELS = {
    SortKey.NEWEST: "Più recenti",
    SortKey.OLDEST: "Meno recenti",
    SortKey.TITLE_ASC: "Titolo A-Z",
    SortKey.TITLE_DESC: "Titolo Z-A",
    SortKey.PRIORITY_DESC: "Priorità (alta → bassa)",
    SortKey.PRIORITY_ASC: "Priorità (bassa → alta)",
}


@dataclass(frozen=True)
class IssueFilter:
    status: Optional[IssueStatus] = None
    type: Optional[IssueType] = None
    priority: Optional[IssuePriority] = None
    search: str = ""
    sort: SortKey = SortKey.NEWEST
    archived: bool = False

    @property
    def has_active_filters(self) -> bool:
        return bool(
            self.status or self.type or self.priority or self.search.strip()
        )

    def with_changes(self, **changes) -> "IssueFilter":
        return replace(self, **changes)

    def cleared(self) -> "IssueFilter":
        """Default filter for the same scope."""
        return IssueFilter(archived=self.archived)

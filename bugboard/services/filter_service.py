"""
filter_service.py - Filter helpers
Single responsibility: turn an IssueFilter into request params, and apply it in memory.
"""
from bugboard.domain.filters import IssueFilter, SortKey
from bugboard.domain.models import Issue


def build_filter(
    search: str = "",
    status=None,
    type=None,
    priority=None,
    sort: SortKey = SortKey.NEWEST,
    archived: bool = False,
) -> IssueFilter:
    return IssueFilter(
        status=status or None,
        type=type or None,
        priority=priority or None,
        search=search or "",
        sort=sort or SortKey.NEWEST,
        archived=archived,
    )


def build_query_params(flt: IssueFilter) -> dict:
    """Query params for GET /issue/filtra. Unset predicates are omitted."""
    params: dict = {"archiviata": "true" if flt.archived else "false"}
    if flt.status:
        params["stato"] = flt.status.wire
    if flt.type:
        params["tipo"] = flt.type.wire
    if flt.priority:
        params["priorita"] = flt.priority.wire
    if flt.search.strip():
        params["titolo"] = flt.search.strip()
    params["ordinamento"] = flt.sort.value
    return params


# ---------------------------------------------------------------------------
# In-memory filter / sort
# ---------------------------------------------------------------------------


def matches(issue: Issue, flt: IssueFilter) -> bool:
    if flt.status and issue.status is not flt.status:
        return False
    if flt.type and issue.type is not flt.type:
        return False
    if flt.priority and issue.priority is not flt.priority:
        return False
    term = flt.search.strip().lower()
    if term and term not in issue.title.lower():
        return False
    return True


def _date_key(issue: Issue, use_archived_date: bool) -> str:
    if use_archived_date:
        return issue.archived_at or issue.created_at or ""
    return issue.created_at or ""


def sort_issues(issues: list[Issue], key: SortKey, use_archived_date: bool = False) -> list[Issue]:
    """Stable sort; equal keys keep their incoming order."""
    if key is SortKey.NEWEST:
        return sorted(issues, key=lambda i: _date_key(i, use_archived_date), reverse=True)
    if key is SortKey.OLDEST:
        return sorted(issues, key=lambda i: _date_key(i, use_archived_date))
    if key is SortKey.TITLE_ASC:
        return sorted(issues, key=lambda i: i.title.casefold())
    if key is SortKey.TITLE_DESC:
        return sorted(issues, key=lambda i: i.title.casefold(), reverse=True)
    if key is SortKey.PRIORITY_DESC:
        return sorted(issues, key=lambda i: i.priority.rank, reverse=True)
    if key is SortKey.PRIORITY_ASC:
        return sorted(issues, key=lambda i: i.priority.rank)
    raise ValueError(f"Unsupported sort key: {key}")


def apply_filter(issues: list[Issue], flt: IssueFilter, use_archived_date: bool = False) -> list[Issue]:
    return sort_issues(
        [i for i in issues if matches(i, flt)], flt.sort, use_archived_date
    )

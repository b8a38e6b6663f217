"""
list_state.py - Issue list view-state
Single responsibility: own filter/sort selections and the fetch cycle of one issue list.

Two strategies share the IssueListState interface:

- ServerFilteredList (active issues): every filter change, every search
  keystroke included, starts a new request. No debounce.
- ClientFilteredList (archived issues): the full list is fetched once and
  every filter change is applied in memory, synchronously.

Requests are never aborted. Each cycle gets a generation token and a
completion is applied only if its token is still the latest one.
"""
import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable

from bugboard.domain.filters import IssueFilter
from bugboard.domain.models import Issue
from bugboard.errors import BugBoardError, user_message
from bugboard.services import filter_service, issue_service

logger = logging.getLogger(__name__)

LOAD_ERROR = "Errore nel caricamento delle issue"


class ListPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class IssueListState(ABC):
    """Common fetch-cycle bookkeeping; subclasses supply ``visible`` and ``fetch``."""

    needs_fetch_on_filter_change = True

    def __init__(self, flt: IssueFilter | None = None):
        self.filter: IssueFilter = flt or IssueFilter()
        self.phase: ListPhase = ListPhase.IDLE
        self.error: str | None = None
        self.issues: list[Issue] = []
        self._generation = 0
        self._lock = threading.Lock()

    # -- fetch cycle --------------------------------------------------------

    def begin_load(self) -> int:
        with self._lock:
            self._generation += 1
            self.phase = ListPhase.LOADING
            self.error = None
            return self._generation

    def resolve(self, token: int, issues: list[Issue]) -> bool:
        """Apply a successful response. Returns False if it was stale."""
        with self._lock:
            if token != self._generation:
                logger.debug(f"Ignoring stale list response (token {token})")
                return False
            self.issues = list(issues)
            self.phase = ListPhase.LOADED
            return True

    def fail(self, token: int, message: str) -> bool:
        """Record a failure; the last loaded list is kept."""
        with self._lock:
            if token != self._generation:
                return False
            self.error = message
            self.phase = ListPhase.ERROR
            return True

    # -- filters ------------------------------------------------------------

    def update_filter(self, **changes) -> bool:
        """Change some fields; the others are kept. Returns True if a fetch is needed."""
        new_filter = self.filter.with_changes(**changes)
        if new_filter == self.filter:
            return False
        self.filter = new_filter
        return self.needs_fetch_on_filter_change

    def reset_filters(self) -> bool:
        if self.filter == self.filter.cleared():
            return False
        self.filter = self.filter.cleared()
        return self.needs_fetch_on_filter_change

    @property
    def has_active_filters(self) -> bool:
        return self.filter.has_active_filters

    @property
    def is_loading(self) -> bool:
        return self.phase is ListPhase.LOADING

    @property
    @abstractmethod
    def visible(self) -> list[Issue]: ...

    @property
    def total(self) -> int:
        return len(self.issues)

    @property
    def summary(self) -> str:
        return f"Visualizzazione di {len(self.visible)} di {self.total} issue"

    @abstractmethod
    def fetch(self, client, flt: IssueFilter) -> list[Issue]: ...


class ServerFilteredList(IssueListState):
    """Active issues; the server does the filtering."""

    def __init__(self, flt: IssueFilter | None = None):
        super().__init__((flt or IssueFilter()).with_changes(archived=False))

    @property
    def visible(self) -> list[Issue]:
        return self.issues

    def fetch(self, client, flt: IssueFilter) -> list[Issue]:
        return issue_service.filter_issues_advanced(client, flt)


class ClientFilteredList(IssueListState):
    """Archived issues; fetched once, filtered and sorted in memory."""

    needs_fetch_on_filter_change = False

    def __init__(self, flt: IssueFilter | None = None):
        super().__init__((flt or IssueFilter()).with_changes(archived=True))

    def resolve(self, token: int, issues: list[Issue]) -> bool:
        return super().resolve(token, [i for i in issues if i.archived])

    @property
    def visible(self) -> list[Issue]:
        return filter_service.apply_filter(self.issues, self.filter, use_archived_date=True)

    def fetch(self, client, flt: IssueFilter) -> list[Issue]:
        return issue_service.list_issues(client)


class IssueListController:
    """Runs fetch cycles for a list state and reports changes to the view."""

    def __init__(
        self,
        state: IssueListState,
        client,
        on_change: Callable[[], None] | None = None,
        run: Callable | None = None,
    ):
        self.state = state
        self.client = client
        self.on_change = on_change
        # UI からは page.run_thread を渡してバックグラウンドで取得する
        self._run = run or (lambda fn: fn())

    def _notify(self) -> None:
        if self.on_change:
            self.on_change()

    def refresh(self) -> None:
        """Start a new cycle; the token and filter are taken before the request is dispatched."""
        token = self.state.begin_load()
        flt = self.state.filter
        self._notify()
        self._run(lambda: self._load(token, flt))

    def _load(self, token: int, flt: IssueFilter) -> None:
        try:
            issues = self.state.fetch(self.client, flt)
        except BugBoardError as exc:
            if self.state.fail(token, user_message(exc)):
                self._notify()
            return
        except Exception:
            logger.exception("Unexpected error while loading issues")
            if self.state.fail(token, LOAD_ERROR):
                self._notify()
            return
        if self.state.resolve(token, issues):
            self._notify()

    def change_filter(self, **changes) -> bool:
        """Returns True if a refresh was started."""
        if self.state.update_filter(**changes):
            self.refresh()
            return True
        self._notify()
        return False

    def reset(self) -> bool:
        if self.state.reset_filters():
            self.refresh()
            return True
        self._notify()
        return False

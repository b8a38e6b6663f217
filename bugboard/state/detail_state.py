"""
detail_state.py - Issue detail / lifecycle state
Single responsibility: confirmation-gated archive, unarchive and delete of one issue.

The pending action is a tagged value, never a stored callback. ``reduce``
is pure; IssueDetailController performs the network side effects.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from bugboard.domain.capabilities import can_manage_issues
from bugboard.domain.models import Issue, User
from bugboard.errors import BugBoardError, user_message
from bugboard.services import issue_service

logger = logging.getLogger(__name__)

ROUTE_ACTIVE_LIST = "/issues"
ROUTE_ARCHIVED_LIST = "/issues/archived"

NOT_ALLOWED = "Solo gli amministratori possono eseguire questa operazione"
RELOAD_FAILED = "Operazione completata, ma non è stato possibile ricaricare l'issue"


# ---------------------------------------------------------------------------
# Pending actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoPending:
    pass


@dataclass(frozen=True)
class ConfirmArchive:
    issue_id: int
    title = "Archivia issue"
    message = "Vuoi archiviare questa issue? Potrai ripristinarla dalla lista delle issue archiviate."
    confirm_label = "Archivia"


@dataclass(frozen=True)
class ConfirmUnarchive:
    issue_id: int
    title = "Ripristina issue"
    message = "Vuoi ripristinare questa issue tra le issue attive?"
    confirm_label = "Ripristina"


@dataclass(frozen=True)
class ConfirmDelete:
    issue_id: int
    title = "Elimina issue"
    message = "Vuoi eliminare definitivamente questa issue? L'operazione non può essere annullata."
    confirm_label = "Elimina"


PendingAction = Union[NoPending, ConfirmArchive, ConfirmUnarchive, ConfirmDelete]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Loaded:
    issue: Issue


@dataclass(frozen=True)
class RequestArchive:
    pass


@dataclass(frozen=True)
class RequestUnarchive:
    pass


@dataclass(frozen=True)
class RequestDelete:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Succeeded:
    issue: Optional[Issue] = None  # None after a delete
    warning: Optional[str] = None


@dataclass(frozen=True)
class Failed:
    message: str


# ---------------------------------------------------------------------------
# State + reducer
# ---------------------------------------------------------------------------


class DetailPhase(str, Enum):
    VIEWING = "viewing"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class DetailState:
    user: Optional[User]
    issue: Optional[Issue] = None
    phase: DetailPhase = DetailPhase.VIEWING
    pending: PendingAction = NoPending()
    error: Optional[str] = None
    deleted: bool = False

    @property
    def can_manage(self) -> bool:
        return can_manage_issues(self.user)

    @property
    def available_actions(self) -> list[str]:
        """Lifecycle controls the view may show."""
        if self.issue is None or not self.can_manage:
            return []
        if self.issue.archived:
            return ["unarchive", "delete"]
        actions = ["delete"]
        if self.issue.can_archive:
            actions.insert(0, "archive")
        return actions


def _request(state: DetailState, pending_cls) -> DetailState:
    if state.phase is not DetailPhase.VIEWING or state.issue is None:
        return state
    if not state.can_manage:
        return replace(state, error=NOT_ALLOWED)
    return replace(
        state,
        phase=DetailPhase.CONFIRMING,
        pending=pending_cls(state.issue.id),
        error=None,
    )


def reduce(state: DetailState, event) -> DetailState:
    if isinstance(event, Loaded):
        return replace(
            state,
            issue=event.issue,
            phase=DetailPhase.VIEWING,
            pending=NoPending(),
        )

    if isinstance(event, RequestArchive):
        issue = state.issue
        if issue is not None and state.can_manage and not issue.can_archive:
            # no dialog: explain the precondition instead
            message = (
                "L'issue è già archiviata"
                if issue.archived
                else issue_service.ARCHIVE_REQUIRES_DONE
            )
            return replace(state, error=message)
        return _request(state, ConfirmArchive)

    if isinstance(event, RequestUnarchive):
        if state.issue is not None and not state.issue.archived:
            return replace(state, error="L'issue non è archiviata")
        return _request(state, ConfirmUnarchive)

    if isinstance(event, RequestDelete):
        return _request(state, ConfirmDelete)

    if isinstance(event, Cancel):
        if state.phase is DetailPhase.CONFIRMING:
            return replace(state, phase=DetailPhase.VIEWING, pending=NoPending())
        return state

    if isinstance(event, Confirm):
        if state.phase is not DetailPhase.CONFIRMING:
            return state
        return replace(state, phase=DetailPhase.SUBMITTING, error=None)

    if isinstance(event, Succeeded):
        deleted = isinstance(state.pending, ConfirmDelete)
        return replace(
            state,
            issue=event.issue if event.issue is not None else state.issue,
            phase=DetailPhase.VIEWING,
            pending=NoPending(),
            error=event.warning,
            deleted=deleted,
        )

    if isinstance(event, Failed):
        return replace(
            state,
            phase=DetailPhase.VIEWING,
            pending=NoPending(),
            error=event.message,
        )

    raise ValueError(f"Unsupported event: {event!r}")


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def return_route(nav_state: Optional[dict]) -> str:
    """List route the user came from; the active list when unknown."""
    origin = (nav_state or {}).get("from")
    if origin == ROUTE_ARCHIVED_LIST:
        return ROUTE_ARCHIVED_LIST
    return ROUTE_ACTIVE_LIST


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class IssueDetailController:
    def __init__(self, client, session, issue_id: int):
        self.client = client
        self.session = session
        self.issue_id = issue_id
        self.state = DetailState(user=session.get_user())

    def dispatch(self, event) -> DetailState:
        self.state = reduce(self.state, event)
        return self.state

    def load(self) -> DetailState:
        """Raises the service error (e.g. NotFound) for the view to show."""
        issue = issue_service.get_issue(self.client, self.issue_id)
        return self.dispatch(Loaded(issue))

    def confirm(self) -> DetailState:
        """Run the pending action; archive/unarchive reload, delete marks ``deleted``."""
        pending = self.state.pending
        if isinstance(pending, NoPending):
            return self.state
        self.dispatch(Confirm())
        user = self.session.get_user()
        try:
            if isinstance(pending, ConfirmArchive):
                issue_service.archive_issue(self.client, self.state.issue, user.id)
                expected = replace(self.state.issue, archived=True, archiver=user)
            elif isinstance(pending, ConfirmUnarchive):
                issue_service.unarchive_issue(self.client, self.state.issue, user.id)
                expected = replace(self.state.issue, archived=False, archived_at=None, archiver=None)
            else:
                issue_service.delete_issue(self.client, self.session, self.issue_id)
                return self.dispatch(Succeeded())
        except BugBoardError as exc:
            logger.warning(f"Lifecycle action on issue #{self.issue_id} failed: {exc.message}")
            return self.dispatch(Failed(user_message(exc)))
        return self.dispatch(self._reload_after(expected))

    def _reload_after(self, expected: Issue) -> Succeeded:
        # 変更自体は成功済み。再取得に失敗したら期待値を表示して警告だけ出す
        try:
            return Succeeded(issue_service.get_issue(self.client, self.issue_id))
        except BugBoardError as exc:
            logger.warning(f"Reload of issue #{self.issue_id} failed: {exc.message}")
            return Succeeded(expected, warning=f"{RELOAD_FAILED}: {user_message(exc)}")

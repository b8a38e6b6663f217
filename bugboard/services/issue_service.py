"""
issue_service.py - Issue service layer
Single responsibility: issue queries and mutations against /issue, with client-side preconditions.
"""
import logging

from bugboard.api.client import ApiClient
from bugboard.config import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH
from bugboard.domain.filters import IssueFilter
from bugboard.domain.models import Issue, IssueDraft, IssueStatistics
from bugboard.errors import ValidationError
from bugboard.services import filter_service
from bugboard.session import Session

logger = logging.getLogger(__name__)

ARCHIVE_REQUIRES_DONE = "Solo le issue in stato Done possono essere archiviate"


def _issues(body) -> list[Issue]:
    if not isinstance(body, list):
        return []
    return [Issue.from_api(item) for item in body if isinstance(item, dict)]


def _current_user_id(session: Session) -> int:
    user = session.get_user()
    if user is None or user.id is None:
        raise ValidationError("Utente non autenticato: effettua il login")
    return user.id


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def filter_issues_advanced(client: ApiClient, flt: IssueFilter) -> list[Issue]:
    """
    One GET /issue/filtra carrying every set predicate and the sort key.

    The response is passed through the same predicate and stable sort used
    by the in-memory strategy, so the result honours *flt* even when the
    backend ignores some parameters.
    """
    params = filter_service.build_query_params(flt)
    issues = _issues(client.get_json("/issue/filtra", params=params))
    scoped = [i for i in issues if i.archived == flt.archived]
    return filter_service.apply_filter(scoped, flt, use_archived_date=flt.archived)


def list_issues(client: ApiClient, archived: bool | None = None) -> list[Issue]:
    params = None
    if archived is not None:
        params = {"archiviata": "true" if archived else "false"}
    return _issues(client.get_json("/issue/visualizza-lista", params=params))


def get_issue(client: ApiClient, issue_id: int) -> Issue:
    """Raises NotFound carrying the server message when *issue_id* does not exist."""
    return Issue.from_api(client.get_json(f"/issue/visualizza/{issue_id}"))


def search_by_title(client: ApiClient, text: str) -> list[Issue]:
    return _issues(client.get_json("/issue/cerca", params={"titolo": text}))


def filter_by_fields(client: ApiClient, status=None, priority=None, type=None) -> list[Issue]:
    params = {
        "stato": status.wire if status else None,
        "priorita": priority.wire if priority else None,
        "tipo": type.wire if type else None,
    }
    return _issues(client.get_json("/issue/filtra", params=params))


def get_statistics(client: ApiClient) -> IssueStatistics:
    body = client.get_json("/issue/statistiche")
    return IssueStatistics.from_api(body if isinstance(body, dict) else {})


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def validate_draft(draft: IssueDraft) -> None:
    title = (draft.title or "").strip()
    description = (draft.description or "").strip()
    if not title:
        raise ValidationError("Il titolo è obbligatorio")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Il titolo non può superare {MAX_TITLE_LENGTH} caratteri")
    if not description:
        raise ValidationError("La descrizione è obbligatoria")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"La descrizione non può superare {MAX_DESCRIPTION_LENGTH} caratteri"
        )
    if draft.type is None:
        raise ValidationError("Il tipo è obbligatorio")


def create_issue(client: ApiClient, session: Session, draft: IssueDraft) -> Issue:
    creator_id = _current_user_id(session)
    validate_draft(draft)
    payload = draft.to_api()
    payload["titolo"] = payload["titolo"].strip()
    payload["descrizione"] = payload["descrizione"].strip()
    payload["idCreatore"] = creator_id
    body = client.post_json("/issue/crea", payload)
    issue = Issue.from_api(body) if isinstance(body, dict) else None
    if issue is None or issue.id is None:
        raise ValidationError("Risposta del server non valida: issue senza id")
    logger.info(f"Created issue #{issue.id}")
    return issue


def update_issue(client: ApiClient, session: Session, issue_id: int, changes: dict) -> Issue:
    """*changes* uses wire field names (titolo, descrizione, stato, priorita, ...)."""
    payload = dict(changes)
    payload["idUtenteModificatore"] = _current_user_id(session)
    body = client.put_json(f"/issue/modifica/{issue_id}", payload)
    if isinstance(body, dict) and body.get("idIssue") is not None:
        return Issue.from_api(body)
    # partial response: re-read the full record
    return get_issue(client, issue_id)


def delete_issue(client: ApiClient, session: Session, issue_id: int) -> None:
    client.delete(f"/issue/elimina/{issue_id}", params={"idUtente": _current_user_id(session)})
    logger.info(f"Deleted issue #{issue_id}")


def ensure_archivable(issue: Issue) -> None:
    if issue.archived:
        raise ValidationError("L'issue è già archiviata")
    if not issue.can_archive:
        raise ValidationError(ARCHIVE_REQUIRES_DONE)


def archive_issue(client: ApiClient, issue: Issue, archiver_id: int) -> None:
    ensure_archivable(issue)
    client.delete(f"/issue/archivia/{issue.id}", params={"idArchiviatore": archiver_id})
    logger.info(f"Archived issue #{issue.id} by user {archiver_id}")


def unarchive_issue(client: ApiClient, issue: Issue, admin_id: int | None = None) -> None:
    if not issue.archived:
        raise ValidationError("L'issue non è archiviata")
    params = {"idAmministratore": admin_id} if admin_id is not None else None
    client.put_json(f"/issue/disarchivia/{issue.id}", params=params)
    logger.info(f"Unarchived issue #{issue.id}")

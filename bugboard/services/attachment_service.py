"""
attachment_service.py - Attachment service layer
Single responsibility: validate and transfer files attached to one issue.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from bugboard.api.client import ApiClient
from bugboard.config import (
    IMAGE_MIME_TYPES,
    ISSUE_CREATION_MIME_TYPES,
    MAX_ATTACHMENT_BYTES,
    UPLOAD_WORKERS,
)
from bugboard.domain.models import Attachment, Issue, IssueDraft
from bugboard.errors import BugBoardError, UnknownError, ValidationError, user_message
from bugboard.services import issue_service
from bugboard.session import Session
from bugboard.utils.files import UploadFile, format_file_size

logger = logging.getLogger(__name__)

# 呼び出し元ごとの許可 MIME タイプ
ISSUE_CREATION_TYPES = ISSUE_CREATION_MIME_TYPES
WIDGET_TYPES = IMAGE_MIME_TYPES


def validate_upload(file: UploadFile, allowed_types=None) -> None:
    if file.size == 0:
        raise ValidationError(f"{file.name}: il file è vuoto")
    if file.size > MAX_ATTACHMENT_BYTES:
        raise ValidationError(
            f"{file.name}: il file supera la dimensione massima di "
            f"{format_file_size(MAX_ATTACHMENT_BYTES)}"
        )
    if allowed_types is not None and file.mime_type.lower() not in allowed_types:
        raise ValidationError(f"{file.name}: tipo di file non consentito ({file.mime_type})")


def upload_attachment(client: ApiClient, issue_id: int, file: UploadFile, allowed_types=None) -> Attachment:
    validate_upload(file, allowed_types)
    response = client.request(
        "POST",
        "/allegato/upload",
        files={"file": (file.name, file.content, file.mime_type)},
        data={"idIssue": str(issue_id)},
    )
    try:
        attachment = Attachment.from_api(response.json(), issue_id=issue_id)
    except (ValueError, TypeError, AttributeError) as exc:
        logger.warning(f"Unreadable upload response for {file.name} (issue #{issue_id}): {exc}")
        raise UnknownError("Risposta del server non valida") from exc
    logger.info(f"Uploaded {file.name} ({file.size} bytes) to issue #{issue_id}")
    return attachment


def list_attachments(client: ApiClient, issue_id: int) -> list[Attachment]:
    body = client.get_json(f"/allegato/issue/{issue_id}")
    if not isinstance(body, list):
        return []
    return [Attachment.from_api(item, issue_id=issue_id) for item in body]


def download_attachment(client: ApiClient, attachment_id: int) -> bytes:
    return client.get_bytes(f"/allegato/download/{attachment_id}")


def delete_attachment(client: ApiClient, attachment_id: int) -> None:
    client.delete(f"/allegato/{attachment_id}")
    logger.info(f"Deleted attachment {attachment_id}")


def count_attachments(client: ApiClient, issue_id: int) -> int:
    body = client.get_json(f"/allegato/issue/{issue_id}/count")
    return int((body or {}).get("numeroAllegati", 0))


def total_size(client: ApiClient, issue_id: int) -> int:
    body = client.get_json(f"/allegato/issue/{issue_id}/dimensione-totale")
    return int((body or {}).get("dimensioneTotaleBytes", 0))


# ---------------------------------------------------------------------------
# Batch upload
# ---------------------------------------------------------------------------


@dataclass
class BatchResult:
    uploaded: list[Attachment] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)  # (file name, message)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


def upload_batch(client: ApiClient, issue_id: int, files: list[UploadFile], allowed_types=None, on_progress=None) -> BatchResult:
    """
    Upload every file independently and wait for all of them to settle.

    A rejected or failed file never stops the others. ``on_progress(index,
    name, phase, message)`` is called with phase "uploading", "done" or
    "failed"; *index* is the file's position in *files*.
    """
    result = BatchResult()
    if not files:
        return result

    def _one(index: int, file: UploadFile):
        if on_progress:
            on_progress(index, file.name, "uploading", "")
        try:
            attachment = upload_attachment(client, issue_id, file, allowed_types)
        except BugBoardError as exc:
            if on_progress:
                on_progress(index, file.name, "failed", exc.message)
            return file.name, exc
        if on_progress:
            on_progress(index, file.name, "done", "")
        return file.name, attachment

    with ThreadPoolExecutor(max_workers=min(UPLOAD_WORKERS, len(files))) as pool:
        outcomes = list(pool.map(_one, range(len(files)), files))

    for name, outcome in outcomes:
        if isinstance(outcome, Attachment):
            result.uploaded.append(outcome)
        else:
            result.failed.append((name, user_message(outcome)))

    if result.failed:
        logger.warning(
            f"{len(result.failed)} of {len(files)} attachment(s) not uploaded "
            f"for issue #{issue_id}: {', '.join(name for name, _ in result.failed)}"
        )
    return result


def create_issue_with_attachments(
    client: ApiClient,
    session: Session,
    draft: IssueDraft,
    files: list[UploadFile],
    on_progress=None,
) -> tuple[Issue, BatchResult]:
    """Create the issue, then upload *files*. Upload failures never undo the creation."""
    issue = issue_service.create_issue(client, session, draft)
    batch = upload_batch(client, issue.id, files, ISSUE_CREATION_TYPES, on_progress)
    return issue, batch

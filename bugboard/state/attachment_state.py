"""
attachment_state.py - Attachment panel state
Single responsibility: list, per-file upload progress and gated deletion for one issue.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bugboard.domain.models import Attachment
from bugboard.errors import BugBoardError, ValidationError, user_message
from bugboard.services import attachment_service
from bugboard.utils.files import UploadFile

logger = logging.getLogger(__name__)

READ_ONLY_MESSAGE = "Gli allegati di un'issue archiviata non possono essere modificati"


class UploadPhase(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UploadProgress:
    file_name: str
    phase: UploadPhase = UploadPhase.PENDING
    message: str = ""


class AttachmentPanelState:
    def __init__(self, client, issue_id: int, archived: bool = False, allowed_types=attachment_service.WIDGET_TYPES):
        self.client = client
        self.issue_id = issue_id
        self.archived = archived
        self.allowed_types = allowed_types
        self.items: list[Attachment] = []
        self.count = 0
        self.total_bytes = 0
        # row id -> progress (row ids are unique across batches)
        self.progress: dict[int, UploadProgress] = {}
        self._next_row = 0
        self.pending_delete: Optional[Attachment] = None
        self.error: Optional[str] = None
        self.loading = False
        self._lock = threading.Lock()

    @property
    def read_only(self) -> bool:
        return self.archived

    def _ensure_writable(self) -> None:
        if self.read_only:
            raise ValidationError(READ_ONLY_MESSAGE)

    # -- list ---------------------------------------------------------------

    def load(self) -> None:
        self.loading = True
        try:
            self.items = attachment_service.list_attachments(self.client, self.issue_id)
            self.count = attachment_service.count_attachments(self.client, self.issue_id)
            self.total_bytes = attachment_service.total_size(self.client, self.issue_id)
            self.error = None
        except BugBoardError as exc:
            self.error = user_message(exc, "Errore nel caricamento degli allegati")
        finally:
            self.loading = False

    # -- upload -------------------------------------------------------------

    def _set_progress(self, row: int, name: str, phase: str, message: str = "") -> None:
        with self._lock:
            self.progress[row] = UploadProgress(name, UploadPhase(phase), message)

    def upload(self, files: list[UploadFile], on_progress=None) -> attachment_service.BatchResult:
        """Upload *files* (all settled) and refresh the list."""
        self._ensure_writable()
        with self._lock:
            first_row = self._next_row
            self._next_row += len(files)
        for index, file in enumerate(files):
            self._set_progress(first_row + index, file.name, UploadPhase.PENDING.value)

        def _progress(index, name, phase, message):
            self._set_progress(first_row + index, name, phase, message)
            if on_progress:
                on_progress()

        result = attachment_service.upload_batch(
            self.client, self.issue_id, files, self.allowed_types, _progress
        )
        if result.uploaded:
            self.load()
        if result.failed:
            self.error = "; ".join(message for _, message in result.failed)
        return result

    def clear_finished(self) -> None:
        with self._lock:
            self.progress = {
                row: p
                for row, p in self.progress.items()
                if p.phase in (UploadPhase.PENDING, UploadPhase.UPLOADING)
            }

    # -- delete (confirmation-gated) -----------------------------------------

    def request_delete(self, attachment: Attachment) -> None:
        self._ensure_writable()
        self.pending_delete = attachment

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> bool:
        """Delete the pending attachment. Returns True on success."""
        target = self.pending_delete
        if target is None:
            return False
        self.pending_delete = None
        self._ensure_writable()
        try:
            attachment_service.delete_attachment(self.client, target.id)
        except BugBoardError as exc:
            self.error = user_message(exc)
            return False
        self.items = [a for a in self.items if a.id != target.id]
        self.count = len(self.items)
        self.total_bytes = sum(a.size for a in self.items)
        return True

    # -- download -----------------------------------------------------------

    def download(self, attachment: Attachment) -> bytes:
        return attachment_service.download_attachment(self.client, attachment.id)

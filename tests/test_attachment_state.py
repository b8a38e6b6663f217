import httpx
import pytest

from bugboard.errors import ValidationError
from bugboard.state.attachment_state import (
    READ_ONLY_MESSAGE,
    AttachmentPanelState,
    UploadPhase,
)
from bugboard.utils.files import UploadFile


def _png(name):
    return UploadFile(name, b"\x89PNG-data", "image/png")


def test_load_fills_items_and_totals(client, user_session, backend):
    issue_id = backend.add_issue("Issue")["idIssue"]
    backend.add_attachment(issue_id, "a.png", content=b"1234")
    state = AttachmentPanelState(client, issue_id)

    state.load()

    assert [a.file_name for a in state.items] == ["a.png"]
    assert (state.count, state.total_bytes) == (1, 4)
    assert state.error is None
    assert not state.loading


def test_load_error_is_kept_in_state(client, user_session, backend):
    backend.overrides[("GET", "/allegato/issue/1")] = httpx.Response(500)
    state = AttachmentPanelState(client, 1)

    state.load()

    assert state.error == "Errore del server. Riprova più tardi."


def test_upload_tracks_progress_per_file(client, user_session, backend):
    issue_id = backend.add_issue("Issue")["idIssue"]
    state = AttachmentPanelState(client, issue_id)
    ticks = []

    result = state.upload([_png("ok.png"), UploadFile("doc.pdf", b"%PDF", "application/pdf")], on_progress=lambda: ticks.append(1))

    assert [a.file_name for a in result.uploaded] == ["ok.png"]
    ok, pdf = state.progress.values()
    assert (ok.file_name, ok.phase) == ("ok.png", UploadPhase.DONE)
    assert (pdf.file_name, pdf.phase) == ("doc.pdf", UploadPhase.FAILED)
    assert "non consentito" in pdf.message
    assert [a.file_name for a in state.items] == ["ok.png"]
    assert state.count == 1
    assert "non consentito" in state.error
    assert ticks


def test_clear_finished_drops_settled_rows(client, user_session, backend):
    issue_id = backend.add_issue("Issue")["idIssue"]
    state = AttachmentPanelState(client, issue_id)
    state.upload([_png("ok.png")])

    state.clear_finished()

    assert state.progress == {}


def test_archived_issue_is_read_only(client, user_session, backend):
    issue_id = backend.add_issue("Vecchia", stato="Done", archiviata=True)["idIssue"]
    backend.add_attachment(issue_id, "a.png")
    state = AttachmentPanelState(client, issue_id, archived=True)
    state.load()

    with pytest.raises(ValidationError, match=READ_ONLY_MESSAGE):
        state.upload([_png("nuovo.png")])
    with pytest.raises(ValidationError):
        state.request_delete(state.items[0])

    assert state.read_only
    assert backend.calls("POST", "/allegato/upload") == []
    assert state.download(state.items[0]) == b"png-bytes"


def test_delete_requires_confirmation(client, user_session, backend):
    issue_id = backend.add_issue("Issue")["idIssue"]
    attachment_id = backend.add_attachment(issue_id, "a.png")["idAllegato"]
    state = AttachmentPanelState(client, issue_id)
    state.load()

    state.request_delete(state.items[0])
    state.cancel_delete()
    assert state.confirm_delete() is False
    assert attachment_id in backend.attachments

    state.request_delete(state.items[0])
    assert state.confirm_delete() is True
    assert attachment_id not in backend.attachments
    assert state.items == []
    assert state.count == 0


def test_same_named_files_get_their_own_progress_rows(client, user_session, backend):
    issue_id = backend.add_issue("Issue")["idIssue"]
    backend.reject_uploads.add("clipboard_1700000000.png")
    state = AttachmentPanelState(client, issue_id)

    state.upload([_png("clipboard_1700000000.png"), _png("clipboard_1700000000.png")])
    state.upload([_png("clipboard_1700000000.png")])

    assert len(state.progress) == 3
    assert all(p.phase is UploadPhase.FAILED for p in state.progress.values())

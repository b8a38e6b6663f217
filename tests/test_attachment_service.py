import pytest

from bugboard.config import MAX_ATTACHMENT_BYTES
from bugboard.domain.models import IssueDraft, IssueType
from bugboard.errors import ValidationError
from bugboard.services import attachment_service
from bugboard.utils.files import UploadFile


def _png(name="screen.png", size=128):
    return UploadFile(name, b"\x89PNG" + b"0" * (size - 4), "image/png")


@pytest.mark.parametrize(
    "file, message",
    [
        (UploadFile("vuoto.png", b"", "image/png"), "vuoto"),
        (UploadFile("enorme.png", b"0" * (MAX_ATTACHMENT_BYTES + 1), "image/png"), "dimensione massima"),
        (UploadFile("doc.pdf", b"%PDF", "application/pdf"), "non consentito"),
    ],
)
def test_validate_upload_rejects(file, message):
    with pytest.raises(ValidationError, match=message):
        attachment_service.validate_upload(file, attachment_service.WIDGET_TYPES)


def test_limit_is_inclusive():
    exact = UploadFile("limite.png", b"0" * MAX_ATTACHMENT_BYTES, "image/png")

    attachment_service.validate_upload(exact, attachment_service.WIDGET_TYPES)


def test_pdf_is_allowed_at_issue_creation():
    pdf = UploadFile("doc.pdf", b"%PDF", "application/pdf")

    attachment_service.validate_upload(pdf, attachment_service.ISSUE_CREATION_TYPES)


def test_upload_attachment_sends_multipart(client, user_session, backend):
    issue = backend.add_issue("Con allegato")

    attachment = attachment_service.upload_attachment(client, issue["idIssue"], _png())

    assert attachment.file_name == "screen.png"
    assert attachment.mime_type == "image/png"
    assert attachment.size == 128
    assert attachment.issue_id == issue["idIssue"]
    assert backend.attachments[attachment.id]["idIssue"] == issue["idIssue"]


def test_batch_keeps_going_after_rejections(client, user_session, backend):
    issue = backend.add_issue("Batch")
    files = [
        _png("uno.png"),
        _png("enorme.png", MAX_ATTACHMENT_BYTES + 1),
        UploadFile("note.pdf", b"%PDF", "application/pdf"),
        _png("due.png"),
    ]
    events = []

    result = attachment_service.upload_batch(
        client,
        issue["idIssue"],
        files,
        attachment_service.WIDGET_TYPES,
        on_progress=lambda index, name, phase, message: events.append((name, phase)),
    )

    assert sorted(a.file_name for a in result.uploaded) == ["due.png", "uno.png"]
    assert sorted(name for name, _ in result.failed) == ["enorme.png", "note.pdf"]
    assert not result.all_succeeded
    assert len(backend.attachments) == 2
    assert ("enorme.png", "failed") in events
    assert ("uno.png", "done") in events


def test_batch_server_failure_does_not_block_others(client, user_session, backend):
    issue = backend.add_issue("Batch")
    backend.reject_uploads.add("rotto.png")

    result = attachment_service.upload_batch(
        client, issue["idIssue"], [_png("rotto.png"), _png("ok.png")]
    )

    assert [a.file_name for a in result.uploaded] == ["ok.png"]
    assert result.failed == [("rotto.png", "Errore durante il salvataggio")]


def test_create_issue_with_attachments(client, user_session, backend):
    draft = IssueDraft(title="Report", description="Allego il PDF", type=IssueType.BUG)
    files = [
        UploadFile("report.pdf", b"%PDF-1.7", "application/pdf"),
        _png("enorme.png", MAX_ATTACHMENT_BYTES + 1),
        UploadFile("x.exe", b"MZ", "application/x-msdownload"),
        _png("screen.png"),
    ]

    issue, batch = attachment_service.create_issue_with_attachments(client, user_session, draft, files)

    assert issue.id in backend.issues
    assert [a.file_name for a in batch.uploaded] == ["report.pdf", "screen.png"]
    assert [name for name, _ in batch.failed] == ["enorme.png", "x.exe"]
    assert len(backend.attachments) == 2


def test_list_count_size_download_delete(client, user_session, backend):
    issue_id = backend.add_issue("Allegati")["idIssue"]
    first = backend.add_attachment(issue_id, "a.png", content=b"12345")
    backend.add_attachment(issue_id, "b.png", content=b"123")
    backend.add_attachment(issue_id + 1, "altro.png")

    items = attachment_service.list_attachments(client, issue_id)
    assert [a.file_name for a in items] == ["a.png", "b.png"]
    assert attachment_service.count_attachments(client, issue_id) == 2
    assert attachment_service.total_size(client, issue_id) == 8
    assert attachment_service.download_attachment(client, first["idAllegato"]) == b"12345"

    attachment_service.delete_attachment(client, first["idAllegato"])

    assert attachment_service.count_attachments(client, issue_id) == 1


@pytest.mark.parametrize("body", ["OK", '{"nomeFile": "strano.png"}', "[]"])
def test_unreadable_upload_response_fails_only_that_file(client, user_session, backend, body):
    backend.garbled_uploads["strano.png"] = body
    draft = IssueDraft(title="Report", description="Due screenshot", type=IssueType.BUG)

    issue, batch = attachment_service.create_issue_with_attachments(
        client, user_session, draft, [_png("strano.png"), _png("ok.png")]
    )

    assert issue.id in backend.issues
    assert [a.file_name for a in batch.uploaded] == ["ok.png"]
    assert batch.failed == [("strano.png", "Risposta del server non valida")]

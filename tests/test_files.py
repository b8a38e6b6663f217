import os

import pytest

from bugboard.utils.files import UploadFile, format_file_size, guess_mime_type, save_download
from bugboard.utils.time import format_datetime


@pytest.mark.parametrize(
    "size, text",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536 * 1024, "1.5 MB"),
        (5 * 1024 * 1024, "5 MB"),
    ],
)
def test_format_file_size(size, text):
    assert format_file_size(size) == text


@pytest.mark.parametrize(
    "name, mime",
    [
        ("foto.PNG", "image/png"),
        ("foto.webp", "image/webp"),
        ("relazione.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("senza_estensione", "application/octet-stream"),
    ],
)
def test_guess_mime_type(name, mime):
    assert guess_mime_type(name) == mime


def test_upload_file_from_path(tmp_path):
    path = tmp_path / "screen.png"
    path.write_bytes(b"\x89PNG1234")

    upload = UploadFile.from_path(str(path))

    assert upload.name == "screen.png"
    assert upload.mime_type == "image/png"
    assert upload.size == 8


def test_save_download_never_overwrites(tmp_path):
    first = save_download("report.pdf", b"uno", str(tmp_path))
    second = save_download("report.pdf", b"due", str(tmp_path))

    assert os.path.basename(first) == "report.pdf"
    assert os.path.basename(second) == "report (1).pdf"
    with open(first, "rb") as f:
        assert f.read() == b"uno"


def test_save_download_strips_directories(tmp_path):
    path = save_download("../../evil.png", b"x", str(tmp_path))

    assert os.path.dirname(path) == str(tmp_path)


def test_format_datetime():
    assert format_datetime("2026-01-02T09:05:00Z") == "02/01/2026 09:05"
    assert format_datetime("non una data") == "non una data"
    assert format_datetime(None) == ""

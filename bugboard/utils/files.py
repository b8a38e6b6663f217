"""
files.py - ローカルファイル・クリップボード画像ユーティリティ
BugBoard client v0.1
"""
import io
import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime

try:
    from PIL import ImageGrab  # type: ignore
except Exception:
    ImageGrab = None

from bugboard.config import DOWNLOAD_DIR

# mimetypes が環境によって知らない拡張子
_EXTRA_TYPES = {
    ".webp": "image/webp",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
}


def guess_mime_type(file_name: str) -> str:
    ext = os.path.splitext(file_name)[1].lower()
    if ext in _EXTRA_TYPES:
        return _EXTRA_TYPES[ext]
    mime, _ = mimetypes.guess_type(file_name)
    return mime or "application/octet-stream"


@dataclass
class UploadFile:
    """A file selected for upload, already read into memory."""

    name: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str) -> "UploadFile":
        with open(path, "rb") as f:
            content = f.read()
        name = os.path.basename(path)
        return cls(name=name, content=content, mime_type=guess_mime_type(name))


def clipboard_image() -> UploadFile | None:
    """クリップボードの画像を PNG の UploadFile として返す。画像がなければ None。"""
    if ImageGrab is None:
        return None

    try:
        img = ImageGrab.grabclipboard()
    except Exception:
        img = None

    # grabclipboard はファイルパスのリストを返すこともある
    if img is None or isinstance(img, list):
        return None

    buffer = io.BytesIO()
    try:
        img.save(buffer, format="PNG")
    except Exception:
        return None

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return UploadFile(
        name=f"clipboard_{timestamp}.png",
        content=buffer.getvalue(),
        mime_type="image/png",
    )


def save_download(file_name: str, content: bytes, directory: str = DOWNLOAD_DIR) -> str:
    """
    ダウンロードしたバイト列を directory に保存し、保存先パスを返す。

    同名ファイルがある場合は「名前 (1).拡張子」のように連番を付ける。
    """
    os.makedirs(directory, exist_ok=True)
    safe_name = os.path.basename(file_name) or "allegato"
    stem, ext = os.path.splitext(safe_name)
    dest_path = os.path.join(directory, safe_name)
    counter = 1
    while os.path.exists(dest_path):
        dest_path = os.path.join(directory, f"{stem} ({counter}){ext}")
        counter += 1

    with open(dest_path, "wb") as f:
        f.write(content)
    return dest_path


def format_file_size(size: int) -> str:
    """Bytes / KB / MB / GB with two decimals, like "1.5 MB"."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"

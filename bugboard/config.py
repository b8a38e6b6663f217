"""
config.py - パス解決・アプリ定数
BugBoard client v0.1
"""

import os

# ---------------------------------------------------------------------------
# パス解決
# ---------------------------------------------------------------------------


def get_data_dir() -> str:
    """
    セッションファイル等を置くディレクトリを返す。
    - BUGBOARD_HOME が設定されていればそれを使う
    - それ以外: ~/.bugboard
    """
    override = os.environ.get("BUGBOARD_HOME")
    if override:
        return override
    return os.path.join(os.path.expanduser("~"), ".bugboard")


DATA_DIR = get_data_dir()

SESSION_PATH = os.environ.get(
    "BUGBOARD_SESSION_FILE", os.path.join(DATA_DIR, "session.json")
)
DOWNLOAD_DIR = os.environ.get(
    "BUGBOARD_DOWNLOAD_DIR", os.path.join(os.path.expanduser("~"), "Downloads")
)

# ---------------------------------------------------------------------------
# バックエンド
# ---------------------------------------------------------------------------

API_BASE_URL = os.environ.get("BUGBOARD_API_URL", "http://localhost:8080/api")
# None = httpx のデフォルトタイムアウト
_timeout = os.environ.get("BUGBOARD_HTTP_TIMEOUT")
HTTP_TIMEOUT: float | None = float(_timeout) if _timeout else None

# ---------------------------------------------------------------------------
# アプリ定数
# ---------------------------------------------------------------------------

APP_TITLE = "BugBoard"
APP_VERSION = "0.1.0"

EMAIL_DOMAIN = "bugboard.it"
MIN_PASSWORD_LENGTH = 6
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 5000

MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
UPLOAD_WORKERS = 4

IMAGE_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    }
)
# 新規 Issue 作成時は文書ファイルも許可する
ISSUE_CREATION_MIME_TYPES = IMAGE_MIME_TYPES | frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

RECENT_ISSUES_LIMIT = 5

# ---------------------------------------------------------------------------
# カラーパレット
# ---------------------------------------------------------------------------

COLOR_BG = "#F0F2F5"  # 背景
COLOR_CARD = "#FFFFFF"  # カード背景
COLOR_BORDER = "#D0D7DE"  # ボーダー
COLOR_TEXT_MUTED = "#656D76"  # 薄いテキスト
COLOR_TEXT_MAIN = "#1F2328"  # メインテキスト
COLOR_PRIMARY = "#0969DA"  # プライマリ（青）
COLOR_DANGER = "#CF222E"  # 危険色（赤）
COLOR_SUCCESS = "#2DA44E"  # 緑
COLOR_WARNING = "#BF8700"  # 黄
COLOR_ARCHIVED = "#8250DF"  # 紫

# Sidebar
COLOR_SIDEBAR_BG = "#24292F"
COLOR_SIDEBAR_FG = "#FFFFFF"

# ステータス / 優先度 / タイプ
STATUS_COLORS = {
    "todo": "#656D76",
    "in-progress": "#0969DA",
    "done": "#2DA44E",
}
PRIORITY_COLORS = {
    "none": "#8C959F",
    "low": "#2DA44E",
    "medium": "#BF8700",
    "high": "#FB8500",
    "critical": "#CF222E",
}
TYPE_COLORS = {
    "bug": "#CF222E",
    "feature": "#0969DA",
    "question": "#8250DF",
    "documentation": "#1A7F37",
}

# UI 定数
BORDER_RADIUS_CARD = 10
BORDER_RADIUS_BTN = 6
SIDEBAR_WIDTH = 220

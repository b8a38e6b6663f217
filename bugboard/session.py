"""
session.py - セッション管理（トークン・ユーザー・サイドバー設定）
BugBoard client v0.1

セッションは JSON ファイルに保存される。複数プロセス間のロックは行わない
（後から書いた方が勝つ）。
"""
import json
import logging
import os

from bugboard.domain.capabilities import is_admin
from bugboard.domain.models import Role, User

logger = logging.getLogger(__name__)

KEY_TOKEN = "authToken"
KEY_USER = "user"
KEY_SIDEBAR = "sidebarOpen"


# ---------------------------------------------------------------------------
# セッションファイル I/O
# ---------------------------------------------------------------------------


def read_session_file(path: str) -> dict | None:
    """セッションファイルの内容を読み取る。存在しない・壊れている場合は None。"""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        logger.warning(f"Session file unreadable, starting empty: {path}")
        return None
    return data if isinstance(data, dict) else None


def write_session_file(path: str, data: dict) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class Session:
    """Bearer token + current user, bound to one JSON file.

    Passed explicitly to every service call that needs authentication.
    """

    def __init__(self, path: str, token: str | None = None, user: User | None = None, sidebar_open: bool = True):
        self.path = path
        self.token = token
        self.user = user
        self.sidebar_open = sidebar_open

    @classmethod
    def load(cls, path: str) -> "Session":
        data = read_session_file(path)
        if data is None:
            return cls(path)

        token = data.get(KEY_TOKEN)
        if not isinstance(token, str) or not token:
            token = None

        user = None
        raw_user = data.get(KEY_USER)
        if raw_user is not None:
            try:
                user = User.from_api(raw_user)
            except ValueError:
                # 壊れたユーザー情報は「未ログイン」として扱う
                logger.warning("Stored user record is malformed; ignoring it")

        sidebar = data.get(KEY_SIDEBAR, True)
        return cls(path, token=token, user=user, sidebar_open=bool(sidebar))

    def save(self) -> None:
        write_session_file(
            self.path,
            {
                KEY_TOKEN: self.token,
                KEY_USER: self.user.to_api() if self.user else None,
                KEY_SIDEBAR: self.sidebar_open,
            },
        )

    # -- login / logout -----------------------------------------------------

    def store(self, token: str, user: User) -> None:
        self.token = token
        self.user = user
        self.save()
        logger.info(f"Session stored for {user.email} ({user.role.wire})")

    def clear(self) -> None:
        """トークンとユーザーを破棄する。サイドバー設定は残す。"""
        self.token = None
        self.user = None
        self.save()

    # -- queries ------------------------------------------------------------

    def get_token(self) -> str | None:
        return self.token

    def get_user(self) -> User | None:
        return self.user

    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    def is_admin(self) -> bool:
        return is_admin(self.user)

    def is_utente(self) -> bool:
        return self.user is not None and self.user.role is Role.USER

    # -- preferences --------------------------------------------------------

    def set_sidebar_open(self, is_open: bool) -> None:
        self.sidebar_open = is_open
        self.save()

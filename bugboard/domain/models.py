"""
models.py - Domain models
Single responsibility: typed containers for core entities and their wire mapping.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class _WireEnum(str, Enum):
    """Enum whose members carry a wire spelling and an Italian label."""

    def __new__(cls, value: str, wire: str, label: str, aliases: tuple = ()):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.wire = wire
        obj.label = label
        obj.aliases = aliases
        return obj

    @classmethod
    def parse(cls, raw: Any):
        """Case-insensitive lookup by value, wire spelling or alias."""
        if isinstance(raw, cls):
            return raw
        if raw is None:
            raise ValueError(f"Missing {cls.__name__}")
        key = str(raw).strip().lower()
        for member in cls:
            names = {member.value, member.wire.lower(), *member.aliases}
            if key in names:
                return member
        raise ValueError(f"Unsupported {cls.__name__}: {raw!r}")

    @classmethod
    def parse_optional(cls, raw: Any, default=None):
        try:
            return cls.parse(raw)
        except ValueError:
            return default


class IssueStatus(_WireEnum):
    TODO = ("todo", "Todo", "Todo")
    IN_PROGRESS = ("in-progress", "inProgress", "In Progress", ("inprogress", "in_progress"))
    DONE = ("done", "Done", "Done")


class IssueType(_WireEnum):
    BUG = ("bug", "bug", "Bug")
    FEATURE = ("feature", "features", "Feature")
    QUESTION = ("question", "question", "Question")
    DOCUMENTATION = ("documentation", "documentation", "Documentation")


class IssuePriority(_WireEnum):
    NONE = ("none", "none", "Nessuna", ("nessuna",))
    LOW = ("low", "low", "Bassa", ("bassa",))
    MEDIUM = ("medium", "medium", "Media", ("media",))
    HIGH = ("high", "high", "Alta", ("alta",))
    CRITICAL = ("critical", "critical", "Critica", ("critica",))

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    IssuePriority.NONE: 0,
    IssuePriority.LOW: 1,
    IssuePriority.MEDIUM: 2,
    IssuePriority.HIGH: 3,
    IssuePriority.CRITICAL: 4,
}


class Role(_WireEnum):
    USER = ("user", "Utente", "Utente", ("utente",))
    ADMIN = (
        "administrator",
        "Amministratore",
        "Amministratore",
        ("admin", "amministratore"),
    )


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class User:
    id: Optional[int]
    name: str
    surname: str
    email: str
    role: Role = Role.USER
    active: bool = True

    def __getitem__(self, key):
        return getattr(self, key)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_api(cls, data: dict) -> "User":
        """Build a User from a server or stored record; raises ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("User record must be an object")
        email = data.get("email")
        if not isinstance(email, str) or not email:
            raise ValueError("User record without email")
        user_id = data.get("idUtente", data.get("id"))
        active = data.get("stato", data.get("attivo", True))
        return cls(
            id=_int_or_none(user_id),
            name=str(data.get("nome") or ""),
            surname=str(data.get("cognome") or ""),
            email=email,
            role=Role.parse_optional(data.get("ruolo"), Role.USER),
            active=bool(active) if active is not None else True,
        )

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "nome": self.name,
            "cognome": self.surname,
            "email": self.email,
            "ruolo": self.role.wire,
            "stato": self.active,
        }


@dataclass
class Issue:
    title: str
    description: str
    type: IssueType
    priority: IssuePriority = IssuePriority.NONE
    status: IssueStatus = IssueStatus.TODO
    created_at: str | None = None
    updated_at: str | None = None
    archived: bool = False
    archived_at: str | None = None
    resolved_at: str | None = None
    creator: Optional[User] = None
    archiver: Optional[User] = None
    id: Optional[int] = None

    def __getitem__(self, key):
        return getattr(self, key)

    @property
    def can_archive(self) -> bool:
        return self.status is IssueStatus.DONE and not self.archived

    @classmethod
    def from_api(cls, data: dict) -> "Issue":
        return cls(
            id=_int_or_none(data.get("idIssue", data.get("id"))),
            title=data.get("titolo") or "",
            description=data.get("descrizione") or "",
            type=IssueType.parse_optional(data.get("tipo"), IssueType.BUG),
            priority=IssuePriority.parse_optional(
                data.get("priorita"), IssuePriority.NONE
            ),
            status=IssueStatus.parse_optional(data.get("stato"), IssueStatus.TODO),
            created_at=data.get("dataCreazione"),
            updated_at=data.get("dataUltimaModifica"),
            archived=bool(data.get("archiviata") or False),
            archived_at=data.get("dataArchiviazione"),
            resolved_at=data.get("dataRisoluzione"),
            creator=_user_or_none(data.get("creatore")),
            archiver=_user_or_none(data.get("archiviatore")),
        )


def _user_or_none(data: Any) -> Optional[User]:
    if not data:
        return None
    try:
        return User.from_api(data)
    except ValueError:
        return None


@dataclass
class IssueDraft:
    """Fields a user submits when creating or editing an issue."""

    title: str
    description: str
    type: IssueType
    priority: IssuePriority = IssuePriority.NONE
    status: IssueStatus = IssueStatus.TODO

    def to_api(self) -> dict:
        return {
            "titolo": self.title,
            "descrizione": self.description,
            "tipo": self.type.wire,
            "priorita": self.priority.wire,
            "stato": self.status.wire,
        }


@dataclass
class Attachment:
    id: int
    file_name: str
    mime_type: str
    size: int
    issue_id: Optional[int] = None
    uploaded_at: str | None = None

    def __getitem__(self, key):
        return getattr(self, key)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @classmethod
    def from_api(cls, data: dict, issue_id: Optional[int] = None) -> "Attachment":
        owner = data.get("issue")
        if issue_id is None and isinstance(owner, dict):
            issue_id = _int_or_none(owner.get("idIssue"))
        return cls(
            id=int(data.get("idAllegato", data.get("id"))),
            file_name=data.get("nomeFile") or "",
            mime_type=data.get("tipoFile") or "application/octet-stream",
            size=int(data.get("dimensione") or 0),
            issue_id=_int_or_none(data.get("idIssue")) or issue_id,
            uploaded_at=data.get("dataCaricamento"),
        )


@dataclass
class IssueStatistics:
    total: int = 0
    active: int = 0
    archived: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0
    resolved: int = 0
    unresolved: int = 0
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> "IssueStatistics":
        known = {
            "totali": "total",
            "attive": "active",
            "archiviate": "archived",
            "todo": "todo",
            "inProgress": "in_progress",
            "done": "done",
            "risolte": "resolved",
            "nonRisolte": "unresolved",
        }
        values = {attr: int(data.get(key) or 0) for key, attr in known.items()}
        extra = {k: v for k, v in data.items() if k not in known}
        return cls(extra=extra, **values)


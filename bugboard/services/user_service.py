"""
user_service.py - User administration service layer
Single responsibility: user creation, role/state changes and list filtering against /utenza.
"""
import logging
import re
import unicodedata
from dataclasses import dataclass

from bugboard.api.client import ApiClient
from bugboard.config import EMAIL_DOMAIN
from bugboard.domain.capabilities import can_manage_users
from bugboard.domain.models import Role, User
from bugboard.errors import AuthError, ValidationError
from bugboard.services.auth_service import validate_new_password
from bugboard.session import Session

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")

STATE_ALL = "tutti"
STATE_ACTIVE = "attivi"
STATE_INACTIVE = "inattivi"


def _email_part(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value or "")
    without_marks = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_ALNUM.sub("", without_marks.lower())


def generate_email(name: str, surname: str) -> str:
    """nome.cognome@bugboard.it, e.g. ("Anna", "O'Brien") -> anna.obrien@bugboard.it.

    Diacritics and every non-alphanumeric character are dropped. Returns ""
    when either part is empty after normalisation.
    """
    first = _email_part(name)
    last = _email_part(surname)
    if not first or not last:
        return ""
    return f"{first}.{last}@{EMAIL_DOMAIN}"


@dataclass
class UserDraft:
    name: str
    surname: str
    password: str
    confirm_password: str
    role: Role = Role.USER

    @property
    def email(self) -> str:
        return generate_email(self.name, self.surname)


def _require_admin(session: Session) -> None:
    if not can_manage_users(session.get_user()):
        raise AuthError("Solo gli amministratori possono gestire le utenze")


def list_users(client: ApiClient) -> list[User]:
    body = client.get_json("/utenza/lista")
    users = []
    for item in body or []:
        try:
            users.append(User.from_api(item))
        except ValueError:
            logger.warning(f"Skipping malformed user record: {item!r}")
    return users


def create_user(client: ApiClient, session: Session, draft: UserDraft) -> User:
    _require_admin(session)
    if not draft.name.strip() or not draft.surname.strip():
        raise ValidationError("Nome e cognome sono obbligatori")
    email = draft.email
    if not email:
        raise ValidationError("Impossibile generare l'email da nome e cognome")
    validate_new_password(draft.password, draft.confirm_password)

    body = client.post_json(
        "/utenza/crea",
        {
            "nome": draft.name.strip(),
            "cognome": draft.surname.strip(),
            "email": email,
            "password": draft.password,
            "ruolo": draft.role.wire,
        },
    )
    record = body.get("utenza") if isinstance(body, dict) else None
    user = User.from_api(record) if record else User(
        id=None, name=draft.name.strip(), surname=draft.surname.strip(), email=email, role=draft.role
    )
    logger.info(f"Created user {email}")
    return user


def change_role(client: ApiClient, session: Session, user: User, role: Role) -> None:
    _require_admin(session)
    if user.role is Role.ADMIN and role is not Role.ADMIN:
        raise ValidationError(
            "Non è possibile rimuovere i privilegi di amministratore"
        )
    client.put_json(f"/utenza/{user.id}", {"ruolo": role.wire})
    logger.info(f"User {user.id} role -> {role.wire}")


def set_active(client: ApiClient, session: Session, user: User, active: bool) -> None:
    _require_admin(session)
    me = session.get_user()
    if me is not None and me.id == user.id:
        raise ValidationError("Non puoi cambiare lo stato del tuo stesso account")
    client.patch_json(f"/utenza/{user.id}/stato", {"stato": active})
    logger.info(f"User {user.id} active -> {active}")


def filter_users(users: list[User], text: str = "", state: str = STATE_ALL) -> list[User]:
    """Full-name substring (case-insensitive) + active/inactive filter."""
    term = (text or "").strip().lower()
    result = []
    for user in users:
        if term and term not in user.full_name.lower():
            continue
        if state == STATE_ACTIVE and not user.active:
            continue
        if state == STATE_INACTIVE and user.active:
            continue
        result.append(user)
    return result

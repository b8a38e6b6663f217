"""
auth_service.py - Authentication service layer
Single responsibility: login/logout and password flows against /utenza.
"""
import logging

from bugboard.api.client import ApiClient
from bugboard.config import MIN_PASSWORD_LENGTH
from bugboard.domain.models import User
from bugboard.errors import (
    AuthError,
    BugBoardError,
    NetworkError,
    NotFound,
    ServerError,
    ValidationError,
)
from bugboard.session import Session

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Credenziali non valide"


def login(client: ApiClient, session: Session, email: str, password: str) -> User:
    """Authenticate and persist token + user in *session*."""
    email = (email or "").strip()
    if not email or not password:
        raise ValidationError("Inserisci email e password")

    try:
        body = client.post_json("/utenza/login", {"email": email, "password": password})
    except (AuthError, ValidationError, NotFound) as exc:
        # 4xx: prefer the server text, otherwise a generic credential error
        message = exc.message if exc.message != type(exc).default_message else INVALID_CREDENTIALS
        raise AuthError(message, exc.status_code) from exc

    if not isinstance(body, dict) or not body.get("token"):
        raise AuthError(INVALID_CREDENTIALS)
    try:
        user = User.from_api(body.get("utente") or {})
    except ValueError as exc:
        raise AuthError("Risposta di login non valida") from exc

    session.store(body["token"], user)
    logger.info(f"Logged in as {user.email}")
    return user


def logout(session: Session) -> None:
    """Forget the local session; the server is not contacted."""
    session.clear()
    logger.info("Logged out")


def recover_password(client: ApiClient, email: str) -> str:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Inserisci la tua email")
    try:
        body = client.post_json("/utenza/recupera-password", {"email": email})
    except NotFound as exc:
        raise NotFound("Email non trovata", exc.status_code) from exc
    except ServerError as exc:
        raise ServerError("Errore del server. Riprova più tardi.", exc.status_code) from exc
    except NetworkError:
        raise
    except BugBoardError as exc:
        if exc.message == type(exc).default_message:
            raise type(exc)("Errore durante il recupero password", exc.status_code) from exc
        raise
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return "Email di recupero password inviata con successo"


def validate_new_password(password: str, confirm: str) -> None:
    if not password:
        raise ValidationError("La password non può essere vuota")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"La password deve contenere almeno {MIN_PASSWORD_LENGTH} caratteri"
        )
    if password != confirm:
        raise ValidationError("Le password non coincidono")


def change_password(client: ApiClient, session: Session, password: str, confirm: str) -> None:
    if not session.is_authenticated():
        raise AuthError()
    validate_new_password(password, confirm)
    client.put_json("/utenza/modifica", {"password": password})
    logger.info("Password changed")

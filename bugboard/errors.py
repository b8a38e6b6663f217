"""
errors.py - Client error taxonomy
Single responsibility: classify failures and produce user-facing messages.

Every service call either succeeds or raises one of the BugBoardError
subclasses below. Views catch BugBoardError at their boundary and show
``exc.message`` inline; nothing here retries.
"""

from __future__ import annotations

import httpx


class BugBoardError(Exception):
    """Base for every error surfaced by the client."""

    default_message = "Si è verificato un errore imprevisto"

    def __init__(self, message: str | None = None, status_code: int = 0):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(BugBoardError):
    """Client-side precondition failed; no request was sent."""

    default_message = "Dati non validi"


class AuthError(BugBoardError):
    """401 or a missing/invalid session."""

    default_message = "Sessione non valida. Effettua nuovamente il login."


class NotFound(BugBoardError):
    default_message = "Risorsa non trovata"


class ServerError(BugBoardError):
    default_message = "Errore del server. Riprova più tardi."


class NetworkError(BugBoardError):
    """No response was received."""

    default_message = "Errore di connessione al server"


class UnknownError(BugBoardError):
    pass


def server_message(response: httpx.Response) -> str | None:
    """Extract the ``message`` (or ``error``) field of an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    elif isinstance(body, str) and body.strip():
        return body
    return None


def error_from_response(response: httpx.Response) -> BugBoardError:
    """Map a non-2xx response onto the taxonomy."""
    status = response.status_code
    message = server_message(response)
    if status == 401 or status == 403:
        return AuthError(message, status)
    if status == 404:
        return NotFound(message, status)
    if 400 <= status < 500:
        return ValidationError(message, status)
    if status >= 500:
        return ServerError(message, status)
    return UnknownError(message, status)


def user_message(exc: BaseException, default: str | None = None) -> str:
    """Text to show inline for *exc*."""
    if isinstance(exc, BugBoardError):
        return exc.message
    return default or BugBoardError.default_message

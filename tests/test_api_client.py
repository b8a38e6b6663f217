import httpx
import pytest

from bugboard.api.client import ApiClient
from bugboard.errors import (
    AuthError,
    NetworkError,
    NotFound,
    ServerError,
    ValidationError,
)

from conftest import BASE_URL


def _client(session, handler):
    return ApiClient(session, base_url=BASE_URL, transport=httpx.MockTransport(handler))


def test_bearer_header_comes_from_session(admin_session, client, backend):
    client.get_json("/issue/visualizza-lista")

    assert backend.requests[-1].headers["authorization"] == "Bearer token-1"


def test_no_header_without_token(session):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    with _client(session, handler) as api:
        api.get_json("/issue/visualizza-lista")

    assert "authorization" not in seen[0].headers


def test_none_params_are_dropped(session):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    with _client(session, handler) as api:
        api.get_json("/issue/filtra", params={"stato": "Done", "tipo": None})

    assert dict(seen[0].url.params) == {"stato": "Done"}


@pytest.mark.parametrize(
    "status, error_cls",
    [
        (400, ValidationError),
        (401, AuthError),
        (403, AuthError),
        (404, NotFound),
        (409, ValidationError),
        (500, ServerError),
        (503, ServerError),
    ],
)
def test_status_codes_map_to_error_classes(session, status, error_cls):
    def handler(request):
        return httpx.Response(status, json={"message": "dal server"})

    with _client(session, handler) as api:
        with pytest.raises(error_cls) as info:
            api.get_json("/issue/visualizza/1")

    assert info.value.message == "dal server"
    assert info.value.status_code == status


def test_plain_text_error_body_is_the_message(session):
    def handler(request):
        return httpx.Response(400, text="Titolo obbligatorio")

    with _client(session, handler) as api:
        with pytest.raises(ValidationError, match="Titolo obbligatorio"):
            api.post_json("/issue/crea", {})


def test_empty_error_body_uses_default_message(session):
    def handler(request):
        return httpx.Response(500)

    with _client(session, handler) as api:
        with pytest.raises(ServerError) as info:
            api.get_json("/issue/statistiche")

    assert info.value.message == ServerError.default_message


def test_transport_failure_is_network_error(session):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(session, handler) as api:
        with pytest.raises(NetworkError) as info:
            api.get_json("/issue/visualizza-lista")

    assert info.value.message == "Errore di connessione al server"


def test_empty_success_body_is_none(admin_session, client, backend):
    issue = backend.add_issue("Da eliminare")

    assert client.delete(f"/issue/elimina/{issue['idIssue']}", params={"idUtente": 1}) is None

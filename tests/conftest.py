"""
conftest.py - In-memory BugBoard backend served through httpx.MockTransport
"""
import json
import re
import threading
from urllib.parse import parse_qs

import httpx
import pytest

from bugboard.api.client import ApiClient
from bugboard.domain.models import User
from bugboard.session import Session

BASE_URL = "http://bugboard.test/api"

ADMIN = {
    "idUtente": 1,
    "nome": "Admin",
    "cognome": "BugBoard",
    "email": "admin@bugboard.it",
    "ruolo": "Amministratore",
    "stato": True,
}
MARIO = {
    "idUtente": 2,
    "nome": "Mario",
    "cognome": "Rossi",
    "email": "mario.rossi@bugboard.it",
    "ruolo": "Utente",
    "stato": True,
}
LUCA = {
    "idUtente": 3,
    "nome": "Luca",
    "cognome": "Bianchi",
    "email": "luca.bianchi@bugboard.it",
    "ruolo": "Utente",
    "stato": False,
}


def _json(status: int, body=None) -> httpx.Response:
    if body is None:
        return httpx.Response(status)
    return httpx.Response(status, json=body)


def _parse_multipart(request: httpx.Request) -> dict:
    """{field name: (filename, content type, payload)} for a multipart body."""
    boundary = request.headers["content-type"].split("boundary=")[1].encode()
    parts = {}
    for chunk in request.content.split(b"--" + boundary)[1:-1]:
        head, _, payload = chunk[2:-2].partition(b"\r\n\r\n")
        head_text = head.decode()
        name = re.search(r'name="([^"]*)"', head_text).group(1)
        filename = re.search(r'filename="([^"]*)"', head_text)
        content_type = re.search(r"Content-Type: (\S+)", head_text)
        parts[name] = (
            filename.group(1) if filename else None,
            content_type.group(1) if content_type else None,
            payload,
        )
    return parts


class FakeBackend:
    """Just enough of the BugBoard REST API for the client tests."""

    def __init__(self):
        self.users = {u["idUtente"]: dict(u) for u in (ADMIN, MARIO, LUCA)}
        self.passwords = {
            "admin@bugboard.it": "admin123",
            "mario.rossi@bugboard.it": "mario123",
            "luca.bianchi@bugboard.it": "luca123",
        }
        self.issues: dict[int, dict] = {}
        self.attachments: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []
        # (method, path) -> httpx.Response, returned instead of the normal handler
        self.overrides: dict[tuple[str, str], httpx.Response] = {}
        self.reject_uploads: set[str] = set()
        # file name -> raw 2xx body returned instead of the attachment JSON
        self.garbled_uploads: dict[str, str] = {}
        self._next_issue = 1
        self._next_attachment = 1
        self._clock = 0
        self._lock = threading.Lock()

    # -- fixtures helpers ---------------------------------------------------

    def _now(self) -> str:
        self._clock += 1
        return f"2026-03-{self._clock:02d}T10:00:00"

    def add_issue(self, titolo, stato="Todo", tipo="bug", priorita="none", archiviata=False, creatore=2):
        issue_id = self._next_issue
        self._next_issue += 1
        record = {
            "idIssue": issue_id,
            "titolo": titolo,
            "descrizione": f"Descrizione di {titolo}",
            "tipo": tipo,
            "priorita": priorita,
            "stato": stato,
            "dataCreazione": self._now(),
            "dataUltimaModifica": None,
            "archiviata": archiviata,
            "dataArchiviazione": self._now() if archiviata else None,
            "dataRisoluzione": None,
            "creatore": self.users.get(creatore),
            "archiviatore": self.users[1] if archiviata else None,
        }
        self.issues[issue_id] = record
        return record

    def add_attachment(self, issue_id, nome_file="screen.png", tipo="image/png", content=b"png-bytes"):
        attachment_id = self._next_attachment
        self._next_attachment += 1
        self.attachments[attachment_id] = {
            "idAllegato": attachment_id,
            "nomeFile": nome_file,
            "tipoFile": tipo,
            "dimensione": len(content),
            "idIssue": issue_id,
            "dataCaricamento": self._now(),
            "content": content,
        }
        return self.attachments[attachment_id]

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == "/api" + path
        ]

    # -- transport ----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        # upload batches call in from worker threads
        with self._lock:
            return self._handle(request)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api"):]
        override = self.overrides.get((request.method, path))
        if override is not None:
            return override

        if path in ("/utenza/login", "/utenza/recupera-password"):
            return self._public(request, path)
        if not request.headers.get("authorization", "").startswith("Bearer token-"):
            return _json(401, {"message": "Token mancante o non valido"})

        routes = [
            ("GET", r"/issue/filtra", self._filtra),
            ("GET", r"/issue/visualizza-lista", self._lista),
            ("GET", r"/issue/visualizza/(\d+)", self._visualizza),
            ("GET", r"/issue/cerca", self._cerca),
            ("GET", r"/issue/statistiche", self._statistiche),
            ("POST", r"/issue/crea", self._crea),
            ("PUT", r"/issue/modifica/(\d+)", self._modifica),
            ("DELETE", r"/issue/elimina/(\d+)", self._elimina),
            ("DELETE", r"/issue/archivia/(\d+)", self._archivia),
            ("PUT", r"/issue/disarchivia/(\d+)", self._disarchivia),
            ("POST", r"/allegato/upload", self._upload),
            ("GET", r"/allegato/issue/(\d+)/count", self._count),
            ("GET", r"/allegato/issue/(\d+)/dimensione-totale", self._dimensione),
            ("GET", r"/allegato/issue/(\d+)", self._allegati),
            ("GET", r"/allegato/download/(\d+)", self._download),
            ("DELETE", r"/allegato/(\d+)", self._elimina_allegato),
            ("PUT", r"/utenza/modifica", self._modifica_password),
            ("GET", r"/utenza/lista", self._utenti),
            ("POST", r"/utenza/crea", self._crea_utente),
            ("PUT", r"/utenza/(\d+)", self._ruolo),
            ("PATCH", r"/utenza/(\d+)/stato", self._stato),
        ]
        for method, pattern, handler in routes:
            match = re.fullmatch(pattern, path)
            if match and request.method == method:
                return handler(request, *(int(g) for g in match.groups()))
        return _json(404, {"message": f"Endpoint non trovato: {path}"})

    # -- utenza -------------------------------------------------------------

    def _public(self, request, path):
        body = json.loads(request.content)
        email = body.get("email")
        user = next((u for u in self.users.values() if u["email"] == email), None)
        if path == "/utenza/recupera-password":
            if user is None:
                return _json(404)
            return _json(200, {"message": "Nuova password inviata via email"})
        if user is None or self.passwords.get(email) != body.get("password"):
            return _json(401)
        if not user["stato"]:
            return _json(403, {"message": "Utenza disattivata"})
        return _json(200, {"token": f"token-{user['idUtente']}", "utente": user})

    def _modifica_password(self, request):
        return _json(200, {"message": "Password aggiornata"})

    def _utenti(self, request):
        return _json(200, list(self.users.values()))

    def _crea_utente(self, request):
        body = json.loads(request.content)
        user_id = max(self.users) + 1
        record = {
            "idUtente": user_id,
            "nome": body["nome"],
            "cognome": body["cognome"],
            "email": body["email"],
            "ruolo": body["ruolo"],
            "stato": True,
        }
        self.users[user_id] = record
        return _json(201, {"message": "Utenza creata", "utenza": record})

    def _ruolo(self, request, user_id):
        self.users[user_id]["ruolo"] = json.loads(request.content)["ruolo"]
        return _json(200, self.users[user_id])

    def _stato(self, request, user_id):
        self.users[user_id]["stato"] = json.loads(request.content)["stato"]
        return _json(200, self.users[user_id])

    # -- issue --------------------------------------------------------------

    def _issue_or_404(self, issue_id):
        if issue_id not in self.issues:
            return None, _json(404, {"message": "Issue non trovata"})
        return self.issues[issue_id], None

    def _filtra(self, request):
        # archiviata/titolo/ordinamento are ignored, like the real backend
        params = request.url.params
        result = []
        for issue in self.issues.values():
            if params.get("stato") and issue["stato"] != params["stato"]:
                continue
            if params.get("priorita") and issue["priorita"] != params["priorita"]:
                continue
            if params.get("tipo") and issue["tipo"] != params["tipo"]:
                continue
            result.append(issue)
        return _json(200, result)

    def _lista(self, request):
        archived = request.url.params.get("archiviata")
        result = list(self.issues.values())
        if archived is not None:
            result = [i for i in result if i["archiviata"] == (archived == "true")]
        return _json(200, result)

    def _visualizza(self, request, issue_id):
        issue, error = self._issue_or_404(issue_id)
        return error or _json(200, issue)

    def _cerca(self, request):
        term = request.url.params.get("titolo", "").lower()
        return _json(200, [i for i in self.issues.values() if term in i["titolo"].lower()])

    def _statistiche(self, request):
        issues = list(self.issues.values())
        done = sum(1 for i in issues if i["stato"] == "Done")
        return _json(200, {
            "totali": len(issues),
            "attive": sum(1 for i in issues if not i["archiviata"]),
            "archiviate": sum(1 for i in issues if i["archiviata"]),
            "todo": sum(1 for i in issues if i["stato"] == "Todo"),
            "inProgress": sum(1 for i in issues if i["stato"] == "inProgress"),
            "done": done,
            "risolte": done,
            "nonRisolte": len(issues) - done,
        })

    def _crea(self, request):
        body = json.loads(request.content)
        record = self.add_issue(
            body["titolo"],
            stato=body["stato"],
            tipo=body["tipo"],
            priorita=body["priorita"],
            creatore=body["idCreatore"],
        )
        record["descrizione"] = body["descrizione"]
        return _json(201, record)

    def _modifica(self, request, issue_id):
        issue, error = self._issue_or_404(issue_id)
        if error:
            return error
        body = json.loads(request.content)
        for key in ("titolo", "descrizione", "stato", "priorita"):
            if key in body:
                issue[key] = body[key]
        issue["dataUltimaModifica"] = self._now()
        return _json(200, {"message": "Issue modificata"})

    def _elimina(self, request, issue_id):
        issue, error = self._issue_or_404(issue_id)
        if error:
            return error
        del self.issues[issue_id]
        return _json(204)

    def _archivia(self, request, issue_id):
        issue, error = self._issue_or_404(issue_id)
        if error:
            return error
        if issue["stato"] != "Done":
            return _json(400, {"message": "La issue deve essere in stato Done"})
        archiver = int(request.url.params["idArchiviatore"])
        issue.update(
            archiviata=True,
            dataArchiviazione=self._now(),
            archiviatore=self.users[archiver],
        )
        return _json(200, {"message": "Issue archiviata"})

    def _disarchivia(self, request, issue_id):
        issue, error = self._issue_or_404(issue_id)
        if error:
            return error
        issue.update(archiviata=False, dataArchiviazione=None, archiviatore=None)
        return _json(200, {"message": "Issue ripristinata"})

    # -- allegato -----------------------------------------------------------

    def _public_attachment(self, record):
        return {k: v for k, v in record.items() if k != "content"}

    def _upload(self, request):
        parts = _parse_multipart(request)
        file_name, content_type, payload = parts["file"]
        if file_name in self.reject_uploads:
            return _json(500, {"message": "Errore durante il salvataggio"})
        if file_name in self.garbled_uploads:
            return httpx.Response(200, text=self.garbled_uploads[file_name])
        issue_id = int(parts["idIssue"][2].decode())
        record = self.add_attachment(issue_id, file_name, content_type, payload)
        return _json(201, self._public_attachment(record))

    def _for_issue(self, issue_id):
        return [a for a in self.attachments.values() if a["idIssue"] == issue_id]

    def _allegati(self, request, issue_id):
        return _json(200, [self._public_attachment(a) for a in self._for_issue(issue_id)])

    def _count(self, request, issue_id):
        return _json(200, {"numeroAllegati": len(self._for_issue(issue_id))})

    def _dimensione(self, request, issue_id):
        total = sum(a["dimensione"] for a in self._for_issue(issue_id))
        return _json(200, {"dimensioneTotaleBytes": total})

    def _download(self, request, attachment_id):
        record = self.attachments.get(attachment_id)
        if record is None:
            return _json(404, {"message": "Allegato non trovato"})
        return httpx.Response(200, content=record["content"])

    def _elimina_allegato(self, request, attachment_id):
        if self.attachments.pop(attachment_id, None) is None:
            return _json(404, {"message": "Allegato non trovato"})
        return _json(200, {"message": "Allegato eliminato"})


def query(request: httpx.Request) -> dict:
    """Single-valued query params of a recorded request."""
    return {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(tmp_path):
    return Session(str(tmp_path / "session.json"))


@pytest.fixture
def client(backend, session):
    api = ApiClient(session, base_url=BASE_URL, transport=httpx.MockTransport(backend.handler))
    yield api
    api.close()


@pytest.fixture
def admin_session(session, backend):
    session.store("token-1", User.from_api(backend.users[1]))
    return session


@pytest.fixture
def user_session(session, backend):
    session.store("token-2", User.from_api(backend.users[2]))
    return session

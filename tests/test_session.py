import json

from bugboard.domain.models import Role, User
from bugboard.session import Session

from conftest import ADMIN, MARIO


def _write(path, data):
    with open(path, "w", encoding="utf-8") as f:
        f.write(data if isinstance(data, str) else json.dumps(data))


def test_missing_file_is_an_empty_session(tmp_path):
    session = Session.load(str(tmp_path / "nope.json"))

    assert session.get_token() is None
    assert session.get_user() is None
    assert not session.is_authenticated()
    assert session.sidebar_open is True


def test_store_persists_token_and_user(tmp_path):
    path = str(tmp_path / "session.json")
    Session(path).store("token-1", User.from_api(ADMIN))

    reloaded = Session.load(path)
    assert reloaded.get_token() == "token-1"
    assert reloaded.get_user().email == "admin@bugboard.it"
    assert reloaded.is_authenticated()
    assert reloaded.is_admin()
    assert not reloaded.is_utente()


def test_store_creates_missing_directories(tmp_path):
    path = str(tmp_path / "nested" / "dir" / "session.json")
    Session(path).store("token-2", User.from_api(MARIO))

    assert Session.load(path).is_utente()


def test_corrupt_file_is_treated_as_empty(tmp_path):
    path = str(tmp_path / "session.json")
    _write(path, "{not json")

    session = Session.load(path)
    assert session.get_token() is None
    assert session.get_user() is None


def test_malformed_user_is_absent_but_token_survives(tmp_path):
    path = str(tmp_path / "session.json")
    _write(path, {"authToken": "token-9", "user": {"nome": "senza email"}})

    session = Session.load(path)
    assert session.get_token() == "token-9"
    assert session.get_user() is None
    assert not session.is_authenticated()
    assert not session.is_admin()


def test_role_spellings_are_normalised_on_load(tmp_path):
    path = str(tmp_path / "session.json")
    _write(path, {"authToken": "t", "user": {**MARIO, "ruolo": "admin"}})

    assert Session.load(path).get_user().role is Role.ADMIN


def test_clear_keeps_sidebar_preference(tmp_path):
    path = str(tmp_path / "session.json")
    session = Session(path)
    session.store("token-2", User.from_api(MARIO))
    session.set_sidebar_open(False)

    session.clear()

    reloaded = Session.load(path)
    assert reloaded.get_token() is None
    assert reloaded.get_user() is None
    assert reloaded.sidebar_open is False

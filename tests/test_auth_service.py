from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

# Make the prekclip package importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prekclip.core import config as core_config  # noqa: E402
from prekclip.core.security import is_legacy  # noqa: E402
from prekclip.repositories.json_storage import JsonDocumentStorage  # noqa: E402
from prekclip.repositories.store import StateStore  # noqa: E402
from prekclip.services.auth_service import AuthService  # noqa: E402
from prekclip.services.errors import BadRequestError, NotFoundError, UnauthorizedError  # noqa: E402


@pytest.fixture()
def data_file(tmp_path, monkeypatch):
    path = tmp_path / "database.json"
    monkeypatch.setenv("DATA_FILE", str(path))
    monkeypatch.setenv("BOOTSTRAP_USERNAME", "prekclip")
    monkeypatch.setenv("BOOTSTRAP_PASSWORD", "bootstrap-secret")
    core_config.get_settings.cache_clear()
    yield path
    core_config.get_settings.cache_clear()


@pytest.fixture()
def auth(data_file):
    store = StateStore(JsonDocumentStorage(data_file))
    return AuthService(store, core_config.get_settings())


def test_register_stores_hash_and_defaults(auth, data_file):
    result = auth.register("  alice ", "pw1")

    assert result.user.username == "alice"
    assert result.user.is_verified is False
    assert result.user.followers == [] and result.user.following == []
    assert result.session_token

    saved = json.loads(data_file.read_text(encoding="utf-8"))
    assert saved["users"][0]["password"].startswith("argon2$")
    assert saved["users"][0]["password"] != "pw1"


def test_register_requires_username_and_password(auth):
    with pytest.raises(BadRequestError):
        auth.register("   ", "pw")
    with pytest.raises(BadRequestError):
        auth.register("alice", "")


def test_login_is_case_sensitive(auth):
    auth.register("alice", "pw1")

    assert auth.login("alice", "pw1").user.username == "alice"
    with pytest.raises(UnauthorizedError):
        auth.login("Alice", "pw1")
    with pytest.raises(UnauthorizedError):
        auth.login("alice", "PW1")


def test_legacy_plain_text_password_is_upgraded_on_login(data_file, auth):
    legacy = {
        "users": [
            {"id": "user_1700000000000", "username": "old", "password": "secret", "avatar": None, "followers": [], "following": []}
        ],
        "posts": [],
    }
    data_file.write_text(json.dumps(legacy), encoding="utf-8")

    result = auth.login("old", "secret")
    assert result.user.id == "user_1700000000000"

    saved = json.loads(data_file.read_text(encoding="utf-8"))
    assert not is_legacy(saved["users"][0]["password"])
    assert auth.login("old", "secret").user.id == "user_1700000000000"


def test_sessions_resolve_until_logout(auth):
    result = auth.register("alice", "pw1")

    assert auth.resolve_session(result.session_token) == result.user.id
    auth.logout(result.session_token)
    with pytest.raises(UnauthorizedError):
        auth.resolve_session(result.session_token)
    with pytest.raises(UnauthorizedError):
        auth.resolve_session(None)


def test_expired_session_is_rejected_and_removed(auth):
    result = auth.register("alice", "pw1")
    with auth.store.transaction() as db:
        db.sessions[result.session_token].expires_at = 0

    with pytest.raises(UnauthorizedError):
        auth.resolve_session(result.session_token)
    with auth.store.snapshot() as db:
        assert result.session_token not in db.sessions


def test_bootstrap_account_is_created_once_and_verified(auth):
    created = auth.ensure_bootstrap_account()
    assert created is not None
    assert created.is_verified is True
    assert auth.ensure_bootstrap_account() is None

    with auth.store.snapshot() as db:
        assert len([u for u in db.users if u.username == "prekclip"]) == 1
    assert auth.login("prekclip", "bootstrap-secret").user.is_verified is True


def test_set_verified(auth):
    auth.register("alice", "pw1")

    assert auth.set_verified("alice").is_verified is True
    assert auth.set_verified("alice", False).is_verified is False
    with pytest.raises(NotFoundError):
        auth.set_verified("nobody")


def test_bootstrap_without_password_logs_a_generated_one(data_file, monkeypatch, caplog):
    monkeypatch.delenv("BOOTSTRAP_PASSWORD", raising=False)
    core_config.get_settings.cache_clear()
    service = AuthService(StateStore(JsonDocumentStorage(data_file)), core_config.get_settings())

    with caplog.at_level(logging.WARNING, logger="prekclip.services.auth_service"):
        created = service.ensure_bootstrap_account()

    assert created is not None and created.is_verified
    warnings = [r for r in caplog.records if "generated password" in r.getMessage()]
    assert len(warnings) == 1
    password = warnings[0].args[1]
    assert password and password not in created.password
    assert service.login("prekclip", password).user.id == created.id

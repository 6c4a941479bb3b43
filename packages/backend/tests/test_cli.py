"""CLI tests — guards, session handling, and commands against a mock API.

Learn: The CLI talks HTTP, so commands that reach the server run against
httpx.MockTransport with canned responses. Each test gets its own session
file through PMHOME_SESSION_FILE.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from pmhome.cli import main as cli_module
from pmhome.cli.main import main
from pmhome.client import ApiClient, SessionStore

ADMIN_PROFILE = {
    "userId": "user-admin",
    "email": "admin@demo.com",
    "role": "ADMIN",
    "name": "Admin Demo",
    "department": "DEV",
}


@pytest.fixture()
def session_file(tmp_path, monkeypatch):
    path = tmp_path / "session.json"
    monkeypatch.setenv("PMHOME_SESSION_FILE", str(path))
    return path


@pytest.fixture()
def runner():
    return CliRunner()


class RecordedApi(list):
    """Requests seen by the mock transport, plus canned responses by route."""

    def __init__(self):
        super().__init__()
        self.routes: dict[tuple[str, str], httpx.Response] = {}


@pytest.fixture()
def api(monkeypatch):
    seen = RecordedApi()

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        response = seen.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"detail": "Not found"})
        return response

    def fake_client(store, location):
        client = ApiClient("http://api.test", store, transport=httpx.MockTransport(handler))
        client.location = location
        return client

    monkeypatch.setattr(cli_module, "_client", fake_client)
    return seen


def _admin_session(path):
    store = SessionStore(path)
    store.set_token("admin-token")
    store.set_user(ADMIN_PROFILE)
    return store


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "pmhome" in result.output


def test_users_requires_login(runner, session_file):
    result = runner.invoke(main, ["users", "list"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


def test_users_rejects_employee(runner, session_file):
    store = SessionStore(session_file)
    store.set_token("employee-token")
    store.set_user({**ADMIN_PROFILE, "role": "EMPLOYEE"})
    result = runner.invoke(main, ["users", "list"])
    assert result.exit_code == 1
    assert "/employee" in result.output


def test_whoami_requires_login(runner, session_file):
    result = runner.invoke(main, ["whoami"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


def test_logout_clears_session(runner, session_file):
    _admin_session(session_file)
    result = runner.invoke(main, ["logout"])
    assert result.exit_code == 0
    assert not session_file.exists()


def test_login_stores_session(runner, session_file, api):
    api.routes[("POST", "/auth/login")] = httpx.Response(
        200, json={"token": "fresh-token", "user": ADMIN_PROFILE}
    )
    result = runner.invoke(main, ["login", "Admin@Demo.com", "--password", "admin123"])
    assert result.exit_code == 0, result.output
    assert "Logged in as Admin Demo (ADMIN)" in result.output

    store = SessionStore(session_file)
    assert store.get_token() == "fresh-token"
    assert store.get_user()["role"] == "ADMIN"
    assert json.loads(api[0].content) == {"email": "admin@demo.com", "password": "admin123"}


def test_login_failure(runner, session_file, api):
    api.routes[("POST", "/auth/login")] = httpx.Response(
        401, json={"detail": "Invalid credentials"}
    )
    result = runner.invoke(main, ["login", "admin@demo.com", "--password", "nope"])
    assert result.exit_code == 1
    assert "Invalid credentials" in result.output
    assert not SessionStore(session_file).is_logged_in()


def test_whoami_expired_session(runner, session_file, api):
    _admin_session(session_file)
    api.routes[("GET", "/auth/me")] = httpx.Response(401, json={"detail": "Unauthorized"})
    result = runner.invoke(main, ["whoami"])
    assert result.exit_code == 1
    assert "Session expired" in result.output
    assert SessionStore(session_file).get_token() is None
    assert api[0].headers["Authorization"] == "Bearer admin-token"


def test_users_create_prints_password(runner, session_file, api):
    _admin_session(session_file)
    api.routes[("POST", "/users")] = httpx.Response(
        201,
        json={
            "user": {"id": "u-1", "email": "jane@demo.com"},
            "generatedPassword": "Xy7!abcdEFGH",
        },
    )
    result = runner.invoke(
        main, ["users", "create", "Jane Doe", "jane@demo.com", "--department", "TESTER"]
    )
    assert result.exit_code == 0, result.output
    assert "Xy7!abcdEFGH" in result.output
    assert json.loads(api[0].content) == {
        "name": "Jane Doe",
        "email": "jane@demo.com",
        "department": "TESTER",
    }


def test_users_list_sends_filters(runner, session_file, api):
    _admin_session(session_file)
    api.routes[("GET", "/users")] = httpx.Response(200, json=[])
    result = runner.invoke(main, ["users", "list", "--inactive", "--role", "EMPLOYEE"])
    assert result.exit_code == 0, result.output
    assert "No users found." in result.output
    assert api[0].url.params["isActive"] == "false"
    assert api[0].url.params["role"] == "EMPLOYEE"


def test_users_update_needs_a_field(runner, session_file):
    _admin_session(session_file)
    result = runner.invoke(main, ["users", "update", "u-1"])
    assert result.exit_code == 2
    assert "Nothing to update" in result.output


def test_users_delete_not_found(runner, session_file, api):
    _admin_session(session_file)
    api.routes[("DELETE", "/users/u-1")] = httpx.Response(
        404, json={"detail": "User not found"}
    )
    result = runner.invoke(main, ["users", "delete", "u-1", "--yes"])
    assert result.exit_code == 1
    assert "User not found" in result.output


def test_reset_password_failure(runner, session_file, api):
    api.routes[("POST", "/auth/reset-password")] = httpx.Response(200, json={"ok": False})
    result = runner.invoke(
        main, ["reset-password", "bad-token", "--new-password", "long-enough-pass"]
    )
    assert result.exit_code == 1
    assert "Could not reset" in result.output


@pytest.mark.parametrize("args", [["users", "--help"], ["users", "list", "--help"]])
def test_users_help_without_session(runner, session_file, args):
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert "Not logged in" not in result.output
    assert "Usage:" in result.output

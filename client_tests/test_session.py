"""Unit tests for SessionManager."""
import json
import time

import httpx
import pytest
from mlserver_client import session as session_module
from mlserver_client.comm_dataclasses import SessionState
from mlserver_client.credentials import AccessTokenCredentials, UsernamePasswordCredentials
from mlserver_client.exceptions import AuthenticationError, SessionInvalidError
from mlserver_client.session import SessionManager
from pytest_httpx import HTTPXMock

ENDPOINT = "https://mlserver.test"


# FIXTURES
@pytest.fixture
def manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def credentials() -> UsernamePasswordCredentials:
    return UsernamePasswordCredentials("admin", "secret")


@pytest.fixture
def default_manager(monkeypatch) -> None:
    """Start every test with no process-wide manager and no exit hook."""
    monkeypatch.setattr(session_module, "_default_manager", None)
    monkeypatch.setattr(session_module.atexit, "register", lambda func: func)


# LOGIN TESTS
def test_login_success(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )

    # Test
    session = manager.login(ENDPOINT + "/", credentials)
    assert session.state is SessionState.AUTHENTICATED
    assert session.endpoint == ENDPOINT
    assert session.headers == {"Authorization": "Bearer test_token"}
    assert manager.require_session() is session
    req_json = json.loads(httpx_mock.get_request().content)
    assert req_json == {"username": "admin", "password": "secret"}


def test_login_rejected(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/login", status_code=401)

    # Test
    with pytest.raises(AuthenticationError):
        manager.login(ENDPOINT, credentials)
    assert manager.session is None


def test_login_unreachable(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_exception(httpx.ConnectError("connection refused"))

    # Test
    with pytest.raises(AuthenticationError):
        manager.login(ENDPOINT, credentials)
    with pytest.raises(SessionInvalidError):
        manager.require_session()


def test_login_malformed_response(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/login", json={"token": "x"})

    # Test
    with pytest.raises(AuthenticationError):
        manager.login(ENDPOINT, credentials)


def test_login_access_token_no_request(manager: SessionManager, httpx_mock: HTTPXMock):
    # Test
    session = manager.login(ENDPOINT, AccessTokenCredentials("federated_token"))
    assert session.is_valid
    assert session.access_token == "federated_token"
    assert httpx_mock.get_requests() == []


def test_login_empty_access_token(manager: SessionManager):
    # Test
    with pytest.raises(AuthenticationError):
        manager.login(ENDPOINT, AccessTokenCredentials(""))


def test_login_with_persistence(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/sessions", status_code=201, json={"sessionId": "abc"}
    )

    # Test
    session = manager.login(ENDPOINT, credentials, session_persistence=True)
    assert session.session_persistence
    assert session.remote_session_id == "abc"


def test_login_persistence_rejected(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/sessions", status_code=500)
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/logout")

    # Test
    with pytest.raises(AuthenticationError):
        manager.login(ENDPOINT, credentials, session_persistence=True)
    assert manager.session is None
    paths = [request.url.path for request in httpx_mock.get_requests()]
    assert paths == ["/login", "/sessions", "/logout"]
    assert httpx_mock.get_requests()[-1].headers["Authorization"] == "Bearer test_token"


def test_login_replaces_previous_session(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "first"}
    )
    first = manager.login(ENDPOINT, credentials)

    # Test
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/logout")
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "second"}
    )
    second = manager.login(ENDPOINT, credentials)
    assert first.state is SessionState.UNAUTHENTICATED
    assert second.access_token == "second"
    assert manager.require_session() is second


# LOGOUT TESTS
def test_logout_success(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )
    session = manager.login(ENDPOINT, credentials)

    # Test
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/logout")
    assert manager.logout()
    assert session.state is SessionState.UNAUTHENTICATED
    assert manager.session is None
    assert not manager.logout()


def test_logout_closes_remote_session(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/sessions", status_code=201, json={"sessionId": "abc"}
    )
    manager.login(ENDPOINT, credentials, session_persistence=True)

    # Test
    httpx_mock.add_response(
        method="DELETE", url=f"{ENDPOINT}/sessions/abc", status_code=204
    )
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/logout")
    assert manager.logout()


def test_logout_no_session(manager: SessionManager):
    # Test
    assert not manager.logout()


def test_logout_unreachable(
    manager: SessionManager, credentials: UsernamePasswordCredentials, httpx_mock: HTTPXMock
):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )
    session = manager.login(ENDPOINT, credentials)

    # Test
    httpx_mock.add_exception(httpx.ConnectError("connection reset"))
    assert not manager.logout()
    assert session.state is SessionState.UNAUTHENTICATED
    with pytest.raises(SessionInvalidError):
        manager.require_session()


# EXPIRY TESTS
def test_expired_session_is_invalid(manager: SessionManager):
    # Setup
    credentials = AccessTokenCredentials("test_token", expires_on=time.time() - 1)

    # Test
    session = manager.login(ENDPOINT, credentials)
    assert session.expired
    assert not session.is_valid
    with pytest.raises(SessionInvalidError):
        manager.require_session()


def test_require_session_unauthenticated(manager: SessionManager):
    # Test
    with pytest.raises(SessionInvalidError):
        manager.require_session()


# PROCESS-WIDE SESSION TESTS
def test_remote_login_and_logout(default_manager, httpx_mock: HTTPXMock):
    # Setup
    httpx_mock.add_response(
        method="POST", url=f"{ENDPOINT}/login", json={"access_token": "test_token"}
    )
    assert session_module.current_session() is None

    # Test
    session = session_module.remote_login(ENDPOINT, username="admin", password="secret")
    assert session_module.current_session() is session
    httpx_mock.add_response(method="POST", url=f"{ENDPOINT}/logout")
    assert session_module.remote_logout()
    assert session_module.current_session() is None


def test_remote_login_requires_credentials(default_manager):
    # Test
    with pytest.raises(ValueError):
        session_module.remote_login(ENDPOINT, username="admin")


def test_remote_logout_without_login(default_manager):
    # Test
    assert not session_module.remote_logout()

"""SessionManager class used to log in to and out of the serving endpoint."""
import atexit
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from mlserver_client.comm_dataclasses import Session, SessionState
from mlserver_client.credentials import Credentials, UsernamePasswordCredentials
from mlserver_client.exceptions import AuthenticationError, SessionInvalidError
from mlserver_client.schemas import RemoteSessionResponse


class SessionManager:
    """Holds at most one authenticated session against a serving endpoint."""

    def __init__(
        self, http_client: Optional[httpx.Client] = None, timeout: Optional[float] = None
    ) -> None:
        """Create or store the HTTP client.

        Args:
            http_client (Optional[httpx.Client]): client to send requests with; one is
                created (and owned) when omitted
            timeout (Optional[float]): request timeout in seconds for a created client,
                the httpx default applies when omitted
        """
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client() if timeout is None else httpx.Client(timeout=timeout)
        self.client = http_client
        self._session = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def require_session(self) -> Session:
        """Return the current session, failing if it cannot be used for requests."""
        if self._session is None:
            raise SessionInvalidError("not logged in")
        self._session.require_valid()
        return self._session

    def login(
        self, endpoint: str, credentials: Credentials, session_persistence: bool = False
    ) -> Session:
        """Authenticate against a serving endpoint.

        Any previous session held by this manager is logged out first.

        Args:
            endpoint (str): base URL of the serving endpoint
            credentials (Credentials): credential scheme used to obtain a token
            session_persistence (bool): create a remote session that keeps state
                between invocations

        Returns:
            Session: the new authenticated session

        Raises:
            AuthenticationError: credentials were rejected or the endpoint is unreachable
        """
        if self._session is not None:
            self.logout()

        endpoint = endpoint.rstrip("/")
        logging.info(f"Logging in to {endpoint}...")
        login_response = credentials.authenticate(self.client, endpoint)
        session = Session(
            endpoint=endpoint,
            access_token=login_response.access_token,
            token_type=login_response.token_type,
            expires_on=login_response.expires_on,
            session_persistence=session_persistence,
        )
        if session_persistence:
            try:
                session.remote_session_id = self._create_remote_session(session)
            except AuthenticationError:
                self._revoke_token(session)
                raise

        self._session = session
        logging.info(f"Logged in to {endpoint}.")
        return session

    def logout(self) -> bool:
        """Terminate the current session.

        The remote session (if one was created) is closed and the endpoint is
        told to revoke the token. The local session always ends up
        unauthenticated, even when the endpoint cannot be reached.

        Returns:
            bool: True if the endpoint acknowledged the logout
        """
        session = self._session
        if session is None or session.state is SessionState.UNAUTHENTICATED:
            # No active session
            return False

        acknowledged = True
        try:
            if session.remote_session_id:
                response = self.client.delete(
                    url=f"{session.endpoint}/sessions/{session.remote_session_id}",
                    headers=session.headers,
                )
                acknowledged = response.is_success
            response = self.client.post(
                url=f"{session.endpoint}/logout", headers=session.headers
            )
            acknowledged = acknowledged and response.is_success
        except httpx.HTTPError as e:
            logging.warning(f"Logout from {session.endpoint} failed: {e}")
            acknowledged = False
        finally:
            session.state = SessionState.UNAUTHENTICATED
            self._session = None

        logging.info(f"Logged out of {session.endpoint}.")
        return acknowledged

    def close(self) -> None:
        """Log out and close the HTTP client if this manager created it."""
        self.logout()
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "SessionManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _revoke_token(self, session: Session) -> None:
        """Revoke the token of a session that never became current."""
        try:
            self.client.post(url=f"{session.endpoint}/logout", headers=session.headers)
        except httpx.HTTPError as e:
            logging.warning(f"Revoking token at {session.endpoint} failed: {e}")
        session.state = SessionState.UNAUTHENTICATED

    def _create_remote_session(self, session: Session) -> str:
        """Create a persistent remote session and return its ID."""
        try:
            response = self.client.post(
                url=f"{session.endpoint}/sessions", json={}, headers=session.headers
            )
        except httpx.TransportError as e:
            raise AuthenticationError(
                f"unable to create remote session on {session.endpoint}: {e}"
            ) from e
        if not response.is_success:
            raise AuthenticationError(
                f"remote session rejected by {session.endpoint} "
                f"(HTTP {response.status_code})"
            )
        try:
            return RemoteSessionResponse.model_validate(response.json()).session_id
        except (ValueError, ValidationError) as e:
            raise AuthenticationError(
                f"malformed session response from {session.endpoint}"
            ) from e


# Process-wide session used by the module-level helpers
_default_manager = None


def default_manager(timeout: Optional[float] = None) -> SessionManager:
    """Return the process-wide SessionManager, creating it on first use.

    ``timeout`` only applies when the manager is created.
    """
    global _default_manager
    if _default_manager is None:
        _default_manager = SessionManager(timeout=timeout)
        atexit.register(remote_logout)
    return _default_manager


def remote_login(
    endpoint: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    session_persistence: bool = False,
    credentials: Optional[Credentials] = None,
) -> Session:
    """Log the process in to a serving endpoint.

    Either ``credentials`` or both ``username`` and ``password`` must be given.
    """
    if credentials is None:
        if username is None or password is None:
            raise ValueError("either credentials or username and password are required")
        credentials = UsernamePasswordCredentials(username, password)
    return default_manager().login(
        endpoint, credentials, session_persistence=session_persistence
    )


def remote_logout() -> bool:
    """Log the process out of its serving endpoint."""
    if _default_manager is None:
        return False
    return _default_manager.logout()


def current_session() -> Optional[Session]:
    """Return the process-wide session, if any."""
    if _default_manager is None:
        return None
    return _default_manager.session

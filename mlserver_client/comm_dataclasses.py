"""Dataclasses describing sessions and services on the serving endpoint."""
import dataclasses
import enum
import time
from typing import Dict, Optional
from urllib.parse import quote

from mlserver_client.exceptions import SessionInvalidError


class SessionState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclasses.dataclass(frozen=True)
class ServiceDescriptor:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}/{self.version}"

    @property
    def path(self) -> str:
        """URL path segments for the service, each quoted."""
        return f"{quote(self.name, safe='')}/{quote(self.version, safe='')}"


@dataclasses.dataclass
class Session:
    """Authenticated context for one serving endpoint.

    Only the SessionManager changes ``state``. Everything else is fixed at
    login, so a session may be shared by concurrent invocations.
    """

    endpoint: str
    access_token: str = dataclasses.field(repr=False)
    token_type: str = "Bearer"
    expires_on: Optional[float] = None
    remote_session_id: Optional[str] = None
    session_persistence: bool = False
    state: SessionState = SessionState.AUTHENTICATED

    @property
    def expired(self) -> bool:
        return self.expires_on is not None and time.time() >= self.expires_on

    @property
    def is_valid(self) -> bool:
        return self.state is SessionState.AUTHENTICATED and not self.expired

    def require_valid(self) -> None:
        """Raise SessionInvalidError unless the session can be used for requests."""
        if self.state is not SessionState.AUTHENTICATED:
            raise SessionInvalidError(f"not logged in to {self.endpoint}")
        if self.expired:
            raise SessionInvalidError(
                f"session for {self.endpoint} has expired, log in again"
            )

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"{self.token_type} {self.access_token}"}

"""Client for calling services deployed on a remote model-serving endpoint."""
from mlserver_client.comm_dataclasses import ServiceDescriptor, Session, SessionState
from mlserver_client.credentials import (
    AccessTokenCredentials,
    Credentials,
    UsernamePasswordCredentials,
)
from mlserver_client.exceptions import (
    ArtifactDecodeError,
    AuthenticationError,
    InvocationArgumentError,
    MLServerError,
    RemoteExecutionError,
    ServiceNotFoundError,
    SessionInvalidError,
    TransportError,
    UnknownArtifactError,
    UnknownOutputError,
)
from mlserver_client.response import InvocationResult
from mlserver_client.service_locator import ServiceLocator, get_service, list_services
from mlserver_client.service_proxy import ServiceProxy
from mlserver_client.session import (
    SessionManager,
    current_session,
    remote_login,
    remote_logout,
)

__all__ = [
    "AccessTokenCredentials",
    "ArtifactDecodeError",
    "AuthenticationError",
    "Credentials",
    "InvocationArgumentError",
    "InvocationResult",
    "MLServerError",
    "RemoteExecutionError",
    "ServiceDescriptor",
    "ServiceLocator",
    "ServiceNotFoundError",
    "ServiceProxy",
    "Session",
    "SessionInvalidError",
    "SessionManager",
    "SessionState",
    "TransportError",
    "UnknownArtifactError",
    "UnknownOutputError",
    "UsernamePasswordCredentials",
    "current_session",
    "get_service",
    "list_services",
    "remote_login",
    "remote_logout",
]

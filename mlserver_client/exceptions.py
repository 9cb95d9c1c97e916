"""Exceptions raised by the model-serving client."""
from typing import Optional


class MLServerError(Exception):
    """Base class for all errors raised by mlserver_client."""


class AuthenticationError(MLServerError):
    """Credentials were rejected or the endpoint could not be reached at login."""


class SessionInvalidError(MLServerError):
    """An operation was attempted without a valid authenticated session."""


class ServiceNotFoundError(MLServerError):
    """No deployed service matches the requested name and version."""

    def __init__(self, name: str, version: str) -> None:
        super().__init__(f"no service deployed as '{name}' version '{version}'")
        self.name = name
        self.version = version


class InvocationArgumentError(MLServerError, TypeError):
    """Arguments do not match the service's declared signature."""


class TransportError(MLServerError):
    """Network-level failure while talking to the serving endpoint."""


class RemoteExecutionError(MLServerError):
    """The remote service failed while executing an invocation."""

    def __init__(self, message: str, console_output: Optional[str] = None) -> None:
        super().__init__(message)
        self.console_output = console_output


class UnknownOutputError(MLServerError, KeyError):
    """The requested output name is not part of the invocation result."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class UnknownArtifactError(MLServerError, KeyError):
    """The requested artifact filename is not part of the invocation result."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class ArtifactDecodeError(MLServerError, ValueError):
    """An artifact's stored content is not valid base64 text."""

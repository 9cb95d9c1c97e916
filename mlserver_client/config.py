"""Configuration read from the environment."""
import dataclasses
import logging
import os
from typing import Mapping, Optional

from mlserver_client import session as session_module
from mlserver_client.comm_dataclasses import Session
from mlserver_client.credentials import (
    AccessTokenCredentials,
    Credentials,
    UsernamePasswordCredentials,
)
from mlserver_client.session import SessionManager

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclasses.dataclass(frozen=True)
class Settings:
    host: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = dataclasses.field(default=None, repr=False)
    access_token: Optional[str] = dataclasses.field(default=None, repr=False)
    session_persistence: bool = False
    timeout: Optional[float] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> "Settings":
        timeout = environ.get("MLSERVER_TIMEOUT", None)
        return cls(
            host=environ.get("MLSERVER_HOST", None),
            username=environ.get("MLSERVER_USERNAME", None),
            password=environ.get("MLSERVER_PASSWORD", None),
            access_token=environ.get("MLSERVER_ACCESS_TOKEN", None),
            session_persistence=environ.get("MLSERVER_SESSION", "false").lower()
            in TRUE_VALUES,
            timeout=float(timeout) if timeout else None,
            log_level=environ.get("MLSERVER_LOG_LEVEL", "WARNING").upper(),
        )

    def credentials(self) -> Credentials:
        """Return the configured credential scheme, preferring an access token."""
        if self.access_token:
            return AccessTokenCredentials(self.access_token)
        if self.username and self.password:
            return UsernamePasswordCredentials(self.username, self.password)
        raise ValueError(
            "set MLSERVER_ACCESS_TOKEN or both MLSERVER_USERNAME and MLSERVER_PASSWORD"
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging at the given level, or MLSERVER_LOG_LEVEL."""
    if level is None:
        level = Settings.from_env().log_level
    logging.basicConfig(
        level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


def login_from_env(
    manager: Optional[SessionManager] = None, settings: Optional[Settings] = None
) -> Session:
    """Log in using configuration from the environment.

    Args:
        manager (Optional[SessionManager]): manager to log in with, the
            process-wide one when omitted
        settings (Optional[Settings]): settings to use instead of reading the environment

    Returns:
        Session: the authenticated session
    """
    if settings is None:
        settings = Settings.from_env()
    if not settings.host:
        raise ValueError("MLSERVER_HOST is not set")
    if manager is None:
        manager = session_module.default_manager(timeout=settings.timeout)
    return manager.login(
        settings.host,
        settings.credentials(),
        session_persistence=settings.session_persistence,
    )

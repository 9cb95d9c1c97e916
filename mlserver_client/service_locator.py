"""ServiceLocator class used to discover deployed services by name and version."""
import logging
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from mlserver_client import session as session_module
from mlserver_client.comm_dataclasses import ServiceDescriptor, Session
from mlserver_client.exceptions import (
    RemoteExecutionError,
    ServiceNotFoundError,
    SessionInvalidError,
    TransportError,
)
from mlserver_client.schemas import ServiceMetadata
from mlserver_client.service_proxy import ServiceProxy
from mlserver_client.session import SessionManager

_metadata_list = TypeAdapter(List[ServiceMetadata])


class ServiceLocator:
    """Resolves (name, version) pairs to ServiceProxy objects."""

    def __init__(self, session_manager: SessionManager) -> None:
        self.session_manager = session_manager

    def _session(self, session: Optional[Session]) -> Session:
        if session is None:
            return self.session_manager.require_session()
        session.require_valid()
        return session

    def resolve(
        self, name: str, version: str, session: Optional[Session] = None
    ) -> ServiceProxy:
        """Look up a deployed service and return a proxy for it.

        Args:
            name (str): name the service was deployed under
            version (str): free-form version string, e.g. "v1.0.0" or "1.0"
            session (Optional[Session]): session to use, the manager's current
                session when omitted

        Returns:
            ServiceProxy: callable proxy holding the service's schema

        Raises:
            SessionInvalidError: the session is not authenticated
            ServiceNotFoundError: no service is deployed as (name, version)
            TransportError: the lookup failed at the network level
        """
        session = self._session(session)
        descriptor = ServiceDescriptor(name=name, version=version)

        logging.info(f"Resolving service {descriptor}...")
        candidates = self._get_metadata(session, f"/services/{descriptor.path}")
        if candidates is None:
            raise ServiceNotFoundError(name, version)
        for metadata in candidates:
            if metadata.name == name and metadata.version == version:
                logging.debug(f"Service {descriptor} schema: {metadata}")
                return ServiceProxy(
                    descriptor=descriptor,
                    metadata=metadata,
                    session=session,
                    http_client=self.session_manager.client,
                )
        raise ServiceNotFoundError(name, version)

    def list_services(
        self, name: Optional[str] = None, session: Optional[Session] = None
    ) -> List[ServiceDescriptor]:
        """List deployed services, optionally only the versions of one name."""
        session = self._session(session)
        path = "/services" if name is None else f"/services/{quote(name, safe='')}"
        services = self._get_metadata(session, path) or []
        return [ServiceDescriptor(name=meta.name, version=meta.version) for meta in services]

    def _get_metadata(self, session: Session, path: str) -> Optional[List[ServiceMetadata]]:
        """Fetch a list of service metadata, returning None if the endpoint reports 404."""
        try:
            response = self.session_manager.client.get(
                url=f"{session.endpoint}{path}", headers=session.headers
            )
        except httpx.TransportError as e:
            raise TransportError(f"service lookup at {session.endpoint} failed: {e}") from e

        if response.status_code in (401, 403):
            raise SessionInvalidError(
                f"{session.endpoint} refused the session (HTTP {response.status_code})"
            )
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise RemoteExecutionError(
                f"service lookup at {session.endpoint} returned "
                f"HTTP {response.status_code}: {response.text}"
            )
        try:
            return _metadata_list.validate_python(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteExecutionError(
                f"malformed service metadata from {session.endpoint}: {e}"
            ) from e


def get_service(name: str, version: str) -> ServiceProxy:
    """Resolve a service using the process-wide session."""
    return ServiceLocator(session_module.default_manager()).resolve(name, version)


def list_services(name: Optional[str] = None) -> List[ServiceDescriptor]:
    """List deployed services using the process-wide session."""
    return ServiceLocator(session_module.default_manager()).list_services(name)

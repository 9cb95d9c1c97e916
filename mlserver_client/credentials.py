"""Classes providing credential schemes for logging in to the serving endpoint."""
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import ValidationError

from mlserver_client.exceptions import AuthenticationError
from mlserver_client.schemas import LoginRequest, LoginResponse


class Credentials(ABC):
    """Defines the interface for credential schemes."""

    @abstractmethod
    def authenticate(self, client: httpx.Client, endpoint: str) -> LoginResponse:
        """Exchange the credentials for an access token.

        Args:
            client (httpx.Client): HTTP client to use for any requests
            endpoint (str): base URL of the serving endpoint

        Returns:
            LoginResponse: access token and its metadata

        Raises:
            AuthenticationError: credentials were rejected or the endpoint is unreachable
        """
        raise NotImplementedError()


class UsernamePasswordCredentials(Credentials):
    """Username and password checked by the endpoint's login route."""

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def __repr__(self) -> str:
        return f"UsernamePasswordCredentials(username={self.username!r})"

    def authenticate(self, client: httpx.Client, endpoint: str) -> LoginResponse:
        req_msg = LoginRequest(username=self.username, password=self.password)
        try:
            response = client.post(url=f"{endpoint}/login", json=req_msg.model_dump())
        except httpx.TransportError as e:
            raise AuthenticationError(f"unable to reach {endpoint}: {e}") from e

        if response.status_code != 200:
            raise AuthenticationError(
                f"login to {endpoint} as '{self.username}' rejected "
                f"(HTTP {response.status_code})"
            )
        try:
            return LoginResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthenticationError(f"malformed login response from {endpoint}") from e


class AccessTokenCredentials(Credentials):
    """Bearer token acquired elsewhere, e.g. from a federated identity provider."""

    def __init__(
        self, access_token: str, token_type: str = "Bearer", expires_on: Optional[float] = None
    ) -> None:
        self.access_token = access_token
        self.token_type = token_type
        self.expires_on = expires_on

    def __repr__(self) -> str:
        return f"AccessTokenCredentials(token_type={self.token_type!r})"

    def authenticate(self, client: httpx.Client, endpoint: str) -> LoginResponse:
        if not self.access_token:
            raise AuthenticationError("empty access token")
        return LoginResponse(
            token_type=self.token_type,
            access_token=self.access_token,
            expires_on=self.expires_on,
        )

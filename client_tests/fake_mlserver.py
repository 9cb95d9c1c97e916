"""Fake model-serving endpoint for use in testing."""
import base64
import dataclasses
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import Body, FastAPI, Header, HTTPException, Response

from mlserver_client.schemas import (
    InvocationResponse,
    LoginRequest,
    LoginResponse,
    ServiceMetadata,
)

# Handler receives the decoded request body and returns outputs and files
Handler = Callable[[Dict[str, Any]], Tuple[Dict[str, Any], Dict[str, bytes]]]

# Metadata of the services used by the dashboard, as the endpoint reports it
CAR_SERVICE = {
    "name": "car-service",
    "version": "1.0",
    "operationId": "manualTransmission",
    "description": "Probability of a manual transmission",
    "runtimeType": "R",
    "inputs": [{"name": "hp", "type": "numeric"}, {"name": "wt", "type": "numeric"}],
    "outputs": [{"name": "answer", "type": "data.frame"}],
    "outputFileNames": ["image.png"],
    "snapshotId": None,
}

RATING_SERVICE = {
    "name": "realtime-rating-service",
    "version": "1.0",
    "operationId": "rating",
    "inputs": [{"name": "inputData", "type": "data.frame"}],
    "outputs": [{"name": "outputData", "type": "data.frame"}],
}


@dataclasses.dataclass
class FakeService:
    metadata: ServiceMetadata
    handler: Handler
    invocations: List[Dict[str, Any]] = dataclasses.field(default_factory=list)


class FakeBackend:
    """State shared by the routes of the fake endpoint."""

    def __init__(self, users: Dict[str, str]) -> None:
        self.users = users
        self.services = dict()
        self.tokens = set()
        self.remote_sessions = set()

    def deploy(self, metadata: ServiceMetadata, handler: Handler) -> FakeService:
        service = FakeService(metadata=metadata, handler=handler)
        self.services[(metadata.name, metadata.version)] = service
        return service

    def check_token(self, authorization: Optional[str]) -> None:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="missing token")
        if authorization[len("Bearer "):] not in self.tokens:
            raise HTTPException(status_code=401, detail="invalid token")


def app_factory(backend: FakeBackend) -> FastAPI:
    """Instantiate FastAPI app serving the given backend."""
    app = FastAPI()
    app.state.backend = backend

    def dump(service: FakeService) -> Dict:
        return service.metadata.model_dump(by_alias=True)

    @app.post("/login", status_code=200)
    def login(credentials: LoginRequest) -> Dict:
        if backend.users.get(credentials.username) != credentials.password:
            raise HTTPException(status_code=401, detail="invalid credentials")
        token = str(uuid.uuid4())
        backend.tokens.add(token)
        return LoginResponse(access_token=token).model_dump()

    @app.post("/logout", status_code=200)
    def logout(authorization: Optional[str] = Header(None)) -> Dict:
        backend.check_token(authorization)
        backend.tokens.discard(authorization[len("Bearer "):])
        return {}

    @app.post("/sessions", status_code=201)
    def create_session(authorization: Optional[str] = Header(None)) -> Dict:
        backend.check_token(authorization)
        session_id = str(uuid.uuid4())
        backend.remote_sessions.add(session_id)
        return {"sessionId": session_id}

    @app.delete("/sessions/{session_id}", response_class=Response, status_code=204)
    def close_session(session_id: str, authorization: Optional[str] = Header(None)):
        backend.check_token(authorization)
        if session_id not in backend.remote_sessions:
            raise HTTPException(status_code=404, detail="no such session")
        backend.remote_sessions.discard(session_id)

    @app.get("/services", status_code=200)
    def all_services(authorization: Optional[str] = Header(None)) -> List[Dict]:
        backend.check_token(authorization)
        return [dump(service) for service in backend.services.values()]

    @app.get("/services/{name}", status_code=200)
    def service_versions(name: str, authorization: Optional[str] = Header(None)) -> List[Dict]:
        backend.check_token(authorization)
        return [
            dump(service)
            for (service_name, _), service in backend.services.items()
            if service_name == name
        ]

    @app.get("/services/{name}/{version}", status_code=200)
    def service(
        name: str, version: str, authorization: Optional[str] = Header(None)
    ) -> List[Dict]:
        backend.check_token(authorization)
        if (name, version) not in backend.services:
            raise HTTPException(status_code=404, detail="service not found")
        return [dump(backend.services[(name, version)])]

    @app.post("/api/{name}/{version}", status_code=200)
    def invoke(
        name: str,
        version: str,
        inputs: Dict[str, Any] = Body(...),
        authorization: Optional[str] = Header(None),
    ) -> Dict:
        backend.check_token(authorization)
        if (name, version) not in backend.services:
            raise HTTPException(status_code=404, detail="service not found")
        service = backend.services[(name, version)]
        service.invocations.append(inputs)
        try:
            outputs, files = service.handler(inputs)
        except Exception as e:
            response = InvocationResponse(
                success=False, error_message=str(e), console_output=f"Error: {e}"
            )
        else:
            response = InvocationResponse(
                success=True,
                console_output=f"{name} executed",
                output_parameters=outputs,
                output_files={
                    filename: base64.b64encode(content).decode("ascii")
                    for filename, content in files.items()
                },
            )
        return response.model_dump(by_alias=True)

    return app

"""Pydantic models for parsing data from and sending data to the serving endpoint."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token_type: str = "Bearer"
    access_token: str
    expires_on: Optional[float] = None
    refresh_token: Optional[str] = None


class RemoteSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")


class ServiceParameter(BaseModel):
    name: str
    type: str


class ServiceMetadata(BaseModel):
    """Schema of a deployed service as reported by the endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    version: str
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    description: Optional[str] = None
    runtime_type: Optional[str] = Field(default=None, alias="runtimeType")
    inputs: List[ServiceParameter] = Field(default_factory=list)
    outputs: List[ServiceParameter] = Field(default_factory=list)
    output_file_names: List[str] = Field(default_factory=list, alias="outputFileNames")

    @field_validator("inputs", "outputs")
    @classmethod
    def unique_names(cls, params: List[ServiceParameter]) -> List[ServiceParameter]:
        names = [param.name for param in params]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate parameter names: {names}")
        return params


class InvocationResponse(BaseModel):
    """Body returned by the endpoint for a single service invocation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    error_message: Optional[str] = Field(default="", alias="errorMessage")
    console_output: Optional[str] = Field(default="", alias="consoleOutput")
    output_parameters: Dict[str, Any] = Field(
        default_factory=dict, alias="outputParameters"
    )
    output_files: Dict[str, str] = Field(default_factory=dict, alias="outputFiles")

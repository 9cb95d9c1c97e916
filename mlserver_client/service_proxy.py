"""ServiceProxy class standing in locally for a deployed remote service."""
import inspect
import keyword
import logging
from typing import Any, Dict, List

import httpx
from pydantic import ValidationError

from mlserver_client import type_codecs
from mlserver_client.comm_dataclasses import ServiceDescriptor, Session
from mlserver_client.exceptions import (
    InvocationArgumentError,
    RemoteExecutionError,
    ServiceNotFoundError,
    SessionInvalidError,
    TransportError,
)
from mlserver_client.response import InvocationResult
from mlserver_client.schemas import InvocationResponse, ServiceMetadata, ServiceParameter


def _build_signature(inputs: List[ServiceParameter]) -> inspect.Signature:
    """Signature for introspection of the declared inputs.

    Input names that are not Python identifiers (``input.data``) can only be
    passed through ``**kwargs``, so the signature falls back to that form.
    """
    if not all(
        param.name.isidentifier() and not keyword.iskeyword(param.name) for param in inputs
    ):
        return inspect.Signature(
            [
                inspect.Parameter("args", inspect.Parameter.VAR_POSITIONAL),
                inspect.Parameter("kwargs", inspect.Parameter.VAR_KEYWORD),
            ]
        )
    return inspect.Signature(
        [
            inspect.Parameter(param.name, inspect.Parameter.POSITIONAL_OR_KEYWORD)
            for param in inputs
        ]
    )


class ServiceProxy:
    """Callable proxy for one deployed service.

    The service's schema is fetched once when the proxy is resolved and kept
    for the lifetime of the proxy. Calling the proxy, its ``invoke`` method or
    the attribute named after the service's operation all perform the same
    remote invocation.
    """

    def __init__(
        self,
        descriptor: ServiceDescriptor,
        metadata: ServiceMetadata,
        session: Session,
        http_client: httpx.Client,
    ) -> None:
        self.descriptor = descriptor
        self.metadata = metadata
        self.session = session
        self.client = http_client
        self.signature = _build_signature(metadata.inputs)

    def __repr__(self) -> str:
        return f"ServiceProxy({self.descriptor}{self.signature})"

    @property
    def inputs(self) -> List[ServiceParameter]:
        return list(self.metadata.inputs)

    @property
    def outputs(self) -> List[ServiceParameter]:
        return list(self.metadata.outputs)

    @property
    def output_file_names(self) -> List[str]:
        return list(self.metadata.output_file_names)

    @property
    def operation_id(self) -> str:
        return self.metadata.operation_id or "consume"

    def __getattr__(self, name: str):
        # Only reached for attributes not found normally
        if name.startswith("_") or name == "metadata":
            raise AttributeError(name)
        if name == self.operation_id:
            return self._operation()
        raise AttributeError(
            f"service {self.descriptor} has no operation '{name}' "
            f"(available: '{self.operation_id}')"
        )

    def __dir__(self):
        return list(super().__dir__()) + [self.operation_id]

    def __call__(self, *args: Any, **kwargs: Any) -> InvocationResult:
        return self.invoke(*args, **kwargs)

    def _operation(self):
        def operation(*args: Any, **kwargs: Any) -> InvocationResult:
            return self.invoke(*args, **kwargs)

        operation.__name__ = self.operation_id
        operation.__qualname__ = f"{self.descriptor.name}.{self.operation_id}"
        operation.__doc__ = self.metadata.description
        operation.__signature__ = self.signature
        return operation

    def invoke(self, *args: Any, **kwargs: Any) -> InvocationResult:
        """Invoke the remote service and return its result.

        Arguments are matched against the declared inputs, positionally or by
        name, and checked against the declared types before anything is sent.

        Returns:
            InvocationResult: outputs and artifacts produced by the execution

        Raises:
            SessionInvalidError: the session is not (or no longer) authenticated
            InvocationArgumentError: the arguments do not match the declared signature
            TransportError: the request failed at the network level
            RemoteExecutionError: the remote execution failed
        """
        self.session.require_valid()
        body = self._encode_arguments(args, kwargs)

        url = f"{self.session.endpoint}/api/{self.descriptor.path}"
        logging.debug(f"Invoking {self.descriptor} with inputs: {list(body)}")
        try:
            response = self.client.post(url=url, json=body, headers=self.session.headers)
        except httpx.TransportError as e:
            raise TransportError(f"invocation of {self.descriptor} failed: {e}") from e

        invocation = self._parse_response(response)
        if invocation.console_output:
            logging.debug(f"{self.descriptor} console output:\n{invocation.console_output}")
        if not invocation.success:
            raise RemoteExecutionError(
                f"{self.descriptor} failed: {invocation.error_message}",
                console_output=invocation.console_output,
            )

        return InvocationResult(
            descriptor=self.descriptor,
            outputs=invocation.output_parameters,
            output_types={param.name: param.type for param in self.metadata.outputs},
            artifacts=invocation.output_files,
            console_output=invocation.console_output,
        )

    def _encode_arguments(self, args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """Bind the arguments to the declared inputs and encode them for the request body."""
        inputs = self.metadata.inputs
        if len(args) > len(inputs):
            raise InvocationArgumentError(
                f"{self.descriptor} takes {len(inputs)} arguments but {len(args)} were given"
            )

        bound = {param.name: value for param, value in zip(inputs, args)}
        declared = {param.name for param in inputs}
        for name, value in kwargs.items():
            if name not in declared:
                raise InvocationArgumentError(
                    f"{self.descriptor} got an unexpected argument '{name}'"
                )
            if name in bound:
                raise InvocationArgumentError(
                    f"{self.descriptor} got multiple values for argument '{name}'"
                )
            bound[name] = value

        missing = [param.name for param in inputs if param.name not in bound]
        if missing:
            raise InvocationArgumentError(
                f"{self.descriptor} is missing required arguments: {missing}"
            )

        return {
            param.name: type_codecs.encode_argument(param.name, param.type, bound[param.name])
            for param in inputs
        }

    def _parse_response(self, response: httpx.Response) -> InvocationResponse:
        if response.status_code in (401, 403):
            raise SessionInvalidError(
                f"{self.session.endpoint} refused the session (HTTP {response.status_code})"
            )
        if response.status_code == 404:
            raise ServiceNotFoundError(self.descriptor.name, self.descriptor.version)
        if not response.is_success:
            raise RemoteExecutionError(
                f"{self.descriptor} returned HTTP {response.status_code}: {response.text}"
            )
        try:
            return InvocationResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteExecutionError(
                f"malformed invocation response from {self.descriptor}: {e}"
            ) from e

"""InvocationResult class giving typed access to the result of one service invocation."""
import base64
import binascii
import types
from typing import Any, Dict, List, Mapping, Optional, Union

from mlserver_client import type_codecs
from mlserver_client.comm_dataclasses import ServiceDescriptor
from mlserver_client.exceptions import (
    ArtifactDecodeError,
    UnknownArtifactError,
    UnknownOutputError,
)


class InvocationResult:
    """Outputs and file artifacts returned by one remote invocation.

    The result is fully materialized when the response arrives and is never
    modified afterwards. Outputs are decoded on each access so callers may
    change the returned values freely.
    """

    def __init__(
        self,
        descriptor: ServiceDescriptor,
        outputs: Mapping[str, Any],
        output_types: Mapping[str, str],
        artifacts: Mapping[str, str],
        console_output: Optional[str] = None,
    ) -> None:
        """Store the raw response contents.

        Args:
            descriptor (ServiceDescriptor): service that produced the result
            outputs (Mapping[str, Any]): output name to encoded value
            output_types (Mapping[str, str]): output name to declared type
            artifacts (Mapping[str, str]): artifact filename to base64 text
            console_output (Optional[str]): console output of the remote execution
        """
        self._descriptor = descriptor
        self._outputs = types.MappingProxyType(dict(outputs))
        self._output_types = types.MappingProxyType(dict(output_types))
        self._artifacts = types.MappingProxyType(dict(artifacts))
        self._console_output = console_output or ""

    def __repr__(self) -> str:
        return (
            f"InvocationResult(service={self._descriptor}, "
            f"outputs={self.output_names}, artifacts={self.artifact_names})"
        )

    @property
    def descriptor(self) -> ServiceDescriptor:
        return self._descriptor

    @property
    def console_output(self) -> str:
        return self._console_output

    @property
    def output_names(self) -> List[str]:
        return list(self._outputs)

    @property
    def artifact_names(self) -> List[str]:
        return list(self._artifacts)

    def output(self, name: str) -> Any:
        """Return the named output decoded according to its declared type.

        Raises:
            UnknownOutputError: the result has no output called ``name``
        """
        if name not in self._outputs:
            raise UnknownOutputError(
                f"{self._descriptor} returned no output '{name}' "
                f"(available: {self.output_names})"
            )
        type_name = self._output_types.get(name)
        return type_codecs.decode_output(type_name, self._outputs[name])

    def outputs(self) -> Dict[str, Any]:
        """Return every output, decoded."""
        return {name: self.output(name) for name in self._outputs}

    def artifact(self, filename: str, decode: bool = True) -> Union[bytes, str]:
        """Return the content of a file produced by the remote execution.

        Args:
            filename (str): artifact filename, used as an opaque key
            decode (bool): return decoded bytes if True, the base64 text as
                received otherwise

        Raises:
            UnknownArtifactError: the result has no artifact called ``filename``
            ArtifactDecodeError: the stored content is not valid base64
        """
        if filename not in self._artifacts:
            raise UnknownArtifactError(
                f"{self._descriptor} returned no artifact '{filename}' "
                f"(available: {self.artifact_names})"
            )
        encoded = self._artifacts[filename]
        if not decode:
            return encoded
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ArtifactDecodeError(
                f"artifact '{filename}' is not valid base64: {e}"
            ) from e

    def artifact_data_uri(self, filename: str, media_type: str) -> str:
        """Return the artifact as a data URI, e.g. for an HTML ``img`` source."""
        return f"data:{media_type};base64,{self.artifact(filename, decode=False)}"

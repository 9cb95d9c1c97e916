"""Conversion between Python values and the endpoint's declared parameter types.

Each service declares the type of every input and output with one of the
names below. Arguments are checked and encoded to JSON before a request is
sent, and outputs are decoded back into Python structures on access:

    numeric     float
    integer     int
    logical     bool
    character   str
    vector      list
    matrix      numpy.ndarray (sent as a list of rows)
    data.frame  pandas.DataFrame (sent column-oriented, {column: [values]})

Types outside this set are passed through without conversion in both directions.
"""
import copy
import math
import numbers
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd

from mlserver_client.exceptions import InvocationArgumentError, RemoteExecutionError

NUMERIC = "numeric"
INTEGER = "integer"
LOGICAL = "logical"
CHARACTER = "character"
VECTOR = "vector"
MATRIX = "matrix"
DATA_FRAME = "data.frame"

KNOWN_TYPES = (NUMERIC, INTEGER, LOGICAL, CHARACTER, VECTOR, MATRIX, DATA_FRAME)


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def _to_native(value: Any) -> Any:
    """Convert numpy scalars and missing values into JSON-friendly values."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        raise InvocationArgumentError(f"infinite value {value} cannot be sent")
    return value


def _is_list_like(value: Any) -> bool:
    return isinstance(value, (np.ndarray, pd.Series)) or (
        isinstance(value, Sequence) and not isinstance(value, (str, bytes))
    )


def _unwrap(value: Any) -> Any:
    """Length-1 arrays stand for scalars on the wire."""
    if isinstance(value, list) and len(value) == 1:
        return value[0]
    return value


def _to_frame(name: str, value: Any) -> pd.DataFrame:
    if isinstance(value, pd.DataFrame):
        return value
    try:
        if isinstance(value, Mapping):
            if all(_is_list_like(column) for column in value.values()):
                return pd.DataFrame(dict(value))
            return pd.DataFrame([dict(value)])
        if _is_list_like(value) and all(isinstance(row, Mapping) for row in value):
            return pd.DataFrame.from_records(list(value))
    except ValueError as e:
        raise InvocationArgumentError(
            f"argument '{name}' cannot be read as a data.frame: {e}"
        ) from e
    raise InvocationArgumentError(
        f"argument '{name}' expects data.frame, got {type(value).__name__}"
    )


def _check_matrix(name: str, value: Any) -> list:
    rows = value.tolist() if isinstance(value, np.ndarray) else value
    if (
        (isinstance(value, np.ndarray) and value.ndim != 2)
        or not _is_list_like(rows)
        or not all(_is_list_like(row) for row in rows)
    ):
        raise InvocationArgumentError(
            f"argument '{name}' expects a 2-dimensional matrix"
        )
    if len({len(row) for row in rows}) > 1:
        raise InvocationArgumentError(f"argument '{name}' has rows of unequal length")
    return [[_to_native(cell) for cell in row] for row in rows]


def encode_argument(name: str, type_name: str, value: Any) -> Any:
    """Check a single argument against its declared type and encode it for the wire.

    Args:
        name (str): declared parameter name, used in error messages
        type_name (str): declared parameter type
        value (Any): argument supplied by the caller

    Returns:
        Any: JSON-serializable value

    Raises:
        InvocationArgumentError: the value does not match the declared type
    """
    mismatch = InvocationArgumentError(
        f"argument '{name}' expects {type_name}, got {type(value).__name__}"
    )
    if type_name == NUMERIC:
        if _is_bool(value) or not isinstance(value, numbers.Real):
            raise mismatch
        if not math.isfinite(value):
            raise InvocationArgumentError(
                f"argument '{name}' expects a finite number, got {value}"
            )
        return float(value)
    elif type_name == INTEGER:
        if _is_bool(value) or not isinstance(value, numbers.Integral):
            raise mismatch
        return int(value)
    elif type_name == LOGICAL:
        if not _is_bool(value):
            raise mismatch
        return bool(value)
    elif type_name == CHARACTER:
        if not isinstance(value, str):
            raise mismatch
        return value
    elif type_name == VECTOR:
        if not _is_list_like(value) or (isinstance(value, np.ndarray) and value.ndim != 1):
            raise mismatch
        return [_to_native(item) for item in list(value)]
    elif type_name == MATRIX:
        return _check_matrix(name, value)
    elif type_name == DATA_FRAME:
        frame = _to_frame(name, value)
        return {
            str(column): [_to_native(cell) for cell in frame[column].tolist()]
            for column in frame.columns
        }
    else:
        return value


def _scalar_mismatch(type_name: str, value: Any) -> RemoteExecutionError:
    return RemoteExecutionError(
        f"output value {value!r} does not fit declared type {type_name}"
    )


def decode_output(type_name: str, value: Any) -> Any:
    """Decode an output value received from the wire according to its declared type.

    Raises:
        RemoteExecutionError: the value does not fit the declared type
    """
    if value is None:
        return None
    if type_name in (NUMERIC, INTEGER, LOGICAL, CHARACTER):
        scalar = _unwrap(value)
        if type_name == NUMERIC:
            if _is_bool(scalar) or not isinstance(scalar, numbers.Real):
                raise _scalar_mismatch(type_name, value)
            return float(scalar)
        elif type_name == INTEGER:
            if isinstance(scalar, float) and scalar.is_integer():
                return int(scalar)
            if _is_bool(scalar) or not isinstance(scalar, numbers.Integral):
                raise _scalar_mismatch(type_name, value)
            return int(scalar)
        elif type_name == LOGICAL:
            if not _is_bool(scalar):
                raise _scalar_mismatch(type_name, value)
            return bool(scalar)
        else:
            if not isinstance(scalar, str):
                raise _scalar_mismatch(type_name, value)
            return scalar
    elif type_name == VECTOR:
        return copy.deepcopy(value if isinstance(value, list) else [value])
    elif type_name == MATRIX:
        return np.array(value)
    elif type_name == DATA_FRAME:
        if isinstance(value, Mapping):
            if all(isinstance(column, list) for column in value.values()):
                return pd.DataFrame(value)
            return pd.DataFrame([value])
        return pd.DataFrame.from_records(value)
    else:
        # Unknown types are handed out as copies so the result stays unchanged
        return copy.deepcopy(value)

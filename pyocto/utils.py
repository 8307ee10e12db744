from typing import Any
import numpy as np


def _parse_to_list(*args: Any):
    if len(args) == 0:
        return []
    elif len(args) == 1:
        var_in = args[0]
    else:
        var_in = args

    if var_in is None:
        return []
    elif isinstance(var_in, list):
        return var_in
    elif isinstance(var_in, tuple) or isinstance(var_in, set):
        return list(var_in)
    else:
        return [var_in]


def _parse_column(v, name: str, length: int = None):
    """ Convert to a 1-D vector. Column vectors of shape (n, 1) are flattened, other 2-D shapes are rejected """
    if v is None:
        raise ValueError(f"\"{name}\" has to be specified")
    arr = np.asarray(v, dtype=float)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr[:, 0]
    if arr.ndim != 1:
        raise ValueError(f"\"{name}\" must be a column vector, got shape {arr.shape}")
    if length is not None and arr.size != length:
        raise ValueError(f"\"{name}\" must have length {length}, got {arr.size}")
    return arr


def _parse_pairs(pairs, name: str):
    """ Parse a list of (index, value) pairs into an integer index vector and a value vector """
    if pairs is None:
        return np.zeros(0, dtype=int), np.zeros(0)
    arr = np.asarray(pairs, dtype=float)
    if arr.size == 0:
        return np.zeros(0, dtype=int), np.zeros(0)
    if arr.ndim == 1 and arr.size == 2:
        arr = arr[np.newaxis, :]
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"\"{name}\" has to have 2 columns [index, value], got shape {arr.shape}")
    idx = arr[:, 0]
    if np.any(idx != np.round(idx)) or np.any(idx < 0):
        raise ValueError(f"\"{name}\" indices must be non-negative integers")
    return idx.astype(int), arr[:, 1].copy()

"""
_utils.py
=========
General-purpose numeric and validation helpers for softroute.

These are standalone functions that don't depend on the routing classes
and could be useful in multiple contexts.
"""

import math

import numpy as np

from softroute._errors import InvalidArgumentError


# Largest dimension whose indices still fit a signed 32-bit integer.
INT32_DIM_LIMIT = np.iinfo(np.int32).max


def stable_sigmoid(x: float) -> float:
    """
    Logistic function evaluated without overflow.

    ``1 / (1 + exp(-x))`` overflows ``exp`` for large negative ``x``.
    Branching on the sign means ``exp`` only ever sees a non-positive
    argument.

    Parameters
    ----------
    x : float
        Gate activation.

    Returns
    -------
    float
        Value in [0, 1]. Strictly inside (0, 1) unless ``x`` is so large in
        magnitude that the result rounds to an endpoint.

    Examples
    --------
    >>> round(stable_sigmoid(2.0), 4)
    0.8808

    >>> stable_sigmoid(0.0)
    0.5

    >>> stable_sigmoid(-1000.0)
    0.0
    """
    if x >= 0.0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def check_tensor_bounds(array: np.ndarray, name: str) -> None:
    """
    Reject arrays with a dimension too large for 32-bit indexing.

    Parameters
    ----------
    array : np.ndarray
        Array to check.
    name : str
        Argument name used in the error message.

    Raises
    ------
    InvalidArgumentError
        If any dimension is ``>= 2**31 - 1``.
    """
    for axis, size in enumerate(array.shape):
        if size >= INT32_DIM_LIMIT:
            raise InvalidArgumentError(
                f"{name} has dimension {axis} of size {size}, which exceeds "
                f"the 32-bit index limit ({INT32_DIM_LIMIT})"
            )


def check_finite(array: np.ndarray, name: str) -> None:
    """
    Reject arrays containing NaN or infinite values.

    Parameters
    ----------
    array : np.ndarray
        Array to check.
    name : str
        Argument name used in the error message.

    Raises
    ------
    InvalidArgumentError
        If any entry is NaN or +/-inf.

    Examples
    --------
    >>> check_finite(np.array([1.0, 2.0]), 'x')

    >>> check_finite(np.array([1.0, np.nan]), 'x')
    Traceback (most recent call last):
        ...
    softroute._errors.InvalidArgumentError: x contains 1 non-finite value(s)
    """
    bad = array.size - int(np.count_nonzero(np.isfinite(array)))
    if bad:
        raise InvalidArgumentError(f"{name} contains {bad} non-finite value(s)")

"""
_backend.py
===========
Backend detection and selection for routing kernels.

This module detects available execution backends (Python reference and
CPU-parallel via the compiled numba kernels) and provides functions to
query and select the best backend.

Functions in this module have NO side effects - they only query system state.
Logging is done by the calling code, not here.
"""

from typing import List, Tuple, Optional

import numba


# ============================================================================ #
# Backend Detection (No Side Effects)
# ============================================================================ #


def get_available_backends() -> List[str]:
    """
    Get list of available execution backends.

    Returns
    -------
    list[str]
        List of available backends in preference order.
        Always includes 'python'.
        Includes 'cpu-parallel' if the numba kernels import.

    Examples
    --------
    >>> get_available_backends()[0]
    'python'
    """
    backends = ["python"]  # Always available

    cpu_kernels_ok, _, _ = import_cpu_kernels()
    if cpu_kernels_ok:
        backends.append("cpu-parallel")

    return backends


def get_best_backend() -> str:
    """
    Get the most optimized available backend.

    Returns
    -------
    str
        Best available backend in preference order:
        'cpu-parallel' > 'python'
    """
    backends = get_available_backends()
    # List is in preference order, last is best
    return backends[-1]


def resolve_backend(backend: str) -> str:
    """
    Resolve a backend specification to an actual backend.

    Parameters
    ----------
    backend : str
        Backend specification:
        - 'best': Use the best available backend
        - 'python', 'cpu-parallel': Use specific backend

    Returns
    -------
    str
        Resolved backend name.

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> resolve_backend('best') == get_best_backend()
    True

    >>> resolve_backend('python')
    'python'

    >>> resolve_backend('gpu')  # doctest: +ELLIPSIS
    Traceback (most recent call last):
        ...
    ValueError: Backend 'gpu' not available. Available backends: ...
    """
    if backend == "best":
        return get_best_backend()

    # Validate requested backend is available
    available = get_available_backends()
    if backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    return backend


# ============================================================================ #
# Kernel Import Helpers
# ============================================================================ #


def import_cpu_kernels() -> Tuple[bool, Optional[object], Optional[object]]:
    """
    Try to import CPU kernels from _cpu_kernels module.

    Returns
    -------
    tuple
        (success, routing_kernel, select_kernel)
        - success: Whether import succeeded
        - routing_kernel: _k_feature_routing_njit function or None
        - select_kernel: _select_features_nb function or None
    """
    try:
        from softroute._cpu_kernels import (
            _k_feature_routing_njit,
            _select_features_nb,
        )

        return (True, _k_feature_routing_njit, _select_features_nb)
    except ImportError:
        return (False, None, None)


# ============================================================================ #
# Module-Level State Query (Read-Only)
# ============================================================================ #


def get_backend_info() -> dict:
    """
    Get comprehensive backend information.

    Returns
    -------
    dict
        Dictionary with keys:
        - 'numba_version': str
        - 'backends': list[str]
        - 'best_backend': str
        - 'cpu_kernels_available': bool

    Examples
    --------
    >>> info = get_backend_info()
    >>> info['best_backend'] in info['backends']
    True
    """
    backends = get_available_backends()
    best = get_best_backend()

    cpu_kernels_ok, _, _ = import_cpu_kernels()

    return {
        "numba_version": numba.__version__,
        "backends": backends,
        "best_backend": best,
        "cpu_kernels_available": cpu_kernels_ok,
    }

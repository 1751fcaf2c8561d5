"""
_context.py
===========
Context managers for softroute.

Provides clean, Pythonic context managers for temporarily changing state:
- Logging control (suppress/change levels)
- Warning control (suppress specific warnings)
- Backend selection (force specific backend)

All context managers properly restore state on exit, even if exceptions occur.
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Optional, Type


# Parent of every module logger in the package.
PACKAGE_LOGGER = "softroute"

# Module-level state for backend override
_backend_override = None


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger to suppress (e.g., 'softroute._routing')
    level : int, default logging.CRITICAL
        Temporary logging level.

    Yields
    ------
    None
        Control is yielded back to the with-block.

    Examples
    --------
    >>> from softroute import route
    >>> # Hide per-call routing messages but keep everything else
    >>> with suppress_logger('softroute._routing'):
    ...     probs = route([[2.0]], [[1.0]], [0.0], layer_num=0, max_nodes=3,
    ...                   num_features_per_node=1, random_seed=1)
    >>> probs.shape
    (1, 3)

    >>> # Temporarily reduce logging to warnings only
    >>> with suppress_logger('softroute', logging.WARNING):
    ...     logging.getLogger('softroute').level == logging.WARNING
    True

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all softroute logging.

    Module loggers are children of the ``softroute`` logger and inherit its
    level, so raising that one level silences the whole package.

    Parameters
    ----------
    level : int, default logging.CRITICAL
        Temporary logging level for the package logger.

    Yields
    ------
    None
        Control is yielded back to the with-block.

    Examples
    --------
    >>> from softroute import KFeatureRoutingFunction
    >>> with quiet():
    ...     fn = KFeatureRoutingFunction(0, 3, 1, 0)
    ...     probs = fn([[2.0]], [[1.0]], [0.0])

    >>> # Show only warnings; an unknown per-call backend still logs its
    >>> # fallback warning
    >>> with quiet(logging.WARNING):
    ...     probs = fn([[2.0]], [[1.0]], [0.0], backend='gpu')
    >>> probs.round(4)
    array([[1.    , 0.8808, 0.1192]], dtype=float32)
    """
    with suppress_logger(PACKAGE_LOGGER, level):
        yield


# ============================================================================ #
# Warning Context Managers
# ============================================================================ #


@contextmanager
def suppress_warnings(category: Optional[Type[Warning]] = None):
    """
    Temporarily suppress warnings.

    Parameters
    ----------
    category : Type[Warning] or None, default None
        Warning category to suppress. If None, suppresses all warnings.
        Common categories:
        - RuntimeWarning: Runtime behavior warnings
        - NumbaPerformanceWarning: Numba optimization warnings

    Yields
    ------
    None
        Control is yielded back to the with-block.

    Examples
    --------
    >>> from numba.core.errors import NumbaPerformanceWarning
    >>> with suppress_warnings(NumbaPerformanceWarning):
    ...     warnings.warn("tiny batch", NumbaPerformanceWarning)

    Notes
    -----
    - Uses Python's warnings.catch_warnings() internally
    - Fully restores warning state on exit
    """
    with warnings.catch_warnings():
        if category is None:
            warnings.simplefilter("ignore")
        else:
            warnings.filterwarnings("ignore", category=category)
        yield


# ============================================================================ #
# Backend Context Managers
# ============================================================================ #


@contextmanager
def use_backend(backend: str):
    """
    Temporarily force a specific backend for routing operations.

    Parameters
    ----------
    backend : str
        Backend to use. Valid options:
        - 'python': Pure Python reference (slow, always available)
        - 'cpu-parallel': Numba parallel (requires numba)
        - 'best': Use best available (default behavior)

    Yields
    ------
    None
        Control is yielded back to the with-block.

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> from softroute import route
    >>> with use_backend('python'):
    ...     # No JIT compilation, easier to debug
    ...     probs = route([[2.0]], [[1.0]], [0.0], 0, 3, 1, 0)
    >>> probs.dtype
    dtype('float32')

    Notes
    -----
    - **Not thread-safe**: Uses module-level state
    - Backend availability checked when context entered
    - Raises ValueError immediately if backend unavailable
    - Original behavior restored on exit

    For thread-safe selection pass ``backend=`` directly to the routing
    call instead.
    """
    global _backend_override

    # Validate backend is available
    from softroute._backend import get_available_backends

    available = get_available_backends()

    if backend != "best" and backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    # Save original override state
    original_override = _backend_override

    try:
        _backend_override = backend
        yield
    finally:
        _backend_override = original_override


def get_backend_override() -> Optional[str]:
    """
    Get the current backend override, if any.

    Returns
    -------
    str or None
        Current backend override, or None if no override active.

    Examples
    --------
    >>> get_backend_override() is None
    True

    >>> with use_backend('python'):
    ...     print(get_backend_override())
    python
    """
    return _backend_override


# ============================================================================ #
# Combined Context Managers
# ============================================================================ #


@contextmanager
def silent_benchmark(backend: str = "best"):
    """
    Suppress logging and warnings while forcing a specific backend.

    Parameters
    ----------
    backend : str, default 'best'
        Backend to use for operations.

    Examples
    --------
    >>> import time
    >>> import numpy as np
    >>> from softroute import get_available_backends, route
    >>> x = np.random.default_rng(0).normal(size=(256, 8)).astype(np.float32)
    >>> w = np.ones((7, 2), dtype=np.float32)
    >>> b = np.zeros(7, dtype=np.float32)
    >>> for backend in get_available_backends():
    ...     with silent_benchmark(backend):
    ...         start = time.perf_counter()
    ...         probs = route(x, w, b, 0, 15, 2, 0)
    ...         elapsed = time.perf_counter() - start
    >>> probs.shape
    (256, 15)
    """
    with quiet():
        with use_backend(backend):
            with suppress_warnings():
                yield

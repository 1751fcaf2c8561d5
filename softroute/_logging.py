"""
_logging.py
===========
Logging functions for softroute.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
- Clear boundaries between routing and reporting
"""

import logging
import os
import platform
import warnings
from typing import List

import llvmlite
import numba
from numba.core.errors import NumbaPerformanceWarning


logger = logging.getLogger(__name__)


# ============================================================================ #
# System and Backend Logging (called at module import time)
# ============================================================================ #


def log_optimization_status() -> None:
    """
    Log system capabilities and numba configuration at INFO level.

    Called once at import of the routing module. Reports CPU count, Python
    version, numba/llvmlite versions and threading configuration.
    """
    cpu_count = os.cpu_count() or 1
    logger.info(
        f"System: {platform.machine()} ({platform.system()}), "
        f"{cpu_count} CPU cores, Python {platform.python_version()}"
    )
    logger.info(
        f"Numba {numba.__version__} loaded, LLVM backend: "
        f"llvmlite {llvmlite.__version__}"
    )

    # threading_layer() raises until a parallel kernel has run once.
    try:
        num_threads = numba.get_num_threads()
        threading_layer = numba.threading_layer()
        logger.info(
            f"Numba threading: {threading_layer} layer, "
            f"{num_threads} threads active"
        )
    except ValueError:
        logger.info(f"Numba threading: {numba.get_num_threads()} threads")


def install_numba_warning_filter() -> None:
    """
    Capture NumbaPerformanceWarning and route it through our logger.

    numba issues performance warnings via Python's warnings module. This
    filter intercepts them and logs them at WARNING level so they appear in
    the same stream as other softroute diagnostics.
    """
    original_showwarning = warnings.showwarning

    def custom_showwarning(
        message, category, filename, lineno, file=None, line=None
    ):
        if issubclass(category, NumbaPerformanceWarning):
            logger.warning(f"Numba performance issue: {message}")
            logger.warning(f"  at {filename}:{lineno}")
            return
        original_showwarning(message, category, filename, lineno, file, line)

    warnings.showwarning = custom_showwarning


def log_backend_availability(backends_available: List[str]) -> None:
    """
    Log which execution backends are available for routing kernels.

    Parameters
    ----------
    backends_available : List[str]
        List of available backends (e.g., ['python', 'cpu-parallel'])
    """
    logger.info(f"Available backends: {', '.join(backends_available)}")

    if "cpu-parallel" in backends_available:
        logger.info("  cpu-parallel: LLVM-compiled parallel code (numba.njit + prange)")

    if "python" in backends_available:
        logger.info("  python: unoptimized reference implementation")

    best = backends_available[-1]  # Last in list is most optimized
    logger.info(f"Default backend='best' will use: {best}")


# ============================================================================ #
# Routing Logging (called per routing function / per call)
# ============================================================================ #


def log_routing_configuration(
    layer_num: int,
    max_nodes: int,
    n_internal: int,
    depth: int,
    num_features_per_node: int,
    random_seed: int,
) -> None:
    """
    Log the scalar configuration bound to a routing function.

    Parameters
    ----------
    layer_num : int
        Layer number of the tree.
    max_nodes : int
        Total number of nodes.
    n_internal : int
        Number of internal (gate) nodes.
    depth : int
        Depth of the deepest leaf.
    num_features_per_node : int
        Features per gate.
    random_seed : int
        Base random seed.
    """
    logger.info(
        "Routing layer %d: %d nodes (%d gates, %d leaves, depth %d), "
        "k=%d features/gate, seed=%d",
        layer_num,
        max_nodes,
        n_internal,
        n_internal + 1,
        depth,
        num_features_per_node,
        random_seed,
    )


def log_routing_call(
    n_points: int, n_features: int, max_nodes: int, backend: str
) -> None:
    """
    Log one routing invocation and its output footprint.

    Parameters
    ----------
    n_points : int
        Batch size.
    n_features : int
        Feature count.
    max_nodes : int
        Output columns.
    backend : str
        Resolved backend name.
    """
    out_bytes = n_points * max_nodes * 4  # float32
    logger.info(
        f"k_feature_routing(batch={n_points}x{n_features}, "
        f"max_nodes={max_nodes}, backend={backend!r})"
    )
    if out_bytes >= 1024**3:
        logger.info(f"  Output table: {out_bytes / (1024**3):.2f} GB")
    else:
        logger.debug(f"  Output table: {out_bytes / (1024**2):.2f} MB")


def log_kernel_compile(kernel_key: str) -> None:
    """Note the first invocation of a JIT kernel in this process."""
    logger.info(f"  Compiling {kernel_key} kernel (cached for future calls)")


def log_backend_fallback(message: str, fallback: str) -> None:
    """Warn that a requested backend was replaced."""
    logger.warning(message)
    logger.warning(f"Falling back to backend {fallback!r}")

"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Warning filters
---------------
NumbaPerformanceWarning messages are filtered out during tests. Small test
batches routinely leave prange loops with too little work to parallelise,
which is not informative for correctness testing.
"""

import warnings

from numba.core.errors import NumbaPerformanceWarning


def pytest_configure(config):
    """
    Configure pytest before test collection begins.

    This runs before any test modules are imported, which is important for
    catching warnings raised while numba compiles the kernels.
    """
    warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


def pytest_unconfigure(config):
    """Restore default warning behavior after all tests complete."""
    warnings.resetwarnings()

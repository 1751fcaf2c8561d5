"""
tests/test_context.py
=====================
Tests for the context managers and backend queries.

Every context manager must restore the state it changed, including when the
with-block raises.
"""

import doctest
import logging
import warnings

import numba
import pytest

import softroute
from softroute import (
    get_available_backends,
    get_backend_info,
    quiet,
    silent_benchmark,
    suppress_logger,
    suppress_warnings,
    use_backend,
)
from softroute import _backend, _context, _features, _routing, _tree, _utils
from softroute._backend import get_best_backend, resolve_backend
from softroute._context import get_backend_override


class TestSuppressLogger:
    def test_level_restored(self):
        logger = logging.getLogger("softroute._routing")
        before = logger.level
        with suppress_logger("softroute._routing"):
            assert logger.level == logging.CRITICAL
        assert logger.level == before

    def test_level_restored_after_exception(self):
        logger = logging.getLogger("softroute._routing")
        before = logger.level
        with pytest.raises(RuntimeError):
            with suppress_logger("softroute._routing", logging.ERROR):
                raise RuntimeError("boom")
        assert logger.level == before


class TestQuiet:
    def test_silences_package_loggers(self, caplog):
        with caplog.at_level(logging.INFO):
            with quiet():
                logging.getLogger("softroute._logging").warning("hidden")
            logging.getLogger("softroute._logging").warning("shown")
        assert "hidden" not in caplog.text
        assert "shown" in caplog.text

    def test_custom_level(self):
        with quiet(logging.WARNING):
            assert logging.getLogger("softroute").level == logging.WARNING


class TestSuppressWarnings:
    def test_all(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with suppress_warnings():
                warnings.warn("x", UserWarning)
        assert not caught

    def test_category(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with suppress_warnings(UserWarning):
                warnings.warn("x", UserWarning)
                warnings.warn("y", RuntimeWarning)
        assert [w.category for w in caught] == [RuntimeWarning]


class TestUseBackend:
    def test_override_set_and_restored(self):
        assert get_backend_override() is None
        with use_backend("python"):
            assert get_backend_override() == "python"
        assert get_backend_override() is None

    def test_nested(self):
        with use_backend("python"):
            with use_backend("best"):
                assert get_backend_override() == "best"
            assert get_backend_override() == "python"

    def test_unavailable_backend(self):
        with pytest.raises(ValueError, match="not available"):
            with use_backend("cuda"):
                pass
        assert get_backend_override() is None

    def test_silent_benchmark(self):
        with silent_benchmark("python"):
            assert get_backend_override() == "python"
            assert logging.getLogger("softroute").level == logging.CRITICAL
        assert get_backend_override() is None


class TestBackendQueries:
    def test_python_always_available(self):
        assert get_available_backends()[0] == "python"

    def test_best_is_last(self):
        assert get_best_backend() == get_available_backends()[-1]

    def test_resolve(self):
        assert resolve_backend("best") == get_best_backend()
        assert resolve_backend("python") == "python"
        with pytest.raises(ValueError):
            resolve_backend("cuda")

    def test_info(self):
        info = get_backend_info()
        assert set(info) == {
            "numba_version",
            "backends",
            "best_backend",
            "cpu_kernels_available",
        }
        assert info["cpu_kernels_available"] == ("cpu-parallel" in info["backends"])
        assert info["numba_version"] == numba.__version__


class TestDocstringExamples:
    @pytest.mark.parametrize(
        "module",
        [softroute, _backend, _context, _features, _routing, _tree, _utils],
        ids=lambda m: m.__name__,
    )
    def test_examples_run(self, module):
        result = doctest.testmod(module, optionflags=doctest.ELLIPSIS)
        assert result.attempted > 0
        assert result.failed == 0

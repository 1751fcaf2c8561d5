"""
test_cpu_kernels.py
===================
Tests for CPU kernels (_cpu_kernels.py).

These tests call the numba kernels directly, without the validation layer
in _routing.py, to pin down their raw contracts:
- Kernel functions exist and have the expected signatures
- The sigmoid helper is overflow-free
- The routing kernel writes exactly the rows and columns it owns

Agreement with the python reference is covered in test_kernel_agreement.py.
"""

import inspect
import math

import numpy as np
import pytest

from softroute._backend import import_cpu_kernels

KERNELS_AVAILABLE, _, _ = import_cpu_kernels()

# Skip all tests if kernels not available
pytestmark = pytest.mark.skipif(
    not KERNELS_AVAILABLE,
    reason="CPU kernels module not available"
)


@pytest.fixture(scope="module")
def kernels():
    import softroute._cpu_kernels as _cpu_kernels
    return _cpu_kernels


class TestKernelSignatures:
    def test_routing_kernel_parameters(self, kernels):
        params = list(inspect.signature(kernels._k_feature_routing_njit.py_func).parameters)
        assert params == [
            "input_data",
            "tree_parameters",
            "tree_biases",
            "layer_num",
            "random_seed",
            "n_internal",
            "k",
            "n_points",
            "n_features",
            "probs_out",
        ]

    def test_select_kernel_parameters(self, kernels):
        sig = inspect.signature(kernels._select_features_nb.py_func)
        assert len(sig.parameters) == 8

    def test_routing_kernel_matches_reference_signature(self, kernels):
        from softroute._routing import KFeatureRoutingFunction

        ref = inspect.signature(KFeatureRoutingFunction._routing_kernel)
        fast = inspect.signature(kernels._k_feature_routing_njit.py_func)
        assert list(ref.parameters) == list(fast.parameters)


class TestFmixKernel:
    def test_matches_python(self, kernels):
        from softroute._features import fmix32

        for h in (0, 1, 0x9E3779B9, 0xFFFFFFFF, 123456789):
            assert kernels._fmix32_nb(h) == fmix32(h)


class TestSigmoidKernel:
    @pytest.mark.parametrize("x", [-800.0, -20.0, -1.0, 0.0, 1.0, 20.0, 800.0])
    def test_values(self, kernels, x):
        expected = 0.5 * (1.0 + math.tanh(0.5 * x))
        assert kernels._sigmoid_nb(x) == pytest.approx(expected, abs=1e-15)

    def test_extremes(self, kernels):
        assert kernels._sigmoid_nb(1.0e308) == 1.0
        assert kernels._sigmoid_nb(-1.0e308) == 0.0


class TestRoutingKernel:
    def test_single_gate(self, kernels):
        x = np.array([[2.0]], dtype=np.float32)
        w = np.array([[1.0]], dtype=np.float32)
        b = np.array([0.0], dtype=np.float32)
        out = np.zeros((1, 3), dtype=np.float32)
        kernels._k_feature_routing_njit(x, w, b, 0, 0, 1, 1, 1, 1, out)
        np.testing.assert_allclose(out[0], [1.0, 0.8808, 0.1192], atol=1e-4)

    def test_writes_only_owned_rows(self, kernels):
        """n_points smaller than the buffer leaves trailing rows untouched."""
        x = np.ones((4, 3), dtype=np.float32)
        w = np.ones((3, 2), dtype=np.float32)
        b = np.zeros(3, dtype=np.float32)
        out = np.full((4, 7), -1.0, dtype=np.float32)
        kernels._k_feature_routing_njit(x, w, b, 0, 0, 3, 2, 2, 3, out)
        assert np.all(out[:2] >= 0.0)
        np.testing.assert_array_equal(out[2:], -1.0)

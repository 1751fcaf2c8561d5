"""
_routing.py
===========
k-feature routing function for one layer of a soft decision tree.

The *routing function* of a tree is the probability that an instance is
routed to each of its nodes, as defined in 'Deep Neural Decision Forests'
by Kontschieder et al.  Every internal node holds a logistic gate that sees
only ``k`` of the ``F`` input features; which ``k`` is decided by the
deterministic selector in ``_features``.

Public API
----------
  KFeatureRoutingFunction(layer_num, max_nodes, num_features_per_node,
                          random_seed, backend='best')
      Binds and validates the scalar configuration once.

  fn(input_data, tree_parameters, tree_biases, backend=None, check_finite=False)
      -> np.ndarray[float32, (n_points, max_nodes)]

  fn.leaf_probabilities(probabilities)
      -> np.ndarray[float32, (n_points, n_leaves)]

  route(input_data, tree_parameters, tree_biases, layer_num, max_nodes,
        num_features_per_node, random_seed, backend='best')
      One-shot functional form of the above.

  logistic_gate(point, feature_subset, weights, bias) -> float

Inputs
------
  input_data      float32 (n_points, n_features)
  tree_parameters float32 (>= n_internal, >= k)   gate weights, row per node
  tree_biases     float32 (>= n_internal,)        gate biases

Output invariants
-----------------
  probs[i, 0] == 1
  probs[i, 2j+1] + probs[i, 2j+2] == probs[i, j]   for every internal j
  probs[i, n_internal:].sum() == 1                 leaves form a distribution

Logging
-------
The module logs system and backend status at INFO on first import, the
bound configuration when a routing function is built, and the batch shape
and backend of every call.  Silence it with ``softroute.quiet()`` or
``logging.getLogger('softroute').setLevel(logging.WARNING)``.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from softroute._errors import ConfigurationError, ShapeError
from softroute._features import (
    MASK32,
    select_features,
    validate_features_per_node,
    validate_subset_size,
)
from softroute._tree import TreeLayout
from softroute._utils import stable_sigmoid, check_tensor_bounds
from softroute._utils import check_finite as check_array_finite
from softroute._logging import (
    log_optimization_status,
    install_numba_warning_filter,
    log_backend_availability,
    log_routing_configuration,
    log_routing_call,
    log_kernel_compile,
    log_backend_fallback,
)
from softroute._backend import (
    get_available_backends,
    get_best_backend,
    resolve_backend,
    import_cpu_kernels,
)
from softroute._context import get_backend_override


logger = logging.getLogger(__name__)

_cpu_import_ok, _k_feature_routing_njit, _ = import_cpu_kernels()
_BACKENDS_AVAILABLE = get_available_backends()

# Track first calls to kernels for compilation logging
_kernel_first_call = {
    "cpu-parallel-routing": True,
}

# Log system info and backend availability on module import
log_optimization_status()
log_backend_availability(_BACKENDS_AVAILABLE)
install_numba_warning_filter()


def logistic_gate(
    point: np.ndarray, feature_subset: Sequence[int], weights: np.ndarray, bias: float
) -> float:
    """
    Left-branch probability of one gate.

    ``sigmoid(bias + sum_s weights[s] * point[feature_subset[s]])``; the
    right branch gets the complement.  ``weights`` must have at least
    ``len(feature_subset)`` entries.

    Examples
    --------
    >>> round(logistic_gate(np.array([2.0]), (0,), np.array([1.0]), 0.0), 4)
    0.8808
    """
    acc = 0.0
    for s, feature in enumerate(feature_subset):
        acc += float(weights[s]) * float(point[feature])
    return stable_sigmoid(float(bias) + acc)


class KFeatureRoutingFunction:
    """
    Routing probabilities for a soft tree whose gates each use k features.

    Scalar configuration is validated here, once, so that a malformed tree
    never reaches a kernel.

    Parameters
    ----------
    layer_num : int
        The layer number of this tree.
    max_nodes : int
        The number of nodes in the tree.  Must be odd so the tree is
        complete.
    num_features_per_node : int
        The number of features each node can use to make a decision.
    random_seed : int
        The base random seed.
    backend : str, default 'best'
        Default execution backend: 'best', 'python' or 'cpu-parallel'.

    Attributes (read-only after construction)
    -----------------------------------------
    layout : TreeLayout    index arithmetic for the tree
    backend : str          default backend specification

    Raises
    ------
    ConfigurationError
        If ``max_nodes`` is not a positive odd integer,
        ``num_features_per_node`` is negative, or ``backend`` is not
        available.

    Examples
    --------
    >>> fn = KFeatureRoutingFunction(layer_num=0, max_nodes=3,
    ...                              num_features_per_node=1, random_seed=0)
    >>> fn(np.array([[2.0]]), np.array([[1.0]]), np.array([0.0])).round(4)
    array([[1.    , 0.8808, 0.1192]], dtype=float32)
    """

    def __init__(
        self,
        layer_num: int,
        max_nodes: int,
        num_features_per_node: int,
        random_seed: int,
        backend: str = "best",
    ) -> None:
        self.layout = TreeLayout(max_nodes)
        self.layer_num = int(layer_num)
        self.max_nodes = self.layout.max_nodes
        self.num_features_per_node = validate_features_per_node(
            num_features_per_node
        )
        self.random_seed = int(random_seed)

        # Only the low 32 bits of each key reach the selector, so masking
        # here keeps the kernel arguments inside int64.
        self._layer_key = self.layer_num & MASK32
        self._seed_key = self.random_seed & MASK32

        try:
            resolve_backend(backend)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self.backend = backend

        log_routing_configuration(
            self.layer_num,
            self.max_nodes,
            self.layout.n_internal,
            self.layout.depth,
            self.num_features_per_node,
            self.random_seed,
        )

    def __repr__(self) -> str:
        return (
            f"KFeatureRoutingFunction(layer_num={self.layer_num}, "
            f"max_nodes={self.max_nodes}, "
            f"num_features_per_node={self.num_features_per_node}, "
            f"random_seed={self.random_seed}, backend={self.backend!r})"
        )

    # ================================================================== #
    # Evaluation                                                           #
    # ================================================================== #

    def __call__(
        self,
        input_data,
        tree_parameters,
        tree_biases,
        backend: Optional[str] = None,
        check_finite: bool = False,
    ) -> np.ndarray:
        """
        Probability that each input reaches each node of the tree.

        Parameters
        ----------
        input_data : array_like, shape (n_points, n_features)
            ``input_data[i][j]`` gives the j-th feature of the i-th input.
        tree_parameters : array_like, shape (>= n_internal, >= k)
            ``tree_parameters[j]`` gives the weights of node j's logistic
            gate over its k selected features.
        tree_biases : array_like, shape (>= n_internal,)
            ``tree_biases[j]`` gives the bias of node j's logistic gate.
        backend : str or None, default None
            Overrides the instance backend for this call.  An unavailable
            backend is logged at WARNING and replaced by the best one.
        check_finite : bool, default False
            Reject NaN/Inf in any input before computing.  By default
            inputs are assumed to have been checked by the caller.

        Returns
        -------
        np.ndarray[float32, shape=(n_points, max_nodes)]
            ``probabilities[i][j]`` is the probability that input i will
            reach node j.

        Raises
        ------
        ShapeError
            If a non-empty batch is not 2-D, or the parameter arrays are
            too small for the tree.
        ConfigurationError
            If ``num_features_per_node`` exceeds the feature count.
        InvalidArgumentError
            If ``check_finite`` is set and an input is not finite, or a
            dimension is too large for 32-bit indexing.
        """
        # ── 1. Validate the batch ────────────────────────────────────────
        data = np.asarray(input_data, dtype=np.float32)
        if data.ndim == 0:
            raise ShapeError("input_data must be at least one-dimensional")
        check_tensor_bounds(data, "input_data")

        n_points = data.shape[0]
        if n_points == 0:
            return np.zeros((0, self.max_nodes), dtype=np.float32)

        if data.ndim != 2:
            raise ShapeError(
                f"input_data should be two-dimensional, got shape {data.shape}"
            )
        n_features = data.shape[1]
        k = self.num_features_per_node
        n_internal = self.layout.n_internal
        validate_subset_size(n_features, k)

        # ── 2. Validate node parameters ──────────────────────────────────
        params = np.asarray(tree_parameters, dtype=np.float32)
        biases = np.asarray(tree_biases, dtype=np.float32)
        self._check_parameter_shapes(params, biases)

        if check_finite:
            check_finite_arrays(data, params, biases)

        data = np.ascontiguousarray(data)
        params = np.ascontiguousarray(params)
        biases = np.ascontiguousarray(biases)

        # ── 3. Resolve backend and log execution mode ────────────────────
        resolved_backend = self._resolve_call_backend(backend)
        log_routing_call(n_points, n_features, self.max_nodes, resolved_backend)

        # ── 4. Dispatch to the selected backend ──────────────────────────
        probs_out = np.zeros((n_points, self.max_nodes), dtype=np.float32)
        kernel_args = (
            data,
            params,
            biases,
            self._layer_key,
            self._seed_key,
            n_internal,
            k,
            n_points,
            n_features,
            probs_out,
        )

        if resolved_backend == "cpu-parallel":
            if _kernel_first_call.get("cpu-parallel-routing", False):
                log_kernel_compile("cpu-parallel-routing")
                _kernel_first_call["cpu-parallel-routing"] = False
            _k_feature_routing_njit(*kernel_args)
        elif resolved_backend == "python":
            KFeatureRoutingFunction._routing_kernel(*kernel_args)
        else:
            # This should never be reached due to validation above
            raise RuntimeError(
                f"Internal error: unhandled backend {resolved_backend!r}"
            )
        return probs_out

    def leaf_probabilities(self, probabilities: np.ndarray) -> np.ndarray:
        """
        Leaf columns of a routing table; each row sums to 1.

        Parameters
        ----------
        probabilities : np.ndarray, shape (n_points, max_nodes)
            Output of a call to this routing function.

        Returns
        -------
        np.ndarray, shape (n_points, n_leaves)
            View of the leaf columns.
        """
        probabilities = np.asarray(probabilities)
        if probabilities.ndim != 2 or probabilities.shape[1] != self.max_nodes:
            raise ShapeError(
                f"expected a table with {self.max_nodes} columns, "
                f"got shape {probabilities.shape}"
            )
        return probabilities[:, self.layout.n_internal:]

    # ================================================================== #
    # Internal helpers                                                     #
    # ================================================================== #

    def _check_parameter_shapes(self, params: np.ndarray, biases: np.ndarray) -> None:
        n_internal = self.layout.n_internal
        k = self.num_features_per_node
        if params.ndim != 2:
            raise ShapeError(
                f"tree_parameters should be two-dimensional, got shape {params.shape}"
            )
        if params.shape[0] < n_internal or params.shape[1] < k:
            raise ShapeError(
                f"tree_parameters of shape {params.shape} cannot hold "
                f"{n_internal} gates of {k} weights"
            )
        if biases.ndim != 1:
            raise ShapeError(
                f"tree_biases should be one-dimensional, got shape {biases.shape}"
            )
        if biases.shape[0] < n_internal:
            raise ShapeError(
                f"tree_biases has {biases.shape[0]} entries, "
                f"need one per internal node ({n_internal})"
            )
        check_tensor_bounds(params, "tree_parameters")

    def _resolve_call_backend(self, backend: Optional[str]) -> str:
        # Context-manager override wins, then the per-call argument, then
        # the instance default.
        backend_override = get_backend_override()
        if backend_override is not None:
            backend = backend_override
        elif backend is None:
            backend = self.backend

        try:
            return resolve_backend(backend)
        except ValueError as e:
            fallback = get_best_backend()
            log_backend_fallback(str(e), fallback)
            return fallback

    @staticmethod
    def _routing_kernel(
        input_data,
        tree_parameters,
        tree_biases,
        layer_num,
        random_seed,
        n_internal,
        k,
        n_points,
        n_features,
        probs_out,
    ) -> None:
        """
        Pure-Python reference implementation of the routing kernel.

        Same signature and arithmetic as ``_k_feature_routing_njit``: the
        gate sum is accumulated in float64 and stored as float32.  Serves as
        the correctness baseline for the compiled backend.
        """
        for i in range(n_points):
            point = input_data[i]
            probs_out[i, 0] = 1.0

            for j in range(n_internal):
                feature_set = select_features(
                    layer_num, i, random_seed, n_features, k
                )
                left_child = 2 * j + 1
                right_child = left_child + 1

                prob = float(probs_out[i, j])
                left_prob = logistic_gate(
                    point, feature_set, tree_parameters[j], tree_biases[j]
                )
                probs_out[i, left_child] = prob * left_prob
                probs_out[i, right_child] = prob * (1.0 - left_prob)


def check_finite_arrays(input_data, tree_parameters, tree_biases) -> None:
    """Apply ``check_finite`` to all three routing inputs."""
    check_array_finite(input_data, "input_data")
    check_array_finite(tree_parameters, "tree_parameters")
    check_array_finite(tree_biases, "tree_biases")


def route(
    input_data,
    tree_parameters,
    tree_biases,
    layer_num: int,
    max_nodes: int,
    num_features_per_node: int,
    random_seed: int,
    backend: str = "best",
    check_finite: bool = False,
) -> np.ndarray:
    """
    One-shot k-feature routing.

    Equivalent to ``KFeatureRoutingFunction(layer_num, max_nodes,
    num_features_per_node, random_seed, backend)(input_data,
    tree_parameters, tree_biases, check_finite=check_finite)``.

    Examples
    --------
    >>> probs = route([[2.0]], [[1.0]], [0.0], layer_num=0, max_nodes=3,
    ...               num_features_per_node=1, random_seed=0)
    >>> probs.shape
    (1, 3)
    """
    fn = KFeatureRoutingFunction(
        layer_num, max_nodes, num_features_per_node, random_seed, backend=backend
    )
    return fn(input_data, tree_parameters, tree_biases, check_finite=check_finite)

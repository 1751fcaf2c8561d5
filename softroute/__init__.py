"""
softroute
=========

k-feature routing functions for soft decision trees.

For a batch of feature vectors, *softroute* computes the probability that
each vector reaches every node of a complete binary soft decision tree.
Each internal node is a logistic gate over a deterministically chosen random
subset of ``k`` input features, keyed by a base seed, the tree's layer
number and the point's index in the batch.

Main Classes
------------
KFeatureRoutingFunction : Routing probabilities for one tree layer
FeatureSubsetSelector : Deterministic, stateless feature-subset selection
TreeLayout : Index arithmetic for the implicit complete binary tree

Functions
---------
route : One-shot routing call
select_features : Feature subset for one (layer, point) context
logistic_gate : Left-branch probability of a single gate

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
suppress_warnings : Suppress specific warnings
use_backend : Force specific computational backend
silent_benchmark : Combine quiet + backend selection + warning suppression

Backend Information
-------------------
get_available_backends : Query available computational backends
get_backend_info : Get comprehensive backend status

Examples
--------
Basic usage:

>>> import numpy as np
>>> from softroute import KFeatureRoutingFunction
>>> fn = KFeatureRoutingFunction(layer_num=0, max_nodes=7,
...                              num_features_per_node=2, random_seed=42)
>>> x = np.random.rand(100, 10).astype(np.float32)
>>> w = np.random.randn(3, 2).astype(np.float32)
>>> b = np.zeros(3, dtype=np.float32)
>>> probs = fn(x, w, b)
>>> probs.shape
(100, 7)
>>> np.allclose(fn.leaf_probabilities(probs).sum(axis=1), 1.0)
True

With context managers:

>>> from softroute import quiet, use_backend
>>> with quiet(), use_backend('python'):
...     probs = fn(x, w, b)
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main classes
from ._routing import KFeatureRoutingFunction, route, logistic_gate
from ._features import FeatureSubsetSelector, select_features
from ._tree import TreeLayout

# Errors
from ._errors import InvalidArgumentError, ConfigurationError, ShapeError

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    suppress_warnings,
    use_backend,
    silent_benchmark,
)

# Utilities (generally useful functions)
from ._utils import (
    stable_sigmoid,
    check_tensor_bounds,
    check_finite,
)

# Backend information (useful for checking capabilities)
from ._backend import (
    get_available_backends,
    get_backend_info,
)

# Public API
__all__ = [
    # Main classes
    "KFeatureRoutingFunction",
    "FeatureSubsetSelector",
    "TreeLayout",
    # Functions
    "route",
    "select_features",
    "logistic_gate",
    # Errors
    "InvalidArgumentError",
    "ConfigurationError",
    "ShapeError",
    # Context managers
    "suppress_logger",
    "quiet",
    "suppress_warnings",
    "use_backend",
    "silent_benchmark",
    # Utilities
    "stable_sigmoid",
    "check_tensor_bounds",
    "check_finite",
    # Backend information
    "get_available_backends",
    "get_backend_info",
    # Version info
    "__version__",
]

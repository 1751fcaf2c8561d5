"""
_tree.py
========
Index arithmetic for the implicit complete binary tree of a routing layer.

The tree is never materialised.  Nodes are plain integers laid out in
breadth-first order, so every parent/child relationship is arithmetic:

  children(j) = (2j + 1, 2j + 2)
  parent(j)   = (j - 1) // 2

For ``max_nodes = 2m + 1`` the internal nodes are ``0 .. m-1`` and the
leaves are ``m .. 2m``.  Visiting internal nodes in increasing index order
finalises each node before either of its children is touched, which is the
only ordering the routing kernels depend on.

Public API
----------
  TreeLayout(max_nodes)
      Constructor.  Raises ConfigurationError unless ``max_nodes`` is odd
      and positive.

  .children(j), .parent(j), .is_leaf(j), .node_depth(j)
  .internal_indices(), .leaf_indices()
"""

import numpy as np

from softroute._errors import ConfigurationError


def validate_max_nodes(max_nodes: int) -> int:
    """
    Check that ``max_nodes`` lays out a complete binary tree.

    Every internal node ``j < max_nodes // 2`` writes children at
    ``2j + 1`` and ``2j + 2``; for the last internal node that is
    ``max_nodes - 1`` only when ``max_nodes`` is odd.  An even value would
    write one column past the table, so it is rejected here instead of
    being truncated.

    Parameters
    ----------
    max_nodes : int
        Total number of nodes in the tree.

    Returns
    -------
    int
        ``max_nodes`` as a plain int.

    Raises
    ------
    ConfigurationError
        If ``max_nodes`` is not a positive odd integer.

    Examples
    --------
    >>> validate_max_nodes(7)
    7

    >>> validate_max_nodes(6)
    Traceback (most recent call last):
        ...
    softroute._errors.ConfigurationError: max_nodes must be a positive odd integer so that every internal node has two children in bounds, got 6
    """
    if isinstance(max_nodes, (bool, np.bool_)) or not isinstance(
        max_nodes, (int, np.integer)
    ):
        raise ConfigurationError(
            f"max_nodes must be an integer, got {type(max_nodes).__name__}"
        )
    max_nodes = int(max_nodes)
    if max_nodes < 1 or max_nodes % 2 == 0:
        raise ConfigurationError(
            "max_nodes must be a positive odd integer so that every internal "
            f"node has two children in bounds, got {max_nodes}"
        )
    return max_nodes


class TreeLayout:
    """
    Breadth-first index layout of a complete binary tree.

    Parameters
    ----------
    max_nodes : int
        Total node count; must be odd and positive.

    Attributes (read-only after construction)
    -----------------------------------------
    max_nodes  : int   Total number of nodes.
    n_internal : int   Number of internal (gate) nodes, ``max_nodes // 2``.
    n_leaves   : int   Number of leaves, ``n_internal + 1``.
    depth      : int   Depth of the deepest leaf (edges from the root).

    Examples
    --------
    >>> layout = TreeLayout(7)
    >>> layout.n_internal, layout.n_leaves, layout.depth
    (3, 4, 2)
    >>> layout.children(1)
    (3, 4)
    >>> layout.leaf_indices()
    array([3, 4, 5, 6], dtype=int32)
    """

    def __init__(self, max_nodes: int) -> None:
        self.max_nodes = validate_max_nodes(max_nodes)
        self.n_internal = self.max_nodes // 2
        self.n_leaves = self.n_internal + 1
        self.depth = self.node_depth(self.max_nodes - 1)

    def __repr__(self) -> str:
        return (
            f"TreeLayout(max_nodes={self.max_nodes}, "
            f"n_internal={self.n_internal}, depth={self.depth})"
        )

    def _check_node(self, j: int) -> int:
        j = int(j)
        if not 0 <= j < self.max_nodes:
            raise IndexError(f"node {j} out of range [0, {self.max_nodes})")
        return j

    def children(self, j: int):
        """Return ``(left, right)`` child indices of internal node ``j``."""
        j = self._check_node(j)
        if j >= self.n_internal:
            raise ValueError(f"node {j} is a leaf and has no children")
        return 2 * j + 1, 2 * j + 2

    def parent(self, j: int) -> int:
        """Parent of node ``j``; -1 for the root."""
        j = self._check_node(j)
        return (j - 1) // 2 if j > 0 else -1

    def is_leaf(self, j: int) -> bool:
        return self._check_node(j) >= self.n_internal

    def node_depth(self, j: int) -> int:
        """Edge count from the root to node ``j``."""
        # Level d holds indices [2**d - 1, 2**(d+1) - 1).
        return (int(j) + 1).bit_length() - 1

    def internal_indices(self) -> np.ndarray:
        return np.arange(self.n_internal, dtype=np.int32)

    def leaf_indices(self) -> np.ndarray:
        return np.arange(self.n_internal, self.max_nodes, dtype=np.int32)

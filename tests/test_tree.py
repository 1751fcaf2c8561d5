"""
tests/test_tree.py
==================
Tests for the implicit complete-binary-tree layout (_tree.py).
"""

import numpy as np
import pytest

from softroute._errors import ConfigurationError
from softroute._tree import TreeLayout, validate_max_nodes


class TestValidateMaxNodes:
    @pytest.mark.parametrize("max_nodes", [1, 3, 5, 7, 15, 1023, 9])
    def test_odd_values_accepted(self, max_nodes):
        assert validate_max_nodes(max_nodes) == max_nodes

    @pytest.mark.parametrize("max_nodes", [0, 2, 4, 8, 1024, -1, -3])
    def test_even_or_non_positive_rejected(self, max_nodes):
        with pytest.raises(ConfigurationError, match="positive odd integer"):
            validate_max_nodes(max_nodes)

    def test_numpy_integer_accepted(self):
        assert validate_max_nodes(np.int64(7)) == 7
        assert isinstance(validate_max_nodes(np.int32(7)), int)

    @pytest.mark.parametrize("max_nodes", [7.0, "7", None, True])
    def test_non_integer_rejected(self, max_nodes):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            validate_max_nodes(max_nodes)


class TestTreeLayout:
    def test_single_node_tree(self):
        layout = TreeLayout(1)
        assert layout.n_internal == 0
        assert layout.n_leaves == 1
        assert layout.depth == 0
        assert layout.is_leaf(0)
        assert layout.internal_indices().size == 0
        assert list(layout.leaf_indices()) == [0]

    def test_perfect_tree(self):
        layout = TreeLayout(15)
        assert layout.n_internal == 7
        assert layout.n_leaves == 8
        assert layout.depth == 3
        assert list(layout.leaf_indices()) == list(range(7, 15))

    def test_non_perfect_odd_tree(self):
        # 9 nodes: internal 0..3, leaves 4..8; node 3's children are 7, 8.
        layout = TreeLayout(9)
        assert layout.n_internal == 4
        assert layout.children(3) == (7, 8)
        assert layout.depth == 3
        assert not layout.is_leaf(3)
        assert layout.is_leaf(4)

    def test_children_and_parent_are_inverse(self):
        layout = TreeLayout(31)
        for j in layout.internal_indices():
            left, right = layout.children(j)
            assert layout.parent(left) == j
            assert layout.parent(right) == j
        assert layout.parent(0) == -1

    def test_children_stay_in_bounds(self):
        for max_nodes in range(1, 64, 2):
            layout = TreeLayout(max_nodes)
            for j in layout.internal_indices():
                assert max(layout.children(j)) < max_nodes

    def test_parent_precedes_child(self):
        layout = TreeLayout(63)
        for j in range(1, 63):
            assert layout.parent(j) < j

    def test_children_of_leaf_rejected(self):
        layout = TreeLayout(7)
        with pytest.raises(ValueError, match="leaf"):
            layout.children(5)

    def test_out_of_range_node(self):
        layout = TreeLayout(7)
        with pytest.raises(IndexError):
            layout.parent(7)
        with pytest.raises(IndexError):
            layout.is_leaf(-1)

    def test_node_depth(self):
        layout = TreeLayout(15)
        assert [layout.node_depth(j) for j in range(15)] == (
            [0] + [1] * 2 + [2] * 4 + [3] * 8
        )

    def test_index_dtypes(self):
        layout = TreeLayout(7)
        assert layout.internal_indices().dtype == np.int32
        assert layout.leaf_indices().dtype == np.int32

    def test_repr(self):
        assert repr(TreeLayout(7)) == "TreeLayout(max_nodes=7, n_internal=3, depth=2)"

    def test_even_max_nodes_rejected(self):
        with pytest.raises(ConfigurationError):
            TreeLayout(6)

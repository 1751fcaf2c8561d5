"""
_errors.py
==========
Exception types raised by softroute.

Every exception derives from the builtin ``ValueError`` so callers that
already guard routing calls with ``except ValueError`` keep working.
"""


class InvalidArgumentError(ValueError):
    """An argument passed to a routing operation is invalid."""


class ConfigurationError(InvalidArgumentError):
    """
    Scalar configuration cannot describe a valid routing computation.

    Raised for ``num_features_per_node > num_features``, non-positive
    feature counts, or a ``max_nodes`` that does not lay out a complete
    binary tree.
    """


class ShapeError(InvalidArgumentError):
    """An input array has the wrong rank or is too small for the tree."""

"""
Deterministic feature-subset selection for k-feature routing gates.

Each gate looks at only ``k`` of the ``F`` input features.  Which ``k`` is a
pure function of ``(seed, layer_num, point_index, F, k)``: there is no
generator object and no module-level random state, so any thread or process
asking for the same context gets the same subset.

Stream derivation
-----------------
The three integer keys are reduced to 32 bits and each is passed through the
murmur3 ``fmix32`` finalizer under its own salt.  Those three words, plus a
fourth word mixed from all of them, seed an XorShift128 generator.  Because
``fmix32`` is a bijection on 32-bit words, two different
``(layer_num, point_index)`` pairs under the same seed always start from
different generator states.

Subset draw
-----------
A partial Fisher-Yates shuffle of ``range(F)``: step ``s`` swaps position
``s`` with ``s + next() % (F - s)``.  The first ``k`` positions, in draw
order, are the subset.  The shuffle is tracked sparsely so a call costs
O(k) regardless of ``F``.

The numba kernel in ``_cpu_kernels`` carries an identical copy of this
algorithm; both must stay in lock-step.
"""

from typing import Tuple

import numpy as np

from softroute._errors import ConfigurationError


MASK32 = 0xFFFFFFFF

SALT_SEED = 0x9E3779B9  # Golden ratio constant
SALT_LAYER = 0x7F4A7C15
SALT_POINT = 0x165667B1
SALT_TAIL = 0x27D4EB2F

# Outputs discarded after seeding so that low-entropy keys diffuse across
# all four state words before the first draw.
WARMUP_STEPS = 8


def fmix32(h: int) -> int:
    """murmur3 32-bit finalizer; a bijection on ``[0, 2**32)``."""
    h &= MASK32
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & MASK32
    h ^= h >> 16
    return h


def init_state(seed: int, layer_num: int, point_index: int) -> list:
    """
    Build the XorShift128 state for one ``(seed, layer, point)`` context.

    The last word is ``fmix32`` of a non-zero combination, so the state can
    never be all zeros (the one fixed point of XorShift128).
    """
    s0 = fmix32((seed & MASK32) ^ SALT_SEED)
    s1 = fmix32((layer_num & MASK32) ^ SALT_LAYER)
    s2 = fmix32((point_index & MASK32) ^ SALT_POINT)
    s3 = fmix32(s0 ^ s1 ^ s2 ^ SALT_TAIL)
    if s3 == 0:
        s3 = SALT_TAIL
    state = [s0, s1, s2, s3]
    for _ in range(WARMUP_STEPS):
        xorshift128_next(state)
    return state


def xorshift128_next(state: list) -> int:
    """Advance ``state`` in place and return the next 32-bit output."""
    t = state[3]
    s = state[0]
    state[3] = state[2]
    state[2] = state[1]
    state[1] = s

    t ^= (t << 11) & MASK32
    t ^= t >> 8
    state[0] = (t ^ s ^ (s >> 19)) & MASK32
    return state[0]


def validate_features_per_node(k) -> int:
    """
    Check that ``k`` is a non-negative integer and return it as an int.

    Examples
    --------
    >>> validate_features_per_node(np.int64(3))
    3

    >>> validate_features_per_node(1.7)
    Traceback (most recent call last):
        ...
    softroute._errors.ConfigurationError: num_features_per_node must be an integer, got float
    """
    if isinstance(k, (bool, np.bool_)) or not isinstance(k, (int, np.integer)):
        raise ConfigurationError(
            f"num_features_per_node must be an integer, got {type(k).__name__}"
        )
    k = int(k)
    if k < 0:
        raise ConfigurationError(
            f"num_features_per_node must be non-negative, got {k}"
        )
    return k


def validate_subset_size(num_features: int, k: int) -> None:
    """
    Raise ConfigurationError unless ``0 <= k <= num_features`` and
    ``num_features > 0``.
    """
    if num_features <= 0:
        raise ConfigurationError(
            f"num_features must be positive, got {num_features}"
        )
    if k < 0:
        raise ConfigurationError(
            f"num_features_per_node must be non-negative, got {k}"
        )
    if k > num_features:
        raise ConfigurationError(
            f"num_features_per_node ({k}) cannot exceed the number of "
            f"input features ({num_features})"
        )


def select_features(
    layer_num: int, point_index: int, seed: int, num_features: int, k: int
) -> Tuple[int, ...]:
    """
    Choose ``k`` distinct feature indices for one routing context.

    Parameters
    ----------
    layer_num : int
        Layer number of the tree.
    point_index : int
        Index of the data point within the batch.
    seed : int
        Base random seed.
    num_features : int
        Total number of input features ``F``.
    k : int
        Number of features to pick.

    Returns
    -------
    tuple of int
        ``k`` distinct indices in ``[0, num_features)``, in draw order.

    Raises
    ------
    ConfigurationError
        If ``num_features <= 0``, ``k < 0`` or ``k > num_features``.

    Examples
    --------
    >>> a = select_features(0, 5, 42, num_features=10, k=3)
    >>> a == select_features(0, 5, 42, num_features=10, k=3)
    True
    >>> len(set(a)), all(0 <= f < 10 for f in a)
    (3, True)

    >>> sorted(select_features(1, 0, 7, num_features=4, k=4))
    [0, 1, 2, 3]
    """
    num_features = int(num_features)
    k = int(k)
    validate_subset_size(num_features, k)

    state = init_state(int(seed), int(layer_num), int(point_index))

    # Sparse Fisher-Yates: `displaced[p]` holds the value now at position p
    # for every position a swap has touched.
    displaced = {}
    subset = []
    for s in range(k):
        r = s + xorshift128_next(state) % (num_features - s)
        subset.append(displaced.get(r, r))
        displaced[r] = displaced.get(s, s)
    return tuple(subset)


class FeatureSubsetSelector:
    """
    Feature-subset selection bound to one seed, feature count and ``k``.

    Holds no generator state: every ``select()`` call re-derives its stream
    from its arguments, so one instance may be shared freely across threads.

    Parameters
    ----------
    seed : int
        Base random seed.
    num_features : int
        Total number of input features ``F``.
    k : int
        Number of features per gate.

    Raises
    ------
    ConfigurationError
        If ``num_features <= 0``, ``k < 0`` or ``k > num_features``.

    Examples
    --------
    >>> selector = FeatureSubsetSelector(seed=42, num_features=10, k=3)
    >>> selector.select(0, 5) == select_features(0, 5, 42, 10, 3)
    True
    >>> selector.subset_matrix(layer_num=0, n_points=4).shape
    (4, 3)
    """

    def __init__(self, seed: int, num_features: int, k: int):
        self.seed = int(seed)
        self.num_features = int(num_features)
        self.k = int(k)
        validate_subset_size(self.num_features, self.k)

    def select(self, layer_num: int, point_index: int) -> Tuple[int, ...]:
        """Subset for one ``(layer_num, point_index)`` context."""
        return select_features(
            layer_num, point_index, self.seed, self.num_features, self.k
        )

    def subset_matrix(self, layer_num: int, n_points: int) -> np.ndarray:
        """
        Subsets for points ``0 .. n_points-1`` stacked as rows.

        Returns
        -------
        np.ndarray[int32, shape=(n_points, k)]
        """
        out = np.empty((n_points, self.k), dtype=np.int32)
        for i in range(n_points):
            out[i, :] = self.select(layer_num, i)
        return out

    def __repr__(self) -> str:
        return (
            f"FeatureSubsetSelector(seed={self.seed}, "
            f"num_features={self.num_features}, k={self.k})"
        )

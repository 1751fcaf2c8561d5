"""
_cpu_kernels.py
===============
CPU-accelerated k-feature routing kernels using Numba.

This module contains ONLY numba-accelerated code and imports nothing from
the rest of the package apart from plain integer constants, to avoid
import-time complications.

Exported Functions
------------------
_fmix32_nb : njit function
    murmur3 32-bit finalizer.

_select_features_nb : njit function
    Fill a length-k buffer with the feature subset for one context.
    Must match ``softroute._features.select_features`` exactly.

_sigmoid_nb : njit function
    Overflow-free logistic function.

_k_feature_routing_njit : njit function
    Parallel routing kernel over the batch.

Notes
-----
- 32-bit hash arithmetic is done in int64 and masked after every step.
  Products of two 32-bit words can wrap the int64 range; the low 32 bits
  are unaffected, so the masked result matches Python's exact integers.
- cache=True persists compiled binary to disk for faster subsequent runs
"""

import math

import numpy as np
from numba import njit, prange

from softroute._features import (
    MASK32,
    SALT_SEED,
    SALT_LAYER,
    SALT_POINT,
    SALT_TAIL,
    WARMUP_STEPS,
)


# ======================================================================== #
# Feature-subset selection                                                  #
# ======================================================================== #


@njit(cache=True)
def _fmix32_nb(h):
    h = h & MASK32
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & MASK32
    h ^= h >> 16
    return h


@njit(cache=True)
def _xorshift128_next_nb(state):
    """Advance the 4-word state array in place; return the next output."""
    t = state[3]
    s = state[0]
    state[3] = state[2]
    state[2] = state[1]
    state[1] = s

    t ^= (t << 11) & MASK32
    t ^= t >> 8
    state[0] = (t ^ s ^ (s >> 19)) & MASK32
    return state[0]


@njit(cache=True)
def _select_features_nb(layer_num, point_index, seed, num_features, k,
                        state, pool, subset_out):
    """
    Numba copy of ``select_features``.

    Parameters
    ----------
    layer_num, point_index, seed : int
        Context keys.
    num_features : int
        F; already validated positive.
    k : int
        Subset size; already validated ``0 <= k <= F``.
    state : int64[4]
        Scratch buffer for the generator state.
    pool : int64[F]
        Scratch buffer for the shuffle.
    subset_out : int64[k]
        Receives the subset in draw order.
    """
    s0 = _fmix32_nb((seed & MASK32) ^ SALT_SEED)
    s1 = _fmix32_nb((layer_num & MASK32) ^ SALT_LAYER)
    s2 = _fmix32_nb((point_index & MASK32) ^ SALT_POINT)
    s3 = _fmix32_nb(s0 ^ s1 ^ s2 ^ SALT_TAIL)
    if s3 == 0:
        s3 = SALT_TAIL
    state[0] = s0
    state[1] = s1
    state[2] = s2
    state[3] = s3
    for _ in range(WARMUP_STEPS):
        _xorshift128_next_nb(state)

    for p in range(num_features):
        pool[p] = p
    for s in range(k):
        r = s + _xorshift128_next_nb(state) % (num_features - s)
        tmp = pool[r]
        pool[r] = pool[s]
        pool[s] = tmp
        subset_out[s] = tmp


# ======================================================================== #
# Gate and propagation                                                      #
# ======================================================================== #


@njit(cache=True)
def _sigmoid_nb(x):
    if x >= 0.0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


@njit(parallel=True, cache=True)
def _k_feature_routing_njit(
        input_data,
        tree_parameters,
        tree_biases,
        layer_num,
        random_seed,
        n_internal,
        k,
        n_points,
        n_features,
        probs_out):
    """
    Numba-compiled k-feature routing kernel.

    The outer loop over points runs in parallel via prange; the inner loop
    over internal nodes is sequential because each node reads its parent's
    finished value.  No atomics are needed: each parallel thread owns its
    entire probs_out[i, :] row.

    The feature subset depends on the point, not the node, so it is drawn
    once per point and reused for every gate of that point.

    Parameters
    ----------
    input_data : float32[n_points, n_features]
        Batch of feature vectors.
    tree_parameters : float32[>= n_internal, >= k]
        Gate weights, one row per internal node.
    tree_biases : float32[>= n_internal]
        Gate biases.
    layer_num : int
        Layer number of the tree.
    random_seed : int
        Base random seed.
    n_internal : int
        Number of internal nodes, max_nodes // 2.
    k : int
        Features per gate.
    n_points : int
        Batch size N.
    n_features : int
        Feature count F.
    probs_out : float32[n_points, max_nodes]
        Output reach probabilities.
    """
    for i in prange(n_points):
        state = np.empty(4, dtype=np.int64)
        pool = np.empty(n_features, dtype=np.int64)
        subset = np.empty(k, dtype=np.int64)
        _select_features_nb(layer_num, np.int64(i), random_seed, n_features, k,
                            state, pool, subset)

        probs_out[i, 0] = 1.0
        for j in range(n_internal):
            acc = 0.0
            for s in range(k):
                acc += float(tree_parameters[j, s]) * float(input_data[i, subset[s]])
            left_prob = _sigmoid_nb(float(tree_biases[j]) + acc)

            prob = float(probs_out[i, j])
            probs_out[i, 2 * j + 1] = prob * left_prob
            probs_out[i, 2 * j + 2] = prob * (1.0 - left_prob)

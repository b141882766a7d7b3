# Copyright 2024 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Augmented Lagrangian terms for affine inequality constraints.

For constraint values c = A z - b (z = [x; u]), multipliers lam >= 0 and
penalty mu, the term added to the stage cost is

    lam' I c + (mu / 2) c' I c,   I = diag(mask),

where mask_i = 1 when the constraint is violated (c_i > 0) or its
multiplier is positive, and 0 otherwise. The mask is a selection, not a
function of z, so the derivatives treat it as constant:

    gradient = A' I (lam + mu c),   Hessian = mu A' I A.
"""

from typing import Tuple

import jax.numpy as jnp
from jax import Array


def active_set(c: Array, lam: Array) -> Array:
    """Float mask of constraints that enter the augmented term."""
    return jnp.logical_or(c > 0, lam > 0).astype(c.dtype)


def augmented_term(c: Array, lam: Array, mask: Array, penalty) -> Array:
    """lam' I c + (penalty / 2) c' I c for one timestep."""
    masked = mask * c
    return lam @ masked + 0.5 * penalty * (c @ masked)


def augmented_term_derivatives(
    A: Array,
    c: Array,
    lam: Array,
    mask: Array,
    penalty,
    n: int,
) -> Tuple[Array, Array, Array, Array, Array]:
    """Derivatives of the augmented term w.r.t. x and u.

    Args:
        A: Constraint matrix (p, n + m).
        c: Constraint values (p,) at the linearization point.
        lam: Multipliers (p,).
        mask: Active set (p,), from active_set(c, lam).
        penalty: Penalty parameter.
        n: State dimension, used to split z = [x; u].

    Returns:
        Tuple (g_x, g_u, H_xx, H_uu, H_xu) with H_xu of shape (n, m).
    """
    g = A.T @ (mask * (lam + penalty * c))
    H = penalty * (A.T * mask) @ A
    return g[:n], g[n:], H[:n, :n], H[n:, n:], H[:n, n:]


def update_multipliers(Lam: Array, C: Array, penalty) -> Array:
    """Projected first-order update lam <- max(0, lam + penalty * c)."""
    return jnp.maximum(0.0, Lam + penalty * C)


def max_violation(C: Array) -> Array:
    """Largest positive constraint value over a trajectory, 0 if none."""
    if C.size == 0:
        return jnp.zeros((), dtype=C.dtype)
    return jnp.max(jnp.maximum(C, 0.0))

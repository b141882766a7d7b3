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

"""Affine inequality constraints on the stacked vector z = [x; u].

A constraint A z - b <= 0 is enforced at every time index k = 0..T. The
terminal index uses the zero-padded control, so rows acting on u are
trivially evaluated there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import jax.numpy as jnp
import numpy as np
from jax import Array

from alilqr.exceptions import DimensionError


@dataclass(frozen=True, eq=False)
class Constraint:
    """Affine inequality A @ [x; u] - b <= 0.

    Attributes:
        A: Constraint matrix of shape (rows, n + m).
        b: Bound vector of shape (rows,).
    """

    A: Array
    b: Array

    def __post_init__(self):
        A = jnp.atleast_2d(jnp.asarray(self.A, dtype=float))
        b = jnp.atleast_1d(jnp.asarray(self.b, dtype=float))
        if A.ndim != 2:
            raise DimensionError("constraint matrix ndim", 2, A.ndim)
        if b.shape != (A.shape[0],):
            raise DimensionError("constraint bound shape", (A.shape[0],), b.shape)
        object.__setattr__(self, 'A', A)
        object.__setattr__(self, 'b', b)

    @property
    def num_rows(self) -> int:
        return self.A.shape[0]

    @property
    def width(self) -> int:
        return self.A.shape[1]

    def __call__(self, x: Array, u: Array) -> Array:
        return constraint_values(self.A, self.b, x, u)


def constraint_values(A: Array, b: Array, x: Array, u: Array) -> Array:
    """Evaluates A @ [x; u] - b; positive entries are violations."""
    return A @ jnp.concatenate([x, u]) - b


def stack_constraints(
    constraints: Sequence[Constraint],
    dim: int,
) -> Tuple[Array, Array]:
    """Stacks constraints row-wise into a single (A, b) pair.

    Args:
        constraints: Constraints, each of width dim.
        dim: Width n + m of the stacked vector [x; u].

    Returns:
        Tuple (A, b) of shapes (p, dim) and (p,), with p the total number of
        rows. With no constraints, p == 0.

    Raises:
        DimensionError: If a constraint does not act on a vector of size dim.
    """
    for i, c in enumerate(constraints):
        if c.width != dim:
            raise DimensionError(f"width of constraint {i}", dim, c.width)
    if not constraints:
        return jnp.zeros((0, dim)), jnp.zeros((0,))
    A = jnp.concatenate([c.A for c in constraints], axis=0)
    b = jnp.concatenate([c.b for c in constraints], axis=0)
    return A, b


def box_constraint(
    lower,
    upper,
    indices: Sequence[int],
    state_dim: int,
    control_dim: int,
) -> Constraint:
    """Box lower <= z[indices] <= upper on entries of z = [x; u].

    Infinite bounds produce no row. The rows are ordered upper bounds first,
    then lower bounds.

    Args:
        lower: Lower bounds, scalar or one per index.
        upper: Upper bounds, scalar or one per index.
        indices: Positions in [x; u] to bound; controls start at state_dim.
        state_dim: Dimension n of the state.
        control_dim: Dimension m of the control.

    Returns:
        Constraint with up to 2 * len(indices) rows.

    Example:
        >>> # |p_x| <= 1 for a point mass with state [p; v]
        >>> box = box_constraint(-1.0, 1.0, [0], state_dim=4, control_dim=2)
    """
    dim = state_dim + control_dim
    indices = np.asarray(indices, dtype=int).reshape(-1)
    if indices.size and (indices.min() < 0 or indices.max() >= dim):
        raise DimensionError("box constraint indices", f"in [0, {dim})",
                             indices.tolist())
    lower = np.broadcast_to(np.asarray(lower, dtype=float), indices.shape)
    upper = np.broadcast_to(np.asarray(upper, dtype=float), indices.shape)

    rows, bounds = [], []
    for i, ub in zip(indices, upper):
        if np.isfinite(ub):
            rows.append(np.eye(dim)[i])
            bounds.append(ub)
    for i, lb in zip(indices, lower):
        if np.isfinite(lb):
            rows.append(-np.eye(dim)[i])
            bounds.append(-lb)

    A = np.array(rows).reshape(len(rows), dim)
    return Constraint(A=A, b=np.array(bounds, dtype=float))

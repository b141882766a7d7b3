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

"""Costate recursion for the gradient of a trajectory cost.

Given the dynamics Jacobians and cost gradients along a rollout, the
gradient of the summed stage cost with respect to every control comes
from a single backward sweep. The solver reports its norm as a measure of
stationarity of the augmented problem.
"""

from typing import Tuple

import jax.numpy as jnp
from jax import Array, jit, lax


@jit
def adjoint(A: Array, B: Array, q: Array, r: Array) -> Tuple[Array, Array]:
    """Gradient of sum_t cost(x_t, u_t, t) w.r.t. the controls.

    With lam[T] = q[T] and, for t = T-1 down to 0,

        g[t]   = r[t] + B[t]' lam[t+1]
        lam[t] = q[t] + A[t]' lam[t+1],

    g[t] is the derivative of the total cost with respect to u[t] when the
    states are rolled out from a fixed x0.

    Args:
        A: State Jacobians of the dynamics, leading dimension T or T+1.
        B: Control Jacobians of the dynamics, leading dimension T or T+1.
        q: Cost gradients w.r.t. the state, shape (T+1, n).
        r: Cost gradients w.r.t. the control, leading dimension T or T+1.

    Returns:
        Tuple (g, lam) of shapes (T, m) and (T+1, n).
    """
    T = q.shape[0] - 1

    def sweep(lam_next, stage):
        A_t, B_t, q_t, r_t = stage
        lam_t = q_t + A_t.T @ lam_next
        return lam_t, (lam_t, r_t + B_t.T @ lam_next)

    _, (lam, g) = lax.scan(sweep, q[T], (A[:T], B[:T], q[:T], r[:T]),
                           reverse=True)
    return g, jnp.vstack([lam, q[T:]])

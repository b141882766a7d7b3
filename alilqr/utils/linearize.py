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

"""Per-timestep derivatives of a system along a trajectory.

Every knot point depends only on its own (x, u, k), so the derivative
callbacks of a `System` are batched over time with vmap.
"""

from typing import Callable, Tuple

from jax import Array, vmap
import jax.numpy as jnp


def vectorize(fun: Callable, argnums: int = 3) -> Callable:
    """Maps `fun` over axis 0 of its leading `argnums` positional arguments.

    Arguments after the first `argnums` are passed through unbatched, so
    `vectorize(cost)(X, pad(U), jnp.arange(T + 1), params)` evaluates
    `cost(X[k], U[k], k, params)` at every timestep.
    """
    def batched(*args):
        mapped, shared = args[:argnums], args[argnums:]
        per_step = lambda *step_args: fun(*step_args, *shared)
        return vmap(per_step)(*mapped)

    return batched


def pad(A: Array) -> Array:
    """Appends a zero row, turning (T, ...) controls into (T+1, ...)."""
    zeros = jnp.zeros((1,) + A.shape[1:], dtype=A.dtype)
    return jnp.concatenate([A, zeros], axis=0)


def linearize_system(system, X: Array, U: Array) -> Tuple[Array, ...]:
    """Linear dynamics and quadratic cost model around (X, U).

    The terminal knot point k == T sees the zero control from `pad`.

    Args:
        system: Object with dynamics_jacobians, cost_gradient and
            cost_hessian methods.
        X: States, shape (T+1, n).
        U: Controls, shape (T, m).

    Returns:
        (Q, q, R, r, M, A, B), each stacked over T+1 knot points:
        the cost Hessians and gradients in x and u, the mixed Hessian
        M of shape (n, m), and the dynamics Jacobians.
    """
    U_full = pad(U)
    steps = jnp.arange(X.shape[0])
    A, B = vectorize(system.dynamics_jacobians, argnums=2)(X, U_full)
    q, r = vectorize(system.cost_gradient)(X, U_full, steps)
    Q, R, M = vectorize(system.cost_hessian)(X, U_full, steps)
    return Q, q, R, r, M, A, B

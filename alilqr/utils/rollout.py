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

"""Forward simulation along open- and closed-loop control sequences.

`rollout` integrates a fixed control sequence. `ddp_rollout` applies the
affine policy produced by a backward pass around a nominal trajectory, and
`line_search_ddp` backtracks on its feedforward scale until the objective
goes down.
"""

from functools import partial
from typing import Callable, Tuple

import jax.numpy as jnp
from jax import Array, lax, jit

from alilqr.utils.linearize import vectorize


@partial(jit, static_argnums=(0,))
def rollout(dynamics: Callable, U: Array, x0: Array) -> Array:
    """States visited from `x0` under the controls `U`.

    Args:
        dynamics: Discrete step (x, u) -> x_next.
        U: Controls, shape (T, m).
        x0: Start state, shape (n,).

    Returns:
        States of shape (T+1, n), with x0 in row 0.
    """
    def step(x, u):
        x = dynamics(x, u)
        return x, x

    _, visited = lax.scan(step, x0, U)
    return jnp.concatenate([x0[None], visited], axis=0)


@partial(jit, static_argnums=(0,))
def ddp_rollout(
    dynamics: Callable,
    X: Array,
    U: Array,
    K: Array,
    k: Array,
    alpha: float,
) -> Tuple[Array, Array]:
    """Closed-loop rollout of the policy u = U + alpha k + K (x - X).

    The deviation feedback uses the state actually reached on the new
    trajectory, so for alpha == 0 the nominal (X, U) is reproduced.

    Args:
        dynamics: Discrete step (x, u) -> x_next.
        X: Nominal states, shape (T+1, n).
        U: Nominal controls, shape (T, m).
        K: Feedback gains, shape (T, m, n).
        k: Feedforward terms, shape (T, m).
        alpha: Scale on the feedforward term.

    Returns:
        (X_new, U_new) with the shapes of (X, U).
    """
    def step(x, policy):
        x_ref, u_ref, gain, ff = policy
        u = u_ref + alpha * ff + gain @ (x - x_ref)
        x_next = dynamics(x, u)
        return x_next, (x_next, u)

    _, (X_tail, U_new) = lax.scan(step, X[0], (X[:-1], U, K, k))
    return jnp.concatenate([X[:1], X_tail], axis=0), U_new


@partial(jit, static_argnums=(0, 1))
def line_search_ddp(
    total_cost: Callable,
    dynamics: Callable,
    X: Array,
    U: Array,
    K: Array,
    k: Array,
    obj: float,
    cost_args: Tuple = (),
    alpha_0: float = 1.0,
    alpha_min: float = 0.00005,
) -> Tuple[Array, Array, float, float]:
    """Backtracking search on the feedforward scale of a DDP step.

    Starting at `alpha_0`, the scale is halved until a closed-loop rollout
    strictly lowers the objective or the scale falls below `alpha_min`.
    A NaN objective on a candidate counts as no improvement.

    Args:
        total_cost: Objective (X, U, *cost_args) -> scalar.
        dynamics: Discrete step (x, u) -> x_next.
        X: Nominal states, shape (T+1, n).
        U: Nominal controls, shape (T, m).
        K: Feedback gains, shape (T, m, n).
        k: Feedforward terms, shape (T, m).
        obj: Objective of the nominal trajectory.
        cost_args: Trailing arguments forwarded to total_cost.
        alpha_0: First scale tried.
        alpha_min: Scale below which the search gives up.

    Returns:
        (X, U, obj, alpha). When nothing is accepted the nominal trajectory
        and objective come back unchanged, with alpha below alpha_min.
    """
    dtype = X.dtype
    reference = jnp.where(jnp.isnan(obj), jnp.inf, obj).astype(dtype)

    def searching(carry):
        _, _, best, alpha = carry
        return jnp.logical_and(best >= reference, alpha >= alpha_min)

    def attempt(carry):
        X_acc, U_acc, best, alpha = carry
        X_try, U_try = ddp_rollout(dynamics, X, U, K, k, alpha)
        value = total_cost(X_try, U_try, *cost_args).astype(dtype)
        value = jnp.where(jnp.isnan(value), reference, value)
        accept = value < reference
        return (
            jnp.where(accept, X_try, X_acc),
            jnp.where(accept, U_try, U_acc),
            jnp.minimum(value, best),
            jnp.where(accept, alpha, alpha / 2),
        )

    start = (X, U, reference, jnp.asarray(alpha_0, dtype=dtype))
    return lax.while_loop(searching, attempt, start)


def evaluate(cost: Callable, X: Array, U: Array, *args) -> Array:
    """Stage costs cost(X[k], U[k], k, *args) for k = 0..T.

    `U` must already be padded to T+1 rows; `args` are shared by every
    timestep.
    """
    return vectorize(cost)(X, U, jnp.arange(X.shape[0]), *args)

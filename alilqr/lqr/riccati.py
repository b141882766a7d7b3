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

"""Riccati recursions for time-varying LQ problems.

Provides the affine Riccati step used by the iLQR backward pass, which
reports whether the control Hessian was positive definite instead of
failing, and the classical homogeneous recursion used as a reference
finite-horizon LQR solution.
"""

from typing import Optional

import jax.numpy as jnp
import jax.scipy as jsp
from jax import Array, jit, lax

from alilqr.utils.psd import cholesky_or_nan, regularize_hessian, symmetrize


@jit
def dare_step(
    P: Array,
    Q: Array,
    R: Array,
    A: Array,
    B: Array,
    M: Optional[Array] = None,
    reg: float = 1e-8,
) -> tuple[Array, Array, Array]:
    """One step of the homogeneous discrete Riccati recursion.

    With S = A'PB + M and G = R + B'PB, the gain is K = -G^{-1} S' and the
    cost-to-go propagates as P_prev = Q + A'PA + S K.

    Returns:
        (P_prev, K, dV) where dV = trace(P - P_prev).
    """
    if M is None:
        M = jnp.zeros((A.shape[0], B.shape[1]), dtype=A.dtype)

    PB = P @ B
    S = A.T @ PB + M
    G = symmetrize(R + B.T @ PB)
    K = -jsp.linalg.solve(regularize_hessian(G, reg), S.T, assume_a='pos')
    P_prev = symmetrize(Q + A.T @ P @ A + S @ K)
    return P_prev, K, jnp.trace(P - P_prev)


def tvriccati_backward(
    Q: Array,
    R: Array,
    A: Array,
    B: Array,
    M: Optional[Array] = None,
    Q_T: Optional[Array] = None,
    reg: float = 1e-8,
) -> tuple[Array, Array]:
    """Finite-horizon LQR gains for x[t+1] = A[t] x[t] + B[t] u[t].

    The stage cost is 0.5 (x'Qx + u'Ru + 2x'Mu) and the terminal cost
    0.5 x'Q_T x, with Q_T falling back to Q[-1]. The optimal policy is
    u[t] = K[t] x[t].

    Args:
        Q: (T+1, n, n) or (T, n, n) when Q_T is given.
        R: (T, m, m).
        A: (T, n, n).
        B: (T, n, m).
        M: Optional (T, n, m) cross terms.
        Q_T: Optional terminal weight (n, n).
        reg: Diagonal shift added to R + B'PB.

    Returns:
        (P, K) with shapes (T+1, n, n) and (T, m, n).
    """
    T = A.shape[0]
    P_T = Q[-1] if Q_T is None else Q_T
    if M is None:
        M = jnp.zeros((T, A.shape[1], B.shape[2]), dtype=A.dtype)

    def backward(P_next, stage):
        P_t, K_t, _ = dare_step(P_next, *stage, reg=reg)
        return P_t, (P_t, K_t)

    _, (P, K) = lax.scan(
        backward, P_T, (Q[:T], R, A, B, M), reverse=True)
    return jnp.concatenate([P, P_T[None]], axis=0), K


def riccati_step(
    P: Array,
    p: Array,
    Q: Array,
    q: Array,
    R: Array,
    r: Array,
    M: Array,
    A: Array,
    B: Array,
    reg: float = 0.0,
):
    """Single affine Riccati step of the iLQR backward pass.

    Value function at t+1: V(dx) = 0.5 dx'P dx + p'dx. The local
    Q-function is built from the quadratic model of the stage cost and
    the linearized dynamics, and minimized over du = k + K dx using a
    Cholesky factorization of Q_uu + reg * I.

    Args:
        P: Value Hessian at t+1 (n, n).
        p: Value gradient at t+1 (n,).
        Q, q: Stage cost Hessian and gradient wrt state.
        R, r: Stage cost Hessian and gradient wrt control.
        M: Stage cost cross term d²c/dxdu (n, m).
        A, B: Dynamics Jacobians.
        reg: Multiple of the identity added to Q_uu before factorizing.

    Returns:
        Tuple (P_prev, p_prev, K, k, ok, dV) where ok is False when
        Q_uu + reg * I is not positive definite (the gains are then NaN),
        and dV = (k'Q_u, 0.5 k'Q_uu k) is the expected cost change.
    """
    Q_x = q + A.T @ p
    Q_u = r + B.T @ p
    Q_xx = Q + A.T @ P @ A
    Q_uu = symmetrize(R + B.T @ P @ B)
    Q_ux = M.T + B.T @ P @ A

    L = cholesky_or_nan(regularize_hessian(Q_uu, reg))
    K_k = jsp.linalg.cho_solve((L, True), -jnp.column_stack([Q_ux, Q_u]))
    K = K_k[:, :-1]
    k = K_k[:, -1]
    ok = jnp.logical_and(jnp.all(jnp.isfinite(L)), jnp.all(jnp.isfinite(K_k)))

    P_prev = symmetrize(Q_xx + K.T @ Q_uu @ K + K.T @ Q_ux + Q_ux.T @ K)
    p_prev = Q_x + K.T @ Q_uu @ k + K.T @ Q_u + Q_ux.T @ k
    dV = jnp.stack([k @ Q_u, 0.5 * k @ Q_uu @ k])

    return P_prev, p_prev, K, k, ok, dV


@jit
def tvlqr_backward(
    Q: Array,
    q: Array,
    R: Array,
    r: Array,
    M: Array,
    A: Array,
    B: Array,
    reg: float = 0.0,
):
    """Backward pass over a time-varying affine LQ model.

    Runs riccati_step from t = T-1 down to 0, starting from the terminal
    value function V_T(dx) = 0.5 dx'Q[T] dx + q[T]'dx.

    Args:
        Q: State cost Hessians (T+1, n, n).
        q: State cost gradients (T+1, n).
        R: Control cost Hessians (T+1, m, m) or (T, m, m).
        r: Control cost gradients (T+1, m) or (T, m).
        M: Cross terms (T+1, n, m) or (T, n, m).
        A: Dynamics Jacobians wrt state (T+1, n, n) or (T, n, n).
        B: Dynamics Jacobians wrt control (T+1, n, m) or (T, n, m).
        reg: Control Hessian regularization.

    Returns:
        Tuple (K, k, dV, ok):
            - K: Feedback gains (T, m, n)
            - k: Feedforward terms (T, m)
            - dV: Expected cost change terms summed over time, shape (2,)
            - ok: True if every Q_uu + reg * I was positive definite
    """
    T = Q.shape[0] - 1

    def body(carry, inputs):
        P, p, ok = carry
        P, p, K, k, step_ok, dV = riccati_step(P, p, *inputs, reg=reg)
        return (P, p, jnp.logical_and(ok, step_ok)), (K, k, dV)

    stage = (Q[:T], q[:T], R[:T], r[:T], M[:T], A[:T], B[:T])
    (_, _, ok), (K, k, dV) = lax.scan(
        body, (Q[T], q[T], jnp.asarray(True)), stage, reverse=True
    )
    return K, k, jnp.sum(dV, axis=0), ok

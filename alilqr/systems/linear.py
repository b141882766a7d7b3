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

"""Linear time-invariant system with a quadratic tracking cost."""

from typing import Optional

import jax.numpy as jnp
from jax import Array

from alilqr.core.system import System
from alilqr.exceptions import DimensionError


class LinearSystem(System):
    """x[k+1] = A x[k] + B u[k] with cost

        0.5 (x - x_goal)' Q (x - x_goal) + 0.5 u' R u      for k < T
        0.5 (x - x_goal)' Q_T (x - x_goal)                 for k = T

    Derivatives are analytic. Without constraints and with x_goal = 0 this
    is the finite-horizon LQR problem, which a single iLQR iteration solves
    exactly.
    """

    def __init__(
        self,
        A,
        B,
        Q,
        R,
        x0,
        horizon: int,
        Q_terminal=None,
        x_goal: Optional[Array] = None,
    ):
        A = jnp.asarray(A, dtype=float)
        B = jnp.atleast_2d(jnp.asarray(B, dtype=float))
        n, m = B.shape
        super().__init__(n, m, horizon, x0)

        Q = jnp.asarray(Q, dtype=float)
        R = jnp.atleast_2d(jnp.asarray(R, dtype=float))
        Q_terminal = Q if Q_terminal is None else jnp.asarray(Q_terminal,
                                                              dtype=float)
        for name, mat, shape in (('A', A, (n, n)), ('Q', Q, (n, n)),
                                 ('R', R, (m, m)),
                                 ('Q_terminal', Q_terminal, (n, n))):
            if mat.shape != shape:
                raise DimensionError(name, shape, mat.shape)

        self.A = A
        self.B = B
        self.Q = Q
        self.R = R
        self.Q_terminal = Q_terminal
        self.x_goal = (jnp.zeros(n) if x_goal is None
                       else jnp.asarray(x_goal, dtype=float))
        if self.x_goal.shape != (n,):
            raise DimensionError("x_goal", (n,), self.x_goal.shape)

    def _state_weight(self, k):
        return jnp.where(k == self.horizon, self.Q_terminal, self.Q)

    def dynamics(self, x, u):
        return self.A @ x + self.B @ u

    def cost(self, x, u, k):
        dx = x - self.x_goal
        return 0.5 * dx @ self._state_weight(k) @ dx + 0.5 * u @ self.R @ u

    def dynamics_jacobians(self, x, u):
        return self.A, self.B

    def cost_gradient(self, x, u, k):
        return self._state_weight(k) @ (x - self.x_goal), self.R @ u

    def cost_hessian(self, x, u, k):
        return (self._state_weight(k), self.R,
                jnp.zeros((self.state_dim, self.control_dim)))

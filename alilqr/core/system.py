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

"""System contract consumed by the AL-iLQR solver."""

from __future__ import annotations

import abc
from typing import Tuple

import jax
import jax.numpy as jnp
from jax import Array

from alilqr.exceptions import ConfigurationError, DimensionError
from alilqr.utils.linearize import pad, vectorize
from alilqr.utils.rollout import rollout


class System(abc.ABC):
    """Discrete-time system with a time-indexed stage cost.

    The optimal control problem solved for a System is

        min  sum_{k=0}^{T} cost(x_k, u_k, k)
        s.t. x_{k+1} = dynamics(x_k, u_k),  x_0 = x0

    where u_T is the zero vector, so terminal costs are written as a branch
    on k == horizon inside cost().

    Subclasses implement dynamics() and cost(). Derivatives default to JAX
    autodiff and may be overridden with analytic versions. A System is
    treated as immutable while a solver holds it; its bound methods are
    passed to jit as static arguments and must stay hashable, so subclasses
    should not be dataclasses with eq=True.

    Attributes:
        state_dim: Dimension of the state vector (n).
        control_dim: Dimension of the control vector (m).
        horizon: Number of controls (T). Trajectories have T+1 states.
        x0: Initial state of shape (n,).

    Example:
        >>> class Integrator(System):
        ...     def dynamics(self, x, u):
        ...         return x + 0.1 * u
        ...     def cost(self, x, u, k):
        ...         return 0.5 * (x @ x + u @ u)
        ...
        >>> system = Integrator(2, 2, horizon=50, x0=jnp.ones(2))
    """

    def __init__(self, state_dim: int, control_dim: int, horizon: int, x0):
        if state_dim < 1:
            raise ConfigurationError(f"state_dim must be >= 1, got {state_dim}")
        if control_dim < 1:
            raise ConfigurationError(
                f"control_dim must be >= 1, got {control_dim}")
        if horizon < 1:
            raise ConfigurationError(f"horizon must be >= 1, got {horizon}")

        x0 = jnp.asarray(x0)
        if x0.shape != (state_dim,):
            raise DimensionError("x0", (state_dim,), x0.shape)

        self.state_dim = int(state_dim)
        self.control_dim = int(control_dim)
        self.horizon = int(horizon)
        self.x0 = x0

    @abc.abstractmethod
    def dynamics(self, x: Array, u: Array) -> Array:
        """Next state x_{k+1} = f(x_k, u_k)."""

    @abc.abstractmethod
    def cost(self, x: Array, u: Array, k) -> Array:
        """Stage cost at time index k, for k = 0..horizon."""

    def dynamics_jacobians(self, x: Array, u: Array) -> Tuple[Array, Array]:
        """Jacobians (df/dx, df/du) of the dynamics."""
        return jax.jacobian(self.dynamics, argnums=(0, 1))(x, u)

    def cost_gradient(self, x: Array, u: Array, k) -> Tuple[Array, Array]:
        """Gradients (l_x, l_u) of the stage cost."""
        return jax.grad(self.cost, argnums=(0, 1))(x, u, k)

    def cost_hessian(self, x: Array, u: Array, k) -> Tuple[Array, Array, Array]:
        """Second derivatives (l_xx, l_uu, l_xu) of the stage cost.

        l_xu has shape (n, m).
        """
        l_xx = jax.hessian(self.cost, argnums=0)(x, u, k)
        l_uu = jax.hessian(self.cost, argnums=1)(x, u, k)
        l_xu = jax.jacobian(jax.grad(self.cost, argnums=0), argnums=1)(x, u, k)
        return l_xx, l_uu, l_xu

    def rollout(self, U: Array) -> Array:
        """State trajectory (T+1, n) obtained by applying U from x0."""
        return rollout(self.dynamics, U, self.x0)

    def total_cost(self, X: Array, U: Array) -> Array:
        """Sum of stage costs along a trajectory, terminal step included."""
        timesteps = jnp.arange(X.shape[0])
        return jnp.sum(vectorize(self.cost)(X, pad(U), timesteps))

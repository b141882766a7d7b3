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

"""Planar point mass (double integrator) reaching a goal position."""

import jax.numpy as jnp

from alilqr.core.system import System
from alilqr.exceptions import DimensionError
from alilqr.utils.integrators import get_integrator


class PointMass(System):
    """2D double integrator with state [p; v] and acceleration control.

    The continuous dynamics dp/dt = v, dv/dt = u are discretized with the
    given integrator (RK4 by default, exact for this system). The cost is

        0.5 * (control_weight |u|^2 + position_weight |p - goal|^2)    k < T
        0.5 * (terminal_position_weight |p - goal|^2
               + terminal_velocity_weight |v|^2)                       k = T

    Example:
        >>> system = PointMass(jnp.zeros(4), goal=[1.5, 0.5], horizon=30)
        >>> box = box_constraint(-1.0, 1.0, [0], state_dim=4, control_dim=2)
    """

    def __init__(
        self,
        x0,
        goal,
        horizon: int,
        dt: float = 0.1,
        integrator: str = 'rk4',
        control_weight: float = 0.01,
        position_weight: float = 0.0,
        terminal_position_weight: float = 1.0,
        terminal_velocity_weight: float = 1.0,
    ):
        super().__init__(4, 2, horizon, x0)
        self.goal = jnp.asarray(goal, dtype=float)
        if self.goal.shape != (2,):
            raise DimensionError("goal", (2,), self.goal.shape)
        self.dt = dt
        self.control_weight = control_weight
        self.position_weight = position_weight
        self.terminal_position_weight = terminal_position_weight
        self.terminal_velocity_weight = terminal_velocity_weight
        self._step = get_integrator(integrator)(self._continuous_dynamics, dt)

    @staticmethod
    def _continuous_dynamics(x, u):
        return jnp.concatenate([x[2:], u])

    def dynamics(self, x, u):
        return self._step(x, u)

    def cost(self, x, u, k):
        dp = x[:2] - self.goal
        v = x[2:]
        running = 0.5 * (self.control_weight * u @ u
                         + self.position_weight * dp @ dp)
        terminal = 0.5 * (self.terminal_position_weight * dp @ dp
                          + self.terminal_velocity_weight * v @ v)
        return jnp.where(k == self.horizon, terminal, running)

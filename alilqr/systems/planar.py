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

"""Planar serial manipulator reaching task-space keypoints.

The arm is velocity controlled: the state holds the joint angles q and the
control the joint velocities. In spacetime mode the state carries a
trailing time variable t and the control a trailing time-rate s, with

    t[k+1] = t[k] + dt * (1 + s[k]),

so the planner can stretch or compress the schedule at which keypoints are
reached. Keypoints are then compared against the time-augmented task state
[x, y, theta, t].
"""

from typing import Sequence, Tuple

import jax.numpy as jnp
from jax import Array

from alilqr.core.keypoints import Keypoint
from alilqr.core.system import System
from alilqr.exceptions import ConfigurationError, DimensionError
from alilqr.utils.integrators import euler


class PlanarManipulator(System):
    """Planar arm with revolute joints and a keypoint reaching cost.

    Cost at timestep k:

        0.5 * control_weight |u|^2
        + sum_i [k == k_i] 0.5 * keypoint_weight |keypoint_i.diff(task)|^2

    Args:
        link_lengths: Length of every link, base to end effector.
        x0: Initial joint angles, followed by the initial time in spacetime
            mode.
        horizon: Number of controls T.
        keypoints: Pairs (k_i, keypoint) with 0 <= k_i <= T.
        dt: Integration step.
        spacetime: Whether to append the time state and time-rate control.
        control_weight: Weight of the control effort.
        keypoint_weight: Weight of the keypoint residuals.
    """

    def __init__(
        self,
        link_lengths: Sequence[float],
        x0,
        horizon: int,
        keypoints: Sequence[Tuple[int, Keypoint]] = (),
        dt: float = 0.1,
        spacetime: bool = False,
        control_weight: float = 0.01,
        keypoint_weight: float = 1.0,
    ):
        self.link_lengths = jnp.asarray(link_lengths, dtype=float).reshape(-1)
        self.num_joints = self.link_lengths.shape[0]
        if self.num_joints < 1:
            raise DimensionError("number of links", ">= 1", self.num_joints)
        self.spacetime = spacetime
        dim = self.num_joints + int(spacetime)
        super().__init__(dim, dim, horizon, x0)

        self.keypoints = []
        for timestep, keypoint in keypoints:
            if not 0 <= timestep <= horizon:
                raise ConfigurationError(
                    f"keypoint timestep must be in [0, {horizon}], "
                    f"got {timestep}")
            self.keypoints.append((int(timestep), keypoint))
        self.dt = dt
        self.control_weight = control_weight
        self.keypoint_weight = keypoint_weight
        self._step = euler(self._continuous_dynamics, dt)

    def _continuous_dynamics(self, x, u):
        if self.spacetime:
            return jnp.concatenate([u[:-1], 1.0 + u[-1:]])
        return u

    def dynamics(self, x, u):
        return self._step(x, u)

    def forward_kinematics(self, q: Array) -> Array:
        """End-effector pose [x, y, theta] for joint angles q."""
        angles = jnp.cumsum(q)
        return jnp.array([
            self.link_lengths @ jnp.cos(angles),
            self.link_lengths @ jnp.sin(angles),
            angles[-1],
        ])

    def task_state(self, x: Array) -> Array:
        """End-effector pose, followed by the time in spacetime mode."""
        pose = self.forward_kinematics(x[:self.num_joints])
        if self.spacetime:
            return jnp.concatenate([pose, x[-1:]])
        return pose

    def cost(self, x, u, k):
        total = 0.5 * self.control_weight * u @ u
        if not self.keypoints:
            return total
        task = self.task_state(x)
        for timestep, keypoint in self.keypoints:
            residual = keypoint.diff(task)
            total += jnp.where(k == timestep,
                               0.5 * self.keypoint_weight * residual @ residual,
                               0.0)
        return total

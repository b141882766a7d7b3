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

"""Task-space targets ("keypoints") for reaching costs.

A keypoint exposes its target state and the residual between that target
and a task-space state. The time-augmented variant wraps a pose keypoint
and appends the time at which the pose should be reached, so a planner
with a time state can trade path length against arrival time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

import jax.numpy as jnp
from jax import Array

from alilqr.utils.manifold import angle_difference


class Keypoint(Protocol):
    """Target in task space."""

    def get_state(self) -> Array:
        ...

    def diff(self, state: Array) -> Array:
        """Residual target - state, same length as get_state()."""
        ...


@dataclass(frozen=True, eq=False)
class PoseKeypoint:
    """Planar pose target: position (2,) and optional orientation.

    The task-space state is [x, y] or [x, y, theta]. The orientation
    residual is wrapped to [-π, π).
    """

    position: Array
    orientation: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'position',
                           jnp.asarray(self.position, dtype=float).reshape(-1))

    @property
    def has_orientation(self) -> bool:
        return self.orientation is not None

    def get_state(self) -> Array:
        if self.orientation is None:
            return self.position
        return jnp.concatenate(
            [self.position, jnp.array([self.orientation], dtype=float)])

    def diff(self, state: Array) -> Array:
        d = self.position.shape[0]
        position_error = self.position - state[:d]
        if self.orientation is None:
            return position_error
        angle_error = angle_difference(self.orientation, state[d])
        return jnp.concatenate([position_error, angle_error[None]])


@dataclass(frozen=True, eq=False)
class SpacetimeKeypoint:
    """Pose keypoint with a target arrival time.

    Attributes:
        pose: The wrapped keypoint.
        time: Target value of the trailing time state.

    Example:
        >>> target = SpacetimeKeypoint(PoseKeypoint([1.0, 2.0], 0.5), time=3.0)
        >>> target.diff(jnp.array([0.5, 1.0, 0.2, 2.5]))  # [0.5, 1.0, 0.3, 0.5]
    """

    pose: Keypoint
    time: float

    def get_state(self) -> Array:
        return jnp.concatenate(
            [self.pose.get_state(), jnp.array([self.time], dtype=float)])

    def diff(self, state: Array) -> Array:
        return jnp.concatenate(
            [self.pose.diff(state[:-1]), (self.time - state[-1])[None]])

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

"""Angles on the circle.

Orientation residuals are measured along the shorter arc, so a target at
pi and a heading at -pi are treated as identical.
"""

import jax.numpy as jnp
from jax import Array


def wrap_to_pi(x: Array) -> Array:
    """Maps angles in radians onto [-pi, pi)."""
    two_pi = 2 * jnp.pi
    return x - two_pi * jnp.floor((x + jnp.pi) / two_pi)


def angle_difference(target: Array, angle: Array) -> Array:
    """Shortest signed rotation taking `angle` to `target`."""
    return wrap_to_pi(target - angle)

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

"""Type definitions for trajectory optimization."""

from __future__ import annotations

from enum import Enum, auto
from typing import Protocol, Tuple

from jax import Array


# Type aliases for common shapes
# State: (n,) array
# Control: (m,) array
# StateTrajectory: (T+1, n) array
# ControlTrajectory: (T, m) array
# ConstraintTrajectory: (T+1, p) array, p = total constraint rows


class SolverStatus(Enum):
    """Status codes for a complete solve."""
    SOLVED = auto()           # Early stop: cost stopped moving
    MAX_ITERATIONS = auto()   # Ran all outer iterations
    BACKWARD_PASS_FAILED = auto()  # Last iteration could not regularize Q_uu
    UNKNOWN = auto()          # Not solved yet


class StepStatus(Enum):
    """Outcome of a single outer iteration."""
    ACCEPTED = auto()              # New trajectory accepted
    LINE_SEARCH_FAILED = auto()    # No step size decreased the cost
    BACKWARD_PASS_FAILED = auto()  # Regularization could not fix Q_uu


# Function type protocols

class DynamicsFn(Protocol):
    """Protocol for dynamics functions.

    Signature: dynamics(x, u) -> x_next

    Args:
        x: State vector (n,)
        u: Control vector (m,)

    Returns:
        x_next: Next state vector (n,)
    """
    def __call__(self, x: Array, u: Array) -> Array:
        ...


class CostFn(Protocol):
    """Protocol for stage cost functions.

    Signature: cost(x, u, k) -> scalar

    Args:
        x: State vector (n,)
        u: Control vector (m,), zeros at the terminal index k == T
        k: Time index (scalar int, possibly traced)

    Returns:
        cost: Scalar cost value
    """
    def __call__(self, x: Array, u: Array, k: int) -> float:
        ...


# LQR parameter types
LQRParams = Tuple[
    Array,  # Q: (T+1, n, n) state cost Hessians
    Array,  # q: (T+1, n) state cost gradients
    Array,  # R: (T+1, m, m) control cost Hessians
    Array,  # r: (T+1, m) control cost gradients
    Array,  # M: (T+1, n, m) cross-term Hessians
    Array,  # A: (T+1, n, n) dynamics Jacobians wrt state
    Array,  # B: (T+1, n, m) dynamics Jacobians wrt control
]

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

"""Result type returned by the AL-iLQR solver."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import jax.numpy as jnp
from jax import Array

from alilqr.core.types import SolverStatus


@dataclass
class Trajectory:
    """A state/control trajectory together with how it was obtained.

    Attributes:
        X: States, shape (T+1, n); X[0] is the initial state.
        U: Controls, shape (T, m).
        constraints: Stacked values A [x_k; u_k] - b for k = 0..T, shape
            (T+1, p), evaluated with a zero terminal control. None when the
            trajectory was not produced by a constrained solve.
        obj: Cost of (X, U) without augmented-Lagrangian terms.
        status: Why the solve stopped.
        info: Solve diagnostics. `ALILQR.optimize` fills in 'iterations',
            'penalty', 'augmented_cost', 'max_violation', 'multipliers'
            (one (T+1, rows) array per constraint) and 'history' (the
            IterationInfo of every iteration).
    """

    X: Array
    U: Array
    constraints: Optional[Array] = None
    obj: float = float('nan')
    status: SolverStatus = SolverStatus.UNKNOWN
    info: Dict[str, Any] = field(default_factory=dict)

    @property
    def horizon(self) -> int:
        return self.U.shape[0]

    @property
    def state_dim(self) -> int:
        return self.X.shape[1]

    @property
    def control_dim(self) -> int:
        return self.U.shape[1]

    @property
    def converged(self) -> bool:
        """True when the solve stopped because the cost stalled."""
        return self.status is SolverStatus.SOLVED

    @property
    def max_violation(self) -> float:
        """Largest positive constraint value; 0.0 when there is none."""
        C = self.constraints
        if C is None or C.size == 0:
            return 0.0
        return float(jnp.clip(C, 0.0, None).max())


def trajectory_from_controls(system, U: Array) -> Trajectory:
    """Simulates `U` from `system.x0` and scores it with the native cost."""
    X = system.rollout(U)
    return Trajectory(X=X, U=U, obj=float(system.total_cost(X, U)))

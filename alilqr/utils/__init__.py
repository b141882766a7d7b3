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

"""Utility functions for trajectory optimization.

This module provides the computational building blocks used by the solver:

- Per-timestep linearization of a system along a trajectory
- Rollout, closed-loop DDP rollout and backtracking line search
- Adjoint (costate) equations for gradient computation
- PSD projection, regularization and definiteness tests
- Numerical integrators for continuous-time dynamics
- Angle wrapping for orientation residuals
"""

# Linearization utilities
from alilqr.utils.linearize import (
    vectorize,
    linearize_system,
    pad,
)

# Rollout utilities
from alilqr.utils.rollout import (
    rollout,
    ddp_rollout,
    line_search_ddp,
    evaluate,
)

# Adjoint utilities
from alilqr.utils.adjoint import adjoint

# PSD utilities
from alilqr.utils.psd import (
    project_psd_cone,
    project_psd_batch,
    regularize_hessian,
    cholesky_or_nan,
    is_positive_definite,
    symmetrize,
)

# Integrators
from alilqr.utils.integrators import (
    euler,
    rk4,
    get_integrator,
)

# Manifold utilities
from alilqr.utils.manifold import (
    wrap_to_pi,
    angle_difference,
)

__all__ = [
    # Linearization
    'vectorize',
    'linearize_system',
    'pad',
    # Rollout
    'rollout',
    'ddp_rollout',
    'line_search_ddp',
    'evaluate',
    # Adjoint
    'adjoint',
    # PSD
    'project_psd_cone',
    'project_psd_batch',
    'regularize_hessian',
    'cholesky_or_nan',
    'is_positive_definite',
    'symmetrize',
    # Integrators
    'euler',
    'rk4',
    'get_integrator',
    # Manifold
    'wrap_to_pi',
    'angle_difference',
]

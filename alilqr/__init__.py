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

"""alilqr: Augmented Lagrangian iLQR in JAX.

Trajectory optimization for discrete-time systems under affine inequality
constraints A @ [x; u] - b <= 0, with iLQR as the inner solver and a
first-order multiplier update as the outer loop.

Main modules:
- alilqr.core: System contract, constraints, keypoints, results
- alilqr.solvers: The ALILQR solver and its configuration
- alilqr.lqr: Riccati recursions
- alilqr.systems: Example plant models
- alilqr.utils: Linearization, rollouts, line search and friends
"""

from . import core
from . import utils
from . import lqr
from . import solvers
from . import systems

from alilqr.core import (
    System,
    Constraint,
    box_constraint,
    PoseKeypoint,
    SpacetimeKeypoint,
    Trajectory,
    SolverStatus,
    StepStatus,
)
from alilqr.exceptions import (
    ALILQRError,
    ConfigurationError,
    DimensionError,
    NonFiniteError,
)
from alilqr.solvers import ALILQR, IterationInfo, SolverConfig

__version__ = '0.1.0'

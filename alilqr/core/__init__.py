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

"""Core data structures: system contract, constraints, keypoints, results."""

from alilqr.core.types import (
    SolverStatus,
    StepStatus,
    DynamicsFn,
    CostFn,
    LQRParams,
)
from alilqr.core.system import System
from alilqr.core.constraints import (
    Constraint,
    constraint_values,
    stack_constraints,
    box_constraint,
)
from alilqr.core.keypoints import (
    Keypoint,
    PoseKeypoint,
    SpacetimeKeypoint,
)
from alilqr.core.trajectory import Trajectory, trajectory_from_controls

__all__ = [
    'SolverStatus',
    'StepStatus',
    'DynamicsFn',
    'CostFn',
    'LQRParams',
    'System',
    'Constraint',
    'constraint_values',
    'stack_constraints',
    'box_constraint',
    'Keypoint',
    'PoseKeypoint',
    'SpacetimeKeypoint',
    'Trajectory',
    'trajectory_from_controls',
]

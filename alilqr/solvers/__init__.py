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

"""AL-iLQR solver, its configuration and Augmented Lagrangian terms."""

from alilqr.solvers.al_ilqr import ALILQR, IterationInfo
from alilqr.solvers.config import SolverConfig
from alilqr.solvers.augmented_lagrangian import (
    active_set,
    augmented_term,
    augmented_term_derivatives,
    update_multipliers,
    max_violation,
)

__all__ = [
    'ALILQR',
    'IterationInfo',
    'SolverConfig',
    'active_set',
    'augmented_term',
    'augmented_term_derivatives',
    'update_multipliers',
    'max_violation',
]

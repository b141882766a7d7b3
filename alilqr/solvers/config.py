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

"""Numerical policy of the AL-iLQR solver.

Per-solve parameters (iteration count, penalty schedule, line search and
early stop switches) are arguments of ALILQR.solve(); this dataclass holds
the settings that are fixed for the lifetime of a solver.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

from alilqr.exceptions import ConfigurationError


@dataclass
class SolverConfig:
    """Configuration for the AL-iLQR solver.

    Attributes:
        alpha_0: Initial line search step size.
        alpha_min: Line search gives up below this step size.
        regularization_init: First nonzero multiple of the identity added to
            Q_uu when the unregularized backward pass fails.
        regularization_factor: Growth factor between regularization retries.
        max_regularization_attempts: Regularized retries before the outer
            iteration is abandoned.
        early_stop_threshold: Relative change of the augmented cost below
            which an early-stopping solve terminates.
        make_psd: Whether to project the cost Hessians Q and R to the PSD cone.
        psd_delta: Minimum eigenvalue of the projection.
        verbose: Whether to log a summary of every outer iteration.
    """
    alpha_0: float = 1.0
    alpha_min: float = 0.00005
    regularization_init: float = 1e-6
    regularization_factor: float = 10.0
    max_regularization_attempts: int = 8
    early_stop_threshold: float = 1e-6
    make_psd: bool = False
    psd_delta: float = 0.0
    verbose: bool = False

    def __post_init__(self):
        if not 0.0 < self.alpha_0 <= 1.0:
            raise ConfigurationError(
                f"alpha_0 must be in (0, 1], got {self.alpha_0}")
        if not 0.0 < self.alpha_min <= self.alpha_0:
            raise ConfigurationError(
                f"alpha_min must be in (0, alpha_0], got {self.alpha_min}")
        if self.regularization_init <= 0.0:
            raise ConfigurationError(
                "regularization_init must be positive, "
                f"got {self.regularization_init}")
        if self.regularization_factor <= 1.0:
            raise ConfigurationError(
                "regularization_factor must be > 1, "
                f"got {self.regularization_factor}")
        if self.max_regularization_attempts < 0:
            raise ConfigurationError(
                "max_regularization_attempts must be >= 0, "
                f"got {self.max_regularization_attempts}")
        if self.early_stop_threshold < 0.0:
            raise ConfigurationError(
                "early_stop_threshold must be >= 0, "
                f"got {self.early_stop_threshold}")
        if self.psd_delta < 0.0:
            raise ConfigurationError(
                f"psd_delta must be >= 0, got {self.psd_delta}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)

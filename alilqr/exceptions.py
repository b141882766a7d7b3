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

"""Exception hierarchy for AL-iLQR trajectory optimization.

Configuration problems subclass ValueError so that callers validating
inputs the usual way keep working. Numerical failures of the system model
subclass ArithmeticError.
"""


class ALILQRError(Exception):
    """Base class for all errors raised by alilqr."""


class ConfigurationError(ALILQRError, ValueError):
    """Invalid solver or solve() configuration.

    Raised before any optimization work begins.
    """


class DimensionError(ConfigurationError):
    """Mismatched array shapes between system, constraints and multipliers."""

    def __init__(self, what: str, expected, got):
        super().__init__(f"{what}: expected {expected}, got {got}")
        self.what = what
        self.expected = expected
        self.got = got


class NonFiniteError(ALILQRError, ArithmeticError):
    """The system model produced NaN or Inf values.

    Fatal to the current solve() call: a non-finite trajectory is never
    returned as a result.
    """

    def __init__(self, message: str, iteration: int = -1):
        if iteration >= 0:
            message = f"{message} (outer iteration {iteration})"
        super().__init__(message)
        self.iteration = iteration

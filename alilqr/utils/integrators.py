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

"""Fixed-step discretization of continuous-time models.

Each integrator turns dx/dt = f(x, u) into a step (x, u) -> x_next with the
control held constant over the interval.
"""

from typing import Callable


def euler(dynamics_continuous: Callable, dt: float) -> Callable:
    """Forward Euler: x + dt f(x, u)."""
    def step(x, u):
        return x + dt * dynamics_continuous(x, u)

    return step


def rk4(dynamics_continuous: Callable, dt: float) -> Callable:
    """Classical fourth-order Runge-Kutta step.

    For a double integrator under piecewise-constant control the result
    matches the exact discretization.
    """
    half = 0.5 * dt

    def step(x, u):
        f = lambda z: dynamics_continuous(z, u)
        s1 = f(x)
        s2 = f(x + half * s1)
        s3 = f(x + half * s2)
        s4 = f(x + dt * s3)
        return x + (dt / 6.0) * (s1 + 2.0 * (s2 + s3) + s4)

    return step


_INTEGRATORS = {'euler': euler, 'rk4': rk4}


def get_integrator(name: str) -> Callable:
    """Integrator factory by case-insensitive name.

    Raises:
        ValueError: for names other than 'euler' and 'rk4'.
    """
    try:
        return _INTEGRATORS[name.lower()]
    except KeyError:
        raise ValueError(
            f'Unknown integrator {name!r}; expected one of '
            f'{sorted(_INTEGRATORS)}') from None

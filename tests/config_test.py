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

"""Tests for SolverConfig and argument validation."""

from absl.testing import absltest
from absl.testing import parameterized

import jax.numpy as jnp
from jax import config
import numpy as np

from alilqr import ALILQR, ConfigurationError, DimensionError, SolverConfig
from alilqr.core import Constraint, box_constraint
from alilqr.systems import PointMass

config.update('jax_enable_x64', True)


class SolverConfigTest(parameterized.TestCase):

    def test_defaults(self):
        cfg = SolverConfig()
        self.assertEqual(cfg.alpha_0, 1.0)
        self.assertEqual(cfg.alpha_min, 0.00005)
        self.assertEqual(cfg.regularization_init, 1e-6)
        self.assertEqual(cfg.regularization_factor, 10.0)
        self.assertEqual(cfg.max_regularization_attempts, 8)
        self.assertFalse(cfg.make_psd)
        self.assertFalse(cfg.verbose)
        self.assertEqual(cfg.to_dict()['early_stop_threshold'], 1e-6)

    @parameterized.named_parameters(
        ('alpha_0_zero', dict(alpha_0=0.0)),
        ('alpha_0_too_large', dict(alpha_0=1.5)),
        ('alpha_min_above_alpha_0', dict(alpha_0=0.5, alpha_min=0.6)),
        ('regularization_init', dict(regularization_init=0.0)),
        ('regularization_factor', dict(regularization_factor=1.0)),
        ('regularization_attempts', dict(max_regularization_attempts=-1)),
        ('early_stop_threshold', dict(early_stop_threshold=-1e-3)),
        ('psd_delta', dict(psd_delta=-1.0)),
    )
    def test_invalid(self, kwargs):
        with self.assertRaises(ConfigurationError):
            SolverConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            SolverConfig(alpha_0=-1.0)


class SolverArgumentsTest(parameterized.TestCase):

    def setUp(self):
        super().setUp()
        self.system = PointMass(jnp.zeros(4), goal=[1.5, 0.5], horizon=10)
        self.box = box_constraint(-1.0, 1.0, [0], state_dim=4, control_dim=2)
        self.U0 = jnp.zeros((10, 2))

    def test_multiplier_count_mismatch(self):
        with self.assertRaises(DimensionError):
            ALILQR(self.system, [self.box], [])

    def test_multiplier_length_mismatch(self):
        with self.assertRaises(DimensionError):
            ALILQR(self.system, [self.box], [jnp.zeros(3)])

    def test_negative_multipliers(self):
        with self.assertRaises(ConfigurationError):
            ALILQR(self.system, [self.box], [-jnp.ones(2)])

    def test_constraint_width_mismatch(self):
        bad = Constraint(A=jnp.ones((1, 4)), b=jnp.zeros(1))
        with self.assertRaises(DimensionError):
            ALILQR(self.system, [bad], [jnp.zeros(1)])

    @parameterized.named_parameters(
        ('nb_iter', dict(nb_iter=0)),
        ('lag_update_step', dict(lag_update_step=0)),
        ('penalty', dict(penalty=0.0)),
        ('negative_penalty', dict(penalty=-1.0)),
        ('scaling_factor', dict(scaling_factor=0.0)),
    )
    def test_invalid_solve_arguments(self, overrides):
        solver = ALILQR(self.system, [self.box], [jnp.zeros(2)])
        kwargs = dict(nb_iter=5, lag_update_step=2, penalty=1.0,
                      scaling_factor=10.0)
        kwargs.update(overrides)
        with self.assertRaises(ConfigurationError):
            solver.solve(self.U0, **kwargs)

    def test_control_shape_mismatch(self):
        solver = ALILQR(self.system, [self.box], [jnp.zeros(2)])
        with self.assertRaises(DimensionError):
            solver.solve(jnp.zeros((9, 2)), nb_iter=5, lag_update_step=2,
                         penalty=1.0, scaling_factor=10.0)

    def test_initial_state_shape(self):
        with self.assertRaises(DimensionError):
            PointMass(jnp.zeros(3), goal=[1.0, 0.0], horizon=10)

    def test_constructing_does_not_run(self):
        solver = ALILQR(self.system, [self.box], [np.zeros(2)])
        self.assertEqual(solver.num_constraints, 1)
        self.assertLen(solver.multipliers, 1)
        self.assertEqual(solver.multipliers[0].shape, (11, 2))


if __name__ == '__main__':
    absltest.main()

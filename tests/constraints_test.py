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

"""Tests for affine inequality constraints."""

from absl.testing import absltest
from absl.testing import parameterized

import jax.numpy as jnp
from jax import config
import numpy as np

from alilqr.core import (
    Constraint,
    box_constraint,
    constraint_values,
    stack_constraints,
)
from alilqr.exceptions import DimensionError

config.update('jax_enable_x64', True)


class ConstraintTest(parameterized.TestCase):

    def test_values(self):
        c = Constraint(A=[[1.0, 0.0, 2.0]], b=[1.0])
        x = jnp.array([2.0, 5.0])
        u = jnp.array([0.5])
        np.testing.assert_allclose(c(x, u), [2.0])
        np.testing.assert_allclose(constraint_values(c.A, c.b, x, u), [2.0])

    def test_single_row_promoted(self):
        c = Constraint(A=[1.0, -1.0], b=0.5)
        self.assertEqual(c.A.shape, (1, 2))
        self.assertEqual(c.b.shape, (1,))
        self.assertEqual(c.num_rows, 1)
        self.assertEqual(c.width, 2)

    def test_bad_bound_shape(self):
        with self.assertRaises(DimensionError):
            Constraint(A=jnp.eye(3), b=jnp.zeros(2))

    def test_stack(self):
        c1 = Constraint(A=jnp.eye(3)[:2], b=jnp.ones(2))
        c2 = Constraint(A=-jnp.eye(3)[2:], b=jnp.zeros(1))
        A, b = stack_constraints([c1, c2], 3)
        self.assertEqual(A.shape, (3, 3))
        np.testing.assert_allclose(b, [1.0, 1.0, 0.0])
        np.testing.assert_allclose(A[2], [0.0, 0.0, -1.0])

    def test_stack_empty(self):
        A, b = stack_constraints([], 5)
        self.assertEqual(A.shape, (0, 5))
        self.assertEqual(b.shape, (0,))

    def test_stack_width_mismatch(self):
        c = Constraint(A=jnp.eye(2), b=jnp.zeros(2))
        with self.assertRaises(DimensionError):
            stack_constraints([c], 3)


class BoxConstraintTest(parameterized.TestCase):

    def test_symmetric_box(self):
        box = box_constraint(-1.0, 1.0, [0], state_dim=4, control_dim=2)
        self.assertEqual(box.A.shape, (2, 6))
        x = jnp.array([1.5, 0.0, 0.0, 0.0])
        u = jnp.zeros(2)
        np.testing.assert_allclose(box(x, u), [0.5, -2.5])

    def test_control_bounds(self):
        box = box_constraint([-1.0, -2.0], [1.0, 2.0], [2, 3],
                             state_dim=2, control_dim=2)
        x = jnp.zeros(2)
        u = jnp.array([0.0, -3.0])
        values = box(x, u)
        self.assertEqual(values.shape, (4,))
        np.testing.assert_allclose(values, [-1.0, -5.0, -1.0, 1.0])

    def test_infinite_bounds_drop_rows(self):
        box = box_constraint(-jnp.inf, [1.0, jnp.inf], [0, 1],
                             state_dim=2, control_dim=1)
        self.assertEqual(box.num_rows, 1)
        np.testing.assert_allclose(box.A, [[1.0, 0.0, 0.0]])

    def test_index_out_of_range(self):
        with self.assertRaises(DimensionError):
            box_constraint(-1.0, 1.0, [3], state_dim=2, control_dim=1)


if __name__ == '__main__':
    absltest.main()

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

"""Tests for the System contract and the plant models."""

from absl.testing import absltest
from absl.testing import parameterized

import jax
import jax.numpy as jnp
from jax import config
import numpy as np

from alilqr.core import PoseKeypoint, SpacetimeKeypoint, System
from alilqr.exceptions import ConfigurationError
from alilqr.systems import LinearSystem, PlanarManipulator, PointMass

config.update('jax_enable_x64', True)


class _Pendulum(System):

    def __init__(self):
        super().__init__(2, 1, horizon=5, x0=jnp.array([0.1, 0.0]))

    def dynamics(self, x, u):
        return x + 0.05 * jnp.array([x[1], -jnp.sin(x[0]) + u[0]])

    def cost(self, x, u, k):
        return jnp.cos(x[0]) * x[1]**2 + x[0] * u[0] + u @ u


class SystemTest(parameterized.TestCase):

    def test_invalid_dimensions(self):
        with self.assertRaises(ConfigurationError):
            LinearSystem(jnp.eye(2), jnp.zeros((2, 1)), jnp.eye(2), jnp.eye(1),
                         x0=jnp.zeros(2), horizon=0)

    def test_autodiff_derivatives(self):
        system = _Pendulum()
        x = jnp.array([0.3, -0.4])
        u = jnp.array([0.2])
        A, B = system.dynamics_jacobians(x, u)
        self.assertEqual(A.shape, (2, 2))
        self.assertEqual(B.shape, (2, 1))
        np.testing.assert_allclose(A, [[1.0, 0.05], [-0.05 * jnp.cos(0.3), 1.0]])
        l_x, l_u = system.cost_gradient(x, u, 0)
        np.testing.assert_allclose(
            l_x, [-jnp.sin(0.3) * 0.16 + 0.2, 2 * jnp.cos(0.3) * -0.4])
        np.testing.assert_allclose(l_u, [0.3 + 0.4])
        l_xx, l_uu, l_xu = system.cost_hessian(x, u, 0)
        self.assertEqual(l_xu.shape, (2, 1))
        np.testing.assert_allclose(l_xu, [[1.0], [0.0]])
        np.testing.assert_allclose(l_uu, [[2.0]])
        np.testing.assert_allclose(l_xx[1, 1], 2 * jnp.cos(0.3))

    def test_total_cost_includes_terminal(self):
        system = LinearSystem(jnp.eye(1), jnp.eye(1), jnp.eye(1), jnp.eye(1),
                              x0=jnp.ones(1), horizon=2,
                              Q_terminal=10.0 * jnp.eye(1))
        U = jnp.zeros((2, 1))
        X = system.rollout(U)
        self.assertAlmostEqual(float(system.total_cost(X, U)), 0.5 + 0.5 + 5.0)


class LinearSystemTest(parameterized.TestCase):

    def test_analytic_derivatives_match_autodiff(self):
        key = jax.random.PRNGKey(0)
        A = jax.random.normal(key, (3, 3))
        B = jax.random.normal(jax.random.PRNGKey(1), (3, 2))
        system = LinearSystem(A, B, jnp.diag(jnp.array([1.0, 2.0, 3.0])),
                              0.5 * jnp.eye(2), x0=jnp.ones(3), horizon=4,
                              Q_terminal=7.0 * jnp.eye(3),
                              x_goal=jnp.array([1.0, 0.0, -1.0]))
        x = jnp.array([0.5, -0.2, 0.1])
        u = jnp.array([1.0, -1.0])
        for k in (0, 4):
            g = System.cost_gradient(system, x, u, k)
            h = System.cost_hessian(system, x, u, k)
            for analytic, autodiff in zip(system.cost_gradient(x, u, k), g):
                np.testing.assert_allclose(analytic, autodiff, atol=1e-10)
            for analytic, autodiff in zip(system.cost_hessian(x, u, k), h):
                np.testing.assert_allclose(analytic, autodiff, atol=1e-10)


class PointMassTest(parameterized.TestCase):

    def test_constant_acceleration(self):
        system = PointMass(jnp.zeros(4), goal=[1.0, 0.0], horizon=10, dt=0.1)
        X = system.rollout(jnp.tile(jnp.array([1.0, -2.0]), (10, 1)))
        np.testing.assert_allclose(X[-1], [0.5, -1.0, 1.0, -2.0], atol=1e-12)

    def test_zero_control_cost(self):
        system = PointMass(jnp.zeros(4), goal=[1.5, 0.5], horizon=10)
        U = jnp.zeros((10, 2))
        cost = system.total_cost(system.rollout(U), U)
        self.assertAlmostEqual(float(cost), 0.5 * (1.5**2 + 0.5**2))


class PlanarManipulatorTest(parameterized.TestCase):

    def test_forward_kinematics(self):
        arm = PlanarManipulator([1.0, 0.5], x0=jnp.zeros(2), horizon=5)
        pose = arm.forward_kinematics(jnp.array([jnp.pi / 2, -jnp.pi / 2]))
        np.testing.assert_allclose(pose, [0.5, 1.0, 0.0], atol=1e-12)

    def test_keypoint_cost_only_at_its_timestep(self):
        keypoint = PoseKeypoint([0.0, 1.5])
        arm = PlanarManipulator([1.0, 0.5], x0=jnp.zeros(2), horizon=5,
                                keypoints=[(5, keypoint)])
        x = jnp.zeros(2)
        u = jnp.zeros(2)
        self.assertAlmostEqual(float(arm.cost(x, u, 3)), 0.0)
        # End effector at (1.5, 0): residual (-1.5, 1.5).
        self.assertAlmostEqual(float(arm.cost(x, u, 5)), 0.5 * 4.5)

    def test_spacetime_dynamics(self):
        arm = PlanarManipulator([1.0], x0=jnp.array([0.0, 0.0]), horizon=4,
                                dt=0.1, spacetime=True)
        self.assertEqual(arm.state_dim, 2)
        self.assertEqual(arm.control_dim, 2)
        x_next = arm.dynamics(jnp.array([0.2, 1.0]), jnp.array([1.0, 0.5]))
        np.testing.assert_allclose(x_next, [0.3, 1.15], atol=1e-12)

    def test_spacetime_task_state(self):
        keypoint = SpacetimeKeypoint(PoseKeypoint([1.0, 0.0], 0.0), time=0.4)
        arm = PlanarManipulator([1.0], x0=jnp.array([0.0, 0.0]), horizon=4,
                                keypoints=[(4, keypoint)], spacetime=True)
        task = arm.task_state(jnp.array([0.0, 0.4]))
        np.testing.assert_allclose(task, [1.0, 0.0, 0.0, 0.4], atol=1e-12)
        self.assertAlmostEqual(
            float(arm.cost(jnp.array([0.0, 0.4]), jnp.zeros(2), 4)), 0.0)

    def test_keypoint_timestep_out_of_range(self):
        with self.assertRaises(ConfigurationError):
            PlanarManipulator([1.0], x0=jnp.zeros(1), horizon=4,
                              keypoints=[(5, PoseKeypoint([1.0, 0.0]))])


if __name__ == '__main__':
    absltest.main()

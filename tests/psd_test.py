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

"""Tests for PSD projection and definiteness checks."""

from absl.testing import absltest
from absl.testing import parameterized

import jax.numpy as jnp
from jax import config
import numpy as np

from alilqr.utils import (
    is_positive_definite,
    project_psd_batch,
    project_psd_cone,
    regularize_hessian,
)

config.update('jax_enable_x64', True)


class PSDTest(parameterized.TestCase):

    def test_projection_clips_eigenvalues(self):
        Q = jnp.array([[1.0, 2.0], [2.0, 1.0]])
        Q_psd = project_psd_cone(Q)
        np.testing.assert_allclose(jnp.linalg.eigvalsh(Q_psd), [0.0, 3.0],
                                   atol=1e-12)

    def test_projection_keeps_psd_matrix(self):
        Q = jnp.array([[2.0, 0.5], [0.5, 1.0]])
        np.testing.assert_allclose(project_psd_cone(Q), Q, atol=1e-12)

    def test_projection_delta(self):
        Q_psd = project_psd_cone(-jnp.eye(2), 0.1)
        np.testing.assert_allclose(Q_psd, 0.1 * jnp.eye(2), atol=1e-12)

    def test_batch(self):
        Q = jnp.stack([-jnp.eye(2), jnp.eye(2)])
        np.testing.assert_allclose(project_psd_batch(Q),
                                   jnp.stack([jnp.zeros((2, 2)), jnp.eye(2)]),
                                   atol=1e-12)

    @parameterized.parameters(
        ([[1.0, 0.0], [0.0, 1.0]], True),
        ([[1.0, 2.0], [2.0, 1.0]], False),
        ([[0.0, 0.0], [0.0, 1.0]], False),
    )
    def test_is_positive_definite(self, H, expected):
        self.assertEqual(bool(is_positive_definite(jnp.array(H))), expected)

    def test_regularization_restores_definiteness(self):
        H = jnp.array([[0.0, 0.0], [0.0, 1.0]])
        self.assertTrue(bool(is_positive_definite(regularize_hessian(H, 1e-3))))


if __name__ == '__main__':
    absltest.main()

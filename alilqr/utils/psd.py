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

"""Definiteness helpers for the backward pass.

The Riccati step needs Q_uu to be positive definite. These helpers clip
the spectrum of cost Hessians, shift a matrix by a multiple of the
identity, and test definiteness through a Cholesky factorization, which
returns NaN instead of raising on failure so it can run under jit.
"""

import jax.numpy as jnp
from jax import Array, jit, vmap


def symmetrize(H: Array) -> Array:
    """Symmetric part (H + H') / 2."""
    return 0.5 * (H + H.T)


@jit
def project_psd_cone(H: Array, delta: float = 0.0) -> Array:
    """Nearest symmetric matrix whose eigenvalues are all >= delta.

    Args:
        H: Square matrix (n, n); only its symmetric part is used.
        delta: Eigenvalue floor. delta > 0 yields a positive definite
            result.

    Returns:
        Symmetric (n, n) matrix with the eigenvalues of sym(H) clipped from
        below at delta and the same eigenvectors.

    Example:
        >>> H = jnp.array([[1., 2.], [2., 1.]])  # eigenvalues -1, 3
        >>> project_psd_cone(H)                   # eigenvalues 0, 3
    """
    eigvals, eigvecs = jnp.linalg.eigh(symmetrize(H))
    clipped = (eigvecs * jnp.maximum(eigvals, delta)) @ eigvecs.T
    return symmetrize(clipped)


def project_psd_batch(H: Array, delta: float = 0.0) -> Array:
    """project_psd_cone applied to every matrix of a (T, n, n) stack."""
    return vmap(project_psd_cone, in_axes=(0, None))(H, delta)


def regularize_hessian(H: Array, reg: float = 1e-6) -> Array:
    """Shifted matrix H + reg * I."""
    return H + reg * jnp.eye(H.shape[0], dtype=H.dtype)


def cholesky_or_nan(H: Array) -> Array:
    """Lower Cholesky factor of sym(H), NaN-filled if it is not definite."""
    return jnp.linalg.cholesky(symmetrize(H))


def is_positive_definite(H: Array) -> Array:
    """Whether the Cholesky factorization of sym(H) succeeds."""
    return jnp.all(jnp.isfinite(cholesky_or_nan(H)))

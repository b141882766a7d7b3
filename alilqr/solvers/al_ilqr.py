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

"""Iterative LQR with an Augmented Lagrangian for affine inequalities.

Each outer iteration builds a local linear-quadratic model of the
constraint-augmented cost along the current trajectory, solves it with a
Riccati backward pass and applies the resulting feedback policy in a
closed-loop forward pass with a backtracking line search. Every
`lag_update_step` iterations the multipliers are moved along the
constraint values and the penalty is scaled up.

The numerical kernels (rollouts, local model, backward pass, line search)
are jit-compiled; the outer loop stays in Python so that it can retry
regularization, call a progress callback and stop early.
"""

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, Optional, Sequence, Tuple

from absl import logging
import jax
import jax.numpy as jnp
import numpy as np
from jax import Array, vmap

from alilqr.core.constraints import Constraint, constraint_values, stack_constraints
from alilqr.core.system import System
from alilqr.core.trajectory import Trajectory
from alilqr.core.types import LQRParams, SolverStatus, StepStatus
from alilqr.exceptions import ConfigurationError, DimensionError, NonFiniteError
from alilqr.lqr.riccati import tvlqr_backward
from alilqr.solvers.augmented_lagrangian import (
    active_set,
    augmented_term,
    augmented_term_derivatives,
    max_violation,
    update_multipliers,
)
from alilqr.solvers.config import SolverConfig
from alilqr.utils.adjoint import adjoint
from alilqr.utils.linearize import linearize_system, pad
from alilqr.utils.psd import project_psd_batch
from alilqr.utils.rollout import ddp_rollout, evaluate, line_search_ddp


@dataclass
class IterationInfo:
    """Progress report of one outer iteration.

    Attributes:
        iteration: Outer iteration index, starting at 0.
        cost: Native cost of the accepted trajectory.
        augmented_cost: Augmented cost of the accepted trajectory under the
            multipliers and penalty used during this iteration.
        max_violation: Largest positive constraint value.
        penalty: Penalty used during this iteration.
        alpha: Accepted step size, 0.0 if no step was taken.
        regularization: Regularization the backward pass succeeded with.
        improvement: Decrease of the augmented cost during this iteration.
        expected_improvement: Decrease predicted by the local quadratic
            model for the accepted step size, 0.0 if no step was taken.
        grad_norm: Norm of the gradient of the augmented cost w.r.t. the
            controls, at the start of the iteration.
        status: Outcome of the iteration.
        multipliers: Multipliers used during this iteration, one
            (T+1, rows) array per constraint.
    """
    iteration: int
    cost: float
    augmented_cost: float
    max_violation: float
    penalty: float
    alpha: float
    regularization: float
    improvement: float
    expected_improvement: float
    grad_norm: float
    status: StepStatus
    multipliers: List[Array] = field(default_factory=list)


def _all_finite(*arrays) -> bool:
    return all(bool(jnp.all(jnp.isfinite(a))) for a in arrays)


class ALILQR:
    """Augmented Lagrangian iLQR solver.

    Solves

        min  sum_{k=0}^{T} cost(x_k, u_k, k)
        s.t. x_{k+1} = dynamics(x_k, u_k),  x_0 = system.x0
             A_i @ [x_k; u_k] - b_i <= 0   for every constraint i, k = 0..T

    by running iLQR on the augmented stage cost

        L_k = cost(x_k, u_k, k) + lam_k' I_k c_k + (penalty / 2) c_k' I_k c_k

    with I_k selecting the constraints that are violated or have a positive
    multiplier. Multipliers are kept per timestep; every solve starts from
    the values given at construction.

    Example:
        >>> box = box_constraint(-1.0, 1.0, [0], state_dim=4, control_dim=2)
        >>> solver = ALILQR(system, [box], [jnp.zeros(box.num_rows)])
        >>> X, U, C = solver.solve(jnp.zeros((system.horizon, 2)), nb_iter=20,
        ...                        lag_update_step=5, penalty=1.0,
        ...                        scaling_factor=10.0)
    """

    def __init__(
        self,
        system: System,
        inequality: Sequence[Constraint] = (),
        init_multipliers: Sequence[Array] = (),
        config: Optional[SolverConfig] = None,
    ):
        """Initialize the solver.

        Args:
            system: System to optimize. Queried, never modified.
            inequality: Affine inequality constraints, applied at every
                timestep.
            init_multipliers: One non-negative vector per constraint, with as
                many entries as the constraint has rows.
            config: Numerical settings, defaults to SolverConfig().

        Raises:
            DimensionError: On a multiplier/constraint count or length
                mismatch, or a constraint not acting on [x; u].
            ConfigurationError: On negative initial multipliers.
        """
        inequality = list(inequality)
        init_multipliers = list(init_multipliers)
        if len(init_multipliers) != len(inequality):
            raise DimensionError("number of multiplier vectors",
                                 len(inequality), len(init_multipliers))

        self.system = system
        self.config = config if config is not None else SolverConfig()
        self._rows = [c.num_rows for c in inequality]
        self._A, self._b = stack_constraints(
            inequality, system.state_dim + system.control_dim)

        lams = []
        for i, (c, lam) in enumerate(zip(inequality, init_multipliers)):
            lam = np.asarray(lam, dtype=float).reshape(-1)
            if lam.shape != (c.num_rows,):
                raise DimensionError(f"multipliers of constraint {i}",
                                     (c.num_rows,), lam.shape)
            if np.any(lam < 0):
                raise ConfigurationError(
                    f"multipliers of constraint {i} must be non-negative")
            lams.append(lam)
        lam0 = np.concatenate(lams) if lams else np.zeros((0,))
        self._lam0 = jnp.tile(jnp.asarray(lam0, dtype=self._A.dtype),
                              (system.horizon + 1, 1))
        self._lam = self._lam0

        self._evaluate = jax.jit(self._evaluate_impl)
        self._local_model = jax.jit(self._local_model_impl)

    @property
    def num_constraints(self) -> int:
        return len(self._rows)

    @property
    def multipliers(self) -> List[Array]:
        """Multipliers after the last solve, one (T+1, rows) array each."""
        return self._split(self._lam)

    def constraints(self, x: Array, u: Array, k) -> Tuple[Array, Array]:
        """Stacked constraint matrix and bound vector at timestep k."""
        del x, u, k  # Same constraints at every timestep.
        return self._A, self._b

    def augmented_loss(self, x: Array, u: Array, k, lam: Array, penalty) -> Array:
        """Augmented stage cost L_k for multipliers lam of shape (p,)."""
        c = constraint_values(self._A, self._b, x, u)
        return self.system.cost(x, u, k) + augmented_term(
            c, lam, active_set(c, lam), penalty)

    def solve(
        self,
        U0: Array,
        nb_iter: int,
        lag_update_step: int,
        penalty: float,
        scaling_factor: float,
        line_search: bool = True,
        early_stop: bool = False,
        callback: Optional[Callable[[IterationInfo], Any]] = None,
    ) -> Tuple[Array, Array, Array]:
        """Optimize from U0 and return (X, U, C).

        X has shape (T+1, n), U (T, m) and C (T+1, p) holds the constraint
        values A @ [x_k; u_k] - b of the returned trajectory. See optimize().
        """
        result = self.optimize(
            U0, nb_iter, lag_update_step, penalty, scaling_factor,
            line_search=line_search, early_stop=early_stop, callback=callback)
        return result.X, result.U, result.constraints

    def optimize(
        self,
        U0: Array,
        nb_iter: int,
        lag_update_step: int,
        penalty: float,
        scaling_factor: float,
        line_search: bool = True,
        early_stop: bool = False,
        callback: Optional[Callable[[IterationInfo], Any]] = None,
    ) -> Trajectory:
        """Run AL-iLQR from the control sequence U0.

        Args:
            U0: Initial controls of shape (T, m).
            nb_iter: Maximum number of outer iterations.
            lag_update_step: Multipliers are updated at the start of every
                iteration i > 0 with i % lag_update_step == 0.
            penalty: Initial penalty.
            scaling_factor: Penalty growth factor applied at every multiplier
                update.
            line_search: If False, the full step (alpha = 1) is always taken.
            early_stop: Stop once the augmented cost stops moving.
            callback: Called with an IterationInfo after every iteration.

        Returns:
            The last accepted Trajectory, feasible or not.

        Raises:
            ConfigurationError: On invalid arguments, before any work.
            DimensionError: If U0 does not have shape (T, m).
            NonFiniteError: If the system produces NaN or Inf values.
        """
        self._check_arguments(U0, nb_iter, lag_update_step, penalty,
                              scaling_factor)
        cfg = self.config
        dynamics = self.system.dynamics
        penalty = float(penalty)

        U = jnp.asarray(U0, dtype=self._A.dtype)
        X = self.system.rollout(U)
        Lam = self._lam0
        obj, native, C = self._evaluate(X, U, Lam, penalty)
        if not _all_finite(X, obj):
            raise NonFiniteError("initial rollout is not finite")

        status = SolverStatus.MAX_ITERATIONS
        history = []
        for i in range(nb_iter):
            if i > 0 and i % lag_update_step == 0:
                Lam = update_multipliers(Lam, C, penalty)
                penalty *= scaling_factor
                obj, native, C = self._evaluate(X, U, Lam, penalty)
                logging.debug("Iteration %d: multipliers updated, "
                              "max multiplier %.3e, penalty %.3e",
                              i, float(jnp.max(Lam, initial=0.0)), penalty)
            obj_before = obj

            lqr = self._local_model(X, U, Lam, penalty)
            if not _all_finite(*lqr):
                raise NonFiniteError("local model is not finite", i)
            Q, q, R, r, M, A, B = lqr
            gradient, _ = adjoint(A, B, q, r)

            alpha = 0.0
            K, k, dV, reg, ok = self._backward_pass(lqr, i)
            if not ok:
                step = StepStatus.BACKWARD_PASS_FAILED
                logging.warning(
                    "Iteration %d: backward pass failed with regularization "
                    "%.1e, keeping the previous trajectory", i, reg)
            else:
                if line_search:
                    X_new, U_new, obj_new, alpha = line_search_ddp(
                        self._augmented_cost, dynamics, X, U, K, k, obj,
                        cost_args=(Lam, penalty), alpha_0=cfg.alpha_0,
                        alpha_min=cfg.alpha_min)
                    accepted = bool(obj_new < obj)
                else:
                    X_new, U_new = ddp_rollout(dynamics, X, U, K, k, 1.0)
                    alpha = 1.0
                    accepted = True

                if accepted:
                    obj_new, native_new, C_new = self._evaluate(
                        X_new, U_new, Lam, penalty)
                    if not _all_finite(X_new, U_new, obj_new):
                        raise NonFiniteError("accepted trajectory is not finite", i)
                    X, U, obj, native, C = X_new, U_new, obj_new, native_new, C_new
                    step = StepStatus.ACCEPTED
                    alpha = float(alpha)
                else:
                    step = StepStatus.LINE_SEARCH_FAILED
                    alpha = 0.0

            improvement = float(obj_before - obj)
            if step is StepStatus.ACCEPTED:
                expected = -float(alpha * dV[0] + alpha**2 * dV[1])
            else:
                expected = 0.0
            info = IterationInfo(
                iteration=i,
                cost=float(native),
                augmented_cost=float(obj),
                max_violation=float(max_violation(C)),
                penalty=penalty,
                alpha=alpha,
                regularization=reg,
                improvement=improvement,
                expected_improvement=expected,
                grad_norm=float(jnp.linalg.norm(gradient)),
                status=step,
                multipliers=self._split(Lam),
            )
            history.append(info)
            if cfg.verbose:
                logging.info(
                    "iter %3d  cost %.6e  aug %.6e  viol %.3e  penalty %.1e  "
                    "alpha %.3g  reg %.1e  %s", i, info.cost,
                    info.augmented_cost, info.max_violation, penalty, alpha,
                    reg, step.name)
            if callback is not None:
                callback(info)

            if step is StepStatus.BACKWARD_PASS_FAILED:
                continue
            if early_stop and abs(improvement) < cfg.early_stop_threshold * (
                    abs(float(obj)) + 1.0):
                status = SolverStatus.SOLVED
                break

        if history[-1].status is StepStatus.BACKWARD_PASS_FAILED:
            status = SolverStatus.BACKWARD_PASS_FAILED
        self._lam = Lam
        return Trajectory(
            X=X,
            U=U,
            constraints=C,
            obj=float(native),
            status=status,
            info={
                'iterations': len(history),
                'penalty': penalty,
                'augmented_cost': float(obj),
                'max_violation': float(max_violation(C)),
                'multipliers': self._split(Lam),
                'history': history,
            },
        )

    def _check_arguments(self, U0, nb_iter, lag_update_step, penalty,
                         scaling_factor):
        if nb_iter < 1:
            raise ConfigurationError(f"nb_iter must be >= 1, got {nb_iter}")
        if lag_update_step < 1:
            raise ConfigurationError(
                f"lag_update_step must be >= 1, got {lag_update_step}")
        if not penalty > 0:
            raise ConfigurationError(f"penalty must be > 0, got {penalty}")
        if not scaling_factor > 0:
            raise ConfigurationError(
                f"scaling_factor must be > 0, got {scaling_factor}")
        expected = (self.system.horizon, self.system.control_dim)
        if np.shape(U0) != expected:
            raise DimensionError("U0 shape", expected, np.shape(U0))
        if scaling_factor < 1:
            logging.warning("scaling_factor %g < 1: the penalty will decrease "
                            "at every multiplier update", scaling_factor)

    def _backward_pass(self, lqr: LQRParams, iteration: int):
        """Backward pass with increasing regularization of Q_uu.

        Returns (K, k, dV, reg, ok). dV holds the summed (k'Q_u, k'Q_uu k / 2)
        terms of the expected cost change; K, k and dV are None when every
        attempt failed.
        """
        cfg = self.config
        schedule = [0.0] + [
            cfg.regularization_init * cfg.regularization_factor**j
            for j in range(cfg.max_regularization_attempts)
        ]
        for reg in schedule:
            K, k, dV, ok = tvlqr_backward(*lqr, reg)
            if bool(ok):
                return K, k, dV, reg, True
            logging.vlog(1, "Iteration %d: Q_uu not positive definite with "
                         "regularization %.1e", iteration, reg)
        return None, None, None, schedule[-1], False

    def _constraint_trajectory(self, X: Array, U: Array) -> Array:
        return vmap(constraint_values, in_axes=(None, None, 0, 0))(
            self._A, self._b, X, pad(U))

    def _evaluate_impl(self, X, U, Lam, penalty):
        """Augmented cost, native cost and constraint values (T+1, p)."""
        U_full = pad(U)
        steps = jnp.arange(X.shape[0])
        stage = vmap(self.augmented_loss, in_axes=(0, 0, 0, 0, None))(
            X, U_full, steps, Lam, penalty)
        native = jnp.sum(evaluate(self.system.cost, X, U_full))
        return jnp.sum(stage), native, self._constraint_trajectory(X, U)

    def _augmented_cost(self, X, U, Lam, penalty):
        return self._evaluate_impl(X, U, Lam, penalty)[0]

    def _local_model_impl(self, X, U, Lam, penalty) -> LQRParams:
        """Quadratic model (Q, q, R, r, M, A, B) of the augmented cost."""
        Q, q, R, r, M, A, B = linearize_system(self.system, X, U)
        C = self._constraint_trajectory(X, U)
        mask = active_set(C, Lam)
        derivatives = partial(augmented_term_derivatives,
                              n=self.system.state_dim)
        g_x, g_u, H_xx, H_uu, H_xu = vmap(
            derivatives, in_axes=(None, 0, 0, 0, None))(
                self._A, C, Lam, mask, penalty)

        Q = Q + H_xx
        R = R + H_uu
        if self.config.make_psd:
            Q = project_psd_batch(Q, self.config.psd_delta)
            R = project_psd_batch(R, self.config.psd_delta)
        return Q, q + g_x, R, r + g_u, M + H_xu, A, B

    def _split(self, Lam: Array) -> List[Array]:
        if not self._rows:
            return []
        return jnp.split(Lam, np.cumsum(self._rows)[:-1], axis=1)

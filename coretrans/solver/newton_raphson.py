# Copyright 2024 DeepMind Technologies Limited
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Newton-Raphson solution of the nonlinear theta method equation.

See `newton_raphson_solve_block` for details.
"""

import dataclasses
import functools
from typing import Final

from absl import logging
import jax
from jax import numpy as jnp
import numpy as np

from coretrans import errors
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.fvm import calc_coeffs
from coretrans.fvm import fvm_conversions
from coretrans.fvm import residual_and_loss
from coretrans.geometry import geometry
from coretrans.solver import solver

# If no entry of the scaled step is above this magnitude, the line search stops
# shrinking the step.
MIN_DELTA: Final[float] = 1e-7


@dataclasses.dataclass(frozen=True)
class _Trial:
  """A candidate solution with its residual and coefficient inputs."""

  x: jax.Array
  residual: jax.Array
  aux: solver.CoeffsAux

  @functools.cached_property
  def norm(self) -> float:
    return float(residual_and_loss.residual_norm(self.residual))


def newton_raphson_solve_block(
    dt: jax.Array,
    static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
    dynamic_runtime_params_slice_t: runtime_params_slice.DynamicRuntimeParamsSlice,
    dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
    core_profiles_t: state.CoreProfiles,
    core_profiles_t_plus_dt: state.CoreProfiles,
    coeffs_callback: calc_coeffs.CoeffsCallback,
    log_iterations: bool = False,
) -> tuple[state.CoreProfiles, state.SolverNumericOutputs, solver.CoeffsAux]:
  # pyformat: disable  # pyformat removes line breaks needed for readability
  """Runs one time step of Newton-Raphson root finding on the theta method.

  On every iteration the transport coefficients and sources are recomputed at
  the current guess and the coefficients are assembled from them. The Newton
  step solves

  J delta = -R(x)

  where R is the scaled theta method residual and J its Jacobian, obtained
  with `jax.jacfwd` with the transport coefficients and sources held at their
  values for the current guess.

  If the step leads to an unphysical state (NaN, non-positive temperature or
  density, or a critical numerical error while evaluating the models) or if
  the residual does not shrink, then delta is successively reduced by
  `delta_reduction_factor`. tau = delta_now / delta_original. The iterations
  stop when the residual is below `tol`, after `maxiter` iterations, or once
  tau drops below `tau_min`.

  Args:
    dt: Discrete time step.
    static_runtime_params_slice: Static runtime parameters.
    dynamic_runtime_params_slice_t: Runtime parameters for time t.
    dynamic_runtime_params_slice_t_plus_dt: Runtime parameters for time t + dt.
      Its solver parameters set the iteration controls.
    geo: Geometry of the torus.
    core_profiles_t: Core plasma profiles at the start of the time step.
    core_profiles_t_plus_dt: Core plasma profiles with the boundary conditions
      at the end of the time step.
    coeffs_callback: Calculates the coefficients and their transport and
      source inputs for given profiles.
    log_iterations: If true, log the residual and tau on every iteration.

  Returns:
    core_profiles: Core profiles at the last iterate.
    solver_numeric_outputs: Iteration and error info. For the error, 0
      signifies residual < tol at exit, 2 signifies tol < residual <
      coarse_tol and 1 signifies residual > coarse_tol.
    aux: Transport coefficients and source terms at the last iterate.
  """
  # pyformat: enable
  evolving_names = static_runtime_params_slice.evolving_names
  solver_params = dynamic_runtime_params_slice_t_plus_dt.solver

  x_old = fvm_conversions.core_profiles_to_tuple(
      core_profiles_t, evolving_names
  )
  coeffs_old = coeffs_callback(
      dynamic_runtime_params_slice_t, geo, core_profiles_t
  )
  scale = residual_and_loss.residual_scale(x_old)

  residual_fn = functools.partial(
      residual_and_loss.theta_method_block_residual,
      dt=dt,
      static_runtime_params_slice=static_runtime_params_slice,
      dynamic_runtime_params_slice_t_plus_dt=dynamic_runtime_params_slice_t_plus_dt,
      geo=geo,
      x_old=x_old,
      core_profiles_t_plus_dt=core_profiles_t_plus_dt,
      coeffs_old=coeffs_old,
  )

  def evaluate(x: jax.Array) -> _Trial:
    core_profiles = _to_core_profiles(
        x, core_profiles_t_plus_dt, evolving_names
    )
    coeffs = coeffs_callback(
        dynamic_runtime_params_slice_t_plus_dt, geo, core_profiles
    )
    transport_coeffs, source_terms = coeffs.auxiliary_outputs
    residual = residual_fn(
        x, transport_coeffs=transport_coeffs, source_terms=source_terms
    )
    return _Trial(x=x, residual=residual, aux=coeffs.auxiliary_outputs)

  def jacobian(trial: _Trial) -> jax.Array:
    transport_coeffs, source_terms = trial.aux
    return jax.jacfwd(
        lambda x: residual_fn(
            x,
            transport_coeffs=transport_coeffs,
            source_terms=source_terms,
            check_finite=False,
        )
    )(trial.x)

  current = evaluate(
      fvm_conversions.cell_variable_tuple_to_vec(
          fvm_conversions.core_profiles_to_tuple(
              core_profiles_t_plus_dt, evolving_names
          )
      )
  )
  iterations = 0
  tau = 1.0
  while (
      current.norm > solver_params.tol
      and iterations < solver_params.maxiter
      and tau > solver_params.tau_min
  ):
    delta = jnp.linalg.solve(jacobian(current), -current.residual)
    current, tau = _line_search(
        current,
        delta,
        scale,
        evaluate,
        delta_reduction_factor=solver_params.delta_reduction_factor,
        tau_min=solver_params.tau_min,
        is_valid=lambda x: not solver.has_unphysical_values(
            _to_core_profiles(x, core_profiles_t_plus_dt, evolving_names),
            evolving_names,
        ),
    )
    iterations += 1
    if log_iterations:
      logging.info(
          'Iteration: %d. Residual: %.16f. tau = %.6f',
          iterations,
          current.norm,
          tau,
      )

  if current.norm < solver_params.tol:
    error = 0
  elif current.norm < solver_params.coarse_tol:
    error = 2
  else:
    error = 1

  solver_numeric_outputs = state.SolverNumericOutputs(
      inner_solver_iterations=iterations,
      residual_norm=current.norm,
      solver_error_state=error,
  )
  core_profiles = _to_core_profiles(
      current.x, core_profiles_t_plus_dt, evolving_names
  )
  return core_profiles, solver_numeric_outputs, current.aux


def _line_search(
    current: _Trial,
    delta: jax.Array,
    scale: jax.Array,
    evaluate,
    delta_reduction_factor: float,
    tau_min: float,
    is_valid,
) -> tuple[_Trial, float]:
  """Shrinks delta until the residual decreases at a valid state.

  Args:
    current: The current iterate.
    delta: The full Newton step.
    scale: Per-cell scale of the evolving variables.
    evaluate: Evaluates the residual at a trial x.
    delta_reduction_factor: Factor multiplying delta on every rejected trial.
    tau_min: Smallest accepted fraction of the full step.
    is_valid: Returns False for a trial x with unphysical values.

  Returns:
    The accepted trial, or `current` if none was accepted, and the final tau.
  """
  tau = 1.0
  while True:
    x_new = current.x + delta
    trial = None
    if is_valid(x_new):
      try:
        trial = evaluate(x_new)
      except errors.CriticalNumericalError as e:
        logging.debug('Rejected Newton trial step: %s', e)
    if (
        trial is not None
        and np.isfinite(trial.norm)
        and trial.norm <= current.norm
    ):
      return trial, tau
    if float(jnp.max(jnp.abs(delta / scale))) <= MIN_DELTA:
      return current, tau
    delta = delta * delta_reduction_factor
    tau *= delta_reduction_factor
    if tau < tau_min:
      return current, tau


def _to_core_profiles(
    x: jax.Array,
    core_profiles_t_plus_dt: state.CoreProfiles,
    evolving_names: tuple[str, ...],
) -> state.CoreProfiles:
  x_tuple = fvm_conversions.vec_to_cell_variable_tuple(
      x, core_profiles_t_plus_dt, evolving_names
  )
  return fvm_conversions.tuple_to_core_profiles(
      x_tuple, core_profiles_t_plus_dt, evolving_names
  )


@dataclasses.dataclass(frozen=True, eq=False)
class NewtonRaphsonThetaMethod(solver.Solver):
  """Time step update using Newton-Raphson iterations and the theta method.

  Attributes:
    log_iterations: If True, log internal iterations of the solver.
  """

  log_iterations: bool = False

  def _x_new(
      self,
      dt: jax.Array,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      dynamic_runtime_params_slice_t: runtime_params_slice.DynamicRuntimeParamsSlice,
      dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles_t: state.CoreProfiles,
      core_profiles_t_plus_dt: state.CoreProfiles,
  ) -> tuple[state.CoreProfiles, state.SolverNumericOutputs, solver.CoeffsAux]:
    """See Solver._x_new docstring."""
    return newton_raphson_solve_block(
        dt=dt,
        static_runtime_params_slice=static_runtime_params_slice,
        dynamic_runtime_params_slice_t=dynamic_runtime_params_slice_t,
        dynamic_runtime_params_slice_t_plus_dt=dynamic_runtime_params_slice_t_plus_dt,
        geo=geo,
        core_profiles_t=core_profiles_t,
        core_profiles_t_plus_dt=core_profiles_t_plus_dt,
        coeffs_callback=self.coeffs_callback(static_runtime_params_slice),
        log_iterations=self.log_iterations,
    )

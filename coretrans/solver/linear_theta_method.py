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

"""The LinearThetaMethod solver class.

Picard iterations approximate the nonlinear solution: the coefficients are
evaluated at the current guess, the linear theta method equation is solved,
and the solution becomes the next guess. `n_corrector_steps = 0` is a single
linearized solve.
"""

import dataclasses

import jax
from jax import numpy as jnp
import numpy as np

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.fvm import block_1d_coeffs
from coretrans.fvm import cell_variable
from coretrans.fvm import fvm_conversions
from coretrans.fvm import residual_and_loss
from coretrans.geometry import geometry
from coretrans.solver import solver as solver_lib


def implicit_solve_block(
    dt: jax.Array,
    x_old: tuple[cell_variable.CellVariable, ...],
    x_new_guess: tuple[cell_variable.CellVariable, ...],
    coeffs_old: block_1d_coeffs.Block1DCoeffs,
    coeffs_new: block_1d_coeffs.Block1DCoeffs,
    theta_implicit: float = 1.0,
) -> jax.Array:
  """Solves the linear theta method equation for the flattened x_new."""
  x_old_vec = fvm_conversions.cell_variable_tuple_to_vec(x_old)
  lhs_mat, lhs_vec, rhs_mat, rhs_vec = (
      residual_and_loss.theta_method_matrix_equation(
          dt=dt,
          x_old=x_old,
          x_new_guess=x_new_guess,
          coeffs_old=coeffs_old,
          coeffs_new=coeffs_new,
          theta_implicit=theta_implicit,
      )
  )
  rhs = jnp.dot(rhs_mat, x_old_vec) + rhs_vec - lhs_vec
  return jnp.linalg.solve(lhs_mat, rhs)


@dataclasses.dataclass(frozen=True, eq=False)
class LinearThetaMethod(solver_lib.Solver):
  """Time step update using the theta method with predictor-corrector steps."""

  def _x_new(
      self,
      dt: jax.Array,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      dynamic_runtime_params_slice_t: runtime_params_slice.DynamicRuntimeParamsSlice,
      dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles_t: state.CoreProfiles,
      core_profiles_t_plus_dt: state.CoreProfiles,
  ) -> tuple[
      state.CoreProfiles, state.SolverNumericOutputs, solver_lib.CoeffsAux
  ]:
    """See Solver._x_new docstring."""
    evolving_names = static_runtime_params_slice.evolving_names
    coeffs_callback = self.coeffs_callback(static_runtime_params_slice)
    x_old = fvm_conversions.core_profiles_to_tuple(
        core_profiles_t, evolving_names
    )

    # Explicit coeffs from the core profiles and runtime parameters at time t.
    coeffs_exp = coeffs_callback(
        dynamic_runtime_params_slice_t, geo, core_profiles_t
    )

    core_profiles = core_profiles_t_plus_dt
    n_steps = dynamic_runtime_params_slice_t_plus_dt.solver.n_corrector_steps
    for _ in range(n_steps + 1):
      coeffs_new = coeffs_callback(
          dynamic_runtime_params_slice_t_plus_dt, geo, core_profiles
      )
      x_new_guess = fvm_conversions.core_profiles_to_tuple(
          core_profiles, evolving_names
      )
      x_new_vec = implicit_solve_block(
          dt=dt,
          x_old=x_old,
          x_new_guess=x_new_guess,
          coeffs_old=coeffs_exp,
          coeffs_new=coeffs_new,
          theta_implicit=static_runtime_params_slice.theta_implicit,
      )
      core_profiles = fvm_conversions.tuple_to_core_profiles(
          fvm_conversions.vec_to_cell_variable_tuple(
              x_new_vec, core_profiles_t_plus_dt, evolving_names
          ),
          core_profiles_t_plus_dt,
          evolving_names,
      )

    transport_coeffs, source_terms = coeffs_new.auxiliary_outputs
    residual = residual_and_loss.theta_method_block_residual(
        x_new_vec,
        dt=dt,
        static_runtime_params_slice=static_runtime_params_slice,
        dynamic_runtime_params_slice_t_plus_dt=dynamic_runtime_params_slice_t_plus_dt,
        geo=geo,
        x_old=x_old,
        core_profiles_t_plus_dt=core_profiles_t_plus_dt,
        transport_coeffs=transport_coeffs,
        source_terms=source_terms,
        coeffs_old=coeffs_exp,
        check_finite=False,
    )
    residual_norm = float(residual_and_loss.residual_norm(residual))
    unphysical = solver_lib.has_unphysical_values(
        core_profiles, evolving_names
    ) or not np.isfinite(residual_norm)
    solver_numeric_outputs = state.SolverNumericOutputs(
        inner_solver_iterations=n_steps + 1,
        residual_norm=residual_norm,
        solver_error_state=1 if unphysical else 0,
    )
    return core_profiles, solver_numeric_outputs, coeffs_new.auxiliary_outputs

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

"""Residual functions for the theta method.

Residual functions define a full differential equation and give a vector
measuring (left hand side) - (right hand side), for use with the Newton-Raphson
method. The residual of each channel is divided by the largest magnitude of
that channel at the start of the step, so that temperatures [eV], densities
[m^-3] and fluxes [Wb] contribute on the same scale.
"""

from typing import TypeAlias

import jax
from jax import numpy as jnp

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.fvm import block_1d_coeffs
from coretrans.fvm import calc_coeffs
from coretrans.fvm import cell_variable
from coretrans.fvm import discrete_system
from coretrans.fvm import fvm_conversions
from coretrans.geometry import geometry
from coretrans.sources import source_profiles

Block1DCoeffs: TypeAlias = block_1d_coeffs.Block1DCoeffs

_MIN_SCALE = 1e-10


def theta_method_matrix_equation(
    dt: jax.Array,
    x_old: tuple[cell_variable.CellVariable, ...],
    x_new_guess: tuple[cell_variable.CellVariable, ...],
    coeffs_old: Block1DCoeffs,
    coeffs_new: Block1DCoeffs,
    theta_implicit: float = 1.0,
) -> tuple[jax.Array, jax.Array, jax.Array, jax.Array]:
  """Matrices and vectors of one theta-method step, A x_new + a = B x_old + b.

  Each channel obeys `out * d(in * x)/dt = F` with `F = C x + c` and transient
  coefficients `in` and `out`. Discretizing in time with weight `theta` on the
  new step and dividing by `in_new` gives

    x_new - dt theta (C_new x_new + c_new) / (out_new in_new)
      = (in_old / in_new) x_old
      + dt (1 - theta) (C_old x_old + c_old) / (out_old in_new)

  The old operator is only assembled when `theta < 1`.

  Args:
    dt: Time step duration.
    x_old: Evolving profiles at the start of the step.
    x_new_guess: Current guess of the evolving profiles at the end of the step.
    coeffs_old: Coefficients evaluated at `x_old`.
    coeffs_new: Coefficients evaluated at `x_new_guess`.
    theta_implicit: Weight of the end of step operator.

  Returns:
    The tuple (A, a, B, b).
  """
  in_old = jnp.concatenate(coeffs_old.transient_in_cell)
  in_new = jnp.concatenate(coeffs_new.transient_in_cell)
  out_new = jnp.concatenate(coeffs_new.transient_out_cell)
  n = in_new.shape[0]

  c_mat_new, c_new = discrete_system.calc_c(x_new_guess, coeffs_new)
  w_new = dt * theta_implicit / (out_new * in_new)
  lhs_mat = jnp.eye(n) - w_new[:, None] * c_mat_new
  lhs_vec = -w_new * c_new

  rhs_mat = jnp.diag(in_old / in_new)
  rhs_vec = jnp.zeros(n)
  theta_explicit = 1.0 - theta_implicit
  if theta_explicit > 0.0:
    out_old = jnp.concatenate(coeffs_old.transient_out_cell)
    c_mat_old, c_old = discrete_system.calc_c(x_old, coeffs_old)
    w_old = dt * theta_explicit / (out_old * in_new)
    rhs_mat = rhs_mat + w_old[:, None] * c_mat_old
    rhs_vec = w_old * c_old

  return lhs_mat, lhs_vec, rhs_mat, rhs_vec


def residual_scale(
    x_old: tuple[cell_variable.CellVariable, ...],
) -> jax.Array:
  """Per-cell scale of the residual: max |x_old| of each channel."""
  return jnp.concatenate([
      jnp.full(
          var.value.shape,
          jnp.maximum(jnp.max(jnp.abs(var.value)), _MIN_SCALE),
      )
      for var in x_old
  ])


def theta_method_block_residual(
    x_new_guess_vec: jax.Array,
    dt: jax.Array,
    static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
    dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
    x_old: tuple[cell_variable.CellVariable, ...],
    core_profiles_t_plus_dt: state.CoreProfiles,
    transport_coeffs: state.TransportCoefficients,
    source_terms: source_profiles.SourceTerms,
    coeffs_old: Block1DCoeffs,
    check_finite: bool = True,
) -> jax.Array:
  """Scaled residual of the theta-method equation at the next time step.

  The transport coefficients and source terms are taken as given, while the
  profile-dependent parts of the coefficients (densities in the transient and
  diffusion terms, resistivity, bootstrap current) follow `x_new_guess_vec`.
  The function can thus be differentiated with `jax.jacfwd` when
  `check_finite` is False.

  Args:
    x_new_guess_vec: Flattened array of current guess of x_new for all evolving
      core profiles.
    dt: Time step duration.
    static_runtime_params_slice: Static runtime parameters.
    dynamic_runtime_params_slice_t_plus_dt: Runtime parameters for t + dt.
    geo: Geometry of the torus.
    x_old: The starting x defined as a tuple of CellVariables.
    core_profiles_t_plus_dt: Core plasma profiles carrying the boundary
      conditions at t + dt.
    transport_coeffs: Transport coefficients used for the new coefficients.
    source_terms: Source terms used for the new coefficients.
    coeffs_old: The coefficients calculated at x_old.
    check_finite: Raise on non-finite coefficients.

  Returns:
    residual: Scaled residual between LHS and RHS of the theta method equation.
  """
  evolving_names = static_runtime_params_slice.evolving_names
  x_old_vec = fvm_conversions.cell_variable_tuple_to_vec(x_old)
  x_new_guess = fvm_conversions.vec_to_cell_variable_tuple(
      x_new_guess_vec, core_profiles_t_plus_dt, evolving_names
  )
  core_profiles = fvm_conversions.tuple_to_core_profiles(
      x_new_guess, core_profiles_t_plus_dt, evolving_names
  )
  coeffs_new = calc_coeffs.calc_coeffs(
      static_runtime_params_slice=static_runtime_params_slice,
      dynamic_runtime_params_slice=dynamic_runtime_params_slice_t_plus_dt,
      geo=geo,
      core_profiles=core_profiles,
      transport_coeffs=transport_coeffs,
      source_terms=source_terms,
      check_finite=check_finite,
  )
  lhs_mat, lhs_vec, rhs_mat, rhs_vec = theta_method_matrix_equation(
      dt=dt,
      x_old=x_old,
      x_new_guess=x_new_guess,
      coeffs_old=coeffs_old,
      coeffs_new=coeffs_new,
      theta_implicit=static_runtime_params_slice.theta_implicit,
  )

  lhs = jnp.dot(lhs_mat, x_new_guess_vec) + lhs_vec
  rhs = jnp.dot(rhs_mat, x_old_vec) + rhs_vec
  return (lhs - rhs) / residual_scale(x_old)


def residual_norm(residual: jax.Array) -> jax.Array:
  """Mean absolute value of a residual vector."""
  return jnp.mean(jnp.abs(residual))

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

"""Calculates Block1DCoeffs for a time step.

Each evolved profile obeys

  transient_out d(transient_in x)/dt =
      d/drho (d_face dx/drho) - d/drho (v_face x) + source_mat x + source

on the normalized radial grid. The heat equations evolve T_i and T_e [eV] with
n_e inside the time derivative, the density equation evolves n_e [m^-3] and the
current diffusion equation evolves psi [Wb].
"""

import dataclasses

import jax
from jax import numpy as jnp

from coretrans import constants
from coretrans import errors
from coretrans import jax_utils
from coretrans import math_utils
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.fvm import block_1d_coeffs
from coretrans.fvm import cell_variable
from coretrans.geometry import geometry
from coretrans.physics import formulas
from coretrans.physics import units
from coretrans.sources import source_models as source_models_lib
from coretrans.sources import source_profiles
from coretrans.transport_model import transport_model as transport_model_lib
import typing_extensions


# pylint: disable=invalid-name
@dataclasses.dataclass(frozen=True)
class _EquationCoeffs:
  transient_in: jax.Array
  transient_out: jax.Array
  d_face: jax.Array
  v_face: jax.Array
  source: jax.Array


class CoeffsCallback:
  """Calculates Block1DCoeffs for a state.

  Transport coefficients and source terms are recomputed from the given
  profiles on every call and returned as the auxiliary outputs of the
  coefficients.
  """

  def __init__(
      self,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      transport_model: transport_model_lib.TransportModel,
      source_models: source_models_lib.SourceModels,
  ):
    self.static_runtime_params_slice = static_runtime_params_slice
    self.transport_model = transport_model
    self.source_models = source_models

  @property
  def evolving_names(self) -> tuple[str, ...]:
    return self.static_runtime_params_slice.evolving_names

  def __hash__(self) -> int:
    return hash((
        self.static_runtime_params_slice,
        self.transport_model,
        self.source_models,
    ))

  def __eq__(self, other: typing_extensions.Self) -> bool:
    return (
        isinstance(other, CoeffsCallback)
        and self.static_runtime_params_slice
        == other.static_runtime_params_slice
        and self.transport_model == other.transport_model
        and self.source_models == other.source_models
    )

  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> block_1d_coeffs.Block1DCoeffs:
    """Returns coefficients for the given profiles.

    Args:
      dynamic_runtime_params_slice: Runtime parameters at the time of
        `core_profiles`.
      geo: The geometry of the system.
      core_profiles: The profiles, with the current guess of the evolving
        variables.

    Returns:
      coeffs: The coefficients, with `(transport_coeffs, source_terms)` as
        auxiliary outputs.
    """
    transport_coeffs = self.transport_model(
        dynamic_runtime_params_slice, geo, core_profiles
    )
    source_terms = self.source_models(
        dynamic_runtime_params_slice, geo, core_profiles
    )
    coeffs = calc_coeffs(
        static_runtime_params_slice=self.static_runtime_params_slice,
        dynamic_runtime_params_slice=dynamic_runtime_params_slice,
        geo=geo,
        core_profiles=core_profiles,
        transport_coeffs=transport_coeffs,
        source_terms=source_terms,
    )
    return dataclasses.replace(
        coeffs, auxiliary_outputs=(transport_coeffs, source_terms)
    )


def calc_coeffs(
    static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
    dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
    core_profiles: state.CoreProfiles,
    transport_coeffs: state.TransportCoefficients,
    source_terms: source_profiles.SourceTerms,
    check_finite: bool = True,
) -> block_1d_coeffs.Block1DCoeffs:
  """Calculates Block1DCoeffs for the evolving equations.

  Args:
    static_runtime_params_slice: Static runtime parameters, selecting the
      evolving equations.
    dynamic_runtime_params_slice: Runtime parameters at the time of
      `core_profiles`.
    geo: Geometry of the torus.
    core_profiles: Core plasma profiles.
    transport_coeffs: Transport coefficients on the face grid.
    source_terms: Source terms on the cell grid, in MW/m^3, m^-3 s^-1 and
      MA/m^2.
    check_finite: Raise if the coefficients contain NaN or Inf. Must be False
      when the profiles are traced.

  Returns:
    coeffs: Block1DCoeffs with one channel per evolving equation, in the order
      of `static_runtime_params_slice.evolving_names`.

  Raises:
    CriticalNumericalError: If `check_finite` and any coefficient is not
      finite.
  """
  builders = {
      'T_i': lambda: _heat_coeffs(
          geo, core_profiles, transport_coeffs.chi_face_ion,
          source_terms.ion_heating,
      ),
      'T_e': lambda: _heat_coeffs(
          geo, core_profiles, transport_coeffs.chi_face_el,
          source_terms.electron_heating,
      ),
      'n_e': lambda: _density_coeffs(geo, transport_coeffs, source_terms),
      'psi': lambda: _current_diffusion_coeffs(
          dynamic_runtime_params_slice, geo, core_profiles, source_terms
      ),
  }
  evolving_names = static_runtime_params_slice.evolving_names
  equations = [builders[name]() for name in evolving_names]

  n_channels = len(evolving_names)
  source_mat_cell = [[None] * n_channels for _ in range(n_channels)]
  source_cell = []
  for i, (name, eq) in enumerate(zip(evolving_names, equations)):
    edge_mat, edge_source = _dirichlet_edge_terms(
        core_profiles[name], eq.d_face, eq.v_face
    )
    source_mat_cell[i][i] = edge_mat
    source_cell.append(eq.source + edge_source)

  coeffs = block_1d_coeffs.Block1DCoeffs(
      transient_in_cell=tuple(eq.transient_in for eq in equations),
      transient_out_cell=tuple(eq.transient_out for eq in equations),
      d_face=tuple(eq.d_face for eq in equations),
      v_face=tuple(eq.v_face for eq in equations),
      source_mat_cell=tuple(tuple(row) for row in source_mat_cell),
      source_cell=tuple(source_cell),
  )
  if check_finite:
    _check_finite(coeffs, evolving_names)
  return coeffs


def _heat_coeffs(
    geo: geometry.Geometry,
    core_profiles: state.CoreProfiles,
    chi_face: jax.Array,
    heating: jax.Array,
) -> _EquationCoeffs:
  """Heat equation: 1.5 vpr d(n_e T)/dt = d/drho(g1/vpr n_e chi dT/drho) + Q."""
  n_e = jnp.maximum(core_profiles.n_e.value, constants.DENSITY_FLOOR)
  d_face = (
      geo.g1_over_vpr_face * math_utils.harmonic_face_mean(n_e) * chi_face
  )
  return _EquationCoeffs(
      transient_in=n_e,
      transient_out=1.5 * geo.vpr,
      d_face=d_face,
      v_face=jnp.zeros_like(d_face),
      source=geo.vpr * units.mw_per_m3_to_ev_per_m3_s(heating),
  )


def _density_coeffs(
    geo: geometry.Geometry,
    transport_coeffs: state.TransportCoefficients,
    source_terms: source_profiles.SourceTerms,
) -> _EquationCoeffs:
  """Density equation: vpr dn/dt = d/drho(g1/vpr D dn/drho - g0 V n) + S."""
  return _EquationCoeffs(
      transient_in=jnp.ones_like(geo.vpr),
      transient_out=geo.vpr,
      d_face=geo.g1_over_vpr_face * transport_coeffs.d_face_el,
      v_face=geo.g0_face * transport_coeffs.v_face_el,
      source=geo.vpr * source_terms.particle_source,
  )


def _current_diffusion_coeffs(
    dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
    core_profiles: state.CoreProfiles,
    source_terms: source_profiles.SourceTerms,
) -> _EquationCoeffs:
  """Current diffusion with neoclassical Spitzer resistivity.

  vpr dpsi/dt = d/drho(g1/vpr eta/mu_0 dpsi/drho)
                - vpr 2 pi R eta (j_bootstrap + j_external)

  Args:
    dynamic_runtime_params_slice: Runtime parameters.
    geo: Geometry of the torus.
    core_profiles: Core plasma profiles.
    source_terms: Source terms holding the external current density.

  Returns:
    The coefficients of the psi equation.
  """
  eta = formulas.spitzer_resistivity(
      core_profiles.T_e.value,
      geo.epsilon,
      dynamic_runtime_params_slice.plasma_composition.Z_eff,
      dynamic_runtime_params_slice.profile_conditions.resistivity_log_lambda,
  )
  eta = eta * dynamic_runtime_params_slice.numerics.resistivity_multiplier
  j_bootstrap = formulas.bootstrap_current(
      core_profiles.n_e.value,
      core_profiles.T_i.value,
      core_profiles.T_e.value,
      geo,
  )
  j_total = j_bootstrap + units.ma_to_a(source_terms.current_source)
  d_face = (
      geo.g1_over_vpr_face
      * math_utils.harmonic_face_mean(eta)
      / constants.CONSTANTS.mu_0
  )
  return _EquationCoeffs(
      transient_in=jnp.ones_like(geo.vpr),
      transient_out=geo.vpr,
      d_face=d_face,
      v_face=jnp.zeros_like(d_face),
      source=-geo.vpr * 2 * jnp.pi * geo.R_major * eta * j_total,
  )


def _dirichlet_edge_terms(
    var: cell_variable.CellVariable,
    d_face: jax.Array,
    v_face: jax.Array,
) -> tuple[jax.Array, jax.Array]:
  """Folds the Dirichlet edge value into implicit and explicit sources.

  The edge face sits half a cell from the last cell center. The diffusive flux
  through it is `2 d (x_edge - x_last) / dr`, the convective flux takes the
  last cell value.

  Args:
    var: The evolving variable, carrying the edge value.
    d_face: Diffusion coefficient on the faces.
    v_face: Convection coefficient on the faces.

  Returns:
    (source_mat, source) contributions on the cell grid, nonzero only in the
    last cell.
  """
  n = var.value.shape[-1]
  dr = var.dr
  x_edge = var.dirichlet_right_value
  if x_edge is None:
    return jnp.zeros(n), jnp.zeros(n)
  d_edge = d_face[-1]
  v_edge = v_face[-1]
  last = jnp.zeros(n).at[-1].set(1.0)
  source_mat = last * (-2.0 * d_edge / dr**2 - v_edge / dr)
  source = last * (2.0 * d_edge * x_edge / dr**2)
  return source_mat, source


def _check_finite(
    coeffs: block_1d_coeffs.Block1DCoeffs,
    evolving_names: tuple[str, ...],
):
  for field in (
      'transient_in_cell',
      'transient_out_cell',
      'd_face',
      'v_face',
      'source_cell',
  ):
    for name, value in zip(evolving_names, getattr(coeffs, field)):
      if not jax_utils.is_finite(value):
        raise errors.CriticalNumericalError(
            'Non-finite value in the assembled coefficients.',
            quantity=f'{field}[{name}]',
        )
  for name, row in zip(evolving_names, coeffs.source_mat_cell):
    for value in row:
      if value is not None and not jax_utils.is_finite(value):
        raise errors.CriticalNumericalError(
            'Non-finite value in the assembled coefficients.',
            quantity=f'source_mat_cell[{name}]',
        )

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

"""Fusion heat source for both ion and electron heat equations."""

import dataclasses
from typing import Any, ClassVar, Literal

import chex
import jax
from jax import numpy as jnp
import pydantic
import typing_extensions

from coretrans import constants
from coretrans import state
from coretrans.config import model_base
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.physics import formulas
from coretrans.sources import base
from coretrans.sources import runtime_params as runtime_params_lib
from coretrans.sources import source
from coretrans.sources import source_profiles

# pylint: disable=invalid-name
_E_FUSION_KEV = 17.6e3
_E_ALPHA_KEV = 3.52e3
_ALPHA_MASS = 4.002602
_ALPHA_FRACTION = 3.5 / 17.6


@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  D_fraction: float
  T_fraction: float
  dilution: float


def bosch_hale_dt_reactivity(T_i_kev: jax.Array) -> jax.Array:
  """D-T <sigma v> [m^3/s] from the Bosch-Hale parameterization NF 1992."""
  mrc2 = 1124656
  BG = 34.3827
  C1 = 1.17302e-9
  C2 = 1.51361e-2
  C3 = 7.51886e-2
  C4 = 4.60643e-3
  C5 = 1.35e-2
  C6 = -1.0675e-4
  C7 = 1.366e-5

  T = T_i_kev
  theta = T / (
      1.0
      - (T * (C2 + T * (C4 + T * C6)))
      / (1.0 + T * (C3 + T * (C5 + T * C7)))
  )
  xi = (BG**2 / (4 * theta)) ** (1 / 3)
  # In log space to avoid overflow/underflow in f32. 1e-6 converts cm^3 to m^3.
  log_sigmav = (
      jnp.log(C1 * theta)
      + 0.5 * jnp.log(xi / (mrc2 * T**3))
      - 3 * xi
      - jnp.log(1e6)
  )
  return jnp.exp(log_sigmav)


def calc_fusion(
    params: DynamicRuntimeParams,
    core_profiles: state.CoreProfiles,
) -> tuple[jax.Array, jax.Array]:
  """Computes the alpha heating of D-T fusion.

  Args:
    params: Fuel composition parameters.
    core_profiles: Core plasma profiles.

  Returns:
    Tuple of ion and electron alpha heating densities [W/m^3] on the cell grid.
  """
  T_i_kev = (
      jnp.maximum(core_profiles.T_i.value, constants.TEMPERATURE_FLOOR) / 1e3
  )
  T_e_kev = (
      jnp.maximum(core_profiles.T_e.value, constants.TEMPERATURE_FLOOR) / 1e3
  )
  n_fuel = params.dilution * core_profiles.n_e.value
  n_D = params.D_fraction * n_fuel
  n_T = params.T_fraction * n_fuel

  E_fus = _E_FUSION_KEV * constants.CONSTANTS.keV_to_J
  P_fus = E_fus * n_D * n_T * bosch_hale_dt_reactivity(T_i_kev)
  P_alpha = P_fus * _ALPHA_FRACTION

  frac_i = formulas.fast_ion_fractional_heating(
      _E_ALPHA_KEV, T_e_kev, _ALPHA_MASS
  )
  return P_alpha * frac_i, P_alpha * (1.0 - frac_i)


@dataclasses.dataclass(kw_only=True, frozen=True)
class FusionHeatSource(source.Source):
  """Fusion heat source for both ion and electron heat."""

  SOURCE_NAME: ClassVar[str] = 'fusion'
  CATEGORY: ClassVar[source_profiles.SourceCategory] = (
      source_profiles.SourceCategory.FUSION
  )

  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    del dynamic_runtime_params_slice  # Unused.
    assert isinstance(source_params, DynamicRuntimeParams)
    P_i, P_e = calc_fusion(source_params, core_profiles)
    return source.make_source_terms(
        geo, ion_heating=P_i / 1e6, electron_heating=P_e / 1e6
    )

  def _extra_metadata(
      self,
      terms: source_profiles.SourceTerms,
      geo: geometry.Geometry,
  ) -> dict[str, Any]:
    alpha_power = terms.total_ion_power(geo) + terms.total_electron_power(geo)
    return {'alpha_power': float(alpha_power)}


class FusionHeatSourceConfig(base.SourceModelBase):
  """Configuration for the FusionHeatSource.

  Attributes:
    D_fraction: Deuterium fraction of the fuel.
    T_fraction: Tritium fraction of the fuel.
    dilution: Fuel ion density over electron density.
  """

  model_type: Literal['fusion_heat_source'] = 'fusion_heat_source'
  D_fraction: model_base.UnitInterval = 0.5
  T_fraction: model_base.UnitInterval = 0.5
  dilution: model_base.UnitInterval = 0.9

  @pydantic.model_validator(mode='after')
  def _check_fractions(self) -> typing_extensions.Self:
    if self.D_fraction + self.T_fraction > 1.0:
      raise ValueError('D_fraction + T_fraction must not exceed 1.')
    return self

  def build_runtime_params(self, t: chex.Numeric) -> DynamicRuntimeParams:
    del t  # Unused.
    return DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
        D_fraction=self.D_fraction,
        T_fraction=self.T_fraction,
        dilution=self.dilution,
    )

  def build_source(self, name: str) -> FusionHeatSource:
    return FusionHeatSource(name=name)

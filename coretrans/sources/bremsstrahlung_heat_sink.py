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

"""Bremsstrahlung heat sink for electron heat equation."""

import dataclasses
from typing import Any, ClassVar, Literal

import chex
import jax
from jax import numpy as jnp

from coretrans import constants
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.sources import base
from coretrans.sources import runtime_params as runtime_params_lib
from coretrans.sources import source
from coretrans.sources import source_profiles


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  use_relativistic_correction: bool


def calc_bremsstrahlung(
    core_profiles: state.CoreProfiles,
    Z_eff: chex.Numeric,
    use_relativistic_correction: bool = False,
) -> jax.Array:
  """Bremsstrahlung power density radiated by the electrons.

  Follows the formula in Wesson, Tokamaks, with the optional relativistic
  correction of Stott, PPCF 2005.

  Args:
    core_profiles: core plasma profiles.
    Z_eff: Effective ion charge.
    use_relativistic_correction: Set to true to include the relativistic
      correction from Stott.

  Returns:
    Bremsstrahlung radiation power profile [W/m^3] on the cell grid.
  """
  n_e = core_profiles.n_e.value
  T_e_kev = (
      jnp.maximum(core_profiles.T_e.value, constants.TEMPERATURE_FLOOR) / 1e3
  )
  P_brem = 5.35e-37 * Z_eff * n_e**2 * jnp.sqrt(T_e_kev)

  if use_relativistic_correction:
    Tm = 511.0  # m_e * c**2 in keV
    correction = (1.0 + 2.0 * T_e_kev / Tm) * (
        1.0 + (2.0 / Z_eff) * (1.0 - 1.0 / (1.0 + T_e_kev / Tm))
    )
    P_brem = P_brem * correction
  return P_brem


@dataclasses.dataclass(kw_only=True, frozen=True)
class BremsstrahlungHeatSink(source.Source):
  """Electron heat loss to Bremsstrahlung radiation."""

  SOURCE_NAME: ClassVar[str] = 'bremsstrahlung'
  CATEGORY: ClassVar[source_profiles.SourceCategory] = (
      source_profiles.SourceCategory.RADIATION
  )

  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    assert isinstance(source_params, DynamicRuntimeParams)
    P_brem = calc_bremsstrahlung(
        core_profiles,
        dynamic_runtime_params_slice.plasma_composition.Z_eff,
        use_relativistic_correction=source_params.use_relativistic_correction,
    )
    # As a sink, the power is negative.
    return source.make_source_terms(geo, electron_heating=-P_brem / 1e6)

  def _extra_metadata(
      self,
      terms: source_profiles.SourceTerms,
      geo: geometry.Geometry,
  ) -> dict[str, Any]:
    return {'radiation_power': -float(terms.total_electron_power(geo))}


class BremsstrahlungHeatSinkConfig(base.SourceModelBase):
  """Config of the Bremsstrahlung sink.

  Attributes:
    use_relativistic_correction: Apply the relativistic correction factor.
  """

  model_type: Literal['bremsstrahlung_heat_sink'] = 'bremsstrahlung_heat_sink'
  use_relativistic_correction: bool = False

  def build_runtime_params(self, t: chex.Numeric) -> DynamicRuntimeParams:
    del t  # Unused.
    return DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
        use_relativistic_correction=self.use_relativistic_correction,
    )

  def build_source(self, name: str) -> BremsstrahlungHeatSink:
    return BremsstrahlungHeatSink(name=name)

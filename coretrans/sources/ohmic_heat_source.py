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

"""Ohmic heat source for the electron heat equation."""

import dataclasses
from typing import ClassVar, Literal

import chex
import jax
from jax import numpy as jnp
import numpy as np

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.physics import formulas
from coretrans.sources import base
from coretrans.sources import runtime_params as runtime_params_lib
from coretrans.sources import source
from coretrans.sources import source_profiles

# Below this psi range [Wb] the plasma carries no resolvable current.
_MIN_PSI_RANGE = 1e-6


# pylint: disable=invalid-name
def calc_ohmic_power_density(
    dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
    core_profiles: state.CoreProfiles,
) -> jax.Array:
  """Ohmic power density eta j^2 [W/m^3] on the cell grid."""
  psi = core_profiles.psi.value
  psi_range = float(np.max(np.asarray(psi)) - np.min(np.asarray(psi)))
  if geo.n_cells < 3 or psi_range < _MIN_PSI_RANGE:
    return jnp.zeros_like(psi)
  j = formulas.current_density_from_psi(psi, geo)
  eta = formulas.spitzer_resistivity(
      core_profiles.T_e.value,
      geo.epsilon,
      dynamic_runtime_params_slice.plasma_composition.Z_eff,
      dynamic_runtime_params_slice.profile_conditions.resistivity_log_lambda,
  )
  return eta * j**2


@dataclasses.dataclass(kw_only=True, frozen=True)
class OhmicHeatSource(source.Source):
  """Ohmic heat source for electron heat equation."""

  SOURCE_NAME: ClassVar[str] = 'ohmic'
  CATEGORY: ClassVar[source_profiles.SourceCategory] = (
      source_profiles.SourceCategory.OHMIC
  )

  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    del source_params  # Unused.
    power = calc_ohmic_power_density(
        dynamic_runtime_params_slice, geo, core_profiles
    )
    return source.make_source_terms(geo, electron_heating=power / 1e6)


class OhmicHeatSourceConfig(base.SourceModelBase):
  """Configuration for the OhmicHeatSource."""

  model_type: Literal['ohmic_heat_source'] = 'ohmic_heat_source'

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> runtime_params_lib.DynamicRuntimeParams:
    del t  # Unused.
    return runtime_params_lib.DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
    )

  def build_source(self, name: str) -> OhmicHeatSource:
    return OhmicHeatSource(name=name)

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

"""Generic Gaussian heat source split between ions and electrons."""

import dataclasses
from typing import ClassVar, Literal

import chex

from coretrans import state
from coretrans.config import interpolated_param
from coretrans.config import model_base
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.sources import base
from coretrans.sources import formulas
from coretrans.sources import runtime_params as runtime_params_lib
from coretrans.sources import source
from coretrans.sources import source_profiles


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  gaussian_location: float
  gaussian_width: float
  P_total: float
  el_heat_fraction: float
  absorption_fraction: float


@dataclasses.dataclass(kw_only=True, frozen=True)
class GenericIonElectronHeatSource(source.Source):
  """Generic heat source for both ion and electron heat."""

  SOURCE_NAME: ClassVar[str] = 'generic_heat'
  CATEGORY: ClassVar[source_profiles.SourceCategory] = (
      source_profiles.SourceCategory.AUXILIARY
  )

  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    del dynamic_runtime_params_slice, core_profiles  # Unused.
    assert isinstance(source_params, DynamicRuntimeParams)
    profile = formulas.gaussian_profile(
        geo,
        center=source_params.gaussian_location,
        width=source_params.gaussian_width,
        total=source_params.P_total * source_params.absorption_fraction,
    )
    return source.make_source_terms(
        geo,
        ion_heating=profile * (1 - source_params.el_heat_fraction) / 1e6,
        electron_heating=profile * source_params.el_heat_fraction / 1e6,
    )


class GenericIonElHeatSourceConfig(base.SourceModelBase):
  """Configuration for the GenericIonElHeatSource.

  Attributes:
    gaussian_location: Gaussian center of source profile in units of rho_norm.
    gaussian_width: Gaussian width of source profile in units of rho_norm.
    P_total: Total heating power [W].
    el_heat_fraction: Electron heating fraction.
    absorption_fraction: Fraction of input power that is absorbed.
  """

  model_type: Literal['generic_ion_el_heat_source'] = (
      'generic_ion_el_heat_source'
  )
  gaussian_location: model_base.UnitInterval = 0.0
  gaussian_width: model_base.OpenUnitInterval = 0.25
  P_total: interpolated_param.NonNegativeTimeVaryingScalar = (
      model_base.ValidatedDefault(120e6)
  )
  el_heat_fraction: model_base.UnitInterval = 0.66666
  absorption_fraction: model_base.UnitInterval = 1.0

  def build_runtime_params(self, t: chex.Numeric) -> DynamicRuntimeParams:
    return DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
        gaussian_location=self.gaussian_location,
        gaussian_width=self.gaussian_width,
        P_total=self.value_at(self.P_total, t),
        el_heat_fraction=self.el_heat_fraction,
        absorption_fraction=self.absorption_fraction,
    )

  def build_source(self, name: str) -> GenericIonElectronHeatSource:
    return GenericIonElectronHeatSource(name=name)

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

"""Electron cyclotron heating and current drive with Gaussian deposition."""

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
  total_power: float
  deposition_rho: float
  width: float
  current_drive_efficiency: float


@dataclasses.dataclass(kw_only=True, frozen=True)
class ElectronCyclotronSource(source.Source):
  """Electron cyclotron source for the electron heat and current equations."""

  SOURCE_NAME: ClassVar[str] = 'ecrh'
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
    heating = formulas.gaussian_profile(
        geo,
        center=source_params.deposition_rho,
        width=source_params.width,
        total=source_params.total_power,
    )
    driven_current = (
        source_params.current_drive_efficiency * source_params.total_power
    )
    current = formulas.gaussian_profile(
        geo,
        center=source_params.deposition_rho,
        width=source_params.width,
        total=driven_current,
        integral='area',
    )
    return source.make_source_terms(
        geo, electron_heating=heating / 1e6, current_source=current / 1e6
    )


class ElectronCyclotronSourceConfig(base.SourceModelBase):
  """Config for the electron cyclotron source.

  Attributes:
    total_power: Absorbed power [W].
    deposition_rho: Normalized radius of the deposition peak.
    width: Gaussian width of the deposition in normalized radius.
    current_drive_efficiency: Driven current per absorbed power [A/W]. Zero
      disables current drive.
  """

  model_type: Literal['electron_cyclotron_source'] = (
      'electron_cyclotron_source'
  )
  total_power: interpolated_param.NonNegativeTimeVaryingScalar = (
      model_base.ValidatedDefault(20e6)
  )
  deposition_rho: model_base.UnitInterval = 0.5
  width: model_base.OpenUnitInterval = 0.1
  current_drive_efficiency: interpolated_param.NonNegativeTimeVaryingScalar = (
      model_base.ValidatedDefault(0.0)
  )

  def build_runtime_params(self, t: chex.Numeric) -> DynamicRuntimeParams:
    return DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
        total_power=self.value_at(self.total_power, t),
        deposition_rho=self.deposition_rho,
        width=self.width,
        current_drive_efficiency=self.value_at(
            self.current_drive_efficiency, t
        ),
    )

  def build_source(self, name: str) -> ElectronCyclotronSource:
    return ElectronCyclotronSource(name=name)

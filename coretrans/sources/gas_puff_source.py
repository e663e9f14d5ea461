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

"""Gas puff source for the electron density equation."""

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
  puff_rate: float
  penetration_depth: float


@dataclasses.dataclass(kw_only=True, frozen=True)
class GasPuffSource(source.Source):
  """Exponential particle source peaked at the plasma edge."""

  SOURCE_NAME: ClassVar[str] = 'gas_puff'

  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    del dynamic_runtime_params_slice, core_profiles  # Unused.
    assert isinstance(source_params, DynamicRuntimeParams)
    particles = formulas.exponential_profile(
        geo,
        decay_start=1.0,
        width=source_params.penetration_depth,
        total=source_params.puff_rate,
    )
    return source.make_source_terms(geo, particle_source=particles)


class GasPuffSourceConfig(base.SourceModelBase):
  """Gas puff source for the n_e equation.

  Attributes:
    puff_rate: Total number of particles injected per second.
    penetration_depth: Exponential decay length of the source from the edge,
      in normalized radius.
  """

  model_type: Literal['gas_puff_source'] = 'gas_puff_source'
  puff_rate: interpolated_param.NonNegativeTimeVaryingScalar = (
      model_base.ValidatedDefault(1e21)
  )
  penetration_depth: model_base.OpenUnitInterval = 0.05

  def build_runtime_params(self, t: chex.Numeric) -> DynamicRuntimeParams:
    return DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
        puff_rate=self.value_at(self.puff_rate, t),
        penetration_depth=self.penetration_depth,
    )

  def build_source(self, name: str) -> GasPuffSource:
    return GasPuffSource(name=name)

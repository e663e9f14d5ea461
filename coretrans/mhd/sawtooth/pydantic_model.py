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

"""Pydantic model for sawtooth configuration."""

import chex
import pydantic

from coretrans.config import model_base
from coretrans.mhd.sawtooth import redistribution
from coretrans.mhd.sawtooth import runtime_params as sawtooth_runtime_params
from coretrans.mhd.sawtooth import sawtooth_model
from coretrans.mhd.sawtooth import trigger


class SawtoothConfig(model_base.BaseModelFrozen):
  """Pydantic model for sawtooth configuration.

  Attributes:
    q_critical: On-axis safety factor below which a crash is triggered.
    inversion_radius: Normalized radius beyond which the first cell marks the
      q=1 surface.
    mixing_time: Time scale of the profile mixing [s].
    min_crash_interval: Steps shorter than this never trigger a crash [s].
    mixing_radius_multiplier: Ratio of the mixing radius to the q=1 radius.
  """

  q_critical: pydantic.PositiveFloat = 1.0
  inversion_radius: model_base.OpenUnitInterval = 0.3
  mixing_time: pydantic.PositiveFloat = 1e-4
  min_crash_interval: model_base.Second = 0.01
  mixing_radius_multiplier: pydantic.PositiveFloat = 1.0

  def build_models(self) -> sawtooth_model.SawtoothModel:
    return sawtooth_model.SawtoothModel(
        trigger_model=trigger.SimpleTrigger(),
        redistribution_model=redistribution.ConservativeRedistribution(),
    )

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> sawtooth_runtime_params.DynamicRuntimeParams:
    del t  # Sawtooth parameters are constant in time.
    return sawtooth_runtime_params.DynamicRuntimeParams(
        q_critical=self.q_critical,
        inversion_radius=self.inversion_radius,
        mixing_time=self.mixing_time,
        min_crash_interval=self.min_crash_interval,
        mixing_radius_multiplier=self.mixing_radius_multiplier,
    )

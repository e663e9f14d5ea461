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

"""Pydantic model for MHD configuration."""

import chex

from coretrans.config import model_base
from coretrans.mhd.sawtooth import pydantic_model as sawtooth_pydantic_model
from coretrans.mhd.sawtooth import runtime_params as sawtooth_runtime_params
from coretrans.mhd.sawtooth import sawtooth_model


class MHD(model_base.BaseModelFrozen):
  """Config for MHD models.

  Attributes:
    sawtooth: Config for the sawtooth model. If None, sawteeth are disabled.
  """

  sawtooth: sawtooth_pydantic_model.SawtoothConfig | None = None

  def build_sawtooth_model(self) -> sawtooth_model.SawtoothModel | None:
    if self.sawtooth is None:
      return None
    return self.sawtooth.build_models()

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> sawtooth_runtime_params.DynamicRuntimeParams | None:
    if self.sawtooth is None:
      return None
    return self.sawtooth.build_runtime_params(t)

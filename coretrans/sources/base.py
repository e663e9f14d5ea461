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

"""Base model for source pydantic configs."""

import abc

import chex

from coretrans.config import interpolated_param
from coretrans.config import model_base
from coretrans.sources import runtime_params
from coretrans.sources import source as source_lib


class SourceModelBase(model_base.BaseModelFrozen, abc.ABC):
  """Base model holding parameters common to all source models.

  Subclasses define the `model_type` attribute as a `Literal` string, used by
  pydantic to discriminate between the source configs.

  Attributes:
    mode: Defines how the source values are computed.
    time_dependent: If False, time series parameters of the source are frozen
      at their first value for the whole simulation.
  """

  mode: runtime_params.Mode = runtime_params.Mode.MODEL_BASED
  time_dependent: bool = True

  def value_at(
      self, param: interpolated_param.TimeVaryingScalar, t: chex.Numeric
  ) -> float:
    """Evaluates a time series parameter, honoring `time_dependent`."""
    if self.time_dependent:
      return param.get_value(t)
    return param.value[0]

  @abc.abstractmethod
  def build_source(self, name: str) -> source_lib.Source:
    """Builds a source object from the model config."""

  @abc.abstractmethod
  def build_runtime_params(
      self,
      t: chex.Numeric,
  ) -> runtime_params.DynamicRuntimeParams:
    """Builds dynamic runtime parameters for the source."""

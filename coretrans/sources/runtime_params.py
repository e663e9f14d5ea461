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

"""Runtime params shared by all sources."""

import enum

import chex


@enum.unique
class Mode(enum.Enum):
  """Defines how to compute the source terms for this source/sink."""

  # Source is set to zero always.
  ZERO = 'ZERO'

  # Source values come from a model in code.
  MODEL_BASED = 'MODEL_BASED'


@chex.dataclass(frozen=True)
class DynamicRuntimeParams:
  """Dynamic params for a single source.

  Attributes:
    mode: Defines how the source values are computed.
    time_dependent: If False, the source parameters were frozen at the first
      point of their time series when the slice was built.
  """

  mode: Mode
  time_dependent: bool

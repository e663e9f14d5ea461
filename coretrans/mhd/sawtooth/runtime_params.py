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

"""Runtime params for the sawtooth model."""

import chex


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams:
  """Runtime params for the sawtooth model.

  Attributes:
    q_critical: On-axis safety factor below which a crash is triggered.
    inversion_radius: Normalized radius threshold used to locate the q=1
      surface.
    mixing_time: Time scale of the profile mixing [s].
    min_crash_interval: Smallest timestep that may trigger a crash [s].
    mixing_radius_multiplier: Ratio of the mixing radius to the q=1 radius.
  """

  q_critical: float
  inversion_radius: float
  mixing_time: float
  min_crash_interval: float
  mixing_radius_multiplier: float

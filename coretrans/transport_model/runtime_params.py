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

"""Dataclass representing runtime parameter inputs to the transport models.

This is the dataclass runtime config exposed to the models. Each model gets a
time-interpolated version of its pydantic config via a DynamicRuntimeParams.
"""
import chex


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams:
  """Input params shared by every transport model.

  Attributes:
    chi_min: Lower bound on the heat diffusivities [m^2/s].
    chi_max: Upper bound on the heat diffusivities [m^2/s].
    D_e_min: Lower bound on the particle diffusivity [m^2/s].
    D_e_max: Upper bound on the particle diffusivity [m^2/s].
    V_e_min: Lower bound on the particle convection velocity [m/s].
    V_e_max: Upper bound on the particle convection velocity [m/s].
  """

  chi_min: float
  chi_max: float
  D_e_min: float
  D_e_max: float
  V_e_min: float
  V_e_max: float

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

"""Time step calculator returning `numerics.fixed_dt` on every step."""

import dataclasses

from coretrans import state as state_module
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.time_step_calculator import time_step_calculator


@dataclasses.dataclass(frozen=True)
class FixedTimeStepCalculator(time_step_calculator.TimeStepCalculator):

  def _next_dt(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state_module.CoreProfiles,
      core_transport: state_module.TransportCoefficients,
  ) -> float:
    del geo, core_profiles, core_transport
    return dynamic_runtime_params_slice.numerics.fixed_dt

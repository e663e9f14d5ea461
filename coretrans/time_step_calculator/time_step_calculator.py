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

"""Base class choosing the length of the next time step."""

import abc
import dataclasses

import chex
import numpy as np

from coretrans import state
from coretrans.config import numerics as numerics_lib
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry


@dataclasses.dataclass(frozen=True)
class TimeStepCalculator(abc.ABC):
  """Proposes dt for the next step and decides when the run is over.

  Subclasses only provide the unconstrained `_next_dt`. `next_dt` bounds it
  and, if requested, shortens it so the run lands on t_final.

  Attributes:
    tolerance: The simulation is done once t is within this distance of
      t_final.
  """

  tolerance: float = 1e-7

  def not_done(self, t: chex.Numeric, t_final: chex.Numeric) -> bool:
    return bool(t < (t_final - self.tolerance))

  def next_dt(
      self,
      t: chex.Numeric,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      core_transport: state.TransportCoefficients,
  ) -> float:
    """Returns the next time step duration."""
    numerics = dynamic_runtime_params_slice.numerics
    dt = self._next_dt(
        dynamic_runtime_params_slice, geo, core_profiles, core_transport
    )
    dt = float(np.clip(dt, numerics.min_dt, numerics.max_dt))
    crosses_t_final = t < numerics.t_final < t + dt
    if numerics.exact_t_final and crosses_t_final:
      dt = float(numerics.t_final - t)
    return dt

  @abc.abstractmethod
  def _next_dt(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      core_transport: state.TransportCoefficients,
  ) -> chex.Numeric:
    """Returns the next time step duration, before clamping."""


def adapt_dt(
    dt: chex.Numeric,
    numerics: numerics_lib.DynamicNumerics,
    t: chex.Numeric,
) -> float:
  """Grows an accepted time step into the next one.

  Args:
    dt: Duration of the last accepted step.
    numerics: Numeric parameters bounding the step.
    t: Time at the end of the last accepted step.

  Returns:
    `dt * dt_growth_factor * dt_safety_factor`, clamped to [min_dt, max_dt]
    and shortened so that t + dt never exceeds t_final.
  """
  new_dt = dt * numerics.dt_growth_factor * numerics.dt_safety_factor
  new_dt = float(np.clip(new_dt, numerics.min_dt, numerics.max_dt))
  if t + new_dt > numerics.t_final:
    new_dt = max(float(numerics.t_final - t), 0.0)
  return new_dt

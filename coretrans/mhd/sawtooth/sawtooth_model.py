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

"""The sawtooth relaxation state machine."""

import dataclasses
import enum

from absl import logging
import chex

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.mhd.sawtooth import redistribution as redistribution_lib
from coretrans.mhd.sawtooth import trigger as trigger_lib


@enum.unique
class SawtoothState(enum.Enum):
  """Stage of the sawtooth cycle.

  STABLE: No crash on the last step.
  TRIGGERED: The trigger fired and the profiles are being redistributed.
  RELAXED: The last step ended with a crash. A new crash cannot be triggered
    on the following step.
  """

  STABLE = 'stable'
  TRIGGERED = 'triggered'
  RELAXED = 'relaxed'


@dataclasses.dataclass(frozen=True)
class SawtoothModel:
  """Runs the trigger and, on a crash, the redistribution model."""

  trigger_model: trigger_lib.TriggerModel
  redistribution_model: redistribution_lib.RedistributionModel

  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      dt: chex.Numeric,
      previous_state: SawtoothState = SawtoothState.STABLE,
  ) -> tuple[state.CoreProfiles, SawtoothState]:
    """Applies a sawtooth crash to the profiles if one is triggered.

    Args:
      dynamic_runtime_params_slice: Runtime parameters at the end of the step.
      geo: Geometry of the torus.
      core_profiles: Core profiles at the end of the step.
      dt: Duration of the step.
      previous_state: Sawtooth state after the previous step.

    Returns:
      The (possibly redistributed) core profiles and the new sawtooth state.
    """
    if previous_state == SawtoothState.RELAXED:
      return core_profiles, SawtoothState.STABLE

    triggered, rho_norm_q1 = self.trigger_model(
        dynamic_runtime_params_slice, geo, core_profiles, dt
    )
    if not triggered:
      return core_profiles, SawtoothState.STABLE

    logging.info(
        'Sawtooth crash triggered at t=%.6f, rho_norm_q1=%.3f.',
        dynamic_runtime_params_slice.t,
        rho_norm_q1,
    )
    redistributed = self.redistribution_model(
        rho_norm_q1, dynamic_runtime_params_slice, geo, core_profiles, dt
    )
    return redistributed, SawtoothState.RELAXED

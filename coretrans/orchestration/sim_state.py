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

"""The state passed from one simulation step to the next."""

import dataclasses

from absl import logging
import jax
import numpy as np

from coretrans import state
from coretrans.mhd.sawtooth import sawtooth_model
from coretrans.output_tools import post_processing
from coretrans.sources import source_profiles


@dataclasses.dataclass(frozen=True)
class SimState:
  """Everything a step needs from the previous one.

  The simulation stepping evolves core_profiles, which includes all the
  attributes the solver is advancing. Beyond those, the transport
  coefficients, sources and solver diagnostics of the last step are kept so
  that the next step can size its dt and observers can report on them.

  Attributes:
    t: time coordinate.
    dt: timestep interval of the step that produced this state. Zero for the
      initial state.
    core_profiles: Plasma profiles at t.
    core_transport: Transport coefficients evaluated at t.
    core_sources: Source terms computed at time t.
    solver_numeric_outputs: Diagnostics of the solve that produced this state.
    sawtooth_state: Stage of the sawtooth cycle after this step.
    step: Number of accepted steps since the start of the simulation.
    post_processed_outputs: Scalar diagnostics of this state.
  """

  t: float
  dt: float
  core_profiles: state.CoreProfiles
  core_transport: state.TransportCoefficients
  core_sources: source_profiles.SourceTerms
  solver_numeric_outputs: state.SolverNumericOutputs
  sawtooth_state: sawtooth_model.SawtoothState = (
      sawtooth_model.SawtoothState.STABLE
  )
  step: int = 0
  post_processed_outputs: post_processing.PostProcessedOutputs | None = None

  def check_for_errors(self) -> state.SimError:
    """NEGATIVE_CORE_PROFILES or NAN_DETECTED if the state is invalid."""
    if self.core_profiles.negative_temperature_or_density():
      logging.info('Unphysical negative values detected in core profiles:\n')
      _log_negative_profile_names(self.core_profiles)
      return state.SimError.NEGATIVE_CORE_PROFILES
    if self.has_nan():
      logging.info('NaNs detected in SimState:\n')
      _log_nans(self)
      return state.SimError.NAN_DETECTED
    return state.SimError.NO_ERROR

  def has_nan(self) -> bool:
    return self.core_profiles.has_nan() or any(
        np.any(np.isnan(np.asarray(x)))
        for x in jax.tree.leaves(self.core_transport)
    )


def _log_nans(inputs: SimState) -> None:
  for name, tree in (
      ('core_profiles', inputs.core_profiles),
      ('core_transport', inputs.core_transport),
  ):
    path_vals, _ = jax.tree.flatten_with_path(tree)
    for path, value in path_vals:
      if np.any(np.isnan(np.asarray(value))):
        logging.info(
            'Found NaNs in sim_state.%s%s', name, jax.tree_util.keystr(path)
        )


def _log_negative_profile_names(inputs: state.CoreProfiles) -> None:
  for name in ('T_i', 'T_e', 'n_e'):
    if np.any(np.asarray(inputs[name].value) < 0):
      logging.info('Found negative value in %s', name)

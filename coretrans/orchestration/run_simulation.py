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

"""Runs a coretrans simulation from a config."""

from collections.abc import Callable, Mapping
import dataclasses
import threading
import time
from typing import Any

from absl import logging
import immutabledict

from coretrans import state
from coretrans.config import build_runtime_params
from coretrans.config import model_config
from coretrans.orchestration import initial_state as initial_state_lib
from coretrans.orchestration import progress
from coretrans.orchestration import run_loop
from coretrans.orchestration import sim_state
from coretrans.orchestration import state_holder as state_holder_lib
from coretrans.orchestration import step_function
from coretrans.output_tools import post_processing
from coretrans.transport_model import transport_model as transport_model_lib


@dataclasses.dataclass(frozen=True)
class SimulationResult:
  """Output of a simulation.

  Attributes:
    state_history: Initial state followed by one state per accepted step.
    sim_error: Error which stopped the simulation, or `NO_ERROR`.
    total_steps: Number of accepted steps.
    wall_time: Wall clock duration of the run loop [s].
    statistics: Accumulated run statistics.
  """

  state_history: tuple[sim_state.SimState, ...]
  sim_error: state.SimError
  total_steps: int
  wall_time: float
  statistics: Mapping[str, Any]

  @property
  def final_state(self) -> sim_state.SimState:
    return self.state_history[-1]

  @property
  def conservation_drift(self) -> post_processing.ConservationDrift | None:
    """Drift of the final particle and energy content from the initial state."""
    initial = self.state_history[0].post_processed_outputs
    final = self.final_state.post_processed_outputs
    if initial is None or final is None:
      return None
    return post_processing.conservation_drift(final, initial)


def make_step_fn(
    config: model_config.CoreTransConfig,
    transport_model: transport_model_lib.TransportModel | None = None,
) -> step_function.SimulationStepFn:
  """Builds the models of a config into a step function.

  Args:
    config: The simulation config.
    transport_model: Overrides the transport model built from the config. Its
      runtime parameters are still built from `config.transport`.

  Returns:
    The step function of the simulation.
  """
  if transport_model is None:
    transport_model = config.transport.build_transport_model()
  solver = config.solver.build_solver(
      transport_model=transport_model,
      source_models=config.sources.build_models(),
  )
  return step_function.SimulationStepFn(
      solver=solver,
      time_step_calculator=config.time_step_calculator.time_step_calculator,
      runtime_params_provider=build_runtime_params.RuntimeParamsProvider.from_config(
          config
      ),
      static_runtime_params_slice=build_runtime_params.build_static_params_from_config(
          config
      ),
      geo=config.geometry.build_geometry(),
      sawtooth_model=config.mhd.build_sawtooth_model(),
  )


def run_simulation(
    config: model_config.CoreTransConfig,
    progress_bar: bool = True,
    log_timestep_info: bool = False,
    progress_callback: Callable[[progress.ProgressSnapshot], None] | None = None,
    poll_interval: float = 0.1,
    cancel_event: threading.Event | None = None,
    transport_model: transport_model_lib.TransportModel | None = None,
) -> SimulationResult:
  """Runs a simulation.

  Args:
    config: The simulation config.
    progress_bar: If True, displays a progress bar.
    log_timestep_info: If True, logs basic timestep info on every step.
    progress_callback: If given, a ProgressObserver thread delivers progress
      snapshots to it every `poll_interval` seconds while the run loop is
      active.
    poll_interval: Polling interval of the progress observer [s].
    cancel_event: If set during the run, the simulation stops at the next step
      boundary.
    transport_model: Overrides the transport model built from the config.

  Returns:
    The simulation result.
  """
  step_fn = make_step_fn(config, transport_model=transport_model)
  initial_state = initial_state_lib.get_initial_state(
      step_fn.runtime_params_provider(config.numerics.t_initial),
      step_fn.geometry,
      step_fn.solver,
  )
  holder = state_holder_lib.StateHolder(initial_state)

  observer = None
  if progress_callback is not None:
    observer = progress.ProgressObserver(
        holder,
        progress_callback,
        t_final=config.numerics.t_final,
        poll_interval=poll_interval,
        tolerance=config.time_step_calculator.tolerance,
    )
    observer.start()

  start_time = time.time()
  try:
    state_history, sim_error, statistics = run_loop.run_loop(
        holder=holder,
        step_fn=step_fn,
        cancel_event=cancel_event,
        log_timestep_info=log_timestep_info,
        progress_bar=progress_bar,
    )
  finally:
    if observer is not None:
      observer.cancel()
      observer.join()
  wall_time = time.time() - start_time

  if sim_error != state.SimError.NO_ERROR:
    logging.warning(
        'Simulation stopped early at t=%.6f: %s.',
        state_history[-1].t,
        sim_error.name,
    )
  result = SimulationResult(
      state_history=tuple(state_history),
      sim_error=sim_error,
      total_steps=len(state_history) - 1,
      wall_time=wall_time,
      statistics=immutabledict.immutabledict(statistics),
  )
  drift = result.conservation_drift
  # Informational only: sources and edge values change the content.
  if drift is not None and drift.exceeds():
    logging.info(
        'Relative drift from the initial state: particles %.3e, thermal'
        ' energy %.3e.',
        drift.particle_drift,
        drift.energy_drift,
    )
  return result

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

"""The loop driving a simulation from its initial state to t_final."""

import threading
import time
from typing import Any

from absl import logging
import jax
import tqdm

from coretrans import state
from coretrans.orchestration import sim_state
from coretrans.orchestration import state_holder as state_holder_lib
from coretrans.orchestration import step_function

_SOLVER_STATUS = {
    1: ' Solver did not converge in previous step.',
    2: ' Solver converged only within coarse tolerance in previous step.',
}


def _initial_statistics() -> dict[str, Any]:
  return {
      'inner_solver_iterations': 0,
      'dt_reductions': 0,
      'sawtooth_crashes': 0,
      'steps': 0,
      'cancelled': False,
  }


def run_loop(
    holder: state_holder_lib.StateHolder,
    step_fn: step_function.SimulationStepFn,
    cancel_event: threading.Event | None = None,
    log_timestep_info: bool = False,
    progress_bar: bool = True,
) -> tuple[list[sim_state.SimState], state.SimError, dict[str, Any]]:
  """Steps the simulation until t_final, an error or cancellation.

  The loop is the only writer of `holder`: each accepted state is published
  together with the statistics so far. `cancel_event` is checked before each
  step, never during one.

  Args:
    holder: Holder of the current state, initially the initial state.
    step_fn: Advances a SimState by one step of its own choosing of dt.
    cancel_event: Stops the loop at the next step boundary once set.
    log_timestep_info: Write t, dt and the solver status of each step.
    progress_bar: Show a tqdm bar of the fraction of the run completed.

  Returns:
    The history, starting with the initial state and truncated before a failed
    step; the final error state; and the run statistics.
  """
  logging.info(
      'JAX running on a default %s backend, float%d.',
      jax.default_backend(),
      64 if jax.config.read('jax_enable_x64') else 32,
  )
  wall_start = time.time()

  history = [holder.state]
  sim_error = state.SimError.NO_ERROR
  statistics = _initial_statistics()
  numerics = step_fn.runtime_params_provider.numerics
  duration = max(numerics.t_final - numerics.t_initial, 1e-30)

  with tqdm.tqdm(
      total=100, desc='Simulating', disable=not progress_bar, leave=True
  ) as pbar:
    while not step_fn.is_done(history[-1].t):
      if cancel_event is not None and cancel_event.is_set():
        logging.info('Simulation cancelled at t=%.6f.', history[-1].t)
        statistics['cancelled'] = True
        break
      if log_timestep_info:
        _log_timestep(history[-1])

      with holder.exclusive_step() as transaction:
        new_state, sim_error = step_fn(transaction.state, statistics)
        if sim_error == state.SimError.NO_ERROR:
          statistics['steps'] += 1
          transaction.publish(new_state, statistics)

      if sim_error != state.SimError.NO_ERROR:
        # The history up to the failed step is still returned to the caller.
        sim_error.log_error()
        break
      history.append(new_state)

      t = float(new_state.t)
      pbar.n = int(100 * (t - numerics.t_initial) / duration)
      pbar.set_description(f'Simulating (t={t:.5f})')
      pbar.refresh()

  if log_timestep_info and sim_error == state.SimError.NO_ERROR:
    _log_timestep(history[-1])

  logging.info(
      'Simulated %.2fs of physics in %.2fs of wall clock time.',
      history[-1].t - history[0].t,
      time.time() - wall_start,
  )
  return history, sim_error, statistics


def _log_timestep(current_state: sim_state.SimState) -> None:
  outputs = current_state.solver_numeric_outputs
  message = (
      f'Simulation time: {current_state.t:.5f}, previous dt:'
      f' {current_state.dt:.6f}, previous solver iterations:'
      f' {outputs.inner_solver_iterations}'
  )
  message += _SOLVER_STATUS.get(int(outputs.solver_error_state), '')
  tqdm.tqdm.write(message)

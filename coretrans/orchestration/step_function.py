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

"""Logic which controls the stepping over time of the simulation."""

import dataclasses

from absl import logging

from coretrans import state
from coretrans.config import build_runtime_params
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.mhd.sawtooth import sawtooth_model as sawtooth_model_lib
from coretrans.orchestration import sim_state
from coretrans.output_tools import post_processing
from coretrans.solver import solver as solver_lib
from coretrans.time_step_calculator import time_step_calculator as ts


def provide_core_profiles_t_plus_dt(
    core_profiles_t: state.CoreProfiles,
    dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
) -> state.CoreProfiles:
  """Returns the profiles at t with the boundary conditions at t + dt.

  The cell values are the initial guess of the solver. The poloidal flux
  keeps its edge value.

  Args:
    core_profiles_t: Core profiles at the start of the step.
    dynamic_runtime_params_slice_t_plus_dt: Runtime parameters at the end of
      the step.

  Returns:
    Core profiles holding the boundary conditions at t + dt.
  """
  conditions = dynamic_runtime_params_slice_t_plus_dt.profile_conditions
  return core_profiles_t.replace_edge_values(
      T_i=conditions.T_i_right_bc,
      T_e=conditions.T_e_right_bc,
      n_e=conditions.n_e_right_bc,
  )


class SimulationStepFn:
  """Advances the simulation state by one accepted time step.

  A step of the size proposed by the time step calculator is attempted. A
  step whose solve does not converge is never accepted: with `adaptive_dt`
  the attempt is repeated with dt divided by `dt_reduction_factor` until it
  converges or dt falls below `min_dt`.
  """

  def __init__(
      self,
      solver: solver_lib.Solver,
      time_step_calculator: ts.TimeStepCalculator,
      runtime_params_provider: build_runtime_params.RuntimeParamsProvider,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      geo: geometry.Geometry,
      sawtooth_model: sawtooth_model_lib.SawtoothModel | None = None,
  ):
    """Initializes the SimulationStepFn.

    Args:
      solver: Evolves the core profiles over one time step.
      time_step_calculator: Proposes the duration of each step.
      runtime_params_provider: Provides the dynamic runtime params at any t.
      static_runtime_params_slice: Runtime params fixed for the whole run.
      geo: Torus geometry.
      sawtooth_model: Applied after every accepted step, if not None.
    """
    self._solver = solver
    self._time_step_calculator = time_step_calculator
    self._runtime_params_provider = runtime_params_provider
    self._static_runtime_params_slice = static_runtime_params_slice
    self._geo = geo
    self._sawtooth_model = sawtooth_model

  @property
  def solver(self) -> solver_lib.Solver:
    return self._solver

  @property
  def time_step_calculator(self) -> ts.TimeStepCalculator:
    return self._time_step_calculator

  @property
  def runtime_params_provider(
      self,
  ) -> build_runtime_params.RuntimeParamsProvider:
    return self._runtime_params_provider

  @property
  def geometry(self) -> geometry.Geometry:
    return self._geo

  def is_done(self, t: float) -> bool:
    return not self._time_step_calculator.not_done(
        t, self._runtime_params_provider.numerics.t_final
    )

  def __call__(
      self,
      input_state: sim_state.SimState,
      loop_statistics: dict[str, int] | None = None,
  ) -> tuple[sim_state.SimState, state.SimError]:
    """Advances the simulation state one time step.

    Args:
      input_state: State at the start of the step.
      loop_statistics: If given, `inner_solver_iterations`, `dt_reductions`
        and `sawtooth_crashes` entries are incremented in place.

    Returns:
      The state after the step, and the error which stops the simulation, if
      any. On error the input state is returned.

    Raises:
      CriticalNumericalError: If NaN or Inf appear in the assembled
        coefficients. Such failures are never retried.
    """
    if loop_statistics is None:
      loop_statistics = {}
    for key in ('inner_solver_iterations', 'dt_reductions', 'sawtooth_crashes'):
      loop_statistics.setdefault(key, 0)

    dynamic_runtime_params_slice_t = self._runtime_params_provider(
        input_state.t
    )
    numerics = dynamic_runtime_params_slice_t.numerics
    dt = self._time_step_calculator.next_dt(
        input_state.t,
        dynamic_runtime_params_slice_t,
        self._geo,
        input_state.core_profiles,
        input_state.core_transport,
    )
    if input_state.dt > 0.0:
      dt = min(dt, ts.adapt_dt(input_state.dt, numerics, input_state.t))

    while True:
      dynamic_runtime_params_slice_t_plus_dt = self._runtime_params_provider(
          input_state.t + dt
      )
      core_profiles, solver_numeric_outputs, (core_transport, core_sources) = (
          self._solver(
              dt=dt,
              static_runtime_params_slice=self._static_runtime_params_slice,
              dynamic_runtime_params_slice_t=dynamic_runtime_params_slice_t,
              dynamic_runtime_params_slice_t_plus_dt=dynamic_runtime_params_slice_t_plus_dt,
              geo=self._geo,
              core_profiles_t=input_state.core_profiles,
              core_profiles_t_plus_dt=provide_core_profiles_t_plus_dt(
                  input_state.core_profiles,
                  dynamic_runtime_params_slice_t_plus_dt,
              ),
          )
      )
      loop_statistics['inner_solver_iterations'] += int(
          solver_numeric_outputs.inner_solver_iterations
      )
      if solver_numeric_outputs.converged:
        break
      if not self._static_runtime_params_slice.adaptive_dt:
        logging.error(
            'Solver did not converge at t=%.6f with dt=%.3e and adaptive_dt'
            ' is disabled.',
            input_state.t,
            dt,
        )
        return input_state, state.SimError.REACHED_MIN_DT
      dt = dt / numerics.dt_reduction_factor
      loop_statistics['dt_reductions'] += 1
      if dt < numerics.min_dt:
        return input_state, state.SimError.REACHED_MIN_DT
      logging.info(
          'Solver did not converge. Retrying step at t=%.6f with dt=%.3e.',
          input_state.t,
          dt,
      )

    if int(solver_numeric_outputs.solver_error_state) == 2:
      logging.warning(
          'Solver converged only within coarse tolerance at t=%.6f.',
          input_state.t + dt,
      )

    sawtooth_state = sawtooth_model_lib.SawtoothState.STABLE
    if self._sawtooth_model is not None:
      core_profiles, sawtooth_state = self._sawtooth_model(
          dynamic_runtime_params_slice_t_plus_dt,
          self._geo,
          core_profiles,
          dt,
          input_state.sawtooth_state,
      )
      if sawtooth_state == sawtooth_model_lib.SawtoothState.RELAXED:
        loop_statistics['sawtooth_crashes'] += 1
        solver_numeric_outputs = dataclasses.replace(
            solver_numeric_outputs, sawtooth_crash=True
        )
        core_transport = self._solver.transport_model(
            dynamic_runtime_params_slice_t_plus_dt, self._geo, core_profiles
        )
        core_sources = self._solver.source_models(
            dynamic_runtime_params_slice_t_plus_dt, self._geo, core_profiles
        )

    output_state = sim_state.SimState(
        t=input_state.t + dt,
        dt=dt,
        core_profiles=core_profiles,
        core_transport=core_transport,
        core_sources=core_sources,
        solver_numeric_outputs=solver_numeric_outputs,
        sawtooth_state=sawtooth_state,
        step=input_state.step + 1,
    )
    sim_error = output_state.check_for_errors()
    if sim_error != state.SimError.NO_ERROR:
      return input_state, sim_error
    output_state = dataclasses.replace(
        output_state,
        post_processed_outputs=post_processing.make_post_processed_outputs(
            core_profiles, core_sources, self._geo
        ),
    )
    return output_state, sim_error

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

"""Step functions around a solver stub whose convergence depends on dt."""

from collections.abc import Mapping
import dataclasses
from typing import Any

import jax

from coretrans import state
from coretrans.config import build_runtime_params
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.orchestration import initial_state as initial_state_lib
from coretrans.orchestration import sim_state
from coretrans.orchestration import step_function
from coretrans.solver import solver as solver_lib
from coretrans.test_utils import core_profile_helpers


@dataclasses.dataclass(frozen=True, eq=False)
class DtLimitedSolver(solver_lib.Solver):
  """Keeps the profiles fixed and converges only for dt <= max_converging_dt.

  Each call counts as one inner iteration.
  """

  max_converging_dt: float = float('inf')

  def _x_new(
      self,
      dt: jax.Array,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      dynamic_runtime_params_slice_t: runtime_params_slice.DynamicRuntimeParamsSlice,
      dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles_t: state.CoreProfiles,
      core_profiles_t_plus_dt: state.CoreProfiles,
  ) -> tuple[
      state.CoreProfiles, state.SolverNumericOutputs, solver_lib.CoeffsAux
  ]:
    del static_runtime_params_slice, dynamic_runtime_params_slice_t
    del core_profiles_t
    converged = float(dt) <= self.max_converging_dt
    core_transport = self.transport_model(
        dynamic_runtime_params_slice_t_plus_dt, geo, core_profiles_t_plus_dt
    )
    core_sources = self.source_models(
        dynamic_runtime_params_slice_t_plus_dt, geo, core_profiles_t_plus_dt
    )
    return (
        core_profiles_t_plus_dt,
        state.SolverNumericOutputs(
            inner_solver_iterations=1,
            solver_error_state=0 if converged else 1,
        ),
        (core_transport, core_sources),
    )


def make_step_fn(
    overrides: Mapping[str, Any] | None = None,
    max_converging_dt: float = float('inf'),
) -> tuple[step_function.SimulationStepFn, sim_state.SimState]:
  """Returns a step function using `DtLimitedSolver` and its initial state.

  The default config steps with a fixed dt of 0.1 up to t_final 1.0.

  Args:
    overrides: Top level config entries replacing the defaults.
    max_converging_dt: Largest dt for which the solver stub converges.
  """
  config = core_profile_helpers.make_config({
      'numerics': {'t_final': 1.0, 'fixed_dt': 0.1},
      'time_step_calculator': {'calculator_type': 'fixed'},
      **(overrides or {}),
  })
  solver = DtLimitedSolver(
      transport_model=config.transport.build_transport_model(),
      source_models=config.sources.build_models(),
      max_converging_dt=max_converging_dt,
  )
  provider = build_runtime_params.RuntimeParamsProvider.from_config(config)
  geo = config.geometry.build_geometry()
  step_fn = step_function.SimulationStepFn(
      solver=solver,
      time_step_calculator=config.time_step_calculator.time_step_calculator,
      runtime_params_provider=provider,
      static_runtime_params_slice=build_runtime_params.build_static_params_from_config(
          config
      ),
      geo=geo,
      sawtooth_model=config.mhd.build_sawtooth_model(),
  )
  initial_state = initial_state_lib.get_initial_state(
      provider(config.numerics.t_initial), geo, solver
  )
  return step_fn, initial_state

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

"""Code for getting the initial state for a simulation."""

from jax import numpy as jnp

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.orchestration import sim_state
from coretrans.output_tools import post_processing
from coretrans.physics import formulas
from coretrans.solver import solver as solver_lib


# pylint: disable=invalid-name
def _parabolic_profile(
    rho_norm: jnp.ndarray,
    core_value: float,
    edge_value: float,
    exponent: float,
) -> jnp.ndarray:
  return edge_value + (core_value - edge_value) * (1.0 - rho_norm**2) ** exponent


def initial_core_profiles(
    dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
) -> state.CoreProfiles:
  """Calculates the initial core profiles.

  Temperatures and density are parabolic in normalized radius between their
  on-axis and boundary values. The poloidal flux is consistent with the
  safety factor profile of the geometry.

  Args:
    dynamic_runtime_params_slice: Runtime parameters at the initial time.
    geo: Torus geometry.

  Returns:
    Initial core profiles.
  """
  conditions = dynamic_runtime_params_slice.profile_conditions
  rho_norm = jnp.asarray(geo.rho_norm)
  psi_face = formulas.initial_poloidal_flux_face(geo)
  return state.CoreProfiles.from_values(
      geo,
      T_i=_parabolic_profile(
          rho_norm,
          conditions.T_i_0,
          conditions.T_i_right_bc,
          conditions.T_peaking_exponent,
      ),
      T_e=_parabolic_profile(
          rho_norm,
          conditions.T_e_0,
          conditions.T_e_right_bc,
          conditions.T_peaking_exponent,
      ),
      n_e=_parabolic_profile(
          rho_norm,
          conditions.n_e_0,
          conditions.n_e_right_bc,
          conditions.n_peaking_exponent,
      ),
      psi=geometry.face_to_cell(psi_face),
      T_i_edge=conditions.T_i_right_bc,
      T_e_edge=conditions.T_e_right_bc,
      n_e_edge=conditions.n_e_right_bc,
      psi_edge=psi_face[-1],
  )


def get_initial_state(
    dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
    geo: geometry.Geometry,
    solver: solver_lib.Solver,
) -> sim_state.SimState:
  """Returns the initial state to be used by run_simulation()."""
  core_profiles = initial_core_profiles(dynamic_runtime_params_slice, geo)
  core_transport = solver.transport_model(
      dynamic_runtime_params_slice, geo, core_profiles
  )
  core_sources = solver.source_models(
      dynamic_runtime_params_slice, geo, core_profiles
  )
  return sim_state.SimState(
      t=dynamic_runtime_params_slice.t,
      dt=0.0,
      core_profiles=core_profiles,
      core_transport=core_transport,
      core_sources=core_sources,
      solver_numeric_outputs=state.SolverNumericOutputs(),
      post_processed_outputs=post_processing.make_post_processed_outputs(
          core_profiles, core_sources, geo
      ),
  )

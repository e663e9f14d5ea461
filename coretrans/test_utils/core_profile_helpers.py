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

"""Helpers for tests using geometry, core profiles and runtime params."""

from collections.abc import Mapping
from typing import Any

from jax import numpy as jnp

from coretrans import state
from coretrans.config import build_runtime_params
from coretrans.config import model_config
from coretrans.config import runtime_params_slice
from coretrans.geometry import circular_geometry
from coretrans.geometry import geometry
from coretrans.physics import formulas

# Reference machine used across the tests.
R_MAJOR = 6.2
A_MINOR = 2.0
B_0 = 5.3
N_RHO = 50


# pylint: disable=invalid-name
def make_geometry(n_rho: int = N_RHO) -> geometry.Geometry:
  return circular_geometry.CircularConfig(
      n_rho=n_rho, R_major=R_MAJOR, a_minor=A_MINOR, B_0=B_0
  ).build_geometry()


def make_core_profiles(
    geo: geometry.Geometry,
    T_i_0: float = 15000.0,
    T_e_0: float = 15000.0,
    n_e_0: float = 1.2e20,
    T_edge: float = 100.0,
    n_e_edge: float = 0.6e20,
) -> state.CoreProfiles:
  """Returns reference profiles T = T_0 (1 - rho^2), n_e = n_e_0 (1 - rho^2/2).

  Args:
    geo: Geometry of the profiles.
    T_i_0: On-axis ion temperature [eV].
    T_e_0: On-axis electron temperature [eV].
    n_e_0: On-axis electron density [m^-3].
    T_edge: Dirichlet edge value of both temperatures [eV].
    n_e_edge: Dirichlet edge value of the density [m^-3].
  """
  rho_norm = jnp.asarray(geo.rho_norm)
  psi_face = formulas.initial_poloidal_flux_face(geo)
  return state.CoreProfiles.from_values(
      geo,
      T_i=T_i_0 * (1.0 - rho_norm**2),
      T_e=T_e_0 * (1.0 - rho_norm**2),
      n_e=n_e_0 * (1.0 - 0.5 * rho_norm**2),
      psi=geometry.face_to_cell(psi_face),
      T_i_edge=T_edge,
      T_e_edge=T_edge,
      n_e_edge=n_e_edge,
      psi_edge=psi_face[-1],
  )


def make_config(
    overrides: Mapping[str, Any] | None = None,
) -> model_config.CoreTransConfig:
  """Returns a config on the reference geometry, updated by `overrides`."""
  config = {
      'geometry': {
          'n_rho': N_RHO,
          'R_major': R_MAJOR,
          'a_minor': A_MINOR,
          'B_0': B_0,
      },
  }
  config.update(overrides or {})
  return model_config.CoreTransConfig.from_dict(config)


def make_runtime_params(
    config: model_config.CoreTransConfig,
    t: float | None = None,
) -> tuple[
    runtime_params_slice.StaticRuntimeParamsSlice,
    runtime_params_slice.DynamicRuntimeParamsSlice,
]:
  """Returns the static slice and the dynamic slice at t (default t_initial)."""
  if t is None:
    t = config.numerics.t_initial
  provider = build_runtime_params.RuntimeParamsProvider.from_config(config)
  return (
      build_runtime_params.build_static_params_from_config(config),
      provider(t),
  )

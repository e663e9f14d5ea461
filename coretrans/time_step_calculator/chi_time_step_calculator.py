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

"""Time step from the explicit stability limits of diffusion and convection."""

import dataclasses

import jax
from jax import numpy as jnp

from coretrans import state as state_module
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.time_step_calculator import time_step_calculator


@dataclasses.dataclass(frozen=True)
class ChiTimeStepCalculator(time_step_calculator.TimeStepCalculator):
  """TimeStepCalculator based on chi_max and |v|_max heuristics."""

  def _next_dt(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state_module.CoreProfiles,
      core_transport: state_module.TransportCoefficients,
  ) -> jax.Array:
    """Smallest of the scaled diffusive and convective limits and max_dt.

    The diffusive limit is prefactor * drho_norm^2 / chi_max and the
    convective one prefactor * drho / max|v_e|. A vanishing chi or v imposes
    no limit.
    """
    del core_profiles
    numerics = dynamic_runtime_params_slice.numerics
    prefactor = numerics.chi_timestep_prefactor

    chi_max = core_transport.chi_max(geo)
    diffusion_dt = jnp.where(
        chi_max > 0.0,
        prefactor * geo.drho_norm**2 / jnp.where(chi_max > 0.0, chi_max, 1.0),
        numerics.max_dt,
    )

    v_max = jnp.max(jnp.abs(core_transport.v_face_el))
    convection_dt = jnp.where(
        v_max > 0.0,
        prefactor * geo.drho / jnp.where(v_max > 0.0, v_max, 1.0),
        numerics.max_dt,
    )

    return jnp.minimum(
        jnp.minimum(diffusion_dt, convection_dt), numerics.max_dt
    )

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

"""The BohmGyroBohmTransportModel class.

An empirical model combining Bohm and gyroBohm scaling:

  chi_B = T_e / (16 B_0)
  chi_gB = (rho_s / a) chi_B,   rho_s = sqrt(m_i T_e e) / (e B_0)
  chi_i = chi_e = bohm_coeff chi_B + gyrobohm_coeff chi_gB
  D_e = D_e_ratio chi_e,   V_e = 0
"""

import chex
from jax import numpy as jnp

from coretrans import constants
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.transport_model import runtime_params as runtime_params_lib
from coretrans.transport_model import transport_model


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  """Extends the base runtime params with additional params for this model.

  See base class runtime_params.DynamicRuntimeParams docstring for more info.
  """

  chi_i_bohm_coeff: float
  chi_e_bohm_coeff: float
  chi_i_gyrobohm_coeff: float
  chi_e_gyrobohm_coeff: float
  D_e_ratio: float


def bohm_gyrobohm_coefficients(
    params: DynamicRuntimeParams,
    A_i: chex.Numeric,
    geo: geometry.Geometry,
    core_profiles: state.CoreProfiles,
) -> state.TransportCoefficients:
  """Raw Bohm-GyroBohm coefficients on the face grid, before clipping.

  Args:
    params: Bohm-GyroBohm coefficients.
    A_i: Main ion mass number.
    geo: Geometry of the torus.
    core_profiles: Core plasma profiles.

  Returns:
    The transport coefficients.
  """
  consts = constants.CONSTANTS
  T_e = jnp.maximum(core_profiles.T_e.face_value(), constants.TEMPERATURE_FLOOR)
  m_i = A_i * consts.m_amu

  chi_bohm = T_e / (16.0 * geo.B_0)
  rho_s = jnp.sqrt(m_i * T_e * consts.q_e) / (consts.q_e * geo.B_0)
  chi_gyrobohm = rho_s / geo.a_minor * chi_bohm

  chi_i = (
      params.chi_i_bohm_coeff * chi_bohm
      + params.chi_i_gyrobohm_coeff * chi_gyrobohm
  )
  chi_e = (
      params.chi_e_bohm_coeff * chi_bohm
      + params.chi_e_gyrobohm_coeff * chi_gyrobohm
  )
  return state.TransportCoefficients(
      chi_face_ion=chi_i,
      chi_face_el=chi_e,
      d_face_el=params.D_e_ratio * chi_e,
      v_face_el=jnp.zeros_like(chi_e),
  )


class BohmGyroBohmTransportModel(transport_model.TransportModel):
  """Calculates transport coefficients with the Bohm-GyroBohm model."""

  def __init__(self):
    super().__init__()
    self._frozen = True

  def _call_implementation(
      self,
      transport_dynamic_runtime_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> state.TransportCoefficients:
    assert isinstance(transport_dynamic_runtime_params, DynamicRuntimeParams)
    return bohm_gyrobohm_coefficients(
        transport_dynamic_runtime_params,
        dynamic_runtime_params_slice.plasma_composition.A_i,
        geo,
        core_profiles,
    )

  def __eq__(self, other):
    return isinstance(other, BohmGyroBohmTransportModel)

  def __hash__(self):
    return hash('BohmGyroBohmTransportModel')

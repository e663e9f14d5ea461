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

"""Transport model with prescribed, radially uniform coefficients."""

import chex
from jax import numpy as jnp

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.transport_model import runtime_params as runtime_params_lib
from coretrans.transport_model import transport_model

# pylint: disable=invalid-name


@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  chi_i: float
  chi_e: float
  D_e: float
  V_e: float


class ConstantTransportModel(transport_model.TransportModel):
  """Broadcasts the configured chi_i, chi_e, D_e and V_e onto the faces."""

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
    del dynamic_runtime_params_slice, core_profiles
    params = transport_dynamic_runtime_params
    if not isinstance(params, DynamicRuntimeParams):
      raise TypeError(f'Expected constant model params, got {type(params)}.')
    face = jnp.ones_like(jnp.asarray(geo.rho_face_norm))
    return state.TransportCoefficients(
        chi_face_ion=params.chi_i * face,
        chi_face_el=params.chi_e * face,
        d_face_el=params.D_e * face,
        v_face_el=params.V_e * face,
    )

  def __eq__(self, other):
    return type(other) is ConstantTransportModel

  def __hash__(self):
    return hash(type(self).__name__)

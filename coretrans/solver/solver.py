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

"""Base class of the solvers advancing the evolving profiles by one step."""

import abc
import dataclasses
from typing import TypeAlias

from absl import logging
import jax
import numpy as np

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.fvm import calc_coeffs
from coretrans.geometry import geometry
from coretrans.sources import source_models as source_models_lib
from coretrans.sources import source_profiles
from coretrans.transport_model import transport_model as transport_model_lib

# Transport coefficients and source terms matching the returned profiles.
CoeffsAux: TypeAlias = tuple[
    state.TransportCoefficients, source_profiles.SourceTerms
]


@dataclasses.dataclass(frozen=True, eq=False)
class Solver(abc.ABC):
  """Advances the evolving profiles from t to t + dt.

  Attributes:
    transport_model: Evaluated each time the coefficients are rebuilt.
    source_models: Evaluated each time the coefficients are rebuilt.
  """

  transport_model: transport_model_lib.TransportModel
  source_models: source_models_lib.SourceModels

  def coeffs_callback(
      self,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
  ) -> calc_coeffs.CoeffsCallback:
    return calc_coeffs.CoeffsCallback(
        static_runtime_params_slice=static_runtime_params_slice,
        transport_model=self.transport_model,
        source_models=self.source_models,
    )

  def __call__(
      self,
      dt: jax.Array,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      dynamic_runtime_params_slice_t: runtime_params_slice.DynamicRuntimeParamsSlice,
      dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles_t: state.CoreProfiles,
      core_profiles_t_plus_dt: state.CoreProfiles,
  ) -> tuple[state.CoreProfiles, state.SolverNumericOutputs, CoeffsAux]:
    """Solves one step.

    Args:
      dt: Step length [s].
      static_runtime_params_slice: Selects the evolved equations.
      dynamic_runtime_params_slice_t: Parameters at the start of the step.
      dynamic_runtime_params_slice_t_plus_dt: Parameters at the end of the
        step, used by the implicit terms.
      geo: Geometry of the torus.
      core_profiles_t: Profiles at the start of the step.
      core_profiles_t_plus_dt: Profiles carrying the boundary conditions at
        t + dt. Their evolving values are the initial guess.

    Returns:
      The profiles at t + dt, trustworthy only when the numeric outputs report
      convergence; the numeric outputs; and the coefficients' ingredients at
      the returned profiles.
    """
    result = self._x_new(
        dt=dt,
        static_runtime_params_slice=static_runtime_params_slice,
        dynamic_runtime_params_slice_t=dynamic_runtime_params_slice_t,
        dynamic_runtime_params_slice_t_plus_dt=dynamic_runtime_params_slice_t_plus_dt,
        geo=geo,
        core_profiles_t=core_profiles_t,
        core_profiles_t_plus_dt=core_profiles_t_plus_dt,
    )
    outputs = result[1]
    logging.debug(
        '%s: dt=%.3e, iterations=%d, error state=%d.',
        type(self).__name__,
        float(dt),
        int(outputs.inner_solver_iterations),
        int(outputs.solver_error_state),
    )
    return result

  @abc.abstractmethod
  def _x_new(
      self,
      dt: jax.Array,
      static_runtime_params_slice: runtime_params_slice.StaticRuntimeParamsSlice,
      dynamic_runtime_params_slice_t: runtime_params_slice.DynamicRuntimeParamsSlice,
      dynamic_runtime_params_slice_t_plus_dt: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles_t: state.CoreProfiles,
      core_profiles_t_plus_dt: state.CoreProfiles,
  ) -> tuple[state.CoreProfiles, state.SolverNumericOutputs, CoeffsAux]:
    """Solver specific part of `__call__`, with the same arguments."""


def has_unphysical_values(
    core_profiles: state.CoreProfiles,
    evolving_names: tuple[str, ...],
) -> bool:
  """Whether an evolving profile has NaNs, or a non-positive T or n_e."""
  for name in evolving_names:
    value = np.asarray(core_profiles[name].value)
    if np.isnan(value).any():
      return True
    if name != 'psi' and (value <= 0.0).any():
      return True
  return False

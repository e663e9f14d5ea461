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

"""Turns a validated config into the runtime params the step function uses."""

import dataclasses

import chex
import typing_extensions

from coretrans.config import model_config
from coretrans.config import numerics as numerics_lib
from coretrans.config import plasma_composition as plasma_composition_lib
from coretrans.config import profile_conditions as profile_conditions_lib
from coretrans.config import runtime_params_slice
from coretrans.mhd import pydantic_model as mhd_pydantic_model
from coretrans.solver import pydantic_model as solver_pydantic_model
from coretrans.sources import pydantic_model as sources_pydantic_model
from coretrans.transport_model import pydantic_model as transport_pydantic_model


@dataclasses.dataclass(frozen=True)
class RuntimeParamsProvider:
  """Evaluates the time dependent parts of a config at any time t.

  Calling the provider interpolates every time varying parameter to t and
  bundles the result into a `DynamicRuntimeParamsSlice`. The provider itself
  holds only frozen config nodes, so it can be shared between threads.
  """

  sources: sources_pydantic_model.Sources
  numerics: numerics_lib.Numerics
  profile_conditions: profile_conditions_lib.ProfileConditions
  plasma_composition: plasma_composition_lib.PlasmaComposition
  transport_model: transport_pydantic_model.TransportConfig
  solver: solver_pydantic_model.SolverConfig
  mhd: mhd_pydantic_model.MHD

  @classmethod
  def from_config(
      cls,
      config: model_config.CoreTransConfig,
  ) -> typing_extensions.Self:
    return cls(
        sources=config.sources,
        numerics=config.numerics,
        profile_conditions=config.profile_conditions,
        plasma_composition=config.plasma_composition,
        transport_model=config.transport,
        solver=config.solver,
        mhd=config.mhd,
    )

  def __call__(
      self,
      t: chex.Numeric,
  ) -> runtime_params_slice.DynamicRuntimeParamsSlice:
    return runtime_params_slice.DynamicRuntimeParamsSlice(
        t=float(t),
        transport=self.transport_model.build_runtime_params(t),
        solver=self.solver.build_runtime_params(t),
        plasma_composition=self.plasma_composition.build_runtime_params(t),
        profile_conditions=self.profile_conditions.build_runtime_params(t),
        numerics=self.numerics.build_runtime_params(t),
        sources=self.sources.build_runtime_params(t),
        sawtooth=self.mhd.build_runtime_params(t),
    )


def build_static_params_from_config(
    config: model_config.CoreTransConfig,
) -> runtime_params_slice.StaticRuntimeParamsSlice:
  """Collects the parameters that stay fixed for the whole run."""
  return runtime_params_slice.StaticRuntimeParamsSlice(
      n_rho=config.geometry.n_rho,
      evolve_ion_heat=config.numerics.evolve_ion_heat,
      evolve_electron_heat=config.numerics.evolve_electron_heat,
      evolve_current=config.numerics.evolve_current,
      evolve_density=config.numerics.evolve_density,
      solver_type=config.solver.solver_type,
      theta_implicit=config.solver.theta_implicit,
      adaptive_dt=config.numerics.adaptive_dt,
  )

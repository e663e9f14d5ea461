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

"""Pydantic config for coretrans."""

import copy
from typing import Any

from absl import logging
import pydantic
import typing_extensions

from coretrans.config import model_base
from coretrans.config import numerics as numerics_lib
from coretrans.config import plasma_composition as plasma_composition_lib
from coretrans.config import profile_conditions as profile_conditions_lib
from coretrans.geometry import circular_geometry
from coretrans.mhd import pydantic_model as mhd_pydantic_model
from coretrans.solver import pydantic_model as solver_pydantic_model
from coretrans.sources import pydantic_model as sources_pydantic_model
from coretrans.time_step_calculator import pydantic_model as time_step_calculator_pydantic_model
from coretrans.transport_model import pydantic_model as transport_model_pydantic_model


class CoreTransConfig(model_base.BaseModelFrozen):
  """Base config class for coretrans.

  Attributes:
    profile_conditions: Config for the profile conditions.
    numerics: Config for the numerics.
    plasma_composition: Config for the plasma composition.
    geometry: Config for the geometry.
    sources: Config for the sources, keyed by source name.
    solver: Config for the solver. If an empty dictionary is passed in, the
      solver will be set to `newton_raphson`.
    transport: Config for the transport model. If an empty dictionary is passed
      in, the transport model will be set to `constant`.
    mhd: Config for MHD models. Sawteeth are disabled unless configured.
    time_step_calculator: Config for the time step calculator. If not
      provided the default chi time step calculator is used.
  """

  profile_conditions: profile_conditions_lib.ProfileConditions = (
      pydantic.Field(default_factory=profile_conditions_lib.ProfileConditions)
  )
  numerics: numerics_lib.Numerics = pydantic.Field(
      default_factory=numerics_lib.Numerics
  )
  plasma_composition: plasma_composition_lib.PlasmaComposition = (
      pydantic.Field(default_factory=plasma_composition_lib.PlasmaComposition)
  )
  geometry: circular_geometry.CircularConfig = pydantic.Field(
      default_factory=circular_geometry.CircularConfig
  )
  sources: sources_pydantic_model.Sources = pydantic.Field(
      default_factory=sources_pydantic_model.Sources
  )
  solver: solver_pydantic_model.SolverConfig = pydantic.Field(
      default_factory=solver_pydantic_model.NewtonRaphsonThetaMethod
  )
  transport: transport_model_pydantic_model.TransportConfig = pydantic.Field(
      default_factory=transport_model_pydantic_model.ConstantTransportModel,
      discriminator='model_type',
  )
  mhd: mhd_pydantic_model.MHD = pydantic.Field(
      default_factory=mhd_pydantic_model.MHD
  )
  time_step_calculator: (
      time_step_calculator_pydantic_model.TimeStepCalculator
  ) = pydantic.Field(
      default_factory=time_step_calculator_pydantic_model.TimeStepCalculator
  )

  @pydantic.model_validator(mode='before')
  @classmethod
  def _defaults(cls, data: Any) -> Any:
    if not isinstance(data, dict):
      return data
    configurable_data = copy.deepcopy(data)
    if (
        isinstance(configurable_data.get('transport'), dict)
        and 'model_type' not in configurable_data['transport']
    ):
      configurable_data['transport']['model_type'] = 'constant'
    if (
        isinstance(configurable_data.get('solver'), dict)
        and 'solver_type' not in configurable_data['solver']
    ):
      configurable_data['solver']['solver_type'] = 'newton_raphson'
    return configurable_data

  @pydantic.model_validator(mode='after')
  def _check_fields(self) -> typing_extensions.Self:
    if (
        self.transport.model_type == 'qlknn'
        and self.solver.solver_type == 'linear'
        and self.solver.n_corrector_steps == 0
    ):
      logging.warning("""
          A nonlinear transport model is used with a single linearized solve.
          Set solver.n_corrector_steps > 0 or use the newton_raphson solver
          to avoid numerical instability.
          """)
    if self.mhd.sawtooth is not None and not self.numerics.evolve_ion_heat:
      logging.warning("""
          Sawteeth are enabled but the ion temperature is not evolved. The
          sawtooth trigger uses the ion temperature peaking, so crashes depend
          only on the prescribed ion temperature.
          """)
    return self

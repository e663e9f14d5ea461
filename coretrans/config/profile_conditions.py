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

"""Prescribed boundary conditions and initial profiles."""

import dataclasses

import chex
import jax
import pydantic
from typing_extensions import Self

from coretrans.config import interpolated_param
from coretrans.config import model_base


# pylint: disable=invalid-name
@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class DynamicProfileConditions:
  """Prescribed values and boundary conditions for the core profiles."""

  T_i_right_bc: float
  T_e_right_bc: float
  n_e_right_bc: float
  T_i_0: float
  T_e_0: float
  n_e_0: float
  T_peaking_exponent: float
  n_peaking_exponent: float
  resistivity_log_lambda: float


class ProfileConditions(model_base.BaseModelFrozen):
  """Prescribed values and boundary conditions for the core profiles.

  Initial profiles are parabolic in normalized radius:
  `f(rho) = f_edge + (f_0 - f_edge) * (1 - rho^2)^exponent`.

  Attributes:
    T_i_right_bc: Ion temperature at the last closed flux surface [eV].
    T_e_right_bc: Electron temperature at the last closed flux surface [eV].
    n_e_right_bc: Electron density at the last closed flux surface [m^-3].
    T_i_0: Initial on-axis ion temperature [eV].
    T_e_0: Initial on-axis electron temperature [eV].
    n_e_0: Initial on-axis electron density [m^-3].
    T_peaking_exponent: Exponent of the initial temperature parabola.
    n_peaking_exponent: Exponent of the initial density parabola.
    resistivity_log_lambda: Coulomb logarithm used by the resistivity in the
      current diffusion equation.
  """

  T_i_right_bc: interpolated_param.PositiveTimeVaryingScalar = (
      model_base.ValidatedDefault(100.0)
  )
  T_e_right_bc: interpolated_param.PositiveTimeVaryingScalar = (
      model_base.ValidatedDefault(100.0)
  )
  n_e_right_bc: interpolated_param.PositiveTimeVaryingScalar = (
      model_base.ValidatedDefault(2e19)
  )
  T_i_0: model_base.ElectronVolt = 15000.0
  T_e_0: model_base.ElectronVolt = 15000.0
  n_e_0: model_base.CubicMeter = 1.2e20
  T_peaking_exponent: pydantic.PositiveFloat = 1.0
  n_peaking_exponent: pydantic.PositiveFloat = 1.0
  resistivity_log_lambda: pydantic.PositiveFloat = 17.0

  @pydantic.model_validator(mode='after')
  def _check_core_above_edge(self) -> Self:
    for core, edge in (
        ('T_i_0', 'T_i_right_bc'),
        ('T_e_0', 'T_e_right_bc'),
        ('n_e_0', 'n_e_right_bc'),
    ):
      if getattr(self, core) < getattr(self, edge).get_value(0.0):
        raise ValueError(
            f'{core} must be at least the initial value of {edge}.'
        )
    return self

  def build_runtime_params(self, t: chex.Numeric) -> DynamicProfileConditions:
    return DynamicProfileConditions(
        T_i_right_bc=self.T_i_right_bc.get_value(t),
        T_e_right_bc=self.T_e_right_bc.get_value(t),
        n_e_right_bc=self.n_e_right_bc.get_value(t),
        T_i_0=self.T_i_0,
        T_e_0=self.T_e_0,
        n_e_0=self.n_e_0,
        T_peaking_exponent=self.T_peaking_exponent,
        n_peaking_exponent=self.n_peaking_exponent,
        resistivity_log_lambda=self.resistivity_log_lambda,
    )

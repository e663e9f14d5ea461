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

"""Time stepping and equation selection parameters."""

import dataclasses
from typing import Annotated

import chex
import jax
import pydantic
from typing_extensions import Self

from coretrans.config import interpolated_param
from coretrans.config import model_base
from coretrans.state import EVOLVABLE_NAMES

# pylint: disable=invalid-name


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class DynamicNumerics:
  """`Numerics` evaluated at one time. See `Numerics` for the fields."""

  t_initial: float
  t_final: float
  max_dt: float
  min_dt: float
  chi_timestep_prefactor: float
  fixed_dt: float
  dt_reduction_factor: float
  dt_growth_factor: float
  dt_safety_factor: float
  resistivity_multiplier: float
  exact_t_final: bool = dataclasses.field(metadata={'static': True})
  adaptive_dt: bool = dataclasses.field(metadata={'static': True})


class Numerics(model_base.BaseModelFrozen):
  """Time stepping and the set of evolved equations.

  Attributes:
    t_initial: Start time [s].
    t_final: End time [s].
    exact_t_final: Shorten the last step so that the run ends exactly at
      `t_final`.
    max_dt: Upper bound on dt [s].
    min_dt: Lower bound on dt [s]. A step that fails at this dt ends the run.
    chi_timestep_prefactor: Multiplier of the explicit stability limit
      dr^2 / (2 chi_max) used by the chi time step calculator.
    fixed_dt: dt of the fixed time step calculator [s].
    adaptive_dt: Retry a failed step at dt / dt_reduction_factor.
    dt_reduction_factor: Divisor of dt on each retry.
    dt_growth_factor: Bound on how much dt may grow from one accepted step to
      the next.
    dt_safety_factor: Multiplier, at most 1, of the grown dt.
    evolve_ion_heat: Evolve T_i.
    evolve_electron_heat: Evolve T_e.
    evolve_current: Evolve psi.
    evolve_density: Evolve n_e.
    resistivity_multiplier: Scales the resistivity, shortening the current
      diffusion time.
  """

  t_initial: model_base.Second = 0.0
  t_final: model_base.Second = 5.0
  exact_t_final: Annotated[bool, model_base.TIME_INVARIANT] = True
  max_dt: model_base.Second = 2.0
  min_dt: model_base.Second = 1e-8
  chi_timestep_prefactor: pydantic.PositiveFloat = 50.0
  fixed_dt: model_base.Second = 1e-1
  adaptive_dt: Annotated[bool, model_base.TIME_INVARIANT] = True
  dt_reduction_factor: Annotated[float, pydantic.Field(gt=1.0)] = 3.0
  dt_growth_factor: Annotated[float, pydantic.Field(ge=1.0)] = 1.1
  dt_safety_factor: Annotated[float, pydantic.Field(gt=0.0, le=1.0)] = 0.95
  evolve_ion_heat: Annotated[bool, model_base.TIME_INVARIANT] = True
  evolve_electron_heat: Annotated[bool, model_base.TIME_INVARIANT] = True
  evolve_current: Annotated[bool, model_base.TIME_INVARIANT] = False
  evolve_density: Annotated[bool, model_base.TIME_INVARIANT] = False
  resistivity_multiplier: interpolated_param.PositiveTimeVaryingScalar = (
      model_base.ValidatedDefault(1.0)
  )

  @pydantic.model_validator(mode='after')
  def check_bounds(self) -> Self:
    if self.t_final < self.t_initial:
      raise ValueError(
          f't_final={self.t_final} is before t_initial={self.t_initial}.'
      )
    if self.max_dt < self.min_dt:
      raise ValueError(
          f'max_dt={self.max_dt} is smaller than min_dt={self.min_dt}.'
      )
    if not self.evolving_names:
      raise ValueError('At least one equation must be evolved.')
    return self

  @property
  def evolving_names(self) -> tuple[str, ...]:
    """Evolved profiles, in the order of the block system."""
    flags = dict(
        T_i=self.evolve_ion_heat,
        T_e=self.evolve_electron_heat,
        psi=self.evolve_current,
        n_e=self.evolve_density,
    )
    return tuple(name for name in EVOLVABLE_NAMES if flags[name])

  def build_runtime_params(self, t: chex.Numeric) -> DynamicNumerics:
    scalars = self.model_dump(
        include={
            't_initial',
            't_final',
            'max_dt',
            'min_dt',
            'chi_timestep_prefactor',
            'fixed_dt',
            'dt_reduction_factor',
            'dt_growth_factor',
            'dt_safety_factor',
            'exact_t_final',
            'adaptive_dt',
        }
    )
    return DynamicNumerics(
        resistivity_multiplier=self.resistivity_multiplier.get_value(t),
        **scalars,
    )

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

"""Inputs to coretrans solvers and functions based on the runtime parameters.

Parameters are split in two groups.

The "dynamic" parameters are a slice of the config at a specific time t:
boundary conditions, transport and source parameters, timestep bounds. They can
change from step to step without re-deriving the grid or rebuilding any model.

The "static" parameters are fixed for the whole run: the grid size, which
equations are evolved, and the solver type and implicitness. Changing them means
starting a new simulation.
"""

from collections.abc import Mapping
import dataclasses

import chex

from coretrans.config import numerics as numerics_lib
from coretrans.config import plasma_composition as plasma_composition_lib
from coretrans.config import profile_conditions as profile_conditions_lib
from coretrans.mhd.sawtooth import runtime_params as sawtooth_params
from coretrans.solver import runtime_params as solver_params
from coretrans.sources import runtime_params as sources_params
from coretrans.state import EVOLVABLE_NAMES
from coretrans.transport_model import runtime_params as transport_params

# pylint: disable=invalid-name


@chex.dataclass(frozen=True)
class DynamicRuntimeParamsSlice:
  """Input params that are ok to use as inputs to a single step.

  Attributes:
    t: Time at which this slice was built [s].
    transport: Transport model parameters.
    solver: Nonlinear solver parameters.
    plasma_composition: Main ion and effective charge.
    profile_conditions: Boundary conditions and prescribed profile values.
    numerics: Timestep bounds and other numerical parameters.
    sources: Source parameters, keyed by source name.
    sawtooth: Sawtooth parameters, or None if sawteeth are disabled.
  """

  t: float
  transport: transport_params.DynamicRuntimeParams
  solver: solver_params.DynamicRuntimeParams
  plasma_composition: plasma_composition_lib.DynamicPlasmaComposition
  profile_conditions: profile_conditions_lib.DynamicProfileConditions
  numerics: numerics_lib.DynamicNumerics
  sources: Mapping[str, sources_params.DynamicRuntimeParams]
  sawtooth: sawtooth_params.DynamicRuntimeParams | None = None


@dataclasses.dataclass(frozen=True)
class StaticRuntimeParamsSlice:
  """Parameters that are fixed for the duration of a simulation.

  Attributes:
    n_rho: Number of radial grid cells.
    evolve_ion_heat: Solve the ion heat equation.
    evolve_electron_heat: Solve the electron heat equation.
    evolve_current: Solve the current diffusion equation.
    evolve_density: Solve the electron density equation.
    solver_type: Identifier of the solver.
    theta_implicit: Implicitness of the theta method. 1 is backward Euler.
    adaptive_dt: Reduce dt and retry if a step does not converge.
  """

  n_rho: int
  evolve_ion_heat: bool
  evolve_electron_heat: bool
  evolve_current: bool
  evolve_density: bool
  solver_type: str
  theta_implicit: float = 1.0
  adaptive_dt: bool = True

  def __post_init__(self):
    if not self.evolving_names:
      raise ValueError('At least one equation must be evolved.')
    if not 0.0 <= self.theta_implicit <= 1.0:
      raise ValueError(
          f'theta_implicit must be in [0, 1], got {self.theta_implicit}.'
      )

  @property
  def evolving_names(self) -> tuple[str, ...]:
    """Names of the evolved profiles, in the block system order."""
    flags = {
        'T_i': self.evolve_ion_heat,
        'T_e': self.evolve_electron_heat,
        'psi': self.evolve_current,
        'n_e': self.evolve_density,
    }
    return tuple(name for name in EVOLVABLE_NAMES if flags[name])

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

"""Physical constants, unit conversions and numerical floors.

Every unit conversion and clamp used by coretrans is defined here once.
"""
import dataclasses
from typing import Final, Mapping

import chex
import immutabledict
import jax
import numpy as np

# pylint: disable=invalid-name

_ELEMENTARY_CHARGE = 1.602176634e-19


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class Constants:
  """CODATA values in SI units, plus a numerical epsilon.

  Attributes:
    q_e: Elementary charge [C].
    eV_to_J: Joules per electronvolt.
    keV_to_J: Joules per kiloelectronvolt.
    m_e: Electron mass [kg].
    m_amu: Atomic mass unit [kg].
    mu_0: Vacuum permeability [H/m].
    eps: Small number guarding divisions.
  """

  q_e: chex.Numeric
  eV_to_J: chex.Numeric
  keV_to_J: chex.Numeric
  m_e: chex.Numeric
  m_amu: chex.Numeric
  mu_0: chex.Numeric
  eps: chex.Numeric


CONSTANTS: Final[Constants] = Constants(
    q_e=_ELEMENTARY_CHARGE,
    eV_to_J=_ELEMENTARY_CHARGE,
    keV_to_J=1e3 * _ELEMENTARY_CHARGE,
    m_e=9.1093837015e-31,
    m_amu=1.6605390666e-27,
    mu_0=4e-7 * np.pi,
    eps=1e-7,
)

# [MW/m^3] -> [eV/(m^3 s)]. A python float, see `physics.units`.
MW_TO_EV_PER_S: Final[float] = 1e6 / _ELEMENTARY_CHARGE

# Power-law face weighting.
DIFFUSIVITY_FLOOR: Final[float] = 1e-30
PECLET_CUTOFF: Final[float] = 10.0

# Floors applied before dividing by or taking logs of profiles.
DENSITY_FLOOR: Final[float] = 1e18  # [m^-3]
TEMPERATURE_FLOOR: Final[float] = 1.0  # [eV]
LOG_LAMBDA_MIN: Final[float] = 10.0
LOG_LAMBDA_MAX: Final[float] = 25.0

# Warn when chi_max / chi_min exceeds this.
CHI_DYNAMIC_RANGE_WARNING: Final[float] = 1e4


@dataclasses.dataclass(frozen=True)
class IonProperties:
  """Mass number A [amu] and charge Z of a main ion species."""

  symbol: str
  A: float
  Z: float


# Masses from https://ciaaw.org.
ION_PROPERTIES_DICT: Final[Mapping[str, IonProperties]] = (
    immutabledict.immutabledict({
        ion.symbol: ion
        for ion in (
            IonProperties('H', A=1.008, Z=1.0),
            IonProperties('D', A=2.0141, Z=1.0),
            IonProperties('T', A=3.0160, Z=1.0),
            IonProperties('DT', A=2.5151, Z=1.0),
            IonProperties('He4', A=4.0026, Z=2.0),
        )
    })
)

ION_SYMBOLS: Final[frozenset[str]] = frozenset(ION_PROPERTIES_DICT)

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

"""Plasma composition parameters: one effective main ion species."""

import dataclasses
from typing import Annotated

import chex
import jax
import pydantic

from coretrans import constants
from coretrans.config import interpolated_param
from coretrans.config import model_base


# pylint: disable=invalid-name
@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class DynamicPlasmaComposition:
  A_i: float
  Z_i: float
  Z_eff: float


class PlasmaComposition(model_base.BaseModelFrozen):
  """Configuration for the plasma composition.

  Quasi-neutrality with a single effective ion species is assumed, n_i = n_e.

  Attributes:
    main_ion: Symbol of the main ion, one of `constants.ION_SYMBOLS`.
    Z_eff: Effective ion charge used by collisional formulas.
  """

  main_ion: Annotated[str, model_base.TIME_INVARIANT] = 'DT'
  Z_eff: interpolated_param.PositiveTimeVaryingScalar = (
      model_base.ValidatedDefault(1.5)
  )

  @pydantic.field_validator('main_ion')
  @classmethod
  def _check_main_ion(cls, main_ion: str) -> str:
    if main_ion not in constants.ION_SYMBOLS:
      raise ValueError(
          f'Unknown main ion {main_ion}. Allowed: {sorted(constants.ION_SYMBOLS)}'
      )
    return main_ion

  def build_runtime_params(self, t: chex.Numeric) -> DynamicPlasmaComposition:
    ion = constants.ION_PROPERTIES_DICT[self.main_ion]
    return DynamicPlasmaComposition(
        A_i=ion.A,
        Z_i=ion.Z,
        Z_eff=self.Z_eff.get_value(t),
    )

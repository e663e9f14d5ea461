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

"""Collisional ion-electron heat exchange.

Q_ei = 1.5 (m_e / m_i) n_e nu_ei e (T_e - T_i) heats the ions and cools the
electrons by the same amount, so the source is energy conserving.
"""

import dataclasses
from typing import ClassVar, Literal

import chex
import jax

from coretrans import constants
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.physics import formulas
from coretrans.sources import base
from coretrans.sources import runtime_params as runtime_params_lib
from coretrans.sources import source
from coretrans.sources import source_profiles


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  Qei_multiplier: float


def calc_qei(
    Z_eff: chex.Numeric,
    A_i: chex.Numeric,
    core_profiles: state.CoreProfiles,
) -> jax.Array:
  """Ion heating by collisional exchange [W/m^3] on the cell grid."""
  consts = constants.CONSTANTS
  n_e = core_profiles.n_e.value
  T_e = core_profiles.T_e.value
  T_i = core_profiles.T_i.value
  log_lambda = formulas.coulomb_log_ei(n_e, T_e)
  nu_ei = formulas.electron_ion_collision_frequency(n_e, T_e, Z_eff, log_lambda)
  m_i = A_i * consts.m_amu
  return 1.5 * (consts.m_e / m_i) * n_e * nu_ei * consts.q_e * (T_e - T_i)


@dataclasses.dataclass(kw_only=True, frozen=True)
class QeiSource(source.Source):
  """Collisional heat exchange between ions and electrons."""

  SOURCE_NAME: ClassVar[str] = 'ei_exchange'

  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    assert isinstance(source_params, DynamicRuntimeParams)
    composition = dynamic_runtime_params_slice.plasma_composition
    qei = (
        calc_qei(composition.Z_eff, composition.A_i, core_profiles)
        * source_params.Qei_multiplier
        / 1e6
    )
    return source.make_source_terms(
        geo, ion_heating=qei, electron_heating=-qei
    )


class QeiSourceConfig(base.SourceModelBase):
  """Configuration for the QeiSource.

  Attributes:
    Qei_multiplier: Multiplier of the exchange power.
  """

  model_type: Literal['qei_source'] = 'qei_source'
  Qei_multiplier: float = 1.0

  def build_runtime_params(self, t: chex.Numeric) -> DynamicRuntimeParams:
    del t  # Unused.
    return DynamicRuntimeParams(
        mode=self.mode,
        time_dependent=self.time_dependent,
        Qei_multiplier=self.Qei_multiplier,
    )

  def build_source(self, name: str) -> QeiSource:
    return QeiSource(name=name)

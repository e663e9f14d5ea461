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

"""Pydantic config for source models."""

from collections.abc import Mapping
from typing import Annotated, Any, Final, TypeAlias

import chex
import immutabledict
import pydantic

from coretrans.config import model_base
from coretrans.sources import base
from coretrans.sources import bremsstrahlung_heat_sink as bremsstrahlung_heat_sink_lib
from coretrans.sources import electron_cyclotron_source as electron_cyclotron_source_lib
from coretrans.sources import enums
from coretrans.sources import fusion_heat_source as fusion_heat_source_lib
from coretrans.sources import gas_puff_source as gas_puff_source_lib
from coretrans.sources import generic_ion_el_heat_source as generic_ion_el_heat_source_lib
from coretrans.sources import ohmic_heat_source as ohmic_heat_source_lib
from coretrans.sources import qei_source as qei_source_lib
from coretrans.sources import runtime_params
from coretrans.sources import source_models

SourceConfig: TypeAlias = Annotated[
    bremsstrahlung_heat_sink_lib.BremsstrahlungHeatSinkConfig
    | electron_cyclotron_source_lib.ElectronCyclotronSourceConfig
    | fusion_heat_source_lib.FusionHeatSourceConfig
    | gas_puff_source_lib.GasPuffSourceConfig
    | generic_ion_el_heat_source_lib.GenericIonElHeatSourceConfig
    | ohmic_heat_source_lib.OhmicHeatSourceConfig
    | qei_source_lib.QeiSourceConfig,
    pydantic.Field(discriminator='model_type'),
]

MODEL_BUILDERS: Final[
    Mapping[enums.SourceModelType, type[base.SourceModelBase]]
] = immutabledict.immutabledict({
    enums.SourceModelType.QEI: qei_source_lib.QeiSourceConfig,
    enums.SourceModelType.OHMIC: ohmic_heat_source_lib.OhmicHeatSourceConfig,
    enums.SourceModelType.BREMSSTRAHLUNG: (
        bremsstrahlung_heat_sink_lib.BremsstrahlungHeatSinkConfig
    ),
    enums.SourceModelType.FUSION: fusion_heat_source_lib.FusionHeatSourceConfig,
    enums.SourceModelType.ELECTRON_CYCLOTRON: (
        electron_cyclotron_source_lib.ElectronCyclotronSourceConfig
    ),
    enums.SourceModelType.GENERIC_ION_EL_HEAT: (
        generic_ion_el_heat_source_lib.GenericIonElHeatSourceConfig
    ),
    enums.SourceModelType.GAS_PUFF: gas_puff_source_lib.GasPuffSourceConfig,
})


def build_source_config(
    model_type: enums.SourceModelType | str,
    params: Mapping[str, Any] | None = None,
) -> base.SourceModelBase:
  """Validates `params`, including `mode` and `time_dependent`, for a source.

  Args:
    model_type: Identifier of the source model.
    params: Parameters of the source. Missing entries take their defaults.

  Returns:
    The validated source config.

  Raises:
    ValueError: If `model_type` is unknown or `params` are invalid.
  """
  model_type = enums.SourceModelType(model_type)
  config_class = MODEL_BUILDERS[model_type]
  return config_class.from_dict(
      {**(params or {}), 'model_type': model_type.value}
  )


class Sources(model_base.BaseModelFrozen):
  """Config for source models.

  Sources are keyed by name. The key is the name of the built source and of its
  runtime params in the dynamic slice, and the order of the keys is the order
  in which the source terms are summed. Each value is discriminated by its
  `model_type`, for example:

  ```
  {
      'ei_exchange': {'model_type': 'qei_source'},
      'ecrh': {'model_type': 'electron_cyclotron_source', 'total_power': 1e7},
  }
  ```

  Attributes:
    source_configs: Source configs keyed by name.
  """

  source_configs: dict[str, SourceConfig] = pydantic.Field(
      default_factory=dict
  )

  @pydantic.model_validator(mode='before')
  @classmethod
  def _wrap_source_configs(cls, data: Any) -> Any:
    if isinstance(data, Mapping) and 'source_configs' not in data:
      return {'source_configs': dict(data)}
    return data

  @pydantic.field_validator('source_configs')
  @classmethod
  def _check_names(
      cls, source_configs: dict[str, base.SourceModelBase]
  ) -> dict[str, base.SourceModelBase]:
    for name in source_configs:
      if not name:
        raise ValueError('Source names must be non-empty.')
    return source_configs

  @property
  def names(self) -> tuple[str, ...]:
    return tuple(self.source_configs)

  def build_models(self) -> source_models.SourceModels:
    return source_models.SourceModels.from_sources({
        name: config.build_source(name)
        for name, config in self.source_configs.items()
    })

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> dict[str, runtime_params.DynamicRuntimeParams]:
    return {
        name: config.build_runtime_params(t)
        for name, config in self.source_configs.items()
    }

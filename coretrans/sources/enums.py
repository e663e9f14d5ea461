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

"""Enums for the source models."""

import enum


class SourceModelType(enum.StrEnum):
  """Identifier of a source model implementation."""

  QEI = 'qei_source'
  OHMIC = 'ohmic_heat_source'
  BREMSSTRAHLUNG = 'bremsstrahlung_heat_sink'
  FUSION = 'fusion_heat_source'
  ELECTRON_CYCLOTRON = 'electron_cyclotron_source'
  GENERIC_ION_EL_HEAT = 'generic_ion_el_heat_source'
  GAS_PUFF = 'gas_puff_source'

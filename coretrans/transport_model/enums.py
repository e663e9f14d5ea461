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

"""Enums for the transport model."""

import enum


class TransportModelType(enum.StrEnum):
  """Identifier of a transport model implementation.

  Attributes:
    CONSTANT: Prescribed, state independent coefficients.
    BOHM_GYROBOHM: Empirical Bohm and gyroBohm scaling.
    QLKNN: Neural network surrogate of a quasilinear gyrokinetic code, with a
      Bohm-GyroBohm fallback.
  """

  CONSTANT = 'constant'
  BOHM_GYROBOHM = 'bohm-gyrobohm'
  QLKNN = 'qlknn'

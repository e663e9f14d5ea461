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

"""Dispatch table from transport model identifiers to their configs."""

from collections.abc import Mapping
from typing import Any, Final

import immutabledict

from coretrans.transport_model import enums
from coretrans.transport_model import pydantic_model
from coretrans.transport_model import transport_model

MODEL_BUILDERS: Final[
    Mapping[enums.TransportModelType, type[pydantic_model.TransportBase]]
] = immutabledict.immutabledict({
    enums.TransportModelType.CONSTANT: pydantic_model.ConstantTransportModel,
    enums.TransportModelType.BOHM_GYROBOHM: (
        pydantic_model.BohmGyroBohmTransportModel
    ),
    enums.TransportModelType.QLKNN: pydantic_model.QLKNNTransportModel,
})


def build_transport_config(
    model_type: enums.TransportModelType | str,
    params: Mapping[str, Any] | None = None,
) -> pydantic_model.TransportBase:
  """Validates `params` against the config of the given model type.

  Args:
    model_type: Identifier of the transport model.
    params: Parameters of the model. Missing entries take their defaults.

  Returns:
    The validated transport config.

  Raises:
    ValueError: If `model_type` is unknown or `params` are invalid.
  """
  model_type = enums.TransportModelType(model_type)
  config_class = MODEL_BUILDERS[model_type]
  return config_class.from_dict(
      {**(params or {}), 'model_type': model_type.value}
  )


def build_transport_model(
    model_type: enums.TransportModelType | str,
    params: Mapping[str, Any] | None = None,
) -> transport_model.TransportModel:
  """Builds a transport model from its identifier and parameters."""
  return build_transport_config(model_type, params).build_transport_model()

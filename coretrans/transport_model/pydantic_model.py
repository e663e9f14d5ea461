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

"""Pydantic configs selecting and parameterizing the transport model."""

import abc
import dataclasses
from typing import Any, Literal

import chex
import pydantic
import typing_extensions

from coretrans.config import interpolated_param
from coretrans.config import model_base
from coretrans.transport_model import bohm_gyrobohm
from coretrans.transport_model import constant
from coretrans.transport_model import qlknn_transport_model
from coretrans.transport_model import runtime_params
from coretrans.transport_model import transport_model

# pylint: disable=invalid-name

_NonNegative = interpolated_param.NonNegativeTimeVaryingScalar


class TransportBase(model_base.BaseModelFrozen, abc.ABC):
  """Clipping bounds shared by every transport model.

  Attributes:
    chi_min: Floor of chi_i and chi_e [m^2/s].
    chi_max: Ceiling of chi_i and chi_e [m^2/s].
    D_e_min: Floor of the electron particle diffusivity [m^2/s].
    D_e_max: Ceiling of the electron particle diffusivity [m^2/s].
    V_e_min: Floor of the electron convection velocity [m/s].
    V_e_max: Ceiling of the electron convection velocity [m/s].
  """

  chi_min: model_base.MeterSquaredPerSecond = 0.05
  chi_max: model_base.MeterSquaredPerSecond = 100.0
  D_e_min: model_base.MeterSquaredPerSecond = 0.0
  D_e_max: model_base.MeterSquaredPerSecond = 100.0
  V_e_min: model_base.MeterPerSecond = -50.0
  V_e_max: model_base.MeterPerSecond = 50.0

  @pydantic.model_validator(mode='after')
  def _check_bounds(self) -> typing_extensions.Self:
    for name in ('chi', 'D_e', 'V_e'):
      low, high = getattr(self, f'{name}_min'), getattr(self, f'{name}_max')
      if low >= high:
        raise ValueError(
            f'{name}_min={low} must be smaller than {name}_max={high}.'
        )
    return self

  def _bounds(self) -> dict[str, Any]:
    return dataclasses.asdict(
        runtime_params.DynamicRuntimeParams(
            chi_min=self.chi_min,
            chi_max=self.chi_max,
            D_e_min=self.D_e_min,
            D_e_max=self.D_e_max,
            V_e_min=self.V_e_min,
            V_e_max=self.V_e_max,
        )
    )

  def _values_at(self, t: chex.Numeric, *names: str) -> dict[str, Any]:
    """Evaluates the named time varying fields at `t`."""
    return {name: getattr(self, name).get_value(t) for name in names}

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> runtime_params.DynamicRuntimeParams:
    del t
    return runtime_params.DynamicRuntimeParams(**self._bounds())

  @abc.abstractmethod
  def build_transport_model(self) -> transport_model.TransportModel:
    """Instantiates the model this config selects."""


class ConstantTransportModel(TransportBase):
  """Spatially uniform coefficients, optionally varying in time.

  Attributes:
    model_type: Discriminator, 'constant'.
    chi_i: Ion heat diffusivity [m^2/s].
    chi_e: Electron heat diffusivity [m^2/s].
    D_e: Electron particle diffusivity [m^2/s].
    V_e: Electron convection velocity [m/s].
  """

  model_type: Literal['constant'] = 'constant'
  chi_i: _NonNegative = model_base.ValidatedDefault(1.0)
  chi_e: _NonNegative = model_base.ValidatedDefault(1.0)
  D_e: _NonNegative = model_base.ValidatedDefault(0.0)
  V_e: interpolated_param.TimeVaryingScalar = model_base.ValidatedDefault(0.0)

  def build_transport_model(self) -> constant.ConstantTransportModel:
    return constant.ConstantTransportModel()

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> constant.DynamicRuntimeParams:
    return constant.DynamicRuntimeParams(
        **self._values_at(t, 'chi_i', 'chi_e', 'D_e', 'V_e'),
        **self._bounds(),
    )


class BohmGyroBohmTransportModel(TransportBase):
  """Empirical Bohm plus gyro-Bohm scaling.

  Attributes:
    model_type: Discriminator, 'bohm-gyrobohm'.
    chi_e_bohm_coeff: Weight of the Bohm term in chi_e.
    chi_e_gyrobohm_coeff: Weight of the gyro-Bohm term in chi_e.
    chi_i_bohm_coeff: Weight of the Bohm term in chi_i.
    chi_i_gyrobohm_coeff: Weight of the gyro-Bohm term in chi_i.
    D_e_ratio: D_e as a fraction of chi_e.
  """

  model_type: Literal['bohm-gyrobohm'] = 'bohm-gyrobohm'
  chi_e_bohm_coeff: _NonNegative = model_base.ValidatedDefault(0.01)
  chi_e_gyrobohm_coeff: _NonNegative = model_base.ValidatedDefault(1.0)
  chi_i_bohm_coeff: _NonNegative = model_base.ValidatedDefault(0.01)
  chi_i_gyrobohm_coeff: _NonNegative = model_base.ValidatedDefault(1.0)
  D_e_ratio: _NonNegative = model_base.ValidatedDefault(0.5)

  def build_transport_model(
      self,
  ) -> bohm_gyrobohm.BohmGyroBohmTransportModel:
    return bohm_gyrobohm.BohmGyroBohmTransportModel()

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> bohm_gyrobohm.DynamicRuntimeParams:
    coeffs = self._values_at(
        t,
        'chi_e_bohm_coeff',
        'chi_e_gyrobohm_coeff',
        'chi_i_bohm_coeff',
        'chi_i_gyrobohm_coeff',
        'D_e_ratio',
    )
    return bohm_gyrobohm.DynamicRuntimeParams(**coeffs, **self._bounds())


class QLKNNTransportModel(TransportBase):
  """Neural network surrogate of QuaLiKiz from `fusion_surrogates`.

  `model_path` wins over `qlknn_model_name`. With neither set, the library
  default model is loaded.

  Attributes:
    model_type: Discriminator, 'qlknn'.
    model_path: File to load the network from.
    qlknn_model_name: Name of a network registered in `fusion_surrogates`.
    min_chi: Floor of every predicted diffusivity [m^2/s].
    fallback: Bohm-GyroBohm parameters used for a step where the network
      fails or predicts non-finite values.
  """

  model_type: Literal['qlknn'] = 'qlknn'
  model_path: str = ''
  qlknn_model_name: str = ''
  min_chi: model_base.MeterSquaredPerSecond = 0.05
  fallback: BohmGyroBohmTransportModel = pydantic.Field(
      default_factory=BohmGyroBohmTransportModel
  )

  def build_transport_model(self) -> qlknn_transport_model.QLKNNTransportModel:
    return qlknn_transport_model.QLKNNTransportModel(
        path=self.model_path, name=self.qlknn_model_name
    )

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> qlknn_transport_model.DynamicRuntimeParams:
    return qlknn_transport_model.DynamicRuntimeParams(
        min_chi=self.min_chi,
        fallback=self.fallback.build_runtime_params(t),
        **self._bounds(),
    )


TransportConfig = (
    ConstantTransportModel | BohmGyroBohmTransportModel | QLKNNTransportModel
)

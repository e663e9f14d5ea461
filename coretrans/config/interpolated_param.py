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

"""Time interpolated scalar parameters.

A `TimeVaryingScalar` accepts either a constant or a `{time: value}` mapping
and is evaluated with piecewise-linear interpolation (constant extrapolation
outside the given time range) when the dynamic runtime params are built.
"""

import enum
import functools
from typing import Any, TypeAlias

import chex
import numpy as np
import pydantic
from typing_extensions import Annotated
from typing_extensions import Self

from coretrans.config import model_base

TimeInterpolatedInput: TypeAlias = (
    float | int | bool | dict[float, float] | tuple[tuple[float, ...], ...]
)


@enum.unique
class InterpolationMode(enum.Enum):
  """Defines how to do the interpolation.

  PIECEWISE_LINEAR: Linear interpolation between the provided points.
  STEP: The value is held constant until the next point is reached.
  """

  PIECEWISE_LINEAR = 'piecewise_linear'
  STEP = 'step'


class TimeVaryingScalar(model_base.BaseModelFrozen):
  """A scalar parameter that can change between time steps.

  Attributes:
    time: Times sorted in ascending order.
    value: Values at `time`. The same length as `time`.
    interpolation_mode: How to interpolate between `time` points.
  """

  time: tuple[float, ...]
  value: tuple[float, ...]
  interpolation_mode: InterpolationMode = InterpolationMode.PIECEWISE_LINEAR

  def get_value(self, t: chex.Numeric) -> float:
    """Returns the value of this parameter interpolated at time t."""
    time, value = self._arrays
    if self.interpolation_mode == InterpolationMode.STEP:
      idx = np.searchsorted(time, t, side='right') - 1
      return float(value[max(int(idx), 0)])
    return float(np.interp(t, time, value))

  @functools.cached_property
  def _arrays(self) -> tuple[np.ndarray, np.ndarray]:
    return np.asarray(self.time), np.asarray(self.value)

  @pydantic.model_validator(mode='after')
  def _ensure_consistent_arrays(self) -> Self:
    if not self.time:
      raise ValueError('At least one time point is required.')
    if len(self.time) != len(self.value):
      raise ValueError('The value and time arrays must be the same length.')
    if any(b < a for a, b in zip(self.time[:-1], self.time[1:])):
      raise ValueError('The time array must be sorted.')
    return self

  @pydantic.model_validator(mode='before')
  @classmethod
  def _conform_data(cls, data: TimeInterpolatedInput | dict[str, Any]) -> Any:
    if isinstance(data, dict):
      # This is the standard constructor input. No conforming required.
      if data and set(data.keys()).issubset(cls.model_fields.keys()):
        return data
      items = sorted((float(k), float(v)) for k, v in data.items())
      return dict(
          time=tuple(k for k, _ in items), value=tuple(v for _, v in items)
      )
    if isinstance(data, (bool, int, float)):
      return dict(time=(0.0,), value=(float(data),))
    if isinstance(data, tuple) and len(data) == 2:
      time, value = data
      return dict(
          time=tuple(float(t) for t in time),
          value=tuple(float(v) for v in value),
      )
    return data


def _is_positive(time_varying_scalar: TimeVaryingScalar) -> TimeVaryingScalar:
  if not all(v > 0 for v in time_varying_scalar.value):
    raise ValueError('All values must be positive.')
  return time_varying_scalar


def _is_non_negative(
    time_varying_scalar: TimeVaryingScalar,
) -> TimeVaryingScalar:
  if not all(v >= 0 for v in time_varying_scalar.value):
    raise ValueError('All values must be non-negative.')
  return time_varying_scalar


PositiveTimeVaryingScalar: TypeAlias = Annotated[
    TimeVaryingScalar, pydantic.AfterValidator(_is_positive)
]
NonNegativeTimeVaryingScalar: TypeAlias = Annotated[
    TimeVaryingScalar, pydantic.AfterValidator(_is_non_negative)
]

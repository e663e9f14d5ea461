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

"""Frozen pydantic base model and annotated field types for configs."""

import functools
from typing import Any, Annotated, Final, Mapping, TypeAlias

import pydantic
from typing_extensions import Self

# Metadata marker for fields that cannot change during a run. These end up in
# the static runtime params rather than in the per-step slice.
TIME_INVARIANT: Final[str] = '_coretrans_time_invariant'

# Field types named after their physical unit.
CubicMeter: TypeAlias = pydantic.PositiveFloat
ElectronVolt: TypeAlias = pydantic.PositiveFloat
Meter: TypeAlias = pydantic.PositiveFloat
MeterPerSecond: TypeAlias = float
MeterSquaredPerSecond: TypeAlias = pydantic.NonNegativeFloat
Second: TypeAlias = pydantic.NonNegativeFloat
Tesla: TypeAlias = pydantic.PositiveFloat
UnitInterval: TypeAlias = Annotated[float, pydantic.Field(ge=0.0, le=1.0)]
OpenUnitInterval: TypeAlias = Annotated[float, pydantic.Field(gt=0.0, lt=1.0)]

ValidatedDefault = functools.partial(pydantic.Field, validate_default=True)


class BaseModelFrozen(pydantic.BaseModel):
  """Immutable config node rejecting unknown keys."""

  model_config = pydantic.ConfigDict(
      frozen=True,
      extra='forbid',
      arbitrary_types_allowed=True,
      validate_default=True,
  )

  @classmethod
  def from_dict(cls: type[Self], cfg: Mapping[str, Any]) -> Self:
    """Validates a nested dict into a config."""
    return cls.model_validate(cfg)

  def to_dict(self) -> dict[str, Any]:
    return self.model_dump()

  @classmethod
  def time_invariant_fields(cls) -> tuple[str, ...]:
    return tuple(
        name
        for name, field in cls.model_fields.items()
        if TIME_INVARIANT in field.metadata
    )

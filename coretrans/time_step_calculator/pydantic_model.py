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

"""Config selecting the time step calculator."""

import enum
from typing import Annotated

import pydantic

from coretrans.config import model_base
from coretrans.time_step_calculator import chi_time_step_calculator
from coretrans.time_step_calculator import fixed_time_step_calculator
from coretrans.time_step_calculator import time_step_calculator


@enum.unique
class TimeStepCalculatorType(enum.Enum):
  """Available calculators: chi based or fixed dt."""

  CHI = 'chi'
  FIXED = 'fixed'


class TimeStepCalculator(model_base.BaseModelFrozen):
  """Time stepping config.

  Attributes:
    calculator_type: Which calculator to build.
    tolerance: A run ends once t is this close to t_final [s].
  """

  calculator_type: Annotated[
      TimeStepCalculatorType, model_base.TIME_INVARIANT
  ] = TimeStepCalculatorType.CHI
  tolerance: pydantic.NonNegativeFloat = 1e-7

  @property
  def time_step_calculator(self) -> time_step_calculator.TimeStepCalculator:
    match self.calculator_type:
      case TimeStepCalculatorType.CHI:
        return chi_time_step_calculator.ChiTimeStepCalculator(
            tolerance=self.tolerance
        )
      case TimeStepCalculatorType.FIXED:
        return fixed_time_step_calculator.FixedTimeStepCalculator(
            tolerance=self.tolerance
        )

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

from absl.testing import absltest
from absl.testing import parameterized
import pydantic

from coretrans.config import interpolated_param
from coretrans.config import model_base


class _PositiveParam(model_base.BaseModelFrozen):
  x: interpolated_param.PositiveTimeVaryingScalar


class InterpolatedParamTest(parameterized.TestCase):

  @parameterized.parameters(
      (0.0, 1.0),
      (-1.0, 1.0),
      (0.5, 2.0),
      (1.0, 3.0),
      (2.0, 5.0),
      (9.0, 5.0),
  )
  def test_piecewise_linear(self, t, expected):
    param = interpolated_param.TimeVaryingScalar.model_validate(
        {0.0: 1.0, 1.0: 3.0, 2.0: 5.0}
    )
    self.assertAlmostEqual(param.get_value(t), expected)

  @parameterized.parameters((0.5, 1.0), (1.0, 3.0), (1.5, 3.0), (-1.0, 1.0))
  def test_step(self, t, expected):
    param = interpolated_param.TimeVaryingScalar.model_validate({
        'time': (0.0, 1.0),
        'value': (1.0, 3.0),
        'interpolation_mode': 'step',
    })
    self.assertEqual(param.get_value(t), expected)

  @parameterized.parameters(2, 2.0, True)
  def test_constant(self, value):
    param = interpolated_param.TimeVaryingScalar.model_validate(value)
    self.assertEqual(param.get_value(0.0), float(value))
    self.assertEqual(param.get_value(100.0), float(value))

  def test_tuple_input(self):
    param = interpolated_param.TimeVaryingScalar.model_validate(
        ((0.0, 2.0), (1.0, 5.0))
    )
    self.assertAlmostEqual(param.get_value(1.0), 3.0)

  def test_unsorted_input_is_sorted(self):
    param = interpolated_param.TimeVaryingScalar.model_validate(
        {2.0: 5.0, 0.0: 1.0}
    )
    self.assertEqual(param.time, (0.0, 2.0))

  @parameterized.named_parameters(
      ('unsorted', {'time': (1.0, 0.0), 'value': (1.0, 2.0)}),
      ('length_mismatch', {'time': (0.0, 1.0), 'value': (1.0,)}),
      ('empty', {'time': (), 'value': ()}),
  )
  def test_invalid_raises(self, data):
    with self.assertRaises(pydantic.ValidationError):
      interpolated_param.TimeVaryingScalar.model_validate(data)

  def test_positive_constraint(self):
    self.assertEqual(_PositiveParam(x={0.0: 1.0}).x.get_value(0.0), 1.0)
    with self.assertRaises(pydantic.ValidationError):
      _PositiveParam(x={0.0: 1.0, 1.0: 0.0})


if __name__ == '__main__':
  absltest.main()

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
import numpy as np

from coretrans import state
from coretrans.test_utils import core_profile_helpers
from coretrans.time_step_calculator import chi_time_step_calculator
from coretrans.time_step_calculator import fixed_time_step_calculator
from coretrans.time_step_calculator import pydantic_model
from coretrans.time_step_calculator import time_step_calculator


class TimeStepCalculatorTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = core_profile_helpers.make_geometry()
    self.core_profiles = core_profile_helpers.make_core_profiles(self.geo)

  def _setup(self, overrides=None):
    config = core_profile_helpers.make_config(overrides)
    _, dynamic_runtime_params_slice = core_profile_helpers.make_runtime_params(
        config
    )
    transport = config.transport.build_transport_model()(
        dynamic_runtime_params_slice, self.geo, self.core_profiles
    )
    return dynamic_runtime_params_slice, transport

  def test_chi_diffusive_limit(self):
    dynamic_runtime_params_slice, transport = self._setup(
        {'transport': {'chi_i': 1.0, 'chi_e': 2.0}}
    )
    calculator = chi_time_step_calculator.ChiTimeStepCalculator()
    dt = calculator.next_dt(
        0.0, dynamic_runtime_params_slice, self.geo, self.core_profiles,
        transport,
    )
    # Circular geometry has g1/vpr^2 = 1/a^2.
    chi_max = 2.0 / core_profile_helpers.A_MINOR**2
    expected = 50.0 * (1.0 / core_profile_helpers.N_RHO) ** 2 / chi_max
    np.testing.assert_allclose(dt, expected, rtol=1e-6)

  def test_chi_convective_limit(self):
    dynamic_runtime_params_slice, transport = self._setup(
        {'transport': {'chi_i': 0.1, 'chi_e': 0.1, 'V_e': 20.0}}
    )
    calculator = chi_time_step_calculator.ChiTimeStepCalculator()
    dt = calculator.next_dt(
        0.0, dynamic_runtime_params_slice, self.geo, self.core_profiles,
        transport,
    )
    drho = core_profile_helpers.A_MINOR / core_profile_helpers.N_RHO
    np.testing.assert_allclose(dt, 50.0 * drho / 20.0, rtol=1e-6)

  def test_zero_transport_uses_max_dt(self):
    dynamic_runtime_params_slice, _ = self._setup()
    calculator = chi_time_step_calculator.ChiTimeStepCalculator()
    dt = calculator.next_dt(
        0.0, dynamic_runtime_params_slice, self.geo, self.core_profiles,
        state.TransportCoefficients.zeros(self.geo),
    )
    self.assertEqual(dt, dynamic_runtime_params_slice.numerics.max_dt)

  @parameterized.named_parameters(
      ('exact', True, 1.0),
      ('not_exact', False, 2.0),
  )
  def test_step_crossing_t_final(self, exact_t_final, expected):
    dynamic_runtime_params_slice, _ = self._setup(
        {'numerics': {'t_final': 5.0, 'exact_t_final': exact_t_final}}
    )
    calculator = chi_time_step_calculator.ChiTimeStepCalculator()
    dt = calculator.next_dt(
        4.0, dynamic_runtime_params_slice, self.geo, self.core_profiles,
        state.TransportCoefficients.zeros(self.geo),
    )
    np.testing.assert_allclose(dt, expected)

  def test_fixed_time_step(self):
    dynamic_runtime_params_slice, transport = self._setup(
        {'numerics': {'fixed_dt': 0.05}}
    )
    calculator = fixed_time_step_calculator.FixedTimeStepCalculator()
    dt = calculator.next_dt(
        0.0, dynamic_runtime_params_slice, self.geo, self.core_profiles,
        transport,
    )
    self.assertEqual(dt, 0.05)

  def test_not_done(self):
    calculator = fixed_time_step_calculator.FixedTimeStepCalculator(
        tolerance=1e-3
    )
    self.assertTrue(calculator.not_done(0.5, 1.0))
    self.assertFalse(calculator.not_done(0.9995, 1.0))
    self.assertFalse(calculator.not_done(1.5, 1.0))

  def test_adapt_dt_grows_step(self):
    numerics = self._setup()[0].numerics
    np.testing.assert_allclose(
        time_step_calculator.adapt_dt(0.1, numerics, 0.0), 0.1 * 1.1 * 0.95
    )

  def test_adapt_dt_is_bounded(self):
    numerics = self._setup(
        {'numerics': {'t_final': 5.0, 'max_dt': 0.5, 'min_dt': 1e-3}}
    )[0].numerics
    self.assertEqual(time_step_calculator.adapt_dt(1.0, numerics, 0.0), 0.5)
    self.assertEqual(time_step_calculator.adapt_dt(1e-6, numerics, 0.0), 1e-3)
    np.testing.assert_allclose(
        time_step_calculator.adapt_dt(0.4, numerics, 4.8), 0.2
    )
    self.assertEqual(time_step_calculator.adapt_dt(0.4, numerics, 5.0), 0.0)

  @parameterized.parameters(
      ('chi', chi_time_step_calculator.ChiTimeStepCalculator),
      ('fixed', fixed_time_step_calculator.FixedTimeStepCalculator),
  )
  def test_config_builds_calculator(self, calculator_type, expected_class):
    config = pydantic_model.TimeStepCalculator.from_dict(
        {'calculator_type': calculator_type, 'tolerance': 1e-5}
    )
    calculator = config.time_step_calculator
    self.assertIsInstance(calculator, expected_class)
    self.assertEqual(calculator.tolerance, 1e-5)


if __name__ == '__main__':
  absltest.main()

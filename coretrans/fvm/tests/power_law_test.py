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
from jax import numpy as jnp
import numpy as np

from coretrans.fvm import power_law


class PowerLawTest(parameterized.TestCase):

  def test_alpha_is_one_at_zero_peclet(self):
    np.testing.assert_allclose(power_law.power_law_alpha(jnp.array(0.0)), 1.0)

  def test_alpha_is_non_increasing_in_abs_peclet(self):
    peclet = jnp.linspace(0.0, 20.0, 201)
    alpha = np.asarray(power_law.power_law_alpha(peclet))
    self.assertTrue(np.all(np.diff(alpha) <= 0.0))
    np.testing.assert_allclose(
        alpha, np.asarray(power_law.power_law_alpha(-peclet))
    )

  @parameterized.parameters(10.5, 11.0, 50.0, -12.0)
  def test_alpha_is_zero_beyond_cutoff(self, peclet):
    self.assertEqual(float(power_law.power_law_alpha(jnp.array(peclet))), 0.0)

  def test_alpha_value(self):
    # (1 - 0.1 * 5)^5
    np.testing.assert_allclose(
        power_law.power_law_alpha(jnp.array(5.0)), 0.5**5, rtol=1e-6
    )

  def test_peclet_number_with_zero_diffusion_is_finite(self):
    peclet = power_law.peclet_number(
        jnp.array([1.0, -1.0]), jnp.zeros(2), 0.1
    )
    self.assertTrue(np.all(np.isfinite(peclet)))
    self.assertGreater(float(peclet[0]), 1e10)
    self.assertLess(float(peclet[1]), -1e10)

  @parameterized.named_parameters(
      ('positive_velocity', 1e3, 1.0, 0.0),
      ('negative_velocity', -1e3, 0.0, 1.0),
      ('pure_diffusion', 0.0, 0.5, 0.5),
  )
  def test_upwind_weights(self, v, expected_left, expected_right):
    left, right = power_law.upwind_weights(
        jnp.array([v]), jnp.array([1.0]), 1.0
    )
    np.testing.assert_allclose(left, expected_left, atol=1e-12)
    np.testing.assert_allclose(right, expected_right, atol=1e-12)
    np.testing.assert_allclose(left + right, 1.0)

  def test_face_values_central_for_pure_diffusion(self):
    cells = jnp.array([1.0, 2.0, 4.0])
    faces = power_law.face_values(cells, jnp.zeros(4), jnp.ones(4), 0.5)
    np.testing.assert_allclose(faces, [1.0, 1.5, 3.0, 4.0])

  def test_face_values_upwind_for_strong_convection(self):
    cells = jnp.array([1.0, 2.0, 4.0])
    faces = power_law.face_values(
        cells, jnp.full(4, 1e4), jnp.ones(4), 0.5
    )
    np.testing.assert_allclose(faces, [1.0, 1.0, 2.0, 4.0])

  def test_face_values_rejects_mismatched_shapes(self):
    with self.assertRaises(ValueError):
      power_law.face_values(jnp.ones(3), jnp.zeros(3), jnp.ones(3), 0.5)


if __name__ == '__main__':
  absltest.main()

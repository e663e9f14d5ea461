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

from coretrans import math_utils
from coretrans.geometry import circular_geometry


class MathUtilsTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = circular_geometry.CircularConfig(n_rho=40).build_geometry()

  @parameterized.parameters(5, 50, 500)
  def test_cell_integration_of_linear_profile(self, n_rho):
    geo = circular_geometry.CircularConfig(n_rho=n_rho).build_geometry()
    # The midpoint rule is exact for a linear integrand.
    np.testing.assert_allclose(
        math_utils.cell_integration(jnp.asarray(geo.rho_norm), geo),
        0.5,
        rtol=1e-10,
    )

  def test_cell_integration_rejects_face_profile(self):
    with self.assertRaises(ValueError):
      math_utils.cell_integration(jnp.ones(self.geo.n_cells + 1), self.geo)

  def test_volume_integration_of_constant_is_total_volume(self):
    np.testing.assert_allclose(
        math_utils.volume_integration(jnp.ones(self.geo.n_cells), self.geo),
        self.geo.volume,
        rtol=1e-10,
    )

  def test_volume_average(self):
    np.testing.assert_allclose(
        math_utils.volume_average(jnp.full(self.geo.n_cells, 3.0), self.geo),
        3.0,
        rtol=1e-10,
    )
    # The outer cells hold more volume, so rho_norm averages above 1/2.
    self.assertGreater(
        float(
            math_utils.volume_average(jnp.asarray(self.geo.rho_norm), self.geo)
        ),
        0.5,
    )

  def test_area_integration_of_constant_is_cross_section(self):
    np.testing.assert_allclose(
        math_utils.area_integration(jnp.ones(self.geo.n_cells), self.geo),
        self.geo.volume / (2 * np.pi * self.geo.R_major),
        rtol=1e-10,
    )

  def test_safe_divide(self):
    np.testing.assert_allclose(math_utils.safe_divide(6.0, 3.0), 2.0)
    self.assertTrue(np.isfinite(math_utils.safe_divide(1.0, 0.0)))

  def test_harmonic_face_mean(self):
    faces = math_utils.harmonic_face_mean(jnp.array([1.0, 3.0]))
    np.testing.assert_allclose(faces, [1.0, 1.5, 3.0], rtol=1e-10)


if __name__ == '__main__':
  absltest.main()

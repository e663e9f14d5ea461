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

from coretrans import constants
from coretrans.physics import formulas
from coretrans.physics import units
from coretrans.test_utils import core_profile_helpers


# pylint: disable=invalid-name
class FormulasTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = core_profile_helpers.make_geometry()

  @parameterized.parameters(
      (1e20, 10000.0),
      (1e19, 100.0),
      (1e21, 1.0),
      (1e15, 1e6),
  )
  def test_coulomb_log_is_clamped(self, n_e, T_e):
    log_lambda = float(
        formulas.coulomb_log_ei(jnp.array(n_e), jnp.array(T_e))
    )
    self.assertGreaterEqual(log_lambda, constants.LOG_LAMBDA_MIN)
    self.assertLessEqual(log_lambda, constants.LOG_LAMBDA_MAX)

  def test_coulomb_log_value(self):
    # 24 - ln(sqrt(1e14) / 1e4) = 24 - ln(1e3)
    np.testing.assert_allclose(
        formulas.coulomb_log_ei(jnp.array(1e20), jnp.array(1e4)),
        24.0 - np.log(1e3),
    )

  def test_spitzer_resistivity_decreases_with_temperature(self):
    T_e = jnp.array([100.0, 1000.0, 10000.0])
    eta = np.asarray(formulas.spitzer_resistivity(T_e, 0.0, 1.0, 17.0))
    self.assertTrue(np.all(np.diff(eta) < 0.0))
    np.testing.assert_allclose(eta[0] / eta[1], 10.0**1.5)

  def test_trapped_particle_correction(self):
    eta_0 = formulas.spitzer_resistivity(jnp.array(1000.0), 0.0, 1.0, 17.0)
    eta_eps = formulas.spitzer_resistivity(jnp.array(1000.0), 0.25, 1.0, 17.0)
    np.testing.assert_allclose(eta_eps / eta_0, 1.0 + 1.46 * 0.5)

  def test_bootstrap_current_is_bounded(self):
    core_profiles = core_profile_helpers.make_core_profiles(self.geo)
    j_bs = np.asarray(
        formulas.bootstrap_current(
            core_profiles.n_e.value,
            core_profiles.T_i.value,
            core_profiles.T_e.value,
            self.geo,
        )
    )
    self.assertTrue(np.all(j_bs >= 0.0))
    self.assertTrue(np.all(j_bs <= 1e7))
    # Peaked profiles drive a nonzero current.
    self.assertGreater(float(np.max(j_bs)), 0.0)

  def test_initial_poloidal_flux_is_monotonic(self):
    psi_face = np.asarray(formulas.initial_poloidal_flux_face(self.geo))
    self.assertEqual(psi_face[0], 0.0)
    self.assertTrue(np.all(np.diff(psi_face) > 0.0))

  def test_gyrobohm_diffusivity_scaling(self):
    chi_1 = formulas.gyrobohm_diffusivity(jnp.array(1000.0), 2.0, 5.3, 2.0)
    chi_4 = formulas.gyrobohm_diffusivity(jnp.array(4000.0), 2.0, 5.3, 2.0)
    np.testing.assert_allclose(chi_4 / chi_1, 8.0)

  def test_fast_ion_fractional_heating_is_a_fraction(self):
    T_e = jnp.array([1.0, 5.0, 10.0, 30.0])
    fraction = np.asarray(
        formulas.fast_ion_fractional_heating(3.52e3, T_e, 4.002602)
    )
    self.assertTrue(np.all(fraction >= 0.0))
    self.assertTrue(np.all(fraction <= 1.0))
    # Hotter electrons leave more of the alpha power to the ions.
    self.assertTrue(np.all(np.diff(fraction) > 0.0))

  def test_power_density_conversion(self):
    converted = units.mw_per_m3_to_ev_per_m3_s(jnp.array([1.0]))
    np.testing.assert_allclose(
        converted, 1e6 / constants.CONSTANTS.eV_to_J, rtol=1e-10
    )
    np.testing.assert_allclose(
        units.ev_per_m3_s_to_mw_per_m3(converted), [1.0], rtol=1e-10
    )

  def test_power_and_current_conversion(self):
    self.assertAlmostEqual(units.w_to_mw(2.5e6), 2.5)
    self.assertAlmostEqual(units.ma_to_a(1.5), 1.5e6)


if __name__ == '__main__':
  absltest.main()

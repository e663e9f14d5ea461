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

import dataclasses

from absl.testing import absltest
from absl.testing import parameterized
from jax import numpy as jnp
import numpy as np

from coretrans import constants
from coretrans import errors
from coretrans import state
from coretrans.fvm import calc_coeffs
from coretrans.sources import source as source_lib
from coretrans.test_utils import core_profile_helpers


class CalcCoeffsTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = core_profile_helpers.make_geometry(n_rho=10)
    self.core_profiles = core_profile_helpers.make_core_profiles(self.geo)

  def _runtime_params(self, numerics):
    config = core_profile_helpers.make_config({
        'geometry': {'n_rho': 10},
        'numerics': numerics,
    })
    return core_profile_helpers.make_runtime_params(config)

  @parameterized.named_parameters(
      ('heat', {}, ('T_i', 'T_e')),
      (
          'all',
          {'evolve_current': True, 'evolve_density': True},
          ('T_i', 'T_e', 'psi', 'n_e'),
      ),
      (
          'density_only',
          {'evolve_ion_heat': False, 'evolve_electron_heat': False,
           'evolve_density': True},
          ('n_e',),
      ),
  )
  def test_one_channel_per_evolving_equation(self, numerics, expected_names):
    static, dynamic = self._runtime_params(numerics)
    self.assertEqual(static.evolving_names, expected_names)
    coeffs = calc_coeffs.calc_coeffs(
        static_runtime_params_slice=static,
        dynamic_runtime_params_slice=dynamic,
        geo=self.geo,
        core_profiles=self.core_profiles,
        transport_coeffs=state.TransportCoefficients.zeros(self.geo),
        source_terms=source_lib.make_source_terms(self.geo),
    )
    self.assertLen(coeffs.transient_in_cell, len(expected_names))
    self.assertLen(coeffs.d_face, len(expected_names))
    for d_face in coeffs.d_face:
      self.assertEqual(d_face.shape, (self.geo.n_cells + 1,))

  def test_heating_is_converted_from_mw(self):
    static, dynamic = self._runtime_params({'evolve_electron_heat': False})
    heating = jnp.linspace(0.1, 1.0, self.geo.n_cells)
    coeffs = calc_coeffs.calc_coeffs(
        static_runtime_params_slice=static,
        dynamic_runtime_params_slice=dynamic,
        geo=self.geo,
        core_profiles=self.core_profiles,
        transport_coeffs=state.TransportCoefficients.zeros(self.geo),
        source_terms=source_lib.make_source_terms(
            self.geo, ion_heating=heating
        ),
    )
    # With zero diffusivity there is no edge contribution.
    np.testing.assert_allclose(
        coeffs.source_cell[0],
        np.asarray(self.geo.vpr) * np.asarray(heating)
        * constants.MW_TO_EV_PER_S,
        rtol=1e-10,
    )
    np.testing.assert_allclose(coeffs.transient_out_cell[0], 1.5 * self.geo.vpr)
    np.testing.assert_allclose(
        coeffs.transient_in_cell[0], self.core_profiles.n_e.value
    )

  def test_edge_value_enters_last_cell(self):
    static, dynamic = self._runtime_params({'evolve_electron_heat': False})
    transport = dataclasses.replace(
        state.TransportCoefficients.zeros(self.geo),
        chi_face_ion=jnp.ones(self.geo.n_cells + 1),
    )
    coeffs = calc_coeffs.calc_coeffs(
        static_runtime_params_slice=static,
        dynamic_runtime_params_slice=dynamic,
        geo=self.geo,
        core_profiles=self.core_profiles,
        transport_coeffs=transport,
        source_terms=source_lib.make_source_terms(self.geo),
    )
    source = np.asarray(coeffs.source_cell[0])
    source_mat = np.asarray(coeffs.source_mat_cell[0][0])
    np.testing.assert_allclose(source[:-1], 0.0)
    np.testing.assert_allclose(source_mat[:-1], 0.0)
    self.assertGreater(source[-1], 0.0)
    self.assertLess(source_mat[-1], 0.0)
    # The edge flux vanishes when the last cell equals the edge value.
    T_edge = float(self.core_profiles.T_i.right_face_constraint)
    np.testing.assert_allclose(
        source[-1] + source_mat[-1] * T_edge, 0.0, atol=1e-6 * source[-1]
    )

  def test_non_finite_sources_raise(self):
    static, dynamic = self._runtime_params({})
    heating = jnp.zeros(self.geo.n_cells).at[2].set(jnp.nan)
    with self.assertRaises(errors.CriticalNumericalError):
      calc_coeffs.calc_coeffs(
          static_runtime_params_slice=static,
          dynamic_runtime_params_slice=dynamic,
          geo=self.geo,
          core_profiles=self.core_profiles,
          transport_coeffs=state.TransportCoefficients.zeros(self.geo),
          source_terms=source_lib.make_source_terms(
              self.geo, electron_heating=heating
          ),
      )

  def test_current_diffusion_coefficients_are_positive(self):
    static, dynamic = self._runtime_params({
        'evolve_ion_heat': False,
        'evolve_electron_heat': False,
        'evolve_current': True,
    })
    coeffs = calc_coeffs.calc_coeffs(
        static_runtime_params_slice=static,
        dynamic_runtime_params_slice=dynamic,
        geo=self.geo,
        core_profiles=self.core_profiles,
        transport_coeffs=state.TransportCoefficients.zeros(self.geo),
        source_terms=source_lib.make_source_terms(self.geo),
    )
    d_face = np.asarray(coeffs.d_face[0])
    self.assertEqual(d_face[0], 0.0)
    self.assertTrue(np.all(d_face[1:] > 0.0))

  def test_no_evolving_equation_raises(self):
    with self.assertRaises(ValueError):
      self._runtime_params(
          {'evolve_ion_heat': False, 'evolve_electron_heat': False}
      )


if __name__ == '__main__':
  absltest.main()

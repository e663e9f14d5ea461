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

from coretrans import errors
from coretrans import state
from coretrans.test_utils import core_profile_helpers
from coretrans.transport_model import registry
from coretrans.transport_model import transport_model as transport_model_lib


class _FixedTransportModel(transport_model_lib.TransportModel):
  """Returns the coefficients it was built with."""

  def __init__(self, coeffs: state.TransportCoefficients):
    super().__init__()
    self.coeffs = coeffs
    self._frozen = True

  def _call_implementation(
      self,
      transport_dynamic_runtime_params,
      dynamic_runtime_params_slice,
      geo,
      core_profiles,
  ):
    return self.coeffs

  def __hash__(self):
    return id(self)

  def __eq__(self, other):
    return self is other


class TransportModelTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = core_profile_helpers.make_geometry()
    self.core_profiles = core_profile_helpers.make_core_profiles(self.geo)

  def _dynamic_slice(self, transport):
    config = core_profile_helpers.make_config({'transport': transport})
    _, dynamic_runtime_params_slice = core_profile_helpers.make_runtime_params(
        config
    )
    return config, dynamic_runtime_params_slice

  def test_constant_model_values(self):
    config, dynamic_runtime_params_slice = self._dynamic_slice({
        'model_type': 'constant',
        'chi_i': 2.0,
        'chi_e': 3.0,
        'D_e': 0.5,
        'V_e': -1.0,
    })
    model = config.transport.build_transport_model()
    coeffs = model(dynamic_runtime_params_slice, self.geo, self.core_profiles)
    n_faces = self.geo.n_cells + 1
    np.testing.assert_allclose(coeffs.chi_face_ion, np.full(n_faces, 2.0))
    np.testing.assert_allclose(coeffs.chi_face_el, np.full(n_faces, 3.0))
    np.testing.assert_allclose(coeffs.d_face_el, np.full(n_faces, 0.5))
    np.testing.assert_allclose(coeffs.v_face_el, np.full(n_faces, -1.0))

  def test_constant_model_is_time_interpolated(self):
    config = core_profile_helpers.make_config({
        'transport': {'model_type': 'constant', 'chi_i': {0.0: 1.0, 2.0: 3.0}},
    })
    _, dynamic_runtime_params_slice = core_profile_helpers.make_runtime_params(
        config, t=1.0
    )
    np.testing.assert_allclose(dynamic_runtime_params_slice.transport.chi_i, 2.0)

  def test_coefficients_are_clipped(self):
    config, dynamic_runtime_params_slice = self._dynamic_slice({
        'model_type': 'constant',
        'chi_i': 500.0,
        'chi_e': 0.0,
        'chi_min': 0.1,
        'chi_max': 50.0,
        'V_e': 100.0,
    })
    coeffs = config.transport.build_transport_model()(
        dynamic_runtime_params_slice, self.geo, self.core_profiles
    )
    np.testing.assert_allclose(coeffs.chi_face_ion, 50.0)
    np.testing.assert_allclose(coeffs.chi_face_el, 0.1)
    np.testing.assert_allclose(coeffs.v_face_el, 50.0)

  def test_large_chi_dynamic_range_warns_with_default_bounds(self):
    config, dynamic_runtime_params_slice = self._dynamic_slice(
        {'model_type': 'constant', 'chi_i': 1e-3, 'chi_e': 50.0}
    )
    model = config.transport.build_transport_model()
    with self.assertLogs(level='WARNING') as logs:
      coeffs = model(dynamic_runtime_params_slice, self.geo, self.core_profiles)
    self.assertTrue(
        any('dynamic range' in message for message in logs.output)
    )
    # The warning does not change the clipping.
    np.testing.assert_allclose(coeffs.chi_face_ion, 0.05)
    np.testing.assert_allclose(coeffs.chi_face_el, 50.0)

  def test_moderate_chi_dynamic_range_does_not_warn(self):
    config, dynamic_runtime_params_slice = self._dynamic_slice(
        {'model_type': 'constant', 'chi_i': 1.0, 'chi_e': 50.0}
    )
    model = config.transport.build_transport_model()
    with self.assertNoLogs(logger='absl', level='WARNING'):
      model(dynamic_runtime_params_slice, self.geo, self.core_profiles)

  def test_bohm_gyrobohm_is_non_negative_and_scales_with_temperature(self):
    config, dynamic_runtime_params_slice = self._dynamic_slice({
        'model_type': 'bohm-gyrobohm',
        'chi_min': 0.0,
        'chi_max': 1e4,
        'D_e_max': 1e4,
    })
    model = config.transport.build_transport_model()
    cold = core_profile_helpers.make_core_profiles(
        self.geo, T_e_0=5000.0, T_edge=50.0
    )
    hot = core_profile_helpers.make_core_profiles(
        self.geo, T_e_0=10000.0, T_edge=100.0
    )
    coeffs_cold = model(dynamic_runtime_params_slice, self.geo, cold)
    coeffs_hot = model(dynamic_runtime_params_slice, self.geo, hot)
    for coeffs in (coeffs_cold, coeffs_hot):
      self.assertTrue(np.all(np.asarray(coeffs.chi_face_ion) >= 0.0))
      self.assertTrue(np.all(np.asarray(coeffs.chi_face_el) >= 0.0))
      self.assertTrue(np.all(np.asarray(coeffs.d_face_el) >= 0.0))
    # Bohm scales as T_e and gyroBohm as T_e^1.5.
    ratio = np.asarray(coeffs_hot.chi_face_el) / np.asarray(
        coeffs_cold.chi_face_el
    )
    self.assertTrue(np.all(ratio >= 2.0 - 1e-9))
    self.assertTrue(np.all(ratio <= 2.0**1.5 + 1e-9))
    np.testing.assert_allclose(
        coeffs_hot.d_face_el, 0.5 * np.asarray(coeffs_hot.chi_face_el)
    )

  def test_negative_diffusivities_are_clamped(self):
    _, dynamic_runtime_params_slice = self._dynamic_slice({
        'model_type': 'constant',
        'chi_min': 0.0,
        'D_e_min': 0.0,
        'V_e_min': -50.0,
    })
    n_faces = self.geo.n_cells + 1
    values = jnp.linspace(-1.0, 1.0, n_faces)
    model = _FixedTransportModel(
        state.TransportCoefficients(
            chi_face_ion=values,
            chi_face_el=values,
            d_face_el=values,
            v_face_el=values,
        )
    )
    with self.assertLogs(level='ERROR'):
      coeffs = model(dynamic_runtime_params_slice, self.geo, self.core_profiles)
    expected = np.maximum(np.asarray(values), 0.0)
    np.testing.assert_allclose(coeffs.chi_face_ion, expected)
    np.testing.assert_allclose(coeffs.chi_face_el, expected)
    np.testing.assert_allclose(coeffs.d_face_el, expected)
    # Convection is signed and is not clamped.
    np.testing.assert_allclose(coeffs.v_face_el, values)

  def test_non_finite_coefficients_raise(self):
    _, dynamic_runtime_params_slice = self._dynamic_slice(
        {'model_type': 'constant'}
    )
    coeffs = state.TransportCoefficients.zeros(self.geo)
    model = _FixedTransportModel(
        state.TransportCoefficients(
            chi_face_ion=coeffs.chi_face_ion.at[3].set(jnp.nan),
            chi_face_el=coeffs.chi_face_el,
            d_face_el=coeffs.d_face_el,
            v_face_el=coeffs.v_face_el,
        )
    )
    with self.assertRaises(errors.CriticalNumericalError):
      model(dynamic_runtime_params_slice, self.geo, self.core_profiles)

  def test_models_are_immutable(self):
    model = registry.build_transport_model('constant')
    with self.assertRaises(AttributeError):
      model.foo = 1

  @parameterized.parameters('constant', 'bohm-gyrobohm', 'qlknn')
  def test_registry_builds_equal_models(self, model_type):
    self.assertEqual(
        registry.build_transport_model(model_type),
        registry.build_transport_model(model_type),
    )

  def test_registry_rejects_unknown_model(self):
    with self.assertRaises(ValueError):
      registry.build_transport_model('not_a_model')

  def test_invalid_bounds_raise(self):
    with self.assertRaises(ValueError):
      registry.build_transport_config(
          'constant', {'chi_min': 10.0, 'chi_max': 1.0}
      )


if __name__ == '__main__':
  absltest.main()

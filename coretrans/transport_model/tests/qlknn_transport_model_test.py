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

from collections.abc import Mapping
from unittest import mock

from absl.testing import absltest
from absl.testing import parameterized
import numpy as np

from coretrans import errors
from coretrans.test_utils import core_profile_helpers
from coretrans.transport_model import bohm_gyrobohm
from coretrans.transport_model import qlknn_transport_model
from coretrans.transport_model import surrogate


class _FakePredictor(surrogate.SurrogatePredictor):
  """Predictor returning the outputs of a user supplied function."""

  def __init__(self, predict_fn):
    super().__init__(path='', name='fake')
    self._predict_fn = predict_fn
    self.calls = 0

  @property
  def input_names(self) -> tuple[str, ...]:
    return surrogate.QLKNN_INPUT_NAMES

  def predict(self, inputs: Mapping[str, np.ndarray]) -> surrogate.ModelOutput:
    self.calls += 1
    return self._predict_fn(inputs)


def _constant_outputs(value):
  def predict_fn(inputs):
    n = np.shape(inputs['x'])[0]
    return {name: np.full(n, value) for name in surrogate.QLKNN_OUTPUT_NAMES}

  return predict_fn


def _raise(exception):
  def predict_fn(inputs):
    del inputs
    raise exception

  return predict_fn


class QLKNNTransportModelTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = core_profile_helpers.make_geometry()
    self.core_profiles = core_profile_helpers.make_core_profiles(self.geo)
    config = core_profile_helpers.make_config(
        {'transport': {'model_type': 'qlknn'}}
    )
    _, self.dynamic_runtime_params_slice = (
        core_profile_helpers.make_runtime_params(config)
    )

  def _model(self, predict_fn):
    predictor = _FakePredictor(predict_fn)
    return predictor, qlknn_transport_model.QLKNNTransportModel(
        predictor=predictor
    )

  def _expected_fallback(self):
    transport = self.dynamic_runtime_params_slice.transport
    raw = bohm_gyrobohm.bohm_gyrobohm_coefficients(
        transport.fallback,
        self.dynamic_runtime_params_slice.plasma_composition.A_i,
        self.geo,
        self.core_profiles,
    )
    return np.clip(
        np.asarray(raw.chi_face_el), transport.chi_min, transport.chi_max
    )

  def test_compute_inputs_shapes(self):
    inputs = qlknn_transport_model.compute_inputs(
        1.5, self.geo, self.core_profiles
    )
    features = inputs.as_dict()
    self.assertSameElements(features, surrogate.QLKNN_INPUT_NAMES)
    for name, value in features.items():
      self.assertEqual(value.shape, (self.geo.n_cells + 1,), name)
      self.assertTrue(np.all(np.isfinite(value)), name)

  def test_valid_prediction_is_scaled_and_floored(self):
    predictor, model = self._model(_constant_outputs(0.0))
    coeffs = model(
        self.dynamic_runtime_params_slice, self.geo, self.core_profiles
    )
    self.assertEqual(predictor.calls, 1)
    min_chi = self.dynamic_runtime_params_slice.transport.min_chi
    np.testing.assert_allclose(coeffs.chi_face_ion, min_chi)
    np.testing.assert_allclose(coeffs.chi_face_el, min_chi)
    np.testing.assert_allclose(coeffs.v_face_el, 0.0)

  @parameterized.named_parameters(
      ('runtime_error', _raise(RuntimeError('boom'))),
      ('model_load_error', _raise(errors.ModelLoadError('missing', 'x'))),
      ('non_finite', _constant_outputs(np.nan)),
      ('missing_output', lambda inputs: {'efiITG': np.ones(3)}),
      ('wrong_shape', lambda inputs: {
          name: np.ones(2) for name in surrogate.QLKNN_OUTPUT_NAMES
      }),
      ('not_a_mapping', lambda inputs: np.ones(7)),
  )
  def test_failing_predictor_falls_back_to_bohm_gyrobohm(self, predict_fn):
    _, model = self._model(predict_fn)
    with self.assertLogs(level='WARNING'):
      coeffs = model(
          self.dynamic_runtime_params_slice, self.geo, self.core_profiles
      )
    np.testing.assert_allclose(
        coeffs.chi_face_el, self._expected_fallback(), rtol=1e-10
    )
    self.assertTrue(np.all(np.isfinite(np.asarray(coeffs.chi_face_ion))))

  def test_repeated_fallback_warns_once_per_error_type(self):
    _, model = self._model(_raise(errors.ModelLoadError('missing', 'x')))
    with self.assertLogs(logger='absl', level='WARNING') as logs:
      for _ in range(3):
        model(self.dynamic_runtime_params_slice, self.geo, self.core_profiles)
    failures = [m for m in logs.output if 'QLKNN prediction failed' in m]
    self.assertLen(failures, 1)

  def test_failed_model_load_is_not_retried(self):
    self.enter_context(
        mock.patch.dict(surrogate._LOAD_FAILURES, clear=True)
    )
    load = self.enter_context(
        mock.patch.object(
            surrogate,
            'QLKNNPredictor',
            side_effect=errors.ModelLoadError('missing', '/no/such/model'),
        )
    )
    model = qlknn_transport_model.QLKNNTransportModel(path='/no/such/model')
    with self.assertLogs(logger='absl', level='WARNING'):
      for _ in range(3):
        coeffs = model(
            self.dynamic_runtime_params_slice, self.geo, self.core_profiles
        )
    self.assertEqual(load.call_count, 1)
    np.testing.assert_allclose(
        coeffs.chi_face_el, self._expected_fallback(), rtol=1e-10
    )
    with self.assertRaises(errors.ModelLoadError):
      surrogate.get_qlknn_predictor('/no/such/model', '')

  def test_validated_outputs_rejects_bad_shape(self):
    outputs = {name: np.ones(4) for name in surrogate.QLKNN_OUTPUT_NAMES}
    with self.assertRaises(errors.MalformedPredictionError):
      qlknn_transport_model._validated_outputs(outputs, n_faces=5)

  def test_equality(self):
    predictor = _FakePredictor(_constant_outputs(1.0))
    self.assertEqual(
        qlknn_transport_model.QLKNNTransportModel(predictor=predictor),
        qlknn_transport_model.QLKNNTransportModel(predictor=predictor),
    )
    self.assertNotEqual(
        qlknn_transport_model.QLKNNTransportModel(path='a'),
        qlknn_transport_model.QLKNNTransportModel(path='b'),
    )


if __name__ == '__main__':
  absltest.main()

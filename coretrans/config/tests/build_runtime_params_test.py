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
import numpy as np

from coretrans import constants
from coretrans.config import build_runtime_params
from coretrans.test_utils import core_profile_helpers


class BuildRuntimeParamsTest(absltest.TestCase):

  def test_dynamic_slice_is_interpolated_in_time(self):
    config = core_profile_helpers.make_config({
        'profile_conditions': {'T_i_right_bc': {0.0: 100.0, 2.0: 300.0}},
        'plasma_composition': {'Z_eff': {0.0: 1.0, 2.0: 2.0}},
        'transport': {'chi_e': {0.0: 1.0, 2.0: 3.0}},
        'sources': {
            'ecrh': {
                'model_type': 'electron_cyclotron_source',
                'total_power': {0.0: 0.0, 2.0: 2e7},
            },
        },
    })
    provider = build_runtime_params.RuntimeParamsProvider.from_config(config)
    dynamic_runtime_params_slice = provider(1.0)

    self.assertEqual(dynamic_runtime_params_slice.t, 1.0)
    np.testing.assert_allclose(
        dynamic_runtime_params_slice.profile_conditions.T_i_right_bc, 200.0
    )
    np.testing.assert_allclose(
        dynamic_runtime_params_slice.plasma_composition.Z_eff, 1.5
    )
    np.testing.assert_allclose(
        dynamic_runtime_params_slice.plasma_composition.A_i,
        constants.ION_PROPERTIES_DICT['DT'].A,
    )
    np.testing.assert_allclose(
        dynamic_runtime_params_slice.transport.chi_e, 2.0
    )
    self.assertEqual(list(dynamic_runtime_params_slice.sources), ['ecrh'])
    np.testing.assert_allclose(
        dynamic_runtime_params_slice.sources['ecrh'].total_power, 1e7
    )
    self.assertIsNone(dynamic_runtime_params_slice.sawtooth)

  def test_slices_at_different_times_are_independent(self):
    config = core_profile_helpers.make_config(
        {'profile_conditions': {'T_e_right_bc': {0.0: 100.0, 1.0: 200.0}}}
    )
    provider = build_runtime_params.RuntimeParamsProvider.from_config(config)
    early = provider(0.0)
    late = provider(1.0)
    np.testing.assert_allclose(early.profile_conditions.T_e_right_bc, 100.0)
    np.testing.assert_allclose(late.profile_conditions.T_e_right_bc, 200.0)

  def test_static_slice(self):
    config = core_profile_helpers.make_config({
        'numerics': {'evolve_current': True, 'evolve_density': True},
        'solver': {'solver_type': 'linear', 'theta_implicit': 0.5},
    })
    static_runtime_params_slice = (
        build_runtime_params.build_static_params_from_config(config)
    )
    self.assertEqual(
        static_runtime_params_slice.evolving_names, ('T_i', 'T_e', 'psi', 'n_e')
    )
    self.assertEqual(static_runtime_params_slice.n_rho, 50)
    self.assertEqual(static_runtime_params_slice.solver_type, 'linear')
    self.assertEqual(static_runtime_params_slice.theta_implicit, 0.5)
    self.assertTrue(static_runtime_params_slice.adaptive_dt)


if __name__ == '__main__':
  absltest.main()

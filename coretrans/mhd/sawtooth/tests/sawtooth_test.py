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

from coretrans.mhd.sawtooth import redistribution
from coretrans.mhd.sawtooth import sawtooth_model as sawtooth_model_lib
from coretrans.mhd.sawtooth import trigger
from coretrans.test_utils import core_profile_helpers

_SawtoothState = sawtooth_model_lib.SawtoothState


# pylint: disable=invalid-name
def _thermal_content(core_profiles, geo):
  volumes = np.asarray(geo.cell_volumes)
  n_e = np.asarray(core_profiles.n_e.value)
  particles = np.sum(n_e * volumes)
  energy = np.sum(
      n_e
      * (np.asarray(core_profiles.T_i.value)
         + np.asarray(core_profiles.T_e.value))
      * volumes
  )
  return particles, energy


class SawtoothTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self.geo = core_profile_helpers.make_geometry()
    self.core_profiles = core_profile_helpers.make_core_profiles(self.geo)

  def _dynamic_slice(self, sawtooth=None):
    config = core_profile_helpers.make_config(
        {'mhd': {'sawtooth': sawtooth or {}}}
    )
    _, dynamic_runtime_params_slice = core_profile_helpers.make_runtime_params(
        config
    )
    return config, dynamic_runtime_params_slice

  def _peaked_ion_temperature(self, q0):
    # T_i[0] = x and 1 elsewhere gives peaking x / mean = 1 / q0 - 0.1.
    n = self.geo.n_cells
    peaking = 1.0 / q0 - 0.1
    x = peaking * (n - 1) / (n - peaking)
    T_i = jnp.ones(n).at[0].set(x)
    return self.core_profiles.replace_values(T_i=T_i)

  def test_q_proxy(self):
    core_profiles = self._peaked_ion_temperature(0.8)
    np.testing.assert_allclose(
        trigger.on_axis_q_proxy(core_profiles.T_i.value), 0.8, rtol=1e-8
    )

  @parameterized.named_parameters(
      ('long_step', 0.02, True),
      ('short_step', 0.005, False),
  )
  def test_trigger_respects_min_crash_interval(self, dt, expected):
    _, dynamic_runtime_params_slice = self._dynamic_slice(
        {'q_critical': 1.0, 'min_crash_interval': 0.01}
    )
    core_profiles = self._peaked_ion_temperature(0.8)
    triggered, rho_norm_q1 = trigger.SimpleTrigger()(
        dynamic_runtime_params_slice, self.geo, core_profiles, dt
    )
    self.assertEqual(triggered, expected)
    self.assertGreater(rho_norm_q1, 0.3)

  def test_no_trigger_above_critical_q(self):
    _, dynamic_runtime_params_slice = self._dynamic_slice({'q_critical': 0.5})
    core_profiles = self._peaked_ion_temperature(0.8)
    triggered, _ = trigger.SimpleTrigger()(
        dynamic_runtime_params_slice, self.geo, core_profiles, 0.1
    )
    self.assertFalse(triggered)

  @parameterized.named_parameters(
      ('first_cell_beyond', 0.3, 0.31),
      ('never_the_axis', 0.0, 0.03),
      ('fallback', 0.999, 0.33),
  )
  def test_q1_radius(self, inversion_radius, expected):
    rho_norm = np.linspace(0.01, 0.99, 50)
    np.testing.assert_allclose(
        trigger.q1_radius(rho_norm, inversion_radius), expected, atol=1e-10
    )

  @parameterized.parameters(1e-4, 1e-2)
  def test_redistribution_conserves_particles_and_energy(self, mixing_time):
    _, dynamic_runtime_params_slice = self._dynamic_slice(
        {'mixing_time': mixing_time}
    )
    redistributed = redistribution.ConservativeRedistribution()(
        0.4, dynamic_runtime_params_slice, self.geo, self.core_profiles, 0.005
    )
    particles, energy = _thermal_content(self.core_profiles, self.geo)
    new_particles, new_energy = _thermal_content(redistributed, self.geo)
    np.testing.assert_allclose(new_particles, particles, rtol=1e-2)
    np.testing.assert_allclose(new_energy, energy, rtol=1e-2)

  def test_redistribution_only_changes_the_mixing_region(self):
    _, dynamic_runtime_params_slice = self._dynamic_slice()
    redistributed = redistribution.ConservativeRedistribution()(
        0.4, dynamic_runtime_params_slice, self.geo, self.core_profiles, 0.02
    )
    outside = np.asarray(self.geo.rho_norm) >= 0.4
    inside = ~outside
    for name in ('T_i', 'T_e', 'n_e'):
      old = np.asarray(self.core_profiles[name].value)
      new = np.asarray(redistributed[name].value)
      np.testing.assert_array_equal(new[outside], old[outside])
      # Full mixing flattens the region.
      np.testing.assert_allclose(new[inside], new[inside][0], rtol=1e-10)
    np.testing.assert_array_equal(
        np.asarray(redistributed.psi.value),
        np.asarray(self.core_profiles.psi.value),
    )

  def test_empty_mixing_region_changes_nothing(self):
    _, dynamic_runtime_params_slice = self._dynamic_slice()
    redistributed = redistribution.ConservativeRedistribution()(
        0.001, dynamic_runtime_params_slice, self.geo, self.core_profiles, 0.02
    )
    self.assertIs(redistributed, self.core_profiles)

  def test_sawtooth_cycle(self):
    config, dynamic_runtime_params_slice = self._dynamic_slice()
    model = config.mhd.build_sawtooth_model()
    core_profiles = self._peaked_ion_temperature(0.8)

    crashed, sawtooth_state = model(
        dynamic_runtime_params_slice, self.geo, core_profiles, 0.02
    )
    self.assertEqual(sawtooth_state, _SawtoothState.RELAXED)
    self.assertLess(
        float(crashed.T_i.value[0]), float(core_profiles.T_i.value[0])
    )

    # No crash is triggered right after a crash.
    after, sawtooth_state = model(
        dynamic_runtime_params_slice, self.geo, core_profiles, 0.02,
        previous_state=sawtooth_state,
    )
    self.assertEqual(sawtooth_state, _SawtoothState.STABLE)
    self.assertIs(after, core_profiles)

  def test_disabled_sawteeth(self):
    config = core_profile_helpers.make_config()
    self.assertIsNone(config.mhd.build_sawtooth_model())
    _, dynamic_runtime_params_slice = core_profile_helpers.make_runtime_params(
        config
    )
    self.assertIsNone(dynamic_runtime_params_slice.sawtooth)


if __name__ == '__main__':
  absltest.main()

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
import numpy as np

from coretrans import state
from coretrans.mhd.sawtooth import sawtooth_model
from coretrans.orchestration import step_function
from coretrans.test_utils import step_fn_helpers


class StepFunctionTest(absltest.TestCase):

  def test_converged_step_is_accepted(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn()
    statistics = {}
    output_state, sim_error = step_fn(initial_state, statistics)
    self.assertEqual(sim_error, state.SimError.NO_ERROR)
    np.testing.assert_allclose(output_state.t, 0.1)
    np.testing.assert_allclose(output_state.dt, 0.1)
    self.assertEqual(output_state.step, 1)
    self.assertEqual(statistics['inner_solver_iterations'], 1)
    self.assertEqual(statistics['dt_reductions'], 0)
    self.assertEqual(statistics['sawtooth_crashes'], 0)

  def test_dt_is_reduced_until_the_step_converges(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        max_converging_dt=0.02
    )
    statistics = {}
    output_state, sim_error = step_fn(initial_state, statistics)
    self.assertEqual(sim_error, state.SimError.NO_ERROR)
    # 0.1 -> 0.1 / 3 -> 0.1 / 9.
    np.testing.assert_allclose(output_state.dt, 0.1 / 9)
    np.testing.assert_allclose(output_state.t, 0.1 / 9)
    self.assertEqual(statistics['dt_reductions'], 2)
    self.assertEqual(statistics['inner_solver_iterations'], 3)

  def test_reaching_min_dt_keeps_the_input_state(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        {'numerics': {'t_final': 1.0, 'fixed_dt': 0.1, 'min_dt': 0.05}},
        max_converging_dt=0.01,
    )
    statistics = {}
    output_state, sim_error = step_fn(initial_state, statistics)
    self.assertEqual(sim_error, state.SimError.REACHED_MIN_DT)
    self.assertIs(output_state, initial_state)
    self.assertEqual(statistics['dt_reductions'], 1)

  def test_no_retry_without_adaptive_dt(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        {'numerics': {'t_final': 1.0, 'fixed_dt': 0.1, 'adaptive_dt': False}},
        max_converging_dt=0.01,
    )
    statistics = {}
    output_state, sim_error = step_fn(initial_state, statistics)
    self.assertEqual(sim_error, state.SimError.REACHED_MIN_DT)
    self.assertIs(output_state, initial_state)
    self.assertEqual(statistics['dt_reductions'], 0)
    self.assertEqual(statistics['inner_solver_iterations'], 1)

  def test_previous_dt_limits_growth(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        {'numerics': {'t_final': 1.0, 'fixed_dt': 0.5}},
        max_converging_dt=0.2,
    )
    first_state, _ = step_fn(initial_state)
    # The first retry at 0.5 / 3 is already below the converging limit.
    np.testing.assert_allclose(first_state.dt, 0.5 / 3)
    second_state, sim_error = step_fn(first_state)
    self.assertEqual(sim_error, state.SimError.NO_ERROR)
    np.testing.assert_allclose(second_state.dt, 0.5 / 3 * 1.1 * 0.95)

  def test_final_step_lands_on_t_final(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        {'numerics': {'t_final': 0.25, 'fixed_dt': 0.1}}
    )
    current_state = initial_state
    while not step_fn.is_done(current_state.t):
      current_state, sim_error = step_fn(current_state)
      self.assertEqual(sim_error, state.SimError.NO_ERROR)
    np.testing.assert_allclose(current_state.t, 0.25)
    self.assertEqual(current_state.step, 3)

  def test_boundary_conditions_at_end_of_step(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        {'profile_conditions': {'T_e_right_bc': {0.0: 100.0, 1.0: 200.0}}}
    )
    core_profiles = step_function.provide_core_profiles_t_plus_dt(
        initial_state.core_profiles, step_fn.runtime_params_provider(0.5)
    )
    np.testing.assert_allclose(core_profiles.T_e.right_face_constraint, 150.0)
    np.testing.assert_allclose(
        core_profiles.T_e.value, initial_state.core_profiles.T_e.value
    )
    np.testing.assert_allclose(
        core_profiles.psi.right_face_constraint,
        initial_state.core_profiles.psi.right_face_constraint,
    )

  def test_sawtooth_crash_is_counted(self):
    step_fn, initial_state = step_fn_helpers.make_step_fn(
        {'mhd': {'sawtooth': {}}}
    )
    statistics = {}
    crashed_state, sim_error = step_fn(initial_state, statistics)
    self.assertEqual(sim_error, state.SimError.NO_ERROR)
    self.assertEqual(
        crashed_state.sawtooth_state, sawtooth_model.SawtoothState.RELAXED
    )
    self.assertTrue(crashed_state.solver_numeric_outputs.sawtooth_crash)
    self.assertEqual(statistics['sawtooth_crashes'], 1)
    self.assertLess(
        float(crashed_state.core_profiles.T_i.value[0]),
        float(initial_state.core_profiles.T_i.value[0]),
    )

    next_state, _ = step_fn(crashed_state, statistics)
    self.assertEqual(
        next_state.sawtooth_state, sawtooth_model.SawtoothState.STABLE
    )
    self.assertEqual(statistics['sawtooth_crashes'], 1)

  def test_negative_profiles_are_rejected(self):
    _, initial_state = step_fn_helpers.make_step_fn()
    core_profiles = initial_state.core_profiles.replace_values(
        T_e=-initial_state.core_profiles.T_e.value
    )
    bad_state = dataclasses.replace(initial_state, core_profiles=core_profiles)
    self.assertEqual(
        bad_state.check_for_errors(), state.SimError.NEGATIVE_CORE_PROFILES
    )

  def test_nan_profiles_are_rejected(self):
    _, initial_state = step_fn_helpers.make_step_fn()
    core_profiles = initial_state.core_profiles.replace_values(
        n_e=initial_state.core_profiles.n_e.value.at[3].set(np.nan)
    )
    bad_state = dataclasses.replace(initial_state, core_profiles=core_profiles)
    self.assertEqual(bad_state.check_for_errors(), state.SimError.NAN_DETECTED)


if __name__ == '__main__':
  absltest.main()

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
import threading

from absl.testing import absltest

from coretrans.orchestration import state_holder as state_holder_lib
from coretrans.test_utils import step_fn_helpers


class StateHolderTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    _, self.initial_state = step_fn_helpers.make_step_fn()
    self.holder = state_holder_lib.StateHolder(
        self.initial_state, {'steps': 0}
    )

  def _state_at(self, t):
    return dataclasses.replace(self.initial_state, t=t)

  def test_publish_is_visible_after_the_step(self):
    new_state = self._state_at(0.1)
    with self.holder.exclusive_step() as transaction:
      self.assertIs(transaction.state, self.initial_state)
      transaction.publish(new_state, {'steps': 1})
      # Not visible before the step completes.
      self.assertIs(self.holder.state, self.initial_state)
    published = self.holder.snapshot()
    self.assertIs(published.state, new_state)
    self.assertEqual(published.statistics['steps'], 1)

  def test_failed_step_publishes_nothing(self):
    with self.assertRaisesRegex(RuntimeError, 'step failed'):
      with self.holder.exclusive_step() as transaction:
        transaction.publish(self._state_at(0.1), {'steps': 1})
        raise RuntimeError('step failed')
    published = self.holder.snapshot()
    self.assertIs(published.state, self.initial_state)
    self.assertEqual(published.statistics['steps'], 0)

  def test_step_without_publish_keeps_state(self):
    before = self.holder.snapshot()
    with self.holder.exclusive_step():
      pass
    self.assertIs(self.holder.snapshot(), before)

  def test_last_publish_wins(self):
    final_state = self._state_at(0.2)
    with self.holder.exclusive_step() as transaction:
      transaction.publish(self._state_at(0.1))
      transaction.publish(final_state)
    self.assertIs(self.holder.state, final_state)
    # Statistics are carried over when not given.
    self.assertEqual(self.holder.snapshot().statistics['steps'], 0)

  def test_published_statistics_are_immutable(self):
    statistics = {'steps': 1}
    with self.holder.exclusive_step() as transaction:
      transaction.publish(self._state_at(0.1), statistics)
    statistics['steps'] = 2
    published = self.holder.snapshot()
    self.assertEqual(published.statistics['steps'], 1)
    with self.assertRaises(TypeError):
      published.statistics['steps'] = 3  # pytype: disable=unsupported-operands

  def test_readers_never_see_a_mixed_snapshot(self):
    n_steps = 200
    states = [self._state_at(float(i)) for i in range(1, n_steps + 1)]
    mismatches = []
    done = threading.Event()

    def read():
      while not done.is_set():
        published = self.holder.snapshot()
        if published.state.t != published.statistics['steps']:
          mismatches.append(published)

    reader = threading.Thread(target=read)
    reader.start()
    for i, new_state in enumerate(states, start=1):
      with self.holder.exclusive_step() as transaction:
        transaction.publish(new_state, {'steps': i})
    done.set()
    reader.join()
    self.assertEmpty(mismatches)
    self.assertEqual(self.holder.state.t, float(n_steps))


if __name__ == '__main__':
  absltest.main()

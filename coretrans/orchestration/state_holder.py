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

"""Single-writer holder of the latest accepted simulation state."""

from collections.abc import Iterator, Mapping
import contextlib
import dataclasses
import threading
from typing import Any

import immutabledict

from coretrans.orchestration import sim_state


@dataclasses.dataclass(frozen=True)
class Published:
  """A state and the run statistics published together with it."""

  state: sim_state.SimState
  statistics: Mapping[str, Any]


class StepTransaction:
  """Handle given to the writer inside `StateHolder.exclusive_step`.

  Nothing is visible to readers until the `exclusive_step` block exits
  without an exception. Only the last call to `publish` inside the block is
  kept.
  """

  def __init__(self, current: Published):
    self._current = current
    self._pending: Published | None = None

  @property
  def state(self) -> sim_state.SimState:
    """The last published state."""
    return self._current.state

  @property
  def statistics(self) -> Mapping[str, Any]:
    return self._current.statistics

  def publish(
      self,
      new_state: sim_state.SimState,
      statistics: Mapping[str, Any] | None = None,
  ) -> None:
    if statistics is None:
      statistics = self._current.statistics
    self._pending = Published(
        state=new_state, statistics=immutabledict.immutabledict(statistics)
    )

  @property
  def pending(self) -> Published | None:
    return self._pending


class StateHolder:
  """Holds the last published simulation state.

  The run loop is the only writer and publishes through `exclusive_step`,
  which serializes writers with a mutex. Readers call `snapshot`, which never
  takes the lock: a state and its statistics are swapped in as a single
  reference, so a reader sees either the old or the new pair, never a mix.
  """

  def __init__(
      self,
      initial_state: sim_state.SimState,
      statistics: Mapping[str, Any] | None = None,
  ):
    self._lock = threading.Lock()
    self._published = Published(
        state=initial_state,
        statistics=immutabledict.immutabledict(statistics or {}),
    )

  @contextlib.contextmanager
  def exclusive_step(self) -> Iterator[StepTransaction]:
    """Context for a single writer to publish the next state.

    Yields:
      A transaction holding the current state. States passed to its `publish`
      method become visible when the block exits normally.
    """
    with self._lock:
      transaction = StepTransaction(self._published)
      yield transaction
      if transaction.pending is not None:
        self._published = transaction.pending

  def snapshot(self) -> Published:
    """Returns the last published state and statistics without locking."""
    return self._published

  @property
  def state(self) -> sim_state.SimState:
    return self._published.state

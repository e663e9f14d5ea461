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

"""Read-only observer reporting the progress of a running simulation."""

from collections.abc import Callable, Mapping
import dataclasses
import threading
from typing import Any

from absl import logging

from coretrans.orchestration import state_holder as state_holder_lib


@dataclasses.dataclass(frozen=True)
class ProgressSnapshot:
  """Progress of a simulation.

  Attributes:
    t: Time of the last published state [s].
    statistics: Run statistics published with that state.
  """

  t: float
  statistics: Mapping[str, Any]


class ProgressObserver(threading.Thread):
  """Background thread polling a StateHolder and reporting progress.

  Each poll that finds a newly published state delivers a `ProgressSnapshot`
  to the callback. The observer stops when `cancel` is called, after a last
  poll, or once the published time is within `tolerance` of `t_final`. It
  never writes to the holder.
  """

  def __init__(
      self,
      holder: state_holder_lib.StateHolder,
      callback: Callable[[ProgressSnapshot], None],
      t_final: float,
      poll_interval: float = 0.1,
      tolerance: float = 1e-7,
  ):
    super().__init__(name='coretrans-progress', daemon=True)
    self._holder = holder
    self._callback = callback
    self._t_final = t_final
    self._poll_interval = poll_interval
    self._tolerance = tolerance
    self._stop_event = threading.Event()

  def cancel(self) -> None:
    self._stop_event.set()

  @property
  def cancelled(self) -> bool:
    return self._stop_event.is_set()

  def poll(self, last: state_holder_lib.Published | None = None) -> (
      state_holder_lib.Published
  ):
    """Delivers a snapshot if the holder published since `last`."""
    published = self._holder.snapshot()
    if published is not last:
      self._callback(
          ProgressSnapshot(
              t=float(published.state.t), statistics=published.statistics
          )
      )
    return published

  def run(self) -> None:
    last = self.poll()
    while last.state.t < self._t_final - self._tolerance:
      if self._stop_event.wait(self._poll_interval):
        # Report the state the run stopped at.
        self.poll(last)
        return
      last = self.poll(last)
    logging.info('Progress observer reached t_final=%.6f.', self._t_final)

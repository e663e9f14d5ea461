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

"""Trigger models for sawtooth crashes."""

import abc
import dataclasses

import chex
import numpy as np

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.mhd.sawtooth import runtime_params as sawtooth_runtime_params


def on_axis_q_proxy(T_i: chex.Array) -> float:  # pylint: disable=invalid-name
  """Estimates q(0) from the peaking of the ion temperature profile.

  Args:
    T_i: Ion temperature on the cell grid [eV].

  Returns:
    `1 / (peaking + 0.1)` with `peaking = T_i[0] / (mean(T_i) + 1e-10)`.
  """
  T_i = np.asarray(T_i)  # pylint: disable=invalid-name
  peaking = T_i[0] / (np.mean(T_i) + 1e-10)
  return float(1.0 / (peaking + 0.1))


def q1_radius(rho_norm: chex.Array, inversion_radius: float) -> float:
  """Returns the normalized radius used as the q=1 surface.

  Args:
    rho_norm: Normalized radius of the cell centers.
    inversion_radius: Threshold locating the q=1 surface.

  Returns:
    The radius of the first cell beyond `inversion_radius` (never the axis
    cell), or the radius one third of the way out when no cell lies beyond
    it.
  """
  rho_norm = np.asarray(rho_norm)
  n_cells = rho_norm.shape[0]
  beyond = np.nonzero(rho_norm > inversion_radius)[0]
  if beyond.size:
    idx = max(int(beyond[0]), 1)
  else:
    idx = max(n_cells // 3, 1)
  return float(rho_norm[min(idx, n_cells - 1)])


@dataclasses.dataclass(frozen=True)
class TriggerModel(abc.ABC):
  """Abstract base class for sawtooth trigger models."""

  @abc.abstractmethod
  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      dt: chex.Numeric,
  ) -> tuple[bool, float]:
    """Indicates if a crash is triggered and the radius of the q=1 surface."""


@dataclasses.dataclass(frozen=True)
class SimpleTrigger(TriggerModel):
  """Triggers a crash when the on-axis safety factor proxy drops too low."""

  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      dt: chex.Numeric,
  ) -> tuple[bool, float]:
    """Checks the q(0) and crash interval conditions.

    Args:
      dynamic_runtime_params_slice: Runtime parameters.
      geo: Geometry object.
      core_profiles: Core plasma profiles.
      dt: Duration of the step that produced `core_profiles`.

    Returns:
      tuple of (True if sawtooth crash is triggered, False otherwise,
        normalized radius of the q=1 surface)
    """
    params = dynamic_runtime_params_slice.sawtooth
    assert isinstance(params, sawtooth_runtime_params.DynamicRuntimeParams)
    q0 = on_axis_q_proxy(core_profiles.T_i.value)
    triggered = q0 < params.q_critical and dt >= params.min_crash_interval
    return triggered, q1_radius(geo.rho_norm, params.inversion_radius)

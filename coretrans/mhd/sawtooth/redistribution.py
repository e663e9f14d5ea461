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

"""Redistribution models for sawtooth crashes."""

import abc
import dataclasses

import chex
from jax import numpy as jnp
import numpy as np

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.mhd.sawtooth import runtime_params as sawtooth_runtime_params


@dataclasses.dataclass(frozen=True)
class RedistributionModel(abc.ABC):
  """Abstract base class for sawtooth redistribution models."""

  @abc.abstractmethod
  def __call__(
      self,
      rho_norm_q1: chex.Numeric,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      dt: chex.Numeric,
  ) -> state.CoreProfiles:
    """Returns the core profiles after redistribution."""


def _mix(
    value: chex.Array,
    mask: chex.Array,
    weights: chex.Array,
    fraction: float,
) -> chex.Array:
  """Moves the masked values toward their weighted mean by `fraction`."""
  mean = jnp.sum(jnp.where(mask, value * weights, 0.0)) / jnp.sum(
      jnp.where(mask, weights, 0.0)
  )
  return jnp.where(mask, value + fraction * (mean - value), value)


# pylint: disable=invalid-name
@dataclasses.dataclass(frozen=True)
class ConservativeRedistribution(RedistributionModel):
  """Partial mixing that conserves particles and thermal energy.

  Cells inside `rho_norm_q1 * mixing_radius_multiplier` are moved toward their
  volume-weighted mean by `clamp(dt / mixing_time, 0, 1)`. Density is mixed
  directly. Temperatures are mixed through the energy densities n_e*T so that
  the thermal energy of the region is unchanged. Cells outside the mixing
  region and the poloidal flux are left untouched.
  """

  def __call__(
      self,
      rho_norm_q1: chex.Numeric,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
      dt: chex.Numeric,
  ) -> state.CoreProfiles:
    params = dynamic_runtime_params_slice.sawtooth
    assert isinstance(params, sawtooth_runtime_params.DynamicRuntimeParams)
    mixing_radius = rho_norm_q1 * params.mixing_radius_multiplier
    mask = jnp.asarray(geo.rho_norm) < mixing_radius
    if not np.any(np.asarray(mask)):
      return core_profiles

    fraction = float(np.clip(dt / params.mixing_time, 0.0, 1.0))
    volumes = geo.cell_volumes
    n_e = core_profiles.n_e.value
    n_e_new = _mix(n_e, mask, volumes, fraction)

    def mix_temperature(T: chex.Array) -> chex.Array:
      energy = _mix(n_e * T, mask, volumes, fraction)
      return jnp.where(mask, energy / n_e_new, T)

    return core_profiles.replace_values(
        T_i=mix_temperature(core_profiles.T_i.value),
        T_e=mix_temperature(core_profiles.T_e.value),
        n_e=n_e_new,
    )

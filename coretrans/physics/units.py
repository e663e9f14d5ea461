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

"""Unit conversions applied at the source boundary.

Source models report power densities in MW/m^3. The heat equations are solved
for temperature in eV, so the heating terms enter the discrete system in
eV m^-3 s^-1. The conversion factor (~6.24e24) exceeds the range in which
float32 keeps the product exact, so the multiplication is always done on the
host in float64 and only the result is cast to the working precision.
"""

import chex
import jax
from jax import numpy as jnp
import numpy as np

from coretrans import constants
from coretrans import jax_utils


def mw_per_m3_to_ev_per_m3_s(power_density: chex.Array) -> jax.Array:
  """Converts a power density from MW/m^3 to eV m^-3 s^-1.

  Args:
    power_density: Power density in MW/m^3.

  Returns:
    The power density in eV m^-3 s^-1 in the working dtype.
  """
  converted = (
      np.asarray(power_density, dtype=np.float64) * constants.MW_TO_EV_PER_S
  )
  return jnp.asarray(converted, dtype=jax_utils.get_dtype())


def ev_per_m3_s_to_mw_per_m3(power_density: chex.Array) -> jax.Array:
  """Inverse of `mw_per_m3_to_ev_per_m3_s`."""
  converted = (
      np.asarray(power_density, dtype=np.float64) / constants.MW_TO_EV_PER_S
  )
  return jnp.asarray(converted, dtype=jax_utils.get_dtype())


def w_to_mw(power: chex.Numeric) -> chex.Numeric:
  return power * 1e-6


def ma_to_a(current: chex.Numeric) -> chex.Numeric:
  return current * 1e6

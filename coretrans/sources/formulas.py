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

"""Normalized shape functions for prescribed source profiles.

Each shape is evaluated on the cell grid in normalized radius and rescaled so
that its integral equals the requested total: a volume integral for power and
particle densities, a cross-section integral for current densities.
"""

from typing import Literal

import jax
from jax import numpy as jnp

from coretrans import math_utils
from coretrans.geometry import geometry

# pylint: disable=invalid-name


def _normalize(
    shape: jax.Array,
    geo: geometry.Geometry,
    total: float,
    integral: Literal['volume', 'area'],
) -> jax.Array:
  if integral == 'volume':
    norm = math_utils.volume_integration(shape, geo)
  elif integral == 'area':
    norm = math_utils.area_integration(shape, geo)
  else:
    raise ValueError(f'Unknown integral: {integral}')
  return total * shape / norm


def exponential_profile(
    geo: geometry.Geometry,
    *,
    decay_start: float,
    width: float,
    total: float,
) -> jax.Array:
  """Exponential decaying inwards from `decay_start`, with volume integral `total`.

  Used for edge-localized sources such as gas puffs. `decay_start` and `width`
  are in normalized radius.
  """
  shape = jnp.exp((geo.rho_norm - decay_start) / width)
  return _normalize(shape, geo, total, 'volume')


def gaussian_profile(
    geo: geometry.Geometry,
    *,
    center: float,
    width: float,
    total: float,
    integral: Literal['volume', 'area'] = 'volume',
) -> jax.Array:
  """Gaussian in normalized radius with integral `total`.

  Args:
    geo: Geometry of the torus.
    center: Position of the peak in normalized radius.
    width: Standard deviation in normalized radius.
    total: Value of the integral of the returned profile.
    integral: 'volume' for densities of power or particles, 'area' for current
      densities.

  Returns:
    The profile on the cell grid.

  Raises:
    ValueError: If `integral` is neither 'volume' nor 'area'.
  """
  shape = jnp.exp(-0.5 * ((geo.rho_norm - center) / width) ** 2)
  return _normalize(shape, geo, total, integral)

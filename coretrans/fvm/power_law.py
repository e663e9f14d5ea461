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

"""Patankar power-law weighting of convection-diffusion face values.

The face value of a cell variable is a blend of central differencing and
first-order upwinding:

  x_face = alpha * 0.5 * (x_left + x_right) + (1 - alpha) * x_upwind

with alpha = max(0, 1 - 0.1 |Pe|)^5 for |Pe| <= 10 and alpha = 0 beyond. At
Pe = 0 the scheme is pure second-order central differencing, for large |Pe|
it is pure upwinding. See Patankar, Numerical Heat Transfer and Fluid Flow
(1980), section 5.2.
"""

import chex
import jax
from jax import numpy as jnp

from coretrans import array_typing
from coretrans import constants


def peclet_number(
    v_face: array_typing.FloatVector,
    d_face: array_typing.FloatVector,
    dx: chex.Numeric,
) -> jax.Array:
  """Face Peclet number Pe = v dx / D, with D floored at 1e-30.

  Args:
    v_face: Convection coefficient on faces.
    d_face: Diffusion coefficient on faces.
    dx: Cell width.

  Returns:
    The Peclet number on each face.
  """
  return v_face * dx / (d_face + constants.DIFFUSIVITY_FLOOR)


def power_law_alpha(peclet: chex.Array) -> jax.Array:
  """Weight of central differencing for a given Peclet number.

  Args:
    peclet: Peclet number on faces.

  Returns:
    alpha in [0, 1]. 1 at Pe = 0, non-increasing in |Pe|, exactly 0 for
    |Pe| > 10.
  """
  abs_pe = jnp.abs(peclet)
  alpha = jnp.maximum(0.0, 1.0 - abs_pe / constants.PECLET_CUTOFF) ** 5
  return jnp.where(abs_pe > constants.PECLET_CUTOFF, 0.0, alpha)


def upwind_weights(
    v_face: array_typing.FloatVector,
    d_face: array_typing.FloatVector,
    dx: chex.Numeric,
) -> tuple[jax.Array, jax.Array]:
  """Weights of the left and right cells in each face value.

  Args:
    v_face: Convection coefficient on faces.
    d_face: Diffusion coefficient on faces.
    dx: Cell width.

  Returns:
    (left_weight, right_weight) on each face. They sum to one. For positive
    velocity the upwind cell is the left one.
  """
  peclet = peclet_number(v_face, d_face, dx)
  alpha = power_law_alpha(peclet)
  upwind_left = jnp.where(peclet > 0.0, 1.0, 0.0)
  left_weight = 0.5 * alpha + (1.0 - alpha) * upwind_left
  return left_weight, 1.0 - left_weight


def face_values(
    cell_values: array_typing.FloatVectorCell,
    v_face: array_typing.FloatVectorFace,
    d_face: array_typing.FloatVectorFace,
    dx: chex.Numeric,
) -> jax.Array:
  """Power-law interpolation of cell values onto faces.

  Args:
    cell_values: Values on the cell grid, shape (n,).
    v_face: Convection coefficient on faces, shape (n + 1,).
    d_face: Diffusion coefficient on faces, shape (n + 1,).
    dx: Cell width.

  Returns:
    Values on the face grid. The two boundary faces take the value of the
    adjacent cell.
  """
  if v_face.shape != d_face.shape or v_face.shape[-1] != (
      cell_values.shape[-1] + 1
  ):
    raise ValueError(
        'Face arrays must have one more entry than the cell array. Got'
        f' cells={cell_values.shape}, v_face={v_face.shape},'
        f' d_face={d_face.shape}.'
    )
  left_weight, right_weight = upwind_weights(
      v_face[1:-1], d_face[1:-1], dx
  )
  inner = left_weight * cell_values[:-1] + right_weight * cell_values[1:]
  return jnp.concatenate([cell_values[:1], inner, cell_values[-1:]])

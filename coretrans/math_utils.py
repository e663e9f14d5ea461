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

"""Grid arithmetic shared by the physics and the finite volume code."""

import chex
import jax
from jax import numpy as jnp
import jaxtyping as jt

from coretrans import array_typing
from coretrans import constants
from coretrans.geometry import geometry

_HARMONIC_EPS = 1e-30


@array_typing.jaxtyped
def tridiag(
    diag: jt.Shaped[array_typing.Array, 'size'],
    above: jt.Shaped[array_typing.Array, 'size-1'],
    below: jt.Shaped[array_typing.Array, 'size-1'],
) -> jt.Shaped[array_typing.Array, 'size size']:
  """Square matrix with `diag` on the diagonal, `above` and `below` beside it."""
  return jnp.diag(diag) + jnp.diag(above, 1) + jnp.diag(below, -1)


def gradient(y: chex.Array, dx: chex.Numeric) -> jax.Array:
  """Finite difference gradient of `y` on a uniform grid.

  Second-order central differences in the interior, first-order forward and
  backward differences at the two ends. A two-point array gets the simple
  difference at both points. Every normalized gradient in coretrans goes
  through this stencil.

  Args:
    y: Values on a uniform grid.
    dx: Grid spacing.

  Returns:
    dy/dx with the same shape as `y`.
  """
  y = jnp.asarray(y)
  if y.shape[-1] < 2:
    return jnp.zeros_like(y)
  if y.shape[-1] == 2:
    d = (y[1] - y[0]) / dx
    return jnp.stack([d, d])
  interior = (y[2:] - y[:-2]) / (2 * dx)
  left = (y[1] - y[0]) / dx
  right = (y[-1] - y[-2]) / dx
  return jnp.concatenate([left[None], interior, right[None]])


def harmonic_face_mean(cell_values: chex.Array) -> jax.Array:
  """Face values as harmonic means of neighboring cells.

  Inner faces use `2 / (1/a + 1/b)`; the boundary faces take the adjacent
  cell value.

  Args:
    cell_values: Values on the cell grid.

  Returns:
    Values on the face grid.
  """
  a = cell_values[:-1]
  b = cell_values[1:]
  inner = 2.0 / (1.0 / (a + _HARMONIC_EPS) + 1.0 / (b + _HARMONIC_EPS))
  return jnp.concatenate([cell_values[:1], inner, cell_values[-1:]])


@array_typing.jaxtyped
def cell_integration(
    x: array_typing.FloatVectorCell, geo: geometry.Geometry
) -> array_typing.FloatScalar:
  """Integral of a cell profile over normalized radius, midpoint rule."""
  if x.shape != geo.rho_norm.shape:
    raise ValueError(
        f'Expected a cell profile of shape {geo.rho_norm.shape}, got {x.shape}.'
    )
  return jnp.sum(x * geo.drho_norm)


@array_typing.jaxtyped
def volume_integration(
    value: array_typing.FloatVectorCell,
    geo: geometry.Geometry,
) -> array_typing.FloatScalar:
  """Integral of a cell profile over the plasma volume."""
  return jnp.sum(value * geo.cell_volumes)


@array_typing.jaxtyped
def volume_average(
    value: array_typing.FloatVectorCell,
    geo: geometry.Geometry,
) -> array_typing.FloatScalar:
  """Volume average of a cell profile."""
  return volume_integration(value, geo) / geo.volume


def safe_divide(y: chex.Array, x: chex.Array) -> chex.Array:
  return y / (x + constants.CONSTANTS.eps)


def area_integration(
    value: chex.Array,
    geo: geometry.Geometry,
) -> jax.Array:
  """Integrates a cell grid profile over the poloidal cross-section."""
  return volume_integration(value, geo) / (2 * jnp.pi * geo.R_major)

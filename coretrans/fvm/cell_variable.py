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

"""Profiles on the cell grid together with their outer face constraints."""
import dataclasses

import chex
import jax
from jax import numpy as jnp
import jaxtyping as jt


def _zero() -> jax.Array:
  return jnp.zeros(())


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class CellVariable:
  """Cell values of a radial profile and how its two outer faces are fixed.

  Each side is constrained either by a face value or by a face gradient, never
  both. Profiles evolved by coretrans have a zero gradient on the magnetic axis
  (left) and a fixed value at the plasma edge (right).

  Attributes:
    value: Values at the cell centers.
    dr: Cell width.
    left_face_constraint: Value on the axis face.
    right_face_constraint: Value on the edge face.
    left_face_grad_constraint: Gradient on the axis face.
    right_face_grad_constraint: Gradient on the edge face.
  """

  value: jt.Float[chex.Array, 'cell']
  dr: jt.Float[chex.Array, '']
  left_face_constraint: jt.Float[chex.Array, ''] | None = None
  right_face_constraint: jt.Float[chex.Array, ''] | None = None
  left_face_grad_constraint: jt.Float[chex.Array, ''] | None = (
      dataclasses.field(default_factory=_zero)
  )
  right_face_grad_constraint: jt.Float[chex.Array, ''] | None = (
      dataclasses.field(default_factory=_zero)
  )

  def __post_init__(self):
    for side in ('left', 'right'):
      has_value = getattr(self, f'{side}_face_constraint') is not None
      has_grad = getattr(self, f'{side}_face_grad_constraint') is not None
      if has_value == has_grad:
        raise ValueError(
            f'The {side} face needs either a value or a gradient constraint,'
            ' not both or neither.'
        )

  def _outer_faces(self) -> tuple[jax.Array, jax.Array]:
    half = 0.5 * self.dr
    if self.left_face_constraint is None:
      left = self.value[0] - self.left_face_grad_constraint * half
    else:
      left = jnp.asarray(self.left_face_constraint)
    if self.right_face_constraint is None:
      right = self.value[-1] + self.right_face_grad_constraint * half
    else:
      right = jnp.asarray(self.right_face_constraint)
    return left, right

  def face_value(self) -> jt.Float[jax.Array, 'face']:
    """Values on the n + 1 faces, averaging neighbours on interior faces."""
    left, right = self._outer_faces()
    inner = 0.5 * (self.value[:-1] + self.value[1:])
    return jnp.concatenate([left[None], inner, right[None]])

  def face_grad(self) -> jt.Float[jax.Array, 'face']:
    """Gradients on the n + 1 faces.

    Interior faces use the difference of the adjacent cells. A value
    constrained outer face uses the half cell between it and its cell.
    """
    left, right = self._outer_faces()
    half = 0.5 * self.dr
    if self.left_face_grad_constraint is None:
      left_grad = (self.value[0] - left) / half
    else:
      left_grad = jnp.asarray(self.left_face_grad_constraint)
    if self.right_face_grad_constraint is None:
      right_grad = (right - self.value[-1]) / half
    else:
      right_grad = jnp.asarray(self.right_face_grad_constraint)
    inner = jnp.diff(self.value) / self.dr
    return jnp.concatenate([left_grad[None], inner, right_grad[None]])

  def cell_plus_boundaries(self) -> jt.Float[jax.Array, 'cell+2']:
    """Cell values with the two outer face values appended on either side."""
    left, right = self._outer_faces()
    return jnp.concatenate([left[None], self.value, right[None]])

  @property
  def dirichlet_right_value(self) -> jax.Array | None:
    return self.right_face_constraint

  def replace_value(self, value: chex.Array) -> 'CellVariable':
    return dataclasses.replace(self, value=value)

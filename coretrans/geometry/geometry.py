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

"""Classes for representing the problem geometry."""

import dataclasses
import enum

import chex
import jax
from jax import numpy as jnp
import numpy as np


@enum.unique
class GeometryType(enum.IntEnum):
  """Integer enum for geometry type.

  This type can be used within JAX expressions to access the geometry type
  without having to call isinstance.
  """

  CIRCULAR = 0
  SUPPLIED = 1


# pylint: disable=invalid-name


def face_to_cell(face: chex.Array) -> chex.Array:
  """Infers cell values corresponding to a vector of face values.

  Args:
    face: An array containing face values.

  Returns:
    cell: An array containing cell values.
  """

  return 0.5 * (face[:-1] + face[1:])


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class Geometry:
  """Read-only geometric descriptor of the plasma.

  All profile attributes are defined on the face grid. The number of cells is
  derived from the length of the metric arrays and is never stored, so it
  cannot diverge from them.

  Attributes:
    geometry_type: Type of geometry model used. See `GeometryType`.
    R_major: Major radius [m].
    a_minor: Minor radius [m].
    B_0: Vacuum toroidal magnetic field on axis [T].
    rho_face_norm: Normalized radial coordinate on the face grid.
    volume_face: Plasma volume enclosed by each face [m^3].
    g0_face: <\\nabla V> on the face grid [m^2].
    g1_face: <(\\nabla V)^2> on the face grid [m^4].
    g2_face: <(\\nabla V)^2 / R^2> on the face grid [m^2].
    g3_face: <1/R^2> on the face grid [m^-2].
    q_face: Safety factor on the face grid.
  """

  geometry_type: GeometryType = dataclasses.field(metadata={'static': True})
  R_major: chex.Numeric
  a_minor: chex.Numeric
  B_0: chex.Numeric
  rho_face_norm: chex.Array
  volume_face: chex.Array
  g0_face: chex.Array
  g1_face: chex.Array
  g2_face: chex.Array
  g3_face: chex.Array
  q_face: chex.Array

  def __post_init__(self):
    face_arrays = {
        'rho_face_norm': self.rho_face_norm,
        'volume_face': self.volume_face,
        'g0_face': self.g0_face,
        'g1_face': self.g1_face,
        'g2_face': self.g2_face,
        'g3_face': self.g3_face,
        'q_face': self.q_face,
    }
    lengths = {k: np.shape(v)[-1] for k, v in face_arrays.items()}
    if len(set(lengths.values())) != 1:
      raise ValueError(
          f'All face-defined geometry arrays must have equal length: {lengths}'
      )
    if lengths['g0_face'] < 2:
      raise ValueError('Geometry needs at least one cell (two faces).')

  @property
  def n_cells(self) -> int:
    """Number of cells, derived from the face-defined metric arrays."""
    return np.shape(self.g0_face)[-1] - 1

  @property
  def rho_b(self) -> chex.Numeric:
    """Radial coordinate at the last closed flux surface [m]."""
    return self.a_minor

  @property
  def rho_norm(self) -> chex.Array:
    return face_to_cell(self.rho_face_norm)

  @property
  def drho_norm(self) -> jax.Array:
    """Uniform cell width in normalized radius."""
    return jnp.array(
        (self.rho_face_norm[-1] - self.rho_face_norm[0]) / self.n_cells
    )

  @property
  def rho_face(self) -> chex.Array:
    return self.rho_face_norm * self.rho_b

  @property
  def rho(self) -> chex.Array:
    return self.rho_norm * self.rho_b

  @property
  def drho(self) -> jax.Array:
    return self.drho_norm * self.rho_b

  @property
  def epsilon_face(self) -> chex.Array:
    """Local inverse aspect ratio on the face grid."""
    return self.rho_face / self.R_major

  @property
  def epsilon(self) -> chex.Array:
    return self.rho / self.R_major

  @property
  def vpr_face(self) -> chex.Array:
    """dV/drho_norm on the face grid [m^3]."""
    return self.g0_face * self.rho_b

  @property
  def vpr(self) -> chex.Array:
    return face_to_cell(self.vpr_face)

  @property
  def g1_over_vpr_face(self) -> jax.Array:
    """g1/vpr on the face grid, zero where vpr vanishes (magnetic axis)."""
    vpr_face = jnp.asarray(self.vpr_face)
    safe_vpr = jnp.where(vpr_face > 0.0, vpr_face, 1.0)
    return jnp.where(vpr_face > 0.0, self.g1_face / safe_vpr, 0.0)

  @property
  def g1_over_vpr2_face(self) -> jax.Array:
    """g1/vpr^2 on the face grid, 1/rho_b^2 on the magnetic axis."""
    vpr_face = jnp.asarray(self.vpr_face)
    safe_vpr = jnp.where(vpr_face > 0.0, vpr_face, 1.0)
    return jnp.where(
        vpr_face > 0.0, self.g1_face / safe_vpr**2, 1.0 / self.rho_b**2
    )

  @property
  def q(self) -> chex.Array:
    return face_to_cell(self.q_face)

  @property
  def cell_volumes(self) -> jax.Array:
    """Volume of each cell [m^3]."""
    return jnp.diff(jnp.asarray(self.volume_face))

  @property
  def volume(self) -> chex.Numeric:
    """Total plasma volume [m^3]."""
    return self.volume_face[-1]

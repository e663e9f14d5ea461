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

"""Functions for building circular geometry from a mesh descriptor."""

from typing import Annotated, Literal

import numpy as np
import pydantic
import typing_extensions

from coretrans import jax_utils
from coretrans.config import model_base
from coretrans.geometry import geometry
from coretrans.geometry import grid


# pylint: disable=invalid-name
def build_circular_geometry(
    mesh: grid.Grid1D,
    R_major: float,
    a_minor: float,
    B_0: float,
    elongation_LCFS: float = 1.0,
    q_0: float = 1.0,
    q_edge: float = 3.5,
) -> geometry.Geometry:
  """Constructs a circular Geometry instance.

  The safety factor is prescribed as `q = q_0 + (q_edge - q_0) * rho_norm^2`.

  Args:
    mesh: Mesh descriptor defining the normalized radial grid.
    R_major: major radius (R) in meters
    a_minor: minor radius (a) in meters
    B_0: Toroidal magnetic field on axis [T]
    elongation_LCFS: Elongation at last closed flux surface.
    q_0: Safety factor on the magnetic axis.
    q_edge: Safety factor at the last closed flux surface.

  Returns:
    A Geometry instance.
  """
  dtype = jax_utils.get_np_dtype()
  # circular geometry assumption of r/a_minor = rho_norm, the normalized
  # toroidal flux coordinate.
  rho_face_norm = np.asarray(mesh.face_centers, dtype=dtype)
  rho_b = np.asarray(a_minor, dtype=dtype)
  rho_face = rho_face_norm * rho_b

  # Elongation profile, linearly increasing from 1 on axis to
  # elongation_LCFS at the last closed flux surface.
  elongation_face = 1 + rho_face_norm * (elongation_LCFS - 1)

  # V = 2*pi^2*R*rho^2*elongation
  volume_face = 2 * np.pi**2 * R_major * rho_face**2 * elongation_face

  # V' = dV/drho_norm for volume integrations
  vpr_face = (
      4 * np.pi**2 * R_major * rho_face * elongation_face * rho_b
      + volume_face / elongation_face * (elongation_LCFS - 1)
  )

  # g0: <\nabla V>
  g0_face = vpr_face / rho_b
  # g1: <(\nabla V)^2>
  g1_face = vpr_face**2 / rho_b**2
  # g2: <(\nabla V)^2 / R^2>
  g2_face = g1_face / R_major**2
  # g3: <1/R^2> (done without an elongation correction)
  g3_face = 1 / (R_major**2 * (1 - (rho_face / R_major) ** 2) ** (3.0 / 2.0))

  q_face = q_0 + (q_edge - q_0) * rho_face_norm**2

  return geometry.Geometry(
      geometry_type=geometry.GeometryType.CIRCULAR,
      R_major=np.asarray(R_major, dtype=dtype),
      a_minor=rho_b,
      B_0=np.asarray(B_0, dtype=dtype),
      rho_face_norm=rho_face_norm,
      volume_face=volume_face.astype(dtype),
      g0_face=g0_face.astype(dtype),
      g1_face=g1_face.astype(dtype),
      g2_face=g2_face.astype(dtype),
      g3_face=g3_face.astype(dtype),
      q_face=q_face.astype(dtype),
  )


class CircularConfig(model_base.BaseModelFrozen):
  """Pydantic model for the circular geometry config.

  Attributes:
    geometry_type: Always set to 'circular'.
    n_rho: Number of radial cells.
    R_major: Major radius (R) in meters.
    a_minor: Minor radius (a) in meters.
    B_0: Vacuum toroidal magnetic field on axis [T].
    elongation_LCFS: Sets the plasma elongation used for volume and metric
      corrections.
    q_0: Safety factor on the magnetic axis.
    q_edge: Safety factor at the last closed flux surface.
  """

  geometry_type: Annotated[
      Literal['circular'], model_base.TIME_INVARIANT
  ] = 'circular'
  n_rho: Annotated[pydantic.PositiveInt, model_base.TIME_INVARIANT] = 25
  R_major: model_base.Meter = 6.2
  a_minor: model_base.Meter = 2.0
  B_0: model_base.Tesla = 5.3
  elongation_LCFS: pydantic.PositiveFloat = 1.0
  q_0: pydantic.PositiveFloat = 1.0
  q_edge: pydantic.PositiveFloat = 3.5

  @pydantic.model_validator(mode='after')
  def _check_fields(self) -> typing_extensions.Self:
    if not self.R_major >= self.a_minor:
      raise ValueError('a_minor must be less than or equal to R_major.')
    return self

  @property
  def mesh(self) -> grid.Grid1D:
    return grid.Grid1D(n_cells=self.n_rho)

  def build_geometry(self) -> geometry.Geometry:
    return build_circular_geometry(
        mesh=self.mesh,
        R_major=self.R_major,
        a_minor=self.a_minor,
        B_0=self.B_0,
        elongation_LCFS=self.elongation_LCFS,
        q_0=self.q_0,
        q_edge=self.q_edge,
    )

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

"""Discretization of the diffusion term d/dr (D du/dr)."""

import chex
from jax import numpy as jnp

from coretrans import math_utils
from coretrans.fvm import cell_variable


def make_diffusion_terms(
    d_face: chex.Array, var: cell_variable.CellVariable
) -> tuple[chex.Array, chex.Array]:
  """Tridiagonal matrix and offset vector of the diffusion term.

  Interior face j carries the flux D_j (u_j - u_{j-1}) / dr. Both outer faces
  carry no flux here: the axis by symmetry, and the edge because `calc_coeffs`
  folds a Dirichlet value into the sources of the last cell.

  Args:
    d_face: Diffusivity on the face grid.
    var: Variable whose grid is discretized.

  Returns:
    The matrix acting on the cell values and a zero vector.
  """
  if var.value.shape[0] < 2:
    raise NotImplementedError('Diffusion needs at least two cells.')

  d_inner = jnp.asarray(d_face).at[0].set(0.0).at[-1].set(0.0)
  # Cell i loses D_i + D_{i+1} and gains from its two neighbours.
  diag = -(d_inner[:-1] + d_inner[1:])
  off = d_inner[1:-1]
  mat = math_utils.tridiag(diag, off, off) / var.dr**2
  return mat, jnp.zeros_like(diag)

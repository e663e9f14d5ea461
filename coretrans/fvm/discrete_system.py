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

"""Assembly of the spatial operator of one time step.

The right hand side F of the coupled equations is linear in the evolving
profiles once the coefficients are fixed, so it is assembled as F = C x + c.
The Newton solver recovers the nonlinear dynamics by rebuilding the
coefficients, and therefore C and c, from each new guess.
"""

import jax
from jax import numpy as jnp

from coretrans.fvm import block_1d_coeffs
from coretrans.fvm import cell_variable
from coretrans.fvm import convection_terms
from coretrans.fvm import diffusion_terms


def _channel_terms(
    var: cell_variable.CellVariable,
    d_face: jax.Array | None,
    v_face: jax.Array | None,
) -> tuple[jax.Array, jax.Array]:
  """Diagonal block and offset of one channel from diffusion and convection."""
  n = var.value.shape[0]
  mat = jnp.zeros((n, n))
  vec = jnp.zeros(n)
  if d_face is not None:
    diff_mat, diff_vec = diffusion_terms.make_diffusion_terms(d_face, var)
    mat += diff_mat
    vec += diff_vec
  if v_face is not None:
    # Power-law weighting needs the diffusivity even when there is none.
    d_for_peclet = jnp.zeros_like(v_face) if d_face is None else d_face
    conv_mat, conv_vec = convection_terms.make_convection_terms(
        v_face, d_for_peclet, var
    )
    mat += conv_mat
    vec += conv_vec
  return mat, vec


def calc_c(
    x: tuple[cell_variable.CellVariable, ...],
    coeffs: block_1d_coeffs.Block1DCoeffs,
) -> tuple[jax.Array, jax.Array]:
  """Builds the block matrix C and vector c with F = C x + c.

  Args:
    x: One CellVariable per channel. Only their grids and boundary conditions
      are used, not their values.
    coeffs: Coefficients of the equations.

  Returns:
    The (n_channels * n_cells) square matrix C and the vector c.

  Raises:
    ValueError: If the channels do not share the same number of cells.
  """
  n = x[0].value.shape[0]
  shapes = {var.value.shape for var in x}
  if shapes != {(n,)}:
    raise ValueError(
        f'All channels must have shape ({n},), got {sorted(shapes)}.'
    )
  n_channels = len(x)

  blocks = [[jnp.zeros((n, n)) for _ in x] for _ in x]
  offsets = []
  for i, var in enumerate(x):
    d_i = None if coeffs.d_face is None else coeffs.d_face[i]
    v_i = None if coeffs.v_face is None else coeffs.v_face[i]
    blocks[i][i], vec = _channel_terms(var, d_i, v_i)
    if coeffs.source_cell is not None and coeffs.source_cell[i] is not None:
      vec = vec + coeffs.source_cell[i]
    offsets.append(vec)

  # Implicit sources couple channel j into the equation of channel i.
  if coeffs.source_mat_cell is not None:
    for i in range(n_channels):
      for j in range(n_channels):
        rate = coeffs.source_mat_cell[i][j]
        if rate is not None:
          blocks[i][j] += jnp.diag(rate)

  return jnp.block(blocks), jnp.concatenate(offsets)

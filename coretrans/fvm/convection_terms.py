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

"""Discretization of the convection term -d/dr (v u)."""

import jax
from jax import numpy as jnp

from coretrans import math_utils
from coretrans.fvm import cell_variable
from coretrans.fvm import power_law


def make_convection_terms(
    v_face: jax.Array,
    d_face: jax.Array,
    var: cell_variable.CellVariable,
) -> tuple[jax.Array, jax.Array]:
  """Makes the terms of the matrix equation derived from the convection term.

  The convection term of the differential equation is of the form
  - (partial / partial r) v u

  The flux through interior face j is v_j (w_l u_{j-1} + w_r u_j), where the
  weights come from the power-law scheme. The two outer faces are zero-flux;
  the Dirichlet edge contribution is folded into the source terms by
  `calc_coeffs`.

  Args:
    v_face: Convection coefficient on faces.
    d_face: Diffusion coefficient on faces. The relative strength of convection
      to diffusion is used to weight the contribution of neighboring cells when
      calculating face values of u.
    var: CellVariable to define the mesh.

  Returns:
    mat: Tridiagonal matrix of coefficients on u
    c: Vector of terms not dependent on u
  """
  if var.value.shape[0] < 2:
    raise NotImplementedError('Convection needs at least two cells.')

  left_weight, right_weight = power_law.upwind_weights(v_face, d_face, var.dr)

  # Zero out the outer faces.
  interior = jnp.ones_like(v_face).at[0].set(0.0).at[-1].set(0.0)
  v_left = interior * v_face * left_weight
  v_right = interior * v_face * right_weight

  # Cell i receives +F_i - F_{i+1}.
  diag = (v_right[:-1] - v_left[1:]) / var.dr
  above = -v_right[1:-1] / var.dr
  below = v_left[1:-1] / var.dr
  mat = math_utils.tridiag(diag, above, below)
  vec = jnp.zeros_like(diag)
  return mat, vec

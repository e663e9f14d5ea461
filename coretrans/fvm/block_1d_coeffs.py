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

"""Coefficients of the coupled 1D equations solved by `fvm`.

`Block1DCoeffs` is where plasma physics hands over to the generic finite volume
machinery: `calc_coeffs` fills it in, and the solvers only ever see it.
"""

from typing import Any, Optional, TypeAlias

import chex
import jax

# Square nested tuple indexed [row][column], e.g. ((a, b), (c, d)), with each
# entry an array or None for a zero block.
OptionalTupleMatrix: TypeAlias = Optional[
    tuple[tuple[Optional[jax.Array], ...], ...]
]


@chex.dataclass(frozen=True)
class Block1DCoeffs:
  """Coefficients of one evaluation of the coupled equations.

  Channel i obeys

    out_i d(in_i x_i)/dt = d/dr (D_i dx_i/dr) - d/dr (v_i x_i)
                           + sum_j S_ij x_j + s_i

  The implicit source matrix S lets linear solvers treat state proportional
  sinks and couplings, such as ion-electron exchange, at the new time. A
  Dirichlet edge value enters through S and s of the last cell, so the
  operators themselves treat both outer faces as closed.

  Attributes:
    transient_in_cell: in_i on the cell grid, one entry per channel.
    transient_out_cell: out_i on the cell grid, one entry per channel.
    d_face: D_i on the face grid.
    v_face: v_i on the face grid.
    source_mat_cell: S_ij on the cell grid. None entries are zero.
    source_cell: s_i on the cell grid. None entries are zero.
    auxiliary_outputs: Transport coefficients and source terms the
      coefficients were built from.
  """

  transient_in_cell: tuple[jax.Array, ...]
  transient_out_cell: tuple[jax.Array, ...] | None = None
  d_face: tuple[jax.Array, ...] | None = None
  v_face: tuple[jax.Array, ...] | None = None
  source_mat_cell: OptionalTupleMatrix = None
  source_cell: tuple[jax.Array | None, ...] | None = None
  auxiliary_outputs: Any | None = None

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

"""jaxtyping aliases for the arrays passed around coretrans.

`rhon` is the number of cells of the radial grid.
"""

from typing import TypeAlias, TypeVar
import jax
import jaxtyping as jt
import numpy as np
from coretrans import jax_utils
import typeguard

T = TypeVar("T")

Array: TypeAlias = jax.Array | np.ndarray

FloatScalar: TypeAlias = jt.Float[Array | float, ""]
BoolScalar: TypeAlias = jt.Bool[Array | bool, ""]
IntScalar: TypeAlias = jt.Int[Array | int, ""]

FloatVector: TypeAlias = jt.Float[Array, "_"]
FloatVectorCell: TypeAlias = jt.Float[Array, "rhon"]
FloatVectorFace: TypeAlias = jt.Float[Array, "rhon+1"]


def jaxtyped(fn: T) -> T:
  """Checks shapes and dtypes of `fn` at call time when enabled.

  Checking is off unless the environment variable `CORETRANS_JAXTYPING` is
  true when `fn` is decorated, since it slows every call down.
  """
  if jax_utils.env_bool(name="CORETRANS_JAXTYPING", default=False):
    return jt.jaxtyped(fn, typechecker=typeguard.typechecked)
  return fn

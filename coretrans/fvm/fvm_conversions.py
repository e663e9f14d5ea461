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

"""Conversions between CellVariable tuples and flat state vectors."""

import jax
from jax import numpy as jnp

from coretrans import state as state_lib
from coretrans.fvm import cell_variable


def cell_variable_tuple_to_vec(
    x_tuple: tuple[cell_variable.CellVariable, ...],
) -> jax.Array:
  """Concatenates the cell values of the channels, in tuple order."""
  return jnp.concatenate([x.value for x in x_tuple])


def vec_to_cell_variable_tuple(
    x_vec: jax.Array,
    core_profiles: state_lib.CoreProfiles,
    evolving_names: tuple[str, ...],
) -> tuple[cell_variable.CellVariable, ...]:
  """Splits `x_vec` into equal chunks, one per name in `evolving_names`.

  Each chunk replaces the values of the matching profile of `core_profiles`,
  which supplies the boundary conditions.
  """
  chunks = jnp.split(x_vec, len(evolving_names))
  return tuple(
      core_profiles[name].replace_value(chunk)
      for name, chunk in zip(evolving_names, chunks)
  )


def core_profiles_to_tuple(
    core_profiles: state_lib.CoreProfiles,
    evolving_names: tuple[str, ...],
) -> tuple[cell_variable.CellVariable, ...]:
  return tuple(core_profiles[name] for name in evolving_names)


def tuple_to_core_profiles(
    x: tuple[cell_variable.CellVariable, ...],
    core_profiles: state_lib.CoreProfiles,
    evolving_names: tuple[str, ...],
) -> state_lib.CoreProfiles:
  """Writes the values of the evolved variables back into CoreProfiles."""
  return core_profiles.replace_values(
      **{name: var.value for name, var in zip(evolving_names, x)}
  )

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

"""Dtype selection and small JAX helpers shared across coretrans."""

import functools
import os

import chex
import jax
from jax import numpy as jnp
import numpy as np

_PRECISIONS = ('f64', 'f32')


@functools.cache
def _precision() -> str:
  precision = os.getenv('JAX_PRECISION', 'f64')
  if precision not in _PRECISIONS:
    raise ValueError(
        f'JAX_PRECISION must be one of {_PRECISIONS}, got {precision!r}.'
    )
  return precision


def get_dtype() -> jnp.dtype:
  """Float dtype of JAX arrays, f64 unless JAX_PRECISION=f32."""
  return jnp.float64 if _precision() == 'f64' else jnp.float32


def get_np_dtype() -> np.dtype:
  return np.float64 if _precision() == 'f64' else np.float32


def env_bool(name: str, default: bool) -> bool:
  """Reads a boolean flag such as '1' or 'false' from the environment."""
  value = os.environ.get(name)
  if value is None:
    return default
  if value.lower() in ('1', 'true'):
    return True
  if value.lower() in ('0', 'false'):
    return False
  raise ValueError(f'Cannot parse {name}={value!r} as a boolean.')


def asarray(x: chex.Numeric) -> jax.Array:
  """Converts `x` to a jax array of the working float dtype."""
  return jnp.asarray(x, dtype=get_dtype())


def is_finite(x: chex.Array) -> bool:
  """Whether every entry of `x` is finite. Forces evaluation of `x`."""
  return bool(np.all(np.isfinite(np.asarray(x))))

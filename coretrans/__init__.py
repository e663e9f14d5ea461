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

"""Library functionality for coretrans."""

import os

import jax

__version__ = '0.1.0'


def set_jax_precision():
  # Default coretrans JAX precision is f64
  precision = os.getenv('JAX_PRECISION', 'f64')
  assert precision == 'f64' or precision == 'f32', (
      'Unknown JAX precision environment variable: %s' % precision
  )
  if precision == 'f64':
    jax.config.update('jax_enable_x64', True)


set_jax_precision()

# pylint: disable=g-import-not-at-top,g-importing-member,wrong-import-position
from coretrans.config.model_config import CoreTransConfig
from coretrans.geometry.geometry import Geometry
from coretrans.orchestration.run_simulation import run_simulation
from coretrans.orchestration.run_simulation import SimulationResult
from coretrans.sources.source_profiles import SourceTerms
from coretrans.state import CoreProfiles
from coretrans.state import SimError
from coretrans.state import TransportCoefficients
# pylint: enable=g-import-not-at-top,g-importing-member,wrong-import-position

__all__ = [
    'run_simulation',
    'CoreProfiles',
    'CoreTransConfig',
    'Geometry',
    'SimError',
    'SimulationResult',
    'SourceTerms',
    'TransportCoefficients',
]

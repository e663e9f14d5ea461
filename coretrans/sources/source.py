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

"""Base class of the heating, particle and current sources.

A source computes `SourceTerms` from the current profiles and reports exactly
one power balance metadata entry for itself, even when it is switched off.
"""

import abc
import dataclasses
from typing import Any, ClassVar

from coretrans import errors
from coretrans import jax_utils
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.sources import runtime_params as runtime_params_lib
from coretrans.sources import source_profiles

_PROFILE_NAMES = (
    'ion_heating',
    'electron_heating',
    'particle_source',
    'current_source',
)


@dataclasses.dataclass(kw_only=True, frozen=True)
class Source(abc.ABC):
  """One named source or sink.

  Attributes:
    SOURCE_NAME: Default name of the source.
    CATEGORY: Power balance category of the source.
    name: Name of this instance, the key of its runtime params in the dynamic
      slice. Defaults to SOURCE_NAME.
  """

  SOURCE_NAME: ClassVar[str] = 'source'
  CATEGORY: ClassVar[source_profiles.SourceCategory] = (
      source_profiles.SourceCategory.OTHER
  )
  name: str = ''

  @property
  def source_name(self) -> str:
    return self.name or self.SOURCE_NAME

  @property
  def category(self) -> source_profiles.SourceCategory:
    return self.CATEGORY

  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    """Returns the source terms of this source with one metadata entry.

    Args:
      dynamic_runtime_params_slice: Input runtime parameters at the current
        time.
      geo: Geometry of the torus.
      core_profiles: Core plasma profiles.

    Returns:
      The source terms of this source.
    """
    source_params = dynamic_runtime_params_slice.sources[self.source_name]
    mode = source_params.mode
    match mode:
      case runtime_params_lib.Mode.MODEL_BASED:
        terms = self._model_func(
            source_params, dynamic_runtime_params_slice, geo, core_profiles
        )
      case runtime_params_lib.Mode.ZERO:
        terms = source_profiles.SourceTerms.zeros(geo.n_cells)
      case _:
        raise ValueError(f'Unknown mode: {mode}')

    for field in _PROFILE_NAMES:
      if not jax_utils.is_finite(getattr(terms, field)):
        raise errors.CriticalNumericalError(
            f'Source {self.source_name} produced non-finite values.',
            quantity=field,
        )

    metadata = source_profiles.SourceMetadata(
        name=self.source_name,
        category=self.category,
        ion_power=float(terms.total_ion_power(geo)),
        electron_power=float(terms.total_electron_power(geo)),
        **self._extra_metadata(terms, geo),
    )
    return dataclasses.replace(
        terms,
        metadata=source_profiles.SourceMetadataCollection(entries=(metadata,)),
    )

  @abc.abstractmethod
  def _model_func(
      self,
      source_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    """Computes the source profiles in MODEL_BASED mode."""

  def _extra_metadata(
      self,
      terms: source_profiles.SourceTerms,
      geo: geometry.Geometry,
  ) -> dict[str, Any]:
    """Optional alpha/radiation power entries of the metadata."""
    del terms, geo  # Unused.
    return {}


def make_source_terms(
    geo: geometry.Geometry,
    **profiles: Any,
) -> source_profiles.SourceTerms:
  """Returns SourceTerms with the given profiles and zeros elsewhere."""
  zeros = source_profiles.SourceTerms.zeros(geo.n_cells)
  return dataclasses.replace(
      zeros,
      **{k: jax_utils.asarray(v) for k, v in profiles.items()},
  )

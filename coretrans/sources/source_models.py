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

"""Container for source models which build source profiles in coretrans."""

from collections.abc import Mapping
import dataclasses

import immutabledict

from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.sources import source as source_lib
from coretrans.sources import source_profiles


@dataclasses.dataclass(frozen=True, eq=False)
class SourceModels:
  """Named, ordered collection of the sources of a simulation.

  Calling the collection sums the terms of every source. The metadata of the
  result keeps one entry per source, in collection order.

  Attributes:
    sources: Sources keyed by their name.
  """

  sources: immutabledict.immutabledict[str, source_lib.Source] = (
      dataclasses.field(default_factory=immutabledict.immutabledict)
  )

  def __post_init__(self):
    if not isinstance(self.sources, immutabledict.immutabledict):
      object.__setattr__(
          self, 'sources', immutabledict.immutabledict(self.sources)
      )
    for name, source in self.sources.items():
      if source.source_name != name:
        raise ValueError(
            f'Source registered as {name} is named {source.source_name}.'
        )

  @classmethod
  def from_sources(
      cls, sources: Mapping[str, source_lib.Source] | None = None
  ) -> 'SourceModels':
    return cls(sources=immutabledict.immutabledict(sources or {}))

  def __len__(self) -> int:
    return len(self.sources)

  def __contains__(self, name: str) -> bool:
    return name in self.sources

  def __getitem__(self, name: str) -> source_lib.Source:
    return self.sources[name]

  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> source_profiles.SourceTerms:
    """Sums the terms of all sources.

    An empty collection returns zero profiles with empty metadata.

    Args:
      dynamic_runtime_params_slice: Input runtime parameters at the current
        time.
      geo: Geometry of the torus.
      core_profiles: Core plasma profiles.

    Returns:
      The summed source terms.
    """
    total = source_profiles.SourceTerms.zeros(geo.n_cells)
    for source in self.sources.values():
      total = total + source(dynamic_runtime_params_slice, geo, core_profiles)
    return total

  def __hash__(self) -> int:
    return hash(tuple(self.sources.items()))

  def __eq__(self, other) -> bool:
    if not isinstance(other, SourceModels):
      return False
    return tuple(self.sources.items()) == tuple(other.sources.items())

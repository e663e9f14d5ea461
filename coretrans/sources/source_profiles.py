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

"""Source terms and the per-source power balance metadata.

`SourceTerms` is an additive monoid: `SourceTerms.zeros(n)` is the identity and
`+` adds the profiles and concatenates the metadata. Profiles are on the cell
grid, in the units used at the source boundary:

  ion_heating, electron_heating: MW/m^3
  particle_source: m^-3 s^-1
  current_source: MA/m^2

The conversion of heating to eV m^-3 s^-1 happens in the coefficient builder.
"""

from collections.abc import Iterator
import dataclasses
import enum

from absl import logging
import jax
from jax import numpy as jnp
import numpy as np
import typing_extensions

from coretrans import array_typing
from coretrans.geometry import geometry

# pylint: disable=invalid-name

# Magnitudes above which a profile is probably in the wrong units.
_MAX_HEATING = 1e3  # MW/m^3
_MAX_PARTICLE_SOURCE = 1e20  # m^-3 s^-1
_MAX_CURRENT_SOURCE = 1e2  # MA/m^2


@enum.unique
class SourceCategory(enum.Enum):
  """Category of a source for power balance accounting."""

  FUSION = 'fusion'
  AUXILIARY = 'auxiliary'
  OHMIC = 'ohmic'
  RADIATION = 'radiation'
  OTHER = 'other'


@dataclasses.dataclass(frozen=True)
class SourceMetadata:
  """Power balance contribution of a single source.

  Attributes:
    name: Name of the source.
    category: Category of the source.
    ion_power: Signed volume integrated ion heating [W].
    electron_power: Signed volume integrated electron heating [W].
    alpha_power: Alpha particle power [W], for fusion sources.
    radiation_power: Radiated power [W], for radiation sinks.
  """

  name: str
  category: SourceCategory
  ion_power: float
  electron_power: float
  alpha_power: float | None = None
  radiation_power: float | None = None

  @property
  def total_power(self) -> float:
    return self.ion_power + self.electron_power


@dataclasses.dataclass(frozen=True)
class SourceMetadataCollection:
  """Ordered collection of source metadata entries."""

  entries: tuple[SourceMetadata, ...] = ()

  def __add__(
      self, other: 'SourceMetadataCollection'
  ) -> 'SourceMetadataCollection':
    return SourceMetadataCollection(entries=self.entries + other.entries)

  def __len__(self) -> int:
    return len(self.entries)

  def __iter__(self) -> Iterator[SourceMetadata]:
    return iter(self.entries)

  def total_power(self, category: SourceCategory) -> float:
    return sum(
        (e.total_power for e in self.entries if e.category == category), 0.0
    )

  @property
  def fusion_power(self) -> float:
    return self.total_power(SourceCategory.FUSION)

  @property
  def auxiliary_power(self) -> float:
    return self.total_power(SourceCategory.AUXILIARY)

  @property
  def ohmic_power(self) -> float:
    return self.total_power(SourceCategory.OHMIC)

  @property
  def radiation_power(self) -> float:
    return self.total_power(SourceCategory.RADIATION)

  @property
  def alpha_power(self) -> float:
    return sum(
        (e.alpha_power for e in self.entries if e.alpha_power is not None), 0.0
    )

  @property
  def total_ion_power(self) -> float:
    return sum((e.ion_power for e in self.entries), 0.0)

  @property
  def total_electron_power(self) -> float:
    return sum((e.electron_power for e in self.entries), 0.0)


@dataclasses.dataclass(frozen=True)
class SourceTerms:
  """Summed source profiles on the cell grid.

  Attributes:
    ion_heating: Ion heating density [MW/m^3].
    electron_heating: Electron heating density [MW/m^3].
    particle_source: Electron particle source [m^-3 s^-1].
    current_source: Non-inductive current density [MA/m^2].
    metadata: Per-source power balance entries. Never None.
  """

  ion_heating: array_typing.FloatVectorCell
  electron_heating: array_typing.FloatVectorCell
  particle_source: array_typing.FloatVectorCell
  current_source: array_typing.FloatVectorCell
  metadata: SourceMetadataCollection = dataclasses.field(
      default_factory=SourceMetadataCollection
  )

  def __post_init__(self):
    shapes = {
        np.shape(self.ion_heating),
        np.shape(self.electron_heating),
        np.shape(self.particle_source),
        np.shape(self.current_source),
    }
    if len(shapes) != 1:
      raise ValueError(f'Source profiles must share one shape, got {shapes}.')
    if self.metadata is None:
      raise ValueError('SourceTerms metadata must not be None.')
    self._warn_on_suspicious_units()

  def _warn_on_suspicious_units(self):
    for name, limit, unit in (
        ('ion_heating', _MAX_HEATING, 'MW/m^3'),
        ('electron_heating', _MAX_HEATING, 'MW/m^3'),
        ('particle_source', _MAX_PARTICLE_SOURCE, 'm^-3 s^-1'),
        ('current_source', _MAX_CURRENT_SOURCE, 'MA/m^2'),
    ):
      value = np.asarray(getattr(self, name))
      if value.size and np.max(np.abs(value)) > limit:
        logging.warning(
            'Suspicious %s magnitude %.3e, expected below %.1e %s. Check the'
            ' units of the source.',
            name,
            float(np.max(np.abs(value))),
            limit,
            unit,
        )

  @classmethod
  def zeros(cls, n_cells: int) -> typing_extensions.Self:
    """The identity of `+`: all-zero profiles with empty metadata."""
    zeros = jnp.zeros(n_cells)
    return cls(
        ion_heating=zeros,
        electron_heating=zeros,
        particle_source=zeros,
        current_source=zeros,
        metadata=SourceMetadataCollection(),
    )

  def __add__(self, other: 'SourceTerms') -> 'SourceTerms':
    return SourceTerms(
        ion_heating=self.ion_heating + other.ion_heating,
        electron_heating=self.electron_heating + other.electron_heating,
        particle_source=self.particle_source + other.particle_source,
        current_source=self.current_source + other.current_source,
        metadata=self.metadata + other.metadata,
    )

  def allclose(
      self, other: 'SourceTerms', rtol: float = 1e-6, atol: float = 0.0
  ) -> bool:
    """Compares the profiles of two SourceTerms, ignoring metadata."""
    return all(
        np.allclose(
            np.asarray(getattr(self, name)),
            np.asarray(getattr(other, name)),
            rtol=rtol,
            atol=atol,
        )
        for name in (
            'ion_heating',
            'electron_heating',
            'particle_source',
            'current_source',
        )
    )

  def scale(self, factor: float) -> 'SourceTerms':
    """Scales all profiles. Metadata is kept as is."""
    return dataclasses.replace(
        self,
        ion_heating=self.ion_heating * factor,
        electron_heating=self.electron_heating * factor,
        particle_source=self.particle_source * factor,
        current_source=self.current_source * factor,
    )

  def total_ion_power(self, geo: geometry.Geometry) -> jax.Array:
    """Volume integrated ion heating [W]."""
    return jnp.sum(self.ion_heating * geo.cell_volumes) * 1e6

  def total_electron_power(self, geo: geometry.Geometry) -> jax.Array:
    """Volume integrated electron heating [W]."""
    return jnp.sum(self.electron_heating * geo.cell_volumes) * 1e6

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

"""Custom exceptions raised by coretrans.

Numerical corruption (NaN/Inf) is always fatal and is raised as a
`CriticalNumericalError`. Surrogate model failures derive from
`SurrogateModelError` and are caught at the transport model boundary, where
they are converted to a fallback result.
"""


class CoreTransError(Exception):
  """Base exception for coretrans errors."""


class CriticalNumericalError(CoreTransError):
  """Raised when NaN or Inf values enter an assembled system."""

  def __init__(self, message: str, quantity: str | None = None):
    self.quantity = quantity
    if quantity:
      message = f'{quantity}: {message}'
    super().__init__(message)


class SurrogateModelError(CoreTransError):
  """Base exception for failures of a surrogate transport predictor."""


class UnsupportedPlatformError(SurrogateModelError):
  """The surrogate predictor cannot run on the current platform."""

  def __init__(self, platform: str, supported: tuple[str, ...] = ()):
    self.platform = platform
    self.supported = supported
    message = f"Surrogate predictor is not supported on platform '{platform}'."
    if supported:
      message += f' Supported platforms: {", ".join(supported)}.'
    super().__init__(message)


class ModelLoadError(SurrogateModelError):
  """The surrogate predictor could not be loaded."""

  def __init__(self, message: str, path: str | None = None):
    self.path = path
    if path:
      message += f"\n  Model path: '{path}'"
    super().__init__(message)


class MalformedPredictionError(SurrogateModelError):
  """The surrogate predictor returned outputs violating its contract."""

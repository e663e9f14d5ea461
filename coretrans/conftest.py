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

"""Parses absl flags once per pytest session.

The absltest based tests read absl flags, which raise UnparsedFlagAccessError
when pytest runs them without absltest.main().
"""

import sys

from absl import flags
# Defines --test_srcdir and the other absltest flags.
from absl.testing import absltest  # pylint: disable=unused-import
import pytest


@pytest.fixture(scope='session', autouse=True)
def parse_flags():
  # pytest arguments are not absl flags.
  flags.FLAGS(sys.argv[:1])

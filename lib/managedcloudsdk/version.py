# Copyright 2017 Google LLC. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The Cloud SDK version a managed SDK tracks."""

import re

from managedcloudsdk.core import exceptions


_VERSION_PATTERN = re.compile(r'^\d+\.\d+\.\d+(-[0-9A-Za-z.]+)?$')

_LATEST = 'LATEST'


class BadCloudSdkVersionError(exceptions.Error):
  """Raised for a version string that is not a Cloud SDK release number."""


class Version(object):
  """A pinned Cloud SDK release, or the floating Version.LATEST marker.

  The string form is used verbatim as the installation directory name, so
  each version gets its own directory under the managed SDK root.
  """

  LATEST = None  # Set below, after the class exists.

  def __init__(self, version):
    """Creates a pinned version.

    Args:
      version: str, A release number like '169.0.0'.

    Raises:
      BadCloudSdkVersionError: If version is not a release number.
    """
    if not version or not _VERSION_PATTERN.match(version):
      raise BadCloudSdkVersionError(
          'Invalid Cloud SDK version [{0}]: expected a release number like '
          '[169.0.0]'.format(version))
    self.__version = version

  def __str__(self):
    return self.__version

  def __repr__(self):
    if self.IsLatest():
      return 'Version.LATEST'
    return 'Version({0!r})'.format(self.__version)

  def __eq__(self, other):
    return isinstance(other, Version) and str(self) == str(other)

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash(self.__version)

  def IsLatest(self):
    return self is Version.LATEST

  @staticmethod
  def FromString(version):
    """Parses a version string, accepting 'LATEST' in any case.

    Args:
      version: str, 'LATEST' or a release number.

    Raises:
      BadCloudSdkVersionError: If version is neither.

    Returns:
      Version, The parsed version.
    """
    if version and version.upper() == _LATEST:
      return Version.LATEST
    return Version(version)


def _NewLatest():
  latest = Version.__new__(Version)
  latest._Version__version = _LATEST  # pylint: disable=protected-access
  return latest


Version.LATEST = _NewLatest()

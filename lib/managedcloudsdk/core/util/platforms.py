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

"""Utilities for determining the current platform and architecture."""

import os
import platform
import sys

from managedcloudsdk.core import exceptions


class Error(exceptions.Error):
  """Base class for exceptions in the platforms module."""


class UnsupportedOsError(Error):
  """Raised when the Cloud SDK is not distributed for the running OS."""


class OperatingSystem(object):
  """An enum representing the operating systems the Cloud SDK ships for."""

  class _OS(object):

    # pylint: disable=redefined-builtin
    def __init__(self, id, name, file_name):
      self.id = id
      self.name = name
      self.file_name = file_name

    def __str__(self):
      return self.id

    def __repr__(self):
      return 'OperatingSystem.{0}'.format(self.id)

  WINDOWS = _OS('WINDOWS', 'Windows', 'windows')
  MACOSX = _OS('MAC', 'Mac OS X', 'darwin')
  LINUX = _OS('LINUX', 'Linux', 'linux')

  @staticmethod
  def Current():
    """Determines the current operating system.

    Returns:
      OperatingSystem._OS, One of the OperatingSystem constants or None if it
      cannot be determined.
    """
    if os.name == 'nt':
      return OperatingSystem.WINDOWS
    elif 'linux' in sys.platform:
      return OperatingSystem.LINUX
    elif 'darwin' in sys.platform:
      return OperatingSystem.MACOSX
    return None

  @staticmethod
  def FromName(os_name):
    """Maps an operating system name, as reported by the platform, to an enum.

    Args:
      os_name: str, For example 'Linux', 'Darwin', 'Mac OS X' or 'Windows 10'.

    Raises:
      UnsupportedOsError: If the name is not one of the supported families.

    Returns:
      OperatingSystem._OS, The matching constant.
    """
    name = (os_name or '').lower()
    if 'windows' in name:
      return OperatingSystem.WINDOWS
    if 'linux' in name:
      return OperatingSystem.LINUX
    if 'mac' in name or 'darwin' in name:
      return OperatingSystem.MACOSX
    raise UnsupportedOsError(
        'Unknown OS [{0}]. The Cloud SDK is available for Windows, Linux and '
        'Mac.'.format(os_name))


class Architecture(object):
  """An enum representing the system architecture you are running on."""

  class _ARCH(object):

    # pylint: disable=redefined-builtin
    def __init__(self, id, name, file_name):
      self.id = id
      self.name = name
      self.file_name = file_name

    def __str__(self):
      return self.id

    def __repr__(self):
      return 'Architecture.{0}'.format(self.id)

  x86 = _ARCH('X86', 'x86', 'x86')
  x86_64 = _ARCH('X86_64', 'x86_64', 'x86_64')

  @staticmethod
  def FromMachine(machine):
    """Maps a machine string to an architecture.

    Anything mentioning 64 bits (amd64, x86_64) or a universal binary is
    treated as x86_64, everything else as x86.

    Args:
      machine: str, The machine type, for example platform.machine().

    Returns:
      Architecture._ARCH, The matching constant.
    """
    machine = (machine or '').lower()
    if '64' in machine or 'universal' in machine:
      return Architecture.x86_64
    return Architecture.x86


class OsInfo(object):
  """Holds the operating system and architecture a managed SDK targets.

  Detected once with OsInfo.Current() and then passed explicitly to the
  components that need it, so tests can construct any platform.
  """

  def __init__(self, name, arch):
    """Constructs a new OsInfo.

    Args:
      name: OperatingSystem._OS, The operating system.
      arch: Architecture._ARCH, The machine architecture.
    """
    self.__name = name
    self.__arch = arch

  def Name(self):
    return self.__name

  def Arch(self):
    return self.__arch

  def __eq__(self, other):
    return (isinstance(other, OsInfo) and
            self.__name == other.Name() and self.__arch == other.Arch())

  def __ne__(self, other):
    return not self == other

  def __hash__(self):
    return hash((self.__name.id, self.__arch.id))

  def __repr__(self):
    return 'OsInfo({0}, {1})'.format(self.__name, self.__arch)

  @staticmethod
  def FromStrings(os_name, machine):
    """Builds an OsInfo from platform reported strings.

    Args:
      os_name: str, The operating system name.
      machine: str, The machine type.

    Raises:
      UnsupportedOsError: If the operating system is not supported.

    Returns:
      OsInfo, The parsed platform.
    """
    return OsInfo(OperatingSystem.FromName(os_name),
                  Architecture.FromMachine(machine))

  @staticmethod
  def Current():
    """Detects the platform of the running interpreter.

    Raises:
      UnsupportedOsError: If the operating system is not supported.

    Returns:
      OsInfo, The current platform.
    """
    return OsInfo.FromStrings(platform.system(), platform.machine())

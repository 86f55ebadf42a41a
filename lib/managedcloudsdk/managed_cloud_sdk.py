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

"""A managed Cloud SDK for installing, querying and updating the Cloud SDK.

Each version lives in its own directory under the managed root:

  <root>/<version or LATEST>/google-cloud-sdk/bin/gcloud
"""

import json
import os

from managedcloudsdk import components
from managedcloudsdk import update
from managedcloudsdk import version as version_lib
from managedcloudsdk.core import exceptions
from managedcloudsdk.core import log
from managedcloudsdk.core import properties
from managedcloudsdk.core.util import platforms
from managedcloudsdk.install import sdk_installer
from managedcloudsdk.process import command as command_lib


class MalformedOutputError(exceptions.Error):
  """Raised when gcloud output cannot be parsed as the expected JSON."""


class ManagedCloudSdk(object):
  """One version of the Cloud SDK under a managed root directory."""

  def __init__(self, version, managed_sdk_directory, os_info,
               command_caller=None, user_agent=None, usage_reporting=False):
    """Creates the managed SDK. Use ManagedCloudSdkFactory to configure one.

    Args:
      version: version.Version, The version to manage.
      managed_sdk_directory: str, The managed root.
      os_info: platforms.OsInfo, The platform of the Cloud SDK.
      command_caller: command.CommandCaller, Runs the gcloud queries.
      user_agent: str, Sent when downloading the Cloud SDK.
      usage_reporting: bool, Passed to the Cloud SDK install script.
    """
    self._version = version
    self._managed_sdk_directory = managed_sdk_directory
    self._os_info = os_info
    self._command_caller = command_caller or command_lib.CommandCaller()
    self._user_agent = user_agent
    self._usage_reporting = usage_reporting

  @property
  def version(self):
    return self._version

  @property
  def os_info(self):
    return self._os_info

  def GetSdkHome(self):
    return os.path.join(self._managed_sdk_directory, str(self._version),
                        sdk_installer.SDK_DIRECTORY_NAME)

  def GetGcloud(self):
    """Returns the path of the platform specific gcloud executable."""
    executable = ('gcloud.cmd'
                  if self._os_info.Name() == platforms.OperatingSystem.WINDOWS
                  else 'gcloud')
    return os.path.join(self.GetSdkHome(), 'bin', executable)

  def IsInstalled(self):
    """Checks the file system for the SDK home and its gcloud executable."""
    return (os.path.isdir(self.GetSdkHome()) and
            os.path.isfile(self.GetGcloud()))

  def _ListComponents(self, filter_expression):
    output = self._command_caller.Call(
        [self.GetGcloud(), 'components', 'list', '--format=json',
         '--filter=' + filter_expression])
    try:
      entries = json.loads(output)
    except ValueError as e:
      raise MalformedOutputError(
          'Could not parse the output of gcloud components list: {0}'.format(
              e)) from e
    if not isinstance(entries, list):
      raise MalformedOutputError(
          'Expected a JSON list from gcloud components list, got [{0}]'.format(
              type(entries).__name__))
    return entries

  def HasComponent(self, component):
    """Asks gcloud whether a component is installed.

    gcloud may contact the server to answer.

    Args:
      component: components.SdkComponent, The component to look for.

    Raises:
      command.CommandExitError: If gcloud fails.
      MalformedOutputError: If gcloud prints something other than a JSON list.

    Returns:
      bool, False if the SDK itself is not installed.
    """
    if not self.IsInstalled():
      return False
    not_installed = self._ListComponents(
        'id:{0} AND state.name:Not Installed'.format(component))
    return not any(isinstance(entry, dict) and
                   entry.get('id') == str(component)
                   for entry in not_installed)

  def IsUpToDate(self):
    """Asks gcloud whether updates are available.

    A pinned version is always up to date once installed.

    Raises:
      command.CommandExitError: If gcloud fails.
      MalformedOutputError: If gcloud prints something other than a JSON list.

    Returns:
      bool, False if the SDK itself is not installed.
    """
    if not self.IsInstalled():
      return False
    if not self._version.IsLatest():
      return True
    return not self._ListComponents('state.name:Update Available')

  def NewInstaller(self):
    return sdk_installer.SdkInstaller(
        self._managed_sdk_directory, self._version, self._os_info,
        user_agent=self._user_agent, usage_reporting=self._usage_reporting)

  def NewComponentInstaller(self):
    return components.SdkComponentInstaller(self.GetGcloud())

  def NewUpdater(self):
    """Returns an updater for LATEST, None for pinned versions."""
    if not self._version.IsLatest():
      return None
    return update.SdkUpdater.NewUpdater(self._os_info.Name(), self.GetGcloud())


class ManagedCloudSdkFactory(object):
  """Builds ManagedCloudSdk instances from the properties."""

  def __init__(self, os_info=None):
    self._os_info = os_info

  def _GetOsInfo(self):
    if self._os_info is None:
      self._os_info = platforms.OsInfo.Current()
    return self._os_info

  def NewManagedSdk(self, version=None, managed_sdk_directory=None):
    """Creates a managed SDK.

    Args:
      version: version.Version, Defaults to the managed_sdk/version property.
      managed_sdk_directory: str, Defaults to the managed_sdk/root property.

    Raises:
      version.BadCloudSdkVersionError: If the configured version is invalid.
      platforms.UnsupportedOsError: If this platform has no Cloud SDK.

    Returns:
      ManagedCloudSdk, The managed SDK.
    """
    values = properties.VALUES.managed_sdk
    if version is None:
      version = version_lib.Version.FromString(values.version.Get())
    managed_sdk_directory = managed_sdk_directory or values.root.Get()
    log.debug('Managing Cloud SDK %s in [%s]', version, managed_sdk_directory)
    return ManagedCloudSdk(version, managed_sdk_directory, self._GetOsInfo(),
                           user_agent=values.user_agent.Get(),
                           usage_reporting=values.usage_reporting.GetBool())


def NewManagedSdk(version=None, managed_sdk_directory=None):
  """Creates a managed SDK for the current platform."""
  return ManagedCloudSdkFactory().NewManagedSdk(
      version=version, managed_sdk_directory=managed_sdk_directory)

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

"""Downloads, extracts and installs a Cloud SDK into a managed root.

The archive is downloaded and extracted in a staging directory next to the
version directories and only moved into <root>/<version>/google-cloud-sdk once
it is complete, so a failed download or extraction never leaves a partial SDK
where an installed one is expected.
"""

import os

from managedcloudsdk import progress
from managedcloudsdk.core import exceptions
from managedcloudsdk.core import log
from managedcloudsdk.core import properties
from managedcloudsdk.core.util import files as file_utils
from managedcloudsdk.core.util import platforms
from managedcloudsdk.install import downloader
from managedcloudsdk.install import extract
from managedcloudsdk.install import installer as installer_lib
from managedcloudsdk.process import async_command


SDK_DIRECTORY_NAME = 'google-cloud-sdk'

# Shares of the install progress given to each phase.
TOTAL_WORK = 100
DOWNLOAD_WORK = 60
EXTRACT_WORK = 25
INSTALL_WORK = 15


class SdkInstallerError(exceptions.Error):
  """Raised when the Cloud SDK archive cannot be downloaded or unpacked."""


def GetDownloadUrl(version, os_info, base_url=None):
  """Returns the URL of the Cloud SDK archive for a version and platform.

  Args:
    version: version.Version, The version to download.
    os_info: platforms.OsInfo, The platform to download for.
    base_url: str, The release channel URL. Defaults to the
      managed_sdk/download_base_url property.

  Returns:
    str, The archive URL.
  """
  base_url = (base_url or
              properties.VALUES.managed_sdk.download_base_url.Get()).rstrip('/')
  ext = ('zip' if os_info.Name() == platforms.OperatingSystem.WINDOWS
         else 'tar.gz')
  if version.IsLatest():
    return '{0}/google-cloud-sdk.{1}'.format(base_url, ext)
  return '{base}/downloads/google-cloud-sdk-{version}-{os}-{arch}.{ext}'.format(
      base=base_url, version=version, os=os_info.Name().file_name,
      arch=os_info.Arch().file_name, ext=ext)


class SdkInstaller(object):
  """Installs one version of the Cloud SDK under a managed root."""

  def __init__(self, managed_sdk_directory, version, os_info, user_agent=None,
               usage_reporting=False, download_url=None, command_runner=None,
               extractor_factory=None, async_wrapper=None):
    """Creates the installer.

    Args:
      managed_sdk_directory: str, The managed root holding every version.
      version: version.Version, The version to install.
      os_info: platforms.OsInfo, The platform to install for.
      user_agent: str, Sent with the download request.
      usage_reporting: bool, Passed through to the install script.
      download_url: str, Overrides the archive URL.
      command_runner: command.CommandRunner, Runs the install script.
      extractor_factory: extract.ExtractorFactory, Picks the extractor.
      async_wrapper: async_command.AsyncCommandWrapper, Runs InstallAsync.
    """
    self._managed_sdk_directory = managed_sdk_directory
    self._version = version
    self._os_info = os_info
    self._user_agent = user_agent
    self._usage_reporting = usage_reporting
    self._download_url = download_url or GetDownloadUrl(version, os_info)
    self._command_runner = command_runner
    self._extractor_factory = extractor_factory or extract.ExtractorFactory()
    self._async_wrapper = async_wrapper or async_command.AsyncCommandWrapper()

  @property
  def download_url(self):
    return self._download_url

  def GetSdkHome(self):
    return os.path.join(self._managed_sdk_directory, str(self._version),
                        SDK_DIRECTORY_NAME)

  def Install(self, progress_listener=None, message_listener=None):
    """Downloads, extracts and installs the Cloud SDK.

    Args:
      progress_listener: progress.ProgressListener, Receives TOTAL_WORK units.
      message_listener: f(str), Receives messages and install script output.

    Raises:
      SdkInstallerError: If the download or extraction fails.
      command.CommandExitError: If the install script fails.
      interrupts.InterruptedOperationError: If the thread was interrupted.

    Returns:
      str, The path of the installed google-cloud-sdk directory.
    """
    progress_listener = progress_listener or progress.NewRootListener()
    sdk_home = self.GetSdkHome()
    file_utils.MakeDir(self._managed_sdk_directory)

    progress_listener.Start('Installing Cloud SDK {0}'.format(self._version),
                            TOTAL_WORK)
    with file_utils.TemporaryDirectory(parent=self._managed_sdk_directory,
                                       prefix='.staging-') as staging_dir:
      staged_sdk = self._DownloadAndExtract(
          staging_dir, progress_listener, message_listener)
      self._MoveIntoPlace(staged_sdk, sdk_home)

    installer = installer_lib.NewInstaller(
        sdk_home, self._os_info.Name(), usage_reporting=self._usage_reporting,
        command_runner=self._command_runner)
    try:
      installer.Install(progress_listener.NewChild(INSTALL_WORK),
                        message_listener)
    except BaseException:
      # gcloud must not be left behind by a failed install script.
      log.debug('Removing partially installed Cloud SDK [%s]', sdk_home)
      file_utils.RmTree(sdk_home)
      raise
    progress_listener.Done()
    log.info('Installed Cloud SDK %s in [%s]', self._version, sdk_home)
    return sdk_home

  def InstallAsync(self, progress_listener=None, message_listener=None):
    """Like Install, on a worker thread.

    Cancelling the returned future interrupts the download, extraction or
    install script.

    Returns:
      async_command.OperationFuture, Resolves to the installed SDK home.
    """
    return self._async_wrapper.Execute(
        self.Install, progress_listener=progress_listener,
        message_listener=message_listener)

  def _DownloadAndExtract(self, staging_dir, progress_listener,
                          message_listener):
    archive = os.path.join(staging_dir,
                           os.path.basename(self._download_url.rstrip('/')))
    extracted_dir = os.path.join(staging_dir, 'extracted')
    try:
      downloader.Downloader(
          self._download_url, archive, user_agent=self._user_agent,
          progress_listener=progress_listener.NewChild(DOWNLOAD_WORK),
          message_listener=message_listener).Download()
      self._extractor_factory.NewExtractor(
          archive, extracted_dir,
          progress_listener.NewChild(EXTRACT_WORK)).Extract()
    except (downloader.Error, extract.Error, file_utils.Error) as e:
      raise SdkInstallerError('Failed to install Cloud SDK {0}: {1}'.format(
          self._version, e)) from e

    staged_sdk = os.path.join(extracted_dir, SDK_DIRECTORY_NAME)
    if not os.path.isdir(staged_sdk):
      raise SdkInstallerError(
          'Archive [{0}] does not contain a [{1}] directory'.format(
              self._download_url, SDK_DIRECTORY_NAME))
    return staged_sdk

  def _MoveIntoPlace(self, staged_sdk, sdk_home):
    if os.path.exists(sdk_home):
      log.warning('Replacing incomplete Cloud SDK installation in [%s]',
                  sdk_home)
      file_utils.RmTree(sdk_home)
    file_utils.MakeDir(os.path.dirname(sdk_home))
    try:
      file_utils.MoveDir(staged_sdk, sdk_home)
    except file_utils.Error as e:
      raise SdkInstallerError(
          'Could not move Cloud SDK into [{0}]: {1}'.format(sdk_home, e)) from e


def NewInstaller(managed_sdk_directory, version, os_info, user_agent=None,
                 usage_reporting=False):
  """Creates an SdkInstaller for the managed root."""
  return SdkInstaller(managed_sdk_directory, version, os_info,
                      user_agent=user_agent, usage_reporting=usage_reporting)

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

"""Runs the install script of an extracted Cloud SDK."""

import os

from managedcloudsdk import progress
from managedcloudsdk.core.util import platforms
from managedcloudsdk.process import command as command_lib


class InstallScriptProvider(object):
  """Knows how to invoke the install script on one family of platforms."""

  def GetScriptCommandLine(self, installed_sdk_root):
    raise NotImplementedError()


class UnixInstallScriptProvider(InstallScriptProvider):

  def GetScriptCommandLine(self, installed_sdk_root):
    return [os.path.join(installed_sdk_root, 'install.sh')]


class WindowsInstallScriptProvider(InstallScriptProvider):

  def GetScriptCommandLine(self, installed_sdk_root):
    return ['cmd.exe', '/c', os.path.join(installed_sdk_root, 'install.bat')]


class Installer(object):
  """Runs the install script non-interactively in the SDK root."""

  def __init__(self, installed_sdk_root, install_script_provider,
               usage_reporting=False, command_runner=None):
    """Creates the installer.

    Args:
      installed_sdk_root: str, The google-cloud-sdk directory.
      install_script_provider: InstallScriptProvider, For the target platform.
      usage_reporting: bool, Passed through to the script.
      command_runner: command.CommandRunner, Runs the script.
    """
    self._installed_sdk_root = installed_sdk_root
    self._install_script_provider = install_script_provider
    self._usage_reporting = usage_reporting
    self._command_runner = command_runner or command_lib.CommandRunner()

  @property
  def install_script_provider(self):
    return self._install_script_provider

  def GetCommand(self):
    command = list(self._install_script_provider.GetScriptCommandLine(
        self._installed_sdk_root))
    command.append('--path-update=false')  # don't update user's path
    command.append('--command-completion=false')  # don't add completion
    command.append('--quiet')  # don't accept user input during install
    command.append('--usage-reporting={0}'.format(
        'true' if self._usage_reporting else 'false'))
    return command

  def Install(self, progress_listener=None, message_listener=None):
    """Runs the install script.

    Args:
      progress_listener: progress.ProgressListener, Told when the script starts
        and ends.
      message_listener: f(str), Receives the script's output.

    Raises:
      command.CommandExitError: If the script fails.
    """
    progress_listener = progress_listener or progress.NewRootListener()
    progress_listener.Start('Installing Cloud SDK', progress.UNKNOWN)
    self._command_runner.Run(self.GetCommand(),
                             working_directory=self._installed_sdk_root,
                             message_listener=message_listener)
    progress_listener.Done()


def NewInstaller(installed_sdk_root, os_name, usage_reporting=False,
                 command_runner=None):
  """Creates an Installer with the script provider for os_name.

  Args:
    installed_sdk_root: str, The google-cloud-sdk directory.
    os_name: platforms.OperatingSystem._OS, The target platform.
    usage_reporting: bool, Passed through to the script.
    command_runner: command.CommandRunner, Runs the script.

  Returns:
    Installer, The installer.
  """
  if os_name == platforms.OperatingSystem.WINDOWS:
    provider = WindowsInstallScriptProvider()
  else:
    provider = UnixInstallScriptProvider()
  return Installer(installed_sdk_root, provider,
                   usage_reporting=usage_reporting,
                   command_runner=command_runner)

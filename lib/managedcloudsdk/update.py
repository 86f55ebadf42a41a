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

"""Updates an installed Cloud SDK with gcloud.

On Windows gcloud cannot replace the Python interpreter it is running on, so
the bundled interpreter is first copied out of the SDK and the update runs on
the copy.
"""

import atexit
import os
import re

from managedcloudsdk import progress
from managedcloudsdk.core import log
from managedcloudsdk.core.util import files as file_utils
from managedcloudsdk.core.util import platforms
from managedcloudsdk.process import async_command
from managedcloudsdk.process import command as command_lib


_PYTHON_EXE_PATTERN = re.compile(r'python\.exe$', re.IGNORECASE)


class WindowsBundledPythonCopier(object):
  """Copies the Cloud SDK's bundled Python out of the way of an update."""

  def __init__(self, gcloud, command_caller=None):
    self._gcloud = gcloud
    self._command_caller = command_caller or command_lib.CommandCaller()

  def GetCommand(self):
    return [self._gcloud, 'components', 'copy-bundled-python']

  def CopyPython(self):
    """Copies the interpreter and schedules the copy's removal at exit.

    Raises:
      command.CommandExitError: If gcloud fails.

    Returns:
      {str: str}, The environment that makes gcloud use the copy.
    """
    # Newlines in an environment value break cmd.exe.
    python_location = self._command_caller.Call(self.GetCommand()).strip()
    log.debug('Copied bundled python to [%s]', python_location)
    atexit.register(DeleteCopiedPython, python_location)
    return {'CLOUDSDK_PYTHON': python_location}


def _GetCopiedPythonHome(python_location):
  """Returns the directory holding python.exe, or None for any other path."""
  python_home = _PYTHON_EXE_PATTERN.sub('', python_location)
  if python_home == python_location:
    return None
  return python_home


def DeleteCopiedPython(python_location):
  """Deletes the directory of a copied interpreter.

  Nothing is deleted unless python_location ends in python.exe.

  Args:
    python_location: str, The path printed by copy-bundled-python.

  Returns:
    bool, True if a directory was deleted.
  """
  python_home = _GetCopiedPythonHome(python_location)
  if not python_home or not os.path.isdir(python_home):
    return False
  return file_utils.DeleteQuietly(python_home)


class SdkUpdater(object):
  """Runs gcloud components update."""

  def __init__(self, gcloud, command_runner=None, async_wrapper=None,
               target_version=None):
    """Creates the updater.

    Args:
      gcloud: str, The gcloud executable of the Cloud SDK.
      command_runner: command.CommandRunner, Runs gcloud.
      async_wrapper: async_command.AsyncCommandWrapper, Runs the async calls.
      target_version: version.Version, A release to update to instead of the
        latest one.
    """
    self._gcloud = gcloud
    self._command_runner = command_runner or command_lib.CommandRunner()
    self._async_wrapper = async_wrapper or async_command.AsyncCommandWrapper()
    self._target_version = target_version

  def GetCommand(self):
    command = [self._gcloud, 'components', 'update', '--quiet']
    target = self._target_version
    if target is not None and not target.IsLatest():
      command.append('--version={0}'.format(self._target_version))
    return command

  def _GetEnvironment(self):
    return None

  def Update(self, progress_listener=None, message_listener=None):
    """Updates the Cloud SDK and waits for gcloud to finish.

    Args:
      progress_listener: progress.ProgressListener, Told when the update
        starts and ends.
      message_listener: f(str), Receives the output of gcloud.

    Raises:
      command.CommandExitError: If gcloud fails.
    """
    progress_listener = progress_listener or progress.NewRootListener()
    progress_listener.Start('Updating Cloud SDK', progress.UNKNOWN)
    self._command_runner.Run(self.GetCommand(),
                             environment=self._GetEnvironment(),
                             message_listener=message_listener)
    progress_listener.Done()

  def UpdateAsync(self, progress_listener=None, message_listener=None):
    """Like Update, on a worker thread.

    Returns:
      async_command.OperationFuture, Resolves to None once updated.
    """
    return self._async_wrapper.Execute(
        self.Update, progress_listener=progress_listener,
        message_listener=message_listener)

  @staticmethod
  def NewUpdater(os_name, gcloud, target_version=None):
    """Creates the updater variant for a platform.

    Args:
      os_name: platforms.OperatingSystem._OS, The platform of the Cloud SDK.
      gcloud: str, The gcloud executable of the Cloud SDK.
      target_version: version.Version, A release to update to.

    Returns:
      SdkUpdater, WindowsUpdater on Windows and UnixUpdater elsewhere.
    """
    if os_name == platforms.OperatingSystem.WINDOWS:
      return WindowsUpdater(gcloud, target_version=target_version)
    return UnixUpdater(gcloud, target_version=target_version)


class UnixUpdater(SdkUpdater):
  """Updates in place; gcloud can replace its own files."""


class WindowsUpdater(SdkUpdater):
  """Updates with gcloud running on a copy of the bundled Python."""

  def __init__(self, gcloud, command_runner=None, async_wrapper=None,
               target_version=None, python_copier=None):
    super(WindowsUpdater, self).__init__(
        gcloud, command_runner=command_runner, async_wrapper=async_wrapper,
        target_version=target_version)
    self._python_copier = (python_copier or
                           WindowsBundledPythonCopier(gcloud))

  def _GetEnvironment(self):
    return self._python_copier.CopyPython()

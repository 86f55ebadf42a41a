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

"""Installs Cloud SDK components with gcloud."""

import enum

from managedcloudsdk import progress
from managedcloudsdk.core import exceptions
from managedcloudsdk.process import async_command
from managedcloudsdk.process import command as command_lib


class UnknownComponentError(exceptions.Error):
  """Raised for a component id that is not an SdkComponent."""


class SdkComponent(enum.Enum):
  """Components of the Cloud SDK, by gcloud component id."""

  ALPHA = 'alpha'
  APP_ENGINE_GO = 'app-engine-go'
  APP_ENGINE_JAVA = 'app-engine-java'
  APP_ENGINE_PHP = 'app-engine-php'
  APP_ENGINE_PYTHON = 'app-engine-python'
  APP_ENGINE_PYTHON_EXTRAS = 'app-engine-python-extras'
  BETA = 'beta'
  BIGQUERY = 'bq'
  BIGTABLE = 'bigtable'
  CLOUD_DATASTORE_EMULATOR = 'cloud-datastore-emulator'
  CLOUD_FIRESTORE_EMULATOR = 'cloud-firestore-emulator'
  CLOUD_STORAGE = 'gsutil'
  CORE = 'core'
  DOCKER_CREDENTIAL_GCR = 'docker-credential-gcr'
  KUBECTL = 'kubectl'
  PUBSUB_EMULATOR = 'pubsub-emulator'

  def __str__(self):
    return self.value

  @staticmethod
  def FromId(component_id):
    """Returns the component with the given gcloud id.

    Args:
      component_id: str, For example 'app-engine-java'.

    Raises:
      UnknownComponentError: If no component has that id.

    Returns:
      SdkComponent, The component.
    """
    try:
      return SdkComponent(component_id)
    except ValueError:
      raise UnknownComponentError(
          'Unknown Cloud SDK component [{0}]. Known components: [{1}]'.format(
              component_id, ', '.join(c.value for c in SdkComponent)))


class SdkComponentInstaller(object):
  """Installs components into an installed Cloud SDK."""

  def __init__(self, gcloud, command_runner=None, async_wrapper=None):
    """Creates the installer.

    Args:
      gcloud: str, The gcloud executable of the Cloud SDK.
      command_runner: command.CommandRunner, Runs gcloud.
      async_wrapper: async_command.AsyncCommandWrapper, Runs the async calls.
    """
    self._gcloud = gcloud
    self._command_runner = command_runner or command_lib.CommandRunner()
    self._async_wrapper = async_wrapper or async_command.AsyncCommandWrapper()

  def GetCommand(self, component):
    return [self._gcloud, 'components', 'install', str(component), '--quiet']

  def InstallComponent(self, component, progress_listener=None,
                       message_listener=None):
    """Installs a component and waits for gcloud to finish.

    Args:
      component: SdkComponent, The component to install.
      progress_listener: progress.ProgressListener, Told when the install
        starts and ends.
      message_listener: f(str), Receives the output of gcloud.

    Raises:
      command.CommandExitError: If gcloud fails.
    """
    progress_listener = progress_listener or progress.NewRootListener()
    progress_listener.Start('Installing {0}'.format(component),
                            progress.UNKNOWN)
    self._command_runner.Run(self.GetCommand(component),
                             message_listener=message_listener)
    progress_listener.Done()

  def InstallComponentAsync(self, component, progress_listener=None,
                            message_listener=None):
    """Like InstallComponent, on a worker thread.

    Returns:
      async_command.OperationFuture, Resolves to None once installed.
    """
    return self._async_wrapper.Execute(
        self.InstallComponent, component, progress_listener=progress_listener,
        message_listener=message_listener)


def NewComponentInstaller(gcloud):
  return SdkComponentInstaller(gcloud)

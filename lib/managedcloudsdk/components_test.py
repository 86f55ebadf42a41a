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

"""Tests for managedcloudsdk.components."""

from unittest import mock

from managedcloudsdk import components
from managedcloudsdk import progress
from managedcloudsdk.process import command
from managedcloudsdk.tests.lib import test_case


class SdkComponentTest(test_case.Base):

  def testIds(self):
    self.assertEqual('app-engine-java',
                     str(components.SdkComponent.APP_ENGINE_JAVA))
    self.assertEqual('gsutil', str(components.SdkComponent.CLOUD_STORAGE))
    self.assertEqual('bq', str(components.SdkComponent.BIGQUERY))

  def testFromId(self):
    self.assertIs(components.SdkComponent.KUBECTL,
                  components.SdkComponent.FromId('kubectl'))
    with self.assertRaisesRegex(components.UnknownComponentError,
                                'not-a-component'):
      components.SdkComponent.FromId('not-a-component')


class SdkComponentInstallerTest(test_case.Base):

  def SetUp(self):
    self.runner = mock.create_autospec(command.CommandRunner, instance=True)
    self.installer = components.SdkComponentInstaller(
        '/sdk/bin/gcloud', command_runner=self.runner)

  def testGetCommand(self):
    self.assertEqual(
        ['/sdk/bin/gcloud', 'components', 'install', 'app-engine-java',
         '--quiet'],
        self.installer.GetCommand(components.SdkComponent.APP_ENGINE_JAVA))

  def testInstallComponent(self):
    sink = mock.create_autospec(progress.ProgressSink, instance=True)
    messages = []
    self.installer.InstallComponent(components.SdkComponent.BETA,
                                    progress.NewRootListener(sink),
                                    messages.append)
    self.runner.Run.assert_called_once_with(
        ['/sdk/bin/gcloud', 'components', 'install', 'beta', '--quiet'],
        message_listener=messages.append)
    sink.Start.assert_called_once_with('Installing beta', progress.UNKNOWN)
    sink.Done.assert_called_once_with()

  def testInstallComponentAsync(self):
    future = self.installer.InstallComponentAsync(
        components.SdkComponent.KUBECTL)
    self.assertIsNone(future.result(5))
    self.runner.Run.assert_called_once_with(
        ['/sdk/bin/gcloud', 'components', 'install', 'kubectl', '--quiet'],
        message_listener=None)

  def testFailureDeliveredThroughFuture(self):
    self.runner.Run.side_effect = command.CommandExitError(1, ['gcloud'])
    future = self.installer.InstallComponentAsync(
        components.SdkComponent.KUBECTL)
    with self.assertRaises(command.CommandExitError):
      future.result(5)

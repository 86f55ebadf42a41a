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

"""Tests for managedcloudsdk.install.sdk_installer."""

import os
from unittest import mock
import zipfile

from managedcloudsdk import managed_cloud_sdk
from managedcloudsdk import progress
from managedcloudsdk import version
from managedcloudsdk.core import properties
from managedcloudsdk.core.util import platforms
from managedcloudsdk.install import sdk_installer
from managedcloudsdk.process import command
from managedcloudsdk.tests.lib import sdk_fixtures
from managedcloudsdk.tests.lib import test_case


_LINUX_64 = platforms.OsInfo(platforms.OperatingSystem.LINUX,
                             platforms.Architecture.x86_64)
_MAC_32 = platforms.OsInfo(platforms.OperatingSystem.MACOSX,
                           platforms.Architecture.x86)
_WINDOWS_64 = platforms.OsInfo(platforms.OperatingSystem.WINDOWS,
                               platforms.Architecture.x86_64)

_BASE = 'https://dl.google.com/dl/cloudsdk/channels/rapid'


class DownloadUrlTest(test_case.Base):

  def testLatest(self):
    self.assertEqual(
        _BASE + '/google-cloud-sdk.tar.gz',
        sdk_installer.GetDownloadUrl(version.Version.LATEST, _LINUX_64))
    self.assertEqual(
        _BASE + '/google-cloud-sdk.zip',
        sdk_installer.GetDownloadUrl(version.Version.LATEST, _WINDOWS_64))

  def testPinned(self):
    v = version.Version('169.0.0')
    self.assertEqual(
        _BASE + '/downloads/google-cloud-sdk-169.0.0-linux-x86_64.tar.gz',
        sdk_installer.GetDownloadUrl(v, _LINUX_64))
    self.assertEqual(
        _BASE + '/downloads/google-cloud-sdk-169.0.0-darwin-x86.tar.gz',
        sdk_installer.GetDownloadUrl(v, _MAC_32))
    self.assertEqual(
        _BASE + '/downloads/google-cloud-sdk-169.0.0-windows-x86_64.zip',
        sdk_installer.GetDownloadUrl(v, _WINDOWS_64))

  def testBaseUrlProperty(self):
    properties.VALUES.managed_sdk.download_base_url.Set(
        'https://mirror.example.com/sdk/')
    self.assertEqual(
        'https://mirror.example.com/sdk/google-cloud-sdk.tar.gz',
        sdk_installer.GetDownloadUrl(version.Version.LATEST, _LINUX_64))


class SdkInstallerTest(test_case.Base):

  def SetUp(self):
    self.mirror = self.CreateTempDir()
    self.root = os.path.join(self.CreateTempDir(), 'managed')
    self.url = sdk_fixtures.DirectoryUrl(
        sdk_fixtures.WriteFakeSdkArchive(self.mirror))

  def _NewInstaller(self, url=None):
    return sdk_installer.SdkInstaller(
        self.root, version.Version.LATEST, _LINUX_64,
        download_url=url or self.url)

  @test_case.skipOnWindows
  def testInstall(self):
    work = []
    messages = []
    listener = progress.NewRootListener(
        progress.CallbackProgressSink(work.append))
    sdk_home = self._NewInstaller().Install(listener, messages.append)

    self.assertEqual(
        os.path.join(self.root, 'LATEST', 'google-cloud-sdk'), sdk_home)
    self.assertFileExists(os.path.join(sdk_home, 'bin', 'gcloud'))
    with open(os.path.join(sdk_home, '.install-args')) as f:
      self.assertEqual('--path-update=false --command-completion=false '
                       '--quiet --usage-reporting=false\n', f.read())
    self.assertIn('Installation complete\n', messages)
    self.assertEqual(1.0, work[-1])
    # Only the version directory is left in the root.
    self.assertEqual(['LATEST'], os.listdir(self.root))

  @test_case.skipOnWindows
  def testInstallAsync(self):
    future = self._NewInstaller().InstallAsync()
    sdk_home = future.result(60)
    self.assertFileExists(os.path.join(sdk_home, 'bin', 'gcloud'))

  @test_case.skipOnWindows
  def testReplacesPartialInstall(self):
    stale = self.Touch(os.path.join(self.root, 'LATEST', 'google-cloud-sdk'),
                       'stale', makedirs=True)
    sdk_home = self._NewInstaller().Install()
    self.assertFileNotExists(stale)
    self.assertFileExists(os.path.join(sdk_home, 'bin', 'gcloud'))

  def testDownloadFailure(self):
    installer = self._NewInstaller(url=self.url + '.missing')
    with self.assertRaises(sdk_installer.SdkInstallerError):
      installer.Install()
    self.assertEqual([], os.listdir(self.root))

  def testArchiveWithoutSdk(self):
    other = os.path.join(self.CreateTempDir(), 'google-cloud-sdk.zip')
    with zipfile.ZipFile(other, 'w') as zf:
      zf.writestr('something-else/file', 'x')
    installer = self._NewInstaller(url=sdk_fixtures.DirectoryUrl(other))
    with self.assertRaisesRegex(sdk_installer.SdkInstallerError,
                                'google-cloud-sdk'):
      installer.Install()
    self.assertEqual([], os.listdir(self.root))

  @test_case.skipOnWindows
  def testInstallScriptFailure(self):
    runner = mock.create_autospec(command.CommandRunner, instance=True)
    runner.Run.side_effect = command.CommandExitError(1, ['install.sh'])
    v = version.Version('169.0.0')
    installer = sdk_installer.SdkInstaller(
        self.root, v, _LINUX_64, download_url=self.url, command_runner=runner)
    with self.assertRaises(command.CommandExitError):
      installer.Install()
    self.assertFalse(os.path.exists(installer.GetSdkHome()))
    self.assertFalse(
        managed_cloud_sdk.ManagedCloudSdk(v, self.root, _LINUX_64)
        .IsInstalled())

  @test_case.skipOnWindows
  def testInstallScriptInterrupted(self):
    runner = mock.create_autospec(command.CommandRunner, instance=True)
    runner.Run.side_effect = KeyboardInterrupt()
    installer = sdk_installer.SdkInstaller(
        self.root, version.Version.LATEST, _LINUX_64, download_url=self.url,
        command_runner=runner)
    with self.assertRaises(KeyboardInterrupt):
      installer.Install()
    self.assertFalse(os.path.exists(installer.GetSdkHome()))
    self.assertEqual(['LATEST'], os.listdir(self.root))

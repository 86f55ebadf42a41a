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

"""Tests for managedcloudsdk.core.util.platforms."""

from unittest import mock

from managedcloudsdk.core.util import platforms
from managedcloudsdk.tests.lib import test_case


class OperatingSystemTest(test_case.Base):

  def testFromName(self):
    os_enum = platforms.OperatingSystem
    self.assertIs(os_enum.WINDOWS, os_enum.FromName('Windows'))
    self.assertIs(os_enum.WINDOWS, os_enum.FromName('Windows 10'))
    self.assertIs(os_enum.LINUX, os_enum.FromName('Linux'))
    self.assertIs(os_enum.MACOSX, os_enum.FromName('Darwin'))
    self.assertIs(os_enum.MACOSX, os_enum.FromName('Mac OS X'))

  def testFromNameUnsupported(self):
    for name in ('SunOS', 'FreeBSD', '', None):
      with self.assertRaises(platforms.UnsupportedOsError):
        platforms.OperatingSystem.FromName(name)

  def testFileNames(self):
    self.assertEqual(['windows', 'darwin', 'linux'],
                     [o.file_name for o in
                      (platforms.OperatingSystem.WINDOWS,
                       platforms.OperatingSystem.MACOSX,
                       platforms.OperatingSystem.LINUX)])


class ArchitectureTest(test_case.Base):

  def testFromMachine(self):
    arch = platforms.Architecture
    self.assertIs(arch.x86_64, arch.FromMachine('x86_64'))
    self.assertIs(arch.x86_64, arch.FromMachine('AMD64'))
    self.assertIs(arch.x86_64, arch.FromMachine('universal'))
    self.assertIs(arch.x86, arch.FromMachine('i686'))
    self.assertIs(arch.x86, arch.FromMachine('x86'))
    self.assertIs(arch.x86, arch.FromMachine(''))


class OsInfoTest(test_case.Base):

  def testFromStrings(self):
    info = platforms.OsInfo.FromStrings('Linux', 'x86_64')
    self.assertIs(platforms.OperatingSystem.LINUX, info.Name())
    self.assertIs(platforms.Architecture.x86_64, info.Arch())
    self.assertEqual(
        platforms.OsInfo(platforms.OperatingSystem.LINUX,
                         platforms.Architecture.x86_64),
        info)
    self.assertNotEqual(platforms.OsInfo.FromStrings('Linux', 'i386'), info)

  def testCurrent(self):
    with mock.patch('platform.system', return_value='Windows'), \
         mock.patch('platform.machine', return_value='AMD64'):
      info = platforms.OsInfo.Current()
    self.assertIs(platforms.OperatingSystem.WINDOWS, info.Name())
    self.assertIs(platforms.Architecture.x86_64, info.Arch())

  def testCurrentUnsupported(self):
    with mock.patch('platform.system', return_value='SunOS'):
      with self.assertRaises(platforms.UnsupportedOsError):
        platforms.OsInfo.Current()

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

"""Tests for managedcloudsdk.install.extract."""

import io
import os
import stat
import tarfile
import threading
import unittest
import zipfile

from managedcloudsdk import progress
from managedcloudsdk.core import interrupts
from managedcloudsdk.install import extract
from managedcloudsdk.tests.lib import test_case


_POSIX = os.name == 'posix'


def _AddTarFile(tar, name, data, mode=0o644):
  info = tarfile.TarInfo(name)
  info.size = len(data)
  info.mode = mode
  tar.addfile(info, io.BytesIO(data))


def _AddTarDir(tar, name, mode=0o755):
  info = tarfile.TarInfo(name)
  info.type = tarfile.DIRTYPE
  info.mode = mode
  tar.addfile(info)


def _AddZipEntry(zf, name, data, mode):
  info = zipfile.ZipInfo(name)
  info.create_system = 3
  info.external_attr = mode << 16
  zf.writestr(info, data)


class ExtractorTest(test_case.Base):

  def SetUp(self):
    self.archive_dir = self.CreateTempDir()
    self.destination = os.path.join(self.CreateTempDir(), 'extracted')
    self.messages = []

    self.tar_path = os.path.join(self.archive_dir, 'sdk.tar.gz')
    with tarfile.open(self.tar_path, 'w:gz') as tar:
      _AddTarDir(tar, 'google-cloud-sdk')
      _AddTarDir(tar, 'google-cloud-sdk/bin')
      _AddTarFile(tar, 'google-cloud-sdk/bin/gcloud', b'#!/bin/sh\n', 0o755)
      _AddTarFile(tar, 'google-cloud-sdk/README', b'readme', 0o644)
      link = tarfile.TarInfo('google-cloud-sdk/link')
      link.type = tarfile.SYMTYPE
      link.linkname = 'README'
      tar.addfile(link)

    self.zip_path = os.path.join(self.archive_dir, 'sdk.zip')
    with zipfile.ZipFile(self.zip_path, 'w') as zf:
      _AddZipEntry(zf, 'google-cloud-sdk/', b'', stat.S_IFDIR | 0o755)
      _AddZipEntry(zf, 'google-cloud-sdk/bin/gcloud', b'#!/bin/sh\n',
                   stat.S_IFREG | 0o755)
      _AddZipEntry(zf, 'google-cloud-sdk/README', b'readme',
                   stat.S_IFREG | 0o644)
      zf.writestr('google-cloud-sdk/plain.txt', b'no unix attributes')

  def _Listener(self):
    sink = progress.CallbackProgressSink(lambda fraction: None)
    sink.UpdateMessage = self.messages.append
    return progress.NewRootListener(sink)

  def _Extract(self, archive):
    extractor = extract.ExtractorFactory().NewExtractor(
        archive, self.destination, self._Listener())
    return extractor.Extract()

  def _Path(self, *parts):
    return os.path.join(self.destination, 'google-cloud-sdk', *parts)

  def _Read(self, *parts):
    with open(self._Path(*parts), 'rb') as f:
      return f.read()

  def testTarGz(self):
    self.assertEqual(self.destination, self._Extract(self.tar_path))
    self.assertEqual(b'#!/bin/sh\n', self._Read('bin', 'gcloud'))
    self.assertEqual(b'readme', self._Read('README'))
    self.assertFalse(os.path.lexists(self._Path('link')))
    self.assertIn(os.path.realpath(self._Path('bin', 'gcloud')),
                  self.messages)

  @unittest.skipUnless(_POSIX, 'POSIX permission bits')
  def testTarGzModes(self):
    self._Extract(self.tar_path)
    self.assertEqual(0o755,
                     stat.S_IMODE(os.stat(self._Path('bin', 'gcloud')).st_mode))
    self.assertEqual(0o644, stat.S_IMODE(os.stat(self._Path('README')).st_mode))

  def _AssertReadOnlyDirectory(self):
    ro_dir = self._Path('ro')
    try:
      self.assertEqual(b'inside', self._Read('ro', 'f.txt'))
      self.assertEqual(0o555, stat.S_IMODE(os.stat(ro_dir).st_mode))
    finally:
      # Lets tearDown remove the tree.
      os.chmod(ro_dir, 0o755)

  @unittest.skipUnless(_POSIX, 'POSIX permission bits')
  def testTarGzReadOnlyDirectory(self):
    archive = os.path.join(self.archive_dir, 'ro.tar.gz')
    with tarfile.open(archive, 'w:gz') as tar:
      _AddTarDir(tar, 'google-cloud-sdk')
      _AddTarDir(tar, 'google-cloud-sdk/ro', 0o555)
      _AddTarFile(tar, 'google-cloud-sdk/ro/f.txt', b'inside')
    self._Extract(archive)
    self._AssertReadOnlyDirectory()

  @unittest.skipUnless(_POSIX, 'POSIX permission bits')
  def testZipReadOnlyDirectory(self):
    archive = os.path.join(self.archive_dir, 'ro.zip')
    with zipfile.ZipFile(archive, 'w') as zf:
      _AddZipEntry(zf, 'google-cloud-sdk/ro/', b'', stat.S_IFDIR | 0o555)
      _AddZipEntry(zf, 'google-cloud-sdk/ro/f.txt', b'inside',
                   stat.S_IFREG | 0o644)
    self._Extract(archive)
    self._AssertReadOnlyDirectory()

  def testZip(self):
    self._Extract(self.zip_path)
    self.assertEqual(b'#!/bin/sh\n', self._Read('bin', 'gcloud'))
    self.assertEqual(b'readme', self._Read('README'))
    self.assertEqual(b'no unix attributes', self._Read('plain.txt'))

  @unittest.skipUnless(_POSIX, 'POSIX permission bits')
  def testZipModes(self):
    self._Extract(self.zip_path)
    self.assertEqual(0o755,
                     stat.S_IMODE(os.stat(self._Path('bin', 'gcloud')).st_mode))
    self.assertEqual(0o644, stat.S_IMODE(os.stat(self._Path('README')).st_mode))

  def testSelection(self):
    factory = extract.ExtractorFactory()
    self.assertIsInstance(
        factory.NewExtractor('a.tar.gz', self.destination).provider,
        extract.TarGzExtractorProvider)
    self.assertIsInstance(
        factory.NewExtractor('a.zip', self.destination).provider,
        extract.ZipExtractorProvider)
    with self.assertRaisesRegex(extract.UnknownArchiveTypeError, 'a.rar'):
      factory.NewExtractor('a.rar', self.destination)

  def testUnsafeEntry(self):
    evil = os.path.join(self.archive_dir, 'evil.tar.gz')
    with tarfile.open(evil, 'w:gz') as tar:
      _AddTarFile(tar, '../escaped', b'x')
    with self.assertRaises(extract.UnsafeArchiveEntryError):
      self._Extract(evil)
    self.assertFileNotExists(
        os.path.join(os.path.dirname(self.destination), 'escaped'))

  def testCorruptArchive(self):
    corrupt = self.Touch(self.archive_dir, 'corrupt.zip', 'not a zip')
    with self.assertRaises(extract.ExtractionError):
      self._Extract(corrupt)

  def testInterrupted(self):
    event = threading.Event()
    event.set()
    with interrupts.BindEvent(event):
      with self.assertRaises(interrupts.InterruptedOperationError):
        self._Extract(self.tar_path)
    self.assertFileNotExists(self._Path('bin', 'gcloud'))

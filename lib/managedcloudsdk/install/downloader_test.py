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

"""Tests for managedcloudsdk.install.downloader."""

import os
import pathlib
import threading

from managedcloudsdk import progress
from managedcloudsdk.core import interrupts
from managedcloudsdk.install import downloader
from managedcloudsdk.tests.lib import test_case

import requests


class _InterruptingSink(progress.ProgressSink):
  """Sets the interruption event after the first chunk."""

  def __init__(self, event):
    self._event = event

  def Update(self, work_done):
    self._event.set()


class _CtrlCSink(progress.ProgressSink):
  """Raises KeyboardInterrupt once some bytes are written."""

  def Update(self, work_done):
    if work_done > 0:
      raise KeyboardInterrupt()


class DownloaderTest(test_case.Base):

  def SetUp(self):
    self.source_dir = self.CreateTempDir()
    self.dest_dir = self.CreateTempDir()
    self.contents = b'0123456789abcdef' * 2048
    source = os.path.join(self.source_dir, 'google-cloud-sdk.tar.gz')
    with open(source, 'wb') as f:
      f.write(self.contents)
    self.url = pathlib.Path(source).as_uri()
    self.destination = os.path.join(self.dest_dir, 'nested', 'sdk.tar.gz')

  def testDownload(self):
    work = []
    listener = progress.NewRootListener(
        progress.CallbackProgressSink(work.append))
    messages = []
    result = downloader.Downloader(
        self.url, self.destination, progress_listener=listener,
        message_listener=messages.append).Download()
    self.assertEqual(self.destination, result)
    with open(self.destination, 'rb') as f:
      self.assertEqual(self.contents, f.read())
    self.assertEqual(['Downloading {0}\n'.format(self.url)], messages)
    self.assertEqual(0.0, work[0])
    self.assertEqual(1.0, work[-1])

  def testDestinationExists(self):
    existing = self.Touch(self.dest_dir, 'sdk.tar.gz', 'keep me')
    with self.assertRaises(downloader.FileAlreadyExistsError):
      downloader.Downloader(self.url, existing).Download()
    with open(existing) as f:
      self.assertEqual('keep me', f.read())

  def testMissingSource(self):
    url = pathlib.Path(os.path.join(self.source_dir, 'missing.zip')).as_uri()
    with self.assertRaises(downloader.DownloadError):
      downloader.Downloader(url, self.destination).Download()
    self.assertFileNotExists(self.destination)

  def testInterruptedDownloadLeavesNothing(self):
    event = threading.Event()
    listener = progress.NewRootListener(_InterruptingSink(event))
    with interrupts.BindEvent(event):
      with self.assertRaises(interrupts.InterruptedOperationError):
        downloader.Downloader(self.url, self.destination,
                              progress_listener=listener).Download()
    self.assertFileNotExists(self.destination)

  def testCtrlCLeavesNothing(self):
    listener = progress.NewRootListener(_CtrlCSink())
    with self.assertRaises(KeyboardInterrupt):
      downloader.Downloader(self.url, self.destination,
                            progress_listener=listener).Download()
    self.assertFileNotExists(self.destination)

  def testInterruptedBeforeStart(self):
    event = threading.Event()
    event.set()
    with interrupts.BindEvent(event):
      with self.assertRaises(interrupts.InterruptedOperationError):
        downloader.Downloader(self.url, self.destination).Download()
    self.assertFileNotExists(self.destination)

  def testUserAgent(self):
    session = requests.Session()
    downloader.Downloader(self.url, self.destination, user_agent='tests',
                          session=session).Download()
    self.assertEqual('tests', session.headers['User-Agent'])

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

"""Tests for managedcloudsdk.core.interrupts."""

import threading

from managedcloudsdk.core import exceptions
from managedcloudsdk.core import interrupts
from managedcloudsdk.tests.lib import test_case


class InterruptsTest(test_case.Base):

  def testUnboundThreadIsNeverInterrupted(self):
    self.assertIsNone(interrupts.CurrentEvent())
    self.assertFalse(interrupts.IsInterrupted())
    interrupts.CheckInterrupted()

  def testBindEvent(self):
    event = threading.Event()
    with interrupts.BindEvent(event):
      self.assertIs(event, interrupts.CurrentEvent())
      interrupts.CheckInterrupted()
      event.set()
      with self.assertRaisesRegex(interrupts.InterruptedOperationError,
                                  'stop now'):
        interrupts.CheckInterrupted('stop now')
    self.assertIsNone(interrupts.CurrentEvent())

  def testNested(self):
    outer = threading.Event()
    inner = threading.Event()
    with interrupts.BindEvent(outer):
      with interrupts.BindEvent(inner):
        self.assertIs(inner, interrupts.CurrentEvent())
      self.assertIs(outer, interrupts.CurrentEvent())

  def testEventIsPerThread(self):
    event = threading.Event()
    event.set()
    seen = []
    with interrupts.BindEvent(event):
      worker = threading.Thread(
          target=lambda: seen.append(interrupts.IsInterrupted()))
      worker.start()
      worker.join()
    self.assertEqual([False], seen)


class ExceptionContextTest(test_case.Base):

  def testCauseChain(self):
    try:
      try:
        raise IOError('disk full')
      except IOError as e:
        raise exceptions.Error('Could not extract') from e
    except exceptions.Error as e:
      self.assertEqual('Could not extract: disk full',
                       exceptions.ExceptionContext(e))
      self.assertEqual(1, e.exit_code)

  def testExitCode(self):
    self.assertEqual(3, exceptions.Error('x', exit_code=3).exit_code)

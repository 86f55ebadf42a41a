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

"""Tests for managedcloudsdk.process.async_command."""

import threading

from managedcloudsdk.core import interrupts
from managedcloudsdk.process import async_command
from managedcloudsdk.tests.lib import test_case


class AsyncCommandWrapperTest(test_case.Base):

  def testResult(self):
    future = async_command.RunAsync(lambda a, b=0: a + b, 1, b=2)
    self.assertEqual(3, future.result(5))

  def testException(self):
    def Fail():
      raise ValueError('boom')
    future = async_command.AsyncCommandWrapper('failing').Execute(Fail)
    with self.assertRaisesRegex(ValueError, 'boom'):
      future.result(5)

  def testCancelInterruptsRunningOperation(self):
    started = threading.Event()

    def WaitForInterrupt():
      started.set()
      while True:
        interrupts.CheckInterrupted()
        threading.Event().wait(0.01)

    future = async_command.RunAsync(WaitForInterrupt)
    self.assertTrue(started.wait(5))
    self.assertFalse(future.cancel())
    self.assertTrue(future.IsInterruptRequested())
    with self.assertRaises(interrupts.InterruptedOperationError):
      future.result(5)

  def testEventIsBoundOnlyInWorker(self):
    future = async_command.RunAsync(interrupts.CurrentEvent)
    self.assertIs(future.interrupt_event, future.result(5))
    self.assertIsNone(interrupts.CurrentEvent())

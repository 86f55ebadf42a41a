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

"""Runs whole managed SDK operations on a worker thread."""

from concurrent import futures
import threading

from managedcloudsdk.core import interrupts
from managedcloudsdk.core import log


class OperationFuture(futures.Future):
  """A future for an operation that can be interrupted while it runs.

  cancel() works like it does for any future before the operation starts.
  Once it runs, cancel() still returns False but asks the worker to stop: the
  future then completes with interrupts.InterruptedOperationError.
  """

  def __init__(self):
    super(OperationFuture, self).__init__()
    self.interrupt_event = threading.Event()

  def cancel(self):
    self.interrupt_event.set()
    return super(OperationFuture, self).cancel()

  def IsInterruptRequested(self):
    return self.interrupt_event.is_set()


class AsyncCommandWrapper(object):
  """Starts a single-thread worker per operation."""

  def __init__(self, name='managed-cloud-sdk'):
    self._name = name

  def Execute(self, func, *args, **kwargs):
    """Runs func(*args, **kwargs) on a new worker thread.

    Args:
      func: The operation to run.
      *args: Positional arguments for func.
      **kwargs: Keyword arguments for func.

    Returns:
      OperationFuture, Resolves with the return value of func, or the exception
      it raised.
    """
    future = OperationFuture()
    worker = threading.Thread(target=self._Run,
                              args=(future, func, args, kwargs),
                              name=self._name)
    worker.daemon = True
    worker.start()
    return future

  @staticmethod
  def _Run(future, func, args, kwargs):
    if not future.set_running_or_notify_cancel():
      return
    with interrupts.BindEvent(future.interrupt_event):
      try:
        result = func(*args, **kwargs)
      except Exception as e:  # pylint: disable=broad-except
        # Delivered to the caller through the future.
        log.debug('Operation failed: %s', e, exc_info=True)
        future.set_exception(e)
      else:
        future.set_result(result)


def RunAsync(func, *args, **kwargs):
  """Runs an operation on its own worker and returns an OperationFuture."""
  return AsyncCommandWrapper().Execute(func, *args, **kwargs)

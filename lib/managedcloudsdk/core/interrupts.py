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

"""Cooperative interruption of long running operations.

Python threads cannot be interrupted from the outside, so every worker thread
that runs a managed SDK operation is bound to a threading.Event. Blocking
loops (download chunks, archive entries, waiting on a child process) poll
IsInterrupted() and stop with InterruptedOperationError when it is set.
"""

import contextlib
import threading

from managedcloudsdk.core import exceptions


_local = threading.local()


class InterruptedOperationError(exceptions.Error):
  """Raised when an operation stops because its thread was interrupted."""


def CurrentEvent():
  """Returns the interruption event bound to this thread, or None."""
  return getattr(_local, 'event', None)


def IsInterrupted():
  """Returns True if the current thread has been asked to stop."""
  event = CurrentEvent()
  return event is not None and event.is_set()


def CheckInterrupted(message='Operation was interrupted'):
  """Raises InterruptedOperationError if the current thread was interrupted.

  Args:
    message: str, The message for the raised error.

  Raises:
    InterruptedOperationError: If the interruption event is set.
  """
  if IsInterrupted():
    raise InterruptedOperationError(message)


@contextlib.contextmanager
def BindEvent(event):
  """Binds an interruption event to the current thread for a with block.

  Args:
    event: threading.Event, Set by another thread to request interruption.

  Yields:
    The bound event.
  """
  previous = CurrentEvent()
  _local.event = event
  try:
    yield event
  finally:
    _local.event = previous

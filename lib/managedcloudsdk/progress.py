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

"""Hierarchical progress reporting for managed Cloud SDK operations.

An operation reports progress on a root listener. Sub-tasks get a child
listener with an allocation: a share of the parent's work that the child
reports, rescaled from whatever units the sub-task counts in. For example a
download that is allocated 300 units of a 1000 unit install reports its bytes
on the child, and the parent sees at most 300 units from it.

All nodes live in a ProgressTree; listeners are lightweight handles into it.
"""

import threading

from managedcloudsdk.core import exceptions
from managedcloudsdk.core import log


# Total work value for tasks that cannot say how much work they have. Updates
# on such a listener are ignored and Done() reports the full allocation.
UNKNOWN = -1


class Error(exceptions.Error):
  """Base exception for the progress module."""


class InvalidAllocationError(Error):
  """Raised when a child is created with a negative allocation."""


class ProgressSink(object):
  """Receives the progress reported on the root of a tree."""

  def Start(self, message, total_work):
    pass

  def Update(self, work_done):
    pass

  def UpdateMessage(self, message):
    pass

  def Done(self):
    pass


class NoOpProgressSink(ProgressSink):
  """A sink that discards everything."""


class CallbackProgressSink(ProgressSink):
  """Forwards root progress to a callback as a fraction between 0 and 1.

  The callback has the same signature as the console ProgressBar callbacks,
  f(float). Nothing is reported for tasks of UNKNOWN size until they are done.
  """

  def __init__(self, callback):
    self._callback = callback
    self._total_work = UNKNOWN
    self._work_done = 0

  def Start(self, message, total_work):
    self._total_work = total_work
    self._work_done = 0
    self._callback(0.0)

  def Update(self, work_done):
    self._work_done += work_done
    if self._total_work > 0:
      self._callback(min(1.0, float(self._work_done) / self._total_work))

  def Done(self):
    self._callback(1.0)


class _Node(object):
  """The bookkeeping for one listener.

  Attributes:
    parent: int, The index of the parent node, None for the root.
    allocation: int, The share of the parent's work this node reports.
    total_work: int, The work announced by Start(), None before Start().
    work_done: int, The raw work reported by Update().
    allocated_work_done: int, The rescaled work already passed to the parent.
      Never exceeds allocation.
    done: bool, Whether Done() was called.
  """

  __slots__ = ('parent', 'allocation', 'total_work', 'work_done',
               'allocated_work_done', 'done')

  def __init__(self, parent, allocation):
    self.parent = parent
    self.allocation = allocation
    self.total_work = None
    self.work_done = 0
    self.allocated_work_done = 0
    self.done = False


class ProgressTree(object):
  """An arena of progress nodes that rescales child work into parent work.

  Node 0 is the root; its progress goes to the sink. Every method is safe to
  call from several threads.
  """

  ROOT = 0

  def __init__(self, sink=None):
    self._sink = sink or NoOpProgressSink()
    self._lock = threading.Lock()
    self._nodes = [_Node(parent=None, allocation=None)]

  def Root(self):
    return ProgressListener(self, ProgressTree.ROOT)

  def NewChild(self, index, allocation):
    """Adds a child node under index.

    Args:
      index: int, The parent node.
      allocation: int, The amount of the parent's work the child reports.

    Raises:
      InvalidAllocationError: If allocation is negative.

    Returns:
      int, The index of the new node.
    """
    if allocation < 0:
      raise InvalidAllocationError(
          'Progress allocation must not be negative, got [{0}]'.format(
              allocation))
    with self._lock:
      self._nodes.append(_Node(parent=index, allocation=allocation))
      return len(self._nodes) - 1

  def Start(self, index, message, total_work):
    with self._lock:
      node = self._nodes[index]
      node.total_work = total_work
      if node.parent is None:
        self._sink.Start(message, total_work)
      else:
        self._UpdateMessage(node.parent, message)

  def Update(self, index, work):
    with self._lock:
      self._Update(index, work)

  def UpdateMessage(self, index, message):
    with self._lock:
      self._UpdateMessage(index, message)

  def Done(self, index):
    with self._lock:
      node = self._nodes[index]
      if node.done:
        return
      node.done = True
      if node.parent is None:
        self._sink.Done()
        return
      remaining = node.allocation - node.allocated_work_done
      if remaining > 0:
        node.allocated_work_done = node.allocation
        self._Update(node.parent, remaining)

  def AllocatedWorkDone(self, index):
    with self._lock:
      return self._nodes[index].allocated_work_done

  def WorkDone(self, index):
    with self._lock:
      return self._nodes[index].work_done

  def _Update(self, index, work):
    node = self._nodes[index]
    if node.done or work <= 0:
      return
    node.work_done += work
    if node.parent is None:
      self._sink.Update(work)
      return
    if node.total_work is None or node.total_work <= 0:
      # Not started, UNKNOWN or empty: only Done() reports.
      return
    capped = min(node.work_done, node.total_work)
    normalized = (capped * node.allocation // node.total_work -
                  node.allocated_work_done)
    if normalized > 0:
      node.allocated_work_done += normalized
      self._Update(node.parent, normalized)

  def _UpdateMessage(self, index, message):
    # Messages from any node go straight to the root's sink.
    del index
    log.debug(message)
    self._sink.UpdateMessage(message)


class ProgressListener(object):
  """A handle to one node of a ProgressTree.

  Usage:
    listener.Start('Downloading', total_bytes)
    for chunk in chunks:
      listener.Update(len(chunk))
    listener.Done()
  """

  def __init__(self, tree, index):
    self._tree = tree
    self._index = index

  @property
  def index(self):
    return self._index

  @property
  def tree(self):
    return self._tree

  def Start(self, message, total_work):
    """Starts the task.

    Args:
      message: str, A description of the task.
      total_work: int, The units of work the task will report, or UNKNOWN.
    """
    self._tree.Start(self._index, message, total_work)

  def Update(self, work_done):
    """Reports work done since the last update.

    Args:
      work_done: int, The units of work done since the last call.
    """
    self._tree.Update(self._index, work_done)

  def UpdateMessage(self, message):
    self._tree.UpdateMessage(self._index, message)

  def Done(self):
    """Marks the task as complete. Calling it more than once has no effect."""
    self._tree.Done(self._index)

  def NewChild(self, allocation):
    """Creates a listener for a sub-task.

    Args:
      allocation: int, The units of this listener's work the sub-task covers.

    Returns:
      ProgressListener, The child listener.
    """
    return ProgressListener(self._tree, self._tree.NewChild(self._index,
                                                            allocation))


def NewRootListener(sink=None):
  """Returns the root listener of a fresh ProgressTree reporting to sink."""
  return ProgressTree(sink).Root()

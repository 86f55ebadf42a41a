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

"""Plain text info and progress bars for the console.

  #= Downloading Cloud SDK                                  =#
  #============================================================#
"""

from managedcloudsdk import progress
from managedcloudsdk.core import log


DEFAULT_TOTAL_TICKS = 60


def _FitLabel(label, width):
  """Pads or truncates label to exactly width characters."""
  if len(label) > width:
    return label[:width - 3] + '...'
  return label + ' ' * (width - len(label))


class InfoBar(object):
  """A single line of text framed to the width of a ProgressBar."""

  def __init__(self, text, stream=None, total_ticks=DEFAULT_TOTAL_TICKS):
    self._stream = stream or log.status
    self._text = _FitLabel(text, total_ticks - 4)

  def Show(self):
    self._stream.write('#= {0} =#\n'.format(self._text))
    self._stream.flush()


class ProgressBar(object):
  """A simple progress bar for tracking completion of an action.

  This progress bar works without having to use any control characters.  It
  prints the action that is being done, and then fills a progress bar below it.
  You should not print anything else on the output stream during this time as it
  will cause the progress bar to break on lines.

  This class can also be used in a context manager.
  """

  def __init__(self, label, stream=None, total_ticks=DEFAULT_TOTAL_TICKS):
    """Creates a progress bar for the given action.

    Args:
      label: str, The action that is being performed.
      stream: The output stream to write to, log.status by default.
      total_ticks: int, The number of ticks wide to make the progress bar.
    """
    self._stream = stream or log.status
    self._ticks_written = 0
    self._total_ticks = total_ticks
    self._info = InfoBar(label, stream=self._stream, total_ticks=total_ticks)

  def Start(self):
    """Starts the progress bar by writing the label and the left edge."""
    self._info.Show()
    self._Write('#')
    self._ticks_written = 0

  def SetProgress(self, progress_factor):
    """Sets the current progress of the task.

    This method has no effect if the progress bar has already progressed past
    the progress you call it with (since the progress bar cannot back up).

    Args:
      progress_factor: float, The current progress as a float between 0 and 1.
    """
    expected_ticks = int(self._total_ticks * progress_factor)
    new_ticks = expected_ticks - self._ticks_written
    # Don't allow us to go over 100%.
    new_ticks = min(new_ticks, self._total_ticks - self._ticks_written)

    if new_ticks > 0:
      self._Write('=' * new_ticks)
      self._ticks_written += new_ticks
      if expected_ticks >= self._total_ticks:
        self._Write('#\n')
      self._stream.flush()

  def Finish(self):
    """Mark the progress as done."""
    self.SetProgress(1)

  def _Write(self, msg):
    self._stream.write(msg)

  def __enter__(self):
    self.Start()
    return self

  def __exit__(self, *args):
    self.Finish()


class ConsoleProgressSink(progress.ProgressSink):
  """Draws the root of a progress tree on the console.

  Tasks of known size get a ProgressBar, tasks of UNKNOWN size only an
  InfoBar. Messages from sub-tasks are shown as info bars until a bar starts
  drawing, and are only logged after that.
  """

  def __init__(self, stream=None, total_ticks=DEFAULT_TOTAL_TICKS):
    self._stream = stream or log.status
    self._total_ticks = total_ticks
    self._bar = None
    self._total_work = progress.UNKNOWN
    self._work_done = 0

  def Start(self, message, total_work):
    self._total_work = total_work
    self._work_done = 0
    if total_work > 0:
      self._bar = ProgressBar(message, stream=self._stream,
                              total_ticks=self._total_ticks)
      self._bar.Start()
    else:
      self._bar = None
      InfoBar(message, stream=self._stream,
              total_ticks=self._total_ticks).Show()

  def Update(self, work_done):
    self._work_done += work_done
    if self._bar:
      self._bar.SetProgress(float(self._work_done) / self._total_work)

  def UpdateMessage(self, message):
    if not self._bar:
      InfoBar(message, stream=self._stream,
              total_ticks=self._total_ticks).Show()

  def Done(self):
    if self._bar:
      self._bar.Finish()
      self._bar = None

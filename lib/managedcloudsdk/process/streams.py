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

"""Background consumers for child process output streams."""

from concurrent import futures
import threading

from managedcloudsdk.core import log


def LogMessageListener(message):
  """The default message listener, sends output to the debug log."""
  log.debug(message.rstrip('\n'))


class LineHandler(object):
  """Receives the decoded lines of one stream."""

  def HandleLine(self, line):
    raise NotImplementedError()

  def Result(self):
    return None


class CollectingLineHandler(LineHandler):
  """Saves every line; the result is the text with newline line endings."""

  def __init__(self):
    self._lines = []

  def HandleLine(self, line):
    self._lines.append(line)

  def Result(self):
    return ''.join(line + '\n' for line in self._lines)


class MessageForwardingLineHandler(LineHandler):
  """Passes every line, newline terminated, to a message listener."""

  def __init__(self, message_listener=None):
    """Creates the handler.

    Args:
      message_listener: f(str), Called with each line of output. Defaults to
        LogMessageListener.
    """
    self._message_listener = message_listener or LogMessageListener

  def HandleLine(self, line):
    self._message_listener(line + '\n')


class AsyncStreamHandler(object):
  """Consumes a binary stream line by line on a daemon thread.

  The outcome is only visible through the future returned by GetResult():
  the line handler's result once the stream is exhausted, or the exception
  that stopped the reader.
  """

  def __init__(self, line_handler, name='stream-reader'):
    self._line_handler = line_handler
    self._name = name
    self._future = futures.Future()
    self._thread = None

  def Handle(self, stream):
    """Starts consuming stream in the background.

    Args:
      stream: A binary file-like object, for example Popen.stdout. It is
        closed when fully read.
    """
    if self._thread is not None:
      raise ValueError('A stream handler can only consume one stream.')
    self._future.set_running_or_notify_cancel()
    self._thread = threading.Thread(
        target=self._Consume, args=(stream,), name=self._name)
    self._thread.daemon = True
    self._thread.start()

  def GetResult(self):
    """Returns a concurrent.futures.Future for the handler's result."""
    return self._future

  def _Consume(self, stream):
    try:
      with stream:
        for raw in iter(stream.readline, b''):
          line = raw.decode('utf-8', 'replace').rstrip('\r\n')
          self._line_handler.HandleLine(line)
      result = self._line_handler.Result()
    except Exception as e:  # pylint: disable=broad-except
      # The future is the only channel back to the caller.
      self._future.set_exception(e)
    else:
      self._future.set_result(result)

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

"""Running commands either for their side effects or for their output."""

import collections

from managedcloudsdk.core import exceptions
from managedcloudsdk.process import process_executor
from managedcloudsdk.process import streams


class Error(exceptions.Error):
  """Base exception for the command module."""


class CommandExitError(Error):
  """Raised when a command exits with a non-zero exit code."""

  def __init__(self, exit_code, command, stdout=None, stderr=None):
    message = 'Command [{0}] exited with non-zero exit code [{1}]'.format(
        ' '.join(command), exit_code)
    details = '\n'.join(x for x in (stdout, stderr) if x)
    if details:
      message += ':\n' + details
    super(CommandExitError, self).__init__(message)
    self.exit_code = exit_code
    self.command = list(command)
    self.stdout = stdout
    self.stderr = stderr


class CommandExecutionError(Error):
  """Raised when the output of a command could not be collected."""


class CommandResult(collections.namedtuple(
    'CommandResult', ['exit_code', 'stdout', 'stderr'])):
  """The outcome of one process: its exit code and captured output."""


def _GetStreamResult(handler, name):
  try:
    return handler.GetResult().result()
  except (IOError, OSError, ValueError) as e:
    raise CommandExecutionError(
        'Could not read the {0} of the process: {1}'.format(name, e)) from e


class CommandRunner(object):
  """Runs commands, forwarding their output line by line to a listener."""

  def __init__(self, executor=None):
    self._executor = executor or process_executor.ProcessExecutor()

  def Run(self, command, working_directory=None, environment=None,
          message_listener=None):
    """Runs a command and waits for it to complete.

    Args:
      command: [str], The command and its arguments.
      working_directory: str, The directory to run in, or None.
      environment: {str: str}, Overlay on the inherited environment, or None.
      message_listener: f(str), Receives every line of stdout and stderr.

    Raises:
      CommandExitError: If the command exits with a non-zero code.
      CommandExecutionError: If the output could not be read.
      process_executor.ProcessStartError: If the command could not start.
      interrupts.InterruptedOperationError: If the thread was interrupted.
    """
    stdout = streams.AsyncStreamHandler(
        streams.MessageForwardingLineHandler(message_listener), name='stdout')
    stderr = streams.AsyncStreamHandler(
        streams.MessageForwardingLineHandler(message_listener), name='stderr')
    exit_code = self._executor.Run(command, stdout, stderr,
                                   working_directory=working_directory,
                                   environment=environment)
    _GetStreamResult(stdout, 'stdout')
    _GetStreamResult(stderr, 'stderr')
    if exit_code != 0:
      raise CommandExitError(exit_code, command)


class CommandCaller(object):
  """Runs commands and returns what they print on stdout."""

  def __init__(self, executor=None):
    self._executor = executor or process_executor.ProcessExecutor()

  def Execute(self, command, working_directory=None, environment=None):
    """Runs a command and collects its output whatever the exit code.

    Args:
      command: [str], The command and its arguments.
      working_directory: str, The directory to run in, or None.
      environment: {str: str}, Overlay on the inherited environment, or None.

    Raises:
      CommandExecutionError: If the output could not be read.

    Returns:
      CommandResult, The exit code and output of the command.
    """
    stdout = streams.AsyncStreamHandler(
        streams.CollectingLineHandler(), name='stdout')
    stderr = streams.AsyncStreamHandler(
        streams.CollectingLineHandler(), name='stderr')
    exit_code = self._executor.Run(command, stdout, stderr,
                                   working_directory=working_directory,
                                   environment=environment)
    return CommandResult(exit_code=exit_code,
                         stdout=_GetStreamResult(stdout, 'stdout'),
                         stderr=_GetStreamResult(stderr, 'stderr'))

  def Call(self, command, working_directory=None, environment=None):
    """Runs a command and returns its standard output.

    Args:
      command: [str], The command and its arguments.
      working_directory: str, The directory to run in, or None.
      environment: {str: str}, Overlay on the inherited environment, or None.

    Raises:
      CommandExitError: If the command exits with a non-zero code. The error
        carries both captured streams.

    Returns:
      str, Everything the command wrote to stdout.
    """
    result = self.Execute(command, working_directory=working_directory,
                          environment=environment)
    if result.exit_code != 0:
      raise CommandExitError(result.exit_code, command,
                             stdout=result.stdout, stderr=result.stderr)
    return result.stdout

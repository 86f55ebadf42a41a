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

"""Runs child processes with their output piped to stream handlers."""

import atexit
import os
import re
import signal
import subprocess
import threading

from managedcloudsdk.core import exceptions
from managedcloudsdk.core import interrupts
from managedcloudsdk.core import log
from managedcloudsdk.core.util import platforms


# Seconds between checks for interruption while a child runs.
POLL_INTERVAL = 0.1


class Error(exceptions.Error):
  """Base exception for the process_executor module."""


class ProcessStartError(Error):
  """Raised when the operating system refuses to start a child process."""


class _RunningProcesses(object):
  """Children that must not outlive the interpreter."""

  def __init__(self):
    self._lock = threading.Lock()
    self._processes = {}

  def Add(self, p, os_name):
    with self._lock:
      self._processes[p] = os_name

  def Discard(self, p):
    with self._lock:
      self._processes.pop(p, None)

  def KillAll(self):
    with self._lock:
      processes = list(self._processes.items())
      self._processes.clear()
    for p, os_name in processes:
      log.debug('Killing process [%s] at exit', p.pid)
      try:
        KillSubprocess(p, os_name)
      except (OSError, RuntimeError) as e:
        log.debug('Could not kill process [%s]: %s', p.pid, e)


_running_processes = _RunningProcesses()
atexit.register(_running_processes.KillAll)


def _GetToolArgs(interpreter, interpreter_args, executable_path, *args):
  tool_args = []
  if interpreter:
    tool_args.append(interpreter)
  if interpreter_args:
    tool_args.extend(interpreter_args)
  tool_args.append(executable_path)
  tool_args.extend(list(args))
  return tool_args


def ArgsForCMDTool(executable_path, *args):
  """Constructs an argument list for calling the cmd interpreter.

  Args:
    executable_path: str, The full path to the cmd script.
    *args: args for the command

  Returns:
    An argument list to execute the cmd interpreter
  """
  return _GetToolArgs('cmd.exe', ['/c'], executable_path, *args)


def _GetToolEnv(env=None):
  """Generate the environment that should be used for the subprocess.

  Args:
    env: {str: str}, Variables to add to, or with a None value remove from, a
      copy of the current environment.

  Returns:
    The environment for the child.
  """
  tool_env = dict(os.environ)
  for name, value in (env or {}).items():
    _AddOrRemoveVar(tool_env, name, value)
  return tool_env


def _AddOrRemoveVar(d, name, value):
  if value is None:
    d.pop(name, None)
  else:
    d[name] = value


class ProcessExecutor(object):
  """Starts one child per Run() and waits for it."""

  def __init__(self, os_name=None):
    """Creates the executor.

    Args:
      os_name: platforms.OperatingSystem._OS, The platform commands are built
        for. Defaults to the current one.
    """
    self._os_name = os_name or platforms.OperatingSystem.Current()

  def _GetCommand(self, args):
    args = list(args)
    if (self._os_name == platforms.OperatingSystem.WINDOWS and
        os.path.basename(args[0]).lower() not in ('cmd', 'cmd.exe')):
      return ArgsForCMDTool(*args)
    return args

  def Run(self, args, stdout_handler, stderr_handler, working_directory=None,
          environment=None):
    """Runs a command and waits for it to exit.

    Both stream handlers are attached before waiting, so a child that fills
    its pipes never blocks.

    Args:
      args: [str], The command and its arguments.
      stdout_handler: streams.AsyncStreamHandler, Consumes standard output.
      stderr_handler: streams.AsyncStreamHandler, Consumes standard error.
      working_directory: str, The directory to run in, or None for the current
        one.
      environment: {str: str}, Overlay on the inherited environment.

    Raises:
      ProcessStartError: If the child could not be started.
      interrupts.InterruptedOperationError: If the calling thread was
        interrupted while the child ran. The child is killed.

    Returns:
      int, The exit code of the child.
    """
    command = self._GetCommand(args)
    log.debug('Executing command: %s', command)
    if working_directory:
      log.debug('Working directory: %s', working_directory)
    try:
      p = subprocess.Popen(command, cwd=working_directory,
                           env=_GetToolEnv(environment),
                           stdin=subprocess.DEVNULL,
                           stdout=subprocess.PIPE,
                           stderr=subprocess.PIPE)
    except OSError as e:
      raise ProcessStartError(
          'Could not start process [{0}]: {1}'.format(command[0], e)) from e

    _running_processes.Add(p, self._os_name)
    try:
      stdout_handler.Handle(p.stdout)
      stderr_handler.Handle(p.stderr)
      exit_code = self._Wait(p)
    finally:
      _running_processes.Discard(p)
    log.debug('Process [%s] exited with [%s]', command[0], exit_code)
    return exit_code

  def _Wait(self, p):
    try:
      while True:
        try:
          return p.wait(timeout=POLL_INTERVAL)
        except subprocess.TimeoutExpired:
          if interrupts.IsInterrupted():
            break
    except KeyboardInterrupt:
      pass
    log.debug('Interrupted, killing process [%s]', p.pid)
    KillSubprocess(p, self._os_name)
    raise interrupts.InterruptedOperationError(
        'Process [{0}] was interrupted'.format(p.args[0]))


def KillSubprocess(p, os_name):
  """Kills a subprocess using an OS specific method when python can't do it.

  This also kills all processes rooted in this process.

  Args:
    p: the Popen object to kill
    os_name: platforms.OperatingSystem._OS, The platform p runs on.

  Raises:
    RuntimeError: if it fails to kill the process
  """
  if p.poll() is not None:
    # already dead
    return

  if os_name == platforms.OperatingSystem.WINDOWS:
    # Consume stdout so it doesn't show in the shell
    taskkill_process = subprocess.Popen(
        ['taskkill', '/F', '/T', '/PID', str(p.pid)],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE)
    (stdout, stderr) = taskkill_process.communicate()
    stderr = stderr.decode('utf-8', 'replace')
    if taskkill_process.returncode != 0 and _IsTaskKillError(stderr):
      raise RuntimeError(
          'Failed to call taskkill on pid {0}\nstdout: {1}\nstderr: {2}'
          .format(p.pid, stdout, stderr))
  else:
    for pid in reversed(_GetDescendantPids(p.pid)):
      _KillPID(pid)
    _KillPopen(p)


def _GetDescendantPids(root_pid):
  """Lists root_pid's descendants, parents before children."""
  try:
    get_pids_process = subprocess.Popen(
        ['ps', '-e', '-o', 'ppid=', '-o', 'pid='],
        stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    (stdout, _) = get_pids_process.communicate()
  except OSError:
    return []
  pid_map = {}
  for line in stdout.decode('utf-8', 'replace').strip().splitlines():
    parts = line.split()
    if len(parts) != 2:
      continue
    ppid, pid = int(parts[0]), int(parts[1])
    pid_map.setdefault(ppid, []).append(pid)

  descendants = []
  to_process = [root_pid]
  while to_process:
    children = pid_map.get(to_process.pop(), [])
    to_process.extend(children)
    descendants.extend(children)
  return descendants


def _IsTaskKillError(stderr):
  """Returns whether the stderr output of taskkill indicates it failed.

  Args:
    stderr: the string error output of the taskkill command

  Returns:
    True iff the stderr is considered to represent an actual error.
  """
  non_error_reasons = (
      # The process might be in the midst of exiting.
      'Access is denied.',
      'The operation attempted is not supported.',
      'There is no running instance of the task.',
      'There is no running instance of the task to terminate.')
  non_error_patterns = (
      re.compile(r'The process "\d+" not found\.'),)
  for reason in non_error_reasons:
    if reason in stderr:
      return False
  for pattern in non_error_patterns:
    if pattern.search(stderr):
      return False
  return True


def _KillPID(pid):
  """Sends SIGTERM to a process that is not our direct child."""
  try:
    os.kill(pid, signal.SIGTERM)
  except ProcessLookupError:
    # Already gone.
    pass


def _KillPopen(p):
  """Kills the given child with SIGTERM, then with SIGKILL if it doesn't stop.

  Args:
    p: The Popen object of the child.
  """
  p.terminate()
  try:
    p.wait(timeout=3)
  except subprocess.TimeoutExpired:
    p.kill()
    p.wait()

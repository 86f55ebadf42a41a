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

"""Some general file utilities used by the managed Cloud SDK."""

import errno
import logging
import os
import shutil
import stat
import sys
import tempfile
import time

from managedcloudsdk.core import exceptions

NUM_RETRIES = 10

# Windows error codes worth retrying: access denied, file in use, directory
# not empty.
RETRY_ERROR_CODES = [5, 32, 145]


class Error(exceptions.Error):
  """Base exception for the files module."""


def MakeDir(path, mode=0o777):
  """Creates the given directory and its parents and does not fail if it exists.

  Args:
    path: str, The path of the directory to create.
    mode: int, The permissions to give the created directories. 0777 is the
        default mode for os.makedirs(), allowing reading, writing, and listing
        by all users on the machine.

  Raises:
    Error: if the operation fails and we can provide extra information.
    OSError: if the operation fails.
  """
  try:
    os.makedirs(path, mode=mode)
  except OSError as ex:
    base_msg = 'Could not create directory [{0}]: '.format(path)
    if ex.errno == errno.EEXIST and os.path.isdir(path):
      pass
    elif ex.errno == errno.EEXIST and os.path.isfile(path):
      raise Error(base_msg + 'A file exists at that location.\n\n')
    elif ex.errno == errno.EACCES:
      raise Error(
          base_msg + 'Permission denied.\n\n' +
          ('Please verify that you have permissions to write to the parent '
           'directory.'))
    else:
      raise


def _WaitForRetry(retries_left):
  """Sleeps for a period of time based on the retry count.

  Args:
    retries_left: int, The number of retries remaining.  Should be in the range
      of NUM_RETRIES - 1 to 0.
  """
  time_to_wait = .1 * (2 * (NUM_RETRIES - retries_left))
  logging.debug('Waiting for retry: [%s]', time_to_wait)
  time.sleep(time_to_wait)


def _ShouldRetryOperation(func, exc):
  """Matches the Windows errors that go away if the operation is retried."""
  if func not in (os.remove, os.unlink, os.rmdir):
    return False
  return getattr(exc, 'winerror', None) in RETRY_ERROR_CODES


def _RetryOperation(exc, func, args,
                    retry_test_function=lambda func, exc: True):
  """Attempts to retry the failed file operation.

  Args:
    exc: OSError, The error from the first attempt.
    func: function, The function that failed.
    args: (str, ...), The tuple of args that should be passed to func when
      retrying.
    retry_test_function: The function to call to determine if a retry should be
      attempted.  Takes the function that is being retried as well as the
      current error.

  Returns:
    True if the operation eventually succeeded or False if it continued to fail
    for all retries.
  """
  retries_left = NUM_RETRIES
  while retries_left > 0 and retry_test_function(func, exc):
    logging.debug('Retrying file system operation: %s, %s, %s, retries_left=%s',
                  func, args, exc, retries_left)
    retries_left -= 1
    try:
      _WaitForRetry(retries_left)
      func(*args)
      return True
    except OSError as e:
      exc = e
  return False


def _HandleRemoveError(func, failed_path, exc):
  """A function to pass as the onexc arg to rmtree for handling errors.

  Args:
    func: function, The function that failed.
    failed_path: str, The path of the file the error occurred on.
    exc: OSError, The error raised by func.
  """
  logging.debug('Handling file system error: %s, %s, %s',
                func, failed_path, exc)

  # Access denied on Windows happens when deleting a readonly file.
  if getattr(exc, 'winerror', None) == 5:
    os.chmod(failed_path, stat.S_IWUSR)

  if not _RetryOperation(exc, func, (failed_path,), _ShouldRetryOperation):
    raise exc


def RmTree(path):
  """Calls shutil.rmtree() with error handling to fix Windows problems.

  It also ensures that the top level directory deletion is actually reflected
  in the file system before this returns.

  Args:
    path: str, The path to remove.
  """
  if sys.version_info >= (3, 12):
    shutil.rmtree(path, onexc=_HandleRemoveError)
  else:
    # onerror receives sys.exc_info() instead of the exception.
    shutil.rmtree(path, onerror=lambda func, failed_path, exc_info:
                  _HandleRemoveError(func, failed_path, exc_info[1]))
  retries_left = NUM_RETRIES
  while os.path.isdir(path) and retries_left > 0:
    logging.debug('Waiting for directory to disappear: %s', path)
    retries_left -= 1
    _WaitForRetry(retries_left)


def _DestInSrc(src, dst):
  src = os.path.abspath(src)
  dst = os.path.abspath(dst)
  if not src.endswith(os.path.sep):
    src += os.path.sep
  if not dst.endswith(os.path.sep):
    dst += os.path.sep
  return dst.startswith(src)


def MoveDir(src, dst):
  """Recursively moves a directory to another location.

  The src must be a directory, and the dst must not exist.  It will try to do
  an os.rename() of the directory.  If that fails, the tree will be copied to
  the new location and then deleted from the old location.

  Args:
    src: str, The directory path to move.
    dst: str, The path to move the directory to.

  Raises:
    Error: If the src or dst directories are not valid.
  """
  if not os.path.isdir(src):
    raise Error("Source path '{0}' must be a directory".format(src))
  if os.path.exists(dst):
    raise Error("Destination path '{0}' already exists".format(dst))
  if _DestInSrc(src, dst):
    raise Error("Cannot move a directory '{0}' into itself '{1}'."
                .format(src, dst))
  try:
    logging.debug('Attempting to move directory [%s] to [%s]', src, dst)
    try:
      os.rename(src, dst)
    except OSError as e:
      if not _RetryOperation(e, os.rename, (src, dst)):
        raise
  except OSError as e:
    logging.debug('Directory rename failed.  Falling back to copy. [%s]', e)
    shutil.copytree(src, dst, symlinks=True)
    RmTree(src)


def DeleteQuietly(path):
  """Deletes a file or directory tree, logging instead of raising on failure.

  Args:
    path: str, The file or directory to delete.

  Returns:
    bool, True if nothing is left at path.
  """
  try:
    if os.path.isdir(path) and not os.path.islink(path):
      RmTree(path)
    elif os.path.lexists(path):
      os.remove(path)
  except OSError as e:
    logging.debug('Could not delete [%s]: %s', path, e)
    return False
  return True


class TemporaryDirectory(object):
  """A class to easily create and dispose of temporary directories.

  Securely creates a directory for temporary use.  This class can be used with
  a context manager (the with statement) to ensure cleanup in exceptional
  situations.
  """

  def __init__(self, parent=None, prefix='tmp'):
    """Creates the directory.

    Args:
      parent: str, The directory to create the temporary directory in, or None
        for the system default.
      prefix: str, A prefix for the directory name.
    """
    self.__temp_dir = tempfile.mkdtemp(dir=parent, prefix=prefix)

  @property
  def path(self):
    return self.__temp_dir

  def __enter__(self):
    return self.path

  def __exit__(self, prev_exc_type, prev_exc_val, prev_exc_trace):
    try:
      self.Close()
    except OSError:
      if not prev_exc_type:
        raise
      logging.debug('Could not remove temporary directory while another '
                    'exception was active', exc_info=True)
    # always return False so any exceptions will be re-raised
    return False

  def Close(self):
    if self.path and os.path.isdir(self.path):
      RmTree(self.path)
      self.__temp_dir = None
      return True
    return False

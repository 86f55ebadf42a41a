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

"""Base exceptions for the managed Cloud SDK library."""


class _Error(Exception):
  """A base exception for all errors raised by this library."""


class Error(_Error):
  """A base exception for all user recoverable errors.

  Any exception that extends this class will not be printed with a stack trace
  by the command line front end, only the message.
  """

  def __init__(self, *args, **kwargs):
    """Initialize an Error.

    Args:
      *args: The positional exception args.
      **kwargs: Keyword args. `exit_code` is the process exit code the command
        line front end should use when this error is not caught.
    """
    super(Error, self).__init__(*args)
    self.exit_code = kwargs.get('exit_code', 1)


def ExceptionContext(exc):
  """Formats an exception and its cause chain for logging.

  Args:
    exc: Exception, The exception to describe.

  Returns:
    str, The exception messages, outermost first, separated by ': '.
  """
  parts = []
  seen = set()
  while exc is not None and id(exc) not in seen:
    seen.add(id(exc))
    parts.append(str(exc) or type(exc).__name__)
    exc = exc.__cause__
  return ': '.join(parts)

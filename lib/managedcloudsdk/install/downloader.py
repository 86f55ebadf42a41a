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

"""Downloads a single Cloud SDK archive."""

import os

from managedcloudsdk import progress
from managedcloudsdk.core import exceptions
from managedcloudsdk.core import interrupts
from managedcloudsdk.core import log
from managedcloudsdk.core import requests as core_requests
from managedcloudsdk.core.util import files as file_utils

import requests


WRITE_BUFFER_SIZE = 8 * 1024


class Error(exceptions.Error):
  """Base exception for the downloader module."""


class FileAlreadyExistsError(Error):
  """Raised when the download destination already exists."""


class DownloadError(Error):
  """Raised when the archive could not be fetched or written."""


class Downloader(object):
  """Fetches one URL into a file that must not exist yet."""

  def __init__(self, url, destination_file, user_agent=None,
               progress_listener=None, message_listener=None, timeout='unset',
               session=None):
    """Creates the downloader.

    Args:
      url: str, The URL to download.
      destination_file: str, The file to create.
      user_agent: str, The User-Agent header to send.
      progress_listener: progress.ProgressListener, Receives the bytes written.
      message_listener: f(str), Receives status messages.
      timeout: float, The socket timeout in seconds, None for no timeout. By
        default the managed_sdk/download_timeout property is used.
      session: requests.Session, The session to download with.
    """
    self._url = url
    self._destination_file = destination_file
    self._progress_listener = (progress_listener or
                               progress.NewRootListener())
    self._message_listener = message_listener or (lambda message: None)
    self._timeout = (core_requests.GetDefaultTimeout() if timeout == 'unset'
                     else timeout)
    self._session = core_requests.GetSession(user_agent=user_agent,
                                             session=session)

  @property
  def destination_file(self):
    return self._destination_file

  def Download(self):
    """Downloads the URL.

    Raises:
      FileAlreadyExistsError: If the destination exists. It is left untouched.
      DownloadError: If the request or writing the file fails. Nothing is left
        at the destination.
      interrupts.InterruptedOperationError: If the thread was interrupted.
        Nothing is left at the destination.

    Returns:
      str, The path of the downloaded file.
    """
    if os.path.exists(self._destination_file):
      raise FileAlreadyExistsError(
          'Download destination [{0}] already exists'.format(
              self._destination_file))
    file_utils.MakeDir(os.path.dirname(os.path.abspath(self._destination_file)))
    interrupts.CheckInterrupted('Download of [{0}] was interrupted'.format(
        self._url))

    self._message_listener('Downloading {0}\n'.format(self._url))
    log.debug('Downloading [%s] to [%s]', self._url, self._destination_file)
    try:
      response = self._session.get(self._url, timeout=self._timeout,
                                   stream=True)
      response.raise_for_status()
    except requests.exceptions.RequestException as e:
      raise DownloadError(
          'Could not download [{0}]: {1}'.format(self._url, e)) from e

    with response:
      total_size = _ContentLength(response)
      self._progress_listener.Start('Downloading ' + self._url,
                                    total_size)
      try:
        fp = open(self._destination_file, 'xb')
      except FileExistsError:
        raise FileAlreadyExistsError(
            'Download destination [{0}] already exists'.format(
                self._destination_file))
      except (IOError, OSError) as e:
        raise DownloadError('Could not write [{0}]: {1}'.format(
            self._destination_file, e)) from e

      try:
        with fp:
          for chunk in response.iter_content(chunk_size=WRITE_BUFFER_SIZE):
            interrupts.CheckInterrupted(
                'Download of [{0}] was interrupted'.format(self._url))
            fp.write(chunk)
            self._progress_listener.Update(len(chunk))
      except interrupts.InterruptedOperationError:
        self._DeletePartialFile()
        raise
      except (requests.exceptions.RequestException, IOError, OSError) as e:
        self._DeletePartialFile()
        raise DownloadError(
            'Could not download [{0}]: {1}'.format(self._url, e)) from e
      except BaseException:
        self._DeletePartialFile()
        raise

    self._progress_listener.Done()
    return self._destination_file

  def _DeletePartialFile(self):
    log.debug('Deleting partial download [%s]', self._destination_file)
    file_utils.DeleteQuietly(self._destination_file)


def _ContentLength(response):
  try:
    length = int(response.headers.get('Content-Length'))
  except (TypeError, ValueError):
    return progress.UNKNOWN
  return length if length >= 0 else progress.UNKNOWN

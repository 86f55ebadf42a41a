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

"""Extraction of Cloud SDK archives.

Only directories and regular files are extracted. Links and special files
are skipped, the Cloud SDK archives do not need them.
"""

import os
import shutil
import stat
import tarfile
import zipfile

from managedcloudsdk import progress
from managedcloudsdk.core import exceptions
from managedcloudsdk.core import interrupts
from managedcloudsdk.core import log
from managedcloudsdk.core.util import files as file_utils


# Zip entries made on Unix keep their mode in the high bits of external_attr.
_ZIP_UNIX_SYSTEM = 3


class Error(exceptions.Error):
  """Base exception for the extract module."""


class UnknownArchiveTypeError(Error):
  """Raised for archives that are neither .tar.gz nor .zip."""

  def __init__(self, archive):
    super(UnknownArchiveTypeError, self).__init__(
        'Unknown archive type [{0}]: expected a .tar.gz or .zip file'.format(
            archive))
    self.archive = archive


class ExtractionError(Error):
  """Raised when an archive cannot be read or its contents written."""


class UnsafeArchiveEntryError(Error):
  """Raised for an entry that would be written outside the destination."""


def _ResolveTarget(destination, name):
  """Returns the path for entry name, refusing paths that escape destination."""
  root = os.path.realpath(destination)
  target = os.path.realpath(os.path.join(root, name))
  if target != root and not target.startswith(root + os.sep):
    raise UnsafeArchiveEntryError(
        'Archive entry [{0}] is outside of [{1}]'.format(name, destination))
  return target


def _SetMode(path, mode):
  """Restores POSIX permission bits where the platform has them."""
  if os.name != 'posix' or not mode:
    return
  os.chmod(path, stat.S_IMODE(mode))


def _SetDirectoryModes(directory_modes):
  """Restores directory permissions once every entry has been written."""
  for path, mode in sorted(directory_modes, reverse=True):
    _SetMode(path, mode)


def _CopyEntry(source, target):
  file_utils.MakeDir(os.path.dirname(target))
  with open(target, 'wb') as out:
    shutil.copyfileobj(source, out)


class ExtractorProvider(object):
  """Extracts one kind of archive."""

  def Extract(self, archive, destination, progress_listener):
    raise NotImplementedError()


class TarGzExtractorProvider(ExtractorProvider):
  """Extracts .tar.gz archives, streaming one entry at a time."""

  def Extract(self, archive, destination, progress_listener):
    progress_listener.Start('Extracting archive: ' + archive, progress.UNKNOWN)
    directory_modes = []
    with tarfile.open(archive, mode='r|gz') as tar:
      for member in tar:
        interrupts.CheckInterrupted(
            'Extraction of [{0}] was interrupted'.format(archive))
        target = _ResolveTarget(destination, member.name)
        progress_listener.UpdateMessage(target)
        if member.isdir():
          file_utils.MakeDir(target)
          directory_modes.append((target, member.mode))
        elif member.isfile():
          source = tar.extractfile(member)
          with source:
            _CopyEntry(source, target)
          _SetMode(target, member.mode)
        else:
          log.debug('Skipping archive entry [%s] of type [%r]',
                    member.name, member.type)
    _SetDirectoryModes(directory_modes)
    progress_listener.Done()


class ZipExtractorProvider(ExtractorProvider):
  """Extracts .zip archives."""

  def Extract(self, archive, destination, progress_listener):
    with zipfile.ZipFile(archive) as zf:
      entries = zf.infolist()
      progress_listener.Start('Extracting archive: ' + archive, len(entries))
      directory_modes = []
      for info in entries:
        interrupts.CheckInterrupted(
            'Extraction of [{0}] was interrupted'.format(archive))
        target = _ResolveTarget(destination, info.filename)
        progress_listener.UpdateMessage(target)
        mode = None
        if info.create_system == _ZIP_UNIX_SYSTEM:
          mode = info.external_attr >> 16
        if info.is_dir():
          file_utils.MakeDir(target)
          directory_modes.append((target, mode))
        elif mode is None or stat.S_ISREG(mode) or not stat.S_IFMT(mode):
          with zf.open(info) as source:
            _CopyEntry(source, target)
          _SetMode(target, mode)
        else:
          log.debug('Skipping archive entry [%s] with mode [%o]',
                    info.filename, mode)
        progress_listener.Update(1)
      _SetDirectoryModes(directory_modes)
    progress_listener.Done()


class Extractor(object):
  """Extracts one archive into a destination directory with a provider."""

  def __init__(self, archive, destination, provider, progress_listener=None):
    self._archive = archive
    self._destination = destination
    self._provider = provider
    self._progress_listener = (progress_listener or
                               progress.NewRootListener())

  @property
  def provider(self):
    return self._provider

  def Extract(self):
    """Extracts the archive.

    Raises:
      ExtractionError: If the archive is corrupt or a file cannot be written.
      UnsafeArchiveEntryError: If an entry points outside the destination.
      interrupts.InterruptedOperationError: If the thread was interrupted.

    Returns:
      str, The destination directory.
    """
    log.debug('Extracting [%s] to [%s]', self._archive, self._destination)
    try:
      file_utils.MakeDir(self._destination)
      self._provider.Extract(self._archive, self._destination,
                             self._progress_listener)
    except (tarfile.TarError, zipfile.BadZipFile, EOFError, IOError,
            OSError, file_utils.Error) as e:
      raise ExtractionError('Could not extract [{0}]: {1}'.format(
          self._archive, e)) from e
    return self._destination


class ExtractorFactory(object):
  """Picks the extractor for an archive from its file name."""

  def NewExtractor(self, archive, destination, progress_listener=None):
    """Creates the extractor for archive.

    Args:
      archive: str, The archive to extract. Only the name is inspected.
      destination: str, The directory to extract into.
      progress_listener: progress.ProgressListener, Receives the entries.

    Raises:
      UnknownArchiveTypeError: If the name does not end in .tar.gz or .zip.

    Returns:
      Extractor, The extractor.
    """
    if archive.endswith('.tar.gz'):
      provider = TarGzExtractorProvider()
    elif archive.endswith('.zip'):
      provider = ZipExtractorProvider()
    else:
      raise UnknownArchiveTypeError(archive)
    return Extractor(archive, destination, provider, progress_listener)

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

"""Read and write properties for the managed Cloud SDK.

A property is looked up, in order, in its environment variable
(MANAGED_CLOUDSDK_<SECTION>_<NAME>), in the properties file named by
MANAGED_CLOUDSDK_CONFIG, in its callbacks and finally in its default.
"""

import configparser
import functools
import os

from managedcloudsdk.core import exceptions


ENVIRONMENT_PREFIX = 'MANAGED_CLOUDSDK'
CONFIG_FILE_ENV = ENVIRONMENT_PREFIX + '_CONFIG'

DEFAULT_DOWNLOAD_BASE_URL = 'https://dl.google.com/dl/cloudsdk/channels/rapid'
DEFAULT_USER_AGENT = 'google-cloud-tools-python'

_TRUE_STRINGS = ('true', '1', 'on', 'yes', 'y')
_FALSE_STRINGS = ('false', '0', 'off', 'no', 'n', '', 'none')


def Stringize(value):
  if isinstance(value, str):
    return value
  if isinstance(value, bool):
    return 'true' if value else 'false'
  return str(value)


def _BooleanValidator(property_name, value):
  """Validates boolean properties.

  Args:
    property_name: str, the name of the property
    value: str | bool, the value to validate

  Raises:
    InvalidValueError: if value is not boolean
  """
  if value is None:
    return
  accepted_strings = _TRUE_STRINGS + _FALSE_STRINGS
  if Stringize(value).lower() not in accepted_strings:
    raise InvalidValueError(
        'The [{0}] value [{1}] is not valid. Possible values: [{2}].'.format(
            property_name, value,
            ', '.join([x if x else "''" for x in accepted_strings])))


def _IntegerValidator(property_name, value):
  if value is None:
    return
  try:
    int(value)
  except ValueError:
    raise InvalidValueError(
        'The [{0}] value [{1}] is not a valid integer.'.format(
            property_name, value))


class Error(exceptions.Error):
  """Exceptions for the properties module."""


class PropertiesParseError(Error):
  """An exception to be raised when a properties file is invalid."""


class InvalidValueError(Error):
  """An exception to be raised when the set value of a property is invalid."""


class _Sections(object):
  """Represents the available sections in the properties file.

  Attributes:
    core: Section, The section containing core properties.
    managed_sdk: Section, The section containing managed SDK properties.
  """

  def __init__(self):
    self.core = _SectionCore()
    self.managed_sdk = _SectionManagedSdk()


class _Section(object):
  """Represents a section of the properties file that has related properties."""

  def __init__(self, name):
    self.__name = name

  def _Add(self, name, help_text=None, callbacks=None, default=None,
           validator=None, choices=None):
    return _Property(
        section=self.__name, name=name, help_text=help_text,
        callbacks=callbacks, default=default, validator=validator,
        choices=choices)

  def _AddBool(self, name, help_text=None, callbacks=None, default=None):
    return self._Add(name=name, help_text=help_text, callbacks=callbacks,
                     default=default,
                     validator=functools.partial(_BooleanValidator, name))


class _SectionCore(_Section):
  """Contains the properties for the 'core' section."""

  def __init__(self):
    super(_SectionCore, self).__init__('core')
    self.verbosity = self._Add(
        'verbosity',
        help_text='Default logging verbosity: debug, info, warning, error, '
        'critical or none.',
        choices=('debug', 'info', 'warning', 'error', 'critical', 'none'))
    self.user_output_enabled = self._AddBool(
        'user_output_enabled',
        help_text='If False, messages to the user and progress bars are '
        'suppressed.',
        default=True)
    self.log_dir = self._Add(
        'log_dir',
        help_text='Directory where a log file is written for each run. File '
        'logging is disabled when unset.')


def _DefaultManagedSdkRoot():
  return os.path.join(
      os.path.expanduser('~'), '.google-cloud-tools', 'managed-cloud-sdk')


class _SectionManagedSdk(_Section):
  """Contains the properties for the 'managed_sdk' section."""

  def __init__(self):
    super(_SectionManagedSdk, self).__init__('managed_sdk')
    self.root = self._Add(
        'root',
        help_text='Directory that holds every managed Cloud SDK installation, '
        'one subdirectory per version.',
        callbacks=[_DefaultManagedSdkRoot])
    self.version = self._Add(
        'version',
        help_text='The Cloud SDK version to manage, or LATEST.',
        default='LATEST')
    self.usage_reporting = self._AddBool(
        'usage_reporting',
        help_text='Passed through to the Cloud SDK installer as '
        '--usage-reporting.',
        default=False)
    self.user_agent = self._Add(
        'user_agent',
        help_text='User-Agent header sent when downloading the Cloud SDK.',
        default=DEFAULT_USER_AGENT)
    self.download_base_url = self._Add(
        'download_base_url',
        help_text='Base URL of the Cloud SDK release channel.',
        default=DEFAULT_DOWNLOAD_BASE_URL)
    self.download_timeout = self._Add(
        'download_timeout',
        help_text='Socket timeout in seconds for Cloud SDK downloads.',
        default='60',
        validator=functools.partial(_IntegerValidator, 'download_timeout'))


class _Property(object):
  """An individual property that can be gotten from the properties file.

  Attributes:
    section: str, The name of the section the property appears in in the file.
    name: str, The name of the property.
    help_text: str, The help text describing what this property does.
    callbacks: [func], A list of functions to be called, in order, if no value
      is found elsewhere.
    default: str, A final value to use if no value is found after the callbacks.
    validator: func(str), A function that is called on the value when .Set()'d
      or .Get()'d. For invalid values it raises InvalidValueError.
    choices: [str], The allowable values for this property.
  """

  def __init__(self, section, name, help_text=None, callbacks=None,
               default=None, validator=None, choices=None):
    self.__section = section
    self.__name = name
    self.__help_text = help_text
    self.__callbacks = callbacks or []
    self.__default = default
    self.__validator = validator
    self.__choices = choices

  @property
  def section(self):
    return self.__section

  @property
  def name(self):
    return self.__name

  @property
  def default(self):
    return self.__default

  @property
  def callbacks(self):
    return self.__callbacks

  def Get(self, validate=True):
    """Gets the value for this property.

    Looks first in the environment, then in the properties file, then at the
    callbacks and finally at the default.

    Args:
      validate: bool, Whether or not to run the fetched value through the
          validation function.

    Returns:
      str, The value for this property.
    """
    value = _GetProperty(self, _PropertiesFile.Load())
    if validate:
      self.Validate(value)
    return value

  def Validate(self, value):
    """Test to see if the value is valid for this property.

    Args:
      value: str, The value of the property to be validated.

    Raises:
      InvalidValueError: If the value was invalid according to the property's
          validator.
    """
    if self.__validator:
      self.__validator(value)
    if (self.__choices and value is not None and
        Stringize(value).lower() not in self.__choices):
      raise InvalidValueError(
          'The [{0}] value [{1}] is not valid. Possible values: [{2}].'.format(
              self, value, ', '.join(self.__choices)))

  def GetBool(self, validate=True):
    """Gets the boolean value for this property.

    Args:
      validate: bool, Whether or not to run the fetched value through the
          validation function.

    Returns:
      bool, The boolean value for this property, or None if it is not set.
    """
    value = self.Get(validate=validate)
    if value is None:
      return None
    return Stringize(value).lower() in _TRUE_STRINGS

  def GetInt(self, validate=True):
    """Gets the integer value for this property.

    Args:
      validate: bool, Whether or not to run the fetched value through the
          validation function.

    Returns:
      int, The integer value for this property, or None if it is not set.
    """
    value = self.Get(validate=validate)
    if value is None:
      return None
    return int(value)

  def Set(self, value):
    """Sets the value for this property as an environment variable.

    Args:
      value: str/bool, The proposed value for this property.  If None, it is
        removed from the environment.
    """
    self.Validate(value)
    if value is None:
      os.environ.pop(self.EnvironmentName(), None)
    else:
      os.environ[self.EnvironmentName()] = Stringize(value)

  def EnvironmentName(self):
    """Get the name of the environment variable for this property.

    Returns:
      str, The name of the correct environment variable.
    """
    return '{prefix}_{section}_{name}'.format(
        prefix=ENVIRONMENT_PREFIX,
        section=self.__section.upper(),
        name=self.__name.upper(),
    )

  def __str__(self):
    return '{section}/{name}'.format(section=self.__section, name=self.__name)


class _PropertiesFile(object):
  """The parsed contents of the properties file, if one is configured."""

  _cache = {}

  def __init__(self, path):
    self.path = path
    self._parser = configparser.ConfigParser(interpolation=None)
    if path and os.path.isfile(path):
      try:
        self._parser.read(path)
      except configparser.Error as e:
        raise PropertiesParseError(
            'Unable to parse properties file [{0}]: {1}'.format(
                path, e)) from e

  @classmethod
  def Load(cls):
    """Loads the properties file named by the environment, if any.

    The parsed file is cached by path and modification time.

    Returns:
      _PropertiesFile, The loaded properties.
    """
    path = os.environ.get(CONFIG_FILE_ENV)
    mtime = None
    if path and os.path.isfile(path):
      mtime = os.path.getmtime(path)
    key = (path, mtime)
    loaded = cls._cache.get(key)
    if loaded is None:
      loaded = cls(path)
      cls._cache.clear()
      cls._cache[key] = loaded
    return loaded

  def Get(self, section, name):
    if not self._parser.has_section(section):
      return None
    return self._parser.get(section, name, fallback=None)


def _GetProperty(prop, properties_file):
  """Gets the given property.

  Args:
    prop: properties.Property, The property to get.
    properties_file: _PropertiesFile, The loaded properties file.

  Returns:
    str, The value of the property, or None if it is not set.
  """
  value = os.environ.get(prop.EnvironmentName())
  if value is not None:
    return value

  value = properties_file.Get(prop.section, prop.name)
  if value is not None:
    return value

  for callback in prop.callbacks:
    value = callback()
    if value is not None:
      return Stringize(value)

  return prop.default


VALUES = _Sections()

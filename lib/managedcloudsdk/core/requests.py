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

"""A module to get a requests.Session object for Cloud SDK downloads."""

from managedcloudsdk.core import local_file_adapter
from managedcloudsdk.core import properties

import requests


def GetDefaultTimeout():
  """Returns the socket timeout in seconds from the properties."""
  return properties.VALUES.managed_sdk.download_timeout.GetInt()


def GetSession(user_agent=None, session=None):
  """Get a requests.Session configured for Cloud SDK downloads.

  Args:
    user_agent: str, The User-Agent header to send. Defaults to the
      managed_sdk/user_agent property.
    session: requests.Session, An existing session to configure.

  Returns:
    A requests.Session that sends the User-Agent header and serves file://
    URLs from the local disk.
  """
  session = session or requests.Session()
  session.headers['User-Agent'] = (
      user_agent or properties.VALUES.managed_sdk.user_agent.Get())
  session.mount('file://', local_file_adapter.LocalFileAdapter())
  return session

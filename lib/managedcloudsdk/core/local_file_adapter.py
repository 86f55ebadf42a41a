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

"""A requests transport adapter that serves file:// URLs from disk."""

import errno
import io
import os
from urllib import parse
from urllib import request as urllib_request

import requests


class LocalFileAdapter(requests.adapters.BaseAdapter):
  """Answers GET requests for file:// URLs with the file's contents.

  Used to install from a local mirror of the Cloud SDK downloads, and by tests.
  """

  def _PathFromUrl(self, url):
    parsed = parse.urlparse(url)
    path = urllib_request.url2pathname(parsed.path)
    if parsed.netloc and parsed.netloc != 'localhost':
      # file://server/share/... on Windows.
      path = '//' + parsed.netloc + path
    return path

  def send(self, request, stream=False, timeout=None, verify=True, cert=None,
           proxies=None):
    response = requests.Response()
    response.request = request
    response.url = request.url
    response.connection = self

    if request.method not in ('GET', 'HEAD'):
      response.status_code = 405
      response.reason = 'Method Not Allowed'
      response.raw = io.BytesIO(b'')
      return response

    path = self._PathFromUrl(request.url)
    try:
      size = os.path.getsize(path)
      raw = open(path, 'rb')
    except (IOError, OSError) as e:
      if e.errno == errno.EACCES:
        response.status_code = 403
        response.reason = 'Forbidden'
      else:
        response.status_code = 404
        response.reason = 'Not Found'
      response.raw = io.BytesIO(str(e).encode('utf-8'))
      return response

    response.status_code = 200
    response.reason = 'OK'
    response.headers['Content-Length'] = str(size)
    if request.method == 'HEAD':
      raw.close()
      raw = io.BytesIO(b'')
    response.raw = raw
    return response

  def close(self):
    pass

# -------------------------------------------------------------------------
# Copyright (c) Microsoft.  All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# --------------------------------------------------------------------------
import logging

from ._common_conversion import _sign_string
from ._serialization import _get_query_string

logger = logging.getLogger(__name__)


class _StorageSharedKeyAuthentication(object):
    def __init__(self, credential):
        self.credential = credential

    def _get_headers(self, request, headers_to_sign):
        headers = dict((name.lower(), value) for name, value in request.headers.items() if value)
        if 'content-length' in headers and headers['content-length'] == '0':
            del headers['content-length']
        return '\n'.join(headers.get(x, '') for x in headers_to_sign) + '\n'

    def _get_verb(self, request):
        return request.method + '\n'

    def _get_canonicalized_resource(self, request):
        path, _ = _get_query_string(request)
        return '/' + self.credential.account_name + path

    def _get_canonicalized_headers(self, request):
        string_to_sign = ''
        x_ms_headers = []
        for name, value in request.headers.items():
            if name.lower().startswith('x-ms-'):
                x_ms_headers.append((name.lower(), value))
        x_ms_headers.sort()
        for name, value in x_ms_headers:
            if value is not None:
                string_to_sign += ''.join([name, ':', value, '\n'])
        return string_to_sign

    def _get_canonicalized_resource_query(self, request):
        _, query = _get_query_string(request)
        query.sort()

        string_to_sign = ''
        for name, value in query:
            if value is not None:
                string_to_sign += '\n' + name.lower() + ':' + value

        return string_to_sign

    def _get_string_to_sign(self, request):
        return \
            self._get_verb(request) + \
            self._get_headers(
                request,
                [
                    'content-encoding', 'content-language', 'content-length',
                    'content-md5', 'content-type', 'date', 'if-modified-since',
                    'if-match', 'if-none-match', 'if-unmodified-since', 'byte_range'
                ]
            ) + \
            self._get_canonicalized_headers(request) + \
            self._get_canonicalized_resource(request) + \
            self._get_canonicalized_resource_query(request)

    def _add_authorization_header(self, request, string_to_sign):
        account_name = self.credential.account_name
        signature = _sign_string(self.credential.account_key, string_to_sign)
        auth_string = 'SharedKey ' + account_name + ':' + signature
        request.headers['Authorization'] = auth_string

    def sign_request(self, request):
        string_to_sign = self._get_string_to_sign(request)
        logger.debug("String_to_sign=%s", string_to_sign)
        self._add_authorization_header(request, string_to_sign)


class _StorageSASAuthentication(object):
    def __init__(self, credential):
        self.credential = credential

    def sign_request(self, request):
        # a request may already carry a signature, for example a url made by make_blob_url
        query = request.path.partition('?')[2]
        if 'sig' in [pair.partition('=')[0] for pair in query.split('&')]:
            return

        # the token is read once so the whole request uses the same one
        sas_token = self.credential.token
        if '?' in request.path:
            request.path += '&'
        else:
            request.path += '?'

        request.path += sas_token


class _StorageNoAuthentication(object):
    def sign_request(self, request):
        pass

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
import hmac
import threading
import uuid
from time import time
from urllib.parse import unquote as url_unquote
from wsgiref.handlers import format_date_time
from xml.etree import ElementTree as ETree

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

from storagesas import (
    AccountKeyCredential,
    BlobOperation,
    InMemoryAccessPolicyStore,
    SharedAccessSignatureAuthorizer,
)
from storagesas._auth import _StorageSharedKeyAuthentication
from storagesas._common_conversion import (
    _decode_base64_to_bytes,
    _encode_base64,
    _sign_string,
)
from storagesas._deserialization import _convert_xml_to_signed_identifiers
from storagesas._http import (
    HTTPResponse,
    HTTPTransport,
)
from storagesas._serialization import (
    _convert_signed_identifiers_to_xml,
    _get_query_string,
)
from storagesas.sharedaccesssignature import SharedAccessSignatureToken

_CONTENT_HEADERS = {
    'x-ms-blob-cache-control': 'cache-control',
    'x-ms-blob-content-type': 'content-type',
    'x-ms-blob-content-disposition': 'content-disposition',
    'x-ms-blob-content-md5': 'content-md5',
    'x-ms-blob-content-encoding': 'content-encoding',
    'x-ms-blob-content-language': 'content-language',
}

_RESPONSE_OVERRIDES = {
    'cache_control': 'cache-control',
    'content_disposition': 'content-disposition',
    'content_encoding': 'content-encoding',
    'content_language': 'content-language',
    'content_type': 'content-type',
}


class _StorageError(Exception):
    def __init__(self, status, error_code, message):
        super(_StorageError, self).__init__(message)
        self.status = status
        self.error_code = error_code


class _Resource(object):
    def __init__(self):
        self.metadata = {}
        self.touch()

    def touch(self):
        self.etag = '"0x{}"'.format(uuid.uuid4().hex[:15].upper())
        self.last_modified = format_date_time(time())


class _Container(_Resource):
    def __init__(self, public_access=None):
        super(_Container, self).__init__()
        self.public_access = public_access
        self.blobs = {}
        self.blocks = {}


class _Blob(_Resource):
    def __init__(self, content, key_hash):
        super(_Blob, self).__init__()
        self.content = content
        self.key_hash = key_hash
        self.content_settings = {}


class FakeStorageService(HTTPTransport):
    '''
    An in-memory blob service. It authenticates requests signed with a
    shared key or a shared access signature the way the storage service
    does, keeps containers, blobs and stored access policies in memory, and
    answers with the statuses and error codes the service uses.

    :ivar str client_ip: The address requests appear to come from.
    :ivar datetime now: The time shared access signatures are checked
        against. None for the current time.
    :ivar on_request: Called with each request before it is handled. It may
        raise to simulate a transport failure.
    :ivar list handled: (method, operation, status) of each request handled.
    '''

    def __init__(self, account_name, account_keys, client_ip='127.0.0.1'):
        if isinstance(account_keys, str):
            account_keys = {'key1': account_keys}
        self.account_name = account_name
        self.account_keys = dict(account_keys)
        self.policy_store = InMemoryAccessPolicyStore()
        self.authorizer = SharedAccessSignatureAuthorizer(account_name, self.account_keys, self.policy_store)
        self.client_ip = client_ip
        self.now = None
        self.on_request = None
        self.handled = []
        self.containers = {}
        self._lock = threading.Lock()

    def perform_request(self, request):
        if self.on_request is not None:
            self.on_request(request)

        with self._lock:
            operation = None
            try:
                container_name, blob_name, params = self._parse_target(request)
                operation = self._get_operation(request.method, container_name, blob_name, params)
                self._authenticate(request, container_name, blob_name, operation)
                response = self._dispatch(request, operation, container_name, blob_name, params)
            except _StorageError as ex:
                body = '<?xml version="1.0" encoding="utf-8"?><Error><Code>{0}</Code><Message>{1}</Message></Error>'
                response = HTTPResponse(ex.status, str(ex), {'x-ms-error-code': ex.error_code},
                                        body.format(ex.error_code, ex).encode('utf-8'))
            # transports report header names in lower case
            response.headers = dict((name.lower(), value) for name, value in response.headers.items())
            self.handled.append((request.method, operation, response.status))
            return response

    # -- request parsing -----------------------------------------------------

    @staticmethod
    def _parse_target(request):
        path, pairs = _get_query_string(request)
        parts = url_unquote(path).lstrip('/').split('/', 1)
        container_name = parts[0]
        blob_name = parts[1] if len(parts) > 1 and parts[1] else None
        return container_name, blob_name, dict(pairs)

    @staticmethod
    def _get_operation(method, container_name, blob_name, params):
        comp = params.get('comp')
        if blob_name is None:
            return {
                ('PUT', None): BlobOperation.CREATE_CONTAINER,
                ('DELETE', None): BlobOperation.DELETE_CONTAINER,
                ('HEAD', None): BlobOperation.GET_CONTAINER_PROPERTIES,
                ('GET', None): BlobOperation.GET_CONTAINER_PROPERTIES,
                ('PUT', 'acl'): BlobOperation.SET_CONTAINER_ACL,
                ('GET', 'acl'): BlobOperation.GET_CONTAINER_ACL,
                ('GET', 'list'): BlobOperation.LIST_BLOBS,
            }[(method, comp)]
        return {
            ('GET', None): BlobOperation.GET_BLOB,
            ('HEAD', None): BlobOperation.GET_BLOB_PROPERTIES,
            ('GET', 'metadata'): BlobOperation.GET_BLOB_METADATA,
            ('PUT', 'metadata'): BlobOperation.SET_BLOB_METADATA,
            ('PUT', 'properties'): BlobOperation.SET_BLOB_PROPERTIES,
            ('PUT', None): BlobOperation.PUT_BLOB,
            ('PUT', 'block'): BlobOperation.PUT_BLOCK,
            ('PUT', 'blocklist'): BlobOperation.PUT_BLOCK_LIST,
            ('DELETE', None): BlobOperation.DELETE_BLOB,
        }[(method, comp)]

    # -- authentication --------------------------------------------------------

    def _authenticate(self, request, container_name, blob_name, operation):
        authorization = request.headers.get('Authorization')
        if authorization is not None:
            self._verify_shared_key(request, authorization)
            return

        sas_token = request.path.partition('?')[2]
        if 'sig=' not in sas_token:
            sas_token = None

        # a blob that does not exist yet is created by a put
        if operation in (BlobOperation.PUT_BLOB, BlobOperation.PUT_BLOCK_LIST):
            container = self.containers.get(container_name)
            if container is None or blob_name not in container.blobs:
                operation = BlobOperation.CREATE_BLOB

        container = self.containers.get(container_name)
        result = self.authorizer.authorize(
            sas_token,
            container_name,
            blob_name,
            operation,
            now=self.now,
            client_ip=self.client_ip,
            request_protocol=request.protocol,
            public_access=container.public_access if container is not None else None,
        )
        if not result.allowed:
            raise _StorageError(result.status_code, result.error_code, result.message)

    def _verify_shared_key(self, request, authorization):
        scheme, _, signature = authorization.partition(' ')
        account_name, _, signature = signature.partition(':')
        if scheme == 'SharedKey' and account_name == self.account_name:
            for key in self.account_keys.values():
                auth = _StorageSharedKeyAuthentication(AccountKeyCredential(self.account_name, key))
                expected = _sign_string(key, auth._get_string_to_sign(request))
                if hmac.compare_digest(expected, signature):
                    return
        raise _StorageError(403, 'AuthenticationFailed', 'Server failed to authenticate the request.')

    # -- operations ------------------------------------------------------------

    def _dispatch(self, request, operation, container_name, blob_name, params):
        if operation == BlobOperation.CREATE_CONTAINER:
            return self._create_container(request, container_name)

        container = self.containers.get(container_name)
        if container is None:
            raise _StorageError(404, 'ContainerNotFound', 'The specified container does not exist.')

        handler = {
            BlobOperation.DELETE_CONTAINER: self._delete_container,
            BlobOperation.GET_CONTAINER_PROPERTIES: self._get_container_properties,
            BlobOperation.SET_CONTAINER_ACL: self._set_container_acl,
            BlobOperation.GET_CONTAINER_ACL: self._get_container_acl,
            BlobOperation.LIST_BLOBS: self._list_blobs,
            BlobOperation.GET_BLOB: self._get_blob,
            BlobOperation.GET_BLOB_PROPERTIES: self._get_blob,
            BlobOperation.GET_BLOB_METADATA: self._get_blob,
            BlobOperation.SET_BLOB_METADATA: self._set_blob_metadata,
            BlobOperation.SET_BLOB_PROPERTIES: self._set_blob_properties,
            BlobOperation.PUT_BLOB: self._put_blob,
            BlobOperation.PUT_BLOCK: self._put_block,
            BlobOperation.PUT_BLOCK_LIST: self._put_block_list,
            BlobOperation.DELETE_BLOB: self._delete_blob,
        }[operation]
        return handler(request, operation, container_name, container, blob_name, params)

    def _create_container(self, request, container_name):
        if container_name in self.containers:
            raise _StorageError(409, 'ContainerAlreadyExists', 'The specified container already exists.')
        container = _Container(request.headers.get('x-ms-blob-public-access'))
        container.metadata = self._get_metadata(request)
        self.containers[container_name] = container
        return self._response(201, container)

    def _delete_container(self, request, operation, container_name, container, blob_name, params):
        del self.containers[container_name]
        self.policy_store.delete_container(container_name)
        return HTTPResponse(202, 'Accepted', {}, b'')

    def _get_container_properties(self, request, operation, container_name, container, blob_name, params):
        headers = self._resource_headers(container)
        if container.public_access:
            headers['x-ms-blob-public-access'] = container.public_access
        return HTTPResponse(200, 'OK', headers, b'')

    def _set_container_acl(self, request, operation, container_name, container, blob_name, params):
        identifiers = _convert_xml_to_signed_identifiers(HTTPResponse(None, None, {}, request.body))
        self.policy_store.set_policies(container_name, identifiers)
        container.public_access = request.headers.get('x-ms-blob-public-access')
        container.touch()
        return self._response(200, container)

    def _get_container_acl(self, request, operation, container_name, container, blob_name, params):
        headers = self._resource_headers(container)
        if container.public_access:
            headers['x-ms-blob-public-access'] = container.public_access
        body = _convert_signed_identifiers_to_xml(self.policy_store.get_policies(container_name))
        return HTTPResponse(200, 'OK', headers, body)

    def _list_blobs(self, request, operation, container_name, container, blob_name, params):
        prefix = params.get('prefix') or ''
        marker = params.get('marker')
        max_results = int(params.get('maxresults') or 5000)

        names = sorted(name for name in container.blobs if name.startswith(prefix))
        if marker:
            names = [name for name in names if name >= marker]
        next_marker = names[max_results] if len(names) > max_results else None

        root = ETree.Element('EnumerationResults', ContainerName=container_name)
        blobs_element = ETree.SubElement(root, 'Blobs')
        for name in names[:max_results]:
            blob = container.blobs[name]
            blob_element = ETree.SubElement(blobs_element, 'Blob')
            ETree.SubElement(blob_element, 'Name').text = name
            properties = ETree.SubElement(blob_element, 'Properties')
            ETree.SubElement(properties, 'Last-Modified').text = blob.last_modified
            ETree.SubElement(properties, 'Etag').text = blob.etag
            ETree.SubElement(properties, 'Content-Length').text = str(len(blob.content))
            ETree.SubElement(properties, 'ServerEncrypted').text = 'true'
            if blob.key_hash:
                ETree.SubElement(properties, 'CustomerProvidedKeySha256').text = blob.key_hash
            if params.get('include') == 'metadata':
                metadata = ETree.SubElement(blob_element, 'Metadata')
                for key, value in blob.metadata.items():
                    ETree.SubElement(metadata, key).text = value
        ETree.SubElement(root, 'NextMarker').text = next_marker
        return HTTPResponse(200, 'OK', {}, ETree.tostring(root, encoding='utf-8'))

    def _get_blob(self, request, operation, container_name, container, blob_name, params):
        blob = self._get_existing_blob(container, blob_name)
        self._check_key(request, blob)

        headers = self._resource_headers(blob)
        headers['x-ms-server-encrypted'] = 'true'
        if blob.key_hash:
            headers['x-ms-encryption-key-sha256'] = blob.key_hash
        headers.update(blob.content_settings)

        sas_token = request.path.partition('?')[2]
        if 'sig=' in sas_token:
            token = SharedAccessSignatureToken.from_query_string(sas_token)
            for attribute, header in _RESPONSE_OVERRIDES.items():
                if getattr(token, attribute):
                    headers[header] = getattr(token, attribute)

        if operation != BlobOperation.GET_BLOB:
            headers['content-length'] = str(len(blob.content))
            return HTTPResponse(200, 'OK', headers, b'')

        body, status = blob.content, 200
        byte_range = request.headers.get('x-ms-range')
        if byte_range:
            start, _, end = byte_range[len('bytes='):].partition('-')
            start = int(start)
            end = min(int(end), len(blob.content) - 1) if end else len(blob.content) - 1
            if start >= len(blob.content):
                raise _StorageError(416, 'InvalidRange', 'The range specified is invalid for the current size of the resource.')
            body, status = blob.content[start:end + 1], 206
            headers['content-range'] = 'bytes {0}-{1}/{2}'.format(start, end, len(blob.content))
        headers['content-length'] = str(len(body))
        return HTTPResponse(status, 'OK', headers, body)

    def _set_blob_metadata(self, request, operation, container_name, container, blob_name, params):
        blob = self._get_existing_blob(container, blob_name)
        self._check_key(request, blob)
        blob.metadata = self._get_metadata(request)
        blob.touch()
        return self._response(200, blob, blob.key_hash)

    def _set_blob_properties(self, request, operation, container_name, container, blob_name, params):
        blob = self._get_existing_blob(container, blob_name)
        blob.content_settings = self._get_content_settings(request)
        blob.touch()
        return self._response(200, blob)

    def _put_blob(self, request, operation, container_name, container, blob_name, params):
        key_hash = self._get_key_hash(request)
        blob = _Blob(request.body or b'', key_hash)
        blob.metadata = self._get_metadata(request)
        blob.content_settings = self._get_content_settings(request)
        container.blobs[blob_name] = blob
        return self._response(201, blob, key_hash)

    def _put_block(self, request, operation, container_name, container, blob_name, params):
        key_hash = self._get_key_hash(request)
        container.blocks.setdefault(blob_name, {})[params['blockid']] = (request.body or b'', key_hash)
        headers = {'x-ms-request-server-encrypted': 'true'}
        if key_hash:
            headers['x-ms-encryption-key-sha256'] = key_hash
        return HTTPResponse(201, 'Created', headers, b'')

    def _put_block_list(self, request, operation, container_name, container, blob_name, params):
        key_hash = self._get_key_hash(request)
        blocks = container.blocks.get(blob_name, {})
        content = b''
        for element in ETree.fromstring(request.body):
            if element.text not in blocks or blocks[element.text][1] != key_hash:
                raise _StorageError(400, 'InvalidBlockList', 'The specified block list is invalid.')
            content += blocks[element.text][0]

        blob = _Blob(content, key_hash)
        blob.metadata = self._get_metadata(request)
        blob.content_settings = self._get_content_settings(request)
        container.blobs[blob_name] = blob
        container.blocks.pop(blob_name, None)
        return self._response(201, blob, key_hash)

    def _delete_blob(self, request, operation, container_name, container, blob_name, params):
        self._get_existing_blob(container, blob_name)
        del container.blobs[blob_name]
        return HTTPResponse(202, 'Accepted', {}, b'')

    # -- helpers ---------------------------------------------------------------

    @staticmethod
    def _get_existing_blob(container, blob_name):
        blob = container.blobs.get(blob_name)
        if blob is None:
            raise _StorageError(404, 'BlobNotFound', 'The specified blob does not exist.')
        return blob

    @staticmethod
    def _get_key_hash(request):
        key = request.headers.get('x-ms-encryption-key')
        if key is None:
            return None
        if request.protocol != 'https':
            raise _StorageError(400, 'InsufficientAccountPermissions', 'Customer provided keys require HTTPS.')
        digest = hashes.Hash(hashes.SHA256(), backend=default_backend())
        digest.update(_decode_base64_to_bytes(key))
        key_hash = _encode_base64(digest.finalize())
        if key_hash != request.headers.get('x-ms-encryption-key-sha256'):
            raise _StorageError(400, 'InvalidHeaderValue', 'The key hash does not match the key.')
        return key_hash

    def _check_key(self, request, blob):
        if blob.key_hash != self._get_key_hash(request):
            raise _StorageError(409, 'BlobUsesCustomerSpecifiedEncryption',
                                'The blob is encrypted with a customer specified encryption key.')

    @staticmethod
    def _get_metadata(request):
        return dict((name[len('x-ms-meta-'):], value) for name, value in request.headers.items()
                    if name.lower().startswith('x-ms-meta-'))

    @staticmethod
    def _get_content_settings(request):
        return dict((_CONTENT_HEADERS[name.lower()], value) for name, value in request.headers.items()
                    if name.lower() in _CONTENT_HEADERS)

    @staticmethod
    def _resource_headers(resource):
        headers = {
            'etag': resource.etag,
            'last-modified': resource.last_modified,
        }
        for name, value in resource.metadata.items():
            headers['x-ms-meta-' + name] = value
        return headers

    @staticmethod
    def _response(status, resource, key_hash=None):
        headers = {
            'etag': resource.etag,
            'last-modified': resource.last_modified,
            'x-ms-request-server-encrypted': 'true',
        }
        if key_hash:
            headers['x-ms-encryption-key-sha256'] = key_hash
        return HTTPResponse(status, 'OK', headers, b'')

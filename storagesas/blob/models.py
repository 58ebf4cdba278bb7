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
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

from .._common_conversion import (
    _encode_base64,
    _decode_base64_to_bytes,
)
from .._constants import ENCRYPTION_ALGORITHM
from .._error import _validate_not_none
from ..models import _list


class Container(object):
    '''
    Blob container class.

    :ivar str name:
        The name of the container.
    :ivar metadata:
        A dict containing name-value pairs associated with the container as metadata.
        This var is set to None unless the include=metadata param was included
        for the list containers operation. If this parameter was specified but the
        container has no metadata, metadata will be set to an empty dictionary.
    :vartype metadata: dict(str, str)
    :ivar ContainerProperties properties:
        System properties for the container.
    '''

    def __init__(self, name=None, props=None, metadata=None):
        self.name = name
        self.properties = props or ContainerProperties()
        self.metadata = metadata


class ContainerProperties(object):
    '''
    Blob container's properties class.

    :ivar datetime last_modified:
        A datetime object representing the last time the container was modified.
    :ivar str etag:
        The ETag contains a value that you can use to perform operations
        conditionally.
    :ivar str public_access:
        Specifies whether data in the container may be accessed publicly and the level of access.
    '''

    def __init__(self):
        self.last_modified = None
        self.etag = None
        self.public_access = None


class Blob(object):
    '''
    Blob class.

    :ivar str name:
        Name of blob.
    :ivar content:
        Blob content.
    :vartype content: str or bytes
    :ivar BlobProperties properties:
        Stores all the system properties for the blob.
    :ivar metadata:
        Name-value pairs associated with the blob as metadata.
    '''

    def __init__(self, name=None, content=None, props=None, metadata=None):
        self.name = name
        self.content = content
        self.properties = props or BlobProperties()
        self.metadata = metadata


class BlobProperties(object):
    '''
    Blob Properties

    :ivar datetime last_modified:
        A datetime object representing the last time the blob was modified.
    :ivar str etag:
        The ETag contains a value that you can use to perform operations
        conditionally.
    :ivar int content_length:
        The length of the content returned. If the entire blob was requested,
        the length of blob in bytes. If a subset of the blob was requested, the
        length of the returned subset.
    :ivar str content_range:
        Indicates the range of bytes returned in the event that the client
        requested a subset of the blob.
    :ivar ~storagesas.blob.models.ContentSettings content_settings:
        Stores all the content settings for the blob.
    :ivar bool server_encrypted:
        Set to true if the blob is encrypted on the server.
    :ivar str encryption_key_sha256:
        The SHA-256 hash of the customer provided key the blob is encrypted
        with, if any.
    '''

    def __init__(self):
        self.last_modified = None
        self.etag = None
        self.content_length = None
        self.content_range = None
        self.content_settings = ContentSettings()
        self.server_encrypted = None
        self.encryption_key_sha256 = None


class ContentSettings(object):
    '''
    Used to store the content settings of a blob.

    :ivar str content_type:
        The content type specified for the blob. If no content type was
        specified, the default content type is application/octet-stream.
    :ivar str content_encoding:
        If the content_encoding has previously been set
        for the blob, that value is stored.
    :ivar str content_language:
        If the content_language has previously been set
        for the blob, that value is stored.
    :ivar str content_disposition:
        content_disposition conveys additional information about how to
        process the response payload, and also can be used to attach
        additional metadata. If content_disposition has previously been set
        for the blob, that value is stored.
    :ivar str cache_control:
        If the cache_control has previously been set for
        the blob, that value is stored.
    :ivar str content_md5:
        If the content_md5 has been set for the blob, this response
        header is stored so that the client can check for message content
        integrity.
    '''

    def __init__(
            self, content_type=None, content_encoding=None,
            content_language=None, content_disposition=None,
            cache_control=None, content_md5=None):
        self.content_type = content_type
        self.content_encoding = content_encoding
        self.content_language = content_language
        self.content_disposition = content_disposition
        self.cache_control = cache_control
        self.content_md5 = content_md5

    def _to_headers(self):
        return {
            'x-ms-blob-cache-control': self.cache_control,
            'x-ms-blob-content-type': self.content_type,
            'x-ms-blob-content-disposition': self.content_disposition,
            'x-ms-blob-content-md5': self.content_md5,
            'x-ms-blob-content-encoding': self.content_encoding,
            'x-ms-blob-content-language': self.content_language,
        }


class BlobBlock(object):
    '''
    BlockBlob Block class.

    :ivar str id:
        Block id.
    :ivar int size:
        Block size in bytes.
    '''

    def __init__(self, id=None):
        self.id = id
        self.size = None

    def _set_size(self, size):
        self.size = size


class BlobList(_list):
    '''
    A page of blobs returned by a list blobs call. next_marker is set when the
    service has more results.
    '''

    def __init__(self, *args, **kwargs):
        super(BlobList, self).__init__(*args, **kwargs)
        self.next_marker = None


class PublicAccess(object):
    '''
    Specifies whether data in the container may be accessed publicly and the level of access.
    '''

    OFF = 'off'
    '''
    Specifies that there is no public read access for both the container and blobs within the container.
    Clients cannot enumerate the containers within the storage account as well as the blobs within the container.
    '''

    Blob = 'blob'
    '''
    Specifies public read access for blobs. Blob data within this container can be read
    via anonymous request, but container data is not available. Clients cannot enumerate
    blobs within the container via anonymous request.
    '''

    Container = 'container'
    '''
    Specifies full public read access for container and blob data. Clients can enumerate
    blobs within the container via anonymous request, but cannot enumerate containers
    within the storage account.
    '''


class BlobPermissions(object):
    '''
    BlobPermissions class to be used with
    :func:`~storagesas.blob.blobservice.BlobService.generate_blob_shared_access_signature` API.

    :param bool read:
        Read the content, properties, metadata and block list. Use the blob as
        the source of a copy operation.
    :param bool add:
        Add a block to an append blob.
    :param bool create:
        Write a new blob, snapshot a blob, or copy a blob to a new blob.
    :param bool write:
        Create or write content, properties, metadata, or block list. Snapshot
        or lease the blob. Resize the blob (page blob only). Use the blob as the
        destination of a copy operation within the same account.
    :param bool delete:
        Delete the blob.
    :param str _str:
        A string representing the permissions.
    '''

    def __init__(self, read=False, add=False, create=False, write=False,
                 delete=False, _str=None):
        if not _str:
            _str = ''
        self.read = read or ('r' in _str)
        self.add = add or ('a' in _str)
        self.create = create or ('c' in _str)
        self.write = write or ('w' in _str)
        self.delete = delete or ('d' in _str)

    def __or__(self, other):
        return BlobPermissions(_str=str(self) + str(other))

    def __add__(self, other):
        return BlobPermissions(_str=str(self) + str(other))

    def __eq__(self, other):
        return isinstance(other, BlobPermissions) and str(self) == str(other)

    def __hash__(self):
        return hash(str(self))

    def __str__(self):
        return (('r' if self.read else '') +
                ('a' if self.add else '') +
                ('c' if self.create else '') +
                ('w' if self.write else '') +
                ('d' if self.delete else ''))


BlobPermissions.READ = BlobPermissions(read=True)
BlobPermissions.ADD = BlobPermissions(add=True)
BlobPermissions.CREATE = BlobPermissions(create=True)
BlobPermissions.WRITE = BlobPermissions(write=True)
BlobPermissions.DELETE = BlobPermissions(delete=True)


class ContainerPermissions(object):
    '''
    ContainerPermissions class to be used with
    :func:`~storagesas.blob.blobservice.BlobService.generate_container_shared_access_signature`
    API and for the AccessPolicies used with
    :func:`~storagesas.blob.blobservice.BlobService.set_container_acl`.

    :param bool read:
        Read the content, properties, metadata or block list of any blob in the
        container. Use any blob in the container as the source of a copy operation.
    :param bool add:
        Add a block to any append blob in the container.
    :param bool create:
        Write a new blob to the container, snapshot any blob in the container, or
        copy a blob to a new blob in the container.
    :param bool write:
        For any blob in the container, create or write content, properties,
        metadata, or block list. Snapshot or lease the blob. Resize the blob
        (page blob only). Use the blob as the destination of a copy operation
        within the same account. Note: You cannot grant permissions to read or
        write container properties or metadata, nor to lease a container, with
        a container SAS. Use an account SAS instead.
    :param bool delete:
        Delete any blob in the container. Note: You cannot grant permissions to
        delete a container with a container SAS. Use an account SAS instead.
    :param bool list:
        List blobs in the container.
    :param str _str:
        A string representing the permissions.
    '''

    def __init__(self, read=False, add=False, create=False, write=False,
                 delete=False, list=False, _str=None):
        if not _str:
            _str = ''
        self.read = read or ('r' in _str)
        self.add = add or ('a' in _str)
        self.create = create or ('c' in _str)
        self.write = write or ('w' in _str)
        self.delete = delete or ('d' in _str)
        self.list = list or ('l' in _str)

    def __or__(self, other):
        return ContainerPermissions(_str=str(self) + str(other))

    def __add__(self, other):
        return ContainerPermissions(_str=str(self) + str(other))

    def __eq__(self, other):
        return isinstance(other, ContainerPermissions) and str(self) == str(other)

    def __hash__(self):
        return hash(str(self))

    def __str__(self):
        return (('r' if self.read else '') +
                ('a' if self.add else '') +
                ('c' if self.create else '') +
                ('w' if self.write else '') +
                ('d' if self.delete else '') +
                ('l' if self.list else ''))


'''
Read the content, properties, metadata or block list of any blob in the
container. Use any blob in the container as the source of a copy operation.
'''
ContainerPermissions.READ = ContainerPermissions(read=True)

''' Add a block to any append blob in the container. '''
ContainerPermissions.ADD = ContainerPermissions(add=True)

''' Write a new blob to the container. '''
ContainerPermissions.CREATE = ContainerPermissions(create=True)

'''
For any blob in the container, create or write content, properties,
metadata, or block list. Snapshot or lease the blob. Resize the blob
(page blob only). Use the blob as the destination of a copy operation
within the same account.
'''
ContainerPermissions.WRITE = ContainerPermissions(write=True)

''' Delete any blob in the container. '''
ContainerPermissions.DELETE = ContainerPermissions(delete=True)

''' List blobs in the container. '''
ContainerPermissions.LIST = ContainerPermissions(list=True)


class CustomerProvidedEncryptionKey(object):
    '''
    All data in Azure Storage is encrypted at-rest using an account-level encryption key.
    In versions 2018-06-17 and newer, you can manage the key used to encrypt blob contents
    and application metadata per-blob by providing an AES-256 encryption key in requests to the storage service.

    When you use a customer-provided key, Azure Storage does not manage or persist your key.
    When writing data to a blob, the provided key is used to encrypt your data before writing it to disk.
    A SHA-256 hash of the encryption key is written alongside the blob contents,
    and is used to verify that all subsequent operations against the blob use the same encryption key.
    This hash cannot be used to retrieve the encryption key or decrypt the contents of the blob.
    When reading a blob, the provided key is used to decrypt your data after reading it from disk.
    In both cases, the provided encryption key is securely discarded
    as soon as the encryption or decryption process completes.

    :ivar str key_value:
        Base64-encoded AES-256 encryption key value.
    :ivar str key_hash:
        Base64-encoded SHA256 of the encryption key.
    :ivar str algorithm:
        Specifies the algorithm to use when encrypting data using the given key. Must be AES256.
    '''

    def __init__(self, key_value, key_hash):
        _validate_not_none('key_value', key_value)
        _validate_not_none('key_hash', key_hash)
        self.key_value = key_value
        self.key_hash = key_hash
        self.algorithm = ENCRYPTION_ALGORITHM

    @staticmethod
    def from_key_bytes(key):
        '''
        Builds a key from raw key bytes, computing the base64 key value and
        its SHA-256 hash.

        :param bytes key: The 32 byte AES-256 key.
        '''
        return CustomerProvidedEncryptionKey(_encode_base64(key), _compute_key_hash(key))


def _compute_key_hash(key):
    if isinstance(key, str):
        key = _decode_base64_to_bytes(key)
    digest = hashes.Hash(hashes.SHA256(), backend=default_backend())
    digest.update(key)
    return _encode_base64(digest.finalize())

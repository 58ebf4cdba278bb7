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
from io import BytesIO

from azure.common import AzureHttpError

from .._common_conversion import (
    _int_to_str,
)
from .._constants import (
    DEFAULT_PROTOCOL,
    SERVICE_HOST_BASE,
)
from .._deserialization import (
    _convert_xml_to_signed_identifiers,
    _parse_base_properties,
    _parse_metadata,
)
from .._error import (
    _ERROR_PARALLEL_NOT_SEEKABLE,
    _dont_fail_not_exist,
    _dont_fail_on_exist,
    _validate_access_policies,
    _validate_not_none,
    _validate_type_bytes,
)
from .._http import HTTPRequest
from .._serialization import (
    _add_metadata_headers,
    _convert_signed_identifiers_to_xml,
    _get_request_body,
)
from ..models import (
    ListGenerator,
    _dict,
)
from ..storageclient import StorageClient
from ._deserialization import (
    _convert_xml_to_blob_list,
    _parse_blob,
    _parse_container,
)
from ._download_chunking import _download_blob_chunks
from ._serialization import (
    _add_cpk_headers,
    _convert_block_list_to_xml,
    _get_path,
    _validate_and_format_range_headers,
)
from ._upload_chunking import _upload_blob_chunks

logger = logging.getLogger(__name__)


class BlobService(StorageClient):
    '''
    Block blobs let you upload large blobs efficiently. Block blobs are comprised
    of blocks, each of which is identified by a block ID. You create or modify a
    block blob by writing a set of blocks and committing them by their block IDs.
    Each block can be a different size, up to a maximum of 4 MB.

    Requests are signed with the service's credentials: shared key signing for
    account key credentials, the token for shared access signature credentials,
    nothing for anonymous access.

    :ivar int MAX_SINGLE_PUT_SIZE:
        The largest size upload supported in a single put call. This is used by
        the create_blob_from_* methods if the content length is known and is less
        than this value.
    :ivar int MAX_BLOCK_SIZE:
        The size of the blocks put by create_blob_from_* methods if the content
        length is unknown or is larger than MAX_SINGLE_PUT_SIZE. Smaller blocks
        may be put. The maximum block size the service supports is 100MB.
    :ivar int MAX_SINGLE_GET_SIZE:
        The size of the first range get performed by get_blob_to_* methods if
        max_connections is greater than 1. Less data will be returned if the
        blob is smaller than this.
    :ivar int MAX_CHUNK_GET_SIZE:
        The size of subsequent range gets performed by get_blob_to_* methods if
        max_connections is greater than 1 and the blob is larger than MAX_SINGLE_GET_SIZE.
        Less data will be returned if the remainder of the blob is smaller than
        this.
    '''

    MAX_SINGLE_PUT_SIZE = 64 * 1024 * 1024
    MAX_BLOCK_SIZE = 4 * 1024 * 1024
    MAX_SINGLE_GET_SIZE = 32 * 1024 * 1024
    MAX_CHUNK_GET_SIZE = 4 * 1024 * 1024

    def __init__(self, account_name=None, account_key=None, sas_token=None, credential=None,
                 transport=None, protocol=DEFAULT_PROTOCOL, endpoint_suffix=SERVICE_HOST_BASE,
                 key_name=None):
        '''
        :param str account_name:
            The storage account name. This is used to authenticate requests
            signed with an account key and to construct the storage endpoint.
        :param str account_key:
            The storage account key. This is used for shared key authentication.
            If neither account key or sas token is specified, anonymous access
            will be used.
        :param str sas_token:
             A shared access signature token to use to authenticate requests
             instead of the account key. If account key and sas token are both
             specified, account key will be used to sign. If neither are
             specified, anonymous access will be used.
        :param ~storagesas.credentials.StorageCredential credential:
            Credentials to use instead of account_key and sas_token. Keep a
            reference to shared access signature credentials to replace their
            token later.
        :param transport:
            Sends the requests, see :class:`~storagesas._http.HTTPTransport`.
        :param str protocol:
            The protocol to use for requests. Defaults to https.
        :param str endpoint_suffix:
            The host base component of the url, minus the account name. Defaults
            to Azure (core.windows.net). Override this to use the China cloud
            (core.chinacloudapi.cn).
        :param str key_name:
            The name of the account key, added to the shared access signatures
            the service generates.
        '''
        super(BlobService, self).__init__(
            'blob',
            account_name=account_name,
            account_key=account_key,
            sas_token=sas_token,
            credential=credential,
            transport=transport,
            protocol=protocol,
            endpoint_suffix=endpoint_suffix,
            key_name=key_name)

    def make_blob_url(self, container_name, blob_name, protocol=None, sas_token=None):
        '''
        Creates the url to access a blob.

        :param str container_name:
            Name of container.
        :param str blob_name:
            Name of blob.
        :param str protocol:
            Protocol to use: 'http' or 'https'. If not specified, uses the
            protocol specified when BlobService was initialized.
        :param str sas_token:
            Shared access signature token created with
            generate_shared_access_signature.
        :return: blob access URL.
        :rtype: str
        '''

        url = '{}://{}/{}/{}'.format(
            protocol or self.protocol,
            self.primary_endpoint,
            container_name,
            blob_name,
        )

        if sas_token:
            url += '?' + sas_token

        return url

    def make_container_url(self, container_name, protocol=None, sas_token=None):
        '''
        Creates the url to access a container.

        :param str container_name:
            Name of container.
        :param str protocol:
            Protocol to use: 'http' or 'https'. If not specified, uses the
            protocol specified when BlobService was initialized.
        :param str sas_token:
            Shared access signature token created with
            generate_shared_access_signature.
        :return: container access URL.
        :rtype: str
        '''
        url = '{}://{}/{}?restype=container'.format(
            protocol or self.protocol,
            self.primary_endpoint,
            container_name,
        )

        if sas_token:
            url += '&' + sas_token

        return url

    def generate_container_shared_access_signature(self, container_name,
                                                   permission=None, expiry=None,
                                                   start=None, id=None, ip=None, protocol=None,
                                                   cache_control=None, content_disposition=None,
                                                   content_encoding=None, content_language=None,
                                                   content_type=None):
        '''
        Generates a shared access signature for the container.
        Use the returned signature with the sas_token parameter of any BlobService.

        :param str container_name:
            Name of container.
        :param ContainerPermissions permission:
            The permissions associated with the shared access signature. The
            user is restricted to operations allowed by the permissions.
            Permissions must be ordered read, add, create, write, delete, list.
            Required unless an id is given referencing a stored access policy
            which contains this field. This field must be omitted if it has been
            specified in an associated stored access policy.
        :param expiry:
            The time at which the shared access signature becomes invalid.
            Required unless an id is given referencing a stored access policy
            which contains this field. This field must be omitted if it has
            been specified in an associated stored access policy. Azure will always
            convert values to UTC. If a date is passed in without timezone info, it
            is assumed to be UTC.
        :type expiry: datetime or str
        :param start:
            The time at which the shared access signature becomes valid. If
            omitted, start time for this call is assumed to be the time when the
            storage service receives the request. Azure will always convert values
            to UTC. If a date is passed in without timezone info, it is assumed to
            be UTC.
        :type start: datetime or str
        :param str id:
            A unique value up to 64 characters in length that correlates to a
            stored access policy. To create a stored access policy, use
            set_container_acl.
        :param str ip:
            Specifies an IP address or a range of IP addresses from which to accept requests.
            If the IP address from which the request originates does not match the IP address
            or address range specified on the SAS token, the request is not authenticated.
            For example, specifying sip=168.1.5.65 or sip=168.1.5.60-168.1.5.70 on the SAS
            restricts the request to those IP addresses.
        :param str protocol:
            Specifies the protocol permitted for a request made. Possible values are
            both HTTPS and HTTP (https,http) or HTTPS only (https). The default value
            is https,http. Note that HTTP only is not a permitted value.
        :param str cache_control:
            Response header value for Cache-Control when resource is accessed
            using this shared access signature.
        :param str content_disposition:
            Response header value for Content-Disposition when resource is accessed
            using this shared access signature.
        :param str content_encoding:
            Response header value for Content-Encoding when resource is accessed
            using this shared access signature.
        :param str content_language:
            Response header value for Content-Language when resource is accessed
            using this shared access signature.
        :param str content_type:
            Response header value for Content-Type when resource is accessed
            using this shared access signature.
        :return: A Shared Access Signature (sas) token.
        :rtype: str
        '''
        _validate_not_none('container_name', container_name)

        sas = self._get_shared_access_signature()
        return sas.generate_container(
            container_name,
            permission,
            expiry,
            start=start,
            id=id,
            ip=ip,
            protocol=protocol,
            cache_control=cache_control,
            content_disposition=content_disposition,
            content_encoding=content_encoding,
            content_language=content_language,
            content_type=content_type,
        )

    def generate_blob_shared_access_signature(
            self, container_name, blob_name, permission=None,
            expiry=None, start=None, id=None, ip=None, protocol=None,
            cache_control=None, content_disposition=None,
            content_encoding=None, content_language=None,
            content_type=None):
        '''
        Generates a shared access signature for the blob.
        Use the returned signature with the sas_token parameter of any BlobService.

        The parameters are those of
        :func:`generate_container_shared_access_signature`, with the permission
        given as a :class:`~storagesas.blob.models.BlobPermissions`.

        :param str container_name:
            Name of container.
        :param str blob_name:
            Name of blob.
        :return: A Shared Access Signature (sas) token.
        :rtype: str
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)

        sas = self._get_shared_access_signature()
        return sas.generate_blob(
            container_name,
            blob_name,
            permission,
            expiry,
            start=start,
            id=id,
            ip=ip,
            protocol=protocol,
            cache_control=cache_control,
            content_disposition=content_disposition,
            content_encoding=content_encoding,
            content_language=content_language,
            content_type=content_type,
        )

    def create_container(self, container_name, metadata=None, public_access=None,
                         fail_on_exist=False, timeout=None, operation_context=None):
        '''
        Creates a new container under the specified account. If the container
        with the same name already exists, the operation fails if
        fail_on_exist is True.

        :param str container_name:
            Name of container to create.
        :param metadata:
            A dict with name_value pairs to associate with the
            container as metadata. Example:{'Category':'test'}
        :type metadata: dict(str, str)
        :param ~storagesas.blob.models.PublicAccess public_access:
            Possible values include: container, blob.
        :param bool fail_on_exist:
            Specify whether to throw an exception when the container exists.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param ~storagesas.models.OperationContext operation_context:
            Collects the result of each request sent.
        :return: True if container is created, False if container already exists.
        :rtype: bool
        '''
        _validate_not_none('container_name', container_name)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name)
        request.query = {
            'restype': 'container',
            'timeout': _int_to_str(timeout),
        }
        request.headers = {
            'x-ms-blob-public-access': public_access,
        }
        _add_metadata_headers(metadata, request)

        if not fail_on_exist:
            try:
                self._perform_request(request, operation_context=operation_context)
                return True
            except AzureHttpError as ex:
                return _dont_fail_on_exist(ex)
        else:
            self._perform_request(request, operation_context=operation_context)
            return True

    def get_container_properties(self, container_name, timeout=None, operation_context=None):
        '''
        Returns all user-defined metadata and system properties for the specified
        container. The data returned does not include the container's list of blobs.

        :param str container_name:
            Name of existing container.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: properties for the specified container within a container object.
        :rtype: :class:`~storagesas.blob.models.Container`
        '''
        _validate_not_none('container_name', container_name)
        request = HTTPRequest()
        request.method = 'HEAD'
        request.host = self._get_host()
        request.path = _get_path(container_name)
        request.query = {
            'restype': 'container',
            'timeout': _int_to_str(timeout),
        }

        return self._perform_request(request, _parse_container, [container_name],
                                     operation_context=operation_context)

    def delete_container(self, container_name, fail_not_exist=False, timeout=None,
                         operation_context=None):
        '''
        Marks the specified container for deletion. The container and any blobs
        contained within it are later deleted during garbage collection.
        If the container does not exist, the operation fails if
        fail_not_exist is True.

        :param str container_name:
            Name of container to delete.
        :param bool fail_not_exist:
            Specify whether to throw an exception when the container doesn't
            exist.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: True if container is deleted, False container doesn't exist.
        :rtype: bool
        '''
        _validate_not_none('container_name', container_name)
        request = HTTPRequest()
        request.method = 'DELETE'
        request.host = self._get_host()
        request.path = _get_path(container_name)
        request.query = {
            'restype': 'container',
            'timeout': _int_to_str(timeout),
        }

        if not fail_not_exist:
            try:
                self._perform_request(request, operation_context=operation_context)
                return True
            except AzureHttpError as ex:
                return _dont_fail_not_exist(ex)
        else:
            self._perform_request(request, operation_context=operation_context)
            return True

    def exists(self, container_name, blob_name=None, timeout=None, operation_context=None):
        '''
        Returns a boolean indicating whether the container exists (if blob_name
        is None), or otherwise a boolean indicating whether the blob exists.

        :param str container_name:
            Name of a container.
        :param str blob_name:
            Name of a blob. If None, the container will be checked for existence.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: A boolean indicating whether the resource exists.
        :rtype: bool
        '''
        _validate_not_none('container_name', container_name)
        try:
            if blob_name is None:
                self.get_container_properties(container_name, timeout=timeout,
                                              operation_context=operation_context)
            else:
                self.get_blob_properties(container_name, blob_name, timeout=timeout,
                                         operation_context=operation_context)
            return True
        except AzureHttpError as ex:
            return _dont_fail_not_exist(ex)

    def get_container_acl(self, container_name, timeout=None, operation_context=None):
        '''
        Gets the permissions for the specified container.
        The permissions indicate whether container data may be accessed publicly.

        :param str container_name:
            Name of existing container.
        :param int timeout:
            The server timeout, expressed in seconds.
        :return: A dictionary of access policies associated with the container. dict of str to
            :class:`~storagesas.models.AccessPolicy` and a public_access property
            if public access is turned on
        '''
        _validate_not_none('container_name', container_name)
        request = HTTPRequest()
        request.method = 'GET'
        request.host = self._get_host()
        request.path = _get_path(container_name)
        request.query = {
            'restype': 'container',
            'comp': 'acl',
            'timeout': _int_to_str(timeout),
        }

        response = self._perform_request(request, operation_context=operation_context)
        acl = _convert_xml_to_signed_identifiers(response)
        if acl is None:
            acl = _dict()
        acl.public_access = response.headers.get('x-ms-blob-public-access')
        return acl

    def set_container_acl(self, container_name, signed_identifiers=None,
                          public_access=None, timeout=None, operation_context=None):
        '''
        Sets the permissions for the specified container or stored access
        policies that may be used with Shared Access Signatures. The permissions
        indicate whether blobs in a container may be accessed publicly.

        :param str container_name:
            Name of existing container.
        :param signed_identifiers:
            A dictionary of access policies to associate with the container. The
            dictionary may contain up to 5 elements. An empty dictionary
            will clear the access policies set on the service.
        :type signed_identifiers: dict(str, :class:`~storagesas.models.AccessPolicy`)
        :param ~storagesas.blob.models.PublicAccess public_access:
            Possible values include: container, blob.
        :param int timeout:
            The server timeout, expressed in seconds.
        :return: ETag and last modified properties for the updated Container
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_access_policies(signed_identifiers)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name)
        request.query = {
            'restype': 'container',
            'comp': 'acl',
            'timeout': _int_to_str(timeout),
        }
        request.headers = {
            'x-ms-blob-public-access': public_access,
        }
        request.body = _get_request_body(
            _convert_signed_identifiers_to_xml(signed_identifiers))

        return self._perform_request(request, _parse_base_properties,
                                     operation_context=operation_context)

    def list_blobs(self, container_name, prefix=None, num_results=None, include_metadata=False,
                   marker=None, timeout=None, operation_context=None):
        '''
        Returns a generator to list the blobs under the specified container.
        The generator will lazily follow the continuation tokens returned by
        the service and stop when all blobs have been returned or num_results is reached.

        If num_results is specified and the account has more than that number of
        blobs, the generator will have a populated next_marker field once it
        finishes. This marker can be used to create a new generator if more
        results are desired.

        :param str container_name:
            Name of existing container.
        :param str prefix:
            Filters the results to return only blobs whose names
            begin with the specified prefix.
        :param int num_results:
            Specifies the maximum number of blobs to return.
        :param bool include_metadata:
            Specifies that blob metadata be returned in the response.
        :param str marker:
            An opaque continuation token. This value can be retrieved from the
            next_marker field of a previous generator object if num_results was
            specified and that generator has finished enumerating results. If
            specified, this generator will begin returning results from the point
            where the previous generator stopped.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        '''
        args = (container_name,)
        kwargs = {'prefix': prefix, 'marker': marker, 'max_results': num_results,
                  'include_metadata': include_metadata, 'timeout': timeout,
                  'operation_context': operation_context}
        resp = self._list_blobs(*args, **kwargs)

        return ListGenerator(resp, self._list_blobs, args, kwargs)

    def _list_blobs(self, container_name, prefix=None, marker=None,
                    max_results=None, include_metadata=False, timeout=None,
                    operation_context=None):
        '''
        Returns the list of blobs under the specified container.

        :param str container_name:
            Name of existing container.
        :param str marker:
            A string value that identifies the portion of the list
            to be returned with the next list operation. The operation returns
            a next_marker value within the response body if the list returned was
            not complete.
        :param int max_results:
            Specifies the maximum number of blobs to return. A single list request
            may return up to 1000 blobs and potentially a continuation token which
            should be followed to get additional results.
        '''
        _validate_not_none('container_name', container_name)
        request = HTTPRequest()
        request.method = 'GET'
        request.host = self._get_host()
        request.path = _get_path(container_name)
        request.query = {
            'restype': 'container',
            'comp': 'list',
            'prefix': prefix,
            'marker': marker,
            'maxresults': _int_to_str(max_results),
            'include': 'metadata' if include_metadata else None,
            'timeout': _int_to_str(timeout),
        }

        return self._perform_request(request, _convert_xml_to_blob_list,
                                     operation_context=operation_context)

    def get_blob_properties(self, container_name, blob_name, cpk=None, timeout=None,
                            operation_context=None):
        '''
        Returns all user-defined metadata, standard HTTP properties, and
        system properties for the blob. It does not return the content of the blob.
        Returns :class:`~storagesas.blob.models.Blob`
        with :class:`~storagesas.blob.models.BlobProperties` and a metadata dict.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            The key the blob was written with, if any.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: a blob object including properties and metadata.
        :rtype: :class:`~storagesas.blob.models.Blob`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'HEAD'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_to_str(timeout)}
        _add_cpk_headers(request, cpk, self.protocol)

        return self._perform_request(request, _parse_blob, [blob_name],
                                     operation_context=operation_context)

    def set_blob_properties(self, container_name, blob_name, content_settings=None,
                            timeout=None, operation_context=None):
        '''
        Sets system properties on the blob. If one property is set for the
        content_settings, all properties will be overriden.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param ~storagesas.blob.models.ContentSettings content_settings:
            ContentSettings object used to set blob properties.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: ETag and last modified properties for the updated Blob
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'properties',
            'timeout': _int_to_str(timeout),
        }
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())

        return self._perform_request(request, _parse_base_properties,
                                     operation_context=operation_context)

    def get_blob_metadata(self, container_name, blob_name, cpk=None, timeout=None,
                          operation_context=None):
        '''
        Returns all user-defined metadata for the specified blob.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            The key the blob was written with, if any.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return:
            A dictionary representing the blob metadata name, value pairs.
        :rtype: dict(str, str)
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'GET'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'metadata',
            'timeout': _int_to_str(timeout),
        }
        _add_cpk_headers(request, cpk, self.protocol)

        return self._perform_request(request, _parse_metadata,
                                     operation_context=operation_context)

    def set_blob_metadata(self, container_name, blob_name, metadata=None, cpk=None,
                          timeout=None, operation_context=None):
        '''
        Sets user-defined metadata for the specified blob as one or more
        name-value pairs.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param metadata:
            Dict containing name and value pairs. Each call to this operation
            replaces all existing metadata attached to the blob. To remove all
            metadata from the blob, call this operation with no metadata headers.
        :type metadata: dict(str, str)
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            The key the blob was written with, if any.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: ETag and last modified properties for the updated Blob
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'metadata',
            'timeout': _int_to_str(timeout),
        }
        _add_metadata_headers(metadata, request)
        _add_cpk_headers(request, cpk, self.protocol)

        return self._perform_request(request, _parse_base_properties,
                                     operation_context=operation_context)

    def delete_blob(self, container_name, blob_name, timeout=None, operation_context=None):
        '''
        Marks the specified blob for deletion.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'DELETE'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_to_str(timeout)}

        self._perform_request(request, operation_context=operation_context)

    def _put_blob(self, container_name, blob_name, blob, content_settings=None,
                  metadata=None, cpk=None, timeout=None, operation_context=None,
                  cancellation_token=None):
        '''
        Creates a blob or updates an existing blob.

        See create_blob_from_* for high level functions that handle the
        creation of large blobs with automatic chunking and progress
        notifications.
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_to_str(timeout)}
        request.headers = {'x-ms-blob-type': 'BlockBlob'}
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())
        _add_metadata_headers(metadata, request)
        _add_cpk_headers(request, cpk, self.protocol)
        request.body = blob or b''

        return self._perform_request(request, _parse_base_properties,
                                     operation_context=operation_context,
                                     cancellation_token=cancellation_token)

    def put_block(self, container_name, blob_name, block, block_id, cpk=None,
                  timeout=None, operation_context=None, cancellation_token=None):
        '''
        Creates a new block to be committed as part of a blob.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob.
        :param bytes block:
            Content of the block.
        :param str block_id:
            A valid Base64 string value that identifies the block. Prior to
            encoding, the string must be less than or equal to 64 bytes in size.
            For a given blob, the length of the value specified for the blockid
            parameter must be the same size for each block. Note that the Base64
            string must be URL-encoded.
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            Encrypts the block with the given key.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('block', block)
        _validate_not_none('block_id', block_id)
        _validate_type_bytes('block', block)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'block',
            'blockid': block_id,
            'timeout': _int_to_str(timeout),
        }
        _add_cpk_headers(request, cpk, self.protocol)
        request.body = block

        self._perform_request(request, operation_context=operation_context,
                              cancellation_token=cancellation_token)

    def put_block_list(self, container_name, blob_name, block_list, content_settings=None,
                       metadata=None, cpk=None, timeout=None, operation_context=None,
                       cancellation_token=None):
        '''
        Writes a blob by specifying the list of block IDs that make up the blob.
        In order to be written as part of a blob, a block must have been
        successfully written to the server in a prior Put Block operation.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param block_list:
            A list of :class:`~storagesas.blob.models.BlobBlock` containing the block ids.
        :type block_list: list(:class:`~storagesas.blob.models.BlobBlock`)
        :param ~storagesas.blob.models.ContentSettings content_settings:
            ContentSettings object used to set properties on the blob.
        :param metadata:
            Dict containing name and value pairs.
        :type metadata: dict(str, str)
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            The key the blocks were written with, if any.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: ETag and last modified properties for the updated Block Blob
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('block_list', block_list)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'blocklist',
            'timeout': _int_to_str(timeout),
        }
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())
        _add_metadata_headers(metadata, request)
        _add_cpk_headers(request, cpk, self.protocol)
        request.body = _get_request_body(
            _convert_block_list_to_xml(block_list))

        return self._perform_request(request, _parse_base_properties,
                                     operation_context=operation_context,
                                     cancellation_token=cancellation_token)

    def create_blob_from_stream(
            self, container_name, blob_name, stream, count=None,
            content_settings=None, metadata=None, progress_callback=None,
            max_connections=2, cpk=None, timeout=None, operation_context=None,
            cancellation_token=None):
        '''
        Creates a new blob from a file/stream, or updates the content of
        an existing blob, with automatic chunking and progress
        notifications.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob to create or update.
        :param io.IOBase stream:
            Opened file/stream to upload as the blob content.
        :param int count:
            Number of bytes to read from the stream. This is optional, but
            should be supplied for optimal performance.
        :param ~storagesas.blob.models.ContentSettings content_settings:
            ContentSettings object used to set blob properties.
        :param metadata:
            Name-value pairs associated with the blob as metadata.
        :type metadata: dict(str, str)
        :param progress_callback:
            Callback for progress with signature function(current, total) where
            current is the number of bytes transfered so far, and total is the
            size of the blob, or None if the total size is unknown.
        :type progress_callback: func(current, total)
        :param int max_connections:
            Maximum number of parallel connections to use when the blob size exceeds
            64MB.
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            Encrypts the data on the service with the given key.
        :param int timeout:
            The timeout parameter is expressed in seconds. This method may make
            multiple calls to the Azure service and the timeout will apply to
            each call individually.
        :param ~storagesas.models.OperationContext operation_context:
            Collects the result of each request sent.
        :param ~storagesas.models.CancellationToken cancellation_token:
            Checked before each request. Once canceled the upload stops with
            :class:`~storagesas._error.AzureOperationCanceledError`.
        :return: ETag and last modified properties for the Block Blob
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('stream', stream)

        if count is not None and count < self.MAX_SINGLE_PUT_SIZE:
            if progress_callback:
                progress_callback(0, count)

            data = stream.read(count)
            resp = self._put_blob(
                container_name=container_name,
                blob_name=blob_name,
                blob=data,
                content_settings=content_settings,
                metadata=metadata,
                cpk=cpk,
                timeout=timeout,
                operation_context=operation_context,
                cancellation_token=cancellation_token)

            if progress_callback:
                progress_callback(count, count)

            return resp
        else:
            block_ids = _upload_blob_chunks(
                blob_service=self,
                container_name=container_name,
                blob_name=blob_name,
                blob_size=count,
                block_size=self.MAX_BLOCK_SIZE,
                stream=stream,
                max_connections=max_connections,
                progress_callback=progress_callback,
                cpk=cpk,
                operation_context=operation_context,
                cancellation_token=cancellation_token,
            )

            return self.put_block_list(
                container_name=container_name,
                blob_name=blob_name,
                block_list=block_ids,
                content_settings=content_settings,
                metadata=metadata,
                cpk=cpk,
                timeout=timeout,
                operation_context=operation_context,
                cancellation_token=cancellation_token,
            )

    def create_blob_from_bytes(
            self, container_name, blob_name, blob, index=0, count=None,
            content_settings=None, metadata=None, progress_callback=None,
            max_connections=2, cpk=None, timeout=None, operation_context=None,
            cancellation_token=None):
        '''
        Creates a new blob from an array of bytes, or updates the content
        of an existing blob, with automatic chunking and progress
        notifications.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob to create or update.
        :param bytes blob:
            Content of blob as an array of bytes.
        :param int index:
            Start index in the array of bytes.
        :param int count:
            Number of bytes to upload. Set to None or negative value to upload
            all bytes starting from index.

        The remaining parameters are those of :func:`create_blob_from_stream`.

        :return: ETag and last modified properties for the Block Blob
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('blob', blob)
        _validate_not_none('index', index)
        _validate_type_bytes('blob', blob)

        if index < 0:
            raise IndexError('index is out of range')

        if count is None or count < 0:
            count = len(blob) - index

        stream = BytesIO(blob)
        stream.seek(index)

        return self.create_blob_from_stream(
            container_name=container_name,
            blob_name=blob_name,
            stream=stream,
            count=count,
            content_settings=content_settings,
            metadata=metadata,
            progress_callback=progress_callback,
            max_connections=max_connections,
            cpk=cpk,
            timeout=timeout,
            operation_context=operation_context,
            cancellation_token=cancellation_token)

    def create_blob_from_text(
            self, container_name, blob_name, text, encoding='utf-8',
            content_settings=None, metadata=None, progress_callback=None,
            max_connections=2, cpk=None, timeout=None, operation_context=None,
            cancellation_token=None):
        '''
        Creates a new blob from str/unicode, or updates the content of an
        existing blob, with automatic chunking and progress notifications.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob to create or update.
        :param str text:
            Text to upload to the blob.
        :param str encoding:
            Python encoding to use to convert the text to bytes.

        The remaining parameters are those of :func:`create_blob_from_stream`.

        :return: ETag and last modified properties for the Block Blob
        :rtype: :class:`~storagesas._deserialization.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('text', text)

        if not isinstance(text, bytes):
            _validate_not_none('encoding', encoding)
            text = text.encode(encoding)

        return self.create_blob_from_bytes(
            container_name=container_name,
            blob_name=blob_name,
            blob=text,
            index=0,
            count=len(text),
            content_settings=content_settings,
            metadata=metadata,
            progress_callback=progress_callback,
            max_connections=max_connections,
            cpk=cpk,
            timeout=timeout,
            operation_context=operation_context,
            cancellation_token=cancellation_token)

    def _get_blob(self, container_name, blob_name, start_range=None, end_range=None,
                  cpk=None, timeout=None, operation_context=None, cancellation_token=None):
        '''
        Downloads a blob's content, metadata, and properties. You can specify a
        range if you don't need to download the blob in its entirety. If no
        range is specified, the full blob will be downloaded.

        See get_blob_to_* for high level functions that handle the download
        of large blobs with automatic chunking and progress notifications.
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'GET'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_to_str(timeout)}
        _validate_and_format_range_headers(
            request,
            start_range,
            end_range,
            start_range_required=False,
            end_range_required=False)
        _add_cpk_headers(request, cpk, self.protocol)

        return self._perform_request(request, _parse_blob, [blob_name],
                                     operation_context=operation_context,
                                     cancellation_token=cancellation_token)

    def get_blob_to_stream(
            self, container_name, blob_name, stream, start_range=None, end_range=None,
            progress_callback=None, max_connections=2, cpk=None, timeout=None,
            operation_context=None, cancellation_token=None):
        '''
        Downloads a blob to a stream, with automatic chunking and progress
        notifications. Returns an instance of :class:`~storagesas.blob.models.Blob` with
        properties and metadata.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param io.IOBase stream:
            Opened stream to write to.
        :param int start_range:
            Start of byte range to use for downloading a section of the blob.
            If no end_range is given, all bytes after the start_range will be downloaded.
            The start_range and end_range params are inclusive.
            Ex: start_range=0, end_range=511 will download first 512 bytes of blob.
        :param int end_range:
            End of byte range to use for downloading a section of the blob.
            If end_range is given, start_range must be provided.
            The start_range and end_range params are inclusive.
        :param progress_callback:
            Callback for progress with signature function(current, total)
            where current is the number of bytes transfered so far, and total is
            the size of the blob if known.
        :type progress_callback: func(current, total)
        :param int max_connections:
            If set to 2 or greater, an initial get will be done for the first
            32MB of the blob. If this is the entire blob, the method returns
            at this point. If it is not, it will download the remaining data parallel
            using the number of threads equal to max_connections. Each chunk will be
            of size 4MB. If set to 1, the remaining chunks are downloaded one after
            the other.
        :param ~storagesas.blob.models.CustomerProvidedEncryptionKey cpk:
            The key the blob was written with, if any.
        :param int timeout:
            The timeout parameter is expressed in seconds. This method may make
            multiple calls to the Azure service and the timeout will apply to
            each call individually.
        :param ~storagesas.models.OperationContext operation_context:
            Collects the result of each request sent.
        :param ~storagesas.models.CancellationToken cancellation_token:
            Checked before each request. Once canceled the download stops with
            :class:`~storagesas._error.AzureOperationCanceledError`.
        :return: A Blob with properties and metadata.
        :rtype: :class:`~storagesas.blob.models.Blob`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('stream', stream)

        if end_range is not None:
            _validate_not_none('start_range', start_range)

        if max_connections > 1 and hasattr(stream, 'seekable') and not stream.seekable():
            raise ValueError(_ERROR_PARALLEL_NOT_SEEKABLE)

        first_get_size = self.MAX_SINGLE_GET_SIZE
        initial_request_start = start_range if start_range is not None else 0

        if end_range is not None and end_range - initial_request_start < first_get_size:
            initial_request_end = end_range
        else:
            initial_request_end = initial_request_start + first_get_size - 1

        try:
            blob = self._get_blob(container_name,
                                  blob_name,
                                  start_range=initial_request_start,
                                  end_range=initial_request_end,
                                  cpk=cpk,
                                  timeout=timeout,
                                  operation_context=operation_context,
                                  cancellation_token=cancellation_token)

            # Parse the total blob size and adjust the download size if ranges
            # were specified
            blob_size = blob.properties.content_length
            if end_range is not None:
                # Use the end_range unless it is over the end of the blob
                download_size = min(blob_size, end_range + 1) - initial_request_start
            else:
                download_size = blob_size - initial_request_start
        except AzureHttpError as ex:
            if start_range is None and ex.status_code == 416:
                # Get range will fail on an empty blob. If the user did not
                # request a range, do a regular get request in order to get
                # any properties.
                blob = self._get_blob(container_name,
                                      blob_name,
                                      cpk=cpk,
                                      timeout=timeout,
                                      operation_context=operation_context,
                                      cancellation_token=cancellation_token)

                # Set the download size to empty
                download_size = 0
            else:
                raise ex

        # Mark the first progress chunk. If the blob is small, this is the only call
        initial_size = len(blob.content or b'')
        if progress_callback:
            progress_callback(initial_size, download_size)

        # Write the content to the user stream
        # Clear blob content since output has been written to user stream
        if blob.content is not None:
            stream.write(blob.content)
            blob.content = None

        # If the blob is large, download the rest of the blob in chunks.
        if download_size > initial_size:
            logger.debug("Downloading the remaining %s bytes of %s/%s in chunks",
                         download_size - initial_size, container_name, blob_name)
            _download_blob_chunks(
                blob_service=self,
                container_name=container_name,
                blob_name=blob_name,
                download_size=download_size,
                chunk_size=self.MAX_CHUNK_GET_SIZE,
                progress=initial_size,
                start_range=initial_request_end + 1,
                end_range=initial_request_start + download_size - 1,
                stream=stream,
                max_connections=max_connections,
                progress_callback=progress_callback,
                cpk=cpk,
                operation_context=operation_context,
                cancellation_token=cancellation_token,
            )

        # The returned properties describe the downloaded range
        blob.properties.content_length = download_size
        if start_range is not None:
            blob.properties.content_range = 'bytes {0}-{1}/{2}'.format(
                initial_request_start, initial_request_start + download_size - 1, blob_size)
        else:
            blob.properties.content_range = None
        return blob

    def get_blob_to_bytes(
            self, container_name, blob_name, start_range=None, end_range=None,
            progress_callback=None, max_connections=2, cpk=None, timeout=None,
            operation_context=None, cancellation_token=None):
        '''
        Downloads a blob as an array of bytes, with automatic chunking and
        progress notifications. Returns an instance of :class:`~storagesas.blob.models.Blob` with
        properties, metadata, and content.

        The parameters are those of :func:`get_blob_to_stream`.

        :return: A Blob with properties and metadata. The content is in the
            content attribute.
        :rtype: :class:`~storagesas.blob.models.Blob`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)

        stream = BytesIO()
        blob = self.get_blob_to_stream(
            container_name,
            blob_name,
            stream,
            start_range=start_range,
            end_range=end_range,
            progress_callback=progress_callback,
            max_connections=max_connections,
            cpk=cpk,
            timeout=timeout,
            operation_context=operation_context,
            cancellation_token=cancellation_token)

        blob.content = stream.getvalue()
        return blob

    def get_blob_to_text(
            self, container_name, blob_name, encoding='utf-8', start_range=None,
            end_range=None, progress_callback=None, max_connections=2, cpk=None,
            timeout=None, operation_context=None, cancellation_token=None):
        '''
        Downloads a blob as unicode text, with automatic chunking and progress
        notifications. Returns an instance of :class:`~storagesas.blob.models.Blob` with
        properties, metadata, and content.

        :param str encoding:
            Python encoding to use when decoding the blob data.

        The other parameters are those of :func:`get_blob_to_stream`.

        :return: A Blob with properties and metadata. The decoded text is in
            the content attribute.
        :rtype: :class:`~storagesas.blob.models.Blob`
        '''
        _validate_not_none('encoding', encoding)

        blob = self.get_blob_to_bytes(container_name,
                                      blob_name,
                                      start_range=start_range,
                                      end_range=end_range,
                                      progress_callback=progress_callback,
                                      max_connections=max_connections,
                                      cpk=cpk,
                                      timeout=timeout,
                                      operation_context=operation_context,
                                      cancellation_token=cancellation_token)
        blob.content = blob.content.decode(encoding)
        return blob

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
from datetime import date

from ._common_conversion import _sign_string
from ._constants import X_MS_VERSION
from ._error import (
    _ERROR_EXPIRY_BEFORE_START,
    _ERROR_INVALID_RESOURCE_TYPE,
    _ERROR_MISSING_EXPIRY,
    _ERROR_MISSING_MANDATORY_SAS_PARAMETERS,
    _validate_not_none,
)
from ._serialization import (
    url_quote,
    url_unquote,
    _parse_time,
    _to_utc_datetime,
)
from .models import (
    _to_ip_range,
    _validate_protocol,
)

logger = logging.getLogger(__name__)


class ResourceType(object):
    RESOURCE_BLOB = 'b'
    RESOURCE_CONTAINER = 'c'


class QueryStringConstants(object):
    SIGNED_SIGNATURE = 'sig'
    SIGNED_PERMISSION = 'sp'
    SIGNED_START = 'st'
    SIGNED_EXPIRY = 'se'
    SIGNED_RESOURCE = 'sr'
    SIGNED_IDENTIFIER = 'si'
    SIGNED_IP = 'sip'
    SIGNED_PROTOCOL = 'spr'
    SIGNED_VERSION = 'sv'
    SIGNED_KEY = 'sk'
    SIGNED_CACHE_CONTROL = 'rscc'
    SIGNED_CONTENT_DISPOSITION = 'rscd'
    SIGNED_CONTENT_ENCODING = 'rsce'
    SIGNED_CONTENT_LANGUAGE = 'rscl'
    SIGNED_CONTENT_TYPE = 'rsct'

    @staticmethod
    def to_list():
        return [
            QueryStringConstants.SIGNED_SIGNATURE,
            QueryStringConstants.SIGNED_PERMISSION,
            QueryStringConstants.SIGNED_START,
            QueryStringConstants.SIGNED_EXPIRY,
            QueryStringConstants.SIGNED_RESOURCE,
            QueryStringConstants.SIGNED_IDENTIFIER,
            QueryStringConstants.SIGNED_IP,
            QueryStringConstants.SIGNED_PROTOCOL,
            QueryStringConstants.SIGNED_VERSION,
            QueryStringConstants.SIGNED_KEY,
            QueryStringConstants.SIGNED_CACHE_CONTROL,
            QueryStringConstants.SIGNED_CONTENT_DISPOSITION,
            QueryStringConstants.SIGNED_CONTENT_ENCODING,
            QueryStringConstants.SIGNED_CONTENT_LANGUAGE,
            QueryStringConstants.SIGNED_CONTENT_TYPE,
        ]


def _get_canonicalized_resource(account_name, path):
    if path[0] != '/':
        path = '/' + path
    return '/blob/' + account_name + path


def _get_string_to_sign(canonicalized_resource, query_dict):
    '''
    Builds the string to sign from the signed fields of a shared access
    signature. The order of values is important.
    '''

    def get_value_to_append(name):
        return_value = query_dict.get(name) or ''
        return return_value + '\n'

    string_to_sign = \
        (get_value_to_append(QueryStringConstants.SIGNED_PERMISSION) +
         get_value_to_append(QueryStringConstants.SIGNED_START) +
         get_value_to_append(QueryStringConstants.SIGNED_EXPIRY) +
         canonicalized_resource + '\n' +
         get_value_to_append(QueryStringConstants.SIGNED_IDENTIFIER) +
         get_value_to_append(QueryStringConstants.SIGNED_IP) +
         get_value_to_append(QueryStringConstants.SIGNED_PROTOCOL) +
         get_value_to_append(QueryStringConstants.SIGNED_VERSION) +
         get_value_to_append(QueryStringConstants.SIGNED_CACHE_CONTROL) +
         get_value_to_append(QueryStringConstants.SIGNED_CONTENT_DISPOSITION) +
         get_value_to_append(QueryStringConstants.SIGNED_CONTENT_ENCODING) +
         get_value_to_append(QueryStringConstants.SIGNED_CONTENT_LANGUAGE) +
         get_value_to_append(QueryStringConstants.SIGNED_CONTENT_TYPE))

    # the last field is not followed by a newline
    return string_to_sign[:-1]


# canonical letter order of BlobPermissions and ContainerPermissions
_PERMISSION_ORDER = {
    ResourceType.RESOURCE_BLOB: 'racwd',
    ResourceType.RESOURCE_CONTAINER: 'racwdl',
}


def _canonical_permission(permission, resource_type):
    if permission is None:
        return None
    granted = str(permission)
    return ''.join(letter for letter in _PERMISSION_ORDER[resource_type] if letter in granted)


def _validate_time_window(permission, expiry, start, id):
    parsed_start = _parse_time('start', start)
    parsed_expiry = _parse_time('expiry', expiry)

    if parsed_start is not None and parsed_expiry is not None and parsed_expiry <= parsed_start:
        raise ValueError(_ERROR_EXPIRY_BEFORE_START.format(start, expiry))

    if parsed_expiry is None and id is None and (str(permission or '') or parsed_start is not None):
        raise ValueError(_ERROR_MISSING_EXPIRY)


class SharedAccessSignature(object):
    '''
    The main class used to do the signing and generating the signature.

    :ivar str account_name:
        The storage account name used to generate the shared access signatures.
    :ivar str account_key:
        The access key to generate the shares access signatures.
    :ivar str key_name:
        The name of the key, sent as the signed key field so that a service
        holding several keys knows which one to verify with. None to omit it.
    '''

    def __init__(self, account_name, account_key, key_name=None):
        '''
        :param str account_name:
            The storage account name used to generate the shared access signatures.
        :param str account_key:
            The access key to generate the shares access signatures.
        :param str key_name:
            The name of the key. Optional.
        '''
        _validate_not_none('account_name', account_name)
        _validate_not_none('account_key', account_key)
        self.account_name = account_name
        self.account_key = account_key
        self.key_name = key_name

    def generate_blob(self, container_name, blob_name, permission=None,
                      expiry=None, start=None, id=None, ip=None, protocol=None,
                      cache_control=None, content_disposition=None,
                      content_encoding=None, content_language=None,
                      content_type=None):
        '''
        Generates a shared access signature for the blob.
        Use the returned signature with the sas_token parameter of the service
        or to create a new account object.

        :param str container_name:
            Name of container.
        :param str blob_name:
            Name of blob.
        :param BlobPermissions permission:
            The permissions associated with the shared access signature. The
            user is restricted to operations allowed by the permissions.
            Permissions must be ordered read, add, create, write, delete.
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
        :param ip:
            Specifies an IP address or a range of IP addresses from which to accept requests.
            If the IP address from which the request originates does not match the IP address
            or address range specified on the SAS token, the request is not authenticated.
            For example, specifying sip='168.1.5.65' or sip='168.1.5.60-168.1.5.70' on the SAS
            restricts the request to those IP addresses.
        :type ip: str or ~storagesas.models.IPRange
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
        _validate_not_none('blob_name', blob_name)
        return self.generate_signed_query_string(
            container_name + '/' + blob_name,
            ResourceType.RESOURCE_BLOB,
            permission, expiry, start, id, ip, protocol,
            cache_control, content_disposition, content_encoding,
            content_language, content_type,
        )

    def generate_container(self, container_name, permission=None, expiry=None,
                           start=None, id=None, ip=None, protocol=None,
                           cache_control=None, content_disposition=None,
                           content_encoding=None, content_language=None,
                           content_type=None):
        '''
        Generates a shared access signature for the container.
        Use the returned signature with the sas_token parameter of the service.

        The parameters are the same as for :func:`generate_blob`, with
        permission given as a :class:`~storagesas.blob.models.ContainerPermissions`.

        :param str container_name:
            Name of container.
        :return: A Shared Access Signature (sas) token.
        :rtype: str
        '''
        _validate_not_none('container_name', container_name)
        return self.generate_signed_query_string(
            container_name,
            ResourceType.RESOURCE_CONTAINER,
            permission, expiry, start, id, ip, protocol,
            cache_control, content_disposition, content_encoding,
            content_language, content_type,
        )

    def generate_signed_query_string(self, path, resource_type,
                                     permission=None, expiry=None, start=None,
                                     id=None, ip=None, protocol=None,
                                     cache_control=None, content_disposition=None,
                                     content_encoding=None, content_language=None,
                                     content_type=None):
        '''
        Generates the query string for path, resource type and shared access
        parameters.

        :param str path:
            The path to the resource, 'container' or 'container/blob'.
        :param str resource_type:
            'b' for blob, 'c' for container.
        :return: The signed query string, without a leading '?'.
        :rtype: str
        '''
        query_dict = self._generate_signed_query_dict(
            path,
            resource_type,
            permission,
            expiry,
            start,
            id,
            ip,
            protocol,
            cache_control,
            content_disposition,
            content_encoding,
            content_language,
            content_type,
        )
        return '&'.join(['{0}={1}'.format(n, url_quote(v)) for n, v in query_dict.items() if v is not None])

    def _generate_signed_query_dict(self, path, resource_type,
                                    permission=None, expiry=None, start=None,
                                    id=None, ip=None, protocol=None,
                                    cache_control=None, content_disposition=None,
                                    content_encoding=None, content_language=None,
                                    content_type=None):
        if resource_type not in _PERMISSION_ORDER:
            raise ValueError(_ERROR_INVALID_RESOURCE_TYPE.format(resource_type))
        protocol = _validate_protocol(protocol)
        ip = _to_ip_range(ip)
        _validate_time_window(permission, expiry, start, id)

        query_dict = {}

        def add_query(name, val):
            if val is not None and str(val):
                query_dict[name] = str(val)

        if isinstance(start, date):
            start = _to_utc_datetime(start)

        if isinstance(expiry, date):
            expiry = _to_utc_datetime(expiry)

        add_query(QueryStringConstants.SIGNED_START, start)
        add_query(QueryStringConstants.SIGNED_EXPIRY, expiry)
        add_query(QueryStringConstants.SIGNED_PERMISSION, _canonical_permission(permission, resource_type))
        add_query(QueryStringConstants.SIGNED_IDENTIFIER, id)

        add_query(QueryStringConstants.SIGNED_IP, ip)
        add_query(QueryStringConstants.SIGNED_PROTOCOL, protocol)
        add_query(QueryStringConstants.SIGNED_VERSION, X_MS_VERSION)
        add_query(QueryStringConstants.SIGNED_RESOURCE, resource_type)
        add_query(QueryStringConstants.SIGNED_KEY, self.key_name)
        add_query(QueryStringConstants.SIGNED_CACHE_CONTROL, cache_control)
        add_query(QueryStringConstants.SIGNED_CONTENT_DISPOSITION, content_disposition)
        add_query(QueryStringConstants.SIGNED_CONTENT_ENCODING, content_encoding)
        add_query(QueryStringConstants.SIGNED_CONTENT_LANGUAGE, content_language)
        add_query(QueryStringConstants.SIGNED_CONTENT_TYPE, content_type)

        query_dict[QueryStringConstants.SIGNED_SIGNATURE] = self._generate_signature(path, query_dict)

        return query_dict

    def _generate_signature(self, path, query_dict):
        ''' Generates signature for a given path and shared access policy. '''
        string_to_sign = _get_string_to_sign(
            _get_canonicalized_resource(self.account_name, path), query_dict)
        logger.debug("String to sign for shared access signature: %s", string_to_sign)
        return _sign_string(self.account_key, string_to_sign)


class SharedAccessSignatureToken(object):
    '''
    The fields of a shared access signature parsed from its query string.
    Values are unquoted. A field that is absent from the token is None.

    :ivar str signature: The signature (sig).
    :ivar str permission: The signed permissions (sp).
    :ivar str start: The signed start time (st), as it appears in the token.
    :ivar str expiry: The signed expiry time (se), as it appears in the token.
    :ivar str resource: The signed resource type (sr), 'b' or 'c'.
    :ivar str id: The stored access policy identifier (si).
    :ivar str ip: The allowed IP address or range (sip).
    :ivar str protocol: The allowed protocols (spr).
    :ivar str version: The version the token was signed for (sv).
    :ivar str key_name: The name of the key it was signed with (sk).
    '''

    def __init__(self, query_dict):
        self._query_dict = dict(query_dict)
        get = self._query_dict.get
        self.signature = get(QueryStringConstants.SIGNED_SIGNATURE)
        self.permission = get(QueryStringConstants.SIGNED_PERMISSION)
        self.start = get(QueryStringConstants.SIGNED_START)
        self.expiry = get(QueryStringConstants.SIGNED_EXPIRY)
        self.resource = get(QueryStringConstants.SIGNED_RESOURCE)
        self.id = get(QueryStringConstants.SIGNED_IDENTIFIER)
        self.ip = get(QueryStringConstants.SIGNED_IP)
        self.protocol = get(QueryStringConstants.SIGNED_PROTOCOL)
        self.version = get(QueryStringConstants.SIGNED_VERSION)
        self.key_name = get(QueryStringConstants.SIGNED_KEY)
        self.cache_control = get(QueryStringConstants.SIGNED_CACHE_CONTROL)
        self.content_disposition = get(QueryStringConstants.SIGNED_CONTENT_DISPOSITION)
        self.content_encoding = get(QueryStringConstants.SIGNED_CONTENT_ENCODING)
        self.content_language = get(QueryStringConstants.SIGNED_CONTENT_LANGUAGE)
        self.content_type = get(QueryStringConstants.SIGNED_CONTENT_TYPE)

    @staticmethod
    def from_query_string(query_string):
        '''
        Parses a shared access signature. Parameters that are not part of a
        shared access signature are ignored.

        :param str query_string:
            The token, with or without a leading '?'.
        :raises ValueError: if the signature or the signed resource is missing.
        :rtype: SharedAccessSignatureToken
        '''
        _validate_not_none('query_string', query_string)
        if query_string.startswith('?'):
            query_string = query_string[1:]

        known = QueryStringConstants.to_list()
        query_dict = {}
        for pair in query_string.split('&'):
            name, _, value = pair.partition('=')
            name = url_unquote(name)
            if name in known:
                query_dict[name] = url_unquote(value)

        if not query_dict.get(QueryStringConstants.SIGNED_SIGNATURE) or \
                not query_dict.get(QueryStringConstants.SIGNED_RESOURCE):
            raise ValueError(_ERROR_MISSING_MANDATORY_SAS_PARAMETERS)

        return SharedAccessSignatureToken(query_dict)

    def get_string_to_sign(self, account_name, path):
        '''
        Rebuilds the string the token's signature was computed over, for the
        resource at path ('container' or 'container/blob').
        '''
        return _get_string_to_sign(_get_canonicalized_resource(account_name, path), self._query_dict)

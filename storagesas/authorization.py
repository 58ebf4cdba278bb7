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
import logging
from datetime import datetime

from azure.common import AzureHttpError
from dateutil.tz import tzutc

from ._common_conversion import _sign_string
from ._error import (
    _ERROR_VALUE_NONE_OR_EMPTY,
    AzureSigningError,
    _validate_not_none,
)
from ._serialization import _parse_time
from .blob.models import (
    ContainerPermissions,
    PublicAccess,
)
from .models import (
    SharedAccessProtocol,
    _to_ip_range,
)
from .sharedaccesssignature import (
    ResourceType,
    SharedAccessSignatureToken,
)

logger = logging.getLogger(__name__)


class BlobOperation(object):
    '''
    The blob service operations a request can perform, used to find the
    permission a shared access signature must grant for the request.
    '''

    GET_BLOB = 'GetBlob'
    GET_BLOB_PROPERTIES = 'GetBlobProperties'
    GET_BLOB_METADATA = 'GetBlobMetadata'
    LIST_BLOBS = 'ListBlobs'
    CREATE_BLOB = 'CreateBlob'
    PUT_BLOB = 'PutBlob'
    PUT_BLOCK = 'PutBlock'
    PUT_BLOCK_LIST = 'PutBlockList'
    SET_BLOB_METADATA = 'SetBlobMetadata'
    SET_BLOB_PROPERTIES = 'SetBlobProperties'
    APPEND_BLOCK = 'AppendBlock'
    DELETE_BLOB = 'DeleteBlob'
    CREATE_CONTAINER = 'CreateContainer'
    DELETE_CONTAINER = 'DeleteContainer'
    GET_CONTAINER_PROPERTIES = 'GetContainerProperties'
    GET_CONTAINER_ACL = 'GetContainerAcl'
    SET_CONTAINER_ACL = 'SetContainerAcl'


# Any one of the listed permissions is sufficient. An empty tuple means a
# service shared access signature can never authorize the operation.
_REQUIRED_PERMISSIONS = {
    BlobOperation.GET_BLOB: ('read',),
    BlobOperation.GET_BLOB_PROPERTIES: ('read',),
    BlobOperation.GET_BLOB_METADATA: ('read',),
    BlobOperation.LIST_BLOBS: ('list',),
    BlobOperation.CREATE_BLOB: ('create', 'write'),
    BlobOperation.PUT_BLOB: ('write',),
    BlobOperation.PUT_BLOCK: ('write',),
    BlobOperation.PUT_BLOCK_LIST: ('write',),
    BlobOperation.SET_BLOB_METADATA: ('write',),
    BlobOperation.SET_BLOB_PROPERTIES: ('write',),
    BlobOperation.APPEND_BLOCK: ('add', 'write'),
    BlobOperation.DELETE_BLOB: ('delete',),
    BlobOperation.CREATE_CONTAINER: (),
    BlobOperation.DELETE_CONTAINER: (),
    BlobOperation.GET_CONTAINER_PROPERTIES: (),
    BlobOperation.GET_CONTAINER_ACL: (),
    BlobOperation.SET_CONTAINER_ACL: (),
}

_BLOB_READ_OPERATIONS = (
    BlobOperation.GET_BLOB,
    BlobOperation.GET_BLOB_PROPERTIES,
    BlobOperation.GET_BLOB_METADATA,
)


class StorageErrorCode(object):
    '''
    Error codes reported for a denied request, sent by the service in the
    x-ms-error-code header.
    '''

    AUTHENTICATION_FAILED = 'AuthenticationFailed'
    AUTHORIZATION_PERMISSION_MISMATCH = 'AuthorizationPermissionMismatch'
    AUTHORIZATION_SOURCE_IP_MISMATCH = 'AuthorizationSourceIPMismatch'
    AUTHORIZATION_PROTOCOL_MISMATCH = 'AuthorizationProtocolMismatch'
    INVALID_QUERY_PARAMETER_VALUE = 'InvalidQueryParameterValue'
    RESOURCE_NOT_FOUND = 'ResourceNotFound'


class AuthorizationResult(object):
    '''
    The decision made for a request.

    :ivar bool allowed:
        True if the request may proceed.
    :ivar int status_code:
        The HTTP status to report for a denied request. None when allowed.
    :ivar str error_code:
        The storage error code of a denied request. None when allowed.
    :ivar str message:
        A description of why the request was denied.
    '''

    def __init__(self, allowed, status_code=None, error_code=None, message=None):
        self.allowed = allowed
        self.status_code = status_code
        self.error_code = error_code
        self.message = message

    def __bool__(self):
        return self.allowed

    def __repr__(self):
        if self.allowed:
            return 'AuthorizationResult(allowed=True)'
        return 'AuthorizationResult(allowed=False, status_code={}, error_code={!r})'.format(
            self.status_code, self.error_code)


_ALLOWED = AuthorizationResult(True)


class SharedAccessSignatureAuthorizer(object):
    '''
    Decides whether a request carrying a shared access signature may perform
    an operation on a container or blob. This is the check the service runs
    for every request; it needs the account keys and the stored access
    policies of the account.

    The checks run in a fixed order and the first failing check decides the
    result:

    #. No token: only public read access can allow the request.
    #. The signature must match one of the account keys.
    #. A referenced stored access policy must exist and must not repeat a
       field the token sets itself.
    #. The current time must be within the start and expiry times.
    #. The permissions must include the one the operation requires.
    #. The client address must be within the allowed IP range.
    #. The request must use an allowed protocol.

    :param str account_name:
        The storage account name.
    :param account_keys:
        The account keys by key name, or a single key.
    :type account_keys: dict(str, str) or str
    :param ~storagesas.policystore.StoredAccessPolicyStore policy_store:
        Used to resolve stored access policy ids. Tokens that reference a
        policy are denied when it is None.
    :param int permission_denied_status:
        The status reported when the permissions do not include the required
        one.
    :param int anonymous_denied_status:
        The status reported when a request without a token is denied. The
        resource is not visible to such a request, so it is reported as not
        found by default.
    '''

    def __init__(self, account_name, account_keys, policy_store=None,
                 permission_denied_status=403, anonymous_denied_status=404):
        _validate_not_none('account_name', account_name)
        _validate_not_none('account_keys', account_keys)
        if isinstance(account_keys, str):
            account_keys = {None: account_keys}
        if not account_keys:
            raise ValueError(_ERROR_VALUE_NONE_OR_EMPTY.format('account_keys'))

        self.account_name = account_name
        self.account_keys = dict(account_keys)
        self.policy_store = policy_store
        self.permission_denied_status = permission_denied_status
        self.anonymous_denied_status = anonymous_denied_status

    def authorize(self, token, container_name, blob_name=None, operation=BlobOperation.GET_BLOB,
                  now=None, client_ip=None, request_protocol='https', public_access=None):
        '''
        Decides whether the request may proceed.

        :param token:
            The shared access signature sent with the request, as a query string
            or parsed. None or empty for a request without one.
        :type token: str or ~storagesas.sharedaccesssignature.SharedAccessSignatureToken
        :param str container_name:
            The container the request targets.
        :param str blob_name:
            The blob the request targets. None for container operations.
        :param str operation:
            One of :class:`BlobOperation`.
        :param datetime now:
            The time to check the token against. Defaults to the current time.
        :param str client_ip:
            The address the request came from.
        :param str request_protocol:
            'https' or 'http'.
        :param str public_access:
            The public access level of the container, one of
            :class:`~storagesas.blob.models.PublicAccess`. Only used for
            requests without a token.
        :rtype: AuthorizationResult
        '''
        _validate_not_none('container_name', container_name)
        if operation not in _REQUIRED_PERMISSIONS:
            raise ValueError('Unknown operation {0}.'.format(operation))

        if not token:
            result = self._authorize_anonymous(operation, public_access)
        else:
            result = self._authorize_token(token, container_name, blob_name, operation,
                                           now, client_ip, request_protocol)

        if not result.allowed:
            logger.info("Denied %s on %s/%s: %s %s",
                        operation, container_name, blob_name or '', result.status_code, result.error_code)
        return result

    def authorize_or_raise(self, token, container_name, blob_name=None, operation=BlobOperation.GET_BLOB,
                           now=None, client_ip=None, request_protocol='https', public_access=None):
        '''
        Same as :func:`authorize`, but raises instead of returning a denial.

        :raises ~azure.common.AzureHttpError:
            With the status_code and error_code of the denial.
            :class:`~azure.common.AzureMissingResourceHttpError` for 404.
        '''
        result = self.authorize(token, container_name, blob_name, operation,
                                now, client_ip, request_protocol, public_access)
        if not result.allowed:
            ex = AzureHttpError(result.message, result.status_code)
            ex.error_code = result.error_code
            raise ex
        return result

    def _authorize_anonymous(self, operation, public_access):
        if public_access == PublicAccess.Container and \
                (operation in _BLOB_READ_OPERATIONS or operation == BlobOperation.LIST_BLOBS):
            return _ALLOWED
        if public_access == PublicAccess.Blob and operation in _BLOB_READ_OPERATIONS:
            return _ALLOWED
        return AuthorizationResult(False, self.anonymous_denied_status, StorageErrorCode.RESOURCE_NOT_FOUND,
                                   'The specified resource does not exist.')

    def _authorize_token(self, token, container_name, blob_name, operation,
                         now, client_ip, request_protocol):
        # signature
        if not isinstance(token, SharedAccessSignatureToken):
            try:
                token = SharedAccessSignatureToken.from_query_string(token)
            except ValueError:
                return self._authentication_failed('The shared access signature is malformed.')

        if token.resource == ResourceType.RESOURCE_BLOB:
            if not blob_name:
                return self._authentication_failed('A blob signature cannot be used for a container operation.')
            path = container_name + '/' + blob_name
        elif token.resource == ResourceType.RESOURCE_CONTAINER:
            path = container_name
        else:
            return self._authentication_failed('Signed resource {0} is not valid.'.format(token.resource))

        if not self._verify_signature(token, path):
            return self._authentication_failed(
                'Signature did not match. Check that the token was issued for this resource.')

        # stored access policy
        permission, start, expiry = token.permission, token.start, token.expiry
        if token.id:
            policy = None
            if self.policy_store is not None:
                policy = self.policy_store.get_policy(container_name, token.id)
            if policy is None:
                return self._authentication_failed(
                    'Identifier {0} does not match any stored access policy.'.format(token.id))

            stored_permission = str(policy.permission) if policy.permission else None
            for name, inline, stored in (('permission', permission, stored_permission),
                                         ('start', start, policy.start),
                                         ('expiry', expiry, policy.expiry)):
                if inline and stored:
                    return AuthorizationResult(
                        False, 400, StorageErrorCode.INVALID_QUERY_PARAMETER_VALUE,
                        'The {0} is specified by both the signature and the stored access policy.'.format(name))

            permission = permission or stored_permission
            start = start or policy.start
            expiry = expiry or policy.expiry

        if not expiry:
            return self._authentication_failed('Signed expiry time is missing.')

        # time window
        try:
            now = _parse_time('now', now) if now is not None else datetime.now(tzutc())
            start = _parse_time('start', start) if start else None
            expiry = _parse_time('expiry', expiry)
        except ValueError as ex:
            return self._authentication_failed(str(ex))

        if start is not None and now < start:
            return self._authentication_failed('Signed start time is in the future.')
        if now >= expiry:
            return self._authentication_failed('Signed expiry time has passed.')

        # permission
        granted = ContainerPermissions(_str=permission)
        if not any(getattr(granted, name) for name in _REQUIRED_PERMISSIONS[operation]):
            return AuthorizationResult(
                False, self.permission_denied_status, StorageErrorCode.AUTHORIZATION_PERMISSION_MISMATCH,
                'This request is not authorized to perform this operation using this permission.')

        # ip
        if token.ip:
            try:
                ip_range = _to_ip_range(token.ip)
            except ValueError as ex:
                return self._authentication_failed(str(ex))
            if client_ip is None or client_ip not in ip_range:
                return AuthorizationResult(
                    False, 403, StorageErrorCode.AUTHORIZATION_SOURCE_IP_MISMATCH,
                    'This request is not authorized to perform this operation using this source IP {0}.'.format(
                        client_ip))

        # protocol
        if token.protocol == SharedAccessProtocol.HTTPS and request_protocol == 'http':
            return AuthorizationResult(
                False, 403, StorageErrorCode.AUTHORIZATION_PROTOCOL_MISMATCH,
                'This request is not authorized to perform this operation using this protocol.')

        return _ALLOWED

    def _verify_signature(self, token, path):
        if token.key_name is not None:
            if token.key_name not in self.account_keys:
                return False
            keys = [self.account_keys[token.key_name]]
        else:
            keys = self.account_keys.values()

        string_to_sign = token.get_string_to_sign(self.account_name, path)
        for key in keys:
            try:
                expected = _sign_string(key, string_to_sign)
                if hmac.compare_digest(expected.encode('utf-8'), token.signature.encode('utf-8')):
                    return True
            except AzureSigningError:
                logger.warning("Skipping an account key that is not valid base64")
        return False

    @staticmethod
    def _authentication_failed(message):
        return AuthorizationResult(False, 403, StorageErrorCode.AUTHENTICATION_FAILED,
                                   'Server failed to authenticate the request. ' + message)

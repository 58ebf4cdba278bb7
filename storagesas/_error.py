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
from azure.common import (
    AzureException,
    AzureHttpError,
)

from ._constants import (
    MAX_ACCESS_POLICIES,
    MAX_ACCESS_POLICY_ID_LENGTH,
)


_ERROR_STORAGE_MISSING_INFO = \
    'You need to provide an account name and either an account_key or sas_token when creating a storage service.'
_ERROR_VALUE_SHOULD_BE_BYTES = '{0} should be of type bytes.'
_ERROR_VALUE_NONE = '{0} should not be None.'
_ERROR_VALUE_NONE_OR_EMPTY = '{0} should not be None or empty.'
_ERROR_SIGNING_KEY = 'Signing failed. The account key could not be decoded as base64.'
_ERROR_INVALID_PROTOCOL = \
    'Invalid value {0} for the protocol parameter when creating a shared access signature. ' + \
    'Use None if you do not wish to include a protocol.'
_ERROR_INVALID_IP_ADDRESS = 'Error when parsing IP address: {0} is not a valid IP address or range.'
_ERROR_INVALID_RESOURCE_TYPE = 'Signed resource {0} is not valid. Use \'b\' for a blob or \'c\' for a container.'
_ERROR_IP_MUST_BE_IPV4 = \
    'When specifying an IP address in a shared access signature, it must be an IPv4 address. ' + \
    'Input address was {0}.'
_ERROR_INVALID_IP_RANGE = 'The start of the IP range {0} must not be greater than its end.'
_ERROR_INVALID_TIME = 'Could not parse {0} as an ISO-8601 time: {1}.'
_ERROR_EXPIRY_BEFORE_START = 'The expiry time {1} must be later than the start time {0}.'
_ERROR_MISSING_EXPIRY = \
    'An expiry time is required unless an id referencing a stored access policy is given.'
_ERROR_CANNOT_CREATE_SAS_WITHOUT_ACCOUNT_KEY = \
    'Cannot create a shared access signature unless account key credentials are used.'
_ERROR_CANNOT_UPDATE_SAS_WITHOUT_SAS_CREDENTIALS = \
    'Cannot update a shared access signature unless shared access signature credentials are used.'
_ERROR_CANNOT_UPDATE_KEY_WITHOUT_KEY_CREDENTIALS = \
    'Cannot update the key unless account key credentials are used.'
_ERROR_MISSING_MANDATORY_SAS_PARAMETERS = 'Missing mandatory parameters for a valid shared access signature.'
_ERROR_TOO_MANY_ACCESS_POLICIES = \
    'Too many access policies provided. The server does not support setting more than ' + \
    str(MAX_ACCESS_POLICIES) + ' access policies on a single resource.'
_ERROR_ACCESS_POLICY_ID_TOO_LONG = \
    'The signed identifier {0} is longer than ' + str(MAX_ACCESS_POLICY_ID_LENGTH) + ' characters.'
_ERROR_OPERATION_CANCELED = 'Operation was canceled by user.'
_ERROR_CPK_REQUIRES_HTTPS = 'Customer provided encryption key must be used over HTTPS.'
_ERROR_INVALID_CPK_HASH = 'The customer provided key hash does not match the key value.'
_ERROR_PARALLEL_NOT_SEEKABLE = 'Parallel operations require a seekable stream.'


class AzureSigningError(AzureException):
    """
    Represents a fatal error when attempting to sign a request.
    In general, the cause of this exception is user error. For example, the given account key is not valid.
    Please visit https://docs.microsoft.com/en-us/azure/storage/common/storage-create-storage-account for more info.
    """
    pass


class AzureOperationCanceledError(AzureException):
    """
    Raised when the caller cancels an operation through its cancellation token.
    It is never raised for a failure reported by the service, so callers can
    tell a canceled transfer apart from a denied or failed one.
    """
    pass


def _dont_fail_on_exist(error):
    ''' don't throw exception if the resource exists.
    This is called by create_* APIs with fail_on_exist=False'''
    if isinstance(error, AzureHttpError) and error.status_code == 409:
        return False
    raise error


def _dont_fail_not_exist(error):
    ''' don't throw exception if the resource doesn't exist.
    This is called by delete_* APIs with fail_not_exist=False'''
    if isinstance(error, AzureHttpError) and error.status_code == 404:
        return False
    raise error


def _http_error_handler(http_error):
    ''' Simple error handler for azure.'''
    message = str(http_error)
    error_code = None

    if http_error.respheader is not None:
        error_code = http_error.respheader.get('x-ms-error-code')
        if error_code is not None:
            message += '\nErrorCode: ' + error_code

    if http_error.respbody is not None:
        message += '\n' + http_error.respbody.decode('utf-8-sig')

    ex = AzureHttpError(message, http_error.status)
    ex.error_code = error_code

    raise ex


def _validate_type_bytes(param_name, param):
    if not isinstance(param, bytes):
        raise TypeError(_ERROR_VALUE_SHOULD_BE_BYTES.format(param_name))


def _validate_not_none(param_name, param):
    if param is None:
        raise ValueError(_ERROR_VALUE_NONE.format(param_name))


def _validate_not_none_or_empty(param_name, param):
    if not param:
        raise ValueError(_ERROR_VALUE_NONE_OR_EMPTY.format(param_name))


def _validate_access_policies(identifiers):
    if identifiers and len(identifiers) > MAX_ACCESS_POLICIES:
        raise ValueError(_ERROR_TOO_MANY_ACCESS_POLICIES)
    for id in (identifiers or {}):
        _validate_not_none_or_empty('id', id)
        if len(id) > MAX_ACCESS_POLICY_ID_LENGTH:
            raise ValueError(_ERROR_ACCESS_POLICY_ID_TOO_LONG.format(id))


def _validate_cpk_over_https(cpk, protocol):
    if cpk is not None and protocol != 'https':
        raise ValueError(_ERROR_CPK_REQUIRES_HTTPS)


def _wrap_exception(ex, desired_type):
    msg = ""
    if len(ex.args) > 0:
        msg = ex.args[0]
    return desired_type('{}: {}'.format(ex.__class__.__name__, msg))

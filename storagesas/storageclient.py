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

from azure.common import (
    AzureException,
    AzureHttpError,
)

from ._auth import (
    _StorageNoAuthentication,
    _StorageSASAuthentication,
    _StorageSharedKeyAuthentication,
)
from ._constants import (
    DEFAULT_PROTOCOL,
    SERVICE_HOST_BASE,
)
from ._error import (
    _ERROR_CANNOT_CREATE_SAS_WITHOUT_ACCOUNT_KEY,
    _ERROR_CANNOT_UPDATE_SAS_WITHOUT_SAS_CREDENTIALS,
    _ERROR_OPERATION_CANCELED,
    _ERROR_STORAGE_MISSING_INFO,
    _http_error_handler,
    _validate_not_none,
    _wrap_exception,
    AzureOperationCanceledError,
)
from ._http import HTTPError
from ._serialization import (
    _update_request,
    _add_date_header,
)
from .credentials import (
    AccountKeyCredential,
    SharedAccessSignatureCredential,
)
from .models import (
    OperationContext,
    RequestResult,
)

logger = logging.getLogger(__name__)


class StorageClient(object):
    '''
    This is the base class for service objects. Service objects are used to do
    all requests to Storage. This class cannot be instantiated directly.

    :ivar str account_name:
        The storage account name. This is used to authenticate requests
        signed with an account key and to construct the storage endpoint.
    :ivar credential:
        The credentials requests are signed with. Account key credentials are
        used for shared key authentication, shared access signature credentials
        append their token to each request. If None, anonymous access is used.
    :vartype credential: ~storagesas.credentials.StorageCredential
    :ivar str primary_endpoint:
        The endpoint to send storage requests to.
    :ivar str protocol:
        The protocol to use for requests, 'https' or 'http'.
    :ivar transport:
        Sends the signed requests. Any object with a perform_request method
        taking an :class:`~storagesas._http.HTTPRequest` and returning an
        :class:`~storagesas._http.HTTPResponse`.
    :ivar function(request) request_callback:
        A function called immediately before each request is sent. This function
        takes as a parameter the request object and returns nothing. It may be
        used to added custom headers or log request data.
    :ivar function() response_callback:
        A function called immediately after each response is received. This
        function takes as a parameter the response object and returns nothing.
        It may be used to log response data.
    '''

    def __init__(self, service, account_name=None, account_key=None, sas_token=None,
                 credential=None, transport=None, protocol=DEFAULT_PROTOCOL,
                 endpoint_suffix=SERVICE_HOST_BASE, key_name=None):
        '''
        :param str service:
            The service name used to build the endpoint, for example 'blob'.
        :param str account_name:
            The storage account name. Taken from the credential when it is
            an account key credential.
        :param str account_key:
            The storage account key. Ignored when a credential is given.
        :param str sas_token:
            A shared access signature token to use to authenticate requests
            instead of the account key. If account key and sas token are both
            specified, account key will be used to sign. If neither are
            specified, anonymous access will be used.
        :param ~storagesas.credentials.StorageCredential credential:
            Credentials to use instead of account_key and sas_token.
        :param transport:
            The transport requests are sent with.
        :param str protocol:
            The protocol to use for requests. Defaults to https.
        :param str endpoint_suffix:
            The host base component of the url, minus the account name.
        :param str key_name:
            The name of the account key, added to shared access signatures.
        '''
        _validate_not_none('transport', transport)
        if credential is None:
            if account_key:
                credential = AccountKeyCredential(account_name, account_key, key_name)
            elif sas_token:
                credential = SharedAccessSignatureCredential(sas_token)
        elif isinstance(credential, AccountKeyCredential):
            account_name = account_name or credential.account_name

        if not account_name:
            raise ValueError(_ERROR_STORAGE_MISSING_INFO)
        if protocol not in ('https', 'http'):
            raise ValueError('Invalid protocol {0}. Use https or http.'.format(protocol))

        self.account_name = account_name
        self.credential = credential
        self.protocol = protocol
        self.primary_endpoint = '{}.{}.{}'.format(account_name, service, endpoint_suffix)
        self.transport = transport

        if isinstance(credential, AccountKeyCredential):
            self.authentication = _StorageSharedKeyAuthentication(credential)
        elif isinstance(credential, SharedAccessSignatureCredential):
            self.authentication = _StorageSASAuthentication(credential)
        else:
            self.authentication = _StorageNoAuthentication()

        self._filter = self._perform_request_worker

        self.request_callback = None
        self.response_callback = None

    def update_sas_token(self, sas_token):
        '''
        Replaces the shared access signature requests are signed with. Requests
        already signed keep the previous token.

        :param str sas_token:
            The new shared access signature token.
        :raises TypeError: if the client does not use shared access signature
            credentials.
        '''
        if self.credential is None:
            raise TypeError(_ERROR_CANNOT_UPDATE_SAS_WITHOUT_SAS_CREDENTIALS)
        self.credential.update_token(sas_token)

    def _get_shared_access_signature(self):
        if not isinstance(self.credential, AccountKeyCredential):
            raise ValueError(_ERROR_CANNOT_CREATE_SAS_WITHOUT_ACCOUNT_KEY)
        return self.credential.get_shared_access_signature()

    def _get_host(self):
        return self.primary_endpoint

    def _perform_request_worker(self, request):
        request.protocol = self.protocol
        _update_request(request)

        if self.request_callback:
            self.request_callback(request)

        # Add date and auth after the callback so date doesn't get too old and
        # authentication is still correct if signed headers are added in the request
        # callback
        _add_date_header(request)
        self.authentication.sign_request(request)

        logger.info("Outgoing request: Method=%s, Path=%s, Client-Request-ID=%s",
                    request.method, request.path.partition('?')[0],
                    request.headers.get('x-ms-client-request-id'))
        return self.transport.perform_request(request)

    def _perform_request(self, request, parser=None, parser_args=None,
                         operation_context=None, cancellation_token=None):
        '''
        Sends the request and return response. Catches HTTPError and hands it
        to error handler. Each attempt is recorded in operation_context.
        '''
        if operation_context is None:
            operation_context = OperationContext()
        result = RequestResult(method=request.method, path=request.path)

        try:
            if cancellation_token is not None and cancellation_token.cancelled:
                raise AzureOperationCanceledError(_ERROR_OPERATION_CANCELED)
            response = self._filter(request)
        except AzureOperationCanceledError as ex:
            logger.info("Operation canceled before sending %s %s", request.method, result.path)
            result.exception = ex
            operation_context._add_result(result)
            raise
        except AzureException as ex:
            result.exception = ex
            operation_context._add_result(result)
            raise
        except Exception as ex:
            logger.warning("Request %s %s failed: %s", request.method, result.path, ex)
            wrapped = _wrap_exception(ex, AzureException)
            result.exception = wrapped
            operation_context._add_result(result)
            raise wrapped from ex
        finally:
            result.request_id = request.headers.get('x-ms-client-request-id')

        logger.info("Receiving response: Status=%s, Client-Request-ID=%s",
                    response.status, result.request_id)

        if self.response_callback:
            self.response_callback(response)

        result.status_code = response.status
        if response.status >= 300:
            # This exception will be caught by the general error handler
            # and raised as an azure http exception
            try:
                _http_error_handler(HTTPError(response.status, response.message, response.headers, response.body))
            except AzureHttpError as ex:
                logger.info("Request %s %s failed with status %s", request.method, result.path, response.status)
                result.error_code = ex.error_code
                result.exception = ex
                operation_context._add_result(result)
                raise

        operation_context._add_result(result)
        if parser is None:
            return response
        return parser(*(parser_args or []), response)

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
import threading

from ._error import (
    _ERROR_CANNOT_UPDATE_KEY_WITHOUT_KEY_CREDENTIALS,
    _ERROR_CANNOT_UPDATE_SAS_WITHOUT_SAS_CREDENTIALS,
    _validate_not_none,
    _validate_not_none_or_empty,
)
from .sharedaccesssignature import SharedAccessSignature


class StorageCredential(object):
    '''
    Base class for the secrets a storage service signs its requests with.
    The secret can be replaced while requests are being signed on other
    threads; each request uses whichever secret was current when it was
    signed.
    '''

    def __init__(self):
        self._lock = threading.Lock()

    def update_key(self, account_key, key_name=None):
        raise TypeError(_ERROR_CANNOT_UPDATE_KEY_WITHOUT_KEY_CREDENTIALS)

    def update_token(self, sas_token):
        raise TypeError(_ERROR_CANNOT_UPDATE_SAS_WITHOUT_SAS_CREDENTIALS)


class AccountKeyCredential(StorageCredential):
    '''
    Credentials made of the account name and one of its keys. They can sign
    any request and create shared access signatures.

    :ivar str account_name:
        The storage account name.
    '''

    def __init__(self, account_name, account_key, key_name=None):
        '''
        :param str account_name:
            The storage account name.
        :param str account_key:
            The base64 encoded account key.
        :param str key_name:
            The name of the key, added to the shared access signatures
            created with it. Optional.
        '''
        super(AccountKeyCredential, self).__init__()
        _validate_not_none('account_name', account_name)
        _validate_not_none_or_empty('account_key', account_key)
        self.account_name = account_name
        self._account_key = account_key
        self._key_name = key_name

    @property
    def account_key(self):
        with self._lock:
            return self._account_key

    @property
    def key_name(self):
        with self._lock:
            return self._key_name

    def update_key(self, account_key, key_name=None):
        '''
        Replaces the account key, for example after the key was regenerated.

        :param str account_key:
            The new base64 encoded account key.
        :param str key_name:
            The name of the new key.
        '''
        _validate_not_none_or_empty('account_key', account_key)
        with self._lock:
            self._account_key = account_key
            self._key_name = key_name

    def get_shared_access_signature(self):
        '''
        :return: A signer using the current key.
        :rtype: ~storagesas.sharedaccesssignature.SharedAccessSignature
        '''
        with self._lock:
            return SharedAccessSignature(self.account_name, self._account_key, self._key_name)


class SharedAccessSignatureCredential(StorageCredential):
    '''
    Credentials made of a single shared access signature. The token is used
    as is, the client cannot create new ones.
    '''

    def __init__(self, sas_token):
        '''
        :param str sas_token:
            The shared access signature query string. A leading '?' is removed.
        '''
        super(SharedAccessSignatureCredential, self).__init__()
        self._token = self._strip(sas_token)

    @property
    def token(self):
        with self._lock:
            return self._token

    def update_token(self, sas_token):
        '''
        Replaces the token. Requests signed after the call use the new token,
        requests already signed keep the old one.

        :param str sas_token:
            The new shared access signature query string.
        '''
        token = self._strip(sas_token)
        with self._lock:
            self._token = token

    @staticmethod
    def _strip(sas_token):
        _validate_not_none_or_empty('sas_token', sas_token)
        token = sas_token[1:] if sas_token.startswith('?') else sas_token
        _validate_not_none_or_empty('sas_token', token)
        return token

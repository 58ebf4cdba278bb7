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
import unittest

from storagesas import (
    AccountKeyCredential,
    SharedAccessSignatureCredential,
)
from tests.settings_fake import (
    SECONDARY_ACCOUNT_KEY,
    SECONDARY_ACCOUNT_KEY_NAME,
    STORAGE_ACCOUNT_KEY,
    STORAGE_ACCOUNT_NAME,
)


class StorageCredentialTest(unittest.TestCase):

    def test_sas_credential_strips_question_mark(self):
        # Act
        credential = SharedAccessSignatureCredential('?sv=2018-03-28&sig=abc')

        # Assert
        self.assertEqual(credential.token, 'sv=2018-03-28&sig=abc')

    def test_sas_credential_rejects_empty_token(self):
        for token in (None, '', '?'):
            with self.assertRaises(ValueError):
                SharedAccessSignatureCredential(token)

    def test_update_token(self):
        # Arrange
        credential = SharedAccessSignatureCredential('sig=old')

        # Act
        credential.update_token('?sig=new')

        # Assert
        self.assertEqual(credential.token, 'sig=new')

    def test_update_token_rejects_empty_token(self):
        # Arrange
        credential = SharedAccessSignatureCredential('sig=old')

        # Act
        with self.assertRaises(ValueError):
            credential.update_token('')

        # Assert
        self.assertEqual(credential.token, 'sig=old')

    def test_update_on_wrong_credential_type(self):
        # Arrange
        key_credential = AccountKeyCredential(STORAGE_ACCOUNT_NAME, STORAGE_ACCOUNT_KEY)
        sas_credential = SharedAccessSignatureCredential('sig=abc')

        # Act / Assert
        with self.assertRaises(TypeError):
            key_credential.update_token('sig=abc')
        with self.assertRaises(TypeError):
            sas_credential.update_key(STORAGE_ACCOUNT_KEY)

    def test_update_key(self):
        # Arrange
        credential = AccountKeyCredential(STORAGE_ACCOUNT_NAME, STORAGE_ACCOUNT_KEY)

        # Act
        credential.update_key(SECONDARY_ACCOUNT_KEY, SECONDARY_ACCOUNT_KEY_NAME)
        signer = credential.get_shared_access_signature()

        # Assert
        self.assertEqual(credential.account_key, SECONDARY_ACCOUNT_KEY)
        self.assertEqual(credential.key_name, SECONDARY_ACCOUNT_KEY_NAME)
        self.assertEqual(signer.account_key, SECONDARY_ACCOUNT_KEY)
        self.assertEqual(signer.key_name, SECONDARY_ACCOUNT_KEY_NAME)

    def test_key_credential_requires_key(self):
        with self.assertRaises(ValueError):
            AccountKeyCredential(STORAGE_ACCOUNT_NAME, '')
        with self.assertRaises(ValueError):
            AccountKeyCredential(None, STORAGE_ACCOUNT_KEY)

    def test_concurrent_updates_never_tear(self):
        # Arrange
        credential = SharedAccessSignatureCredential('sig=0')
        tokens = ['sig={}'.format(i) for i in range(50)]
        seen = []

        def update():
            for token in tokens:
                credential.update_token(token)

        def read():
            for _ in range(200):
                seen.append(credential.token)

        threads = [threading.Thread(target=update) for _ in range(4)] + \
                  [threading.Thread(target=read) for _ in range(4)]

        # Act
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Assert
        self.assertTrue(set(seen) <= set(tokens) | {'sig=0'})
        self.assertEqual(credential.token, 'sig=49')

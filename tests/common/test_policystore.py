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
import unittest
from datetime import datetime

from storagesas import (
    AccessPolicy,
    InMemoryAccessPolicyStore,
)
from storagesas.blob import BlobPermissions

EXPIRY = datetime(2030, 1, 1)


class InMemoryAccessPolicyStoreTest(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryAccessPolicyStore()

    def test_set_and_get_policies(self):
        # Arrange
        policies = {'read': AccessPolicy(BlobPermissions.READ, EXPIRY),
                    'write': AccessPolicy(BlobPermissions.WRITE, EXPIRY)}

        # Act
        self.store.set_policies('container', policies)

        # Assert
        self.assertEqual(sorted(self.store.get_policies('container')), ['read', 'write'])
        self.assertEqual(self.store.get_policy('container', 'read').expiry, EXPIRY)
        self.assertIsNone(self.store.get_policy('container', 'missing'))
        self.assertIsNone(self.store.get_policy('other', 'read'))
        self.assertEqual(self.store.get_policies('other'), {})

    def test_set_policies_replaces_all(self):
        # Arrange
        self.store.set_policies('container', {'a': AccessPolicy(), 'b': AccessPolicy()})

        # Act
        self.store.set_policies('container', {'c': None})

        # Assert
        self.assertEqual(list(self.store.get_policies('container')), ['c'])
        self.assertIsInstance(self.store.get_policy('container', 'c'), AccessPolicy)

    def test_clear_policies(self):
        # Arrange
        self.store.set_policies('container', {'a': AccessPolicy()})

        # Act
        self.store.set_policies('container', None)

        # Assert
        self.assertEqual(self.store.get_policies('container'), {})

    def test_too_many_policies(self):
        # Arrange
        policies = dict(('id{}'.format(i), AccessPolicy()) for i in range(6))

        # Act
        with self.assertRaises(ValueError):
            self.store.set_policies('container', policies)

        # Assert
        self.assertEqual(self.store.get_policies('container'), {})

    def test_set_policy_limit(self):
        # Arrange
        for i in range(5):
            self.store.set_policy('container', 'id{}'.format(i), AccessPolicy())

        # Act
        with self.assertRaises(ValueError):
            self.store.set_policy('container', 'id5', AccessPolicy())
        self.store.set_policy('container', 'id0', AccessPolicy(BlobPermissions.READ))

        # Assert
        self.assertEqual(len(self.store.get_policies('container')), 5)
        self.assertEqual(str(self.store.get_policy('container', 'id0').permission), 'r')

    def test_id_length(self):
        # Act
        self.store.set_policy('container', 'a' * 64, AccessPolicy())
        with self.assertRaises(ValueError):
            self.store.set_policy('container', 'a' * 65, AccessPolicy())
        with self.assertRaises(ValueError):
            self.store.set_policy('container', '', AccessPolicy())

        # Assert
        self.assertEqual(list(self.store.get_policies('container')), ['a' * 64])

    def test_returned_policies_are_copies(self):
        # Arrange
        policy = AccessPolicy(BlobPermissions.READ, EXPIRY)
        self.store.set_policy('container', 'id', policy)

        # Act
        policy.expiry = None
        self.store.get_policy('container', 'id').permission = BlobPermissions.DELETE
        self.store.get_policies('container')['id'].start = EXPIRY

        # Assert
        stored = self.store.get_policy('container', 'id')
        self.assertEqual(stored.expiry, EXPIRY)
        self.assertEqual(str(stored.permission), 'r')
        self.assertIsNone(stored.start)

    def test_delete_policy(self):
        # Arrange
        self.store.set_policy('container', 'id', AccessPolicy())

        # Act
        deleted = self.store.delete_policy('container', 'id')
        deleted_again = self.store.delete_policy('container', 'id')

        # Assert
        self.assertTrue(deleted)
        self.assertFalse(deleted_again)
        self.assertIsNone(self.store.get_policy('container', 'id'))

    def test_delete_container(self):
        # Arrange
        self.store.set_policy('container', 'id', AccessPolicy())
        self.store.set_policy('other', 'id', AccessPolicy())

        # Act
        self.store.delete_container('container')
        self.store.delete_container('missing')

        # Assert
        self.assertEqual(self.store.get_policies('container'), {})
        self.assertIsNotNone(self.store.get_policy('other', 'id'))

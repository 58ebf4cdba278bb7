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
import inspect
import math
import os.path
import random
import unittest
import zlib

import tests.settings_fake as settings
from tests.fake_storage import FakeStorageService

# logging is not enabled by default because it pollutes the CI logs
# uncommenting the following two lines make debugging much easier
# import logging
# logging.basicConfig(format='%(asctime)s %(name)-20s %(levelname)-5s %(message)s', level=logging.INFO)


class StorageTestCase(unittest.TestCase):

    def setUp(self):
        self.settings = settings

        # example of qualified test name:
        # test_blob_sas.test_sas_read_allowed
        _, filename = os.path.split(inspect.getsourcefile(type(self)))
        name, _ = os.path.splitext(filename)
        self.qualified_test_name = '{0}.{1}'.format(
            name,
            self._testMethodName,
        )

    def get_resource_name(self, prefix=''):
        # Append a suffix to the name, based on the fully qualified test name
        # We use a checksum of the test name so that each test gets different
        # resource names, but each test will get the same name on repeat runs.
        checksum = zlib.adler32(self.qualified_test_name.encode()) & 0xffffffff
        return '{}{}'.format(prefix, hex(checksum)[2:])

    def get_random_bytes(self, size):
        checksum = zlib.adler32(self.qualified_test_name.encode()) & 0xffffffff
        rand = random.Random(checksum)
        result = bytearray(size)
        for i in range(size):
            result[i] = int(rand.random() * 255)
        return bytes(result)

    def _create_fake_storage(self, client_ip='127.0.0.1'):
        return FakeStorageService(
            settings.STORAGE_ACCOUNT_NAME,
            {
                settings.STORAGE_ACCOUNT_KEY_NAME: settings.STORAGE_ACCOUNT_KEY,
                settings.SECONDARY_ACCOUNT_KEY_NAME: settings.SECONDARY_ACCOUNT_KEY,
            },
            client_ip=client_ip,
        )

    def _create_storage_service(self, service_class, transport, **kwargs):
        kwargs.setdefault('protocol', settings.PROTOCOL)
        if 'sas_token' not in kwargs and 'credential' not in kwargs and 'account_key' not in kwargs:
            kwargs['account_key'] = settings.STORAGE_ACCOUNT_KEY
        return service_class(settings.STORAGE_ACCOUNT_NAME, transport=transport, **kwargs)

    def assertNamedItemInContainer(self, container, item_name, msg=None):
        for item in container:
            if isinstance(item, str):
                if item == item_name:
                    return
            elif item.name == item_name:
                return

        standardMsg = '{0} not found in {1}'.format(
            repr(item_name), repr(container))
        self.fail(self._formatMessage(msg, standardMsg))

    def assertNamedItemNotInContainer(self, container, item_name, msg=None):
        for item in container:
            if item.name == item_name:
                standardMsg = '{0} unexpectedly found in {1}'.format(
                    repr(item_name), repr(container))
                self.fail(self._formatMessage(msg, standardMsg))

    def assert_upload_progress(self, size, max_chunk_size, progress, unknown_size=False):
        '''Validates that the progress chunks align with our chunking procedure.'''
        total = None if unknown_size else size
        small_chunk_size = size % max_chunk_size
        self.assertEqual(len(progress), 1 + math.ceil(size / max_chunk_size))
        for i in progress:
            self.assertTrue(i[0] % max_chunk_size == 0 or i[0] % max_chunk_size == small_chunk_size)
            self.assertEqual(i[1], total)

    def assert_download_progress(self, size, max_chunk_size, max_get_size, progress):
        '''Validates that the progress chunks align with our chunking procedure.'''
        if size <= max_get_size:
            self.assertEqual(len(progress), 1)
            self.assertEqual(progress[0], (size, size))
        else:
            small_chunk_size = (size - max_get_size) % max_chunk_size
            self.assertEqual(len(progress), 1 + math.ceil((size - max_get_size) / max_chunk_size))

            self.assertEqual(progress[0], (max_get_size, size))
            for i in progress[1:]:
                self.assertTrue(i[0] % max_chunk_size == 0 or i[0] % max_chunk_size == small_chunk_size)
                self.assertEqual(i[1], size)
            self.assertEqual(max(progress), (size, size))

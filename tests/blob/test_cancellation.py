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
from io import BytesIO

from azure.common import (
    AzureException,
    AzureHttpError,
)

from storagesas import (
    AzureOperationCanceledError,
    CancellationToken,
    OperationContext,
)
from storagesas.blob import BlobService
from tests.testcase import StorageTestCase


class StorageCancellationTest(StorageTestCase):

    def setUp(self):
        super(StorageCancellationTest, self).setUp()

        self.storage = self._create_fake_storage()
        self.bs = self._create_storage_service(BlobService, self.storage)
        self.container_name = self.get_resource_name('utcontainer')
        self.bs.create_container(self.container_name)

        # configure the service so that transfers need several requests
        self.bs.MAX_BLOCK_SIZE = 1024
        self.bs.MAX_SINGLE_PUT_SIZE = 1024
        self.bs.MAX_SINGLE_GET_SIZE = 1024
        self.bs.MAX_CHUNK_GET_SIZE = 1024

        self.byte_data = self.get_random_bytes(8 * 1024)

    def _get_blob_reference(self):
        return self.get_resource_name('blob')

    def _cancel_after(self, token, count):
        # cancels the token once count more requests have reached the service
        requests = []

        def on_request(request):
            requests.append(request)
            if len(requests) == count:
                token.cancel()

        self.storage.on_request = on_request
        return requests

    def test_canceled_token_sends_nothing(self):
        # Arrange
        token = CancellationToken()
        token.cancel()
        context = OperationContext()
        handled_before = len(self.storage.handled)

        # Act
        with self.assertRaises(AzureOperationCanceledError):
            self.bs.create_blob_from_bytes(self.container_name, self._get_blob_reference(), b'abc',
                                           operation_context=context, cancellation_token=token)

        # Assert
        self.assertEqual(len(self.storage.handled), handled_before)
        self.assertEqual(len(context.request_results), 1)
        self.assertIsInstance(context.last_result.exception, AzureOperationCanceledError)
        self.assertIsNone(context.last_result.status_code)
        self.assertFalse(self.bs.exists(self.container_name, self._get_blob_reference()))

    def test_cancel_chunked_upload(self):
        # Arrange
        token = CancellationToken()
        context = OperationContext()
        requests = self._cancel_after(token, 3)

        # Act
        with self.assertRaises(AzureOperationCanceledError):
            self.bs.create_blob_from_bytes(self.container_name, self._get_blob_reference(), self.byte_data,
                                           max_connections=1, operation_context=context,
                                           cancellation_token=token)

        # Assert
        self.assertEqual(len(requests), 3)
        self.assertEqual(len(context.request_results), 4)
        self.assertEqual([r.status_code for r in context.request_results[:3]], [201, 201, 201])
        self.assertIsInstance(context.last_result.exception, AzureOperationCanceledError)
        self.storage.on_request = None
        self.assertFalse(self.bs.exists(self.container_name, self._get_blob_reference()))

    def test_cancel_parallel_upload(self):
        # Arrange
        token = CancellationToken()
        requests = self._cancel_after(token, 2)

        # Act
        with self.assertRaises(AzureOperationCanceledError):
            self.bs.create_blob_from_bytes(self.container_name, self._get_blob_reference(), self.byte_data,
                                           max_connections=2, cancellation_token=token)

        # Assert
        self.assertLess(len(requests), 8)
        self.storage.on_request = None
        self.assertFalse(self.bs.exists(self.container_name, self._get_blob_reference()))

    def test_cancel_chunked_download(self):
        # Arrange
        blob_name = self._get_blob_reference()
        self.bs.create_blob_from_bytes(self.container_name, blob_name, self.byte_data)
        token = CancellationToken()
        context = OperationContext()
        requests = self._cancel_after(token, 2)
        stream = BytesIO()

        # Act
        with self.assertRaises(AzureOperationCanceledError):
            self.bs.get_blob_to_stream(self.container_name, blob_name, stream, max_connections=1,
                                       operation_context=context, cancellation_token=token)

        # Assert
        self.assertEqual(len(requests), 2)
        self.assertEqual(len(context.request_results), 3)
        self.assertEqual(stream.getvalue(), self.byte_data[:2048])

    def test_cancel_is_not_an_http_error(self):
        # Arrange
        token = CancellationToken()
        token.cancel()

        # Act
        with self.assertRaises(AzureException) as e:
            self.bs.get_blob_to_bytes(self.container_name, 'missing', cancellation_token=token)

        # Assert
        self.assertIsInstance(e.exception, AzureOperationCanceledError)
        self.assertNotIsInstance(e.exception, AzureHttpError)

    def test_uncanceled_token_completes(self):
        # Arrange
        blob_name = self._get_blob_reference()
        token = CancellationToken()
        context = OperationContext()

        # Act
        self.bs.create_blob_from_bytes(self.container_name, blob_name, self.byte_data,
                                       operation_context=context, cancellation_token=token)
        blob = self.bs.get_blob_to_bytes(self.container_name, blob_name, cancellation_token=token)

        # Assert
        self.assertEqual(blob.content, self.byte_data)
        self.assertEqual(len(context.request_results), 9)
        self.assertTrue(all(r.exception is None for r in context.request_results))

    def test_transport_failure_is_wrapped(self):
        # Arrange
        context = OperationContext()

        def on_request(request):
            raise IOError('connection reset')

        self.storage.on_request = on_request

        # Act
        with self.assertRaises(AzureException) as e:
            self.bs.get_blob_properties(self.container_name, 'blob', operation_context=context)

        # Assert
        self.assertNotIsInstance(e.exception, AzureOperationCanceledError)
        self.assertIn('connection reset', str(e.exception))
        self.assertIsInstance(e.exception.__cause__, IOError)
        self.assertIs(context.last_result.exception, e.exception)

    def test_http_error_recorded(self):
        # Arrange
        context = OperationContext()

        # Act
        with self.assertRaises(AzureHttpError):
            self.bs.get_blob_properties(self.container_name, 'missing', operation_context=context)

        # Assert
        self.assertEqual(context.last_result.status_code, 404)
        self.assertEqual(context.last_result.error_code, 'BlobNotFound')
        self.assertIsNotNone(context.last_result.request_id)

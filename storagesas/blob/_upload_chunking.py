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
import concurrent.futures
import threading
from io import BytesIO

from .._common_conversion import _encode_base64
from .._serialization import _get_data_bytes_only
from .models import BlobBlock


def _upload_blob_chunks(blob_service, container_name, blob_name,
                        blob_size, block_size, stream, max_connections,
                        progress_callback, cpk=None, operation_context=None,
                        cancellation_token=None):
    uploader = _BlockBlobChunkUploader(
        blob_service,
        container_name,
        blob_name,
        blob_size,
        block_size,
        stream,
        max_connections > 1,
        progress_callback,
        cpk,
        operation_context,
        cancellation_token,
    )

    if progress_callback is not None:
        progress_callback(0, blob_size)

    if max_connections > 1:
        with concurrent.futures.ThreadPoolExecutor(max_connections) as executor:
            block_list = list(executor.map(uploader.process_chunk, uploader.get_chunk_streams()))
    else:
        block_list = [uploader.process_chunk(result) for result in uploader.get_chunk_streams()]

    return block_list


class _BlockBlobChunkUploader(object):
    def __init__(self, blob_service, container_name, blob_name, blob_size,
                 chunk_size, stream, parallel, progress_callback,
                 cpk, operation_context, cancellation_token):
        self.blob_service = blob_service
        self.container_name = container_name
        self.blob_name = blob_name
        self.blob_size = blob_size
        self.chunk_size = chunk_size
        self.stream = stream
        self.parallel = parallel
        self.progress_callback = progress_callback
        self.progress_total = 0
        self.progress_lock = threading.Lock() if parallel else None
        self.cpk = cpk
        self.operation_context = operation_context
        self.cancellation_token = cancellation_token

    def get_chunk_streams(self):
        index = 0
        while True:
            data = b''
            read_size = self.chunk_size

            # Buffer until we either reach the end of the stream or get a whole chunk.
            while True:
                if self.blob_size:
                    read_size = min(self.chunk_size - len(data), self.blob_size - (index + len(data)))
                temp = self.stream.read(read_size)
                temp = _get_data_bytes_only('temp', temp)
                data += temp

                # We have read an empty string and so are at the end
                # of the buffer or we have read a full chunk.
                if temp == b'' or len(data) == self.chunk_size:
                    break

            if len(data) == self.chunk_size:
                yield index, BytesIO(data)
            else:
                if len(data) > 0:
                    yield index, BytesIO(data)
                break

            index += len(data)

    def process_chunk(self, chunk_data):
        chunk_bytes = chunk_data[1].read()
        chunk_offset = chunk_data[0]
        return self._upload_chunk_with_progress(chunk_offset, chunk_bytes)

    def _update_progress(self, length):
        if self.progress_callback is not None:
            if self.progress_lock is not None:
                with self.progress_lock:
                    self.progress_total += length
                    total = self.progress_total
            else:
                self.progress_total += length
                total = self.progress_total
            self.progress_callback(total, self.blob_size)

    def _upload_chunk_with_progress(self, chunk_offset, chunk_data):
        block = self._upload_chunk(chunk_offset, chunk_data)
        self._update_progress(len(chunk_data))
        return block

    def _upload_chunk(self, chunk_offset, chunk_data):
        block_id = _encode_base64('{0:032d}'.format(chunk_offset))
        self.blob_service.put_block(
            self.container_name,
            self.blob_name,
            chunk_data,
            block_id,
            cpk=self.cpk,
            operation_context=self.operation_context,
            cancellation_token=self.cancellation_token,
        )
        return BlobBlock(block_id)

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


def _download_blob_chunks(blob_service, container_name, blob_name, download_size,
                          chunk_size, progress, start_range, end_range, stream,
                          max_connections, progress_callback, cpk=None,
                          operation_context=None, cancellation_token=None):
    '''
    Downloads the inclusive range [start_range, end_range] of the blob in
    chunks and writes it to the stream. progress is the number of bytes of
    download_size already written by the caller.
    '''
    downloader = _BlobChunkDownloader(
        blob_service,
        container_name,
        blob_name,
        download_size,
        chunk_size,
        progress,
        start_range,
        end_range,
        stream,
        max_connections > 1,
        progress_callback,
        cpk,
        operation_context,
        cancellation_token,
    )

    if max_connections > 1:
        with concurrent.futures.ThreadPoolExecutor(max_connections) as executor:
            list(executor.map(downloader.process_chunk, downloader.get_chunk_offsets()))
    else:
        for chunk in downloader.get_chunk_offsets():
            downloader.process_chunk(chunk)


class _BlobChunkDownloader(object):
    def __init__(self, blob_service, container_name, blob_name, download_size,
                 chunk_size, progress, start_range, end_range, stream, parallel,
                 progress_callback, cpk, operation_context, cancellation_token):
        self.blob_service = blob_service
        self.container_name = container_name
        self.blob_name = blob_name
        self.chunk_size = chunk_size

        self.download_size = download_size
        self.start_index = start_range
        self.blob_end = end_range + 1

        self.stream = stream
        self.stream_start = stream.tell() if parallel else None
        self.stream_lock = threading.Lock() if parallel else None
        self.progress_callback = progress_callback
        self.progress_total = progress
        self.progress_lock = threading.Lock() if parallel else None
        self.cpk = cpk
        self.operation_context = operation_context
        self.cancellation_token = cancellation_token

    def get_chunk_offsets(self):
        index = self.start_index
        while index < self.blob_end:
            yield index
            index += self.chunk_size

    def process_chunk(self, chunk_start):
        chunk_end = min(chunk_start + self.chunk_size, self.blob_end)
        chunk_data = self._download_chunk(chunk_start, chunk_end - 1)
        self._write_to_stream(chunk_data, chunk_start)
        self._update_progress(len(chunk_data))

    def _update_progress(self, length):
        if self.progress_callback is not None:
            if self.progress_lock is not None:
                with self.progress_lock:
                    self.progress_total += length
                    total = self.progress_total
            else:
                self.progress_total += length
                total = self.progress_total
            self.progress_callback(total, self.download_size)

    def _write_to_stream(self, chunk_data, chunk_start):
        if self.stream_lock is not None:
            with self.stream_lock:
                self.stream.seek(self.stream_start + (chunk_start - self.start_index))
                self.stream.write(chunk_data)
        else:
            self.stream.write(chunk_data)

    def _download_chunk(self, chunk_start, chunk_end):
        blob = self.blob_service._get_blob(
            self.container_name,
            self.blob_name,
            start_range=chunk_start,
            end_range=chunk_end,
            cpk=self.cpk,
            operation_context=self.operation_context,
            cancellation_token=self.cancellation_token,
        )
        return blob.content

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
from xml.etree import ElementTree as ETree

from .._error import (
    _ERROR_INVALID_CPK_HASH,
    _validate_cpk_over_https,
    _validate_not_none,
)
from .models import _compute_key_hash


def _get_path(container_name=None, blob_name=None):
    '''
    Creates the path to access a blob resource.

    container_name:
        Name of container.
    blob_name:
        The path to the blob.
    '''
    if container_name and blob_name:
        return '/{0}/{1}'.format(container_name, blob_name)
    elif container_name:
        return '/{0}'.format(container_name)
    else:
        return '/'


def _validate_and_format_range_headers(request, start_range, end_range, start_range_required=True,
                                       end_range_required=True, check_content_md5=False):
    # If end range is provided, start range must be provided
    if start_range_required or end_range is not None:
        _validate_not_none('start_range', start_range)
    if end_range_required:
        _validate_not_none('end_range', end_range)

    # Format based on whether end_range is present
    if end_range is not None:
        request.headers['x-ms-range'] = 'bytes={0}-{1}'.format(start_range, end_range)
    elif start_range is not None:
        request.headers['x-ms-range'] = 'bytes={0}-'.format(start_range)

    # Content MD5 can only be provided for a complete range less than 4MB in size
    if check_content_md5:
        if start_range is None or end_range is None:
            raise ValueError('Both start and end range requied for MD5 content validation.')
        if end_range - start_range > 4 * 1024 * 1024:
            raise ValueError('Getting content MD5 for a range greater than 4MB is not supported.')

        request.headers['x-ms-range-get-content-md5'] = 'true'


def _add_cpk_headers(request, cpk, protocol):
    '''
    Adds the customer provided key headers. The key is sent as is, it is only
    checked to match its hash.
    '''
    if cpk is None:
        return
    _validate_cpk_over_https(cpk, protocol)
    if _compute_key_hash(cpk.key_value) != cpk.key_hash:
        raise ValueError(_ERROR_INVALID_CPK_HASH)
    request.headers['x-ms-encryption-key'] = cpk.key_value
    request.headers['x-ms-encryption-key-sha256'] = cpk.key_hash
    request.headers['x-ms-encryption-algorithm'] = cpk.algorithm


def _convert_block_list_to_xml(block_id_list):
    '''
    <?xml version="1.0" encoding="utf-8"?>
    <BlockList>
      <Latest>first-base64-encoded-block-id</Latest>
      <Latest>second-base64-encoded-block-id</Latest>
    </BlockList>

    Convert a block list to xml to send.

    block_id_list:
        A list of BlobBlock containing the block ids that are used in put_block_list.
    Only get block from latest blocks.
    '''
    if block_id_list is None:
        return ''

    block_list_element = ETree.Element('BlockList')

    for block in block_id_list:
        if block.id is None:
            raise ValueError("All blocks in block list need to have valid block ids.")
        ETree.SubElement(block_list_element, 'Latest').text = block.id

    # Add xml declaration and serialize
    try:
        stream = BytesIO()
        ETree.ElementTree(block_list_element).write(stream, xml_declaration=True, encoding='utf-8', method='xml')
    finally:
        output = stream.getvalue()
        stream.close()

    # return xml value
    return output

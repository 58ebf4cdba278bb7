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
from xml.etree import ElementTree as ETree

from dateutil import parser

from .._deserialization import (
    _bool,
    _int_or_none,
    _parse_metadata,
)
from .models import (
    Blob,
    BlobList,
    BlobProperties,
    Container,
    ContainerProperties,
)


def _str_or_none(value):
    return value if value is None else str(value)


GET_PROPERTIES_ATTRIBUTE_MAP = {
    'last-modified': (None, 'last_modified', parser.parse),
    'etag': (None, 'etag', _str_or_none),
    'content-length': (None, 'content_length', _int_or_none),
    'content-range': (None, 'content_range', _str_or_none),
    'x-ms-server-encrypted': (None, 'server_encrypted', _bool),
    'x-ms-encryption-key-sha256': (None, 'encryption_key_sha256', _str_or_none),
    'x-ms-blob-public-access': (None, 'public_access', _str_or_none),
    'content-type': ('content_settings', 'content_type', _str_or_none),
    'cache-control': ('content_settings', 'cache_control', _str_or_none),
    'content-encoding': ('content_settings', 'content_encoding', _str_or_none),
    'content-disposition': ('content_settings', 'content_disposition', _str_or_none),
    'content-language': ('content_settings', 'content_language', _str_or_none),
    'content-md5': ('content_settings', 'content_md5', _str_or_none),
}


def _parse_properties(response, properties_class):
    '''
    Extracts out resource properties information.
    Ignores the standard http headers.
    '''

    if response is None or response.headers is None:
        return None

    props = properties_class()
    for key, value in response.headers.items():
        info = GET_PROPERTIES_ATTRIBUTE_MAP.get(key.lower())
        if info:
            target = props if info[0] is None else getattr(props, info[0], None)
            if target is not None and hasattr(target, info[1]):
                setattr(target, info[1], info[2](value))

    return props


def _parse_blob(name, response):
    if response is None:
        return None

    metadata = _parse_metadata(response)
    props = _parse_properties(response, BlobProperties)

    # the total size of a ranged download is the part after the slash of the content range
    if props.content_range:
        props.content_length = _int_or_none(props.content_range.split('/')[1])

    return Blob(name, response.body, props, metadata)


def _parse_container(name, response):
    if response is None:
        return None

    metadata = _parse_metadata(response)
    props = _parse_properties(response, ContainerProperties)
    return Container(name, props, metadata)


LIST_BLOBS_ATTRIBUTE_MAP = {
    'Last-Modified': (None, 'last_modified', parser.parse),
    'Etag': (None, 'etag', _str_or_none),
    'Content-Length': (None, 'content_length', _int_or_none),
    'ServerEncrypted': (None, 'server_encrypted', _bool),
    'CustomerProvidedKeySha256': (None, 'encryption_key_sha256', _str_or_none),
    'Content-Type': ('content_settings', 'content_type', _str_or_none),
    'Content-Encoding': ('content_settings', 'content_encoding', _str_or_none),
    'Content-Disposition': ('content_settings', 'content_disposition', _str_or_none),
    'Content-Language': ('content_settings', 'content_language', _str_or_none),
    'Content-MD5': ('content_settings', 'content_md5', _str_or_none),
    'Cache-Control': ('content_settings', 'cache_control', _str_or_none),
}


def _convert_xml_to_blob_list(response):
    '''
    <?xml version="1.0" encoding="utf-8"?>
    <EnumerationResults ServiceEndpoint="http://myaccount.blob.core.windows.net/" ContainerName="mycontainer">
      <Prefix>string-value</Prefix>
      <Marker>string-value</Marker>
      <MaxResults>int-value</MaxResults>
      <Blobs>
        <Blob>
          <Name>blob-name</name>
          <Properties>
            <Last-Modified>date-time-value</Last-Modified>
            <Etag>etag</Etag>
            <Content-Length>size-in-bytes</Content-Length>
            <Content-Type>blob-content-type</Content-Type>
            <Content-Encoding />
            <Content-Language />
            <Content-MD5 />
            <Cache-Control />
            <ServerEncrypted>true</ServerEncrypted>
          </Properties>
          <Metadata>
            <Name>value</Name>
          </Metadata>
        </Blob>
      </Blobs>
      <NextMarker />
    </EnumerationResults>
    '''
    if response is None or response.body is None:
        return None

    blob_list = BlobList()
    list_element = ETree.fromstring(response.body)

    blob_list.next_marker = list_element.findtext('NextMarker') or None

    blobs_element = list_element.find('Blobs')
    for blob_element in blobs_element.findall('Blob'):
        blob = Blob()
        blob.name = blob_element.findtext('Name')

        # Properties
        properties_element = blob_element.find('Properties')
        if properties_element is not None:
            for property_element in properties_element:
                info = LIST_BLOBS_ATTRIBUTE_MAP.get(property_element.tag)
                if info is None or property_element.text is None:
                    continue
                target = blob.properties if info[0] is None else getattr(blob.properties, info[0])
                setattr(target, info[1], info[2](property_element.text))

        # Metadata
        metadata_root_element = blob_element.find('Metadata')
        if metadata_root_element is not None:
            blob.metadata = dict()
            for metadata_element in metadata_root_element:
                blob.metadata[metadata_element.tag] = metadata_element.text

        # Add blob to list
        blob_list.append(blob)

    return blob_list

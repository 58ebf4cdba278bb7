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

from .models import (
    AccessPolicy,
    _dict,
)


def _int_or_none(value):
    return value if value is None else int(value)


def _bool(value):
    return value.lower() == 'true'


class ResourceProperties(object):
    '''
    Properties common to most storage resources, returned by create and
    update operations.

    :ivar str etag:
        The ETag contains a value that you can use to perform operations
        conditionally.
    :ivar datetime last_modified:
        A datetime object representing the last time the resource was modified.
    :ivar bool request_server_encrypted:
        Whether the service encrypted the data it stored for this request.
    :ivar str encryption_key_sha256:
        The SHA-256 hash of the customer provided key the service used, if any.
    '''

    def __init__(self):
        self.etag = None
        self.last_modified = None
        self.request_server_encrypted = None
        self.encryption_key_sha256 = None


def _parse_base_properties(response):
    '''
    Extracts basic response headers.
    '''
    resource_properties = ResourceProperties()
    resource_properties.last_modified = parser.parse(response.headers.get('last-modified'))
    resource_properties.etag = response.headers.get('etag')
    server_encrypted = response.headers.get('x-ms-request-server-encrypted')
    if server_encrypted is not None:
        resource_properties.request_server_encrypted = _bool(server_encrypted)
    resource_properties.encryption_key_sha256 = response.headers.get('x-ms-encryption-key-sha256')

    return resource_properties


def _parse_metadata(response):
    '''
    Extracts out resource metadata information.
    '''

    if response is None or response.headers is None:
        return None

    metadata = _dict()
    for key, value in response.headers.items():
        if key.lower().startswith('x-ms-meta-'):
            metadata[key[10:]] = value

    return metadata


def _convert_xml_to_signed_identifiers(response):
    '''
    <?xml version="1.0" encoding="utf-8"?>
    <SignedIdentifiers>
      <SignedIdentifier>
        <Id>unique-value</Id>
        <AccessPolicy>
          <Start>start-time</Start>
          <Expiry>expiry-time</Expiry>
          <Permission>abbreviated-permission-list</Permission>
        </AccessPolicy>
      </SignedIdentifier>
    </SignedIdentifiers>
    '''
    if response is None or response.body is None or not response.body:
        return None

    list_element = ETree.fromstring(response.body)
    signed_identifiers = _dict()

    for signed_identifier_element in list_element.findall('SignedIdentifier'):
        # Id element
        id = signed_identifier_element.find('Id').text

        # Access policy element
        access_policy = AccessPolicy()
        access_policy_element = signed_identifier_element.find('AccessPolicy')
        if access_policy_element is not None:
            start_element = access_policy_element.find('Start')
            if start_element is not None:
                access_policy.start = parser.parse(start_element.text)

            expiry_element = access_policy_element.find('Expiry')
            if expiry_element is not None:
                access_policy.expiry = parser.parse(expiry_element.text)

            permission_element = access_policy_element.find('Permission')
            if permission_element is not None:
                access_policy.permission = permission_element.text

        signed_identifiers[id] = access_policy

    return signed_identifiers

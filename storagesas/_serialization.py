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
import uuid
from datetime import (
    date,
    datetime,
)
from io import BytesIO
from time import time
from urllib.parse import quote as url_quote
from urllib.parse import unquote as url_unquote
from wsgiref.handlers import format_date_time

from xml.etree import ElementTree as ETree

from dateutil.parser import isoparse
from dateutil.tz import tzutc

from ._constants import (
    X_MS_VERSION,
    USER_AGENT_STRING,
)
from ._error import (
    _ERROR_INVALID_TIME,
    _ERROR_VALUE_SHOULD_BE_BYTES,
)


def _to_utc_datetime(value):
    # Azure expects the date value passed in to be UTC.
    # If a date is passed in without timezone info, it is assumed to be UTC.
    if isinstance(value, datetime) and value.tzinfo:
        value = value.astimezone(tzutc())
    return value.strftime('%Y-%m-%dT%H:%M:%SZ')


def _parse_time(param_name, value):
    '''
    Converts a date, datetime or ISO-8601 string to an aware UTC datetime so
    that times given in different forms can be compared.
    '''
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tzutc())
        return value.astimezone(tzutc())

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=tzutc())

    try:
        parsed = isoparse(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(_ERROR_INVALID_TIME.format(param_name, value))
    return _parse_time(param_name, parsed)


def _get_data_bytes_only(param_name, param_value):
    '''Validates the request body passed in and converts it to bytes
    if our policy allows it.'''
    if param_value is None:
        return b''

    if isinstance(param_value, bytes):
        return param_value

    raise TypeError(_ERROR_VALUE_SHOULD_BE_BYTES.format(param_name))


def _get_request_body(request_body):
    '''Converts an object into a request body.  If it's None
    we'll return an empty string, if it's one of our objects it'll
    convert it to XML and return it.  Otherwise we just use the object
    directly'''
    if request_body is None:
        return b''

    if isinstance(request_body, bytes):
        return request_body

    if isinstance(request_body, str):
        return request_body.encode('utf-8')

    return str(request_body).encode('utf-8')


def _update_request(request, x_ms_version=X_MS_VERSION, user_agent_string=USER_AGENT_STRING):
    # drop parameters that were not set
    request.headers = dict((name, value) for name, value in request.headers.items() if value is not None)
    request.query = dict((name, value) for name, value in request.query.items() if value is not None)

    # Verify body
    if request.body:
        request.body = _get_data_bytes_only('request.body', request.body)

    # if it is PUT, POST, MERGE, DELETE, need to add content-length to header.
    if request.method in ['PUT', 'POST', 'MERGE', 'DELETE']:
        request.headers['Content-Length'] = str(len(request.body))

    # append addtional headers based on the service
    request.headers['x-ms-version'] = x_ms_version
    request.headers['User-Agent'] = user_agent_string
    request.headers['x-ms-client-request-id'] = str(uuid.uuid1())

    # Encode the path
    request.path = url_quote(request.path, '/()$=\',~')


def _add_metadata_headers(metadata, request):
    if metadata:
        if not request.headers:
            request.headers = {}
        for name, value in metadata.items():
            request.headers['x-ms-meta-' + name] = value


def _add_date_header(request):
    current_time = format_date_time(time())
    request.headers['x-ms-date'] = current_time


def _get_query_string(request):
    '''
    Returns the query portion of the request path together with the query
    parameters of the request as a list of (name, unquoted value) pairs.
    '''
    path, _, query_string = request.path.partition('?')
    pairs = [(name, value) for name, value in request.query.items() if value is not None]
    if query_string:
        for pair in query_string.split('&'):
            name, _, value = pair.partition('=')
            pairs.append((url_unquote(name), url_unquote(value)))
    return path, pairs


def _convert_signed_identifiers_to_xml(signed_identifiers):
    if signed_identifiers is None:
        return ''

    sis = ETree.Element('SignedIdentifiers')
    for id, access_policy in signed_identifiers.items():
        # Root signed identifers element
        si = ETree.SubElement(sis, 'SignedIdentifier')

        # Id element
        ETree.SubElement(si, 'Id').text = id

        # Access policy element
        policy = ETree.SubElement(si, 'AccessPolicy')

        if access_policy.start:
            start = access_policy.start
            if isinstance(access_policy.start, date):
                start = _to_utc_datetime(start)
            ETree.SubElement(policy, 'Start').text = start

        if access_policy.expiry:
            expiry = access_policy.expiry
            if isinstance(access_policy.expiry, date):
                expiry = _to_utc_datetime(expiry)
            ETree.SubElement(policy, 'Expiry').text = expiry

        if access_policy.permission:
            ETree.SubElement(policy, 'Permission').text = str(access_policy.permission)

    # Add xml declaration and serialize
    try:
        stream = BytesIO()
        ETree.ElementTree(sis).write(stream, xml_declaration=True, encoding='utf-8', method='xml')
    finally:
        output = stream.getvalue()
        stream.close()

    return output

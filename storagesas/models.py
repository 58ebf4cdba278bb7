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
import ipaddress
import threading

from ._error import (
    _ERROR_INVALID_IP_ADDRESS,
    _ERROR_INVALID_IP_RANGE,
    _ERROR_INVALID_PROTOCOL,
    _ERROR_IP_MUST_BE_IPV4,
    _validate_not_none,
)


class _list(list):
    '''Used so that additional properties can be set on the return list'''
    pass


class _dict(dict):
    '''Used so that additional properties can be set on the return dictionary'''
    pass


class ListGenerator(object):
    '''
    A generator object used to list storage resources. The generator will lazily
    follow the continuation tokens returned by the service and stop when all
    resources have been returned or max_results is reached.

    If max_results is specified and the account has more than that number of
    resources, the generator will have a populated next_marker field once it
    finishes. This marker can be used to create a new generator if more
    results are desired.
    '''

    def __init__(self, resources, list_method, list_args, list_kwargs):
        self.items = resources
        self.next_marker = resources.next_marker

        self._list_method = list_method
        self._list_args = list_args
        self._list_kwargs = list_kwargs

    def __iter__(self):
        # return results
        for i in self.items:
            yield i

        while True:
            # if no more results on the service, return
            if not self.next_marker:
                break

            # update the marker args
            self._list_kwargs['marker'] = self.next_marker

            # handle max results, if present
            max_results = self._list_kwargs.get('max_results')
            if max_results is not None:
                max_results = max_results - len(self.items)

                # if we've reached max_results, return
                # else, update the max_results arg
                if max_results <= 0:
                    break
                else:
                    self._list_kwargs['max_results'] = max_results

            # get the next segment
            resources = self._list_method(*self._list_args, **self._list_kwargs)
            self.items = resources
            self.next_marker = resources.next_marker

            # return results
            for i in self.items:
                yield i


class AccessPolicy(object):
    '''
    Access Policy class used by the set and get acl methods and by shared
    access signatures.

    A stored access policy can specify the start time, expiry time, and
    permissions for the Shared Access Signatures with which it's associated.
    Depending on how you want to control access to your resource, you can
    specify all of these parameters within the stored access policy, and omit
    them from the URL for the Shared Access Signature. Doing so permits you to
    modify the associated signature's behavior at any time, as well as to revoke
    it. Or you can specify one or more of the access policy parameters within
    the stored access policy, and the others on the URL. Finally, you can
    specify all of the parameters on the URL. In this case, you can use the
    stored access policy to revoke the signature, but not to modify its behavior.

    Together the Shared Access Signature and the stored access policy must
    include all fields required to authenticate the signature. If any required
    fields are missing, the request will fail. Likewise, if a field is specified
    both in the Shared Access Signature URL and in the stored access policy, the
    request will fail with status code 400 (Bad Request).

    :param str permission:
        The permissions associated with the shared access signature. The
        user is restricted to operations allowed by the permissions.
        Required unless an id is given referencing a stored access policy
        which contains this field. This field must be omitted if it has been
        specified in an associated stored access policy.
    :param expiry:
        The time at which the shared access signature becomes invalid.
        Required unless an id is given referencing a stored access policy
        which contains this field. This field must be omitted if it has
        been specified in an associated stored access policy. Azure will always
        convert values to UTC. If a date is passed in without timezone info, it
        is assumed to be UTC.
    :type expiry: datetime or str
    :param start:
        The time at which the shared access signature becomes valid. If
        omitted, start time for this call is assumed to be the time when the
        storage service receives the request. Azure will always convert values
        to UTC. If a date is passed in without timezone info, it is assumed to
        be UTC.
    :type start: datetime or str
    '''

    def __init__(self, permission=None, expiry=None, start=None):
        self.start = start
        self.expiry = expiry
        self.permission = permission


class SharedAccessProtocol(object):
    '''
    Protocols a shared access signature may be restricted to. HTTP only is not
    a permitted value.
    '''

    HTTPS = 'https'
    ''' Only requests made over HTTPS are accepted. '''

    HTTPS_HTTP = 'https,http'
    ''' Requests made over either HTTPS or HTTP are accepted. '''


def _validate_protocol(protocol):
    if protocol is None:
        return None
    if protocol not in (SharedAccessProtocol.HTTPS, SharedAccessProtocol.HTTPS_HTTP):
        raise ValueError(_ERROR_INVALID_PROTOCOL.format(repr(protocol)))
    return protocol


class IPRange(object):
    '''
    A single IPv4 address or an inclusive range of IPv4 addresses from which a
    shared access signature accepts requests.

    :param str start:
        The address, or the lowest address of the range.
    :param str end:
        The highest address of the range. Omit for a single address.
    '''

    def __init__(self, start, end=None):
        _validate_not_none('start', start)
        self.start = _parse_ipv4(start)
        self.end = _parse_ipv4(end) if end is not None else self.start
        if self.start > self.end:
            raise ValueError(_ERROR_INVALID_IP_RANGE.format(self))

    @property
    def is_single_address(self):
        return self.start == self.end

    def __contains__(self, address):
        try:
            address = ipaddress.ip_address(str(address).strip())
        except ValueError:
            return False
        if address.version != 4:
            return False
        return self.start <= address <= self.end

    def __eq__(self, other):
        return isinstance(other, IPRange) and (self.start, self.end) == (other.start, other.end)

    def __hash__(self):
        return hash((self.start, self.end))

    def __str__(self):
        if self.is_single_address:
            return str(self.start)
        return '{}-{}'.format(self.start, self.end)

    def __repr__(self):
        return 'IPRange({!r})'.format(str(self))


def _parse_ipv4(address):
    try:
        parsed = ipaddress.ip_address(str(address).strip())
    except ValueError:
        raise ValueError(_ERROR_INVALID_IP_ADDRESS.format(address))
    if parsed.version != 4:
        raise ValueError(_ERROR_IP_MUST_BE_IPV4.format(address))
    return parsed


def _to_ip_range(ip):
    '''Accepts an IPRange or its string form ('a.b.c.d' or 'a.b.c.d-e.f.g.h').'''
    if ip is None or isinstance(ip, IPRange):
        return ip
    start, _, end = str(ip).partition('-')
    if not start:
        raise ValueError(_ERROR_INVALID_IP_ADDRESS.format(ip))
    return IPRange(start, end or None)


class CancellationToken(object):
    '''
    Lets a caller abort a long running operation, such as a chunked upload or
    download, from another thread. Operations check the token before each
    request they send and raise
    :class:`~storagesas._error.AzureOperationCanceledError` once it is set.
    A request already on the wire is allowed to finish.
    '''

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()


class RequestResult(object):
    '''
    The outcome of a single request sent as part of an operation.

    :ivar str method:
        The HTTP method of the request.
    :ivar str path:
        The path of the request, without the shared access signature.
    :ivar int status_code:
        The HTTP status returned by the service. None when the request never
        completed, for example when it was canceled or the transport failed.
    :ivar str error_code:
        The storage error code returned by the service, if any.
    :ivar str request_id:
        The client request id sent with the request.
    :ivar Exception exception:
        The exception raised for this request, if any.
    '''

    def __init__(self, method=None, path=None, status_code=None, error_code=None,
                 request_id=None, exception=None):
        self.method = method
        self.path = path
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.exception = exception


class OperationContext(object):
    '''
    Collects a :class:`RequestResult` for every request sent by an operation
    it is passed to. It is the place to look for the status code and exception
    of a failed or canceled operation.

    :ivar list request_results:
        The results in the order the requests were sent.
    '''

    def __init__(self):
        self.request_results = []
        self._lock = threading.Lock()

    def _add_result(self, result):
        with self._lock:
            self.request_results.append(result)

    @property
    def last_result(self):
        with self._lock:
            return self.request_results[-1] if self.request_results else None

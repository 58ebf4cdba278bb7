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
import copy
import logging
import threading

from ._error import (
    _validate_access_policies,
    _validate_not_none,
    _validate_not_none_or_empty,
)
from .models import (
    AccessPolicy,
    _dict,
)

logger = logging.getLogger(__name__)


class StoredAccessPolicyStore(object):
    '''
    Holds the stored access policies of the containers of an account. A shared
    access signature that names a policy id is resolved against the store each
    time it is validated, so changing or deleting a policy changes what every
    outstanding token referencing it grants.

    Implementations must return values that later changes to the store do not
    affect.
    '''

    def get_policy(self, container_name, id):
        '''
        :return: The policy, or None if the container has no policy with that id.
        :rtype: ~storagesas.models.AccessPolicy
        '''
        raise NotImplementedError()

    def get_policies(self, container_name):
        '''
        :return: A dictionary of access policies keyed by id.
        :rtype: dict(str, ~storagesas.models.AccessPolicy)
        '''
        raise NotImplementedError()

    def set_policies(self, container_name, signed_identifiers):
        '''
        Replaces all the policies of the container.

        :param dict(str, ~storagesas.models.AccessPolicy) signed_identifiers:
            A dictionary of access policies to associate with the container. The
            dictionary may contain up to 5 elements. An empty dictionary or None
            will clear the access policies set on the service.
        '''
        raise NotImplementedError()

    def set_policy(self, container_name, id, access_policy):
        raise NotImplementedError()

    def delete_policy(self, container_name, id):
        raise NotImplementedError()

    def delete_container(self, container_name):
        raise NotImplementedError()


class InMemoryAccessPolicyStore(StoredAccessPolicyStore):
    '''
    A thread safe store that keeps policies in memory.
    '''

    def __init__(self):
        self._policies = {}
        self._lock = threading.Lock()

    def get_policy(self, container_name, id):
        _validate_not_none('container_name', container_name)
        _validate_not_none('id', id)
        with self._lock:
            policy = self._policies.get(container_name, {}).get(id)
            return copy.copy(policy)

    def get_policies(self, container_name):
        _validate_not_none('container_name', container_name)
        with self._lock:
            policies = self._policies.get(container_name, {})
            return _dict((id, copy.copy(policy)) for id, policy in policies.items())

    def set_policies(self, container_name, signed_identifiers):
        _validate_not_none('container_name', container_name)
        _validate_access_policies(signed_identifiers)
        policies = dict((id, copy.copy(policy or AccessPolicy()))
                        for id, policy in (signed_identifiers or {}).items())
        with self._lock:
            self._policies[container_name] = policies
        logger.debug("Set %s stored access policies on container %s", len(policies), container_name)

    def set_policy(self, container_name, id, access_policy):
        _validate_not_none('container_name', container_name)
        _validate_not_none_or_empty('id', id)
        with self._lock:
            policies = dict(self._policies.get(container_name, {}))
            policies[id] = copy.copy(access_policy or AccessPolicy())
            _validate_access_policies(policies)
            self._policies[container_name] = policies

    def delete_policy(self, container_name, id):
        '''
        :return: True if the policy existed.
        :rtype: bool
        '''
        _validate_not_none('container_name', container_name)
        with self._lock:
            return self._policies.get(container_name, {}).pop(id, None) is not None

    def delete_container(self, container_name):
        _validate_not_none('container_name', container_name)
        with self._lock:
            self._policies.pop(container_name, None)

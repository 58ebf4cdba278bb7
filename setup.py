#!/usr/bin/env python

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

import re
from io import open

from setuptools import setup, find_packages

with open('storagesas/_constants.py', 'r', encoding='utf-8') as fd:
    version = re.search(r"^__version__\s*=\s*'([^']*)'", fd.read(), re.MULTILINE).group(1)

setup(
    name='storage-sas',
    version=version,
    description='Shared access signature issuance and validation for blob storage',
    long_description=open('README.rst', 'r', encoding='utf-8').read(),
    license='Apache License 2.0',
    author='Microsoft Corporation',
    author_email='ptvshelp@microsoft.com',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: Apache Software License',
    ],
    zip_safe=False,
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.6',
    install_requires=[
        'azure-common>=1.1.5',
        'cryptography',
        'python-dateutil',
    ],
    extras_require={
        'test': ['pytest'],
    },
)

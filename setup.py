#!/usr/bin/env python
"""
Copyright 2025 Hathor Labs

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from setuptools import find_packages, setup

from confidential_ct import __version__

install_requires = [
    'PyNaCl>=1.5',
    'cryptography>=42',
    'base58>=2.1',
    'structlog>=22.3',
    'pydantic>=2.0',
    'PyYAML>=6.0',
]

setup(
    name='confidential-ct',
    version=__version__,
    description='Confidential balances: twisted ElGamal encryption and zero-knowledge transfer proofs',
    author='Hathor Team',
    author_email='contact@hathor.network',
    url='https://hathor.network/',
    license='Apache-2.0',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'License :: OSI Approved :: Apache Software License',
    ],
    python_requires='>=3.10',
    packages=find_packages(exclude=('tests', 'tests.*')),
    package_data={'confidential_ct.conf': ['*.yml']},
    install_requires=install_requires,
    extras_require={
        'test': ['pytest>=7.2'],
    },
)

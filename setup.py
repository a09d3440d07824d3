#!/usr/bin/env python
#
# birpc: symmetric bidirectional RPC over any duplex channel.
#
# Copyright 2018-eternity Tyler Goodlet.

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

from setuptools import setup

with open('docs/README.rst', encoding='utf-8') as f:
    readme = f.read()


setup(
    name="birpc",
    version='0.1.0a1dev0',  # alpha zone
    description='symmetric `trio`-native RPC over any duplex channel',
    long_description=readme,
    license='AGPLv3',
    author='Tyler Goodlet',
    maintainer='Tyler Goodlet',
    maintainer_email='goodboy_foss@protonmail.com',
    platforms=['linux', 'windows'],
    packages=[
        'birpc',
        'birpc.msg',  # wire envelope and codecs
        'birpc._testing',  # internal suite utils
    ],
    install_requires=[

        # trio related
        # proper range spec:
        # https://packaging.python.org/en/latest/discussions/install-requires-vs-requirements/#id5
        'trio >= 0.24',

        # call settlement boxing, already a `trio` dep
        'outcome',

        # tooling
        'colorlog',

        # wire envelope + default codecs
        'msgspec',

        # pip ref docs on these specs:
        # https://pip.pypa.io/en/stable/reference/requirement-specifiers/#examples
        # and pep:
        # https://peps.python.org/pep-0440/#version-specifiers

    ],
    tests_require=['pytest'],
    extras_require={
        'test': ['pytest'],
    },
    python_requires=">=3.11",
    keywords=[
        'trio',
        'async',
        'rpc',
        'bidirectional',
        'structured concurrency',
        'msgpack',
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Operating System :: POSIX :: Linux",
        "Operating System :: Microsoft :: Windows",
        "Framework :: Trio",
        "License :: OSI Approved :: GNU Affero General Public License v3 or later (AGPLv3+)",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.11",
        "Intended Audience :: Developers",
        "Topic :: System :: Networking",
    ],
)

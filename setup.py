#!/usr/bin/env python3

# Copyright 2025 Espressif Systems (Shanghai) PTE LTD
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
import sys

from setuptools import find_packages, setup

HERE = os.path.dirname(os.path.realpath(__file__))


def get_install_requires():
    """ """
    with open(os.path.join(HERE, "requirements.txt")) as f:
        required = [line.strip() for line in f.read().splitlines()]
        return [line for line in required if line and not line.startswith("#")]


VERSION = "0.1.0"

long_description = """
=====================
mash-pics-validator
=====================
A command-line utility and library for parsing MASH PICS documents
(key-value or YAML) and validating them against the protocol's
conformance rules.

Documentation
-------------
Run ``mash-pics --help`` or ``mash-pics <command> --help``.

License
-------
Apache-2.0
"""

setup(
    name="mash-pics-validator",
    version=VERSION,
    description=(
        "A command-line utility for validating MASH PICS documents "
        "against the protocol conformance rules."
    ),
    long_description=long_description,
    long_description_content_type="text/x-rst",
    author="Espressif Systems",
    author_email="",
    license="Apache-2.0",
    classifiers=[
        "License :: OSI Approved :: Apache Software License",
        "Intended Audience :: Developers",
        "Natural Language :: English",
        "Operating System :: POSIX",
        "Operating System :: MacOS :: MacOS X",
        "Topic :: Software Development :: Testing",
    ],
    python_requires=">=3.10",
    setup_requires=(["wheel"] if "bdist_wheel" in sys.argv else []),
    install_requires=get_install_requires(),
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    packages=find_packages(
        include=["mash_pics", "mash_pics.*"],
        exclude=["mash_pics.tests", "mash_pics.tests.*"],
    ),
    package_data={
        "mash_pics": ["data/*.json"],
    },
    entry_points={
        "console_scripts": [
            "mash-pics=mash_pics.cli.main:main"
        ],
    },
)

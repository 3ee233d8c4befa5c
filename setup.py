#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from setuptools import find_packages, setup

setup(
    name="smd-backend",
    version="1.0.0",
    packages=find_packages(include=["smd_backend", "smd_backend.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=["pydantic>=2.0", "requests>=2.28", "urllib3>=1.26"],
    extras_require={"test": ["pytest", "pytest-mock"]},
    entry_points={"console_scripts": ["smd-zabbix=smd_backend.main:main"]},
)

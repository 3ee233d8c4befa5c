#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Connection settings of the Zabbix backend

The settings are read from a shell style file, one KEY='value' per line:

    ZABBIX_VERSION='243'
    ZABBIX_URL='https://zabbix.example.com/api_jsonrpc.php'
    ZABBIX_USER='dashboard'
    ZABBIX_PASS='secret'

Environment variables with the same names take precedence over the file.
"""

import os
from collections.abc import Iterable, Mapping
from pathlib import Path

import pydantic

from smd_backend.exceptions import ConfigError

REQUIRED_KEYS = ("ZABBIX_VERSION", "ZABBIX_URL", "ZABBIX_USER", "ZABBIX_PASS")
OPTIONAL_KEYS = ("ZABBIX_VERIFY_SSL", "ZABBIX_TIMEOUT")

_FALSE_VALUES = ("0", "no", "false", "off")


class BackendConfig(pydantic.BaseModel, frozen=True):
    version: int
    url: str
    user: str
    password: str
    verify_ssl: bool = True
    timeout: float | None = None


def parse_config_lines(lines: Iterable[str]) -> dict[str, str]:
    """
    >>> parse_config_lines(["# Zabbix", "", "ZABBIX_URL='http://zabbix/api_jsonrpc.php'"])
    {'ZABBIX_URL': 'http://zabbix/api_jsonrpc.php'}
    """
    settings = {}
    for lineno, line in enumerate(lines, start=1):
        if not (line := line.strip()) or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise ConfigError(f"Invalid line {lineno}: {line!r}")
        settings[key.strip()] = _unquote(value.strip())
    return settings


def _unquote(value: str) -> str:
    # only one matching pair, quotes inside the value are part of it
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def config_from_settings(settings: Mapping[str, str]) -> BackendConfig:
    if missing := [key for key in REQUIRED_KEYS if not settings.get(key)]:
        raise ConfigError("Missing settings: %s" % ", ".join(missing))
    try:
        return BackendConfig(
            version=settings["ZABBIX_VERSION"],
            url=settings["ZABBIX_URL"],
            user=settings["ZABBIX_USER"],
            password=settings["ZABBIX_PASS"],
            verify_ssl=settings.get("ZABBIX_VERIFY_SSL", "yes").lower() not in _FALSE_VALUES,
            timeout=settings.get("ZABBIX_TIMEOUT") or None,
        )
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> BackendConfig:
    if environ is None:
        environ = os.environ

    try:
        settings = parse_config_lines(path.read_text(encoding="utf-8").splitlines())
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    settings.update(
        {key: value for key, value in environ.items() if key in REQUIRED_KEYS + OPTIONAL_KEYS}
    )
    return config_from_settings(settings)

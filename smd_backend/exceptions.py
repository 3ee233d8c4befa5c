#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Exceptions raised by the dashboard backends."""

__all__ = [
    "AuthenticationError",
    "BackendError",
    "ConfigError",
    "InvalidArgumentsError",
    "ZabbixAPIError",
]


# never raised directly. Just some wrapper to make all of our
# exceptions handleable with one call
class BackendError(Exception):
    pass


class InvalidArgumentsError(BackendError):
    pass


class AuthenticationError(BackendError):
    pass


class ConfigError(BackendError):
    pass


class ZabbixAPIError(BackendError):
    """An error object returned by the Zabbix JSON-RPC API

    >>> str(ZabbixAPIError(-32602, "Invalid params.", "No permissions."))
    'Invalid params. (-32602): No permissions.'
    """

    def __init__(self, code: int, message: str, data: str = "") -> None:
        super().__init__(code, message, data)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        return f"{self.message} ({self.code})" + (f": {self.data}" if self.data else "")

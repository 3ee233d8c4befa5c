#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import enum


class Severity(enum.IntEnum):
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


def trigger_priority_to_severity(priority: int) -> Severity:
    """Unify the Zabbix trigger priority with the service states of the dashboard

    >>> trigger_priority_to_severity(0)
    <Severity.UNKNOWN: 3>
    >>> trigger_priority_to_severity(3)
    <Severity.WARNING: 1>
    >>> trigger_priority_to_severity(5)
    <Severity.CRITICAL: 2>
    """
    if priority in (1, 2, 3):
        return Severity.WARNING
    if priority in (4, 5):
        return Severity.CRITICAL
    # 0 is "not classified"
    return Severity.UNKNOWN

#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""The normalized records the dashboard renders, independent of the monitoring core"""

from pydantic import BaseModel


class Event(BaseModel, frozen=True):
    state: int
    state_type: int
    acknowledged: bool
    host_display_name: str
    display_name: str
    check_command: str
    plugin_output: str
    last_check: int
    last_hard_state_change: int
    last_hard_state: int
    active_checks_enabled: int
    scheduled_downtime_depth: int
    current_attempt: int
    notifications_enabled: bool = True


class Downtime(BaseModel, frozen=True):
    author: str
    comment: str
    host_name: str
    is_service: bool = False
    service_display_name: str = "-"
    start_time: int
    end_time: int

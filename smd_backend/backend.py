#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import abc
from collections.abc import Sequence

from smd_backend.models import Downtime, Event


class Backend(abc.ABC):
    """What the dashboard needs from a monitoring core"""

    @abc.abstractmethod
    def get_hosts_problems(self) -> Sequence[Event]:
        ...

    @abc.abstractmethod
    def get_services_problems(self) -> Sequence[Event]:
        ...

    @abc.abstractmethod
    def get_scheduled_downtimes(self) -> Sequence[Downtime]:
        ...

    @abc.abstractmethod
    def get_scheduled_downtimes_grouped(self) -> Sequence[Downtime]:
        """Downtimes grouped by their maintenance definition"""

#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
Dashboard backend for Zabbix. Active trigger events are reported as host problems, the
currently open period of every maintenance as a scheduled downtime.
"""

import time
import types
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, NamedTuple

from smd_backend.backend import Backend
from smd_backend.config import BackendConfig
from smd_backend.exceptions import InvalidArgumentsError
from smd_backend.log import logger
from smd_backend.models import Downtime, Event
from smd_backend.states import trigger_priority_to_severity
from smd_backend.zabbix_api import (
    get_api,
    ZabbixAPI,
    ZabbixEvent,
    ZabbixHost,
    ZabbixTimePeriod,
    ZabbixTrigger,
)

AUTHOR = "Zabbix"

_EVENT_PARAMS: Mapping[str, Any] = {
    "output": ["acknowledged", "object", "objectid", "clock", "value", "value_changed"],
    "value": 1,
    "sortfield": "clock",
    "sortorder": "DESC",
}

_TRIGGER_OUTPUT = [
    "triggerid",
    "description",
    "priority",
    "status",
    "url",
    "state",
    "lastchange",
    "value",
]

_MAINTENANCE_PARAMS: Mapping[str, Any] = {
    "output": ["maintenanceid", "active_since", "active_till", "description"],
    "selectHosts": "extend",
    "selectTimeperiods": "extend",
}


class TimeWindow(NamedTuple):
    start: int
    end: int


class HostMaintenance(NamedTuple):
    host: str
    maintenance_id: int


def select_time_period(time_periods: Iterable[ZabbixTimePeriod], now: float) -> TimeWindow | None:
    """Return the open time period that ends first

    >>> select_time_period(
    ...     [
    ...         ZabbixTimePeriod(start_date=100, period=50),
    ...         ZabbixTimePeriod(start_date=180, period=100),
    ...     ],
    ...     now=200,
    ... )
    TimeWindow(start=180, end=280)
    >>> select_time_period([ZabbixTimePeriod(start_date=100, period=50)], now=200) is None
    True
    """
    windows = sorted(
        (
            window
            for window in (TimeWindow(p.start_date, p.start_date + p.period) for p in time_periods)
            if now <= window.end
        ),
        key=lambda w: w.end,
    )
    return windows[0] if windows else None


def check_host_maintenance(hosts: Sequence[ZabbixHost]) -> int:
    # triggers spanning several hosts are represented by their first host
    return 1 if hosts and hosts[0].maintenance_status == 1 else 0


class ZabbixBackend(Backend):
    def __init__(
        self,
        version: int | str,
        url: str,
        user: str,
        password: str,
        *,
        api_factory: Callable[..., ZabbixAPI] = get_api,
        verify_ssl: bool = True,
        timeout: float | None = None,
    ) -> None:
        if not (version and url and user and password):
            raise InvalidArgumentsError(
                "Invalid arguments: version, URL, user and password are required"
            )

        try:
            self._version = int(version)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentsError(f"Invalid API version: {version!r}") from e

        self._url = url
        self._hosts_maintenance: dict[str, HostMaintenance] = {}
        self._downtimes: Sequence[Downtime] | None = None

        self._api = api_factory(self._version, url, verify_ssl=verify_ssl, timeout=timeout)
        try:
            self._api.login(user, password)
        except Exception:
            self._api.close()
            raise

    @classmethod
    def from_config(
        cls, config: BackendConfig, api_factory: Callable[..., ZabbixAPI] = get_api
    ) -> "ZabbixBackend":
        return cls(
            config.version,
            config.url,
            config.user,
            config.password,
            api_factory=api_factory,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
        )

    def __enter__(self) -> "ZabbixBackend":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._api.close()

    @property
    def hosts_maintenance(self) -> Mapping[str, HostMaintenance]:
        return types.MappingProxyType(self._hosts_maintenance)

    def reset(self) -> None:
        """Forget the downtimes, the next access queries Zabbix again"""
        self._downtimes = None
        self._hosts_maintenance = {}

    def get_hosts_problems(self) -> Sequence[Event]:
        return self.get_problems()

    def get_services_problems(self) -> Sequence[Event]:
        # Zabbix has no services apart from the triggers of a host
        return []

    def get_problems(self) -> Sequence[Event]:
        # the maintenance lookup is needed for the downtime depth of the events
        self.get_scheduled_downtimes()

        raw_events = self._api.event_get(_EVENT_PARAMS)
        logger.debug("Fetched %d events from %r", len(raw_events), self._url)

        events = []
        for raw_event in raw_events:
            if (trigger := self._get_trigger(raw_event.objectid)) is None:
                logger.warning(
                    "Skipping event %r: trigger %r not found", raw_event.eventid, raw_event.objectid
                )
                continue
            events.append(self._make_event(raw_event, trigger))
        return events

    def _get_trigger(self, trigger_id: str) -> ZabbixTrigger | None:
        triggers = self._api.trigger_get(
            {
                "triggerids": trigger_id,
                "expandData": 1,
                "expandDescription": 1,
                "selectHosts": "extend",
                "output": _TRIGGER_OUTPUT,
            }
        )
        return triggers[0] if triggers else None

    @staticmethod
    def _make_event(raw_event: ZabbixEvent, trigger: ZabbixTrigger) -> Event:
        # a trigger in problem state is rated by its priority, otherwise the event value counts
        state: int = raw_event.value
        if trigger.value == 1:
            state = trigger_priority_to_severity(trigger.priority)
        return Event(
            state=state,
            state_type=trigger.state,
            acknowledged=raw_event.acknowledged,
            host_display_name=trigger.host_display_name,
            display_name=trigger.host_name,
            check_command=trigger.triggerid,
            plugin_output=trigger.description,
            last_check=trigger.lastchange,
            last_hard_state_change=trigger.lastchange,
            last_hard_state=raw_event.clock,
            active_checks_enabled=trigger.status,
            scheduled_downtime_depth=check_host_maintenance(trigger.hosts),
            current_attempt=trigger.value,
            notifications_enabled=True,
        )

    def get_scheduled_downtimes_grouped(self) -> Sequence[Downtime]:
        return self.get_scheduled_downtimes()

    def get_scheduled_downtimes(self) -> Sequence[Downtime]:
        if self._downtimes is not None:
            return self._downtimes

        now = time.time()
        self._hosts_maintenance = {}
        maintenances = self._api.maintenance_get(_MAINTENANCE_PARAMS)
        logger.debug("Fetched %d maintenances from %r", len(maintenances), self._url)

        downtimes = []
        for maintenance in maintenances:
            # hosts are flagged even if the maintenance itself is already over
            self.set_hosts_in_maintenance(maintenance.hosts)

            if now > maintenance.active_till:
                continue

            if (window := select_time_period(maintenance.timeperiods, now)) is None:
                logger.debug(
                    "Skipping maintenance %r: no open time period", maintenance.maintenanceid
                )
                continue

            downtimes.append(
                Downtime(
                    author=AUTHOR,
                    comment=maintenance.description,
                    host_name=self.get_hosts_for_maintenance(maintenance.maintenanceid),
                    is_service=False,
                    service_display_name="-",
                    start_time=window.start,
                    end_time=window.end,
                )
            )

        self._downtimes = downtimes
        return downtimes

    def set_hosts_in_maintenance(self, hosts: Iterable[ZabbixHost]) -> None:
        for host in hosts:
            if host.maintenance_status == 1:
                self._hosts_maintenance[host.hostid] = HostMaintenance(
                    host=host.host,
                    maintenance_id=host.maintenanceid,
                )

    def get_hosts_for_maintenance(self, maintenance_id: int) -> str:
        return ",".join(
            entry.host
            for entry in self._hosts_maintenance.values()
            if entry.maintenance_id == maintenance_id
        )

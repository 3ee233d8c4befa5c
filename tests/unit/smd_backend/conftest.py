#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import types
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import pytest

from smd_backend import zabbix
from smd_backend.zabbix import ZabbixBackend
from smd_backend.zabbix_api import ZabbixEvent, ZabbixMaintenance, ZabbixTrigger

NOW = 200_000


class FakeZabbixAPI:
    """In memory replacement of the JSON-RPC client, keyed like the real Zabbix data"""

    def __init__(self) -> None:
        self.events: list[ZabbixEvent] = []
        self.triggers: dict[str, ZabbixTrigger] = {}
        self.maintenances: list[ZabbixMaintenance] = []
        self.calls: list[tuple[str, Mapping[str, Any]]] = []
        self.login_error: Exception | None = None
        self.closed = False

    def login(self, user: str, password: str) -> None:
        self.calls.append(("user.login", {"user": user, "password": password}))
        if self.login_error is not None:
            raise self.login_error

    def event_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixEvent]:
        self.calls.append(("event.get", params))
        return list(self.events)

    def trigger_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixTrigger]:
        self.calls.append(("trigger.get", params))
        trigger = self.triggers.get(params["triggerids"])
        return [] if trigger is None else [trigger]

    def maintenance_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixMaintenance]:
        self.calls.append(("maintenance.get", params))
        return list(self.maintenances)

    def close(self) -> None:
        self.closed = True

    def methods_called(self) -> list[str]:
        return [method for method, _params in self.calls]


@pytest.fixture(name="fake_api")
def fixture_fake_api() -> FakeZabbixAPI:
    return FakeZabbixAPI()


@pytest.fixture(name="frozen_time")
def fixture_frozen_time(monkeypatch: pytest.MonkeyPatch) -> int:
    monkeypatch.setattr(zabbix, "time", types.SimpleNamespace(time=lambda: float(NOW)))
    return NOW


@pytest.fixture(name="backend")
def fixture_backend(fake_api: FakeZabbixAPI, frozen_time: int) -> Iterator[ZabbixBackend]:
    with ZabbixBackend(
        243,
        "http://zabbix/api_jsonrpc.php",
        "dashboard",
        "secret",
        api_factory=lambda *args, **kwargs: fake_api,
    ) as backend:
        yield backend

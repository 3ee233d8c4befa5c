#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
Client for the Zabbix JSON-RPC API, https://www.zabbix.com/documentation/current/en/manual/api.
Only the methods needed by the dashboard are implemented:
* user.login
* event.get
* trigger.get
* maintenance.get

The API changed in incompatible ways between Zabbix releases. The differences are kept in an
ApiDialect per supported version selector, all of them served by the same client class.
"""

from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple, Protocol, TypeVar

import pydantic
import requests

from smd_backend.exceptions import AuthenticationError, InvalidArgumentsError, ZabbixAPIError
from smd_backend.log import logger


class ZabbixEvent(pydantic.BaseModel, frozen=True):
    eventid: str = ""
    acknowledged: bool
    object: int = 0
    objectid: str
    clock: int
    value: int
    value_changed: int = 0


class ZabbixHost(pydantic.BaseModel, frozen=True):
    hostid: str
    host: str = ""
    name: str = ""
    maintenance_status: int = 0
    maintenanceid: int = 0


class ZabbixTrigger(pydantic.BaseModel, frozen=True):
    triggerid: str
    description: str = ""
    priority: int
    status: int = 0
    url: str = ""
    state: int = 0
    lastchange: int = 0
    value: int
    # Only delivered with "expandData"
    hostname: str | None = None
    host: str | None = None
    hosts: list[ZabbixHost] = []

    @property
    def host_display_name(self) -> str:
        if self.hostname is not None:
            return self.hostname
        return self.hosts[0].name if self.hosts else ""

    @property
    def host_name(self) -> str:
        if self.host is not None:
            return self.host
        return self.hosts[0].host if self.hosts else ""


class ZabbixTimePeriod(pydantic.BaseModel, frozen=True):
    timeperiodid: str = ""
    start_date: int
    period: int


class ZabbixMaintenance(pydantic.BaseModel, frozen=True):
    maintenanceid: int
    active_since: int = 0
    active_till: int
    description: str = ""
    hosts: list[ZabbixHost] = []
    timeperiods: list[ZabbixTimePeriod] = []


_ModelT = TypeVar("_ModelT", bound=pydantic.BaseModel)


def _parse_result(method: str, model: type[_ModelT], result: Any) -> Sequence[_ModelT]:
    try:
        return [model.model_validate(row) for row in result]
    except (pydantic.ValidationError, TypeError) as e:
        # -32700 is the JSON-RPC code for an unparsable message
        raise ZabbixAPIError(-32700, f"Invalid response to {method}.", str(e)) from e


class ZabbixAPI(Protocol):
    def login(self, user: str, password: str) -> None:
        ...

    def event_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixEvent]:
        ...

    def trigger_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixTrigger]:
        ...

    def maintenance_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixMaintenance]:
        ...

    def close(self) -> None:
        ...


class ApiDialect(NamedTuple):
    login_user_field: str
    expand_data: bool
    auth_header: bool


_LEGACY = ApiDialect(login_user_field="user", expand_data=True, auth_header=False)

DIALECTS: Mapping[int, ApiDialect] = {
    222: _LEGACY,
    223: _LEGACY,
    242: _LEGACY,
    243: _LEGACY,
    # "user" was renamed in 5.4, "expandData" is gone since 3.0
    540: ApiDialect(login_user_field="username", expand_data=False, auth_header=False),
    # the "auth" member is deprecated since 6.4
    640: ApiDialect(login_user_field="username", expand_data=False, auth_header=True),
}


class JsonRpcZabbixAPI:
    def __init__(
        self,
        url: str,
        dialect: ApiDialect,
        *,
        verify_ssl: bool = True,
        timeout: float | None = None,
    ) -> None:
        self._url = url
        self._dialect = dialect
        self._verify_ssl = verify_ssl
        self._timeout = timeout
        self._auth: str | None = None
        self._request_id = 0
        self._session = requests.Session()
        self._session.headers["Content-Type"] = "application/json-rpc"

    def __enter__(self) -> "JsonRpcZabbixAPI":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def do_request(self, method: str, params: Mapping[str, Any]) -> Any:
        self._request_id += 1
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }
        headers = {}
        if method != "user.login":
            if self._auth is None:
                raise AuthenticationError(f"Not logged in to {self._url!r} (calling {method})")
            if self._dialect.auth_header:
                headers["Authorization"] = f"Bearer {self._auth}"
            else:
                payload["auth"] = self._auth

        response = self._session.post(
            self._url,
            json=payload,
            headers=headers,
            verify=self._verify_ssl,
            timeout=self._timeout,
        )
        response.raise_for_status()
        response_json = response.json()

        if (error := response_json.get("error")) is not None:
            raise ZabbixAPIError(
                int(error.get("code", 0)),
                error.get("message", ""),
                error.get("data", ""),
            )
        return response_json["result"]

    def login(self, user: str, password: str) -> None:
        logger.info("Log in to Zabbix API %r as %r", self._url, user)
        try:
            self._auth = self.do_request(
                "user.login",
                {self._dialect.login_user_field: user, "password": password},
            )
        except ZabbixAPIError as e:
            raise AuthenticationError(f"Couldn't authenticate {user!r} @ {self._url!r}: {e}") from e

    def event_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixEvent]:
        return _parse_result("event.get", ZabbixEvent, self.do_request("event.get", params))

    def trigger_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixTrigger]:
        if not self._dialect.expand_data:
            params = {k: v for k, v in params.items() if k != "expandData"}
        return _parse_result("trigger.get", ZabbixTrigger, self.do_request("trigger.get", params))

    def maintenance_get(self, params: Mapping[str, Any]) -> Sequence[ZabbixMaintenance]:
        return _parse_result(
            "maintenance.get", ZabbixMaintenance, self.do_request("maintenance.get", params)
        )


def get_api(
    version: int,
    url: str,
    *,
    verify_ssl: bool = True,
    timeout: float | None = None,
) -> ZabbixAPI:
    try:
        dialect = DIALECTS[version]
    except KeyError:
        raise InvalidArgumentsError(
            "Unsupported Zabbix API version %r (supported: %s)"
            % (version, ", ".join(str(v) for v in sorted(DIALECTS)))
        ) from None
    return JsonRpcZabbixAPI(url, dialect, verify_ssl=verify_ssl, timeout=timeout)

#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

# pylint: disable=protected-access
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from pytest_mock import MockerFixture

from smd_backend.exceptions import AuthenticationError, InvalidArgumentsError, ZabbixAPIError
from smd_backend.zabbix_api import (
    DIALECTS,
    get_api,
    JsonRpcZabbixAPI,
    ZabbixMaintenance,
    ZabbixTrigger,
)

URL = "https://zabbix.example.com/api_jsonrpc.php"


def _response(mocker: MockerFixture, body: Any, status_code: int = 200) -> MagicMock:
    response = mocker.MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Server Error"
        )
    return response


def _mock_post(mocker: MockerFixture, *bodies: Any) -> MagicMock:
    return mocker.patch.object(
        requests.Session,
        "post",
        side_effect=[_response(mocker, body) for body in bodies],
    )


def _sent_payloads(post: MagicMock) -> list[dict[str, Any]]:
    return [call.kwargs["json"] for call in post.call_args_list]


def test_get_api_unknown_version() -> None:
    with pytest.raises(InvalidArgumentsError, match="Unsupported Zabbix API version 300"):
        get_api(300, URL)


@pytest.mark.parametrize("version", sorted(DIALECTS))
def test_get_api_known_versions(version: int) -> None:
    with get_api(version, URL) as api:  # type: ignore[attr-defined]
        assert isinstance(api, JsonRpcZabbixAPI)
        assert api._dialect is DIALECTS[version]


def test_login_legacy(mocker: MockerFixture) -> None:
    post = _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "0424bd59b807674191e7d77572075f33", "id": 1},
        {"jsonrpc": "2.0", "result": [], "id": 2},
    )
    api = get_api(243, URL, verify_ssl=False, timeout=10.0)

    api.login("dashboard", "secret")
    api.event_get({"value": 1})

    assert _sent_payloads(post) == [
        {
            "jsonrpc": "2.0",
            "method": "user.login",
            "params": {"user": "dashboard", "password": "secret"},
            "id": 1,
        },
        {
            "jsonrpc": "2.0",
            "method": "event.get",
            "params": {"value": 1},
            "id": 2,
            "auth": "0424bd59b807674191e7d77572075f33",
        },
    ]
    assert post.call_args.args == (URL,)
    assert post.call_args.kwargs["verify"] is False
    assert post.call_args.kwargs["timeout"] == 10.0
    assert post.call_args.kwargs["headers"] == {}


def test_login_auth_header(mocker: MockerFixture) -> None:
    post = _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "token", "id": 1},
        {"jsonrpc": "2.0", "result": [], "id": 2},
    )
    api = get_api(640, URL)

    api.login("dashboard", "secret")
    api.maintenance_get({"selectHosts": "extend"})

    login_payload, maintenance_payload = _sent_payloads(post)
    assert login_payload["params"] == {"username": "dashboard", "password": "secret"}
    assert "auth" not in maintenance_payload
    assert post.call_args.kwargs["headers"] == {"Authorization": "Bearer token"}


def test_login_failure(mocker: MockerFixture) -> None:
    _mock_post(
        mocker,
        {
            "jsonrpc": "2.0",
            "error": {
                "code": -32602,
                "message": "Invalid params.",
                "data": "Login name or password is incorrect.",
            },
            "id": 1,
        },
    )
    api = get_api(243, URL)

    with pytest.raises(AuthenticationError, match="Login name or password is incorrect"):
        api.login("dashboard", "wrong")


def test_request_before_login(mocker: MockerFixture) -> None:
    post = _mock_post(mocker)
    api = get_api(243, URL)

    with pytest.raises(AuthenticationError):
        api.event_get({})
    post.assert_not_called()


def test_api_error(mocker: MockerFixture) -> None:
    _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "token", "id": 1},
        {
            "jsonrpc": "2.0",
            "error": {"code": -32500, "message": "Application error.", "data": "No permissions."},
            "id": 2,
        },
    )
    api = get_api(243, URL)
    api.login("dashboard", "secret")

    with pytest.raises(ZabbixAPIError) as excinfo:
        api.trigger_get({"triggerids": "5"})

    assert excinfo.value.code == -32500
    assert excinfo.value.data == "No permissions."


def test_http_error_propagates(mocker: MockerFixture) -> None:
    mocker.patch.object(
        requests.Session, "post", return_value=_response(mocker, None, status_code=502)
    )
    api = get_api(243, URL)

    with pytest.raises(requests.exceptions.HTTPError):
        api.login("dashboard", "secret")


@pytest.mark.parametrize(
    "version, expand_data",
    [
        (222, True),
        (243, True),
        (540, False),
        (640, False),
    ],
)
def test_trigger_get_expand_data(mocker: MockerFixture, version: int, expand_data: bool) -> None:
    post = _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "token", "id": 1},
        {"jsonrpc": "2.0", "result": [], "id": 2},
    )
    api = get_api(version, URL)
    api.login("dashboard", "secret")

    api.trigger_get({"triggerids": "5", "expandData": 1, "expandDescription": 1})

    assert ("expandData" in _sent_payloads(post)[1]["params"]) is expand_data


def test_trigger_get_parses_result(mocker: MockerFixture) -> None:
    _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "token", "id": 1},
        {
            "jsonrpc": "2.0",
            "result": [
                {
                    "triggerid": "13491",
                    "description": "Zabbix agent on web01 is unreachable for 5 minutes",
                    "priority": "3",
                    "status": "0",
                    "url": "",
                    "state": "0",
                    "lastchange": "1476786000",
                    "value": "1",
                    "hostname": "Web server",
                    "host": "web01",
                    "hosts": [
                        {
                            "hostid": "10084",
                            "host": "web01",
                            "name": "Web server",
                            "maintenance_status": "1",
                            "maintenanceid": "3",
                            "status": "0",
                        }
                    ],
                }
            ],
            "id": 2,
        },
    )
    api = get_api(223, URL)
    api.login("dashboard", "secret")

    (trigger,) = api.trigger_get({"triggerids": "13491"})

    assert isinstance(trigger, ZabbixTrigger)
    assert trigger.priority == 3
    assert trigger.lastchange == 1476786000
    assert trigger.host_display_name == "Web server"
    assert trigger.hosts[0].maintenance_status == 1
    assert trigger.hosts[0].maintenanceid == 3


def test_maintenance_get_parses_result(mocker: MockerFixture) -> None:
    _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "token", "id": 1},
        {
            "jsonrpc": "2.0",
            "result": [
                {
                    "maintenanceid": "3",
                    "active_since": "1476741600",
                    "active_till": "1477000800",
                    "description": "Kernel update",
                    "hosts": [],
                    "timeperiods": [
                        {
                            "timeperiodid": "7",
                            "timeperiod_type": "0",
                            "start_date": "1476784800",
                            "period": "7200",
                        }
                    ],
                }
            ],
            "id": 2,
        },
    )
    api = get_api(242, URL)
    api.login("dashboard", "secret")

    (maintenance,) = api.maintenance_get({})

    assert isinstance(maintenance, ZabbixMaintenance)
    assert maintenance.maintenanceid == 3
    assert maintenance.timeperiods[0].start_date + maintenance.timeperiods[0].period == 1476792000


@pytest.mark.parametrize(
    "result",
    [
        [{"maintenanceid": "3", "active_till": "soon"}],
        [{"description": "no id"}],
        42,
    ],
)
def test_maintenance_get_invalid_result(mocker: MockerFixture, result: Any) -> None:
    _mock_post(
        mocker,
        {"jsonrpc": "2.0", "result": "token", "id": 1},
        {"jsonrpc": "2.0", "result": result, "id": 2},
    )
    api = get_api(243, URL)
    api.login("dashboard", "secret")

    with pytest.raises(ZabbixAPIError, match="Invalid response to maintenance.get"):
        api.maintenance_get({})


def test_close(mocker: MockerFixture) -> None:
    close = mocker.patch.object(requests.Session, "close")
    with get_api(243, URL):  # type: ignore[attr-defined]
        pass
    close.assert_called_once()

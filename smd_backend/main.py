#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
Query a Zabbix server the way the dashboard does and print the current problems and
scheduled downtimes as JSON.
"""

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

import requests
import urllib3

from smd_backend.config import BackendConfig, load_config
from smd_backend.exceptions import BackendError, InvalidArgumentsError
from smd_backend.log import configure_console_logger, configure_logger
from smd_backend.zabbix import ZabbixBackend

SECTIONS = ("problems", "downtimes")


def parse_arguments(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--debug", action="store_true", help="Raise Python exceptions instead of error messages"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Verbose mode (use -vv for debug)"
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="FILE",
        help="Read the connection settings from this file instead of the command line",
    )
    parser.add_argument(
        "--api-version",
        type=int,
        default=None,
        metavar="VERSION",
        help="Zabbix API version selector, e.g. 243 or 640",
    )
    parser.add_argument("-u", "--user", default=None, help="Username for the Zabbix login")
    parser.add_argument("-s", "--password", default=None, help="Password for the Zabbix login")
    parser.add_argument(
        "--no-cert-check", action="store_true", help="Disable certificate verification"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for the API requests (default: no timeout)",
    )
    parser.add_argument(
        "--sections",
        nargs="*",
        choices=SECTIONS,
        default=list(SECTIONS),
        metavar="SECTION",
        help="Sections to be produced: %s" % ", ".join(SECTIONS),
    )
    parser.add_argument(
        "url",
        metavar="URL",
        nargs="?",
        default=None,
        help="URL of the JSON-RPC API, e.g. https://zabbix/api_jsonrpc.php",
    )
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> BackendConfig:
    if args.config is not None:
        config = load_config(args.config)
    else:
        if not (args.api_version and args.url and args.user and args.password):
            raise InvalidArgumentsError(
                "Either --config or --api-version, --user, --password and URL are required"
            )
        config = BackendConfig(
            version=args.api_version,
            url=args.url,
            user=args.user,
            password=args.password,
        )

    if args.no_cert_check:
        config = config.model_copy(update={"verify_ssl": False})
    if args.timeout is not None:
        config = config.model_copy(update={"timeout": args.timeout})
    return config


def smd_zabbix_main(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    if not config.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    output = {}
    with ZabbixBackend.from_config(config) as backend:
        if "downtimes" in args.sections:
            output["downtimes"] = [d.model_dump() for d in backend.get_scheduled_downtimes()]
        if "problems" in args.sections:
            output["problems"] = [e.model_dump() for e in backend.get_problems()]

    sys.stdout.write(json.dumps(output, sort_keys=True) + "\n")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_arguments(argv)
    configure_console_logger(args.verbose)
    if args.log_file is not None:
        configure_logger(args.log_file)

    try:
        return smd_zabbix_main(args)
    except (BackendError, requests.exceptions.RequestException) as e:
        if args.debug:
            raise
        sys.stderr.write(f"Error: {e}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())

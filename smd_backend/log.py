#!/usr/bin/env python3
# Copyright (C) 2019 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
import pathlib

logger = logging.getLogger("smd-backend")

# Set default logging handler to avoid "No handler found" warnings.
logger.addHandler(logging.NullHandler())


def get_formatter(
    format_str: str = "%(asctime)s [%(levelno)s] [%(name)s %(process)d] %(message)s",
) -> logging.Formatter:
    return logging.Formatter(format_str)


def _update_logger_level() -> None:
    # each handler filters on its own, the logger lets through what any of them wants
    levels = [h.level for h in logger.handlers if not isinstance(h, logging.NullHandler)]
    logger.setLevel(min(levels) if levels else logging.WARNING)


def configure_logger(path: pathlib.Path, level: int = logging.INFO) -> None:
    handler = logging.FileHandler(path, encoding="UTF-8")
    handler.setFormatter(get_formatter())
    handler.setLevel(level)
    logger.addHandler(handler)
    _update_logger_level()


def verbosity_to_log_level(verbosity: int) -> int:
    """
    >>> verbosity_to_log_level(0) == logging.WARNING
    True
    >>> verbosity_to_log_level(1) == logging.INFO
    True
    >>> verbosity_to_log_level(5) == logging.DEBUG
    True
    """
    if verbosity == 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def clear_console_logging() -> None:
    for handler in list(logger.handlers):
        # FileHandler is a StreamHandler as well, but not a console one
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.FileHandler
        ):
            logger.removeHandler(handler)
    _update_logger_level()


def configure_console_logger(verbosity: int) -> None:
    clear_console_logging()
    handler = logging.StreamHandler()
    handler.setFormatter(get_formatter("%(levelname)s: %(message)s"))
    handler.setLevel(verbosity_to_log_level(verbosity))
    logger.addHandler(handler)
    _update_logger_level()

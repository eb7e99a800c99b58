# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Centralized logging configuration for the yield atlas scripts."""

import inspect
import logging
from pathlib import Path
import sys

CONSOLE_FORMAT = "[%(name)s] %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_script_logging(log_file=None, level=logging.INFO):
    """
    Configure logging for a Snakemake script.

    Args:
        log_file: Path to log file (from snakemake.log[0]), or None for console-only
        level: Logging level (default: INFO)

    Returns:
        Logger named after the calling module
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # Snakemake runs scripts as __main__, so name the logger after the caller
    frame = inspect.currentframe()
    if frame and frame.f_back:
        caller_module = frame.f_back.f_globals.get("__name__", __name__)
    else:
        caller_module = __name__

    return logging.getLogger(caller_module)

"""Logging setup for huerestore.

Everything worth keeping ends up in the running log file next to the database.
Verbose mode echoes the same lines to stdout, debug mode additionally shows the
intermediate structures dumped at DEBUG level.
"""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from pydantic import BaseModel

LOGGER_NAME = "huerestore"
LOG_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class UTCFormatter(logging.Formatter):
    converter = time.gmtime


def configure_logging(log_path: Path, verbose: bool = False, debug: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    formatter = UTCFormatter(LOG_FORMAT, DATE_FORMAT)

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if verbose or debug:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.DEBUG if debug else logging.INFO)
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


def dump(value: Any) -> str:
    """Render models, mappings and lists of models as indented JSON for debug output."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    elif isinstance(value, dict):
        value = {k: v.model_dump(mode="json") if isinstance(v, BaseModel) else v for k, v in value.items()}
    return json.dumps(value, indent=2, sort_keys=True, default=str)

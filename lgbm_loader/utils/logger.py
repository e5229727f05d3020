"""
Logging setup

The library logs through loguru's global logger. configure_logging installs
one sink (stderr, or a rotating file when a log directory is configured).
"""

import os
import sys
from typing import Optional

from loguru import logger

from ..config import LogConfig


def configure_logging(config: Optional[LogConfig] = None) -> None:
    config = config or LogConfig()

    logger.remove()

    if config.dir is None:
        logger.add(
            sink=sys.stderr,
            level=config.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
        )
        return

    os.makedirs(config.dir, exist_ok=True)

    logger.add(
        sink=os.path.join(config.dir, "lgbm_loader_{time:YYYY-MM-DD}.log"),
        rotation=config.rotation,
        retention=config.retention,
        level=config.level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
    )

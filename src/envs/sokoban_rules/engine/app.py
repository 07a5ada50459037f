# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Entry-point helpers for programs embedding the Sokoban rules engine.

Usage:
    from envs.sokoban_rules.engine.app import configure_logging, load_level

    configure_logging(log_file="logs/sokoban.log")
    level = load_level(open("level.txt").read())
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from ..events import Listener
from .current_level import CurrentLevel, SolutionCallback
from .level import parse_level

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(
    log_file: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
) -> None:
    """
    Set up process-wide logging to the console and, optionally, a file.

    Args:
        log_file: File to log to in addition to the console; its directory is
                  created if necessary
        level: Minimum level of records to emit (default: INFO)
    """
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file = Path(log_file)
        os.makedirs(log_file.parent, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def load_level(
    level_string: str,
    rank: int = 1,
    listeners: Optional[Iterable[Listener]] = None,
    on_finished: Optional[SolutionCallback] = None,
) -> CurrentLevel:
    """
    Parse a level and start playing it.

    Raises:
        LevelError: If the level description is invalid
    """
    try:
        level = parse_level(level_string, rank)
    except ValueError as e:
        logger.error(f"Failed to load level #{rank}: {e}")
        raise
    return CurrentLevel(level, listeners=listeners, on_finished=on_finished)

# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Notifications emitted by a level in progress.

Listeners are plain callables taking one event. They are invoked
synchronously, in the order the underlying changes happen.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .models import Direction, Obstacle, Position, Solution, UpdateResponse


@dataclass(frozen=True)
class Event:
    """Base class of all notifications."""

    @property
    def is_error(self) -> bool:
        return False


@dataclass(frozen=True, kw_only=True)
class WorkerMoved(Event):
    from_: Position
    to: Position
    direction: Direction


@dataclass(frozen=True, kw_only=True)
class CrateMoved(Event):
    id: int
    from_: Position
    to: Position


@dataclass(frozen=True, kw_only=True)
class LevelFinished(Event):
    """
    The last goal was filled.

    Attributes:
        solution: Moves, pushes and the committed move string
        response: Comparison against the stored best solution, if a
                  solution collaborator is attached
    """

    solution: Solution
    response: Optional[UpdateResponse] = None


@dataclass(frozen=True)
class ErrorEvent(Event):
    @property
    def is_error(self) -> bool:
        return True


@dataclass(frozen=True, kw_only=True)
class CannotMove(ErrorEvent):
    """
    A step was blocked.

    Attributes:
        with_crate: Whether the worker tried to push a crate
        obstacle: What blocked the movement
        position: Where the obstacle is
    """

    with_crate: bool
    obstacle: Obstacle
    position: Position


@dataclass(frozen=True)
class NothingToUndo(ErrorEvent):
    pass


@dataclass(frozen=True)
class NothingToRedo(ErrorEvent):
    pass


@dataclass(frozen=True)
class NoPathFound(ErrorEvent):
    pass


@dataclass(frozen=True)
class NoPathfindingWhilePushing(ErrorEvent):
    pass


@dataclass(frozen=True, kw_only=True)
class InvalidCrateTarget(ErrorEvent):
    """
    A crate cannot be moved between the given positions.

    Attributes:
        reason: "same position", "source is not a crate" or "target is not empty"
    """

    from_: Position
    to: Position
    reason: str


Listener = Callable[[Event], None]

# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""Exceptions raised by the Sokoban rules engine."""

from dataclasses import dataclass

from ..models import Obstacle, Position


class SokobanError(Exception):
    """Base class of all engine errors."""


class LevelError(SokobanError, ValueError):
    """A level description cannot be turned into a playable level."""

    def __init__(self, rank: int, message: str):
        super().__init__(message)
        self.rank = rank


class NoLevel(LevelError):
    def __init__(self, rank: int):
        super().__init__(rank, f"Level #{rank} is empty")


class NoWorker(LevelError):
    def __init__(self, rank: int):
        super().__init__(rank, f"No worker in level #{rank}")


class TwoWorkers(LevelError):
    def __init__(self, rank: int):
        super().__init__(rank, f"More than one worker in level #{rank}")


class CratesGoalsMismatch(LevelError):
    def __init__(self, rank: int, goals_minus_crates: int):
        super().__init__(rank, f"Level #{rank}: #crates - #goals = {goals_minus_crates}")
        self.goals_minus_crates = goals_minus_crates


class InvalidCharacter(LevelError):
    def __init__(self, rank: int, character: str, line: int, column: int):
        super().__init__(
            rank,
            f"Invalid character {character!r} in level #{rank}, line {line}, column {column}",
        )
        self.character = character
        self.line = line
        self.column = column


class InvalidLayout(LevelError):
    """Dimensions or positions of a level description do not fit together."""


class InvalidMoveString(SokobanError, ValueError):
    def __init__(self, character: str, index: int):
        super().__init__(f"Invalid move {character!r} at index {index}")
        self.character = character
        self.index = index


class InvariantViolation(SokobanError, AssertionError):
    """Internal bookkeeping is inconsistent. This is always a bug."""


@dataclass(frozen=True)
class FailedMove:
    """
    Why a move could not be performed.

    Attributes:
        obstacle_at: Position of the blocking cell
        obstacle: Whether a wall or a crate blocked the movement
        crate_blocked: True if a pushed crate was blocked, False if the worker was
    """

    obstacle_at: Position
    obstacle: Obstacle
    crate_blocked: bool


class MoveBlocked(SokobanError):
    """Raised by the move evaluator, turned into a `CannotMove` event by callers."""

    def __init__(self, failure: FailedMove):
        super().__init__(
            f"Move blocked by {failure.obstacle.value} at {failure.obstacle_at!r}"
        )
        self.failure = failure

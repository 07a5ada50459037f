# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""Sokoban rules engine - level state, undo/redo and pathfinding."""

from .engine.app import configure_logging, load_level
from .engine.current_level import CurrentLevel, parse_moves
from .engine.errors import (
    CratesGoalsMismatch,
    InvalidCharacter,
    InvalidLayout,
    InvalidMoveString,
    InvariantViolation,
    LevelError,
    NoLevel,
    NoWorker,
    SokobanError,
    TwoWorkers,
)
from .engine.level import Level, parse_level
from .engine.pathfinding import build_crate_graph, find_path, find_path_with_crate
from .events import (
    CannotMove,
    CrateMoved,
    Event,
    InvalidCrateTarget,
    LevelFinished,
    NoPathFound,
    NoPathfindingWhilePushing,
    NothingToRedo,
    NothingToUndo,
    WorkerMoved,
)
from .models import (
    DIRECTIONS,
    Background,
    Direction,
    LevelObservation,
    Move,
    Obstacle,
    Path,
    Position,
    Solution,
    UpdateResponse,
)

__all__ = [
    "Background",
    "CannotMove",
    "CrateMoved",
    "CratesGoalsMismatch",
    "CurrentLevel",
    "DIRECTIONS",
    "Direction",
    "Event",
    "InvalidCharacter",
    "InvalidCrateTarget",
    "InvalidLayout",
    "InvalidMoveString",
    "InvariantViolation",
    "Level",
    "LevelError",
    "LevelFinished",
    "LevelObservation",
    "Move",
    "NoLevel",
    "NoPathFound",
    "NoPathfindingWhilePushing",
    "NoWorker",
    "NothingToRedo",
    "NothingToUndo",
    "Obstacle",
    "Path",
    "Position",
    "Solution",
    "SokobanError",
    "TwoWorkers",
    "UpdateResponse",
    "WorkerMoved",
    "build_crate_graph",
    "configure_logging",
    "find_path",
    "find_path_with_crate",
    "load_level",
    "parse_level",
    "parse_moves",
]

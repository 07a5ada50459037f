# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Immutable level templates and the ASCII level reader.

A `Level` holds everything about a level that never changes while playing
it: dimensions, the background of every cell and the initial placement of
the worker and the crates. It is shared by reference between all
playthroughs; the mutable part lives in `CurrentLevel`.

Levels are usually read from the common ASCII notation:

    #  wall            .  goal
    @  worker          +  worker on goal
    $  crate           *  crate on goal
       (space) floor or outside

Whether a blank cell is floor or lies outside the walls is guessed row by
row while reading and then corrected with a flood fill.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

import numpy as np

from ..models import DIRECTIONS, Background, Position
from .errors import (
    CratesGoalsMismatch,
    InvalidCharacter,
    InvalidLayout,
    NoLevel,
    NoWorker,
    TwoWorkers,
)

logger = logging.getLogger(__name__)


class Foreground(Enum):
    """Dynamic part of a cell."""

    NONE = 0
    WORKER = 1
    CRATE = 2


_CHAR_TO_CELL: Dict[str, Tuple[Background, Foreground]] = {
    "#": (Background.WALL, Foreground.NONE),
    " ": (Background.EMPTY, Foreground.NONE),
    "$": (Background.FLOOR, Foreground.CRATE),
    "@": (Background.FLOOR, Foreground.WORKER),
    ".": (Background.GOAL, Foreground.NONE),
    "*": (Background.GOAL, Foreground.CRATE),
    "+": (Background.GOAL, Foreground.WORKER),
}

_CELL_TO_CHAR = {cell: c for c, cell in _CHAR_TO_CELL.items()}
_CELL_TO_CHAR[(Background.FLOOR, Foreground.NONE)] = " "


def cell_to_char(background: Background, foreground: Foreground) -> str:
    try:
        return _CELL_TO_CHAR[(background, foreground)]
    except KeyError:
        raise ValueError(f"Invalid combination: {foreground} on top of {background}") from None


@dataclass(frozen=True, eq=False)
class Level:
    """
    The static description of a level.

    Attributes:
        rank: Position of the level within its collection, starting at 1
        columns: Width of the level
        rows: Height of the level
        background: Read-only (rows, columns) array of `Background` values
        crates: Initial crate positions; the index of a crate is its id
        worker_position: Initial worker position
    """

    rank: int
    columns: int
    rows: int
    background: np.ndarray
    crates: Tuple[Position, ...]
    worker_position: Position

    def __post_init__(self):
        background = np.array(self.background, dtype=np.int8)
        if background.ndim == 1 and background.size == self.columns * self.rows:
            background = background.reshape(self.rows, self.columns)
        if background.shape != (self.rows, self.columns) or self.rows == 0 or self.columns == 0:
            raise InvalidLayout(
                self.rank,
                f"Level #{self.rank}: background of shape {background.shape} "
                f"does not match {self.columns} columns and {self.rows} rows",
            )
        background.setflags(write=False)
        object.__setattr__(self, "background", background)
        object.__setattr__(self, "crates", tuple(self.crates))
        self._validate()
        logger.debug(
            f"Level #{self.rank} created: {self.columns}x{self.rows}, {len(self.crates)} crates"
        )

    def _validate(self) -> None:
        if not self.is_interior(self.worker_position):
            raise InvalidLayout(
                self.rank,
                f"Level #{self.rank}: worker at {self.worker_position!r} is not on an interior cell",
            )
        if len(set(self.crates)) != len(self.crates):
            raise InvalidLayout(self.rank, f"Level #{self.rank}: two crates share a cell")
        for pos in self.crates:
            if not self.is_interior(pos):
                raise InvalidLayout(
                    self.rank, f"Level #{self.rank}: crate at {pos!r} is not on an interior cell"
                )
            if pos == self.worker_position:
                raise InvalidLayout(
                    self.rank, f"Level #{self.rank}: worker and crate share the cell {pos!r}"
                )
        goals_minus_crates = self.goal_count - len(self.crates)
        if goals_minus_crates != 0:
            raise CratesGoalsMismatch(self.rank, goals_minus_crates)

    @property
    def goal_count(self) -> int:
        return int(np.count_nonzero(self.background == Background.GOAL))

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.columns and 0 <= pos.y < self.rows

    def background_at(self, pos: Position) -> Background:
        """Background of the given cell. Cells out of bounds are EMPTY."""
        if not self.in_bounds(pos):
            return Background.EMPTY
        return Background(int(self.background[pos.y, pos.x]))

    def is_interior(self, pos: Position) -> bool:
        return self.background_at(pos) in (Background.FLOOR, Background.GOAL)

    def background_cells(self) -> List[Background]:
        """All backgrounds in row-major order."""
        return [Background(int(v)) for v in self.background.ravel()]

    def __str__(self) -> str:
        crates = set(self.crates)
        lines = []
        for y in range(self.rows):
            line = []
            for x in range(self.columns):
                pos = Position(x, y)
                if pos == self.worker_position:
                    fg = Foreground.WORKER
                elif pos in crates:
                    fg = Foreground.CRATE
                else:
                    fg = Foreground.NONE
                line.append(cell_to_char(self.background_at(pos), fg))
            lines.append("".join(line))
        return "\n".join(lines)


def _is_empty_or_comment(line: str) -> bool:
    return not line.strip() or line.strip().startswith(";")


class LevelBuilder:
    """
    Read the ASCII representation of a level.

    Example:
        >>> level = LevelBuilder(1, "#####\\n#@$.#\\n#####").build()
        >>> level.columns, level.rows
        (5, 3)
    """

    def __init__(self, rank: int, level_string: str):
        self.rank = rank
        lines = [line.rstrip("\r") for line in level_string.splitlines()]
        lines = [line for line in lines if not _is_empty_or_comment(line)]

        self.rows = len(lines)
        self.columns = max((len(line) for line in lines), default=0)
        if self.rows == 0 or self.columns == 0:
            raise NoLevel(rank)

        self.background = np.full((self.rows, self.columns), Background.EMPTY, dtype=np.int8)
        self.crates: List[Position] = []
        self.worker_position = None

        goals_minus_crates = 0
        for y, line in enumerate(lines):
            inside = False
            for x, c in enumerate(line):
                if c not in _CHAR_TO_CELL:
                    raise InvalidCharacter(rank, c, y, x)
                bg, fg = _CHAR_TO_CELL[c]

                # Count goals still to be filled, there has to be one per crate.
                if bg == Background.GOAL and fg != Foreground.CRATE:
                    goals_minus_crates += 1
                elif bg != Background.GOAL and fg == Foreground.CRATE:
                    goals_minus_crates -= 1
                if fg == Foreground.CRATE:
                    self.crates.append(Position(x, y))

                # Guess whether the cell is inside the walls.
                if not inside and bg == Background.WALL:
                    inside = True
                if (
                    inside
                    and bg == Background.EMPTY
                    and y > 0
                    and self.background[y - 1, x] != Background.EMPTY
                ):
                    bg = Background.FLOOR

                self.background[y, x] = bg

                if fg == Foreground.WORKER:
                    if self.worker_position is not None:
                        raise TwoWorkers(rank)
                    self.worker_position = Position(x, y)

        if self.worker_position is None:
            raise NoWorker(rank)
        if goals_minus_crates != 0:
            raise CratesGoalsMismatch(rank, goals_minus_crates)

    def build(self) -> Level:
        self._correct_outside_cells()
        return Level(
            rank=self.rank,
            columns=self.columns,
            rows=self.rows,
            background=self.background,
            crates=tuple(self.crates),
            worker_position=self.worker_position,
        )

    def _correct_outside_cells(self) -> None:
        """
        Fix the mistakes of the row-wise guess made while reading.

        Every floor cell that cannot be reached from the worker, a crate or a
        goal is outside the level.
        """
        background = self.background
        walls = background == Background.WALL
        visited = walls.copy()
        inside = np.zeros_like(visited)

        queue = deque()
        goal_ys, goal_xs = np.nonzero(background == Background.GOAL)
        goals = [Position(int(x), int(y)) for y, x in zip(goal_ys, goal_xs)]
        for pos in [self.worker_position, *self.crates, *goals]:
            if not visited[pos.y, pos.x]:
                visited[pos.y, pos.x] = True
                queue.append(pos)

        # Flood fill from all positions added above
        while queue:
            pos = queue.popleft()
            inside[pos.y, pos.x] = True
            for direction in DIRECTIONS:
                n = pos.neighbour(direction)
                if 0 <= n.x < self.columns and 0 <= n.y < self.rows and not visited[n.y, n.x]:
                    visited[n.y, n.x] = True
                    queue.append(n)

        outside = (background == Background.FLOOR) & ~inside
        if outside.any():
            logger.debug(f"Level #{self.rank}: {int(outside.sum())} floor cells are outside")
        background[outside] = Background.EMPTY


def parse_level(level_string: str, rank: int = 1) -> Level:
    """
    Parse the ASCII representation of a level.

    Args:
        level_string: The level, one line per row; blank lines and lines
                      starting with ';' are ignored
        rank: Position of the level within its collection, starting at 1

    Returns:
        The level template

    Raises:
        LevelError: If the description is empty, has no or several workers,
                    contains unknown characters, or the number of crates
                    differs from the number of goals
    """
    return LevelBuilder(rank, level_string).build()

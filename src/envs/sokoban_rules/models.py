# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Data models for the Sokoban rules engine.

Sokoban is a classic puzzle game where the worker pushes crates onto goal
cells. The worker can move in four directions and push crates (but not
pull them). This module holds the shared vocabulary: positions, directions,
moves, paths, solutions and the observation snapshot of a level.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional, Tuple


class Background(IntEnum):
    """
    Static part of a cell.

    EMPTY denotes space outside the walls, FLOOR and GOAL are interior cells.
    """

    EMPTY = 0
    WALL = 1
    FLOOR = 2
    GOAL = 3


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]

    def reverse(self) -> "Direction":
        return _REVERSED[self]


_DELTAS = {
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
}

_REVERSED = {
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}

# Neighbour iteration order. Pathfinding breaks ties in this order.
DIRECTIONS = (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN)


class Obstacle(Enum):
    """What blocked a movement?"""

    WALL = "wall"
    CRATE = "crate"


@dataclass(frozen=True, order=True)
class Position:
    """A position in a level given as (x, y) coordinates."""

    x: int
    y: int

    @classmethod
    def from_index(cls, index: int, columns: int) -> "Position":
        return cls(index % columns, index // columns)

    def to_index(self, columns: int) -> int:
        return self.x + self.y * columns

    def neighbour(self, direction: Direction) -> "Position":
        """Return the neighbouring position in the given direction."""
        dx, dy = direction.delta
        return Position(self.x + dx, self.y + dy)

    def __sub__(self, other: "Position") -> Tuple[int, int]:
        return (self.x - other.x, self.y - other.y)

    def __repr__(self) -> str:
        return f"({self.x},{self.y})"


class DirectionKind(Enum):
    SAME = 0
    NEIGHBOUR = 1
    OTHER = 2


@dataclass(frozen=True)
class DirectionResult:
    """
    Classification of the displacement between two positions.

    Attributes:
        kind: SAME for equal positions, NEIGHBOUR when both positions share a
              row or a column, OTHER otherwise
        direction: The axis direction for NEIGHBOUR results, None otherwise
    """

    kind: DirectionKind
    direction: Optional[Direction] = None


def direction_between(from_: Position, to: Position) -> DirectionResult:
    """
    Find the direction leading from `from_` to `to`.

    The positions do not have to be adjacent; any two positions in the same
    row or column are classified as NEIGHBOUR.
    """
    dx, dy = to - from_
    if dx == 0 and dy == 0:
        return DirectionResult(DirectionKind.SAME)
    if dx == 0:
        return DirectionResult(DirectionKind.NEIGHBOUR, Direction.UP if dy < 0 else Direction.DOWN)
    if dy == 0:
        return DirectionResult(DirectionKind.NEIGHBOUR, Direction.LEFT if dx < 0 else Direction.RIGHT)
    return DirectionResult(DirectionKind.OTHER)


_MOVE_CHARS = {
    Direction.LEFT: "l",
    Direction.RIGHT: "r",
    Direction.UP: "u",
    Direction.DOWN: "d",
}

_CHAR_DIRECTIONS = {c: d for d, c in _MOVE_CHARS.items()}


@dataclass(frozen=True)
class Move:
    """
    Everything needed to do or undo a single step.

    Attributes:
        direction: Where the worker went
        moves_crate: Whether a crate was pushed
    """

    direction: Direction
    moves_crate: bool = False

    def to_char(self) -> str:
        """
        Describe the move using one character signifying its direction.

        The character is upper case if and only if a crate was pushed.
        """
        c = _MOVE_CHARS[self.direction]
        return c.upper() if self.moves_crate else c

    @classmethod
    def from_char(cls, c: str) -> Optional["Move"]:
        direction = _CHAR_DIRECTIONS.get(c.lower())
        if direction is None:
            return None
        return cls(direction, c.isupper())

    def __str__(self) -> str:
        return self.to_char()


def moves_to_string(moves: List[Move]) -> str:
    return "".join(m.to_char() for m in moves)


@dataclass
class Path:
    """A starting position plus the moves leading away from it."""

    start: Position
    steps: List[Move] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)

    def end(self) -> Position:
        pos = self.start
        for step in self.steps:
            pos = pos.neighbour(step.direction)
        return pos


@dataclass(frozen=True)
class Solution:
    """
    One particular solution of a level.

    Attributes:
        number_of_moves: Worker movements, pushes included
        number_of_pushes: Crate movements
        steps: The moves as a string, see `Move.to_char`
    """

    number_of_moves: int
    number_of_pushes: int
    steps: str

    def min_moves(self, other: "Solution") -> "Solution":
        """Return whichever solution needs fewer moves, pushes breaking ties."""
        if self.number_of_moves < other.number_of_moves:
            return self
        if self.number_of_moves == other.number_of_moves and self.number_of_pushes <= other.number_of_pushes:
            return self
        return other

    def min_pushes(self, other: "Solution") -> "Solution":
        """Return whichever solution needs fewer pushes, moves breaking ties."""
        if self.number_of_pushes < other.number_of_pushes:
            return self
        if self.number_of_pushes == other.number_of_pushes and self.number_of_moves <= other.number_of_moves:
            return self
        return other

    def less_moves(self, other: "Solution") -> bool:
        return self.number_of_moves < other.number_of_moves

    def less_pushes(self, other: "Solution") -> bool:
        return self.number_of_pushes < other.number_of_pushes


@dataclass(frozen=True, kw_only=True)
class UpdateResponse:
    """
    Outcome of comparing a fresh solution against the best one stored so far.

    Attributes:
        first_time_solved: No solution had been stored before
        moves: The new solution is the best by moves
        pushes: The new solution is the best by pushes
    """

    first_time_solved: bool = False
    moves: bool = False
    pushes: bool = False


@dataclass(kw_only=True)
class LevelObservation:
    """
    Snapshot of a level in progress.

    Attributes:
        rank: Rank of the level within its collection (1-based)
        columns: Width of the level
        rows: Height of the level
        background: Row-major background values, see `Background`
        worker_position: (x, y) position of the worker
        worker_direction: Direction of the most recent move
        crate_positions: (x, y) position of every crate, indexed by crate id
        moves_count: Number of moves made so far
        pushes_count: Number of pushes made so far
        is_finished: Whether every goal holds a crate
    """

    rank: int
    columns: int
    rows: int
    background: List[int]
    worker_position: List[int]
    worker_direction: str
    crate_positions: List[List[int]]
    moves_count: int = 0
    pushes_count: int = 0
    is_finished: bool = False

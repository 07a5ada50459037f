# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Pathfinding for the worker and for single crates.

`find_path` finds a shortest walk of the worker that does not touch any
crate. `find_path_with_crate` finds a way to push one crate to a target by
building the graph of cells the crate can be pushed through. Neither changes
the level; the paths they return are replayed by `CurrentLevel`.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np

from ..events import InvalidCrateTarget, NoPathFound
from ..models import Background, DirectionKind, Move, Path, Position, direction_between
from .errors import InvariantViolation

if TYPE_CHECKING:
    from .current_level import CurrentLevel

logger = logging.getLogger(__name__)

UNREACHABLE = np.iinfo(np.int32).max


def find_path(level: "CurrentLevel", to: Position) -> Optional[Path]:
    """
    Find a shortest path for the worker to `to` without moving any crates.

    The search runs backwards from `to`, recording the distance of every cell
    it reaches. The path is then read off forwards from the worker, always
    stepping to the first neighbour (in LEFT, RIGHT, UP, DOWN order) that is
    closer to the target.

    Args:
        level: The level in its current state
        to: Where the worker should go

    Returns:
        The path, with no steps if the worker is already at `to` or `to` is
        not an empty cell; None if `to` cannot be reached, in which case
        `NoPathFound` is emitted
    """
    worker = level.worker_position
    if worker == to or not level.is_empty(to):
        return Path(worker)

    distances = np.full((level.rows, level.columns), UNREACHABLE, dtype=np.int32)
    distances[to.y, to.x] = 0

    path_exists = False
    queue = deque([to])
    while queue:
        pos = queue.popleft()
        if pos == worker:
            path_exists = True
            break

        new_distance = distances[pos.y, pos.x] + 1
        for neighbour in level.empty_neighbours(pos):
            if distances[neighbour.y, neighbour.x] > new_distance:
                distances[neighbour.y, neighbour.x] = new_distance
                queue.append(neighbour)

    if not path_exists:
        logger.warning(f"No path from {worker!r} to {to!r}")
        level.notify(NoPathFound())
        return None

    path = Path(worker)
    pos = worker
    while pos != to:
        for neighbour in level.empty_neighbours(pos):
            if distances[neighbour.y, neighbour.x] < distances[pos.y, pos.x]:
                path.steps.append(Move(direction_between(pos, neighbour).direction))
                pos = neighbour
                break
        else:
            raise InvariantViolation(f"Path from {worker!r} to {to!r} broke off at {pos!r}")

    logger.debug(f"Found path of length {len(path)} from {worker!r} to {to!r}")
    return path


@dataclass
class CrateGraph:
    """
    Directed graph of the cells a crate can be pushed through.

    An edge `pos -> neighbour` means that a crate at `pos` can be pushed to
    `neighbour`, i.e. the cell on the far side of `pos` is free for the worker.
    """

    neighbours: Dict[Position, List[Position]] = field(default_factory=dict)

    def __contains__(self, pos: Position) -> bool:
        return pos in self.neighbours

    def __len__(self) -> int:
        return len(self.neighbours)

    def predecessors_from(self, start: Position) -> Dict[Position, Position]:
        """Breadth-first search from `start`, giving one predecessor per reachable node."""
        predecessors: Dict[Position, Position] = {}
        visited = {start}
        queue = deque([start])
        while queue:
            pos = queue.popleft()
            for neighbour in self.neighbours.get(pos, []):
                if neighbour not in visited:
                    visited.add(neighbour)
                    predecessors[neighbour] = pos
                    queue.append(neighbour)
        return predecessors

    def find_crate_path(self, from_: Position, to: Position) -> Optional[Path]:
        """Find the pushes moving a crate from `from_` to `to`, if possible."""
        if to not in self.neighbours:
            return None

        predecessors = self.predecessors_from(from_)
        positions = [to]
        while positions[-1] != from_:
            pos = positions[-1]
            if pos not in predecessors:
                raise InvariantViolation(f"{pos!r} is in the crate graph but unreachable")
            positions.append(predecessors[pos])
        positions.reverse()

        steps = []
        for a, b in zip(positions, positions[1:]):
            result = direction_between(a, b)
            dx, dy = b - a
            if result.kind is not DirectionKind.NEIGHBOUR or abs(dx) + abs(dy) != 1:
                raise InvariantViolation(f"Crate path step from {a!r} to {b!r} is not a single push")
            steps.append(Move(result.direction, True))

        return Path(from_, steps)

    def render(self, level: "CurrentLevel") -> str:
        """ASCII picture of the graph: '.' for nodes, '#' for walls."""
        lines = []
        for y in range(level.rows):
            line = []
            for x in range(level.columns):
                pos = Position(x, y)
                if pos in self.neighbours:
                    line.append(".")
                elif level.background(pos) == Background.WALL:
                    line.append("#")
                else:
                    line.append(" ")
            lines.append("".join(line))
        return "\n".join(lines)


def build_crate_graph(level: "CurrentLevel", start: Position) -> CrateGraph:
    """Create the graph of cells the crate at `start` can be pushed to."""
    graph = CrateGraph()
    queue = deque([start])

    while queue:
        pos = queue.popleft()
        if pos in graph:
            continue
        graph.neighbours[pos] = []

        for neighbour in level.empty_neighbours(pos):
            result = direction_between(neighbour, pos)
            if result.kind is not DirectionKind.NEIGHBOUR:
                raise InvariantViolation(f"{neighbour!r} is not a neighbour of {pos!r}")
            # The worker has to stand on the far side of `pos` to push towards `neighbour`.
            opposite = pos.neighbour(result.direction)
            if not level.is_empty(opposite) and opposite != start:
                continue

            queue.append(neighbour)
            graph.neighbours[pos].append(neighbour)

    return graph


def _invalid_crate_target(level: "CurrentLevel", from_: Position, to: Position) -> Optional[str]:
    if from_ == to:
        return "same position"
    if not level.is_crate_at(from_):
        return "source is not a crate"
    if not level.is_empty(to):
        return "target is not empty"
    return None


def find_path_with_crate(level: "CurrentLevel", from_: Position, to: Position) -> Optional[Path]:
    """
    Try to find a way to push the crate at `from_` to `to`.

    Returns:
        The pushes, each a `Move` with `moves_crate` set; None if the request
        is invalid (`InvalidCrateTarget` is emitted) or no such way exists
        (`NoPathFound` is emitted)
    """
    reason = _invalid_crate_target(level, from_, to)
    if reason is not None:
        logger.warning(f"Cannot move crate from {from_!r} to {to!r}: {reason}")
        level.notify(InvalidCrateTarget(from_=from_, to=to, reason=reason))
        return None

    graph = build_crate_graph(level, from_)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Cells the crate at {from_!r} can reach:\n{graph.render(level)}")

    path = graph.find_crate_path(from_, to)
    if path is None:
        logger.warning(f"Cannot move crate from {from_!r} to {to!r}: no path")
        level.notify(NoPathFound())
    return path

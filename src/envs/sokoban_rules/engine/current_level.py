# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
The level currently being played.

`CurrentLevel` owns the mutable state of one playthrough of a `Level`: where
the worker and the crates are, how many goals are still empty and the move
history. Every change, whether caused by a single step, undo/redo or a
pathfinding replay, goes through the same primitive move so that the goal
counter, the crate index and the history always agree.
"""

import copy
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..events import (
    CannotMove,
    CrateMoved,
    Event,
    LevelFinished,
    Listener,
    NoPathFound,
    NoPathfindingWhilePushing,
    NothingToRedo,
    NothingToUndo,
    WorkerMoved,
)
from ..models import (
    DIRECTIONS,
    Background,
    Direction,
    DirectionKind,
    LevelObservation,
    Move,
    Obstacle,
    Path,
    Position,
    Solution,
    UpdateResponse,
    direction_between,
)
from .errors import FailedMove, InvalidMoveString, InvariantViolation, MoveBlocked
from .level import Foreground, Level, cell_to_char
from .move_log import MoveLog
from .pathfinding import find_path, find_path_with_crate

logger = logging.getLogger(__name__)

SolutionCallback = Callable[[Solution], UpdateResponse]


def parse_moves(moves: str) -> List[Move]:
    """
    Parse a string of moves as produced by `CurrentLevel.moves_to_string`.

    Raises:
        InvalidMoveString: If a character does not describe a move
    """
    result = []
    for i, c in enumerate(moves):
        move = Move.from_char(c)
        if move is None:
            raise InvalidMoveString(c, i)
        result.append(move)
    return result


class CurrentLevel:
    """
    Rules engine for one playthrough of a level.

    The level is finished once every goal holds a crate. Failed operations
    never change the state; they return a negative result and notify the
    listeners instead.

    Example:
        >>> level = CurrentLevel(parse_level("#####\\n#@$.#\\n#####"))
        >>> level.step(Direction.RIGHT)
        True
        >>> level.is_finished()
        True
        >>> level.undo()
        True
        >>> level.moves_to_string(), level.all_moves_to_string()
        ('', 'R')
    """

    def __init__(
        self,
        level: Level,
        listeners: Optional[Iterable[Listener]] = None,
        on_finished: Optional[SolutionCallback] = None,
    ):
        """
        Start playing a level.

        Args:
            level: The level template, shared and never modified
            listeners: Callables notified of every event (default: none)
            on_finished: Compares a fresh solution against the stored best one;
                         its response is attached to `LevelFinished` events
        """
        self.level = level
        self._listeners: List[Listener] = list(listeners or [])
        self._on_finished = on_finished
        self._planning = False
        self._log = MoveLog()
        self._init_dynamic()

        logger.info(
            f"Level #{level.rank} loaded: {level.columns}x{level.rows}, "
            f"{len(self._crates)} crates, {self._empty_goals} goals to fill"
        )

    def _init_dynamic(self) -> None:
        # Crate ids are indices into `_crates`; `_crate_ids` maps back.
        self._crates: List[Position] = list(self.level.crates)
        self._crate_ids: Dict[Position, int] = {pos: i for i, pos in enumerate(self._crates)}
        self._worker_position = self.level.worker_position
        self._empty_goals = sum(
            1 for pos in self._crates if self.level.background_at(pos) != Background.GOAL
        )

    def reset(self) -> None:
        """Go back to the initial state of the level and forget all moves."""
        self._init_dynamic()
        self._log.clear()
        logger.info(f"Level #{self.level.rank} reset")

    # Queries. None of these change the level.

    @property
    def rank(self) -> int:
        return self.level.rank

    @property
    def columns(self) -> int:
        return self.level.columns

    @property
    def rows(self) -> int:
        return self.level.rows

    @property
    def worker_position(self) -> Position:
        return self._worker_position

    @property
    def empty_goals(self) -> int:
        """The number of goals that still have to be filled."""
        return self._empty_goals

    def in_bounds(self, pos: Position) -> bool:
        return self.level.in_bounds(pos)

    def background(self, pos: Position) -> Background:
        return self.level.background_at(pos)

    def background_cells(self) -> List[Background]:
        return self.level.background_cells()

    def is_wall(self, pos: Position) -> bool:
        return self.background(pos) == Background.WALL

    def is_crate_at(self, pos: Position) -> bool:
        return pos in self._crate_ids

    def crate_id_at(self, pos: Position) -> Optional[int]:
        return self._crate_ids.get(pos)

    def is_worker_at(self, pos: Position) -> bool:
        return pos == self._worker_position

    def is_interior(self, pos: Position) -> bool:
        """The cell is in bounds and is either floor or a goal."""
        return self.level.is_interior(pos)

    def is_outside(self, pos: Position) -> bool:
        return self.background(pos) == Background.EMPTY

    def is_empty(self, pos: Position) -> bool:
        """Could a crate be moved into the cell at `pos`?"""
        return self.is_interior(pos) and not self.is_crate_at(pos)

    def empty_neighbours(self, pos: Position) -> List[Position]:
        """Neighbours of `pos` without wall or crate, in pathfinding order."""
        neighbours = (pos.neighbour(d) for d in DIRECTIONS)
        return [n for n in neighbours if self.is_empty(n) or self.is_worker_at(n)]

    def is_finished(self) -> bool:
        """Every goal has a crate on it, and every crate is on a goal."""
        return self._empty_goals == 0

    def number_of_moves(self) -> int:
        return self._log.number_of_moves

    def number_of_pushes(self) -> int:
        return self._log.count_matches(lambda move: move.moves_crate)

    def worker_direction(self) -> Direction:
        """Direction of the most recent move, LEFT before the first one."""
        last = self._log.last()
        return Direction.LEFT if last is None else last.direction

    def crate_positions(self) -> List[Position]:
        """Positions of all crates; the index of a position is the crate's id."""
        return list(self._crates)

    def moves_to_string(self) -> str:
        """The moves leading to the current state."""
        return self._log.to_string()

    def all_moves_to_string(self) -> str:
        """All logged moves, including those that have been undone."""
        return self._log.all_to_string()

    def solution(self) -> Optional[Solution]:
        if not self.is_finished():
            return None
        return Solution(
            number_of_moves=self.number_of_moves(),
            number_of_pushes=self.number_of_pushes(),
            steps=self.moves_to_string(),
        )

    def observe(self) -> LevelObservation:
        """Create an observation from the current state."""
        return LevelObservation(
            rank=self.rank,
            columns=self.columns,
            rows=self.rows,
            background=[int(v) for v in self.level.background.ravel()],
            worker_position=[self._worker_position.x, self._worker_position.y],
            worker_direction=self.worker_direction().value,
            crate_positions=[[pos.x, pos.y] for pos in self._crates],
            moves_count=self.number_of_moves(),
            pushes_count=self.number_of_pushes(),
            is_finished=self.is_finished(),
        )

    def __str__(self) -> str:
        lines = []
        for y in range(self.rows):
            line = []
            for x in range(self.columns):
                pos = Position(x, y)
                if self.is_worker_at(pos):
                    fg = Foreground.WORKER
                elif self.is_crate_at(pos):
                    fg = Foreground.CRATE
                else:
                    fg = Foreground.NONE
                line.append(cell_to_char(self.background(pos), fg))
            lines.append("".join(line))
        return "\n".join(lines)

    # Listeners

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def notify(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)

    # Primitive changes. Callers are responsible for checking the rules.

    def _move_worker_to(self, to: Position, direction: Direction) -> WorkerMoved:
        from_ = self._worker_position
        self._worker_position = to
        return WorkerMoved(from_=from_, to=to, direction=direction)

    def _move_crate(self, from_: Position, to: Position) -> CrateMoved:
        """Relocate a crate and keep the goal counter up to date."""
        crate_id = self._crate_ids.pop(from_, None)
        if crate_id is None:
            raise InvariantViolation(f"Moving crate from {from_!r} to {to!r}, but there is none")
        self._crate_ids[to] = crate_id
        self._crates[crate_id] = to

        if self.background(from_) == Background.GOAL:
            self._empty_goals += 1
        if self.background(to) == Background.GOAL:
            self._empty_goals -= 1

        return CrateMoved(id=crate_id, from_=from_, to=to)

    def _evaluate_move(self, move: Move) -> Tuple[Position, Optional[Position]]:
        """
        Figure out whether `move` can be performed in the current state.

        Returns:
            The new worker position and, for pushes, the new crate position

        Raises:
            MoveBlocked: If a wall or a crate is in the way
        """
        direction = move.direction
        next_position = self._worker_position.neighbour(direction)
        is_crate = self.is_crate_at(next_position)

        if is_crate and move.moves_crate:
            crate_target = next_position.neighbour(direction)
            if self.is_empty(crate_target):
                return next_position, crate_target
            obstacle = Obstacle.CRATE if self.is_crate_at(crate_target) else Obstacle.WALL
            raise MoveBlocked(FailedMove(crate_target, obstacle, crate_blocked=True))

        if self.is_empty(next_position):
            return next_position, None

        obstacle = Obstacle.CRATE if is_crate else Obstacle.WALL
        raise MoveBlocked(FailedMove(next_position, obstacle, crate_blocked=False))

    def _perform_move(self, move: Move, record: bool = True) -> List[Event]:
        """Apply `move` and return the resulting events, without notifying anybody."""
        worker_target, crate_target = self._evaluate_move(move)

        crate_event = None
        if crate_target is not None:
            crate_event = self._move_crate(worker_target, crate_target)
        events: List[Event] = [self._move_worker_to(worker_target, move.direction)]
        if crate_event is not None:
            events.append(crate_event)

        if record:
            self._log.record(move)
        logger.debug(f"Move {move.to_char()}: worker at {worker_target!r}")

        if crate_event is not None and self.is_finished() and not self._planning:
            events.append(self._level_finished())
        return events

    def _level_finished(self) -> LevelFinished:
        solution = self.solution()
        logger.info(
            f"Level #{self.rank} solved with {solution.number_of_moves} moves "
            f"and {solution.number_of_pushes} pushes"
        )
        response = self._on_finished(solution) if self._on_finished is not None else None
        return LevelFinished(solution=solution, response=response)

    def _try_step(self, direction: Direction, allow_push: bool) -> Optional[FailedMove]:
        """Take one step and notify the listeners. Return why it failed, if it did."""
        next_position = self._worker_position.neighbour(direction)
        move = Move(direction, allow_push and self.is_crate_at(next_position))
        try:
            events = self._perform_move(move)
        except MoveBlocked as e:
            return e.failure
        for event in events:
            self.notify(event)
        return None

    def _report_failure(self, failure: FailedMove) -> None:
        logger.debug(
            f"Cannot move: {failure.obstacle.value} at {failure.obstacle_at!r}"
        )
        self.notify(
            CannotMove(
                with_crate=failure.crate_blocked,
                obstacle=failure.obstacle,
                position=failure.obstacle_at,
            )
        )

    # Public movement operations

    def step(self, direction: Direction, allow_push: bool = True) -> bool:
        """
        Take one step in the given direction, pushing a crate if allowed.

        Args:
            direction: Where to go
            allow_push: Whether a crate in the way may be pushed

        Returns:
            True if the worker moved, False if something was in the way
        """
        failure = self._try_step(direction, allow_push)
        if failure is not None:
            self._report_failure(failure)
            return False
        return True

    def undo(self) -> bool:
        """Undo the most recent move."""
        move = self._log.undo()
        if move is None:
            self.notify(NothingToUndo())
            return False

        back = move.direction.reverse()
        crate_position = self._worker_position.neighbour(move.direction)
        events: List[Event] = [
            self._move_worker_to(self._worker_position.neighbour(back), move.direction)
        ]
        if move.moves_crate:
            events.append(self._move_crate(crate_position, crate_position.neighbour(back)))
        logger.debug(f"Undo {move.to_char()}: worker at {self._worker_position!r}")

        for event in events:
            self.notify(event)
        return True

    def redo(self) -> bool:
        """If a move has been undone previously, perform it again."""
        move = self._log.redo()
        if move is None:
            self.notify(NothingToRedo())
            return False

        try:
            events = self._perform_move(move, record=False)
        except MoveBlocked as e:
            raise InvariantViolation(f"Redoing {move.to_char()} failed: {e}") from e

        for event in events:
            self.notify(event)
        return True

    def move_as_far_as_possible(self, direction: Direction, allow_push: bool = False) -> int:
        """
        Move in the given direction until the first obstacle.

        When pushing, stop as soon as the level is finished.

        Returns:
            The number of steps taken
        """
        steps = 0
        while True:
            failure = self._try_step(direction, allow_push)
            if failure is not None:
                if steps == 0:
                    self._report_failure(failure)
                break
            steps += 1
            if allow_push and self.is_finished():
                break
        return steps

    def move_to(self, to: Position, allow_push: bool = False) -> bool:
        """
        Move the worker towards `to`.

        Without pushing, a target that is not adjacent is reached by
        pathfinding. Otherwise `to` must be in the same row or column as the
        worker, who walks straight towards it until arriving, hitting an
        obstacle or, when pushing, finishing the level.

        Returns:
            False if no path exists or the target is not in line with the
            worker while pushing
        """
        worker = self._worker_position
        if not allow_push:
            dx, dy = to - worker
            if abs(dx) + abs(dy) > 1:
                path = find_path(self, to)
                if path is None:
                    return False
                self.follow_path(path)
                return True

        result = direction_between(worker, to)
        if result.kind is DirectionKind.SAME:
            return True
        if result.kind is DirectionKind.OTHER:
            logger.warning(f"Cannot push towards {to!r}: not in line with the worker at {worker!r}")
            self.notify(NoPathfindingWhilePushing())
            return False

        steps = 0
        while True:
            failure = self._try_step(result.direction, allow_push)
            if failure is not None:
                if steps == 0:
                    self._report_failure(failure)
                    return False
                break
            steps += 1
            if self._worker_position == to or (allow_push and self.is_finished()):
                break
        return True

    def follow_path(self, path: Path) -> None:
        """Replay a path found for the current state."""
        if path.start != self._worker_position:
            raise InvariantViolation(
                f"Path starts at {path.start!r}, but the worker is at {self._worker_position!r}"
            )
        for move in path.steps:
            failure = self._try_step(move.direction, move.moves_crate)
            if failure is not None:
                raise InvariantViolation(
                    f"Path step {move.to_char()} blocked by {failure.obstacle.value} "
                    f"at {failure.obstacle_at!r}"
                )

    def move_crate_to_target(self, from_: Position, to: Position) -> bool:
        """
        Push the crate at `from_` to `to`, walking around as needed.

        The whole sequence of moves is planned before anything is changed; if
        the worker cannot get behind the crate for some push, nothing happens.

        Returns:
            True if the crate arrived at `to`
        """
        crate_path = find_path_with_crate(self, from_, to)
        if crate_path is None:
            return False

        moves = self._plan_crate_pushes(crate_path)
        if moves is None:
            logger.warning(
                f"Cannot move crate from {from_!r} to {to!r}: the worker cannot get into position"
            )
            self.notify(NoPathFound())
            return False

        self.follow_path(Path(self._worker_position, moves))
        return True

    def _scratch_copy(self) -> "CurrentLevel":
        """An independent copy of the dynamic state that neither notifies nor reports solving."""
        scratch = copy.copy(self)
        scratch._crates = list(self._crates)
        scratch._crate_ids = dict(self._crate_ids)
        scratch._log = MoveLog()
        scratch._listeners = []
        scratch._on_finished = None
        scratch._planning = True
        return scratch

    def _plan_crate_pushes(self, crate_path: Path) -> Optional[List[Move]]:
        """Expand a crate path into worker moves, including the walks between pushes."""
        scratch = self._scratch_copy()
        moves: List[Move] = []
        crate_position = crate_path.start

        for push in crate_path.steps:
            if not scratch.is_crate_at(crate_position):
                raise InvariantViolation(f"Lost track of the crate at {crate_position!r}")

            behind = crate_position.neighbour(push.direction.reverse())
            walk = find_path(scratch, behind)
            if walk is None:
                return None
            scratch.follow_path(walk)
            if scratch.worker_position != behind:
                return None
            moves.extend(walk.steps)

            if scratch._try_step(push.direction, True) is not None:
                return None
            moves.append(Move(push.direction, True))
            crate_position = crate_position.neighbour(push.direction)

        return moves

    def execute_moves(self, number_of_moves: int, moves: str) -> bool:
        """
        Perform the first `number_of_moves` moves of a move string.

        The remaining moves are kept and can be performed using redo. This is
        how a saved game is restored. If a move is blocked, or a push finds no
        crate to push, the level is left as it was before the call.

        Raises:
            InvalidMoveString: If `moves` contains something other than moves
            ValueError: If `number_of_moves` exceeds the number of moves given
        """
        parsed = parse_moves(moves)
        if not 0 <= number_of_moves <= len(parsed):
            raise ValueError(f"Cannot perform {number_of_moves} of {len(parsed)} moves")

        saved_log = self._log.all_moves()
        saved_cursor = self._log.number_of_moves
        for i, move in enumerate(parsed[:number_of_moves]):
            if not self.step(move.direction, allow_push=move.moves_crate) or self._log.last() != move:
                logger.warning(f"Move #{i} ({move.to_char()}) of the saved game cannot be replayed")
                while self._log.number_of_moves > saved_cursor:
                    self.undo()
                self._log.replace(saved_log, saved_cursor)
                return False

        self._log.replace(
            self._log.performed() + parsed[number_of_moves:], self._log.number_of_moves
        )
        return True

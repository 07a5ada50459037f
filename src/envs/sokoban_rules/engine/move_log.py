# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the BSD-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Move history with undo and redo.

The log is a single list of moves plus a cursor counting the moves that
lead to the current state. Moves at or after the cursor have been undone and
can be redone until a different move is recorded.
"""

from typing import Callable, Iterable, List, Optional

from ..models import Move, moves_to_string
from .errors import InvariantViolation


class MoveLog:
    def __init__(self, moves: Optional[Iterable[Move]] = None):
        self._moves: List[Move] = list(moves or [])
        self._cursor = len(self._moves)

    def __len__(self) -> int:
        return len(self._moves)

    @property
    def number_of_moves(self) -> int:
        """How many moves were performed to reach the current state?"""
        return self._cursor

    def is_empty(self) -> bool:
        """True if no move leads to the current state."""
        return self._cursor == 0

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._moves)

    def last(self) -> Optional[Move]:
        """The most recent move that has not been undone."""
        if self._cursor == 0:
            return None
        return self._moves[self._cursor - 1]

    def record(self, move: Move) -> None:
        """
        Log a move that has just been performed.

        If the move equals the next redoable move, the redo buffer is kept.
        Otherwise everything from the cursor onward is discarded first.
        """
        self._check()
        if self._cursor < len(self._moves):
            if self._moves[self._cursor] == move:
                self._cursor += 1
                return
            del self._moves[self._cursor:]
        self._moves.append(move)
        self._cursor += 1
        self._check()

    def undo(self) -> Optional[Move]:
        """Step the cursor back and return the move to revert, if any."""
        self._check()
        if self._cursor == 0:
            return None
        self._cursor -= 1
        return self._moves[self._cursor]

    def redo(self) -> Optional[Move]:
        """Step the cursor forward and return the move to repeat, if any."""
        self._check()
        if self._cursor == len(self._moves):
            return None
        move = self._moves[self._cursor]
        self._cursor += 1
        return move

    def replace(self, moves: Iterable[Move], number_of_moves: int) -> None:
        """Overwrite the whole log, e.g. when restoring a saved game."""
        moves = list(moves)
        if not 0 <= number_of_moves <= len(moves):
            raise ValueError(
                f"Cannot place the cursor at {number_of_moves} in a log of {len(moves)} moves"
            )
        self._moves = moves
        self._cursor = number_of_moves

    def clear(self) -> None:
        self._moves = []
        self._cursor = 0

    def count_matches(self, predicate: Callable[[Move], bool]) -> int:
        """Count the performed moves satisfying `predicate`."""
        return sum(1 for move in self._moves[: self._cursor] if predicate(move))

    def performed(self) -> List[Move]:
        return self._moves[: self._cursor]

    def all_moves(self) -> List[Move]:
        """Every logged move, including those that have been undone."""
        return list(self._moves)

    def to_string(self) -> str:
        return moves_to_string(self.performed())

    def all_to_string(self) -> str:
        return moves_to_string(self._moves)

    def _check(self) -> None:
        if self._cursor > len(self._moves):
            raise InvariantViolation(
                f"Move log cursor {self._cursor} beyond {len(self._moves)} logged moves"
            )

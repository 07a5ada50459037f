from collections import deque

import pytest

from envs.sokoban_rules import Background, CurrentLevel, DIRECTIONS, Position, parse_level

CLASSIC_LEVEL_1 = """
    #####
    #   #
    #$  #
  ###  $##
  #  $ $ #
### # ## #   ######
#   # ## #####  ..#
# $  $          ..#
##### ### #@##  ..#
    #     #########
    #######
"""

CLASSIC_LEVEL_1_SOLUTION = (
    "ullluuuLUllDlldddrRRRRRRRRRRRRurD"
    "llllllllllllllulldRRRRRRRRRRRRRRR"
    "lllllllluuululldDDuulldddrRRRRRRRRRRRdrUluR"
    "lldlllllluuulLulDDDuulldddrRRRRRRRRRRRurD"
    "lllllllluuulluuulDDDDDuulldddrRRRRRRRRRRR"
    "llllllluuulluuurDDllddddrrruuuLLulDDDuulldddrRRRRRRRRRRdrUluR"
)


class EventRecorder:
    """Listener collecting every event it receives."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def types(self):
        return [type(e) for e in self.events]

    def clear(self):
        self.events.clear()


def make_level(text, **kwargs):
    return CurrentLevel(parse_level(text), **kwargs)


def snapshot(level):
    return (level.worker_position, tuple(level.crate_positions()), level.number_of_moves())


def goals_filled(level):
    """Check the finished condition from the raw grid, without the goal counter."""
    goals = {
        Position(x, y)
        for y in range(level.rows)
        for x in range(level.columns)
        if level.background(Position(x, y)) == Background.GOAL
    }
    return goals == set(level.crate_positions())


def walking_distance(level, to):
    """Plain breadth-first search from the worker over cells without crates."""
    start = level.worker_position
    distances = {start: 0}
    queue = deque([start])
    while queue:
        pos = queue.popleft()
        if pos == to:
            return distances[pos]
        for d in DIRECTIONS:
            n = pos.neighbour(d)
            if n not in distances and level.is_empty(n):
                distances[n] = distances[pos] + 1
                queue.append(n)
    return None


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def classic_level():
    return make_level(CLASSIC_LEVEL_1)

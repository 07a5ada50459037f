"""
Sokoban Rules Engine Simple Example

This script demonstrates basic usage of the rules engine.
It shows how to load a level, listen to events, move around, undo and
let the engine push a crate to a goal.

Usage:
    python examples/sokoban_simple.py
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from envs.sokoban_rules import (
    Direction,
    LevelFinished,
    Position,
    UpdateResponse,
    configure_logging,
    load_level,
)

LEVEL = """
#######
#.    #
#  $  #
#  @  #
#     #
#######
"""


def print_board(level):
    """Print a visual representation of the level."""
    observation = level.observe()
    width = observation.columns

    print("\nCurrent Board:")
    print("─" * width)
    print(level)
    print("─" * width)
    print(f"Moves: {observation.moves_count}, pushes: {observation.pushes_count}")


def print_event(event):
    if event.is_error:
        print(f"  ! {event}")
    elif isinstance(event, LevelFinished):
        print(f"  * Solved: {event.solution.steps}")


def compare_solution(solution):
    # Nothing stored yet, so every solution is a new best.
    return UpdateResponse(first_time_solved=True, moves=True, pushes=True)


def main():
    configure_logging()
    print("Sokoban Rules Engine Example")
    print("=" * 50)

    level = load_level(LEVEL, listeners=[print_event], on_finished=compare_solution)
    print_board(level)

    print("\nWalking into the wall on the right...")
    steps = level.move_as_far_as_possible(Direction.RIGHT)
    print(f"Took {steps} steps")
    level.step(Direction.RIGHT)
    print_board(level)

    print("\nUndoing everything...")
    while level.undo():
        pass
    print_board(level)

    print("\nPushing the crate onto the goal...")
    if level.move_crate_to_target(Position(3, 2), Position(1, 1)):
        print_board(level)

    if level.is_finished():
        print("\n" + "=" * 50)
        print("CONGRATULATIONS! Puzzle solved!")
        print(f"Solution: {level.moves_to_string()}")
        print("=" * 50)


if __name__ == "__main__":
    main()

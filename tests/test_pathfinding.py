import logging

import pytest

from conftest import make_level, snapshot, walking_distance
from envs.sokoban_rules import (
    Direction,
    InvalidCrateTarget,
    LevelFinished,
    Move,
    NoPathFound,
    Position,
    build_crate_graph,
    find_path,
    find_path_with_crate,
)
from envs.sokoban_rules.engine.pathfinding import CrateGraph

CORRIDOR = "#" * 25 + "\n#@$" + " " * 20 + ".#\n" + "#" * 25

NOT_SO_TRICKY = (
    "#####\n"
    "###.#\n"
    "#@$ #\n"
    "# # #\n"
    "#   #\n"
    "#####"
)


def moves(path):
    return "".join(m.to_char() for m in path.steps)


def test_path_around_the_block():
    level = make_level(
        "#######\n"
        "#@   *#\n"
        "# ### #\n"
        "#     #\n"
        "#######"
    )
    path = find_path(level, Position(5, 3))
    assert path.start == Position(1, 1)
    assert moves(path) == "ddrrrr"
    assert path.end() == Position(5, 3)


def test_ties_prefer_left_right_up_down():
    level = make_level("#####\n#@  #\n#   #\n#####")
    assert moves(find_path(level, Position(3, 2))) == "rrd"


def test_path_to_worker_or_blocked_cell_is_empty():
    level = make_level("######\n#@$ .#\n######")
    assert len(find_path(level, Position(1, 1))) == 0
    assert len(find_path(level, Position(2, 1))) == 0
    assert len(find_path(level, Position(0, 0))) == 0


def test_no_path(recorder, caplog):
    level = make_level("######\n#@$ .#\n######", listeners=[recorder])
    with caplog.at_level(logging.WARNING):
        assert find_path(level, Position(3, 1)) is None
    assert recorder.types() == [NoPathFound]
    assert "No path" in caplog.text


@pytest.mark.parametrize(
    "target",
    [Position(8, 4), Position(8, 5), Position(6, 7), Position(14, 8), Position(17, 6), Position(5, 9)],
)
def test_paths_are_shortest(classic_level, target):
    path = find_path(classic_level, target)
    assert path is not None
    assert len(path) == walking_distance(classic_level, target)
    assert path.end() == target


def test_upper_room_is_sealed_off_by_crates(classic_level, recorder):
    classic_level.subscribe(recorder)
    assert walking_distance(classic_level, Position(5, 1)) is None
    assert find_path(classic_level, Position(5, 1)) is None
    assert recorder.types() == [NoPathFound]


def test_following_a_path_lands_on_the_target(classic_level):
    path = find_path(classic_level, Position(8, 5))
    before = classic_level.crate_positions()
    classic_level.follow_path(path)
    assert classic_level.worker_position == Position(8, 5)
    assert classic_level.crate_positions() == before
    assert classic_level.number_of_pushes() == 0


def test_crate_graph_of_a_single_push():
    level = make_level("#####\n#@$.#\n#####")
    graph = build_crate_graph(level, Position(2, 1))
    assert graph.neighbours[Position(2, 1)] == [Position(1, 1), Position(3, 1)]
    assert graph.neighbours[Position(1, 1)] == []
    assert graph.neighbours[Position(3, 1)] == []
    assert len(graph) == 3


def test_crate_graph_needs_room_behind_the_crate():
    level = make_level(NOT_SO_TRICKY)
    graph = build_crate_graph(level, Position(2, 2))
    # Nobody can stand above (1, 2) to push a crate down.
    assert Position(1, 3) not in graph
    assert graph.neighbours[Position(3, 2)] == [Position(3, 1), Position(3, 3)]
    assert graph.render(level).splitlines()[2] == "#...#"


def test_crate_path_with_unreachable_node_is_an_error():
    graph = CrateGraph({Position(1, 1): [], Position(2, 1): []})
    with pytest.raises(AssertionError):
        graph.find_crate_path(Position(1, 1), Position(2, 1))


def test_simplest_crate_path():
    level = make_level("#####\n#@$.#\n#####")
    path = find_path_with_crate(level, Position(2, 1), Position(3, 1))
    assert path.start == Position(2, 1)
    assert path.steps == [Move(Direction.RIGHT, True)]


@pytest.mark.parametrize(
    "from_, to, reason",
    [
        (Position(2, 1), Position(2, 1), "same position"),
        (Position(1, 1), Position(3, 1), "source is not a crate"),
        (Position(2, 1), Position(4, 1), "target is not empty"),
    ],
)
def test_invalid_crate_targets(recorder, from_, to, reason):
    level = make_level("#####\n#@$.#\n#####", listeners=[recorder])
    assert find_path_with_crate(level, from_, to) is None
    assert recorder.events == [InvalidCrateTarget(from_=from_, to=to, reason=reason)]
    assert not level.move_crate_to_target(from_, to)


def test_crate_path_blocked_by_walls(recorder):
    level = make_level("######\n#$#@.#\n######", listeners=[recorder])
    assert find_path_with_crate(level, Position(1, 1), Position(4, 1)) is None
    assert recorder.types() == [NoPathFound]


def test_push_crate_onto_goal(recorder):
    level = make_level("#####\n#@$.#\n#####", listeners=[recorder])
    assert level.move_crate_to_target(Position(2, 1), Position(3, 1))
    assert level.is_finished()
    assert level.moves_to_string() == "R"


def test_push_crate_along_corridor():
    level = make_level(CORRIDOR)
    assert level.move_crate_to_target(Position(2, 1), Position(20, 1))
    assert level.worker_position == Position(19, 1)
    assert level.crate_positions() == [Position(20, 1)]
    assert level.number_of_pushes() == 18
    assert not level.is_finished()


def test_push_crate_around_a_corner():
    level = make_level(NOT_SO_TRICKY)
    assert level.move_crate_to_target(Position(2, 2), Position(3, 1))
    assert level.worker_position == Position(3, 2)
    assert level.is_finished()
    assert level.moves_to_string() == "RlddrruU"


def test_cannot_get_behind_the_crate(recorder):
    level = make_level("######\n# $.@#\n######", listeners=[recorder])
    before = snapshot(level)
    assert find_path_with_crate(level, Position(2, 1), Position(3, 1)) is not None
    recorder.clear()

    assert not level.move_crate_to_target(Position(2, 1), Position(3, 1))
    assert recorder.types() == [NoPathFound]
    assert snapshot(level) == before
    assert level.all_moves_to_string() == ""


def test_undo_after_moving_a_crate():
    level = make_level(NOT_SO_TRICKY)
    before = snapshot(level)
    level.move_crate_to_target(Position(2, 2), Position(3, 1))
    while level.undo():
        pass
    assert snapshot(level) == before


def test_planning_does_not_report_solving(recorder, caplog):
    solutions = []

    def on_finished(solution):
        solutions.append(solution)

    level = make_level(NOT_SO_TRICKY, listeners=[recorder], on_finished=on_finished)
    with caplog.at_level(logging.INFO):
        assert level.move_crate_to_target(Position(2, 2), Position(3, 1))
    solved = [r for r in caplog.records if "solved" in r.getMessage()]
    assert len(solved) == 1
    assert len(solutions) == 1
    assert recorder.types().count(LevelFinished) == 1

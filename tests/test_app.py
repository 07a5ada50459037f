import logging

import pytest

from envs.sokoban_rules import Direction, NoWorker, configure_logging, load_level
from envs.sokoban_rules.engine.app import LOG_FORMAT


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_writes_to_file(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "sokoban.log"
    configure_logging(log_file=log_file, level=logging.DEBUG)

    level = load_level("#####\n#@$.#\n#####", rank=4)
    level.step(Direction.RIGHT)
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text()
    assert "Level #4 loaded" in text
    assert "Level #4 solved with 1 moves and 1 pushes" in text
    assert " - envs.sokoban_rules.engine.current_level - INFO - " in text


def test_configure_logging_console_only(restore_logging):
    configure_logging(level=logging.WARNING)
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert root.handlers[0].formatter._fmt == LOG_FORMAT


def test_load_level_reports_bad_levels(caplog):
    with caplog.at_level(logging.ERROR):
        with pytest.raises(NoWorker):
            load_level("#####\n# $.#\n#####", rank=2)
    assert "Failed to load level #2" in caplog.text


def test_load_level_wires_listeners():
    events = []
    level = load_level("#####\n#@$.#\n#####", listeners=[events.append])
    level.step(Direction.LEFT)
    assert len(events) == 1
    assert events[0].is_error

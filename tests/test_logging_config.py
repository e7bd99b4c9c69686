from __future__ import annotations

import logging

import pytest

from onedrive_slackbot.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_logs_go_to_stderr_leaving_stdout_for_results(
    restore_root_logger, capsys: pytest.CaptureFixture[str]
) -> None:
    setup_logging("info")
    logging.getLogger("onedrive_slackbot.test").info("scan finished")

    captured = capsys.readouterr()
    assert "INFO" in captured.err
    assert "onedrive_slackbot.test - scan finished" in captured.err
    assert captured.out == ""


def test_unknown_level_falls_back_to_info(restore_root_logger) -> None:
    setup_logging("chatty")

    assert logging.getLogger().level == logging.INFO

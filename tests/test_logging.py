from __future__ import annotations

import logging
from pathlib import Path

import pytest

from docsync.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_docsync_logger():
    root = logging.getLogger("docsync")
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    root.propagate = True


def test_console_lines_name_the_component(capsys) -> None:
    configure_logging()

    get_logger("planner").info("Planned 2 update(s)")
    get_logger().info("Run completed")

    err = capsys.readouterr().err.splitlines()
    assert err == ["[docsync] INFO planner: Planned 2 update(s)", "[docsync] INFO Run completed"]


def test_verbose_enables_debug_and_reconfiguring_replaces_handlers(capsys) -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    get_logger("git.publisher").debug("Created branch docs/update-1")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert capsys.readouterr().err.count("Created branch docs/update-1") == 1


def test_log_file_receives_full_logger_names(tmp_path: Path) -> None:
    target = tmp_path / "logs" / "docsync.log"

    logger = configure_logging(log_file=target)
    get_logger("service").warning("Skipping bot PR")
    for handler in logger.handlers:
        handler.flush()

    assert "WARNING docsync.service: Skipping bot PR" in target.read_text(encoding="utf-8")


def test_cli_passes_log_file_through(tmp_path: Path, monkeypatch) -> None:
    from docsync.cli import main

    monkeypatch.setattr("docsync.service.run_service", lambda host, port: None)
    target = tmp_path / "serve.log"

    main(["serve", "--log-file", str(target)])

    handlers = logging.getLogger("docsync").handlers
    assert any(isinstance(handler, logging.FileHandler) for handler in handlers)
    assert target.exists()

from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

from stage_board.utils.logging import setup_logger


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    logger.remove()


def test_setup_logger_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "board.log"

    setup_logger(level="debug", log_file=log_file, use_rich=False)
    logger.debug("board ready")
    logger.complete()

    content = log_file.read_text()
    assert "Logging to file" in content
    assert "board ready" in content


def test_setup_logger_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        setup_logger(level="LOUD")

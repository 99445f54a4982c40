from __future__ import annotations

import logging
from pathlib import Path

from drafting.logging_config import LOGGER_NAME, setup_logging


def test_setup_logging_is_idempotent(tmp_path: Path) -> None:
    """Repeated setup replaces handlers instead of stacking them."""

    log_file = tmp_path / "drafting.log"

    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.INFO, str(log_file))
    logging.getLogger("drafting.seam").info("seam rebuilt")
    for handler in logger.handlers:
        handler.flush()

    assert logger.name == LOGGER_NAME
    assert len(logger.handlers) == 2
    assert logger.level == logging.INFO
    assert "drafting.seam - INFO - seam rebuilt" in log_file.read_text(encoding="utf-8")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

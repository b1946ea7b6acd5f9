from __future__ import annotations

import logging
import sys

import pytest

from fleet_services.config import configure_logging


@pytest.fixture()
def root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_configure_logging_keeps_existing_handlers(root_logger) -> None:
    host_handler = logging.NullHandler()
    root_logger.handlers[:] = [host_handler]

    configure_logging("debug")

    assert root_logger.handlers == [host_handler]
    assert root_logger.level == logging.DEBUG


def test_configure_logging_adds_stdout_handler_once(root_logger) -> None:
    root_logger.handlers[:] = []

    configure_logging("warning")
    configure_logging("warning")

    assert len(root_logger.handlers) == 1
    handler = root_logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stdout
    assert root_logger.level == logging.WARNING

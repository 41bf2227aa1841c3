"""Pytest configuration and shared fixtures for fdopt tests.

fdopt loggers do not propagate to the root logger, so records only reach
pytest's ``caplog`` through the :func:`fdopt_caplog` fixture below.
"""

import logging
from typing import Iterator

import pytest

from fdopt.logging import get_logger

_MODULE_LOGGERS = (
    "fdopt.optimize.gradient",
    "fdopt.optimize.constraints",
    "fdopt.optimize.derivatives",
    "fdopt.optimize.evaluator",
)


@pytest.fixture(scope="function")
def fdopt_caplog(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    """Attach ``caplog`` to the fdopt module loggers at DEBUG level."""
    loggers = [get_logger(name) for name in _MODULE_LOGGERS]
    previous = [logger.level for logger in loggers]
    caplog.set_level(logging.DEBUG)
    for logger in loggers:
        logger.addHandler(caplog.handler)
        logger.setLevel(logging.DEBUG)
    yield caplog
    for logger, level in zip(loggers, previous):
        logger.removeHandler(caplog.handler)
        logger.setLevel(level)

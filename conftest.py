"""Root conftest.py for plainsql tests.

Provides fixtures shared by every test module.
"""

import pytest
from unittest.mock import MagicMock


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing.

    Satisfies LoggerProtocol; bind() returns the same mock so calls made
    through bound child loggers are still visible on it.
    """
    logger = MagicMock()
    logger.info = MagicMock()
    logger.debug = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.bind = MagicMock(return_value=logger)
    return logger

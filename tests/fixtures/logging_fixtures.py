"""Fixtures for logging mocks."""

from unittest.mock import patch

import pytest


@pytest.fixture
def mock_logger():
    """Mock loguru logger in the modules that report operator-facing outcomes."""
    with patch("persons_console.listing.bulk_delete.logger") as mock_delete_logger, patch(
        "persons_console.jobs.poller.logger"
    ) as mock_poller_logger, patch("persons_console.monitoring.notifications.logger") as mock_notifications_logger:
        yield {
            "bulk_delete": mock_delete_logger,
            "poller": mock_poller_logger,
            "notifications": mock_notifications_logger,
        }

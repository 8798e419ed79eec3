"""Route test configuration: rate limiting is off unless a test turns it on."""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting so tests can call endpoints repeatedly."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield

"""
Shared fixtures for adversarial tests.

Provides a helper that releases many threads at the same instant so
races on the invalidation store are actually exercised.
"""

import pytest

from tests.support import run_concurrently


@pytest.fixture
def concurrently():
    """Run a callable from many threads at once and collect the outcomes."""
    return run_concurrently

"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest

from core_backend.config import app_settings


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_engine_settings():
    """
    Reload engine settings after each test so override_settings on
    POS_ENGINE never leaks into the next test.
    """
    yield
    app_settings.reload()


# Import all shared fixtures
from core_backend.tests.fixtures import *  # noqa: E402,F401,F403

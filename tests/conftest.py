"""
Pytest configuration and shared fixtures for Stageboard tests.
"""
import pytest
from datetime import datetime
from unittest.mock import patch
import logging

from stageboard.utils.config import Settings

from tests.fixtures.mock_services import FakeProvider

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Disable logging during tests unless specifically needed
logging.getLogger('stageboard').setLevel(logging.WARNING)

FIXED_NOW = datetime(2025, 1, 15, 14, 30, 0)

TEST_ANTHROPIC_KEY = "sk-ant-api03-" + "a" * 40
TEST_OPENAI_KEY = "sk-" + "b" * 40
TEST_RESEND_KEY = "re_" + "c" * 30


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values = {
        "LLM_PROVIDER": "anthropic",
        "ANTHROPIC_API_KEY": TEST_ANTHROPIC_KEY,
        "OPENAI_API_KEY": TEST_OPENAI_KEY,
        "RESEND_API_KEY": None,
        "INTAKE_MODEL": None,
        "BUILD_MODEL": None,
        "ENVIRONMENT": "test",
        "LOG_TO_FILE": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def now():
    """Fixed reference time for generators and transitions."""
    return FIXED_NOW


@pytest.fixture
def settings():
    """Settings with both LLM keys configured."""
    return make_settings()


@pytest.fixture
def settings_without_keys():
    """Settings with no API keys at all."""
    return make_settings(ANTHROPIC_API_KEY=None, OPENAI_API_KEY=None)


@pytest.fixture
def fake_provider(settings):
    """Provider returning a well-formed intake reply."""
    return FakeProvider(settings, reply='{"message":"Tell me about your business.","points":null}')


@pytest.fixture(autouse=True)
def reset_mocks():
    """Reset all mocks after each test."""
    yield
    patch.stopall()


# Markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")


def pytest_collection_modifyitems(config, items):
    """Add markers automatically from the test directory."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "e2e" in path:
            item.add_marker(pytest.mark.e2e)

import sys

import pytest
import structlog

from gateway.log import configure

SAMPLE_NAMESPACE = "tests.fixtures.sample_services"


@pytest.fixture
def fresh_sample_modules():
    """Drop the sample service modules from the import cache around a test."""

    def _purge():
        for name in list(sys.modules):
            if name.startswith(f"{SAMPLE_NAMESPACE}."):
                del sys.modules[name]

    _purge()
    yield
    _purge()


@pytest.fixture
def quiet_logging():
    yield
    structlog.reset_defaults()
    configure(log_level="CRITICAL", cache=False, output_file=sys.stdout)

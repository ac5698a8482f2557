"""Pytest configuration and fixtures."""

import pytest

from ncpsign.common.clock import FixedClock
from ncpsign.common.settings import Settings
from ncpsign.credentials import Credentials
from ncpsign.signer import Signer

ACCESS_KEY = "AK123"
SECRET_KEY = "SK456"
TIMESTAMP = 1700000000000


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        base_url="https://ncloud.apigw.ntruss.com",
        access_key=ACCESS_KEY,
        secret_key=SECRET_KEY,
        http_timeout=5.0,
        _env_file=None,
    )


@pytest.fixture
def credentials() -> Credentials:
    """Test key pair."""
    return Credentials(access_key=ACCESS_KEY, secret_key=SECRET_KEY)


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at a known instant."""
    return FixedClock(TIMESTAMP)


@pytest.fixture
def signer(credentials: Credentials, clock: FixedClock) -> Signer:
    """Signer with fixed credentials and clock."""
    return Signer(credentials, clock)

# tests/conftest.py
import pytest

from structgen.domain.models.generation import Capability, CapabilityProvider


@pytest.fixture
def weather_provider():
    return CapabilityProvider(name="weather", description="Current conditions and forecasts", address="http://weather.test")


@pytest.fixture
def news_provider():
    return CapabilityProvider(name="news", description="Headlines", address="http://news.test")


@pytest.fixture
def weather_capabilities():
    return [
        Capability(name="current", description="Current conditions", inputSchema={"type": "object"}),
        Capability(name="forecast", description="24-hour forecast"),
    ]

"""
Pytest configuration and fixtures.
"""

import os

# Keep a developer's real key out of the test run
os.environ.pop("ANTHROPIC_API_KEY", None)

import pytest

from config import ImageConfig, MarketplaceConfig, ModelConfig, RateLimitConfig, Settings
from services.rate_limiter import RateLimits
from tests.fakes import API_URL, BASE_URL, FakeUpstream


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def marketplace_config() -> MarketplaceConfig:
    return MarketplaceConfig(base_url=BASE_URL, api_base_url=API_URL)


@pytest.fixture
def image_config() -> ImageConfig:
    return ImageConfig()


@pytest.fixture
def model_config() -> ModelConfig:
    return ModelConfig(model="claude-test", max_tokens=500)


@pytest.fixture
def rate_limits() -> RateLimits:
    return RateLimits.disabled()


@pytest.fixture
def settings(marketplace_config, image_config, model_config) -> Settings:
    return Settings(
        api_key="test-key",
        marketplace=marketplace_config,
        images=image_config,
        model=model_config,
        rate_limits=RateLimitConfig(marketplace_delay=0, model_delay=0, seller_delay=0),
    )

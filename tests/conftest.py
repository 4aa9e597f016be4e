"""Root pytest configuration: markers and provider-key gating."""

import os

import pytest
from dotenv import load_dotenv

# Live tests read provider keys from .env
load_dotenv()

TEXT_PROVIDER_KEYS = ("GOOGLE_API_KEY", "ANTHROPIC_API_KEY", "OPENAI_API_KEY")


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "requires_google_api: needs GOOGLE_API_KEY (Gemini illustrations)"
    )
    config.addinivalue_line(
        "markers", "requires_llm_api: needs a key for one of the text providers"
    )
    config.addinivalue_line("markers", "slow: makes real provider calls")


@pytest.fixture(autouse=True)
def skip_without_provider_keys(request):
    """Skip live tests whose provider key is not configured."""
    if request.node.get_closest_marker("requires_google_api") and not os.getenv("GOOGLE_API_KEY"):
        pytest.skip("GOOGLE_API_KEY not set")
    if request.node.get_closest_marker("requires_llm_api") and not any(
        os.getenv(key) for key in TEXT_PROVIDER_KEYS
    ):
        pytest.skip("No text provider API key set")

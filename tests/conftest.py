import pytest

from lovesync.config import settings


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """Retry once, without waiting, so retry paths stay fast."""
    monkeypatch.setattr(settings.api, "retry_count", 1)
    monkeypatch.setattr(settings.api, "retry_base_delay", 0.0)
    monkeypatch.setattr(settings.api, "retry_max_delay", 0.0)

import asyncio
import os

import pytest

# config builds the Groq client at import time
os.environ.setdefault("GROQ_API_KEY", "test-groq-key")

from profileRoaster import scraper


@pytest.fixture(autouse=True)
def clean_scraper_state(monkeypatch):
    """Every test starts with a cold instance: no cached browser, no parsed state."""
    monkeypatch.setattr(scraper, "_cached_session", None)
    monkeypatch.setattr(scraper, "_saved_storage_state", None)
    monkeypatch.setattr(scraper, "_storage_state_expired", False)
    monkeypatch.setattr(scraper, "_CONTEXT_LOCK", asyncio.Lock())
    monkeypatch.setattr(scraper, "_SCRAPE_SEMAPHORE", asyncio.Semaphore(3))
    monkeypatch.delenv("LINKEDIN_EMAIL", raising=False)
    monkeypatch.delenv("LINKEDIN_PASSWORD", raising=False)


@pytest.fixture
def no_state_file(monkeypatch, tmp_path):
    monkeypatch.setattr(scraper.config, "LINKEDIN_STATE_FILE", str(tmp_path / "missing.json"))


@pytest.fixture
def state_file(monkeypatch, tmp_path):
    path = tmp_path / "linkedin_state.json"
    path.write_text('{"cookies": [{"name": "li_at", "value": "abc"}], "origins": []}', encoding="utf-8")
    monkeypatch.setattr(scraper.config, "LINKEDIN_STATE_FILE", str(path))
    return path

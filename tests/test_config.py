import pytest
from pydantic import ValidationError

from classmeets import config as config_module
from classmeets.config import ScheduleConfig, get_config


def test_defaults(monkeypatch):
    monkeypatch.delenv("PAGE_SIZE", raising=False)
    monkeypatch.delenv("SESSIONS_POLL_SECONDS", raising=False)
    cfg = ScheduleConfig(_env_file=None)
    assert cfg.page_size == 5
    assert cfg.sessions_poll_seconds == 5.0
    assert cfg.portal_api_url == "http://localhost:3006/api"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("PORTAL_API_URL", "https://portal.example.com/api")
    monkeypatch.setenv("PAGE_SIZE", "10")
    cfg = ScheduleConfig(_env_file=None)
    assert cfg.portal_api_url == "https://portal.example.com/api"
    assert cfg.page_size == 10


def test_rejects_non_positive_page_size(monkeypatch):
    monkeypatch.setenv("PAGE_SIZE", "0")
    with pytest.raises(ValidationError):
        ScheduleConfig(_env_file=None)


def test_get_config_is_singleton(monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)
    assert get_config() is get_config()

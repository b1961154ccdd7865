import pytest

from config import load_settings, parse_admin_ids
from ratelimit import CooldownLimiter
from errors import CooldownError


def test_parse_admin_ids():
    assert parse_admin_ids(" 1, 2 ,,3 ") == ["1", "2", "3"]
    assert parse_admin_ids(None) == []


def test_load_settings_defaults():
    settings = load_settings({"BOT_TOKEN": "t"})
    assert settings.admin_ids == []
    assert settings.channel_id is None
    assert settings.port == 5000
    assert not settings.uses_supabase


def test_load_settings_full():
    settings = load_settings({
        "BOT_TOKEN": "t", "ADMIN_IDS": "1,2", "CHANNEL_ID": "-100", "PORT": "8080",
        "SUPABASE_URL": "https://x.supabase.co", "SUPABASE_KEY": "k", "LOG_LEVEL": "debug",
    })
    assert settings.admin_ids == ["1", "2"]
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.uses_supabase


def test_missing_token():
    with pytest.raises(RuntimeError):
        load_settings({})


def test_half_configured_supabase():
    with pytest.raises(RuntimeError):
        load_settings({"BOT_TOKEN": "t", "SUPABASE_URL": "https://x.supabase.co"})


class TestCooldownLimiter:
    def test_window(self, clock):
        limiter = CooldownLimiter(window_seconds=60, clock=clock)
        limiter.check("1")
        limiter.record("1")
        clock.advance(59.5)
        with pytest.raises(CooldownError) as exc:
            limiter.check("1")
        assert exc.value.remaining_seconds == 1
        clock.advance(0.5)
        limiter.check("1")

    def test_reset(self, clock):
        limiter = CooldownLimiter(clock=clock)
        limiter.record("1")
        limiter.reset("1")
        assert limiter.remaining("1") == 0

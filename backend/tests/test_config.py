from __future__ import annotations

from timebudget.config import Settings


def test_settings_read_prefixed_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("TB_SQLITE_PATH", str(tmp_path / "budget.db"))
    monkeypatch.setenv("TB_SINGLE_RUNNING", "true")
    monkeypatch.setenv("TB_LOG_LEVEL", " debug ")
    configured = Settings(_env_file=None)
    assert configured.sqlite_path == tmp_path / "budget.db"
    assert configured.single_running is True
    assert configured.log_level == "DEBUG"


def test_settings_only_carry_used_options():
    assert set(Settings.model_fields) == {
        "app_name",
        "host",
        "port",
        "sqlite_path",
        "timezone",
        "log_level",
        "concurrent_window_minutes",
        "stale_after_minutes",
        "single_running",
    }

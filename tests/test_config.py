"""Tests for settings loading."""

from chat_practice.config import Settings


class TestSettings:
    def test_init_overrides(self, tmp_path):
        settings = Settings(ai_server_url="http://ai.example", data_dir=tmp_path / "d")
        assert settings.ai_server_url == "http://ai.example"
        assert settings.store_dir == tmp_path / "d"
        assert settings.store_dir.is_dir()

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv("AI_SERVER_URL", "http://from-env:9000")
        assert Settings().ai_server_url == "http://from-env:9000"

    def test_auth_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("APP_SECRET", raising=False)
        assert Settings().app_secret is None

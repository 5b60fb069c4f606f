"""Unit tests for environment-driven settings."""

from backend.core.config import DEFAULT_CORS_ORIGINS, Settings


class TestSettingsFromEnv:

    def test_defaults(self, monkeypatch):
        for name in ["GROQ_API_KEY", "PORT", "ENVIRONMENT", "CORS_ORIGINS", "GROQ_TEXT_MODEL"]:
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.groq_api_key == ""
        assert settings.port == 8787
        assert settings.environment == "development"
        assert settings.cors_origins == DEFAULT_CORS_ORIGINS
        assert settings.text_model == "llama-3.1-8b-instant"
        assert not settings.is_production

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GROQ_API_KEY", "secret")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LLM_TIMEOUT", "5")
        monkeypatch.setenv("GROQ_VISION_MODEL", "some-vision-model")
        monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
        settings = Settings.from_env()
        assert settings.groq_api_key == "secret"
        assert settings.port == 9000
        assert settings.llm_timeout == 5
        assert settings.vision_model == "some-vision-model"
        assert settings.upload_dir == str(tmp_path)
        assert settings.is_production

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example ,")
        assert Settings.from_env().cors_origins == ["https://a.example", "https://b.example"]

    def test_production_flag_case_insensitive(self):
        assert Settings(environment="Production").is_production

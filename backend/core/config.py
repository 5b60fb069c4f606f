"""Runtime settings read from the process environment.

`.env` files are loaded by `backend.main` via python-dotenv before
`Settings.from_env()` is called.
"""

import os
import tempfile
from dataclasses import dataclass, field

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8501",
    "http://127.0.0.1:8501",
]


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    """Server configuration. Every field has a usable default except the key."""
    groq_api_key: str = ""
    text_model: str = "llama-3.1-8b-instant"
    vision_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    temperature: float = 0.7
    max_tokens: int = 1024
    llm_timeout: int = 30
    host: str = "0.0.0.0"
    port: int = 8787
    environment: str = "development"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    upload_dir: str = field(
        default_factory=lambda: os.path.join(tempfile.gettempdir(), "freegpt-uploads")
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        defaults = cls()
        origins = os.environ.get("CORS_ORIGINS")
        return cls(
            groq_api_key=os.environ.get("GROQ_API_KEY", ""),
            text_model=os.environ.get("GROQ_TEXT_MODEL", defaults.text_model),
            vision_model=os.environ.get("GROQ_VISION_MODEL", defaults.vision_model),
            temperature=float(os.environ.get("LLM_TEMPERATURE", defaults.temperature)),
            max_tokens=int(os.environ.get("LLM_MAX_TOKENS", defaults.max_tokens)),
            llm_timeout=int(os.environ.get("LLM_TIMEOUT", defaults.llm_timeout)),
            host=os.environ.get("HOST", defaults.host),
            port=int(os.environ.get("PORT", defaults.port)),
            environment=os.environ.get("ENVIRONMENT", defaults.environment),
            cors_origins=_split_origins(origins) if origins else defaults.cors_origins,
            upload_dir=os.environ.get("UPLOAD_DIR", defaults.upload_dir),
        )

"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """symtrack server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: there is no auth layer in front of the symptom
    # journal. Opt into `0.0.0.0` explicitly when you intend remote access.
    symtrack_host: str = "127.0.0.1"
    symtrack_port: int = 8001
    symtrack_log_level: str = "info"
    symtrack_allow_insecure_bind: bool = False

    # Rule catalog (empty = packaged symptom_rules.yaml)
    rules_path: str = ""

    # Guided questionnaire (empty = packaged questionnaire.yaml)
    questionnaire_path: str = ""
    questionnaire_session_max_age_minutes: int = 60

    # Storage (symptom journal)
    db_path: str = "~/.symtrack/symptoms.db"

    # Encryption (empty = run without persistence)
    encryption_key: str = ""

    # Analysis batch selection
    recent_window_hours: int = 24
    recent_limit: int = 5
    active_window_days: int = 7


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()

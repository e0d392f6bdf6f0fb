"""
Configuration settings for the Chief of Staff task automation engine.
All sensitive values are loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Chief of Staff Automation"
    debug: bool = Field(default=False, env="DEBUG")
    environment: str = Field(default="production", env="ENVIRONMENT")
    timezone: str = Field(default="America/New_York", env="TIMEZONE")

    # Boss
    boss_email: str = Field(default="", env="BOSS_EMAIL")
    boss_name: str = Field(default="Boss", env="BOSS_NAME")

    # Google Sheets (record store)
    google_credentials_json: str = Field(default="", env="GOOGLE_CREDENTIALS_JSON")
    google_sheet_id: str = Field(default="", env="GOOGLE_SHEET_ID")

    # Sheet names
    sheet_tasks: str = Field(default="Tasks_DB", env="SHEET_TASKS")
    sheet_staff: str = Field(default="Staff_DB", env="SHEET_STAFF")
    sheet_projects: str = Field(default="Projects_DB", env="SHEET_PROJECTS")
    sheet_workflows: str = Field(default="Workflows", env="SHEET_WORKFLOWS")
    sheet_scheduled_actions: str = Field(default="Scheduled_Actions", env="SHEET_SCHEDULED_ACTIONS")
    sheet_error_log: str = Field(default="Error_Log", env="SHEET_ERROR_LOG")

    # Interaction log (a Sheets cell holds at most 50,000 characters)
    interaction_log_max_chars: int = Field(default=45000, env="INTERACTION_LOG_MAX_CHARS")
    interaction_log_keep_lines: int = Field(default=150, env="INTERACTION_LOG_KEEP_LINES")
    interaction_log_emergency_lines: int = Field(default=100, env="INTERACTION_LOG_EMERGENCY_LINES")

    # Entity resolution
    resolver_phonetic_threshold: float = Field(default=0.7, env="RESOLVER_PHONETIC_THRESHOLD")
    resolver_deletion_fallback: bool = Field(default=True, env="RESOLVER_DELETION_FALLBACK")
    resolver_min_first_token: int = Field(default=3, env="RESOLVER_MIN_FIRST_TOKEN")
    resolver_min_last_token: int = Field(default=3, env="RESOLVER_MIN_LAST_TOKEN")
    resolver_min_project_word: int = Field(default=3, env="RESOLVER_MIN_PROJECT_WORD")

    # Workflows
    # "advisory": run delayed actions immediately and only note the delay
    # "queue": persist delayed actions and run them from the scheduler
    delayed_action_mode: str = Field(default="advisory", env="DELAYED_ACTION_MODE")
    delayed_action_poll_minutes: int = Field(default=5, env="DELAYED_ACTION_POLL_MINUTES")

    # Reply tracking
    processed_message_ids_limit: int = Field(default=500, env="PROCESSED_MESSAGE_IDS_LIMIT")

    # Staff metrics
    reliability_update_interval_hours: int = Field(default=24, env="RELIABILITY_UPDATE_INTERVAL_HOURS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings

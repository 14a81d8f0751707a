"""Application settings for the Store Survey backend."""
from flask import current_app
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Backend settings loaded from STORESURVEY_* environment variables."""

    # Storage
    database_uri: str = 'sqlite+pysqlite:///store_survey.db'

    # Survey results
    responses_per_page: int = 20
    subject_fetch_workers: int = 8  # concurrent per-store reads for the subjects overview

    # User management
    min_username_length: int = 3
    min_password_length: int = 6
    default_super_admin_username: str = 'superadmin'

    # Public survey links
    public_base_url: str = 'http://localhost:3000'

    # Logging
    log_dir: str = 'logs'
    log_file: str = 'store_survey.log'
    log_level: str = 'INFO'
    log_max_bytes: int = 10 * 1024 * 1024
    log_sql: bool = False

    model_config = SettingsConfigDict(env_prefix='STORESURVEY_', case_sensitive=False)

    def get(self, key, default=None):
        """Get a configuration value."""
        return getattr(self, key, default)

    def set(self, key, value):
        """Set a configuration value."""
        setattr(self, key, value)

    def get_all(self):
        """Get all configuration values as dictionary."""
        return self.model_dump()


def get_settings():
    """Return the settings of the current Flask app."""
    return current_app.extensions['settings']

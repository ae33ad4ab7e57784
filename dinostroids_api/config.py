"""
Configuration module for the Dinostroids API.

This module handles environment variables and system-wide constants.

Simulates:
    The environment a serverless platform injects into each function
    (KV connection details, feature switches).
"""

import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Falls back to .env file if present, otherwise uses defaults.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Redis Configuration
    # A full URL (e.g. an Upstash "rediss://" URL) wins over host/port/db.
    redis_url: str = ""
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str = ""

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api"
    cors_allow_origin: str = "*"

    # Games played counter
    games_played_key: str = "gamesPlayed"
    games_played_fallback: int = 50

    # Leaderboard
    leaderboard_key: str = "dinostroids_leaderboard"
    leaderboard_max_entries: int = 10
    serialize_submissions: bool = False
    submission_lock_timeout: float = 5.0

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


# Global settings instance
settings = Settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

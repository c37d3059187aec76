import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "postgresql://localhost:5432/pantry_intake"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"connect_timeout": 5},
    }

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Bearer tokens for the JSON API (seconds)
    API_TOKEN_MAX_AGE = int(os.environ.get("API_TOKEN_MAX_AGE", "3600"))

    # Dashboard settings
    STATS_TIMEZONE = os.environ.get("STATS_TIMEZONE", "UTC")
    STATS_TREND_DAYS = int(os.environ.get("STATS_TREND_DAYS", "90"))

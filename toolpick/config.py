# ABOUTME: Application configuration for scoring weights, content location and storage
# ABOUTME: Centralized config read from environment (and .env) at import time

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration"""

    # Final score blend: 70% accuracy, 30% speed
    ACCURACY_WEIGHT = float(os.getenv("ACCURACY_WEIGHT", "0.7"))
    SPEED_WEIGHT = float(os.getenv("SPEED_WEIGHT", "0.3"))

    # Scenario time budget when a scenario doesn't set its own tmax
    DEFAULT_TMAX_SECONDS = float(os.getenv("DEFAULT_TMAX_SECONDS", "25"))

    # Tool deck and scenarios (deck.tools.json, scenarios.json)
    CONTENT_DIR = os.getenv(
        "CONTENT_DIR",
        str(Path(__file__).resolve().parent / "content" / "data")
    )

    # Leaderboard / admin summary
    LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "10"))
    SUMMARY_WINDOW_MINUTES = int(os.getenv("SUMMARY_WINDOW_MINUTES", "5"))
    TOP_PLAYERS_LIMIT = int(os.getenv("TOP_PLAYERS_LIMIT", "5"))

    # Single shared session until sessions are created dynamically
    DEFAULT_SESSION_ID = os.getenv("DEFAULT_SESSION_ID", "00000000-0000-0000-0000-000000000000")

    # Supabase (PostgREST). Leave empty to run with the in-memory store.
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
    SUPABASE_TIMEOUT_SECONDS = int(os.getenv("SUPABASE_TIMEOUT_SECONDS", "10"))

    # Debug mode
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

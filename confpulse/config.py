from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CONFPULSE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # ─────────────────── MongoDB  ───────────────────
    mongodb_uri: str = "mongodb://localhost:27017/"
    db_name: str = "confpulse"
    server_selection_timeout_ms: int = Field(5_000, description="milliseconds")
    socket_timeout_ms: int = Field(10_000, description="milliseconds")

    # ─────────────────── Logging ────────────────────
    log_level: str = "INFO"

    # ─────────────────── Points ─────────────────────
    points_micro_eval: int = 10
    points_optional_comment: int = 5
    points_early_bird: int = 15
    points_final_eval: int = 50
    points_day_eval: int = 0
    early_bird_window_minutes: int = Field(10, description="minutes after session end")
    comment_field: str = "key_takeaway"

    # ─────────────────── Badges / leaderboard ───────
    ambassador_top_fraction: float = 0.10
    leaderboard_limit: int = 10

    # ─────────────────── Participants ───────────────
    code_prefix: str = "AF"
    code_generation_attempts: int = 10
    default_language: str = "fr"

    # ─────────────────── Derived helpers ────────────
    def evaluation_points(self, evaluation_type: str) -> int:
        if evaluation_type == "final":
            return self.points_final_eval
        return self.points_day_eval


CONFIG = Config()

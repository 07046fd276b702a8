# ruff: noqa: E501
import os
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- Core Settings ---
    ENVIRONMENT: Annotated[str, Field(default="development", description="Application environment (e.g., 'development', 'production').")]
    TIME_ZONE: Annotated[str, Field(default="Asia/Shanghai", description="Timezone used to resolve 'today' for plans and summaries.")]

    # --- Logging ---
    LOG_LEVEL: Annotated[str, Field(default="DEBUG", description="Logging level for the application (e.g., DEBUG, INFO, WARNING).")]

    # --- Storage (Redis) ---
    REDIS_URL: Annotated[str, Field(default="redis://127.0.0.1:6379", description="Full connection URL for Redis.")]
    REDIS_DB: Annotated[int, Field(default=0, description="Redis database index holding plans and session snapshots.")]
    REDIS_SOCKET_TIMEOUT: Annotated[float, Field(default=5.0, description="Socket timeout in seconds for Redis operations.")]
    REDIS_KEY_PREFIX: Annotated[str, Field(default="fitplan", description="Prefix applied to every Redis key written by the application.")]
    SESSION_SNAPSHOT_KEY: Annotated[str, Field(default="workout_session:snapshot", description="Fixed key holding the single resumable workout session snapshot.")]

    # --- Exercise Catalog ---
    EXERCISE_CATALOG_PATH: Annotated[str | None, Field(default=None, description="Optional path overriding the bundled exercises.jsonl resource.")]

    # --- Live Session ---
    SESSION_TICK_SECONDS: Annotated[float, Field(default=1.0, description="Interval of the session master timer and rest countdown ticks.")]
    REST_INTERVAL_SECONDS: Annotated[int, Field(default=60, description="Rest countdown started after a set is completed.")]
    DEFAULT_SET_COUNT: Annotated[int, Field(default=3, description="Sets in the template used for strength workouts without planned sets.")]
    DEFAULT_SET_REPS: Annotated[int, Field(default=10, description="Reps per set in the default strength template.")]

    # --- Plan Generation ---
    CARDIO_KCAL_PER_MINUTE: Annotated[int, Field(default=8, description="Calories burned per minute assumed for cardio workouts.")]
    STRENGTH_KCAL_PER_MINUTE: Annotated[int, Field(default=6, description="Calories burned per minute assumed for strength workouts.")]
    STRENGTH_MINUTES_PER_SET: Annotated[int, Field(default=3, description="Planned minutes per strength set, rest included.")]
    FALLBACK_WORKOUT_MINUTES: Annotated[int, Field(default=20, description="Duration of the single exercise inserted into an otherwise empty workout day.")]
    FALLBACK_WORKOUT_CALORIES: Annotated[int, Field(default=100, description="Calories of the fallback workout slot.")]

    # --- Goal Progress ---
    GOAL_TOLERANCE_KG: Annotated[float, Field(default=0.5, description="Weight difference treated as 'at target' or 'maintain'.")]
    GOAL_AHEAD_BAND: Annotated[float, Field(default=0.1, description="Progress above the expected schedule fraction that counts as ahead.")]
    GOAL_BEHIND_BAND: Annotated[float, Field(default=0.1, description="Progress below the expected schedule fraction that counts as behind.")]
    GOAL_SAFE_WEEKLY_RATE: Annotated[float, Field(default=0.01, description="Maximum weekly weight change as a fraction of body weight before a goal is flagged.")]

    # --- Insights ---
    WEIGHT_TREND_THRESHOLD_KG: Annotated[float, Field(default=0.3, description="Minimum weight change that produces a trend insight.")]
    WEIGHT_TREND_WINDOW_DAYS: Annotated[int, Field(default=7, description="Age in days of the comparison sample for the weight trend.")]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        return str(value or "INFO").strip().upper()

    @field_validator("GOAL_AHEAD_BAND", "GOAL_BEHIND_BAND", "GOAL_TOLERANCE_KG")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("goal bands and tolerance must be non-negative")
        return value

    @model_validator(mode="after")
    def _compute_derived_fields(self) -> "Settings":
        if self.EXERCISE_CATALOG_PATH:
            self.EXERCISE_CATALOG_PATH = os.path.expanduser(self.EXERCISE_CATALOG_PATH)
        return self

    def redis_key(self, name: str) -> str:
        return f"{self.REDIS_KEY_PREFIX}:{name}"


settings = Settings()  # noqa

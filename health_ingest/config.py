from __future__ import annotations
from dotenv import load_dotenv, find_dotenv; load_dotenv(find_dotenv(usecwd=True), override=True)

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # General
    TZ: str = Field(
        default="Europe/Sarajevo",
        description="Zone for export timestamps that carry no UTC offset",
    )

    # Workout ZIP export
    MATCH_TOLERANCE_MS: int = Field(
        default=5000,
        ge=0,
        description="Max distance between a detail file stamp and the workout start",
    )
    SUMMARY_PATTERN: str = Field(default="Workouts-*.csv")

    # Scan / import
    SCAN_FOLDER: str = Field(default=".")
    DELETE_SOURCE_AFTER_IMPORT: bool = Field(default=False)

    # Output
    WORKOUTS_OUTPUT: str = Field(default="./out/workouts.csv")
    STATS_OUTPUT: str = Field(default="./out/stats.csv")


def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]

"""Runtime settings for Stepper Progress."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    return Path.home() / ".stepper-progress"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STEPPER_",
        extra="ignore",
    )

    data_dir: Path = Field(default_factory=_default_data_dir)
    auto_pause_delay_sec: float = 2.0
    save_success_clear_sec: float = 2.0
    log_level: str = "INFO"
    log_file: str | None = None
    # Simulated step source
    sim_cadence_spm: float = 60.0
    sim_seed: int = 20260225

    @property
    def calibration_path(self) -> Path:
        return self.data_dir / "calibration.json"

    @property
    def history_path(self) -> Path:
        return self.data_dir / "history.jsonl"


settings = Settings()

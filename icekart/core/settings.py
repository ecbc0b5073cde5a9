from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    total_laps: int = Field(default=3, ge=1, validation_alias="TOTAL_LAPS")
    checkpoints_per_lap: int = Field(default=10, ge=1, validation_alias="CHECKPOINTS_PER_LAP")
    # The first start-line trigger of each racer only arms lap timing
    warmup_arming: bool = Field(default=True, validation_alias="WARMUP_ARMING")

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    subscriber_queue_size: int = Field(default=256, ge=1, validation_alias="SUBSCRIBER_QUEUE_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def load_settings() -> Settings:
    """Load settings from the environment and log the race configuration."""
    loaded = Settings()
    logger.info(
        f"Race configured: total_laps={loaded.total_laps}, "
        f"checkpoints_per_lap={loaded.checkpoints_per_lap}, "
        f"warmup_arming={loaded.warmup_arming}"
    )
    return loaded

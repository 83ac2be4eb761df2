"""Pydantic settings loaded from .env."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = Field("./stokvis.db")
    # Empty means the process-local counter store is used
    redis_url: str = Field("")
    # Answer throttling
    throttle_max_attempts: int = Field(25, ge=1)
    throttle_window_s: int = Field(30, ge=1)
    throttle_fail_open: bool = Field(True)
    counter_store_timeout_s: float = Field(0.5, gt=0)
    # scrypt cost parameters for hashed answers
    scrypt_n: int = Field(16384)
    scrypt_r: int = Field(8, ge=1)
    scrypt_p: int = Field(1, ge=1)
    seed_demo_route: bool = Field(False)
    log_level: str = Field("INFO")

    @field_validator("scrypt_n")
    @classmethod
    def _power_of_two(cls, value: int) -> int:
        if value < 2 or value & (value - 1):
            raise ValueError("scrypt_n must be a power of two greater than 1")
        return value

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()

"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings."""

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="json", description="Logging format (e.g., plain, json)"
    )

    # Rasterization
    max_line_steps: int = Field(
        default=200_000_000, description="Safety ceiling on pixels per line"
    )
    opaque_alpha_threshold: int = Field(
        default=0xFF00, description="16-bit alpha at or above which a pixel is opaque"
    )

    # Jump flooding
    jump_flood_final_pass: bool = Field(
        default=False, description="Run an extra step-1 pass after the halving passes"
    )
    jump_flood_double_buffer: bool = Field(
        default=False, description="Read only the previous pass's values during a pass"
    )

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()

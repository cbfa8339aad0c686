"""
Anvil — Runtime configuration
Values come from the environment (a local .env file is loaded first).
Every field reads ANVIL_<FIELD>; the API key reads OPENAI_API_KEY.
"""

from __future__ import annotations
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ANVIL_",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    log_level: str = "INFO"
    log_json: bool = False
    seed: Optional[int] = None
    starting_hp: int = Field(default=50, gt=0)
    max_energy: int = Field(default=3, ge=0)
    hand_size: int = Field(default=5, gt=0)
    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    narrator_model: str = "gpt-4o"


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings from the environment. env_file defaults to ./.env.

    Raises pydantic.ValidationError when a variable does not parse.
    """
    load_dotenv(env_file)
    return Settings()

"""Runtime configuration."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://d5dn3j2ouj72b0ejucbl.apigw.yandexcloud.net"


class Settings(BaseModel):
    """Settings for talking to the FakeNFT API."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    token: str = Field(default="", description="Value of the X-Practicum-Mobile-Token header")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    preferences_file: str = Field(
        default_factory=lambda: str(Path.home() / ".fakenft_preferences.json"),
        description="JSON file holding persisted sort preferences",
    )
    log_level: str = Field(default="INFO", description="Logging level name")

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "Settings":
        """
        Build settings from FAKENFT_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ (used by tests)
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if env.get("FAKENFT_BASE_URL"):
            values["base_url"] = env["FAKENFT_BASE_URL"].rstrip("/")
        if env.get("FAKENFT_TOKEN"):
            values["token"] = env["FAKENFT_TOKEN"]
        if env.get("FAKENFT_TIMEOUT"):
            values["timeout"] = float(env["FAKENFT_TIMEOUT"])
        if env.get("FAKENFT_PREFERENCES_FILE"):
            values["preferences_file"] = env["FAKENFT_PREFERENCES_FILE"]
        if env.get("FAKENFT_LOG_LEVEL"):
            values["log_level"] = env["FAKENFT_LOG_LEVEL"].upper()

        return cls(**values)

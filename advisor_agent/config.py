"""Application configuration via environment variables."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings

log = logging.getLogger("advisor_agent.config")

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    # Flows
    flows_path: str = str(_DATA_DIR / "flows" / "advisor_flows.jsonl")
    max_steps: int = 100
    flow_timeout_seconds: float | None = None

    # Advisor data
    sample_data_path: str = str(_DATA_DIR / "sample_advisor_data.json")
    timezone: str = "Europe/Rome"

    # News service
    news_service_url: str = "http://localhost:9100"
    news_timeout_seconds: float = 10.0

    # API auth
    api_key: str = ""

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        if self.max_steps < 1:
            raise ValueError("MAX_STEPS must be at least 1.")

        if self.flow_timeout_seconds is not None and self.flow_timeout_seconds <= 0:
            raise ValueError("FLOW_TIMEOUT_SECONDS must be positive when set.")

        if not Path(self.flows_path).is_file():
            warnings.append(f"FLOWS_PATH {self.flows_path} does not exist — no flows will be loaded.")

        if not self.api_key:
            if self.debug:
                warnings.append("API_KEY not set. Flow API is open (DEBUG=true).")
            else:
                warnings.append(
                    "API_KEY not set. Flow API is locked in production. "
                    "Set API_KEY in .env to enable access."
                )

        return warnings


settings = Settings()

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class DbSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="forbid")

    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "nrts-dev"
    mongo_collection: str = "applications"
    server_selection_timeout_ms: int = 5000

    log_level: str = "info"

    # Tracing is off unless an OTLP collector is around.
    otel_enabled: bool = False
    service_name: str = "nrts-seed"


SETTINGS = DbSettings()

from __future__ import annotations

from functools import cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.ledger import MAX_PAYEE_NAME_LENGTH
from domain.sync_markers import DEFAULT_PAYEE_NAME, SyncMarkerKind


class AppSettings(BaseSettings):
    trading212_api_key: SecretStr
    trading212_base_url: str = "https://live.trading212.com"

    ynab_api_key: SecretStr
    ynab_base_url: str = "https://api.ynab.com/v1"
    ynab_account_id: str
    ynab_budget_id: str

    payee_name: str = Field(DEFAULT_PAYEE_NAME, min_length=1, max_length=MAX_PAYEE_NAME_LENGTH)
    sync_marker: SyncMarkerKind = SyncMarkerKind.PAYEE
    request_timeout: float = 10.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


class TriggerSettings(BaseSettings):
    """Only what the HTTP trigger needs to authenticate a caller."""

    cron_secret: SecretStr | None = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()  # type: ignore[call-arg]


@cache
def trigger_config() -> TriggerSettings:
    return TriggerSettings()


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

import logging
import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from config import AppSettings, TriggerSettings, config, trigger_config
from domain.reconciliation import ReconciliationEngine
from services.sync_service import build_engine

logger = logging.getLogger(__name__)


def get_settings() -> AppSettings:
    return config()


def get_trigger_settings() -> TriggerSettings:
    return trigger_config()


def get_reconciliation_engine(settings: Annotated[AppSettings, Depends(get_settings)]) -> ReconciliationEngine:
    return build_engine(settings)


def _unauthorized(cause: str) -> HTTPException:
    logger.warning("Rejected sync trigger: %s", cause)
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def require_cron_secret(
    request: Request, trigger_settings: Annotated[TriggerSettings, Depends(get_trigger_settings)]
) -> None:
    cron_secret = trigger_settings.cron_secret
    if cron_secret is None or not cron_secret.get_secret_value():
        raise _unauthorized("CRON_SECRET is not configured")

    authorization = request.headers.get("authorization")
    if authorization is None:
        raise _unauthorized("Authorization header missing")

    expected = f"Bearer {cron_secret.get_secret_value()}"
    if not secrets.compare_digest(authorization.encode(), expected.encode()):
        raise _unauthorized("Authorization header invalid")

import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Annotated, AsyncGenerator, Awaitable, Callable

from fastapi import BackgroundTasks, Depends, FastAPI, Request, Response

from api.dependencies import get_reconciliation_engine, get_settings, require_cron_secret
from config import LOG_FORMAT, AppSettings
from domain.reconciliation import ReconciliationEngine
from services.sync_service import run_sync

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    yield


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.info("Request time: %s %s: %.4fs", request.method, request.url.path, process_time)
    return response


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/sync", dependencies=[Depends(require_cron_secret)])
def trigger_sync(
    background_tasks: BackgroundTasks,
    engine: Annotated[ReconciliationEngine, Depends(get_reconciliation_engine)],
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> Response:
    # Runs after the response has been sent; the outcome only reaches the log.
    background_tasks.add_task(run_sync, engine, settings)
    return Response(status_code=200)

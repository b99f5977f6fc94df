import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load .env before settings are read (skipped under pytest)
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from votestreak.core.config import settings, validate_config, cors_origins  # noqa: E402
from votestreak.core.logging import configure_logging  # noqa: E402
from votestreak.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from votestreak.core.validation import validate_env  # noqa: E402
from votestreak.core.database import create_all_tables  # noqa: E402
from votestreak.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from votestreak.api import health, votes  # noqa: E402

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("votestreak")
    logger.info("Starting votestreak service...")
    create_all_tables()
    try:
        yield
    finally:
        logger.info("Stopping votestreak service...")


app = FastAPI(title="votestreak", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(votes.router, tags=["votes"])
app.include_router(health.router, tags=["health"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("votestreak.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))

import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from inkwell/.env
inkwell_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(inkwell_dir, ".env"))

# Import after dotenv is loaded
from inkwell.core.config import settings, validate_config  # noqa: E402
from inkwell.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from inkwell.core.logging import configure_logging  # noqa: E402
from inkwell.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from inkwell.core.validation import validate_env  # noqa: E402
from inkwell.features.weekly.schema import validate_schema  # noqa: E402
from inkwell.api import health, journal, progress, summaries, weeks  # noqa: E402

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("inkwell")
    logger.info("Starting Inkwell backend...")
    validate_schema()
    if os.getenv("DATABASE_URL"):
        from inkwell.core.database import check_connection, create_all_tables

        if check_connection():
            create_all_tables()
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logging.getLogger("inkwell").info("Stopping Inkwell backend...")


app = FastAPI(title="Inkwell - Backend", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# CORS (adjust origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.root_router)
app.include_router(progress.router)
app.include_router(journal.router)
app.include_router(summaries.router)
app.include_router(weeks.router)

import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings
from .database import init_db
from .errors import NotFoundError, StoreError, ValidationError
from .leaderboard import create_store
from .log_handler import SQLiteHandler
from .router import router
from .session_manager import SessionManager
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)


# --- Logging Setup ---
def setup_logging(config: Settings = settings):
    app_logger = logging.getLogger("typemeteor")
    app_logger.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    if not os.path.exists(config.LOG_DIR):
        os.makedirs(config.LOG_DIR, exist_ok=True)
    log_path = os.path.join(config.LOG_DIR, config.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    app_logger.addHandler(file_handler)

    if config.LOG_TO_DB:
        init_db(config.db_path)
        app_logger.addHandler(SQLiteHandler(config.db_path))

    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Error Handlers ---
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse({"error": exc.message, "field": exc.field}, status_code=400)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = str(errors[0]["loc"][-1]) if errors and errors[0].get("loc") else None
    return JSONResponse(
        {"error": f"Invalid request: {field or 'body'}", "field": field},
        status_code=400,
    )


async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse({"error": exc.message}, status_code=404)


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store fault on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=500)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    config = app.state.config
    vocab = VocabularyManager(config.VOCAB_DIR)
    vocab.load_all()
    store = create_store(config)
    app.state.vocab = vocab
    app.state.store = store
    app.state.sessions = SessionManager(vocab, config)
    logger.info(
        f"Started with {len(vocab.pools)} languages, {store.backend} leaderboard"
    )
    yield
    app.state.sessions.shutdown()
    store.close()
    logger.info("Shut down")


# --- App Factory ---
def create_app(config: Settings = settings) -> FastAPI:
    setup_logging(config)
    app = FastAPI(
        title=config.PROJECT_NAME,
        debug=config.DEBUG,
        lifespan=lifespan,
        root_path=config.ROOT_PATH,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(StoreError, store_error_handler)

    app.include_router(router)

    return app

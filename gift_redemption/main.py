"""
FastAPI main application
Gift Redemption Counter - one gift per team

Routers in gift_redemption/api/:
- health.py: Health check and system status
- lookup.py: Staff pass -> team lookup
- redemption.py: Gift redemption and redemption status

Every router reaches the database through the GiftStore attached to
app.state by create_app.
"""
import argparse
import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gift_redemption.api import health, lookup, redemption
from gift_redemption.config import VERSION, Settings, load_config
from gift_redemption.database import GiftStore
from gift_redemption.errors import GiftRedemptionError, StorageError
from gift_redemption.mapping_loader import load_mapping_csv


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def create_app(store: GiftStore, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around an already initialised store

    Args:
        store: Storage access object; the app disposes it on shutdown
        settings: Runtime settings (CORS policy); defaults when None
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        logger.info(f"✅ Server started with {store.count_mappings()} staff pass mappings")
        yield
        logger.info("🛑 Server shutting down")
        store.dispose()

    app = FastAPI(
        title="Gift Redemption Counter",
        description="Look up a staff pass and redeem one gift per team",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    @app.exception_handler(GiftRedemptionError)
    async def handle_gift_error(request: Request, exc: GiftRedemptionError):
        if isinstance(exc, StorageError):
            logger.error(f"❌ Storage failure on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "invalid request payload"})

    # ==================== INCLUDE ROUTERS ====================

    # Health check (GET /)
    app.include_router(health.router)

    # Lookup (GET /lookup)
    app.include_router(lookup.router)

    # Redemption (POST /redemption, GET /redemption)
    app.include_router(redemption.router)

    return app


def open_store(settings: Settings, csv_path: Optional[str] = None) -> GiftStore:
    """
    Open the database, create tables and run the optional bulk import

    Raises:
        StorageError: If the tables cannot be created
        MappingImportError / FileNotFoundError: If the CSV import fails
    """
    store = GiftStore.from_path(settings.db_path, busy_timeout=settings.busy_timeout)
    try:
        store.init_db()
        if csv_path:
            load_mapping_csv(store, csv_path)
    except Exception:
        store.dispose()
        raise
    return store


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gift redemption counter API server")
    parser.add_argument("--db", default=None,
                        help="Path to existing database. If it does not exist, then it will be created (default: gifts.db)")
    parser.add_argument("--csv", default=None, help="Path to CSV mapping file to import on startup (optional)")
    parser.add_argument("--config", default=None, help="Path to YAML settings file (optional)")
    parser.add_argument("--host", default=None, help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: 3000)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Settings file values, overridden by whichever flags were given"""
    settings = load_config(args.config)
    overrides = {
        "db_path": args.db,
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    settings = resolve_settings(args)
    setup_logging(settings.log_level)

    try:
        store = open_store(settings, args.csv)
    except (GiftRedemptionError, FileNotFoundError) as exc:
        logger.error(f"❌ Startup failed: {exc}")
        raise SystemExit(1) from exc

    app = create_app(store, settings)

    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    main()

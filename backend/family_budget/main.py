from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .api import api_router
from .config import Settings, load_settings
from .logging import configure_logging, get_logger
from .services import FiscalLookupClient, IngestionWorkflow, ItemClassifier, QrDecoder
from .store import RecordStore, open_store

logger = get_logger(__name__)

SESSION_MAX_AGE = 30 * 24 * 60 * 60
GENERIC_ERROR_MESSAGE = "Внутренняя ошибка сервера"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup and close it on shutdown."""
    settings: Settings = app.state.settings
    if app.state.store is None:
        app.state.store = open_store(settings)

    app.state.workflow = IngestionWorkflow(
        store=app.state.store,
        lookup=app.state.lookup or FiscalLookupClient(
            token=settings.fns_api_token,
            url=settings.fns_api_url,
        ),
        classifier=app.state.classifier or ItemClassifier(
            api_key=settings.claude_api_key,
            model=settings.claude_model,
        ),
        decoder=app.state.decoder,
    )
    logger.info(f"Family budget ready ({settings.environment}, {settings.store_backend} store)")
    yield
    app.state.store.close()


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Every error leaves the API as {"error": "..."}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
        return JSONResponse({"error": "Неверные данные"}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        message = GENERIC_ERROR_MESSAGE if settings.is_production else str(exc)
        return JSONResponse({"error": message}, status_code=500)


def create_app(
    settings: Settings | None = None,
    store: RecordStore | None = None,
    lookup: FiscalLookupClient | None = None,
    classifier: ItemClassifier | None = None,
    decoder: QrDecoder | None = None,
) -> FastAPI:
    configure_logging()
    settings = settings or load_settings()

    app = FastAPI(
        title="Family Budget",
        description="Shared household expense ledger",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.lookup = lookup
    app.state.classifier = classifier
    app.state.decoder = decoder

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_key,
        session_cookie="budget-session",
        max_age=SESSION_MAX_AGE,
        same_site="lax",
        https_only=False,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    # Serve the built web client in production (must be last, it catches all unmatched routes)
    frontend_dist = Path(__file__).parent.parent.parent / "web" / "dist"
    if settings.is_production and frontend_dist.exists():
        app.mount("/assets", StaticFiles(directory=frontend_dist / "assets"), name="static-assets")

        @app.get("/{full_path:path}")
        async def serve_spa(request: Request, full_path: str):
            """Serve index.html for all non-API routes (SPA fallback)."""
            file_path = frontend_dist / full_path
            if file_path.is_file():
                return FileResponse(file_path)
            return FileResponse(frontend_dist / "index.html")

    return app


app = create_app()

"""
FastAPI application: personal dashboard, Markdown viewer and ephemeral clipboard.
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.base import BaseHTTPMiddleware

from clipdash import dashboard
from clipdash.cleanup import cleanup_loop
from clipdash.config import SHARE_TTL_LABEL, Settings
from clipdash.documents import list_documents, load_document
from clipdash.errors import ShareError, StoreError
from clipdash.models import (
    CreateShareRequest,
    CreateShareResponse,
    DeleteShareResponse,
    ShareResponse,
)
from clipdash.share_service import ShareService
from clipdash.store import SQLiteStore, ShareStore, UpstashStore

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_PATH)


def build_store(settings: Settings) -> ShareStore:
    """Instantiate the configured backend. Credentials must already be checked."""
    if settings.store_backend == "sqlite":
        return SQLiteStore(settings.sqlite_path)
    if settings.store_backend == "upstash":
        return UpstashStore(settings.upstash_url, settings.upstash_token, timeout=settings.store_timeout)
    logger.error(f"Unknown STORE_BACKEND: {settings.store_backend}")
    raise StoreError("Stockage des partages mal configuré")


async def get_share_service(request: Request) -> ShareService:
    """Per-request dependency: checks credentials before any store call."""
    state = request.app.state
    state.settings.require_store_credentials()
    if state.store is None:
        state.store = build_store(state.settings)
    return ShareService(state.store)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        # Prevent content type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: blob:; "
            "frame-ancestors 'none';"
        )
        # HSTS - enforce HTTPS in production
        if not self.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def register_error_handlers(app: FastAPI):
    """Every failure leaves as `{"error": message}`."""

    @app.exception_handler(ShareError)
    async def share_error_handler(request: Request, exc: ShareError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.__class__.__name__}: {exc.message}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request on {request.url.path}: {len(exc.errors())} error(s)")
        return JSONResponse({"error": "Requête invalide"}, status_code=422)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse({"error": "Erreur serveur"}, status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    # ============ LIFESPAN CONTEXT ============
    @asynccontextmanager
    async def lifespan(app):
        """Start the SQLite cleanup worker when that backend is active."""
        cleanup_task = None
        if settings.store_backend == "sqlite":
            app.state.store = app.state.store or build_store(settings)
            cleanup_task = asyncio.create_task(cleanup_loop(app.state.store))
        logger.info(f"clipdash started (store backend: {settings.store_backend})")
        yield
        if cleanup_task:
            cleanup_task.cancel()
            with suppress(asyncio.CancelledError):
                await cleanup_task
        if app.state.store is not None:
            await app.state.store.close()
        logger.info("clipdash shutting down")

    app = FastAPI(title="clipdash", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = None

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware, debug=settings.debug)
    # Trusted Host Middleware - prevent host header attacks
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # ============ PAGES ============

    @app.get("/", response_class=HTMLResponse)
    async def home_page(request: Request):
        """Serve the dashboard."""
        return templates.TemplateResponse(request, "home.html", {
            "links": dashboard.USEFUL_LINKS,
            "projects": dashboard.PROJECTS,
            "sequences": dashboard.SEQUENCES,
            "documents": list_documents(settings.docs_path),
        })

    @app.get("/clipboard", response_class=HTMLResponse)
    async def clipboard_page(request: Request):
        """Serve the clipboard page."""
        return templates.TemplateResponse(request, "clipboard.html", {"expires_in": SHARE_TTL_LABEL})

    @app.get("/sequences/{slug}", response_class=HTMLResponse)
    async def sequence_page(request: Request, slug: str):
        sequence = dashboard.get_sequence(slug)
        if not sequence:
            raise HTTPException(status_code=404, detail="Séquence non trouvée")
        return templates.TemplateResponse(request, "sequence.html", {"sequence": sequence})

    @app.get("/files/{slug}.md", response_class=PlainTextResponse)
    async def raw_document(slug: str):
        """Serve the Markdown source of a document."""
        document = load_document(settings.docs_path, slug)
        return PlainTextResponse(document.body, media_type="text/markdown; charset=utf-8")

    @app.get("/files/{slug}", response_class=HTMLResponse)
    async def document_page(request: Request, slug: str):
        """Serve the Markdown viewer."""
        try:
            document = load_document(settings.docs_path, slug)
        except ShareError as e:
            return templates.TemplateResponse(
                request, "document.html", {"document": None, "error": e.message}, status_code=404
            )
        return templates.TemplateResponse(request, "document.html", {"document": document, "error": None})

    # ============ CLIPBOARD API ============

    @app.post("/shares", status_code=201, response_model=CreateShareResponse, response_model_by_alias=True)
    async def create_share(body: CreateShareRequest, service: ShareService = Depends(get_share_service)):
        """Create a new share and return its code."""
        code = await service.create(body.items)
        return CreateShareResponse(code=code, expires_in=SHARE_TTL_LABEL)

    @app.get("/shares/{code}", response_model=ShareResponse, response_model_by_alias=True,
             response_model_exclude_none=True)
    async def get_share(code: str, service: ShareService = Depends(get_share_service)):
        """Retrieve a share by code."""
        share = await service.retrieve(code)
        return ShareResponse(share=share)

    @app.delete("/shares/{code}", response_model=DeleteShareResponse)
    async def delete_share(code: str, service: ShareService = Depends(get_share_service)):
        """Delete a share by code."""
        await service.delete(code)
        return DeleteShareResponse(message="Partage supprimé avec succès")

    return app


SETTINGS = Settings.from_env()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if SETTINGS.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

app = create_app(SETTINGS)


def run():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()

import logging
import sys
from functools import partial
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

_project_root = Path(__file__).resolve().parents[1]
if str(_project_root) not in sys.path:
    sys.path.append(str(_project_root))

from backend import app_context
from backend.app.billing import StripeBillingGateway
from backend.app.catalogs import (
    InMemoryCatalogRepository,
    InMemoryPublicCatalogReader,
    PostgresCatalogRepository,
    PostgresPublicCatalogReader,
)
from backend.app.config import AppConfig, cors_allow_credentials, load_app_config
from backend.app.db import connect
from backend.app.errors import DomainError
from backend.app.identity import JWTIdentityVerifier
from backend.app.profiles import InMemoryProfileRepository, PostgresProfileRepository
from backend.app.routes.billing import router as billing_router
from backend.app.routes.catalogs import router as catalogs_router
from backend.app.routes.profiles import router as profiles_router
from backend.app.routes.public import router as public_router
from backend.app.routes.uploads import router as uploads_router
from backend.app.storage import BlobStore, LocalBlobStore, SupabaseBlobStore

load_dotenv()

APP_CONFIG = load_app_config()

logging.basicConfig(
    level=APP_CONFIG.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storefront")

LOCAL_UPLOADS_PATH = "/uploads"


def build_blob_store(config: AppConfig) -> BlobStore:
    storage = config.blob_storage
    if storage.base_url and storage.service_key:
        return SupabaseBlobStore(
            base_url=storage.base_url,
            service_key=storage.service_key,
            bucket=storage.bucket,
        )
    logger.info("Blob storage not configured; writing uploads to %s", storage.local_dir)
    return LocalBlobStore(storage.local_dir, base_url=LOCAL_UPLOADS_PATH)


def configure_context(config: AppConfig) -> None:
    """Register repositories and provider adapters for the selected backend."""

    if config.storage_backend == "memory":
        profiles = InMemoryProfileRepository()
        catalogs = InMemoryCatalogRepository()
        public_reader = InMemoryPublicCatalogReader(profiles, catalogs)
        get_conn = None
        logger.warning("Using in-memory storage; data is lost on restart")
    else:
        profiles = PostgresProfileRepository()
        catalogs = PostgresCatalogRepository()
        public_reader = PostgresPublicCatalogReader()
        get_conn = partial(connect, **config.database.as_connect_kwargs())

    if not config.billing.secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set; billing calls will fail")

    app_context.configure(
        config=config,
        identity_verifier=JWTIdentityVerifier(config.identity),
        blob_store=build_blob_store(config),
        billing_gateway=StripeBillingGateway(
            secret_key=config.billing.secret_key,
            webhook_secret=config.billing.webhook_secret,
        ),
        profile_repository=profiles,
        catalog_repository=catalogs,
        public_reader=public_reader,
        get_conn=get_conn,
    )


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=dict(exc.payload))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "Something went wrong. Please try again."},
    )


configure_context(APP_CONFIG)

app = FastAPI(title="Storefront Catalogs API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(APP_CONFIG.cors_origins),
    allow_credentials=cors_allow_credentials(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(DomainError, handle_domain_error)
app.add_exception_handler(Exception, handle_unexpected_error)

app.include_router(profiles_router)
app.include_router(catalogs_router)
app.include_router(public_router)
app.include_router(billing_router)
app.include_router(uploads_router)

if isinstance(app_context.get_blob_store(), LocalBlobStore):
    app.mount(
        LOCAL_UPLOADS_PATH,
        StaticFiles(directory=APP_CONFIG.blob_storage.local_dir, check_dir=False),
        name="uploads",
    )


@app.get("/api/healthz")
def healthz():
    return {"status": "ok", "storage": APP_CONFIG.storage_backend}

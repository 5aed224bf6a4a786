import logging
from contextlib import asynccontextmanager

from api.errors import register_exception_handlers
from api.routes import activity_logs, auth, categories, cloth_types, subcategories, users
from config import AppMode, get_settings
from db.database import init_db
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from middleware.security import SecurityHeadersMiddleware

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Quiet noisy loggers
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Atelier Catalog API in {settings.APP_MODE.value} mode...")

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down Atelier Catalog API...")


app = FastAPI(
    title="Atelier Catalog API",
    description="Catalog backend for cloth types, categories, subcategories and users",
    version="1.0.0",
    lifespan=lifespan,
    # Starlette replaces the 500 handler with a traceback page when debug is on.
    debug=settings.DEBUG,
)

register_exception_handlers(app)

# Middlewares (first added = last executed)
app.add_middleware(SecurityHeadersMiddleware)

if settings.APP_MODE == AppMode.DEV:
    from middleware.logging import RequestLoggingMiddleware, configure_request_logging

    configure_request_logging(settings.LOG_LEVEL)
    app.add_middleware(RequestLoggingMiddleware)

# CORS must be last (first to process incoming requests)
allow_credentials = "*" not in settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID", "X-Total-Items"],
)

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(auth.router)
api_v1_router.include_router(categories.router)
api_v1_router.include_router(subcategories.router)
api_v1_router.include_router(cloth_types.router)
api_v1_router.include_router(users.router)
api_v1_router.include_router(activity_logs.router)

app.include_router(api_v1_router)


@app.get("/")
async def root():
    return {
        "name": "Atelier Catalog API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "mode": settings.APP_MODE.value,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=(settings.APP_MODE == AppMode.DEV),
    )
